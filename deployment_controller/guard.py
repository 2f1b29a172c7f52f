"""Pre-flight balance sufficiency checks."""

from dataclasses import dataclass
import logging

from ledger_client.client import LedgerClient

from .gate import ConfirmationGate

logger = logging.getLogger(__name__)

WEI_PER_ETHER = 10**18


class ZeroBalanceError(RuntimeError):
    """Raised when the deploying account holds no funds at all."""


class OperatorDeclinedError(RuntimeError):
    """Raised when the operator declines to continue at a confirmation gate."""


@dataclass(frozen=True)
class BalanceCheck:
    address: str
    balance_wei: int
    required_wei: int
    low_balance: bool
    operator_override: bool


class BalanceGuard:
    """Fails closed on an empty account, warns and asks on a thin one."""

    def __init__(self, ledger: LedgerClient, gate: ConfirmationGate, multiplier: int = 3) -> None:
        if multiplier <= 0:
            raise ValueError("Balance multiplier must be positive.")
        self._ledger = ledger
        self._gate = gate
        self._multiplier = multiplier

    def check(self, address: str, projected_cost_wei: int) -> BalanceCheck:
        balance = self._ledger.get_balance(address)
        logger.info("Account balance: %s (%s wei)", format_ether(balance), balance)

        if balance == 0:
            raise ZeroBalanceError(
                f"insufficient funds: deployer account {address} has zero balance"
            )

        required = projected_cost_wei * self._multiplier
        if balance >= required:
            return BalanceCheck(
                address=address,
                balance_wei=balance,
                required_wei=required,
                low_balance=False,
                operator_override=False,
            )

        logger.warning(
            "Low account balance: %s available, at least %s needed for the full deployment",
            format_ether(balance),
            format_ether(required),
        )
        if not self._gate.ask("Continue with deployment anyway?"):
            raise OperatorDeclinedError("Deployment cancelled by operator.")
        return BalanceCheck(
            address=address,
            balance_wei=balance,
            required_wei=required,
            low_balance=True,
            operator_override=True,
        )


def format_ether(value_wei: int) -> str:
    return f"{value_wei / WEI_PER_ETHER:.4f}"
