"""Fixed fee overrides and cost projection."""

from dataclasses import dataclass

from ledger_client.client import LedgerClient
from ledger_client.models import FeeOverride

GWEI = 10**9
DEFAULT_GAS_LIMIT = 5_000_000
DEFAULT_GAS_PRICE_WEI = GWEI // 10
FILLER_GAS_LIMIT = 21_000
ESTIMATED_GAS_PER_OPERATION = 3_000_000
FALLBACK_GAS_PRICE_WEI = GWEI


@dataclass(frozen=True)
class CostEstimate:
    network_gas_price_wei: int
    gas_per_operation: int
    per_operation_wei: int
    operations: int

    @property
    def total_wei(self) -> int:
        return self.per_operation_wei * self.operations


class FeePolicy:
    """Attaches the same configured gas limit and price floor to every submission.

    The network's own price is only consulted by ``estimate_cost`` to warn the
    operator about projected spend; it never changes the submitted override.
    """

    def __init__(
        self,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        gas_price_wei: int = DEFAULT_GAS_PRICE_WEI,
        gas_per_operation: int = ESTIMATED_GAS_PER_OPERATION,
        fallback_gas_price_wei: int = FALLBACK_GAS_PRICE_WEI,
    ) -> None:
        if gas_limit <= 0:
            raise ValueError("Gas limit must be positive.")
        if gas_price_wei <= 0:
            raise ValueError("Gas price must be positive.")
        self._override = FeeOverride(gas_limit=gas_limit, gas_price_wei=gas_price_wei)
        self._gas_per_operation = gas_per_operation
        self._fallback_gas_price_wei = fallback_gas_price_wei

    @classmethod
    def for_filler(cls, gas_price_wei: int = DEFAULT_GAS_PRICE_WEI) -> "FeePolicy":
        return cls(gas_limit=FILLER_GAS_LIMIT, gas_price_wei=gas_price_wei)

    def override(self) -> FeeOverride:
        return self._override

    def estimate_cost(self, ledger: LedgerClient, operations: int) -> CostEstimate:
        fee_data = ledger.get_fee_data()
        network_price = fee_data.gas_price_wei or self._fallback_gas_price_wei
        return CostEstimate(
            network_gas_price_wei=network_price,
            gas_per_operation=self._gas_per_operation,
            per_operation_wei=self._gas_per_operation * network_price,
            operations=operations,
        )
