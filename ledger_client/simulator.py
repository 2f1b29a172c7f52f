"""Simulate ledger submissions without network calls."""

from typing import Dict, List, Optional, Sequence, Tuple

from web3 import Web3

from .client import LedgerError
from .models import FeeData, FeeOverride, Submission, TxReceipt


_DEFAULT_DEPLOYER = "0x00000000000000000000000000000000000000D1"
_DEFAULT_BALANCE_WEI = 10**21
_DEFAULT_CHAIN_ID = 1043
_DEFAULT_GAS_PRICE_WEI = 1_000_000_000
_SIMULATED_CODE = "0x6080604052"

_GAS_USED = {
    "create": 1_500_000,
    "call": 60_000,
    "transfer": 21_000,
}


class SimulatedLedger:
    """Deterministic in-memory ledger for dry runs and tests.

    Enforces the same ordering rules as a real node: a submission must carry
    exactly the account's next pending nonce and enough balance to cover
    ``gas_limit * gas_price``. Failures and reverts can be injected per nonce.
    Submissions are mined immediately, so every receipt is available as soon
    as the hash is returned.
    """

    def __init__(
        self,
        address: str = _DEFAULT_DEPLOYER,
        balance_wei: int = _DEFAULT_BALANCE_WEI,
        chain_id: int = _DEFAULT_CHAIN_ID,
        network_gas_price_wei: Optional[int] = _DEFAULT_GAS_PRICE_WEI,
        start_nonce: int = 0,
    ) -> None:
        self._address = Web3.to_checksum_address(address)
        self._chain_id = chain_id
        self._network_gas_price_wei = network_gas_price_wei
        self._balances: Dict[str, int] = {self._address: balance_wei}
        self._nonces: Dict[str, int] = {self._address: start_nonce}
        self._code: Dict[str, str] = {}
        self._views: Dict[Tuple[str, str], object] = {}
        self._receipts: Dict[str, TxReceipt] = {}
        self._submissions: List[Submission] = []
        self._failures: Dict[int, str] = {}
        self._reverts: set = set()
        self._block_number = 0

    @property
    def address(self) -> str:
        return self._address

    @property
    def submissions(self) -> Tuple[Submission, ...]:
        return tuple(self._submissions)

    def fail_at(self, nonce: int, message: str) -> None:
        """Reject the submission that carries ``nonce`` with ``message``."""
        self._failures[nonce] = message

    def revert_at(self, nonce: int) -> None:
        """Mine the submission that carries ``nonce`` with a failed status."""
        self._reverts.add(nonce)

    def set_code(self, address: str, code: str) -> None:
        self._code[Web3.to_checksum_address(address)] = code

    def set_view(self, address: str, method: str, value: object) -> None:
        """Make ``read(..., address, method)`` return ``value``."""
        self._views[(Web3.to_checksum_address(address), method)] = value

    def chain_id(self) -> int:
        return self._chain_id

    def get_balance(self, address: str) -> int:
        return self._balances.get(Web3.to_checksum_address(address), 0)

    def get_nonce(self, address: str, block: str = "pending") -> int:
        return self._nonces.get(Web3.to_checksum_address(address), 0)

    def get_fee_data(self) -> FeeData:
        return FeeData(gas_price_wei=self._network_gas_price_wei)

    def deploy(
        self, contract: str, args: Sequence[object], overrides: FeeOverride, nonce: int
    ) -> str:
        return self._submit("create", nonce, overrides, contract=contract, args=args)

    def call(
        self,
        contract: str,
        address: str,
        method: str,
        args: Sequence[object],
        overrides: FeeOverride,
        nonce: int,
    ) -> str:
        return self._submit(
            "call",
            nonce,
            overrides,
            contract=contract,
            to_address=Web3.to_checksum_address(address),
            method=method,
            args=args,
        )

    def transfer(self, to: str, value_wei: int, overrides: FeeOverride, nonce: int) -> str:
        if value_wei < 0:
            raise LedgerError("Transfer value must be non-negative.")
        return self._submit(
            "transfer",
            nonce,
            overrides,
            to_address=Web3.to_checksum_address(to),
            args=(value_wei,),
        )

    def get_code(self, address: str) -> str:
        return self._code.get(Web3.to_checksum_address(address), "0x")

    def read(
        self, contract: str, address: str, method: str, args: Sequence[object] = ()
    ) -> object:
        key = (Web3.to_checksum_address(address), method)
        if key not in self._views:
            raise LedgerError(f"execution reverted: {contract}.{method} unavailable at {address}")
        return self._views[key]

    def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        receipt = self._receipts.get(tx_hash)
        if receipt is None:
            raise LedgerError(f"Unknown transaction {tx_hash}")
        return receipt

    def _submit(
        self,
        kind: str,
        nonce: int,
        overrides: FeeOverride,
        contract: Optional[str] = None,
        to_address: Optional[str] = None,
        method: Optional[str] = None,
        args: Sequence[object] = (),
    ) -> str:
        expected = self._nonces[self._address]
        if nonce < expected:
            raise LedgerError(f"nonce too low: next nonce {expected}, tx nonce {nonce}")
        if nonce > expected:
            raise LedgerError(f"nonce too high: next nonce {expected}, tx nonce {nonce}")
        if nonce in self._failures:
            raise LedgerError(self._failures[nonce])

        value = int(args[0]) if kind == "transfer" else 0
        max_cost = overrides.gas_limit * overrides.gas_price_wei + value
        if self._balances[self._address] < max_cost:
            raise LedgerError("insufficient funds for gas * price + value")

        tx_hash = Web3.to_hex(Web3.keccak(text=f"{self._address}:{nonce}:{kind}"))
        gas_used = min(_GAS_USED[kind], overrides.gas_limit)
        status = 0 if nonce in self._reverts else 1

        contract_address = None
        if kind == "create" and status == 1:
            contract_address = _created_address(self._address, nonce)
            self._code[contract_address] = _SIMULATED_CODE

        self._nonces[self._address] = nonce + 1
        self._balances[self._address] -= gas_used * overrides.gas_price_wei
        self._block_number += 1
        self._submissions.append(
            Submission(
                kind=kind,
                nonce=nonce,
                tx_hash=tx_hash,
                contract=contract,
                to_address=to_address,
                method=method,
                args=tuple(args),
                overrides=overrides,
            )
        )
        self._receipts[tx_hash] = TxReceipt(
            tx_hash=tx_hash,
            status=status,
            block_number=self._block_number,
            gas_used=gas_used,
            contract_address=contract_address,
        )
        return tx_hash


def _created_address(sender: str, nonce: int) -> str:
    digest = Web3.keccak(text=f"create:{sender}:{nonce}")
    return Web3.to_checksum_address(Web3.to_hex(digest[-20:]))
