"""Ledger client capability and its web3.py implementation."""

from typing import Any, Dict, Optional, Protocol, Sequence
import logging

from eth_account import Account
from web3 import Web3
from web3.exceptions import TimeExhausted

from .artifacts import ArtifactStore
from .models import FeeData, FeeOverride, TxReceipt

logger = logging.getLogger(__name__)


class LedgerError(RuntimeError):
    """Raised when the ledger rejects or cannot serve a request."""


class ReceiptTimeoutError(LedgerError):
    """Raised when a receipt is not observed within the configured timeout."""


class TransactionRevertedError(LedgerError):
    """Raised when a mined transaction reports a failed status."""


class LedgerClient(Protocol):
    @property
    def address(self) -> str:
        ...

    def chain_id(self) -> int:
        ...

    def get_balance(self, address: str) -> int:
        ...

    def get_nonce(self, address: str, block: str = "pending") -> int:
        ...

    def get_fee_data(self) -> FeeData:
        ...

    def deploy(
        self, contract: str, args: Sequence[object], overrides: FeeOverride, nonce: int
    ) -> str:
        ...

    def call(
        self,
        contract: str,
        address: str,
        method: str,
        args: Sequence[object],
        overrides: FeeOverride,
        nonce: int,
    ) -> str:
        ...

    def transfer(self, to: str, value_wei: int, overrides: FeeOverride, nonce: int) -> str:
        ...

    def get_code(self, address: str) -> str:
        ...

    def read(
        self, contract: str, address: str, method: str, args: Sequence[object] = ()
    ) -> object:
        ...

    def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        ...


_WAIT_SLICE_SECONDS = 120.0


class Web3LedgerClient:
    """Signs locally with one account and submits raw transactions over JSON-RPC."""

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str],
        artifacts: ArtifactStore,
        chain_id: Optional[int] = None,
        poll_latency: float = 1.0,
    ) -> None:
        self._account = None
        if private_key is not None:
            try:
                self._account = Account.from_key(private_key)
            except Exception as exc:  # eth-keys raises its own ValidationError
                raise LedgerError(f"Missing or invalid private key: {exc}") from exc
        self._rpc_url = rpc_url
        self._w3 = Web3(Web3.HTTPProvider(rpc_url))
        self._artifacts = artifacts
        self._chain_id = chain_id
        self._poll_latency = poll_latency
        self._connected = False

    @property
    def address(self) -> str:
        return self._signer.address

    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self._eth.chain_id)
        return self._chain_id

    def get_balance(self, address: str) -> int:
        return int(self._eth.get_balance(Web3.to_checksum_address(address)))

    def get_nonce(self, address: str, block: str = "pending") -> int:
        return int(self._eth.get_transaction_count(Web3.to_checksum_address(address), block))

    def get_fee_data(self) -> FeeData:
        return FeeData(gas_price_wei=int(self._eth.gas_price))

    def deploy(
        self, contract: str, args: Sequence[object], overrides: FeeOverride, nonce: int
    ) -> str:
        artifact = self._artifacts.load(contract)
        factory = self._eth.contract(abi=list(artifact.abi), bytecode=artifact.bytecode)
        tx = factory.constructor(*args).build_transaction(self._tx_fields(overrides, nonce))
        return self._send(tx)

    def call(
        self,
        contract: str,
        address: str,
        method: str,
        args: Sequence[object],
        overrides: FeeOverride,
        nonce: int,
    ) -> str:
        artifact = self._artifacts.load(contract)
        instance = self._eth.contract(
            address=Web3.to_checksum_address(address), abi=list(artifact.abi)
        )
        function = getattr(instance.functions, method)
        tx = function(*args).build_transaction(self._tx_fields(overrides, nonce))
        return self._send(tx)

    def transfer(self, to: str, value_wei: int, overrides: FeeOverride, nonce: int) -> str:
        tx = self._tx_fields(overrides, nonce)
        tx["to"] = Web3.to_checksum_address(to)
        tx["value"] = value_wei
        return self._send(tx)

    def get_code(self, address: str) -> str:
        return Web3.to_hex(self._eth.get_code(Web3.to_checksum_address(address)))

    def read(
        self, contract: str, address: str, method: str, args: Sequence[object] = ()
    ) -> object:
        artifact = self._artifacts.load(contract)
        instance = self._eth.contract(
            address=Web3.to_checksum_address(address), abi=list(artifact.abi)
        )
        return getattr(instance.functions, method)(*args).call()

    def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        if timeout is not None:
            try:
                raw = self._eth.wait_for_transaction_receipt(
                    tx_hash, timeout=timeout, poll_latency=self._poll_latency
                )
            except TimeExhausted as exc:
                raise ReceiptTimeoutError(
                    f"No receipt for {tx_hash} after {timeout:g}s"
                ) from exc
            return _to_receipt(raw)

        while True:
            try:
                raw = self._eth.wait_for_transaction_receipt(
                    tx_hash, timeout=_WAIT_SLICE_SECONDS, poll_latency=self._poll_latency
                )
            except TimeExhausted:
                logger.info("Still waiting for receipt of %s", tx_hash)
                continue
            return _to_receipt(raw)

    @property
    def _signer(self):
        if self._account is None:
            raise LedgerError("Missing or invalid private key: client is read-only.")
        return self._account

    @property
    def _eth(self):
        if not self._connected:
            if not self._w3.is_connected():
                raise LedgerError(f"Cannot reach network at {self._rpc_url}")
            self._connected = True
        return self._w3.eth

    def _tx_fields(self, overrides: FeeOverride, nonce: int) -> Dict[str, Any]:
        return {
            "from": self._signer.address,
            "nonce": nonce,
            "chainId": self.chain_id(),
            "gas": overrides.gas_limit,
            "gasPrice": overrides.gas_price_wei,
        }

    def _send(self, tx: Dict[str, Any]) -> str:
        signed = self._signer.sign_transaction(tx)
        tx_hash = Web3.to_hex(self._eth.send_raw_transaction(signed.raw_transaction))
        logger.debug("Sent %s with nonce %s", tx_hash, tx["nonce"])
        return tx_hash


def _to_receipt(raw) -> TxReceipt:
    contract_address = raw.get("contractAddress")
    return TxReceipt(
        tx_hash=Web3.to_hex(raw["transactionHash"]),
        status=int(raw["status"]),
        block_number=int(raw["blockNumber"]),
        gas_used=int(raw["gasUsed"]),
        contract_address=str(contract_address) if contract_address else None,
    )
