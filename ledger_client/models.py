"""Ledger client models for fee parameters, receipts and artifacts."""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class FeeOverride:
    gas_limit: int
    gas_price_wei: int


@dataclass(frozen=True)
class FeeData:
    gas_price_wei: Optional[int]


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    status: int
    block_number: int
    gas_used: int
    contract_address: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: Tuple[dict, ...]
    bytecode: str


@dataclass(frozen=True)
class Submission:
    """A transaction accepted by the simulated ledger, in submission order."""

    kind: str
    nonce: int
    tx_hash: str
    contract: Optional[str]
    to_address: Optional[str]
    method: Optional[str]
    args: Tuple[object, ...]
    overrides: FeeOverride
