from .artifacts import ArtifactNotFoundError, ArtifactStore
from .client import (
    LedgerClient,
    LedgerError,
    ReceiptTimeoutError,
    TransactionRevertedError,
    Web3LedgerClient,
)
from .models import ContractArtifact, FeeData, FeeOverride, Submission, TxReceipt
from .simulator import SimulatedLedger

__all__ = [
    "ArtifactNotFoundError",
    "ArtifactStore",
    "ContractArtifact",
    "FeeData",
    "FeeOverride",
    "LedgerClient",
    "LedgerError",
    "ReceiptTimeoutError",
    "SimulatedLedger",
    "Submission",
    "TransactionRevertedError",
    "TxReceipt",
    "Web3LedgerClient",
]
