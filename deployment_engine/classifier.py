"""Map raw ledger failures to a fixed taxonomy with remediation guidance."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from ledger_client.client import ReceiptTimeoutError


class ErrorCategory(Enum):
    NONCE_CONFLICT = "NonceConflict"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    INVALID_CREDENTIAL = "InvalidCredential"
    NETWORK_UNAVAILABLE = "NetworkUnavailable"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"


# Checked in order; the first substring found in the lowercased text wins.
CLASSIFICATION_RULES: Tuple[Tuple[str, ErrorCategory], ...] = (
    ("nonce", ErrorCategory.NONCE_CONFLICT),
    ("insufficient funds", ErrorCategory.INSUFFICIENT_FUNDS),
    ("private key", ErrorCategory.INVALID_CREDENTIAL),
    ("network", ErrorCategory.NETWORK_UNAVAILABLE),
)

DEFAULT_FAUCET_URL = "https://primordial.bdagscan.com/faucet"

_REMEDIATION: Dict[ErrorCategory, str] = {
    ErrorCategory.NONCE_CONFLICT: (
        "The account nonce is out of sync with the network.\n"
        "This can happen with pending or recently sent transactions.\n"
        "Possible solutions:\n"
        "1. Wait for any pending transactions to be mined\n"
        "2. Run the nonce repair tool (reset-nonce) to advance the account nonce\n"
        "3. Re-run the deployment from scratch, or use a different account"
    ),
    ErrorCategory.INSUFFICIENT_FUNDS: (
        "The account does not have enough funds to pay for gas.\n"
        f"Get more tokens from the faucet at: {DEFAULT_FAUCET_URL}\n"
        "Funds may take a few minutes to become usable after the faucet sends them."
    ),
    ErrorCategory.INVALID_CREDENTIAL: (
        "The deployer private key is missing or invalid.\n"
        "Set it in your environment or .env file:\n"
        "DEPLOYER_PRIVATE_KEY=0x...\n"
        "To export it from MetaMask: Account Details > Show Private Key."
    ),
    ErrorCategory.NETWORK_UNAVAILABLE: (
        "Cannot connect to the ledger network.\n"
        "Check your internet connection and the BLOCKDAG_RPC_URL setting."
    ),
    ErrorCategory.TIMEOUT: (
        "No receipt arrived within RECEIPT_TIMEOUT_SECONDS.\n"
        "The transaction may still be pending: check it on the explorer,\n"
        "then repair the nonce if needed and re-run from scratch."
    ),
    ErrorCategory.UNKNOWN: (
        "The operation failed with an unrecognized error.\n"
        "Review the message above; nothing was retried automatically."
    ),
}


@dataclass(frozen=True)
class Diagnosis:
    category: ErrorCategory
    message: str
    remediation: str


def classify(raw: object) -> ErrorCategory:
    if isinstance(raw, ReceiptTimeoutError):
        return ErrorCategory.TIMEOUT
    text = _error_text(raw).lower()
    for pattern, category in CLASSIFICATION_RULES:
        if pattern in text:
            return category
    return ErrorCategory.UNKNOWN


def remediation(category: ErrorCategory) -> str:
    return _REMEDIATION[category]


def diagnose(raw: object) -> Diagnosis:
    category = classify(raw)
    return Diagnosis(
        category=category,
        message=_error_text(raw) or category.value,
        remediation=remediation(category),
    )


def _error_text(raw: object) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    try:
        return str(raw)
    except Exception:  # __str__ of arbitrary objects may raise
        return ""
