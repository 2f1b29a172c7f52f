"""Deployment manifest persistence and on-chain verification."""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple
import json
import logging
import os

from ledger_client.client import LedgerClient

from .models import DeploymentManifest

logger = logging.getLogger(__name__)


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be written or read back."""


class ManifestWriter:
    """Writes the manifest of one completed run, at most once."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._written = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def written(self) -> bool:
        return self._written

    def set_aside_stale(self) -> Optional[Path]:
        """Move a manifest left by an earlier run out of the well-known path."""
        if not self._path.exists():
            return None
        previous = previous_manifest_path(self._path)
        os.replace(str(self._path), str(previous))
        logger.info("Moved manifest from an earlier run to %s", previous)
        return previous

    def write(self, manifest: DeploymentManifest) -> Path:
        if self._written:
            raise ManifestError("Manifest already written for this run.")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")

        data = json.dumps(manifest.to_dict(), indent=2)
        with tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())

        os.replace(str(tmp_path), str(self._path))
        self._written = True
        logger.info("Deployment manifest saved to %s", self._path)
        return self._path


def previous_manifest_path(path: Path) -> Path:
    return path.with_name(f"{path.stem}.previous{path.suffix}")


def missing_manifest_message(path: Path) -> str:
    message = f"No deployment manifest at {path}"
    previous = previous_manifest_path(path)
    if previous.exists():
        message += f" (the last completed deployment may be in {previous})"
    return message


def load_manifest(path: Path) -> DeploymentManifest:
    if not path.exists():
        raise ManifestError(missing_manifest_message(path))
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Expected JSON object at {path}")
        return DeploymentManifest.from_dict(payload)
    except (ValueError, KeyError, TypeError) as exc:
        raise ManifestError(f"Malformed deployment manifest {path}: {exc}") from exc


@dataclass(frozen=True)
class VerificationEntry:
    name: str
    address: str
    deployed: bool
    code_size: int


def verify_manifest(
    manifest: DeploymentManifest, ledger: LedgerClient
) -> Tuple[VerificationEntry, ...]:
    entries = []
    for contract in manifest.contracts:
        code = ledger.get_code(contract.address) or "0x"
        code_size = max(len(code) - 2, 0) // 2
        entries.append(
            VerificationEntry(
                name=contract.name,
                address=contract.address,
                deployed=code_size > 0,
                code_size=code_size,
            )
        )
    return tuple(entries)


@dataclass(frozen=True)
class ContractDetails:
    name: str
    values: Tuple[Tuple[str, object], ...]
    error: Optional[str] = None


def read_contract_details(
    entries: Sequence[VerificationEntry],
    ledger: LedgerClient,
    views: Mapping[str, Sequence[str]],
) -> Tuple[ContractDetails, ...]:
    """Read view methods back from each deployed contract.

    Reads are informational: the first failing read for a contract stops its
    remaining reads and is reported in ``error`` instead of raising.
    """
    details = []
    for entry in entries:
        methods = views.get(entry.name)
        if not entry.deployed or not methods:
            continue
        values = []
        error = None
        for method in methods:
            try:
                values.append((method, ledger.read(entry.name, entry.address, method)))
            except Exception as exc:  # ABI, RPC and revert failures all land here
                error = str(exc) or type(exc).__name__
                logger.warning("Could not read %s.%s: %s", entry.name, method, error)
                break
        details.append(ContractDetails(name=entry.name, values=tuple(values), error=error))
    return tuple(details)
