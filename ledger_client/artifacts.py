"""Load compiled contract artifacts (ABI + creation bytecode) from disk."""

from pathlib import Path
from typing import Dict, Optional
import json
import re

from .models import ContractArtifact


class ArtifactNotFoundError(LookupError):
    """Raised when no usable artifact exists for a contract name."""


_UNLINKED_LIBRARY = re.compile(r"__\$\w{34}\$__")


class ArtifactStore:
    """Resolves Hardhat-style artifacts (``<Name>.json`` with abi/bytecode)."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._cache: Dict[str, ContractArtifact] = {}

    @property
    def root(self) -> Path:
        return self._root

    def load(self, name: str) -> ContractArtifact:
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        path = self._find(name)
        if path is None:
            raise ArtifactNotFoundError(f"No artifact for {name} under {self._root}")

        data = json.loads(path.read_text(encoding="utf-8"))
        # Either a single-contract artifact or a map of {Name: {abi, bytecode}}.
        if "abi" not in data:
            data = data.get(name) or {}
        abi = data.get("abi")
        bytecode = _normalize_hex(data.get("bytecode") or "")

        if abi is None:
            raise ArtifactNotFoundError(f"Artifact {path} has no ABI for {name}")
        if bytecode == "0x":
            raise ArtifactNotFoundError(f"Artifact {path} has no bytecode for {name}")
        placeholders = sorted(set(_UNLINKED_LIBRARY.findall(bytecode)))
        if placeholders:
            raise ArtifactNotFoundError(
                f"{name} has unlinked libraries: {', '.join(placeholders)}"
            )

        artifact = ContractArtifact(name=name, abi=tuple(abi), bytecode=bytecode)
        self._cache[name] = artifact
        return artifact

    def _find(self, name: str) -> Optional[Path]:
        direct = self._root / f"{name}.json"
        if direct.is_file():
            return direct
        if not self._root.is_dir():
            return None
        for candidate in sorted(self._root.rglob(f"{name}.json")):
            if candidate.is_file():
                return candidate
        return None


def _normalize_hex(value) -> str:
    if isinstance(value, dict):
        value = value.get("object", "")
    if not value.startswith("0x"):
        value = "0x" + value
    return value
