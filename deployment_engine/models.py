"""Domain models for the deployment pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ledger_client.models import TxReceipt

from .classifier import Diagnosis


class StepKind(Enum):
    CREATE = "CREATE"
    CALL = "CALL"


class StepStatus(Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class PipelineState(Enum):
    NOT_STARTED = "NOT_STARTED"
    AWAITING_GUARD = "AWAITING_GUARD"
    SUBMITTING = "SUBMITTING"
    AWAITING_CONFIRMATION_GATE = "AWAITING_CONFIRMATION_GATE"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class StepRef:
    """Placeholder for the contract address produced by an earlier step."""

    step: str


class _DeployerRef:
    def __repr__(self) -> str:
        return "DEPLOYER"


DEPLOYER = _DeployerRef()


@dataclass(frozen=True)
class DeploymentStep:
    name: str
    kind: StepKind
    contract: Optional[str] = None
    args: Tuple[object, ...] = ()
    target: Optional[str] = None
    method: Optional[str] = None

    def references(self) -> Tuple[str, ...]:
        refs = [arg.step for arg in self.args if isinstance(arg, StepRef)]
        if self.target is not None:
            refs.append(self.target)
        return tuple(refs)


@dataclass(frozen=True)
class Checkpoint:
    after_step: str
    prompt: str


@dataclass(frozen=True)
class DeploymentPlan:
    steps: Tuple[DeploymentStep, ...]
    checkpoints: Tuple[Checkpoint, ...] = ()

    def checkpoint_after(self, step_name: str) -> Optional[Checkpoint]:
        for checkpoint in self.checkpoints:
            if checkpoint.after_step == step_name:
                return checkpoint
        return None


@dataclass(frozen=True)
class TransactionRecord:
    step: str
    nonce: int
    tx_hash: str
    status: StepStatus
    receipt: Optional[TxReceipt] = None


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    address: str


@dataclass(frozen=True)
class DeploymentManifest:
    network: str
    chain_id: int
    contracts: Tuple[ManifestEntry, ...]
    deployment_time: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "network": self.network,
            "chainId": self.chain_id,
            "contracts": [
                {"name": entry.name, "address": entry.address} for entry in self.contracts
            ],
            "deploymentTime": self.deployment_time,
        }

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "DeploymentManifest":
        return DeploymentManifest(
            network=str(data["network"]),
            chain_id=int(data["chainId"]),
            contracts=tuple(
                ManifestEntry(name=str(entry["name"]), address=str(entry["address"]))
                for entry in data["contracts"]
            ),
            deployment_time=str(data["deploymentTime"]),
        )

    def address_of(self, name: str) -> Optional[str]:
        for entry in self.contracts:
            if entry.name == name:
                return entry.address
        return None


@dataclass
class PipelineRun:
    """Mutable session state for one pipeline invocation. Never persisted."""

    state: PipelineState = PipelineState.NOT_STARTED
    chain_id: Optional[int] = None
    current_index: int = 0
    records: List[TransactionRecord] = field(default_factory=list)
    statuses: Dict[str, StepStatus] = field(default_factory=dict)
    addresses: Dict[str, str] = field(default_factory=dict)
    aborted: bool = False
    failure: Optional[Diagnosis] = None
    manifest_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETED
