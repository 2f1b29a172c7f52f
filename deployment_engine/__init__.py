from .classifier import (
    CLASSIFICATION_RULES,
    Diagnosis,
    ErrorCategory,
    classify,
    diagnose,
    remediation,
)
from .fees import CostEstimate, FeePolicy
from .manifest import (
    ContractDetails,
    ManifestError,
    ManifestWriter,
    VerificationEntry,
    load_manifest,
    read_contract_details,
    verify_manifest,
)
from .models import (
    DEPLOYER,
    Checkpoint,
    DeploymentManifest,
    DeploymentPlan,
    DeploymentStep,
    ManifestEntry,
    PipelineRun,
    PipelineState,
    StepKind,
    StepRef,
    StepStatus,
    TransactionRecord,
)
from .nonce import NonceTracker
from .pipeline import DeploymentPipeline, PipelineValidationError, render_summary, validate_plan
from .plan import CONTRACT_VIEWS, build_default_plan

__all__ = [
    "CLASSIFICATION_RULES",
    "CONTRACT_VIEWS",
    "Checkpoint",
    "ContractDetails",
    "CostEstimate",
    "DEPLOYER",
    "DeploymentManifest",
    "DeploymentPipeline",
    "DeploymentPlan",
    "DeploymentStep",
    "Diagnosis",
    "ErrorCategory",
    "FeePolicy",
    "ManifestEntry",
    "ManifestError",
    "ManifestWriter",
    "NonceTracker",
    "PipelineRun",
    "PipelineState",
    "PipelineValidationError",
    "StepKind",
    "StepRef",
    "StepStatus",
    "TransactionRecord",
    "VerificationEntry",
    "build_default_plan",
    "classify",
    "diagnose",
    "load_manifest",
    "read_contract_details",
    "remediation",
    "render_summary",
    "validate_plan",
    "verify_manifest",
]
