"""Sequential, gated execution of a deployment plan against one account."""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence
import logging

from deployment_controller.gate import ConfirmationGate
from deployment_controller.guard import BalanceGuard, OperatorDeclinedError, format_ether
from ledger_client.client import LedgerClient, LedgerError, TransactionRevertedError

from .classifier import diagnose
from .fees import FeePolicy
from .manifest import ManifestWriter
from .models import (
    DEPLOYER,
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

logger = logging.getLogger(__name__)


class PipelineValidationError(ValueError):
    """Raised when a deployment plan violates ordering or reference rules."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DeploymentPipeline:
    """Runs plan steps strictly in order, one transaction in flight at a time.

    Every step reserves a fresh nonce, submits with the fixed fee override and
    blocks until its receipt is observed before the next step may start. The
    first failure ends the run in ``FAILED``; a declined checkpoint ends it in
    ``ABORTED``. Only a ``COMPLETED`` run writes a manifest.
    """

    def __init__(
        self,
        plan: DeploymentPlan,
        ledger: LedgerClient,
        gate: ConfirmationGate,
        manifest_writer: ManifestWriter,
        network_name: str,
        fee_policy: Optional[FeePolicy] = None,
        guard: Optional[BalanceGuard] = None,
        receipt_timeout: Optional[float] = None,
        time_provider: Optional[Callable[[], str]] = None,
    ) -> None:
        validate_plan(plan)
        self._plan = plan
        self._ledger = ledger
        self._gate = gate
        self._manifest_writer = manifest_writer
        self._network_name = network_name
        self._fee_policy = fee_policy or FeePolicy()
        self._guard = guard or BalanceGuard(ledger, gate)
        self._receipt_timeout = receipt_timeout
        self._time_provider = time_provider or _utc_now
        self._steps_by_name: Dict[str, DeploymentStep] = {
            step.name: step for step in plan.steps
        }

    @property
    def plan(self) -> DeploymentPlan:
        return self._plan

    def run(self) -> PipelineRun:
        run = PipelineRun(statuses={step.name: StepStatus.PENDING for step in self._plan.steps})
        address = self._ledger.address

        run.state = PipelineState.AWAITING_GUARD
        try:
            run.chain_id = self._ledger.chain_id()
            logger.info("Connected to %s (chainId: %s)", self._network_name, run.chain_id)
            logger.info("Deployer account: %s", address)
            tracker = NonceTracker.from_ledger(self._ledger, address)
            logger.info("Current account nonce: %s", tracker.next_nonce)
            estimate = self._fee_policy.estimate_cost(self._ledger, len(self._plan.steps))
            logger.info(
                "Estimated max fee per operation: ~%s (network gas price %s wei)",
                format_ether(estimate.per_operation_wei),
                estimate.network_gas_price_wei,
            )
            self._guard.check(address, estimate.per_operation_wei)
        except OperatorDeclinedError:
            return self._abort(run)
        except Exception as exc:  # every pre-flight failure is fatal
            return self._fail(run, exc)

        override = self._fee_policy.override()
        logger.info(
            "Using fee override: gas price %s wei, gas limit %s",
            override.gas_price_wei,
            override.gas_limit,
        )
        self._manifest_writer.set_aside_stale()

        for index, step in enumerate(self._plan.steps):
            run.current_index = index
            run.state = PipelineState.SUBMITTING
            try:
                self._execute(step, run, tracker, address)
            except Exception as exc:  # ledger failures arrive as arbitrary web3/transport types
                run.statuses[step.name] = StepStatus.FAILED
                return self._fail(run, exc)

            checkpoint = self._plan.checkpoint_after(step.name)
            if checkpoint is None:
                continue
            run.state = PipelineState.AWAITING_CONFIRMATION_GATE
            try:
                balance = self._ledger.get_balance(address)
            except Exception as exc:
                return self._fail(run, exc)
            logger.info("Remaining balance: %s", format_ether(balance))
            if not self._gate.ask(checkpoint.prompt):
                return self._abort(run)

        run.state = PipelineState.COMPLETED
        try:
            path = self._manifest_writer.write(self._build_manifest(run))
        except OSError as exc:
            return self._fail(run, exc)
        run.manifest_path = str(path)
        return run

    def _execute(
        self,
        step: DeploymentStep,
        run: PipelineRun,
        tracker: NonceTracker,
        address: str,
    ) -> None:
        nonce = tracker.reserve()
        overrides = self._fee_policy.override()
        args = _resolve_args(step.args, run.addresses, address)

        if step.kind == StepKind.CREATE:
            logger.info("Deploying %s with nonce %s", step.contract, nonce)
            tx_hash = self._ledger.deploy(step.contract, args, overrides, nonce)
        else:
            target = self._steps_by_name[step.target]
            logger.info("Calling %s.%s with nonce %s", target.contract, step.method, nonce)
            tx_hash = self._ledger.call(
                target.contract,
                run.addresses[target.name],
                step.method,
                args,
                overrides,
                nonce,
            )
        run.statuses[step.name] = StepStatus.SUBMITTED
        logger.info("Submitted %s: %s", step.name, tx_hash)

        try:
            receipt = self._ledger.wait_for_receipt(tx_hash, timeout=self._receipt_timeout)
        except Exception:
            run.records.append(
                TransactionRecord(step=step.name, nonce=nonce, tx_hash=tx_hash, status=StepStatus.FAILED)
            )
            raise

        failure: Optional[LedgerError] = None
        if not receipt.succeeded:
            failure = TransactionRevertedError(f"{step.name} transaction {tx_hash} reverted")
        elif step.kind == StepKind.CREATE and not receipt.contract_address:
            failure = LedgerError(f"{step.name} receipt {tx_hash} has no contract address")
        if failure is not None:
            run.records.append(
                TransactionRecord(
                    step=step.name,
                    nonce=nonce,
                    tx_hash=tx_hash,
                    status=StepStatus.FAILED,
                    receipt=receipt,
                )
            )
            raise failure

        if step.kind == StepKind.CREATE:
            run.addresses[step.name] = receipt.contract_address
            logger.info("%s deployed to: %s", step.contract, receipt.contract_address)
        else:
            logger.info("%s confirmed in block %s", step.name, receipt.block_number)

        run.records.append(
            TransactionRecord(
                step=step.name,
                nonce=nonce,
                tx_hash=tx_hash,
                status=StepStatus.CONFIRMED,
                receipt=receipt,
            )
        )
        run.statuses[step.name] = StepStatus.CONFIRMED

    def _abort(self, run: PipelineRun) -> PipelineRun:
        run.state = PipelineState.ABORTED
        run.aborted = True
        logger.info("Deployment cancelled by operator.")
        return run

    def _fail(self, run: PipelineRun, exc: BaseException) -> PipelineRun:
        run.state = PipelineState.FAILED
        run.failure = diagnose(exc)
        logger.error("Deployment failed [%s]: %s", run.failure.category.value, run.failure.message)
        return run

    def _build_manifest(self, run: PipelineRun) -> DeploymentManifest:
        return DeploymentManifest(
            network=self._network_name,
            chain_id=int(run.chain_id),
            contracts=tuple(
                ManifestEntry(name=step.name, address=run.addresses[step.name])
                for step in self._plan.steps
                if step.kind == StepKind.CREATE
            ),
            deployment_time=self._time_provider(),
        )


def render_summary(run: PipelineRun, network_name: str) -> List[str]:
    title = "Deployment Summary" if run.succeeded else "Partial Deployment Summary"
    lines = [
        f"===== {title} =====",
        f"Network: {network_name} (ChainID: {run.chain_id})",
    ]
    for name, address in run.addresses.items():
        lines.append(f"{name}: {address}")
    confirmed = sum(1 for record in run.records if record.status == StepStatus.CONFIRMED)
    lines.append(f"Transactions confirmed: {confirmed}/{len(run.statuses)}")
    lines.append("=" * (len(title) + 12))
    return lines


def validate_plan(plan: DeploymentPlan) -> None:
    if not plan.steps:
        raise PipelineValidationError("Plan must include at least one step.")

    created: Dict[str, DeploymentStep] = {}
    seen = set()
    for step in plan.steps:
        if not step.name:
            raise PipelineValidationError("Step name must be non-empty.")
        if step.name in seen:
            raise PipelineValidationError(f"Duplicate step name: {step.name}")
        if step.kind == StepKind.CREATE and not step.contract:
            raise PipelineValidationError(f"{step.name}: CREATE steps need a contract.")

        if step.kind == StepKind.CREATE:
            if step.target is not None or step.method is not None:
                raise PipelineValidationError(f"{step.name}: CREATE steps take no target or method.")
        elif step.kind == StepKind.CALL:
            if not step.target or not step.method:
                raise PipelineValidationError(f"{step.name}: CALL steps need a target and method.")
        else:
            raise PipelineValidationError(f"{step.name}: unsupported step kind.")

        for ref in step.references():
            if ref not in created:
                raise PipelineValidationError(
                    f"{step.name}: reference to {ref} must name an earlier CREATE step."
                )

        seen.add(step.name)
        if step.kind == StepKind.CREATE:
            created[step.name] = step

    gated = set()
    for checkpoint in plan.checkpoints:
        if checkpoint.after_step not in seen:
            raise PipelineValidationError(f"Checkpoint names unknown step {checkpoint.after_step}.")
        if checkpoint.after_step in gated:
            raise PipelineValidationError(f"Duplicate checkpoint after {checkpoint.after_step}.")
        if checkpoint.after_step == plan.steps[-1].name:
            raise PipelineValidationError("Checkpoint after the final step has nothing to gate.")
        gated.add(checkpoint.after_step)


def _resolve_args(
    args: Sequence[object], addresses: Dict[str, str], deployer: str
) -> List[object]:
    resolved: List[object] = []
    for arg in args:
        if isinstance(arg, StepRef):
            resolved.append(addresses[arg.step])
        elif arg is DEPLOYER:
            resolved.append(deployer)
        elif isinstance(arg, (list, tuple)):
            resolved.append(_resolve_args(arg, addresses, deployer))
        else:
            resolved.append(arg)
    return resolved
