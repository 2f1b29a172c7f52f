"""Advance a stuck account's nonce with zero-value self-transfers."""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

from deployment_controller.gate import ConfirmationGate
from deployment_engine.classifier import Diagnosis, diagnose
from deployment_engine.models import StepStatus, TransactionRecord
from deployment_engine.nonce import NonceTracker
from ledger_client.client import LedgerClient, TransactionRevertedError
from ledger_client.models import FeeOverride

logger = logging.getLogger(__name__)


class InvalidTargetNonceError(ValueError):
    """Raised when the requested target does not lie ahead of the current nonce."""


@dataclass(frozen=True)
class RepairReport:
    address: str
    start_nonce: int
    target_nonce: int
    requested: int
    confirmed: int
    records: Tuple[TransactionRecord, ...]
    final_nonce: Optional[int] = None
    failure: Optional[Diagnosis] = None
    declined: bool = False

    @property
    def complete(self) -> bool:
        return self.failure is None and not self.declined and self.confirmed == self.requested


class NonceRepairTool:
    """Consumes nonce slots one at a time until the account reaches a target.

    Each filler transaction waits for its receipt before the next is sent. The
    first failure stops the run; nothing is skipped or retried, so re-running
    with the same target resumes from whatever nonce the network now reports.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        fee_override: FeeOverride,
        gate: Optional[ConfirmationGate] = None,
        receipt_timeout: Optional[float] = None,
    ) -> None:
        self._ledger = ledger
        self._fee_override = fee_override
        self._gate = gate
        self._receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return self._ledger.address

    def current_nonce(self) -> int:
        return self._ledger.get_nonce(self.address, "pending")

    def run(self, target_nonce: int) -> RepairReport:
        tracker = NonceTracker.from_ledger(self._ledger, self.address)
        start = tracker.next_nonce
        if target_nonce <= start:
            raise InvalidTargetNonceError(
                f"Invalid target nonce {target_nonce}: must be greater than {start}"
            )

        requested = target_nonce - start
        logger.info(
            "Will send %s empty transactions to reach nonce %s", requested, target_nonce
        )
        if self._gate is not None and not self._gate.ask("Continue?"):
            logger.info("Operation cancelled.")
            return RepairReport(
                address=self.address,
                start_nonce=start,
                target_nonce=target_nonce,
                requested=requested,
                confirmed=0,
                records=(),
                declined=True,
            )

        records: List[TransactionRecord] = []
        failure: Optional[Diagnosis] = None
        while tracker.next_nonce < target_nonce:
            nonce = tracker.reserve()
            try:
                self._send_filler(nonce, records)
            except Exception as exc:  # stop at the first failing nonce
                failure = diagnose(exc)
                logger.error("Failed to send transaction with nonce %s: %s", nonce, failure.message)
                logger.info("Stopping the process.")
                break

        confirmed = sum(1 for record in records if record.status == StepStatus.CONFIRMED)
        final_nonce = self._final_nonce()
        logger.info("New nonce: %s", final_nonce)
        return RepairReport(
            address=self.address,
            start_nonce=start,
            target_nonce=target_nonce,
            requested=requested,
            confirmed=confirmed,
            records=tuple(records),
            final_nonce=final_nonce,
            failure=failure,
        )

    def _send_filler(self, nonce: int, records: List[TransactionRecord]) -> None:
        logger.info("Sending empty transaction with nonce %s", nonce)
        tx_hash = self._ledger.transfer(self.address, 0, self._fee_override, nonce)
        logger.info("Transaction sent: %s", tx_hash)
        try:
            receipt = self._ledger.wait_for_receipt(tx_hash, timeout=self._receipt_timeout)
        except Exception:
            records.append(
                TransactionRecord(
                    step=f"filler-{nonce}", nonce=nonce, tx_hash=tx_hash, status=StepStatus.FAILED
                )
            )
            raise
        status = StepStatus.CONFIRMED if receipt.succeeded else StepStatus.FAILED
        records.append(
            TransactionRecord(
                step=f"filler-{nonce}",
                nonce=nonce,
                tx_hash=tx_hash,
                status=status,
                receipt=receipt,
            )
        )
        if status == StepStatus.FAILED:
            raise TransactionRevertedError(f"Filler transaction {tx_hash} reverted")
        logger.info("Transaction confirmed in block %s", receipt.block_number)

    def _final_nonce(self) -> Optional[int]:
        try:
            return self.current_nonce()
        except Exception as exc:  # report stands without the final query
            logger.warning("Could not read the final nonce: %s", exc)
            return None
