"""
Courier Assignment Worker - finishes a saga suspended at courier assignment.

Consumes one assignment request from the queue, deducts the ordered stock
and resumes the waiting workflow through its task token.

Usage:
    >>> from fulfillment.courier import CourierAssignmentWorker, InMemoryWorkflowCallback
    >>>
    >>> worker = CourierAssignmentWorker(inventory, InMemoryWorkflowCallback())
    >>> await worker.handle('{"book_id": "B1", "quantity": 3, "resume_token": "T1"}')
    >>>
    >>> # Queue transport envelope
    >>> await worker.handle_event({"Records": [{"body": "..."}]})

Lifecycle per message:
    1. Decode the body and recover the resume token
       (no token → raise to the transport, which redelivers the message)
    2. Skip tokens that were already resumed (redelivered message)
    3. Validate the request and deduct inventory, idempotent per token
    4. Resume with success, or with NoCourierAvailable if step 3 failed
       (token already consumed → give back any stock deducted here, discard)
    5. Remember the token as resumed and, unless it succeeded, burn its deduct key
"""

import time
import uuid
from typing import Any

from fulfillment.core.config import DEFAULT_COURIER
from fulfillment.core.exceptions import MalformedAssignmentRequest, NoCourierAvailable
from fulfillment.core.logger import get_logger
from fulfillment.core.types import AssignmentResult, AssignmentState
from fulfillment.courier.callback import TaskTokenConsumedError, WorkflowCallback
from fulfillment.courier.messages import (
    decode_body,
    extract_resume_token,
    parse_assignment_request,
)
from fulfillment.courier.state_machine import Assignment, AssignmentStateMachine
from fulfillment.ledger.base import LedgerStore
from fulfillment.monitoring.logging import bind_order_context, short_token
from fulfillment.monitoring.metrics import FulfillmentMetrics
from fulfillment.steps.inventory import InventoryLedger

logger = get_logger(__name__)

NO_COURIER_CAUSE = "No couriers are available"


def resumed_marker(resume_token: str) -> str:
    return f"resumed:{resume_token}"


class CourierAssignmentWorker:
    """
    Turns one queued assignment request into exactly one resume signal.

    After suspension nobody is left to catch an exception from this
    worker, so every fault past token recovery is reported through
    ``resume_failure``. Only a message whose token cannot be read, or a
    resume call that itself fails, is raised back to the queue transport.
    A token the orchestrator already consumed is discarded, not raised.
    """

    def __init__(
        self,
        inventory: InventoryLedger,
        callback: WorkflowCallback,
        store: LedgerStore | None = None,
        courier: str = DEFAULT_COURIER,
        metrics: FulfillmentMetrics | None = None,
        worker_id: str | None = None,
    ):
        """
        Args:
            inventory: Inventory ledger to deduct from
            callback: Orchestrator callback used to resume the saga
            store: Store for resumed-token markers (defaults to the inventory's store)
            courier: Courier identity reported on success
            metrics: Optional metrics collector
            worker_id: Unique ID for this worker (auto-generated if not provided)
        """
        self.inventory = inventory
        self.callback = callback
        self.store = store if store is not None else inventory.store
        self.courier = courier
        self.metrics = metrics
        self.worker_id = worker_id or f"courier-worker-{uuid.uuid4().hex[:8]}"

        self._state_machine = AssignmentStateMachine()

        self._assignments_succeeded = 0
        self._assignments_failed = 0
        self._duplicates_skipped = 0
        self._assignments_discarded = 0

    async def handle_event(self, event: dict[str, Any]) -> list[AssignmentState | None]:
        """
        Handle a transport envelope ``{"Records": [{"body": ...}, ...]}``.

        Records are processed in order; the first one that has to go back
        to the transport raises, leaving it (and the rest) for redelivery.
        """
        records = event.get("Records") if isinstance(event, dict) else None
        if not isinstance(records, list):
            msg = "Queue event carries no Records"
            raise MalformedAssignmentRequest(msg, event)

        logger.debug(f"Worker {self.worker_id} received {len(records)} record(s)")

        results = []
        for record in records:
            body = record.get("body") if isinstance(record, dict) else None
            results.append(await self.handle(body))
        return results

    async def handle(self, body: Any) -> AssignmentState | None:
        """
        Handle one assignment request body.

        Returns:
            Final assignment state (DISCARDED when the token was already
            consumed), or None for a token known to be resumed

        Raises:
            MalformedAssignmentRequest: No resume token could be recovered
            Exception: Whatever the resume call raised; the request is safe to retry
        """
        start_time = time.time()

        try:
            payload = decode_body(body)
            token = extract_resume_token(payload)
        except MalformedAssignmentRequest as e:
            logger.error(f"Worker {self.worker_id} cannot recover a resume token: {e}")
            self._record("rejected")
            raise

        with bind_order_context(resume_token=token, step_name="assign_courier"):
            if await self._already_resumed(token):
                logger.info(f"Assignment {short_token(token)} already resumed, skipping")
                self._duplicates_skipped += 1
                self._record("duplicate")
                return None

            assignment = Assignment(resume_token=token)
            applied = False

            try:
                assignment.request = parse_assignment_request(payload, token)
                applied = await self.inventory.deduct(
                    assignment.request.book_id,
                    assignment.request.quantity,
                    idempotency_key=token,
                )
            except Exception as e:
                logger.warning(f"Assignment {short_token(token)} failed: {e}", exc_info=True)
                self._state_machine.mark_failed(assignment, f"{NO_COURIER_CAUSE}: {e}")
                try:
                    await self._resume_failure(assignment)
                except TaskTokenConsumedError:
                    self._discard(assignment, start_time)
                else:
                    self._assignments_failed += 1
                    self._record("failure", time.time() - start_time)
            else:
                self._state_machine.mark_deducted(assignment)
                try:
                    await self._resume_success(assignment)
                except TaskTokenConsumedError:
                    # A concurrent delivery that resumed with success owns this deduction
                    if applied and not await self._already_resumed(token):
                        await self.inventory.restore(
                            assignment.request.book_id, assignment.request.quantity
                        )
                    self._discard(assignment, start_time)
                else:
                    self._assignments_succeeded += 1
                    self._record("success", time.time() - start_time)

            await self._remember_resumed(assignment)
            return assignment.state

    async def _already_resumed(self, token: str) -> bool:
        # Store faults fall through to the deduct, which reports them via resume_failure.
        try:
            return await self.store.has_marker(resumed_marker(token))
        except Exception as e:
            logger.warning(f"Could not check resume marker for {short_token(token)}: {e}")
            return False

    async def _remember_resumed(self, assignment: Assignment) -> None:
        # Best effort: the saga already has its signal.
        token = assignment.resume_token
        if assignment.state != AssignmentState.RESUMED_SUCCESS:
            try:
                await self.inventory.void_deduction(token)
            except Exception as e:
                logger.error(
                    f"Could not void deduction key for {short_token(token)}: {e}", exc_info=True
                )
        try:
            await self.store.mark_once(resumed_marker(token))
        except Exception as e:
            logger.error(
                f"Could not record resume marker for {short_token(token)}: {e}", exc_info=True
            )

    def _discard(self, assignment: Assignment, start_time: float) -> None:
        self._state_machine.mark_discarded(assignment)
        logger.warning(
            f"Assignment {short_token(assignment.resume_token)} discarded: token already consumed"
        )
        self._assignments_discarded += 1
        self._record("discarded", time.time() - start_time)

    async def _resume_success(self, assignment: Assignment) -> None:
        result = AssignmentResult(courier=self.courier)
        await self.callback.resume_success(assignment.resume_token, result.to_record())
        self._state_machine.mark_resumed(assignment)
        logger.info(f"Assignment {short_token(assignment.resume_token)} resumed: courier assigned")

    async def _resume_failure(self, assignment: Assignment) -> None:
        error = NoCourierAvailable(assignment.cause or NO_COURIER_CAUSE)
        failure = error.to_dict()
        await self.callback.resume_failure(
            assignment.resume_token, failure["error"], failure["cause"]
        )
        self._state_machine.mark_resumed(assignment)
        logger.info(
            f"Assignment {short_token(assignment.resume_token)} resumed with {failure['error']}"
        )

    def _record(self, outcome: str, duration: float | None = None) -> None:
        if self.metrics is not None:
            self.metrics.record_assignment(outcome, duration)

    def get_stats(self) -> dict[str, Any]:
        """Counters for this worker instance."""
        return {
            "worker_id": self.worker_id,
            "assignments_succeeded": self._assignments_succeeded,
            "assignments_failed": self._assignments_failed,
            "duplicates_skipped": self._duplicates_skipped,
            "assignments_discarded": self._assignments_discarded,
        }
