"""
Assignment State Machine - lifecycle of one courier assignment request.

State Diagram:

    ┌──────────┐
    │ RECEIVED │
    └────┬─────┘
         │
    ┌────┴───────────────┐
    │ deduct ok          │ parse/deduct failed
    ▼                    ▼
┌────────────────────┐ ┌────────┐
│ INVENTORY_DEDUCTED │ │ FAILED │
└─────────┬──────────┘ └───┬────┘
          │ resume         │ resume
          ▼                ▼
  ┌─────────────────┐ ┌─────────────────┐
  │ RESUMED_SUCCESS │ │ RESUMED_FAILURE │
  └─────────────────┘ └─────────────────┘

    INVENTORY_DEDUCTED or FAILED ── token already consumed ──▶ DISCARDED

Both RESUMED states are terminal, which is what guarantees a single
resume signal per request. DISCARDED is the terminal state for a request
whose token the orchestrator had already consumed; no signal went out.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fulfillment.core.exceptions import InvalidStateTransitionError
from fulfillment.core.types import AssignmentRequest, AssignmentState


@dataclass
class Assignment:
    """
    One assignment request as it moves through the worker.

    Attributes:
        resume_token: Token from the original request
        request: Parsed request (None if parsing failed)
        state: Current lifecycle state
        cause: Failure cause reported to the orchestrator
        received_at: When the worker picked the request up
        resumed_at: When the saga was resumed
    """

    resume_token: str
    request: AssignmentRequest | None = None
    state: AssignmentState = AssignmentState.RECEIVED
    cause: str | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    resumed_at: datetime | None = None


class AssignmentStateMachine:
    """
    Enforces valid assignment transitions.

    Usage:
        >>> sm = AssignmentStateMachine()
        >>> assignment = Assignment(resume_token="T1")
        >>> sm.mark_deducted(assignment)
        >>> sm.mark_resumed(assignment)
        >>> assignment.state
        <AssignmentState.RESUMED_SUCCESS: 'resumed_success'>
    """

    # Valid transitions: from_state -> [to_state, ...]
    VALID_TRANSITIONS = {
        AssignmentState.RECEIVED: [AssignmentState.INVENTORY_DEDUCTED, AssignmentState.FAILED],
        AssignmentState.INVENTORY_DEDUCTED: [
            AssignmentState.RESUMED_SUCCESS,
            AssignmentState.DISCARDED,
        ],
        AssignmentState.FAILED: [AssignmentState.RESUMED_FAILURE, AssignmentState.DISCARDED],
        AssignmentState.RESUMED_SUCCESS: [],  # Terminal state
        AssignmentState.RESUMED_FAILURE: [],  # Terminal state
        AssignmentState.DISCARDED: [],  # Terminal state
    }

    def __init__(
        self,
        on_transition: Callable[[Assignment, AssignmentState, AssignmentState], Any] | None = None,
    ):
        self._on_transition = on_transition

    def can_transition(self, assignment: Assignment, target: AssignmentState) -> bool:
        return target in self.VALID_TRANSITIONS.get(assignment.state, [])

    def _transition(self, assignment: Assignment, target: AssignmentState) -> Assignment:
        old_state = assignment.state
        if not self.can_transition(assignment, target):
            raise InvalidStateTransitionError(assignment.resume_token, old_state, target)

        assignment.state = target

        if self._on_transition:
            self._on_transition(assignment, old_state, target)

        return assignment

    def mark_deducted(self, assignment: Assignment) -> Assignment:
        """RECEIVED → INVENTORY_DEDUCTED"""
        return self._transition(assignment, AssignmentState.INVENTORY_DEDUCTED)

    def mark_failed(self, assignment: Assignment, cause: str) -> Assignment:
        """RECEIVED → FAILED"""
        self._transition(assignment, AssignmentState.FAILED)
        assignment.cause = cause
        return assignment

    def mark_resumed(self, assignment: Assignment) -> Assignment:
        """INVENTORY_DEDUCTED → RESUMED_SUCCESS or FAILED → RESUMED_FAILURE"""
        target = (
            AssignmentState.RESUMED_SUCCESS
            if assignment.state == AssignmentState.INVENTORY_DEDUCTED
            else AssignmentState.RESUMED_FAILURE
        )
        self._transition(assignment, target)
        assignment.resumed_at = datetime.now(UTC)
        return assignment

    def mark_discarded(self, assignment: Assignment) -> Assignment:
        """INVENTORY_DEDUCTED or FAILED → DISCARDED"""
        return self._transition(assignment, AssignmentState.DISCARDED)

    def is_terminal(self, assignment: Assignment) -> bool:
        return not self.VALID_TRANSITIONS.get(assignment.state)
