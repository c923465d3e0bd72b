"""
Courier assignment: the asynchronous step that resumes a suspended saga.
"""

from fulfillment.courier.callback import (
    InMemoryWorkflowCallback,
    ResumeError,
    StepFunctionsCallback,
    TaskTokenConsumedError,
    WorkflowCallback,
)
from fulfillment.courier.messages import (
    decode_body,
    extract_resume_token,
    parse_assignment_request,
)
from fulfillment.courier.state_machine import Assignment, AssignmentStateMachine
from fulfillment.courier.worker import NO_COURIER_CAUSE, CourierAssignmentWorker

__all__ = [
    "NO_COURIER_CAUSE",
    "Assignment",
    "AssignmentStateMachine",
    "CourierAssignmentWorker",
    "InMemoryWorkflowCallback",
    "ResumeError",
    "StepFunctionsCallback",
    "TaskTokenConsumedError",
    "WorkflowCallback",
    "decode_body",
    "extract_resume_token",
    "parse_assignment_request",
]
