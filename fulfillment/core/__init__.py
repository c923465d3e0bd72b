"""
Core types, errors and configuration shared by every fulfillment step.
"""

from fulfillment.core.config import FulfillmentConfig
from fulfillment.core.exceptions import (
    STEP_ERRORS,
    ErrorKind,
    FulfillmentError,
    GatewayUnavailable,
    InsufficientOrderTotal,
    InvalidInput,
    InvalidStateTransitionError,
    MalformedAssignmentRequest,
    MissingDependencyError,
    NoCourierAvailable,
    NotFound,
    OutOfStock,
    PaymentDeclined,
    StepError,
    UserNotFound,
)
from fulfillment.core.types import (
    AssignmentRequest,
    AssignmentResult,
    AssignmentState,
    Book,
    ChargeConfirmation,
    Customer,
    RedemptionResult,
)

__all__ = [
    "STEP_ERRORS",
    "AssignmentRequest",
    "AssignmentResult",
    "AssignmentState",
    "Book",
    "ChargeConfirmation",
    "Customer",
    "ErrorKind",
    "FulfillmentConfig",
    "FulfillmentError",
    "GatewayUnavailable",
    "InsufficientOrderTotal",
    "InvalidInput",
    "InvalidStateTransitionError",
    "MalformedAssignmentRequest",
    "MissingDependencyError",
    "NoCourierAvailable",
    "NotFound",
    "OutOfStock",
    "PaymentDeclined",
    "RedemptionResult",
    "StepError",
    "UserNotFound",
]
