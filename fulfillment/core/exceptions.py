"""
All fulfillment step errors.

Every failure a step can surface to the orchestrator is one case of the
closed ``ErrorKind`` set. The orchestrator branches on ``error.kind``
(or on the ``"error"`` field of ``to_dict()``), never on message text.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of step failure kinds understood by the orchestrator."""

    NOT_FOUND = "NotFound"
    OUT_OF_STOCK = "OutOfStock"
    INSUFFICIENT_ORDER_TOTAL = "InsufficientOrderTotal"
    USER_NOT_FOUND = "UserNotFound"
    INVALID_INPUT = "InvalidInput"
    PAYMENT_DECLINED = "PaymentDeclined"
    GATEWAY_UNAVAILABLE = "GatewayUnavailable"
    NO_COURIER_AVAILABLE = "NoCourierAvailable"


class FulfillmentError(Exception):
    """Base error for all fulfillment steps"""


class StepError(FulfillmentError):
    """
    Typed failure of a saga step.

    Subclasses pin ``kind`` and ``retryable``; callers match on the class
    or on ``kind`` rather than on the message.
    """

    kind: ErrorKind
    retryable: bool = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, str]:
        """Error record in the shape the orchestrator branches on."""
        return {"error": self.kind.value, "cause": self.message}


class NotFound(StepError):
    """Book record is missing or could not be looked up"""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, book_id: str, message: str | None = None):
        self.book_id = book_id
        super().__init__(message or f"Book {book_id} not found", book_id=book_id)


class OutOfStock(StepError):
    """Ordering the requested quantity would exhaust or oversell the book"""

    kind = ErrorKind.OUT_OF_STOCK

    def __init__(self, book_id: str, available: int, requested: int):
        self.book_id = book_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"The book is out of stock: {book_id} (available={available}, requested={requested})",
            book_id=book_id,
            available=available,
            requested=requested,
        )


class InsufficientOrderTotal(StepError):
    """Order total does not exceed the customer's available points"""

    kind = ErrorKind.INSUFFICIENT_ORDER_TOTAL

    def __init__(self, user_id: str, order_total: Any, points: int):
        self.user_id = user_id
        self.order_total = order_total
        self.points = points
        super().__init__(
            f"Order total {order_total} does not exceed available points {points} "
            f"for user {user_id}",
            user_id=user_id,
        )


class UserNotFound(StepError):
    """Customer record is missing"""

    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found", user_id=user_id)


class InvalidInput(StepError):
    """Caller violated the step's input contract"""

    kind = ErrorKind.INVALID_INPUT


class PaymentDeclined(StepError):
    """Payment provider refused the charge"""

    kind = ErrorKind.PAYMENT_DECLINED


class GatewayUnavailable(StepError):
    """Payment provider could not be reached"""

    kind = ErrorKind.GATEWAY_UNAVAILABLE
    retryable = True


class NoCourierAvailable(StepError):
    """
    Synthetic failure reported by the courier worker.

    Whatever went wrong during assignment is folded into the cause text;
    the kind stays fixed.
    """

    kind = ErrorKind.NO_COURIER_AVAILABLE


STEP_ERRORS: dict[ErrorKind, type[StepError]] = {
    cls.kind: cls
    for cls in (
        NotFound,
        OutOfStock,
        InsufficientOrderTotal,
        UserNotFound,
        InvalidInput,
        PaymentDeclined,
        GatewayUnavailable,
        NoCourierAvailable,
    )
}


class MalformedAssignmentRequest(FulfillmentError):
    """
    Queue message could not be parsed far enough to recover its resume token.

    Without a token there is nothing to resume, so this error is raised to
    the queue transport, which keeps the message for redelivery.
    """

    def __init__(self, message: str, body: Any = None):
        self.body = body
        super().__init__(message)


class InvalidStateTransitionError(FulfillmentError):
    """Raised when an assignment moves between states out of order."""

    def __init__(self, resume_token: str, from_state: Any, to_state: Any):
        self.resume_token = resume_token
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition for assignment {resume_token[:12]}: "
            f"{from_state.value} → {to_state.value}"
        )


class MissingDependencyError(FulfillmentError):
    """
    Raised when an optional dependency is not installed.

    Carries the install command so the fix is obvious from the traceback.
    """

    INSTALL_COMMANDS = {
        "redis": "pip install redis",
        "aioboto3": "pip install aioboto3",
        "prometheus_client": "pip install prometheus-client",
    }

    def __init__(self, package: str, feature: str | None = None):
        self.package = package
        self.feature = feature

        install_cmd = self.INSTALL_COMMANDS.get(package, f"pip install {package}")

        if feature:
            message = f"Missing dependency '{package}' (required for: {feature}). Install with: {install_cmd}"
        else:
            message = f"Missing dependency '{package}'. Install with: {install_cmd}"

        super().__init__(message)
