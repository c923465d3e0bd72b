"""
Records passed between the orchestrator and the fulfillment steps.

Steps consume and produce these plain records; the ``from_record`` /
``to_record`` pairs translate to and from the camelCase shapes the
orchestrator carries in its execution state.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from fulfillment.core.exceptions import InvalidInput

ASSIGNMENT_SCHEMA_VERSION = 1
SUPPORTED_ASSIGNMENT_SCHEMAS = frozenset({ASSIGNMENT_SCHEMA_VERSION})


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a numeric record value to Decimal, rejecting junk with InvalidInput."""
    if isinstance(value, bool):
        msg = f"{field_name} must be numeric, got {value!r}"
        raise InvalidInput(msg, field=field_name)
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        msg = f"{field_name} must be numeric, got {value!r}"
        raise InvalidInput(msg, field=field_name) from e


def to_quantity(value: Any, field_name: str = "quantity") -> int:
    """Validate an item count: a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{field_name} must be an integer, got {value!r}"
        raise InvalidInput(msg, field=field_name)
    if value < 0:
        msg = f"{field_name} must be >= 0, got {value}"
        raise InvalidInput(msg, field=field_name)
    return value


def to_number(value: Decimal) -> int | float:
    """Render a Decimal as a JSON-friendly number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class Book:
    """Snapshot of a book record in the inventory ledger."""

    book_id: str
    quantity: int
    price: Decimal

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Book":
        return cls(
            book_id=str(record["bookId"]),
            quantity=to_quantity(record["quantity"]),
            price=to_decimal(record.get("price", 0), "price"),
        )

    def to_record(self) -> dict[str, Any]:
        return {"bookId": self.book_id, "quantity": self.quantity, "price": to_number(self.price)}


@dataclass(frozen=True)
class Customer:
    """Snapshot of a customer's loyalty balance."""

    user_id: str
    points: int

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Customer":
        return cls(
            user_id=str(record["userId"]),
            points=to_quantity(record.get("points", 0), "points"),
        )


@dataclass(frozen=True)
class RedemptionResult:
    """Outcome of a successful loyalty redemption."""

    remaining_total: Decimal
    points_redeemed: int

    def to_record(self) -> dict[str, Any]:
        return {"total": to_number(self.remaining_total), "points": self.points_redeemed}


@dataclass(frozen=True)
class ChargeConfirmation:
    """Receipt returned by the billing gateway."""

    confirmation_id: str
    amount: Decimal

    def to_record(self) -> dict[str, Any]:
        return {"confirmationId": self.confirmation_id, "amount": to_number(self.amount)}


@dataclass(frozen=True)
class AssignmentRequest:
    """
    Courier assignment message, validated at the worker boundary.

    Attributes:
        book_id: Book whose stock is deducted for the confirmed order
        quantity: Number of copies to deduct
        resume_token: Opaque orchestrator token, echoed back unmodified
        schema_version: Message schema version
    """

    book_id: str
    quantity: int
    resume_token: str
    schema_version: int = ASSIGNMENT_SCHEMA_VERSION


@dataclass(frozen=True)
class AssignmentResult:
    """Success payload sent back to the orchestrator on resume."""

    courier: str

    def to_record(self) -> dict[str, Any]:
        return {"courier": self.courier}


class AssignmentState(Enum):
    """
    Lifecycle of one assignment request inside the worker.

    State transitions:
        RECEIVED → INVENTORY_DEDUCTED → RESUMED_SUCCESS
            ↓               ↓
          FAILED  ───→  DISCARDED (token already consumed)
            ↓
        RESUMED_FAILURE
    """

    RECEIVED = "received"
    INVENTORY_DEDUCTED = "inventory_deducted"
    FAILED = "failed"
    RESUMED_SUCCESS = "resumed_success"
    RESUMED_FAILURE = "resumed_failure"
    DISCARDED = "discarded"
