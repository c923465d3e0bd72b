"""
Billing gateway - charge the customer for the final order amount.

The gateway is an external payment provider. ``StubBillingGateway`` always
approves unless told otherwise, which is enough for development and tests;
production deployments plug in a real provider behind the same protocol.
"""

import asyncio
import uuid
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from fulfillment.core.exceptions import GatewayUnavailable, InvalidInput, PaymentDeclined
from fulfillment.core.logger import get_logger
from fulfillment.core.types import ChargeConfirmation, to_decimal

logger = get_logger(__name__)


@runtime_checkable
class BillingGateway(Protocol):
    """
    Protocol for payment providers.

    Implementations raise PaymentDeclined when the provider refuses the
    charge and GatewayUnavailable when it cannot be reached.
    """

    async def charge(self, amount: Any) -> ChargeConfirmation:
        """Charge ``amount`` and return the provider's confirmation."""
        ...


def validate_amount(amount: Any) -> Decimal:
    value = to_decimal(amount, "amount")
    if not value.is_finite() or value < 0:
        msg = f"amount must be a non-negative number, got {amount!r}"
        raise InvalidInput(msg, field="amount")
    return value


class StubBillingGateway:
    """
    Payment provider stand-in.

    Usage:
        >>> gateway = StubBillingGateway()
        >>> confirmation = await gateway.charge(Decimal("30"))
        >>>
        >>> gateway.decline_next("card expired")
        >>> await gateway.charge(10)  # raises PaymentDeclined
    """

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds
        self.charges: list[ChargeConfirmation] = []
        self._next_failure: Exception | None = None

    def decline_next(self, reason: str = "Payment declined") -> None:
        """Make the next charge fail with PaymentDeclined."""
        self._next_failure = PaymentDeclined(reason)

    def fail_next(self, reason: str = "Payment gateway temporarily unavailable") -> None:
        """Make the next charge fail with GatewayUnavailable."""
        self._next_failure = GatewayUnavailable(reason)

    async def charge(self, amount: Any) -> ChargeConfirmation:
        value = validate_amount(amount)

        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        if self._next_failure is not None:
            failure, self._next_failure = self._next_failure, None
            logger.warning(f"Charge of {value} failed: {failure}")
            raise failure

        confirmation = ChargeConfirmation(
            confirmation_id=f"chg_{uuid.uuid4().hex[:16]}", amount=value
        )
        self.charges.append(confirmation)
        logger.info(f"Charged {value} ({confirmation.confirmation_id})")
        return confirmation
