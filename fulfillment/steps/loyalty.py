"""
Loyalty ledger - redeem a customer's reward points against an order.

Redemption rule: points are redeemed (all of them) only when the order
total is strictly greater than the balance; otherwise the redemption is
rejected with InsufficientOrderTotal and the balance is left alone.
"""

from decimal import Decimal
from typing import Any

from fulfillment.core.exceptions import InsufficientOrderTotal, InvalidInput, UserNotFound
from fulfillment.core.logger import get_logger
from fulfillment.core.types import Customer, RedemptionResult, to_decimal, to_quantity
from fulfillment.ledger.base import CUSTOMERS, LedgerStore
from fulfillment.ledger.errors import LedgerConflictError, LedgerNotFoundError
from fulfillment.monitoring.logging import bind_order_context
from fulfillment.monitoring.metrics import FulfillmentMetrics

logger = get_logger(__name__)


class LoyaltyLedger:
    """
    Per-customer reward points.

    The reset to zero is a compare-and-set against the balance that was
    read, retried up to ``max_attempts`` times when a concurrent order
    changes the balance in between.
    """

    def __init__(
        self,
        store: LedgerStore,
        max_attempts: int = 3,
        metrics: FulfillmentMetrics | None = None,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.metrics = metrics

    def _record(self, operation: str, outcome: str = "ok") -> None:
        if self.metrics is not None:
            self.metrics.record_ledger_operation(operation, outcome)

    async def _load_customer(self, user_id: str) -> Customer:
        record = await self.store.get(CUSTOMERS, user_id)
        if record is None:
            self._record("redeem", UserNotFound.kind.value)
            raise UserNotFound(user_id)
        return Customer.from_record(record)

    async def redeem_or_reject(self, user_id: str, order_total: Any) -> RedemptionResult:
        """
        Redeem all of the customer's points if the order total exceeds them.

        Returns:
            Remaining total after redemption and the number of points redeemed

        Raises:
            UserNotFound: No such customer
            InsufficientOrderTotal: ``order_total <= points``; balance unchanged
            InvalidInput: Negative or non-numeric total, or a non-integer stored balance
            LedgerConflictError: Balance kept changing under concurrent orders
        """
        total = to_decimal(order_total, "order_total")
        if not total.is_finite() or total < 0:
            msg = f"order_total must be a non-negative number, got {order_total!r}"
            raise InvalidInput(msg, field="order_total")

        with bind_order_context(user_id=user_id, step_name="redeem_points"):
            for attempt in range(1, self.max_attempts + 1):
                points = (await self._load_customer(user_id)).points

                if total <= points:
                    logger.info(f"Redemption rejected for {user_id}: total={total} points={points}")
                    self._record("redeem", InsufficientOrderTotal.kind.value)
                    raise InsufficientOrderTotal(user_id, total, points)

                try:
                    swapped = await self.store.compare_and_set(
                        CUSTOMERS, user_id, "points", points, 0
                    )
                except LedgerNotFoundError as e:
                    self._record("redeem", UserNotFound.kind.value)
                    raise UserNotFound(user_id) from e

                if swapped:
                    remaining = total - Decimal(points)
                    logger.info(f"Redeemed {points} points for {user_id}: remaining={remaining}")
                    self._record("redeem")
                    return RedemptionResult(remaining_total=remaining, points_redeemed=points)

                logger.info(
                    f"Points for {user_id} changed during redemption "
                    f"(attempt {attempt}/{self.max_attempts}), retrying"
                )

            self._record("redeem", "conflict")
            raise LedgerConflictError(CUSTOMERS, user_id, "points", self.max_attempts)

    async def restore(self, user_id: str, points_to_restore: int | None) -> None:
        """
        Compensation: set the balance back to ``points_to_restore``.

        An absolute write, not an increment. Nothing happens when there is
        nothing to restore (None or zero).
        """
        if not points_to_restore:
            logger.debug(f"No points to restore for {user_id}")
            return

        to_quantity(points_to_restore, "points")

        with bind_order_context(user_id=user_id, step_name="restore_points"):
            try:
                await self.store.set_field(CUSTOMERS, user_id, "points", points_to_restore)
            except LedgerNotFoundError as e:
                self._record("restore_points", UserNotFound.kind.value)
                raise UserNotFound(user_id) from e

            logger.info(f"Points restored for {user_id}: points={points_to_restore}")
            self._record("restore_points")
