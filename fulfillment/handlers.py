"""
Orchestrator-facing step handlers.

Each handler takes the plain record the workflow passes as task input and
returns the plain record merged back into the execution state. Typed step
errors propagate unchanged; their class names match the ErrorKind values,
so the orchestrator's catch rules can select on them.

Task shapes:
    check_inventory        {bookId, quantity}              -> book record
    calculate_total        {book: {price}, quantity}       -> {total}
    redeem_points          {userId, total: {total}}        -> {total, points}
    bill_customer          {total: {total} | number}       -> {confirmationId, amount}
    restore_redeem_points  {userId, total: {points}}       -> None
    restore_quantity       {bookId, quantity}              -> "Quantity restored"
    courier_worker         {Records: [{body}]}             -> None
"""

from typing import Any

from fulfillment.core.config import FulfillmentConfig
from fulfillment.core.exceptions import InvalidInput
from fulfillment.core.logger import get_logger
from fulfillment.core.types import to_number
from fulfillment.courier.callback import StepFunctionsCallback, WorkflowCallback
from fulfillment.courier.worker import CourierAssignmentWorker
from fulfillment.ledger.base import LedgerStore
from fulfillment.steps.billing import BillingGateway, StubBillingGateway
from fulfillment.steps.inventory import InventoryLedger
from fulfillment.steps.loyalty import LoyaltyLedger
from fulfillment.steps.pricing import compute_total

logger = get_logger(__name__)


def _require(event: Any, name: str) -> Any:
    if not isinstance(event, dict) or event.get(name) is None:
        msg = f"Step input is missing '{name}'"
        raise InvalidInput(msg, field=name)
    return event[name]


def _total_record(event: dict[str, Any]) -> dict[str, Any]:
    total = _require(event, "total")
    if not isinstance(total, dict):
        msg = "Step input 'total' must be an object"
        raise InvalidInput(msg, field="total")
    return total


class FulfillmentHandlers:
    """
    Record-in/record-out entry points for every fulfillment task.

    Example:
        >>> handlers = FulfillmentHandlers.from_config(FulfillmentConfig())
        >>> book = await handlers.check_inventory({"bookId": "B1", "quantity": 3})
        >>> await handlers.calculate_total({"book": book, "quantity": 3})
        {'total': 60}
    """

    def __init__(
        self,
        inventory: InventoryLedger,
        loyalty: LoyaltyLedger,
        billing: BillingGateway,
        worker: CourierAssignmentWorker,
    ):
        self.inventory = inventory
        self.loyalty = loyalty
        self.billing = billing
        self.worker = worker

    @classmethod
    def from_config(
        cls,
        config: FulfillmentConfig | None = None,
        *,
        store: LedgerStore | None = None,
        callback: WorkflowCallback | None = None,
        billing: BillingGateway | None = None,
    ) -> "FulfillmentHandlers":
        """
        Wire every component from configuration.

        Explicit ``store``, ``callback`` and ``billing`` arguments take
        precedence over what the configuration would build.
        """
        config = config or FulfillmentConfig.from_env()
        store = store if store is not None else config.create_ledger_store()
        metrics = config.create_metrics()
        callback = callback if callback is not None else StepFunctionsCallback(config.aws_region)

        inventory = InventoryLedger(store, metrics=metrics)
        return cls(
            inventory=inventory,
            loyalty=LoyaltyLedger(store, max_attempts=config.redeem_max_attempts, metrics=metrics),
            billing=billing if billing is not None else StubBillingGateway(),
            worker=CourierAssignmentWorker(
                inventory, callback, store=store, courier=config.courier, metrics=metrics
            ),
        )

    async def check_inventory(self, event: dict[str, Any]) -> dict[str, Any]:
        book = await self.inventory.check(_require(event, "bookId"), _require(event, "quantity"))
        return book.to_record()

    async def calculate_total(self, event: dict[str, Any]) -> dict[str, Any]:
        book = _require(event, "book")
        if not isinstance(book, dict):
            msg = "Step input 'book' must be an object"
            raise InvalidInput(msg, field="book")
        total = compute_total(_require(book, "price"), _require(event, "quantity"))
        return {"total": to_number(total)}

    async def redeem_points(self, event: dict[str, Any]) -> dict[str, Any]:
        order_total = _require(_total_record(event), "total")
        result = await self.loyalty.redeem_or_reject(_require(event, "userId"), order_total)
        return result.to_record()

    async def bill_customer(self, event: dict[str, Any]) -> dict[str, Any]:
        total = _require(event, "total")
        amount = _require(total, "total") if isinstance(total, dict) else total
        confirmation = await self.billing.charge(amount)
        return confirmation.to_record()

    async def restore_redeem_points(self, event: dict[str, Any]) -> None:
        points = _total_record(event).get("points")
        await self.loyalty.restore(_require(event, "userId"), points)

    async def restore_quantity(self, event: dict[str, Any]) -> str:
        await self.inventory.restore(_require(event, "bookId"), _require(event, "quantity"))
        return "Quantity restored"

    async def courier_worker(self, event: dict[str, Any]) -> None:
        await self.worker.handle_event(event)

    async def close(self) -> None:
        """Release the store and orchestrator clients."""
        await self.inventory.store.close()
        close_callback = getattr(self.worker.callback, "close", None)
        if close_callback is not None:
            await close_callback()
