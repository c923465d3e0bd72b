"""
End-to-end order flows through the step handlers.

Each test plays the orchestrator's part: it calls the handlers in saga
order, merges their outputs into the execution state and runs the
compensations in reverse when a step fails.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from fulfillment.core.exceptions import (
    InsufficientOrderTotal,
    OutOfStock,
    PaymentDeclined,
    StepError,
)
from fulfillment.handlers import FulfillmentHandlers
from fulfillment.ledger.base import BOOKS, CUSTOMERS


@pytest.fixture
def handlers(inventory, loyalty, billing, worker):
    return FulfillmentHandlers(inventory, loyalty, billing, worker)


async def run_order(handlers, book_id, quantity, user_id, token):
    """Drive one order through the saga; returns the final execution state."""
    state = {"bookId": book_id, "quantity": quantity, "userId": user_id}

    state["book"] = await handlers.check_inventory(state)
    state["total"] = await handlers.calculate_total(state)
    try:
        state["total"] = await handlers.redeem_points(state)
        state["payment"] = await handlers.bill_customer(state)
    except StepError:
        await handlers.restore_redeem_points(state)
        raise

    message = {"Input": {"bookId": book_id, "quantity": quantity}, "Token": token}
    await handlers.courier_worker({"Records": [{"body": json.dumps(message)}]})
    return state


class TestScenarios:
    @pytest.mark.asyncio
    async def test_check_passes_and_total_is_computed(self, handlers):
        book = await handlers.check_inventory({"bookId": "B1", "quantity": 3})
        total = await handlers.calculate_total({"book": book, "quantity": 3})

        assert total == {"total": 60}

    @pytest.mark.asyncio
    async def test_ordering_entire_stock_is_out_of_stock(self, handlers, store):
        await store.add_book("B1", quantity=3, price=20)

        with pytest.raises(OutOfStock):
            await handlers.check_inventory({"bookId": "B1", "quantity": 3})

    @pytest.mark.asyncio
    async def test_redeem_when_total_exceeds_points(self, handlers, store):
        result = await handlers.redeem_points({"userId": "U1", "total": {"total": 80}})

        assert result["total"] == 30
        assert (await store.get(CUSTOMERS, "U1"))["points"] == 0

    @pytest.mark.asyncio
    async def test_redeem_rejected_when_points_cover_total(self, handlers, store):
        with pytest.raises(InsufficientOrderTotal):
            await handlers.redeem_points({"userId": "U1", "total": {"total": 40}})

        assert (await store.get(CUSTOMERS, "U1"))["points"] == 50

    @pytest.mark.asyncio
    async def test_assignment_resumes_once_and_deducts(self, worker, callback, store):
        await worker.handle(json.dumps({"bookId": "B1", "quantity": 3, "resumeToken": "T1"}))

        assert callback.calls_for("T1") == 1
        assert callback.successes[0][0] == "T1"
        assert (await store.get(BOOKS, "B1"))["quantity"] == 7


class TestOrderFlows:
    @pytest.mark.asyncio
    async def test_happy_path(self, handlers, billing, callback, store):
        state = await run_order(handlers, "B1", 4, "U1", token="T1")

        # 4 x 20 = 80, less 50 points
        assert state["total"] == {"total": 30, "points": 50}
        assert billing.charges[0].amount == 30
        assert callback.calls_for("T1") == 1
        assert (await store.get(BOOKS, "B1"))["quantity"] == 6
        assert (await store.get(CUSTOMERS, "U1"))["points"] == 0

    @pytest.mark.asyncio
    async def test_declined_payment_restores_points(self, handlers, billing, callback, store):
        billing.decline_next("card expired")

        with pytest.raises(PaymentDeclined):
            await run_order(handlers, "B1", 4, "U1", token="T1")

        assert (await store.get(CUSTOMERS, "U1"))["points"] == 50
        assert (await store.get(BOOKS, "B1"))["quantity"] == 10
        assert callback.call_count == 0

    @pytest.mark.asyncio
    async def test_rejected_redemption_leaves_balance(self, handlers, billing, store):
        with pytest.raises(InsufficientOrderTotal):
            await run_order(handlers, "B2", 2, "U1", token="T1")

        assert billing.charges == []
        assert (await store.get(CUSTOMERS, "U1"))["points"] == 50

    @pytest.mark.asyncio
    async def test_failed_assignment_restores_points(self, handlers, callback, store):
        """Ledger outage during assignment: saga resumes with a failure and compensates"""
        with patch.object(store, "decrement_once", AsyncMock(side_effect=ConnectionError("reset"))):
            state = await run_order(handlers, "B1", 4, "U1", token="T1")

        [(token, error, _)] = callback.failures
        assert (token, error) == ("T1", "NoCourierAvailable")

        # Orchestrator catches NoCourierAvailable and runs the compensation
        await handlers.restore_redeem_points(state)

        assert (await store.get(CUSTOMERS, "U1"))["points"] == 50
        assert (await store.get(BOOKS, "B1"))["quantity"] == 10
