"""
Pytest configuration and shared fixtures for the fulfillment steps
"""

import pytest

from fulfillment.courier.callback import InMemoryWorkflowCallback
from fulfillment.courier.worker import CourierAssignmentWorker
from fulfillment.ledger.memory import InMemoryLedgerStore
from fulfillment.steps.billing import StubBillingGateway
from fulfillment.steps.inventory import InventoryLedger
from fulfillment.steps.loyalty import LoyaltyLedger

COURIER = "courier-test@fulfillment.local"


@pytest.fixture
async def store() -> InMemoryLedgerStore:
    """In-memory ledger seeded with a few books and customers."""
    store = InMemoryLedgerStore()

    await store.add_book("B1", quantity=10, price=20)
    await store.add_book("B2", quantity=3, price=15)
    await store.add_book("B3", quantity=0, price=50)  # Out of stock

    await store.add_customer("U1", points=50)
    await store.add_customer("U2", points=0)

    return store


@pytest.fixture
def inventory(store) -> InventoryLedger:
    return InventoryLedger(store)


@pytest.fixture
def loyalty(store) -> LoyaltyLedger:
    return LoyaltyLedger(store)


@pytest.fixture
def billing() -> StubBillingGateway:
    return StubBillingGateway()


@pytest.fixture
def callback() -> InMemoryWorkflowCallback:
    return InMemoryWorkflowCallback()


@pytest.fixture
def worker(inventory, callback) -> CourierAssignmentWorker:
    return CourierAssignmentWorker(inventory, callback, courier=COURIER, worker_id="worker-test")
