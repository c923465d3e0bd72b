"""
Fulfillment - business-logic steps of a book order-fulfillment saga

Steps run under an external workflow orchestrator:

    check inventory → compute total → redeem points → bill customer
        → enqueue courier assignment (saga suspends on a task token)
        → courier worker deducts stock and resumes the saga

Failures surface as typed step errors so the orchestrator can run the
compensations (restore quantity, restore points) in reverse order.

Usage:
    >>> from fulfillment import FulfillmentConfig, FulfillmentHandlers
    >>>
    >>> handlers = FulfillmentHandlers.from_config(FulfillmentConfig.from_env())
    >>> book = await handlers.check_inventory({"bookId": "B1", "quantity": 3})
"""

from fulfillment.core import (
    AssignmentRequest,
    AssignmentResult,
    AssignmentState,
    Book,
    ChargeConfirmation,
    Customer,
    ErrorKind,
    FulfillmentConfig,
    FulfillmentError,
    GatewayUnavailable,
    InsufficientOrderTotal,
    InvalidInput,
    MalformedAssignmentRequest,
    NoCourierAvailable,
    NotFound,
    OutOfStock,
    PaymentDeclined,
    RedemptionResult,
    StepError,
    UserNotFound,
)
from fulfillment.courier import (
    CourierAssignmentWorker,
    InMemoryWorkflowCallback,
    StepFunctionsCallback,
    WorkflowCallback,
)
from fulfillment.handlers import FulfillmentHandlers
from fulfillment.ledger import InMemoryLedgerStore, LedgerStore, create_ledger_store
from fulfillment.steps import (
    BillingGateway,
    InventoryLedger,
    LoyaltyLedger,
    StubBillingGateway,
    compute_total,
)

__all__ = [
    "AssignmentRequest",
    "AssignmentResult",
    "AssignmentState",
    "BillingGateway",
    "Book",
    "ChargeConfirmation",
    "CourierAssignmentWorker",
    "Customer",
    "ErrorKind",
    "FulfillmentConfig",
    "FulfillmentError",
    "FulfillmentHandlers",
    "GatewayUnavailable",
    "InMemoryLedgerStore",
    "InMemoryWorkflowCallback",
    "InsufficientOrderTotal",
    "InvalidInput",
    "InventoryLedger",
    "LedgerStore",
    "LoyaltyLedger",
    "MalformedAssignmentRequest",
    "NoCourierAvailable",
    "NotFound",
    "OutOfStock",
    "PaymentDeclined",
    "RedemptionResult",
    "StepError",
    "StepFunctionsCallback",
    "StubBillingGateway",
    "UserNotFound",
    "WorkflowCallback",
    "compute_total",
    "create_ledger_store",
]
