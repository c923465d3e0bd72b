"""
Saga steps: inventory, pricing, loyalty and billing.
"""

from fulfillment.steps.billing import BillingGateway, StubBillingGateway
from fulfillment.steps.inventory import InventoryLedger, is_book_available
from fulfillment.steps.loyalty import LoyaltyLedger
from fulfillment.steps.pricing import compute_total

__all__ = [
    "BillingGateway",
    "InventoryLedger",
    "LoyaltyLedger",
    "StubBillingGateway",
    "compute_total",
    "is_book_available",
]
