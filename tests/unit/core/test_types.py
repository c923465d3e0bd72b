"""
Tests for the step records in fulfillment.core.types
"""

from decimal import Decimal

import pytest

from fulfillment.core.exceptions import InvalidInput
from fulfillment.core.types import (
    AssignmentRequest,
    AssignmentResult,
    Book,
    ChargeConfirmation,
    Customer,
    RedemptionResult,
    to_decimal,
    to_number,
    to_quantity,
)


class TestCoercion:
    def test_to_decimal_accepts_numbers_and_strings(self):
        assert to_decimal(20, "price") == Decimal("20")
        assert to_decimal("19.99", "price") == Decimal("19.99")
        assert to_decimal(Decimal("1.5"), "price") == Decimal("1.5")

    @pytest.mark.parametrize("value", ["abc", None, True, [1]])
    def test_to_decimal_rejects_junk(self, value):
        with pytest.raises(InvalidInput):
            to_decimal(value, "price")

    def test_to_quantity(self):
        assert to_quantity(0) == 0
        assert to_quantity(7) == 7

    @pytest.mark.parametrize("value", [-1, 1.5, "3", None, True])
    def test_to_quantity_rejects_invalid(self, value):
        with pytest.raises(InvalidInput):
            to_quantity(value)

    def test_to_number(self):
        assert to_number(Decimal("60")) == 60
        assert isinstance(to_number(Decimal("60.00")), int)
        assert to_number(Decimal("12.5")) == 12.5


class TestRecords:
    def test_book_round_trip_shape(self):
        book = Book.from_record({"bookId": "B1", "quantity": 10, "price": 20})
        assert book == Book(book_id="B1", quantity=10, price=Decimal("20"))
        assert book.to_record() == {"bookId": "B1", "quantity": 10, "price": 20}

    def test_book_missing_quantity(self):
        with pytest.raises(KeyError):
            Book.from_record({"bookId": "B1", "price": 20})

    def test_customer_defaults_to_zero_points(self):
        assert Customer.from_record({"userId": "U1"}).points == 0

    def test_redemption_record(self):
        result = RedemptionResult(remaining_total=Decimal("30"), points_redeemed=50)
        assert result.to_record() == {"total": 30, "points": 50}

    def test_charge_record(self):
        confirmation = ChargeConfirmation(confirmation_id="chg_1", amount=Decimal("12.50"))
        assert confirmation.to_record() == {"confirmationId": "chg_1", "amount": 12.5}

    def test_assignment_request_defaults_to_current_schema(self):
        request = AssignmentRequest(book_id="B1", quantity=3, resume_token="T1")
        assert request.schema_version == 1

    @pytest.mark.parametrize("points", [50.5, "50", -1, None])
    def test_customer_rejects_non_integer_balance(self, points):
        with pytest.raises(InvalidInput) as exc_info:
            Customer.from_record({"userId": "U1", "points": points})
        assert exc_info.value.details["field"] == "points"

    def test_book_rejects_fractional_stock(self):
        with pytest.raises(InvalidInput):
            Book.from_record({"bookId": "B1", "quantity": 2.5, "price": 20})

    def test_assignment_result(self):
        assert AssignmentResult(courier="c-1").to_record() == {"courier": "c-1"}
