"""
Tests for the stub billing gateway
"""

from decimal import Decimal

import pytest

from fulfillment.core.exceptions import GatewayUnavailable, InvalidInput, PaymentDeclined
from fulfillment.steps.billing import BillingGateway, StubBillingGateway


class TestStubBillingGateway:
    def test_satisfies_protocol(self, billing):
        assert isinstance(billing, BillingGateway)

    @pytest.mark.asyncio
    async def test_charge(self, billing):
        confirmation = await billing.charge(Decimal("30"))

        assert confirmation.amount == Decimal("30")
        assert confirmation.confirmation_id.startswith("chg_")
        assert billing.charges == [confirmation]

    @pytest.mark.asyncio
    async def test_confirmation_ids_are_unique(self, billing):
        first = await billing.charge(10)
        second = await billing.charge(10)
        assert first.confirmation_id != second.confirmation_id

    @pytest.mark.asyncio
    async def test_zero_amount(self, billing):
        """Orders fully covered by points still get a confirmation"""
        confirmation = await billing.charge(0)
        assert confirmation.amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_decline_next(self, billing):
        billing.decline_next("card expired")

        with pytest.raises(PaymentDeclined, match="card expired"):
            await billing.charge(10)

        assert billing.charges == []
        assert (await billing.charge(10)).amount == Decimal("10")

    @pytest.mark.asyncio
    async def test_fail_next_is_retryable(self, billing):
        billing.fail_next()

        with pytest.raises(GatewayUnavailable) as exc_info:
            await billing.charge(10)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-5, "abc", "NaN"])
    async def test_invalid_amount(self, billing, amount):
        with pytest.raises(InvalidInput):
            await billing.charge(amount)
