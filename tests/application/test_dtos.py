"""Validation of the checkout request DTOs."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from multiorder.application.dtos import CreateMultiOrderRequest, RestaurantGroupDTO


def test_discount_may_cover_subtotal_and_fees():
    group = RestaurantGroupDTO(
        restaurant_id="rest-1",
        subtotal=Decimal("10"),
        delivery_fee=Decimal("2"),
        service_fee=Decimal("1"),
        discount=Decimal("13"),
    )
    assert group.discount == Decimal("13")


@pytest.mark.parametrize(
    "fields",
    [
        {"subtotal": Decimal("5"), "discount": Decimal("10")},
        {"subtotal": Decimal("10"), "delivery_fee": Decimal("2"), "service_fee": Decimal("1"), "discount": Decimal("13.01")},
    ],
)
def test_discount_larger_than_total_is_rejected(fields):
    with pytest.raises(ValidationError, match="Discount cannot exceed subtotal plus fees"):
        RestaurantGroupDTO(restaurant_id="rest-1", **fields)


def test_duplicate_restaurants_are_rejected():
    group = RestaurantGroupDTO(restaurant_id="rest-1", subtotal=Decimal("10"))
    with pytest.raises(ValidationError, match="Each restaurant may appear only once"):
        CreateMultiOrderRequest(customer_id="cust-1", restaurants=[group, group])
