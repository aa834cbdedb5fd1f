"""Order factory shared by the domain tests."""

import pytest
from ordering.order.order import Order

ADDRESS = {
    "state": "Kerala",
    "district": "Ernakulam",
    "place": "Kochi",
    "house_address": "12 MG Road",
    "landmark": "Near Metro",
    "pincode": "682001",
}

ITEMS = [
    {"product_id": "prod-001", "name": "Silk Saree", "unit_price": 999.0, "quantity": 1, "size": "Free"},
    {"product_id": "prod-002", "name": "Cotton Stole", "unit_price": 150.0, "quantity": 2, "note": "Gift wrap"},
]


@pytest.fixture()
def make_order():
    def _make(**overrides) -> Order:
        data = {
            "customer_name": "Asha Verma",
            "customer_mobile": "9876543210",
            "customer_email": "asha@example.com",
            "address": dict(ADDRESS),
            "items_data": [dict(item) for item in ITEMS],
            "total_amount": 1299.0,
        }
        data.update(overrides)
        return Order.create(**data)

    return _make
