import pytest


@pytest.fixture()
def order_summary():
    """An order as ``Order.to_summary`` renders it."""
    return {
        "id": "ord-001",
        "created_at": "2026-03-14T09:30:00+00:00",
        "customer": {"name": "Asha Mary Verma", "mobile": "9876543210", "email": None},
        "address": {
            "state": "Kerala",
            "district": "Ernakulam",
            "place": "Kochi",
            "house_address": "12 MG Road",
            "landmark": "Near Metro",
            "pincode": "682001",
        },
        "items": [
            {"product_id": "prod-001", "name": "Silk Saree", "unit_price": 999.0, "quantity": 1},
            {"product_id": "prod-002", "name": "Cotton Stole", "unit_price": 150.0, "quantity": 2},
        ],
        "total_amount": 1299.0,
        "payment_status": "pending",
    }
