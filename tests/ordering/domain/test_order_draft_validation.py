"""Tests for checkout draft validation."""

import pytest
from ordering.order.creation import validate_order_draft
from protean.exceptions import ValidationError

CUSTOMER = {"name": "Asha Verma", "mobile": "9876543210"}
ADDRESS = {"state": "Kerala", "district": "Ernakulam", "place": "Kochi", "house_address": "12 MG Road"}
ITEMS = [{"product_id": "prod-001", "name": "Silk Saree", "price": 999.0, "quantity": 1}]


def _errors(**overrides):
    args = {
        "customer": dict(CUSTOMER),
        "address": dict(ADDRESS),
        "items": [dict(item) for item in ITEMS],
        "total_amount": 999.0,
        "payment_status": "pending",
    }
    args.update(overrides)
    with pytest.raises(ValidationError) as exc:
        validate_order_draft(**args)
    return exc.value.messages


class TestValidDraft:
    def test_complete_draft_passes(self):
        validate_order_draft(CUSTOMER, ADDRESS, ITEMS, 999.0, "pending")

    def test_discounted_total_passes(self):
        validate_order_draft(CUSTOMER, ADDRESS, ITEMS, 949.05, "paid")


class TestInvalidDraft:
    def test_missing_customer_fields(self):
        errors = _errors(customer={"name": " ", "mobile": None})
        assert "customer.name" in errors
        assert "customer.mobile" in errors

    def test_every_address_field_named(self):
        errors = _errors(address={})
        assert {"address.state", "address.district", "address.place", "address.house_address"} <= set(errors)

    def test_landmark_and_pincode_optional(self):
        validate_order_draft(CUSTOMER, {**ADDRESS, "landmark": None, "pincode": None}, ITEMS, 999.0, "pending")

    def test_empty_items(self):
        assert "items" in _errors(items=[])

    def test_bad_item_fields(self):
        errors = _errors(items=[{"product_id": "", "name": "", "price": -1, "quantity": 0}])
        assert set(errors) >= {
            "items[0].product_id",
            "items[0].name",
            "items[0].price",
            "items[0].quantity",
        }

    @pytest.mark.parametrize("total", [0, -10, None, "abc"])
    def test_total_must_be_positive(self, total):
        assert "total_amount" in _errors(total_amount=total)

    def test_total_cannot_exceed_items(self):
        assert "total_amount" in _errors(total_amount=1500.0)

    def test_failed_is_not_a_creation_status(self):
        assert "payment_status" in _errors(payment_status="failed")

    def test_all_errors_reported_together(self):
        errors = _errors(customer={}, address={}, items=[])
        assert len(errors) >= 7
