"""Tests for Order creation and its snapshot fields."""

import json

from ordering.order.events import OrderPlaced
from ordering.order.order import Order, PaymentStatus, ShippingAddress, TrackingStatus


class TestOrderCreation:
    def test_new_order_is_placed_and_pending(self, make_order):
        order = make_order()
        assert order.tracking_status == TrackingStatus.ORDER_PLACED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.id is not None
        assert order.created_at is not None

    def test_paid_order_keeps_payment_reference(self, make_order):
        order = make_order(payment_status="paid", payment_reference="pay_123")
        assert order.payment_status == "paid"
        assert order.payment_reference == "pay_123"

    def test_courier_identifiers_start_empty(self, make_order):
        order = make_order()
        assert order.fulfillment_order_id is None
        assert order.fulfillment_shipment_id is None
        assert order.awb_code is None
        assert order.tracking_id is None
        assert order.has_shipment_booking is False

    def test_address_is_a_value_object(self, make_order):
        order = make_order()
        assert isinstance(order.address, ShippingAddress)
        assert order.address.place == "Kochi"
        assert order.address.pincode == "682001"

    def test_items_are_snapshotted(self, make_order):
        order = make_order()
        assert len(order.items) == 2
        stole = next(item for item in order.items if item.name == "Cotton Stole")
        assert stole.unit_price == 150.0
        assert stole.quantity == 2
        assert stole.note == "Gift wrap"
        assert stole.line_total == 300.0

    def test_total_is_stored_as_given(self, make_order):
        order = make_order(total_amount=1234.05)
        assert order.total_amount == 1234.05

    def test_placed_event_is_raised(self, make_order):
        order = make_order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.order_id == str(order.id)
        assert event.payment_status == "pending"
        assert len(json.loads(event.items)) == 2


class TestOrderSummary:
    def test_summary_shape(self, make_order):
        order = make_order(user_id="user-42")
        summary = order.to_summary()
        assert summary["id"] == str(order.id)
        assert summary["customer"] == {
            "name": "Asha Verma",
            "mobile": "9876543210",
            "email": "asha@example.com",
        }
        assert summary["address"]["house_address"] == "12 MG Road"
        assert summary["items"][0]["product_id"] in ("prod-001", "prod-002")
        assert summary["tracking_status"] == "Order Placed"
        assert summary["user_id"] == "user-42"

    def test_summary_is_plain_data(self, make_order):
        summary = make_order().to_summary()
        # Round-trips through JSON without custom encoders
        assert json.loads(json.dumps(summary)) == summary


class TestOrderQueries:
    def test_fresh_order_can_be_cancelled(self, make_order):
        assert make_order().can_be_cancelled is True

    def test_is_cancelled_false_by_default(self, make_order):
        assert make_order().is_cancelled is False

    def test_current_tracking_status_is_enum(self, make_order):
        assert make_order().current_tracking_status is TrackingStatus.ORDER_PLACED

    def test_order_is_an_aggregate(self, make_order):
        assert isinstance(make_order(), Order)
