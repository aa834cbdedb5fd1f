"""Application tests for order commands via domain.process()."""

import json

import pytest
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceOrder
from ordering.order.errors import BackwardTransition, CancellationTooLate
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentStatus
from ordering.order.shipment import RecordShipmentBooking
from ordering.order.tracking import UpdateTracking
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place_order(draft, **overrides):
    fields = {
        "customer_name": draft["customer"]["name"],
        "customer_mobile": draft["customer"]["mobile"],
        "customer_email": draft["customer"]["email"],
        "address": json.dumps(draft["address"]),
        "items": json.dumps(draft["items"]),
        "total_amount": draft["total_amount"],
        "payment_status": "pending",
    }
    fields.update(overrides)
    return current_domain.process(PlaceOrder(**fields), asynchronous=False)


class TestPlaceOrder:
    def test_returns_persisted_id(self, draft):
        order_id = _place_order(draft)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.customer_name == "Asha Verma"
        assert order.tracking_status == "Order Placed"
        assert len(order.items) == 2

    def test_item_price_becomes_unit_price(self, draft):
        order = current_domain.repository_for(Order).get(_place_order(draft))
        saree = next(item for item in order.items if item.name == "Silk Saree")
        assert saree.unit_price == 999.0
        assert saree.size == "Free"

    def test_invalid_draft_is_not_persisted(self, draft):
        with pytest.raises(ValidationError) as exc:
            _place_order(draft, customer_name="", address=json.dumps({}))
        assert "customer.name" in exc.value.messages
        assert "address.state" in exc.value.messages
        assert current_domain.repository_for(Order).list_recent() == []


class TestOrderCommands:
    def test_update_tracking(self, draft):
        order_id = _place_order(draft)
        changed = current_domain.process(UpdateTracking(order_id=order_id, status="Packed"), asynchronous=False)
        assert changed is True
        assert current_domain.repository_for(Order).get(order_id).tracking_status == "Packed"

    def test_backward_tracking_rejected(self, draft):
        order_id = _place_order(draft)
        current_domain.process(UpdateTracking(order_id=order_id, status="Shipped"), asynchronous=False)
        with pytest.raises(BackwardTransition):
            current_domain.process(UpdateTracking(order_id=order_id, status="Packed"), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).tracking_status == "Shipped"

    def test_cancel(self, draft):
        order_id = _place_order(draft)
        current_domain.process(CancelOrder(order_id=order_id, reason="Changed my mind"), asynchronous=False)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.tracking_status == "Cancelled"
        assert order.cancellation_reason == "Changed my mind"

    def test_cancel_too_late_leaves_order_untouched(self, draft):
        order_id = _place_order(draft)
        current_domain.process(UpdateTracking(order_id=order_id, status="Delivered"), asynchronous=False)
        with pytest.raises(CancellationTooLate):
            current_domain.process(CancelOrder(order_id=order_id, reason="Too slow"), asynchronous=False)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.tracking_status == "Delivered"
        assert order.cancellation_reason is None

    def test_record_shipment_booking(self, draft):
        order_id = _place_order(draft)
        current_domain.process(
            RecordShipmentBooking(
                order_id=order_id,
                fulfillment_order_id="SR-100",
                fulfillment_shipment_id="SH-100",
                awb_code="AWB100",
            ),
            asynchronous=False,
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.fulfillment_order_id == "SR-100"
        assert order.awb_code == "AWB100"
        assert order.tracking_id == "SH-100"

    def test_record_payment(self, draft):
        order_id = _place_order(draft)
        current_domain.process(
            RecordPaymentStatus(order_id=order_id, status="paid", payment_reference="pay_1"),
            asynchronous=False,
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_status == "paid"
        assert order.payment_reference == "pay_1"

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(CancelOrder(order_id="missing-order", reason="Other"), asynchronous=False)
