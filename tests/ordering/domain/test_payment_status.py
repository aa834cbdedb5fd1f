"""Tests for payment status callbacks on the Order aggregate."""

import pytest
from ordering.order.errors import PaymentStatusConflict
from ordering.order.events import PaymentStatusChanged
from protean.exceptions import ValidationError


class TestRecordPayment:
    def test_pending_to_paid(self, make_order):
        order = make_order()
        assert order.record_payment("paid", payment_reference="pay_1") is True
        assert order.payment_status == "paid"
        assert order.payment_reference == "pay_1"

    def test_pending_to_failed(self, make_order):
        order = make_order()
        order.record_payment("failed")
        assert order.payment_status == "failed"

    def test_failed_then_paid_on_retry(self, make_order):
        order = make_order()
        order.record_payment("failed")
        order.record_payment("paid", payment_reference="pay_2")
        assert order.payment_status == "paid"

    def test_paid_cannot_go_back(self, make_order):
        order = make_order(payment_status="paid", payment_reference="pay_1")
        with pytest.raises(PaymentStatusConflict):
            order.record_payment("pending")
        with pytest.raises(PaymentStatusConflict):
            order.record_payment("failed")
        assert order.payment_status == "paid"

    def test_repeated_paid_is_noop(self, make_order):
        order = make_order(payment_status="paid", payment_reference="pay_1")
        order._events.clear()
        assert order.record_payment("paid") is False
        assert order._events == []

    def test_tracking_untouched(self, make_order):
        order = make_order()
        order.update_tracking("Packed")
        order.record_payment("paid")
        assert order.tracking_status == "Packed"

    def test_unknown_status(self, make_order):
        order = make_order()
        with pytest.raises(ValidationError):
            order.record_payment("refunded")

    def test_event_raised(self, make_order):
        order = make_order()
        order._events.clear()
        order.record_payment("paid", payment_reference="pay_9")
        event = order._events[0]
        assert isinstance(event, PaymentStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "paid"
        assert event.payment_reference == "pay_9"
