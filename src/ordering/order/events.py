"""Domain events for the Order aggregate.

Events are immutable facts raised alongside each state change. ``OrderPlaced``
is the trigger point for customer notifications; delivering those
notifications is handled outside this context.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout was turned into a persisted order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_name = String(required=True)
    customer_mobile = String(required=True)
    customer_email = String()
    items = Text(required=True)  # JSON: list of item snapshots
    total_amount = Float(required=True)
    payment_status = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShipmentBooked:
    """The courier accepted the order and returned its own identifiers."""

    __version__ = 1

    order_id = Identifier(required=True)
    fulfillment_order_id = String(required=True)
    fulfillment_shipment_id = String()
    awb_code = String()
    booked_at = DateTime(required=True)


@ordering.event(part_of="Order")
class TrackingStatusChanged:
    """The order moved along the delivery pipeline."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    tracking_id = String()
    source = String(required=True)  # "admin" or "courier"
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusChanged:
    """A payment callback settled or failed the order's payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    payment_reference = String()
    changed_at = DateTime(required=True)
