"""Order aggregate (CQRS): the core of the ordering domain.

The Order is the durable record of a completed checkout. Customer, address,
line items and total are snapshotted at creation and never recomputed from
the catalogue. Tracking and payment status move through small state machines
enforced here, so every writer (admin, courier reconciliation, cancellation,
payment callback) goes through the same legality checks.

Tracking state machine:
    Order Placed → Packed → Shipped → Out for Delivery → Delivered
    {Order Placed, Packed} → Cancelled
    Forward moves may skip steps; nothing moves backward; Cancelled is final.

Payment state machine:
    pending → {paid, failed}
    failed → {paid, failed}
    paid is final
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.errors import (
    AlreadyCancelled,
    BackwardTransition,
    CancellationTooLate,
    PaymentStatusConflict,
)
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    PaymentStatusChanged,
    ShipmentBooked,
    TrackingStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TrackingStatus(Enum):
    ORDER_PLACED = "Order Placed"
    PACKED = "Packed"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class TrackingSource(Enum):
    ADMIN = "admin"
    COURIER = "courier"


# Forward delivery pipeline; position is progress
FORWARD_SEQUENCE = (
    TrackingStatus.ORDER_PLACED,
    TrackingStatus.PACKED,
    TrackingStatus.SHIPPED,
    TrackingStatus.OUT_FOR_DELIVERY,
    TrackingStatus.DELIVERED,
)

# States from which cancellation is allowed
CANCELLABLE_STATUSES = frozenset({TrackingStatus.ORDER_PLACED, TrackingStatus.PACKED})

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),  # Terminal
}

CANCELLATION_REASONS = (
    "Changed my mind",
    "Found a better price",
    "Ordered by mistake",
    "Delivery time is too long",
    "Item not needed anymore",
    "Other",
)


def progress_rank(status: TrackingStatus) -> int:
    """Position of a forward status in the delivery pipeline."""
    return FORWARD_SEQUENCE.index(status)


def is_forward(current: TrackingStatus, target: TrackingStatus) -> bool:
    """True when ``target`` is strictly further along than ``current``.

    Cancelled is never forward of anything, and nothing is forward of it.
    """
    if TrackingStatus.CANCELLED in (current, target):
        return False
    return progress_rank(target) > progress_rank(current)


def parse_tracking_status(value) -> TrackingStatus:
    if isinstance(value, TrackingStatus):
        return value
    try:
        return TrackingStatus(value)
    except ValueError:
        raise ValidationError({"tracking_status": [f"Unknown tracking status: {value}"]}) from None


def parse_payment_status(value) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(value)
    except ValueError:
        raise ValidationError({"payment_status": [f"Unknown payment status: {value}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, captured at checkout.

    Later edits to a customer's saved addresses never reach an existing order.
    """

    state = String(required=True, max_length=100)
    district = String(required=True, max_length=100)
    place = String(required=True, max_length=100)
    house_address = String(required=True, max_length=500)
    landmark = String(max_length=255)
    pincode = String(max_length=10)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item snapshot: name, unit price and size as they were at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50)
    note = String(max_length=255)
    image = String(max_length=500)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_name = String(required=True, max_length=255)
    customer_mobile = String(required=True, max_length=20)
    customer_email = String(max_length=255)
    user_id = String(max_length=255)
    address = ValueObject(ShippingAddress)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    payment_reference = String(max_length=255)
    tracking_status = String(
        choices=TrackingStatus,
        default=TrackingStatus.ORDER_PLACED.value,
    )
    tracking_id = String(max_length=255)
    fulfillment_order_id = String(max_length=255)
    fulfillment_shipment_id = String(max_length=255)
    awb_code = String(max_length=255)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_name: str,
        customer_mobile: str,
        address: dict,
        items_data: list[dict],
        total_amount: float,
        payment_status: str = PaymentStatus.PENDING.value,
        customer_email: str | None = None,
        payment_reference: str | None = None,
        user_id: str | None = None,
    ):
        """Create a new order from a validated checkout draft.

        Args:
            customer_name: Full name as entered at checkout.
            customer_mobile: Contact number, also used for guest order lookup.
            address: Dict with state, district, place, house_address and
                optional landmark, pincode.
            items_data: List of dicts with product_id, name, unit_price,
                quantity and optional size, note, image.
            total_amount: Amount charged, already net of any discount.
            payment_status: ``pending`` for deferred settlement, ``paid`` when
                an online payment was captured before the order existed.
        """
        now = datetime.now(UTC)
        status = parse_payment_status(payment_status)
        order = cls(
            customer_name=customer_name,
            customer_mobile=customer_mobile,
            customer_email=customer_email,
            user_id=user_id,
            address=ShippingAddress(**address),
            total_amount=total_amount,
            payment_status=status.value,
            payment_reference=payment_reference,
            tracking_status=TrackingStatus.ORDER_PLACED.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_name=customer_name,
                customer_mobile=customer_mobile,
                customer_email=customer_email,
                items=json.dumps(items_data),
                total_amount=total_amount,
                payment_status=status.value,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_tracking_status(self) -> TrackingStatus:
        return TrackingStatus(self.tracking_status)

    @property
    def is_cancelled(self) -> bool:
        return self.current_tracking_status == TrackingStatus.CANCELLED

    @property
    def can_be_cancelled(self) -> bool:
        return self.current_tracking_status in CANCELLABLE_STATUSES

    @property
    def has_shipment_booking(self) -> bool:
        return bool(self.fulfillment_order_id)

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def record_shipment_booking(
        self,
        fulfillment_order_id: str,
        fulfillment_shipment_id: str | None = None,
        awb_code: str | None = None,
    ) -> None:
        """Store the courier's identifiers once a shipment has been created.

        The shipment id doubles as the initial tracking id; the tracking
        status itself stays where it is.
        """
        if self.is_cancelled:
            raise AlreadyCancelled(self.tracking_status)

        now = datetime.now(UTC)
        self.fulfillment_order_id = fulfillment_order_id
        self.fulfillment_shipment_id = fulfillment_shipment_id
        self.awb_code = awb_code or None
        if fulfillment_shipment_id and not self.tracking_id:
            self.tracking_id = fulfillment_shipment_id
        self.updated_at = now
        self.raise_(
            ShipmentBooked(
                order_id=str(self.id),
                fulfillment_order_id=fulfillment_order_id,
                fulfillment_shipment_id=fulfillment_shipment_id,
                awb_code=awb_code or None,
                booked_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def update_tracking(
        self,
        status,
        tracking_id: str | None = None,
        source: TrackingSource = TrackingSource.ADMIN,
    ) -> bool:
        """Move the order along the delivery pipeline.

        Forward moves may skip intermediate steps. Re-applying the current
        status only records a new tracking id. Returns True when anything
        changed.
        """
        target = parse_tracking_status(status)
        current = self.current_tracking_status

        if current == TrackingStatus.CANCELLED:
            raise AlreadyCancelled(target.value)
        if target == TrackingStatus.CANCELLED:
            raise ValidationError({"tracking_status": ["Orders are cancelled through cancellation, with a reason"]})
        if progress_rank(target) < progress_rank(current):
            raise BackwardTransition(current.value, target.value)

        tracking_changed = tracking_id is not None and tracking_id != self.tracking_id
        if target == current and not tracking_changed:
            return False

        now = datetime.now(UTC)
        self.tracking_status = target.value
        if tracking_id is not None:
            self.tracking_id = tracking_id
        self.updated_at = now
        self.raise_(
            TrackingStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                tracking_id=self.tracking_id,
                source=source.value,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str) -> None:
        """Cancel the order (only before it ships)."""
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        current = self.current_tracking_status
        if current == TrackingStatus.CANCELLED:
            raise AlreadyCancelled(TrackingStatus.CANCELLED.value)
        if current not in CANCELLABLE_STATUSES:
            raise CancellationTooLate(current.value)

        now = datetime.now(UTC)
        self.tracking_status = TrackingStatus.CANCELLED.value
        self.cancellation_reason = reason.strip()
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                reason=self.cancellation_reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, status, payment_reference: str | None = None) -> bool:
        """Apply a payment callback. Only payment fields are touched."""
        target = parse_payment_status(status)
        current = PaymentStatus(self.payment_status)

        if target == current == PaymentStatus.PAID:
            return False
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise PaymentStatusConflict(current.value, target.value)

        now = datetime.now(UTC)
        self.payment_status = target.value
        if payment_reference:
            self.payment_reference = payment_reference
        self.updated_at = now
        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                payment_reference=self.payment_reference,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_summary(self) -> dict:
        """Plain dict view used by the API and the courier payload builder."""
        return {
            "id": str(self.id),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "customer": {
                "name": self.customer_name,
                "mobile": self.customer_mobile,
                "email": self.customer_email,
            },
            "address": {
                "state": self.address.state,
                "district": self.address.district,
                "place": self.address.place,
                "house_address": self.address.house_address,
                "landmark": self.address.landmark,
                "pincode": self.address.pincode,
            }
            if self.address
            else None,
            "items": [
                {
                    "product_id": str(item.product_id),
                    "name": item.name,
                    "unit_price": item.unit_price,
                    "quantity": item.quantity,
                    "size": item.size,
                    "note": item.note,
                    "image": item.image,
                }
                for item in self.items or []
            ],
            "total_amount": self.total_amount,
            "payment_status": self.payment_status,
            "payment_reference": self.payment_reference,
            "tracking_status": self.tracking_status,
            "tracking_id": self.tracking_id,
            "fulfillment_order_id": self.fulfillment_order_id,
            "fulfillment_shipment_id": self.fulfillment_shipment_id,
            "awb_code": self.awb_code,
            "cancellation_reason": self.cancellation_reason,
            "user_id": self.user_id,
        }
