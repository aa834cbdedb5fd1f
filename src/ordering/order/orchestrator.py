"""Order orchestration: the entry point for everything that changes an order.

``OrderOrchestrator`` sequences order creation with the best-effort courier
booking, and routes cancellation, tracking updates, payment callbacks and
reconciliation through the per-order lock. State changes themselves are made
by the command handlers, which load the stored order and apply the
aggregate's transition rules.

Courier failures never leave this module: an order that was persisted stays
placed even when booking fails or blows up. The failure is logged and posted
to the ops channel, and the order keeps null courier ids until someone books
it by hand with ``book_shipment``.
"""

import json

import structlog
from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import FulfillmentClient, FulfillmentFailure, ShipmentBooking
from notifications.channel import get_ops_channel
from protean.utils.globals import current_domain

from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceOrder
from ordering.order.errors import AlreadyCancelled
from ordering.order.locking import OrderLocks, order_locks
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentStatus
from ordering.order.reconciliation import StatusReconciler, SyncResult
from ordering.order.repository import OrderRepository
from ordering.order.shipment import RecordShipmentBooking
from ordering.order.tracking import UpdateTracking

logger = structlog.get_logger(__name__)


class OrderOrchestrator:
    def __init__(self, carrier: FulfillmentClient | None = None, locks: OrderLocks = order_locks) -> None:
        self._carrier = carrier
        self._locks = locks
        self.reconciler = StatusReconciler(carrier=carrier, locks=locks)

    @property
    def carrier(self) -> FulfillmentClient:
        return self._carrier or get_carrier()

    @property
    def repository(self) -> OrderRepository:
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Creation and fulfillment
    # -------------------------------------------------------------------
    def create_order(self, draft: dict) -> Order:
        """Validate and persist a checkout draft, then try to book it once.

        Raises ``ValidationError`` naming every missing or invalid field.
        Returns the stored order whether or not the courier booking worked.
        """
        customer = draft.get("customer") or {}
        command = PlaceOrder(
            customer_name=customer.get("name"),
            customer_mobile=customer.get("mobile"),
            customer_email=customer.get("email"),
            user_id=draft.get("user_id"),
            address=json.dumps(draft.get("address") or {}),
            items=json.dumps(draft.get("items") or []),
            total_amount=draft.get("total_amount"),
            payment_status=draft.get("payment_status") or "pending",
            payment_reference=draft.get("payment_reference"),
        )
        order_id = current_domain.process(command, asynchronous=False)
        logger.info(
            "Order placed",
            order_id=order_id,
            total_amount=draft.get("total_amount"),
            payment_status=command.payment_status,
        )

        try:
            self.book_shipment(order_id)
        except Exception as exc:
            logger.exception("Shipment booking crashed", order_id=order_id)
            self._report_booking_failure(order_id, str(exc))

        return self.repository.get(order_id)

    def book_shipment(self, order_id: str) -> ShipmentBooking | FulfillmentFailure:
        """Book the order with the courier unless it already has a booking.

        Used right after creation and as the manual retry for orders whose
        first booking failed. Cancelled orders are refused.
        """
        order_id = str(order_id)
        with self._locks.hold(order_id):
            order = self.repository.get(order_id)
            if order.is_cancelled:
                raise AlreadyCancelled("Shipment booking")
            if order.has_shipment_booking:
                return ShipmentBooking(
                    fulfillment_order_id=order.fulfillment_order_id,
                    fulfillment_shipment_id=order.fulfillment_shipment_id,
                    awb_code=order.awb_code,
                )

            try:
                result = self.carrier.create_shipment(order.to_summary())
            except Exception as exc:
                logger.exception("Shipment booking failed", order_id=order_id)
                result = FulfillmentFailure(reason=f"{type(exc).__name__}: {exc}")

            if isinstance(result, FulfillmentFailure):
                logger.error("Shipment booking failed", order_id=order_id, error=result.reason)
                self._report_booking_failure(order_id, result.reason)
                return result

            current_domain.process(
                RecordShipmentBooking(
                    order_id=order_id,
                    fulfillment_order_id=result.fulfillment_order_id,
                    fulfillment_shipment_id=result.fulfillment_shipment_id,
                    awb_code=result.awb_code,
                ),
                asynchronous=False,
            )
            logger.info(
                "Shipment booked",
                order_id=order_id,
                fulfillment_order_id=result.fulfillment_order_id,
                awb_code=result.awb_code,
            )
            return result

    def _report_booking_failure(self, order_id: str, reason: str) -> None:
        get_ops_channel().alert(
            "Shipment booking failed",
            "The order was placed but could not be booked with the courier. Book it manually.",
            {"order_id": order_id, "reason": reason},
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, order_id: str, reason: str) -> Order:
        """Cancel an order that has not shipped.

        The local cancellation is decided and stored first. The courier is
        then asked to drop its shipment; a refusal there is logged and
        reported but the order stays cancelled.
        """
        order_id = str(order_id)
        with self._locks.hold(order_id):
            current_domain.process(CancelOrder(order_id=order_id, reason=reason), asynchronous=False)
            order = self.repository.get(order_id)
            logger.info("Order cancelled", order_id=order_id, reason=order.cancellation_reason)

            if order.fulfillment_order_id:
                self._cancel_with_courier(order)
            return order

    def _cancel_with_courier(self, order: Order) -> None:
        try:
            accepted = self.carrier.cancel_shipment(order.fulfillment_order_id)
        except Exception:
            logger.exception(
                "Courier cancellation failed",
                order_id=str(order.id),
                fulfillment_order_id=order.fulfillment_order_id,
            )
            accepted = False

        if not accepted:
            logger.warning(
                "Courier cancellation failed",
                order_id=str(order.id),
                fulfillment_order_id=order.fulfillment_order_id,
            )
            get_ops_channel().alert(
                "Courier cancellation failed",
                "The order is cancelled locally but the courier still has the shipment.",
                {"order_id": str(order.id), "fulfillment_order_id": order.fulfillment_order_id},
            )

    # -------------------------------------------------------------------
    # Tracking, payment and reconciliation
    # -------------------------------------------------------------------
    def update_tracking(self, order_id: str, status: str, tracking_id: str | None = None) -> Order:
        """Admin tracking update, held to the same rules as reconciliation."""
        order_id = str(order_id)
        with self._locks.hold(order_id):
            changed = current_domain.process(
                UpdateTracking(order_id=order_id, status=status, tracking_id=tracking_id),
                asynchronous=False,
            )
            order = self.repository.get(order_id)
            logger.info(
                "Tracking updated" if changed else "Tracking update skipped",
                order_id=order_id,
                status=order.tracking_status,
                tracking_id=order.tracking_id,
            )
            return order

    def record_payment(self, order_id: str, status: str, payment_reference: str | None = None) -> Order:
        order_id = str(order_id)
        with self._locks.hold(order_id):
            current_domain.process(
                RecordPaymentStatus(order_id=order_id, status=status, payment_reference=payment_reference),
                asynchronous=False,
            )
            return self.repository.get(order_id)

    def sync(self, order_id: str) -> SyncResult:
        return self.reconciler.sync(order_id)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        return self.repository.get(str(order_id))

    def list_orders(self, limit: int = 100) -> list[Order]:
        return self.repository.list_recent(limit=limit)

    def orders_for_mobile(self, mobile: str) -> list[Order]:
        return self.repository.find_by_mobile(mobile)

    def orders_for_customer(self, user_id: str, email: str | None = None) -> list[Order]:
        return self.repository.find_for_customer(user_id, email=email)

    def check_serviceability(self, pincode: str) -> tuple[bool, dict | None]:
        """Whether the courier delivers to ``pincode``. Never raises."""
        try:
            return self.carrier.check_serviceability(pincode)
        except Exception:
            logger.exception("Serviceability check failed", pincode=pincode)
            return False, None
