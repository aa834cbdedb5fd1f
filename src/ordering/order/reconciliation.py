"""Courier status reconciliation.

Two separate pieces:

- ``map_external_status`` is a pure lookup from the courier's status
  vocabulary to ``TrackingStatus``. It is total: anything it does not
  recognise maps to ``NO_CHANGE``.
- ``should_apply`` is the monotonicity guard deciding whether a mapped status
  may be written over the order's current one.

``StatusReconciler.sync`` puts them together: it polls the courier for one
order, holds that order's lock while deciding and writing, and writes through
the same commands an admin would use. Courier trouble is logged and reported,
never raised to the caller.
"""

from dataclasses import dataclass

import structlog
from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import FulfillmentClient
from notifications.channel import get_ops_channel
from protean.utils.globals import current_domain

from ordering.order.cancellation import CancelOrder
from ordering.order.locking import OrderLocks, order_locks
from ordering.order.order import (
    CANCELLABLE_STATUSES,
    Order,
    TrackingSource,
    TrackingStatus,
    progress_rank,
)
from ordering.order.tracking import UpdateTracking

logger = structlog.get_logger(__name__)

# Sentinel returned for courier statuses that must not touch the order
NO_CHANGE = None

# Keys are normalised: upper case, single spaces, "_" and "-" read as spaces.
# Exceptions such as UNDELIVERED or LOST are listed explicitly as NO_CHANGE;
# a failed delivery attempt is not progress.
STATUS_MAP: dict[str, TrackingStatus | None] = {
    # Booked with the courier, not yet with the courier's staff
    "NEW": TrackingStatus.PACKED,
    "AWB ASSIGNED": TrackingStatus.PACKED,
    "LABEL GENERATED": TrackingStatus.PACKED,
    "PICKUP SCHEDULED": TrackingStatus.PACKED,
    "PICKUP GENERATED": TrackingStatus.PACKED,
    "PICKUP QUEUED": TrackingStatus.PACKED,
    "MANIFEST GENERATED": TrackingStatus.PACKED,
    "OUT FOR PICKUP": TrackingStatus.PACKED,
    "PACKED": TrackingStatus.PACKED,
    # In the courier network
    "PICKED UP": TrackingStatus.SHIPPED,
    "SHIPPED": TrackingStatus.SHIPPED,
    "IN TRANSIT": TrackingStatus.SHIPPED,
    "REACHED AT DESTINATION HUB": TrackingStatus.SHIPPED,
    "RTO INITIATED": TrackingStatus.SHIPPED,
    "RTO IN TRANSIT": TrackingStatus.SHIPPED,
    # Last mile
    "OUT FOR DELIVERY": TrackingStatus.OUT_FOR_DELIVERY,
    "DELIVERED": TrackingStatus.DELIVERED,
    # Cancelled on the courier's side
    "CANCELED": TrackingStatus.CANCELLED,
    "CANCELLED": TrackingStatus.CANCELLED,
    "CANCELLATION REQUESTED": TrackingStatus.CANCELLED,
    # Exceptions
    "UNDELIVERED": NO_CHANGE,
    "DELAYED": NO_CHANGE,
    "LOST": NO_CHANGE,
    "DAMAGED": NO_CHANGE,
    "MISROUTED": NO_CHANGE,
    "RTO DELIVERED": NO_CHANGE,
}

COURIER_CANCELLATION_REASON = "Cancelled by courier"


def normalize_status(value) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.replace("_", " ").replace("-", " ").upper().split())


def map_external_status(value) -> TrackingStatus | None:
    """Map a courier status string onto a tracking status, or ``NO_CHANGE``."""
    return STATUS_MAP.get(normalize_status(value), NO_CHANGE)


def should_apply(current: TrackingStatus, mapped: TrackingStatus | None) -> tuple[bool, str]:
    """Decide whether ``mapped`` may replace ``current``.

    Returns the decision and a short reason for logging.
    """
    if mapped is NO_CHANGE:
        return False, "unmapped_status"
    if current == TrackingStatus.CANCELLED:
        return False, "order_cancelled"
    if mapped == TrackingStatus.CANCELLED:
        if current in CANCELLABLE_STATUSES:
            return True, "cancelled_by_courier"
        return False, "too_late_to_cancel"
    if progress_rank(mapped) < progress_rank(current):
        return False, "backward_move"
    if mapped == current:
        return False, "already_current"
    return True, "forward"


@dataclass(frozen=True)
class SyncResult:
    order_id: str
    applied: bool
    reason: str
    tracking_status: str
    external_status: str | None = None


class StatusReconciler:
    """Pulls courier tracking for an order and writes forward progress back."""

    def __init__(self, carrier: FulfillmentClient | None = None, locks: OrderLocks = order_locks) -> None:
        self._carrier = carrier
        self._locks = locks

    @property
    def carrier(self) -> FulfillmentClient:
        return self._carrier or get_carrier()

    def sync(self, order_id: str) -> SyncResult:
        order_id = str(order_id)
        with self._locks.hold(order_id):
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            current = order.current_tracking_status

            if not order.awb_code:
                logger.info("Tracking sync skipped", order_id=order_id, reason="no_awb")
                return SyncResult(order_id, False, "no_awb", current.value)

            try:
                external = self.carrier.get_tracking(order.awb_code)
            except Exception as exc:
                logger.exception("Tracking lookup failed", order_id=order_id, awb_code=order.awb_code)
                get_ops_channel().alert(
                    "Tracking sync failed",
                    f"Could not read courier tracking: {exc}",
                    {"order_id": order_id, "awb_code": order.awb_code},
                )
                return SyncResult(order_id, False, "courier_error", current.value)

            if external is None:
                logger.info("Tracking sync skipped", order_id=order_id, reason="tracking_unavailable")
                return SyncResult(order_id, False, "tracking_unavailable", current.value)

            mapped = map_external_status(external)
            apply, reason = should_apply(current, mapped)
            if not apply:
                logger.info(
                    "Tracking sync skipped",
                    order_id=order_id,
                    reason=reason,
                    external_status=external,
                    status=current.value,
                )
                return SyncResult(order_id, False, reason, current.value, external)

            if mapped == TrackingStatus.CANCELLED:
                current_domain.process(
                    CancelOrder(order_id=order_id, reason=f"{COURIER_CANCELLATION_REASON} ({external})"),
                    asynchronous=False,
                )
            else:
                current_domain.process(
                    UpdateTracking(
                        order_id=order_id,
                        status=mapped.value,
                        tracking_id=order.tracking_id or order.awb_code,
                        source=TrackingSource.COURIER.value,
                    ),
                    asynchronous=False,
                )

            logger.info(
                "Tracking reconciled",
                order_id=order_id,
                previous_status=current.value,
                status=mapped.value,
                external_status=external,
            )
            return SyncResult(order_id, True, reason, mapped.value, external)
