"""Tracking updates: command and handler.

Used by admins setting the status by hand and by courier reconciliation;
both go through the aggregate's transition checks against the stored order.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, TrackingSource


@ordering.command(part_of="Order")
class UpdateTracking:
    """Move an order along the delivery pipeline."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    tracking_id = String(max_length=255)
    source = String(
        max_length=20,
        choices=TrackingSource,
        default=TrackingSource.ADMIN.value,
    )


@ordering.command_handler(part_of=Order)
class UpdateTrackingHandler:
    @handle(UpdateTracking)
    def update_tracking(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.update_tracking(
            command.status,
            tracking_id=command.tracking_id,
            source=TrackingSource(command.source),
        )
        if changed:
            repo.add(order)
        return changed
