"""Shipment booking: command and handler.

Records the courier's identifiers on the order after a successful booking.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordShipmentBooking:
    """Store the external order, shipment and AWB identifiers."""

    order_id = Identifier(required=True)
    fulfillment_order_id = String(required=True, max_length=255)
    fulfillment_shipment_id = String(max_length=255)
    awb_code = String(max_length=255)


@ordering.command_handler(part_of=Order)
class ShipmentBookingHandler:
    @handle(RecordShipmentBooking)
    def record_shipment_booking(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_shipment_booking(
            fulfillment_order_id=command.fulfillment_order_id,
            fulfillment_shipment_id=command.fulfillment_shipment_id,
            awb_code=command.awb_code,
        )
        repo.add(order)
