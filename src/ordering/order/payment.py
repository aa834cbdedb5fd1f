"""Payment status callback: command and handler.

Only ``payment_status`` and the payment reference change here; tracking is
untouched.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPaymentStatus:
    """Apply a settlement or failure reported by the payment gateway."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    payment_reference = String(max_length=255)


@ordering.command_handler(part_of=Order)
class PaymentStatusHandler:
    @handle(RecordPaymentStatus)
    def record_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.record_payment(command.status, payment_reference=command.payment_reference):
            repo.add(order)
