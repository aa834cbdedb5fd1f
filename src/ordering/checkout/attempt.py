"""Checkout attempt: an online payment that has been started but not settled.

The customer leaves for the gateway's page and comes back in a different
request, possibly much later. The attempt keeps the priced draft and the
gateway parameters until the completion signal arrives, and remembers the
order it produced so a repeated success signal does not place a second one.

Attempt lifecycle:
    initiated → completed | failed | cancelled
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


class AttemptStatus(Enum):
    INITIATED = "initiated"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@ordering.aggregate
class CheckoutAttempt:
    reference = Identifier(identifier=True, required=True)
    gateway = String(required=True, max_length=20)
    draft = Text(required=True)  # JSON: priced order draft
    amount_minor = Integer(required=True, min_value=1)
    currency = String(max_length=3, default="INR")
    gateway_params = Text()  # JSON: parameters returned when the flow started
    status = String(
        choices=AttemptStatus,
        default=AttemptStatus.INITIATED.value,
    )
    order_id = Identifier()
    payment_reference = String(max_length=255)
    failure_reason = String(max_length=500)
    created_at = DateTime()
    finished_at = DateTime()

    @classmethod
    def start(cls, reference: str, gateway: str, draft: dict, amount_minor: int, currency: str = "INR"):
        return cls(
            reference=reference,
            gateway=gateway,
            draft=json.dumps(draft),
            amount_minor=amount_minor,
            currency=currency,
            created_at=datetime.now(UTC),
        )

    @property
    def draft_data(self) -> dict:
        return json.loads(self.draft)

    @property
    def params(self) -> dict:
        return json.loads(self.gateway_params) if self.gateway_params else {}

    def ensure_initiated(self) -> None:
        if self.status != AttemptStatus.INITIATED.value:
            raise ValidationError({"status": [f"Checkout attempt is already {self.status}"]})

    def record_params(self, params: dict) -> None:
        self.gateway_params = json.dumps(params)

    def complete(self, order_id: str, payment_reference: str) -> None:
        self.ensure_initiated()
        self.status = AttemptStatus.COMPLETED.value
        self.order_id = order_id
        self.payment_reference = payment_reference
        self.finished_at = datetime.now(UTC)

    def fail(self, reason: str, cancelled: bool = False) -> None:
        self.ensure_initiated()
        self.status = AttemptStatus.CANCELLED.value if cancelled else AttemptStatus.FAILED.value
        self.failure_reason = reason
        self.finished_at = datetime.now(UTC)
