"""Fake courier adapter: deterministic courier for testing and development.

Generates mock order, shipment and AWB identifiers and serves whatever
tracking status a test sets for an AWB. Configurable success/failure
behavior for integration testing.
"""

from uuid import uuid4

from fulfillment.carrier.port import FulfillmentClient, FulfillmentFailure, ShipmentBooking


class FakeCarrier(FulfillmentClient):
    """Fake courier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Courier unavailable"
        self.raise_on_create: Exception | None = None
        self.assign_awb = True
        self.tracking: dict[str, str | None] = {}
        self.bookings: list[dict] = []
        self.cancelled: list[str] = []
        self.tracking_calls: list[str] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Courier unavailable",
        assign_awb: bool = True,
    ):
        """Configure the fake courier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.assign_awb = assign_awb

    def set_status(self, awb_code: str, status: str | None) -> None:
        """Set the status the courier reports for an AWB."""
        self.tracking[awb_code] = status

    def create_shipment(self, order: dict) -> ShipmentBooking | FulfillmentFailure:
        if self.raise_on_create is not None:
            raise self.raise_on_create
        self.bookings.append(order)
        if not self.should_succeed:
            return FulfillmentFailure(reason=self.failure_reason)

        awb_code = f"FAKE{uuid4().hex[:10].upper()}" if self.assign_awb else None
        if awb_code:
            self.tracking.setdefault(awb_code, "NEW")
        return ShipmentBooking(
            fulfillment_order_id=str(uuid4().int)[:9],
            fulfillment_shipment_id=str(uuid4().int)[:9],
            awb_code=awb_code,
        )

    def get_tracking(self, awb_code: str) -> str | None:
        self.tracking_calls.append(awb_code)
        if not self.should_succeed:
            return None
        return self.tracking.get(awb_code)

    def cancel_shipment(self, fulfillment_order_id: str) -> bool:
        if not self.should_succeed:
            return False
        self.cancelled.append(fulfillment_order_id)
        return True

    def check_serviceability(self, pincode: str) -> tuple[bool, dict | None]:
        if not self.should_succeed:
            return False, None
        return True, {"status": 200, "delivery_postcode": pincode}
