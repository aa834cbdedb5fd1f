"""Fulfillment client port: abstract interface for courier integrations.

The ordering domain programs against this port; adapters are swapped via
configuration. Booking never raises to the caller: it returns either a
``ShipmentBooking`` or a ``FulfillmentFailure`` so order creation can treat
the courier as best-effort.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class CourierError(Exception):
    """The courier API was unreachable or answered with an error."""


class CourierAuthError(CourierError):
    """Credentials were rejected, including after one fresh login."""


@dataclass(frozen=True)
class ShipmentBooking:
    """External identifiers returned by a successful booking."""

    fulfillment_order_id: str
    fulfillment_shipment_id: str | None = None
    awb_code: str | None = None


@dataclass(frozen=True)
class FulfillmentFailure:
    """A booking that did not go through. Logged and reported, never raised."""

    reason: str


class FulfillmentClient(ABC):
    """Abstract interface for courier adapters."""

    @abstractmethod
    def create_shipment(self, order: dict) -> ShipmentBooking | FulfillmentFailure:
        """Book a shipment for an order summary (see ``Order.to_summary``)."""
        ...

    @abstractmethod
    def get_tracking(self, awb_code: str) -> str | None:
        """Latest courier status string for an AWB, or None if unavailable."""
        ...

    @abstractmethod
    def cancel_shipment(self, fulfillment_order_id: str) -> bool:
        """Ask the courier to cancel a booked shipment.

        Returns:
            True if the courier accepted the cancellation, False otherwise.
        """
        ...

    @abstractmethod
    def check_serviceability(self, pincode: str) -> tuple[bool, dict | None]:
        """Whether the courier delivers to a postal code, with the raw answer."""
        ...
