"""Courier adapter abstraction: pluggable fulfillment integration."""

import os
import threading
from datetime import timedelta

from fulfillment.carrier.port import FulfillmentClient

_carrier_instance: FulfillmentClient | None = None
_carrier_lock = threading.Lock()


def _build_carrier(adapter: str) -> FulfillmentClient:
    if adapter == "fake":
        from fulfillment.carrier.fake_adapter import FakeCarrier

        return FakeCarrier()
    if adapter == "shiprocket":
        from fulfillment.carrier.shiprocket_adapter import DEFAULT_BASE_URL, ShiprocketCarrier

        return ShiprocketCarrier(
            email=os.environ["SHIPROCKET_EMAIL"],
            password=os.environ["SHIPROCKET_PASSWORD"],
            base_url=os.environ.get("SHIPROCKET_BASE_URL", DEFAULT_BASE_URL),
            pickup_location=os.environ.get("SHIPROCKET_PICKUP_LOCATION", "Home"),
            pickup_pincode=os.environ.get("SHIPROCKET_PICKUP_PINCODE"),
            fallback_email=os.environ.get("SHIPROCKET_FALLBACK_EMAIL", "orders@example.com"),
            token_ttl=timedelta(hours=float(os.environ.get("SHIPROCKET_TOKEN_TTL_HOURS", "24"))),
        )
    raise ValueError(f"Unknown courier adapter: {adapter}")


def get_carrier() -> FulfillmentClient:
    """Return the configured courier adapter (singleton).

    Uses FakeCarrier by default. In production, set ``COURIER_ADAPTER`` to
    ``shiprocket`` and provide the ``SHIPROCKET_*`` credentials. Concurrent
    first calls share one instance.
    """
    global _carrier_instance
    if _carrier_instance is None:
        with _carrier_lock:
            if _carrier_instance is None:
                _carrier_instance = _build_carrier(os.environ.get("COURIER_ADAPTER", "fake"))
    return _carrier_instance


def set_carrier(carrier: FulfillmentClient) -> None:
    """Override the active courier adapter (useful for tests)."""
    global _carrier_instance
    with _carrier_lock:
        _carrier_instance = carrier


def reset_carrier() -> None:
    """Reset the courier singleton (useful for testing)."""
    global _carrier_instance
    with _carrier_lock:
        _carrier_instance = None
