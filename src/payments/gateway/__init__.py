"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- RazorpayGateway (hosted checkout) and PhonePeGateway (signed redirect)
  for production, selected with ``PAYMENT_GATEWAY``
"""

import os
import threading

from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None
_gateway_lock = threading.Lock()


def _build_gateway(name: str) -> PaymentGateway:
    if name == "fake":
        from payments.gateway.fake_adapter import FakeGateway

        return FakeGateway()
    if name == "razorpay":
        from payments.gateway.razorpay_adapter import RazorpayGateway

        return RazorpayGateway(
            key_id=os.environ["RAZORPAY_KEY_ID"],
            key_secret=os.environ["RAZORPAY_KEY_SECRET"],
        )
    if name == "phonepe":
        from payments.gateway.phonepe_adapter import PhonePeGateway

        return PhonePeGateway(
            merchant_id=os.environ["PHONEPE_MERCHANT_ID"],
            salt_key=os.environ["PHONEPE_SALT_KEY"],
            salt_index=os.environ.get("PHONEPE_SALT_INDEX", "1"),
            env=os.environ.get("PHONEPE_ENV", "UAT"),
        )
    raise ValueError(f"Unknown payment gateway: {name}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        with _gateway_lock:
            if _current_gateway is None:
                _current_gateway = _build_gateway(os.environ.get("PAYMENT_GATEWAY", "fake"))
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    with _gateway_lock:
        _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    with _gateway_lock:
        _current_gateway = None
