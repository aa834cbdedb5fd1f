"""Configurable fake payment gateway for development and testing.

This adapter simulates an online gateway without any external calls. It can
be configured at runtime to be unreachable or to decline payments, making it
useful for:
- Automated tests with predictable outcomes
- Development without real gateway credentials

A success signal is trusted when it carries ``signature="test-signature"``.
"""

from uuid import uuid4

from payments.gateway.port import (
    CheckoutSession,
    PaymentDeclined,
    PaymentGateway,
    PaymentGatewayUnreachable,
    PaymentSignatureMismatch,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"

    def __init__(self) -> None:
        self.reachable: bool = True
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined"
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Payment declined",
        reachable: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.reachable = reachable

    def start_checkout(
        self,
        reference: str,
        amount_minor: int,
        customer: dict,
        return_url: str,
        currency: str = "INR",
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "start_checkout",
                "reference": reference,
                "amount_minor": amount_minor,
                "currency": currency,
            }
        )
        if not self.reachable:
            raise PaymentGatewayUnreachable("Fake gateway is unreachable", reference=reference)

        return CheckoutSession(
            gateway=self.name,
            reference=reference,
            amount_minor=amount_minor,
            currency=currency,
            params={"fake_order_id": f"fake_order_{uuid4().hex[:12]}"},
            redirect_url=f"{return_url}?reference={reference}",
        )

    def verify_payment(self, session: dict, signal: dict) -> str:
        self.calls.append({"method": "verify_payment", "signal": signal})
        if signal.get("signature") != "test-signature":
            raise PaymentSignatureMismatch("Fake gateway signature mismatch")
        if not self.should_succeed:
            raise PaymentDeclined(self.failure_reason)
        return signal.get("payment_reference") or f"fake_pay_{uuid4().hex[:12]}"
