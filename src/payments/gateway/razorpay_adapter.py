"""Razorpay hosted checkout adapter.

A Razorpay order is created server-side for every checkout attempt, so the
payment that comes back can be tied to it. The hosted checkout returns
``razorpay_order_id``, ``razorpay_payment_id`` and ``razorpay_signature``;
the signature is an HMAC-SHA256 of ``"<order_id>|<payment_id>"`` keyed with
the account secret.
"""

import hashlib
import hmac

import httpx
import structlog

from payments.gateway.port import (
    CheckoutSession,
    PaymentGateway,
    PaymentGatewayUnreachable,
    PaymentSignatureMismatch,
)

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com"
ORDERS_PATH = "/v1/orders"


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        store_name: str = "Storefront",
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.store_name = store_name
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def _create_order(self, reference: str, amount_minor: int, currency: str) -> str:
        try:
            response = self._http.post(
                ORDERS_PATH,
                json={"amount": amount_minor, "currency": currency, "receipt": reference},
                auth=(self.key_id, self.key_secret),
            )
        except httpx.RequestError as exc:
            raise PaymentGatewayUnreachable(f"Razorpay unreachable: {exc}", reference=reference) from exc

        if response.status_code != 200:
            raise PaymentGatewayUnreachable(
                f"Razorpay rejected order creation (HTTP {response.status_code})",
                reference=reference,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentGatewayUnreachable("Razorpay order response is not JSON", reference=reference) from exc
        order_id = body.get("id") if isinstance(body, dict) else None
        if not order_id:
            raise PaymentGatewayUnreachable("Razorpay order response carried no id", reference=reference)
        return order_id

    def start_checkout(
        self,
        reference: str,
        amount_minor: int,
        customer: dict,
        return_url: str,
        currency: str = "INR",
    ) -> CheckoutSession:
        razorpay_order_id = self._create_order(reference, amount_minor, currency)
        logger.info("Razorpay order created", reference=reference, razorpay_order_id=razorpay_order_id)

        return CheckoutSession(
            gateway=self.name,
            reference=reference,
            amount_minor=amount_minor,
            currency=currency,
            params={
                "key": self.key_id,
                "amount": amount_minor,
                "currency": currency,
                "name": self.store_name,
                "description": f"Order {reference}",
                "order_id": razorpay_order_id,
                "callback_url": return_url,
                "prefill": {
                    "name": customer.get("name"),
                    "email": customer.get("email"),
                    "contact": customer.get("mobile"),
                },
            },
        )

    def verify_payment(self, session: dict, signal: dict) -> str:
        order_id = signal.get("razorpay_order_id")
        payment_id = signal.get("razorpay_payment_id")
        signature = signal.get("razorpay_signature")
        if not (order_id and payment_id and signature):
            raise PaymentSignatureMismatch("Razorpay completion is missing order, payment or signature")
        if order_id != session.get("order_id"):
            raise PaymentSignatureMismatch("Razorpay completion is for a different order")

        expected = payment_signature(order_id, payment_id, self.key_secret)
        if not hmac.compare_digest(expected, signature):
            raise PaymentSignatureMismatch("Razorpay signature mismatch")
        return payment_id
