"""PhonePe standard checkout adapter.

Requests are signed: the JSON payload is base64-encoded and the ``X-VERIFY``
header carries ``sha256(base64 + "/pg/v1/pay" + salt_key) + "###" + salt_index``.
The pay API answers with a redirect URL at
``data.instrumentResponse.redirectInfo.url`` that the customer is sent to.

PhonePe's callback posts ``{"response": <base64 json>}`` with an ``X-VERIFY``
of ``sha256(response + salt_key) + "###" + salt_index``. Both are passed in
the completion signal as ``response`` and ``x_verify``.
"""

import base64
import hashlib
import hmac
import json

import httpx
import structlog

from payments.gateway.port import (
    CheckoutSession,
    PaymentDeclined,
    PaymentGateway,
    PaymentGatewayUnreachable,
    PaymentSignatureMismatch,
)

logger = structlog.get_logger(__name__)

UAT_URL = "https://api-preprod.phonepe.com/apis/pg-sandbox/pg/v1/pay"
PROD_URL = "https://api.phonepe.com/apis/hermes/pg/v1/pay"
PAY_ENDPOINT = "/pg/v1/pay"

SUCCESS_CODE = "PAYMENT_SUCCESS"


def checksum(value: str, salt_key: str, salt_index: str) -> str:
    digest = hashlib.sha256((value + salt_key).encode()).hexdigest()
    return f"{digest}###{salt_index}"


class PhonePeGateway(PaymentGateway):
    name = "phonepe"

    def __init__(
        self,
        merchant_id: str,
        salt_key: str,
        salt_index: str = "1",
        env: str = "UAT",
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.merchant_id = merchant_id
        self.salt_key = salt_key
        self.salt_index = str(salt_index)
        self.pay_url = PROD_URL if env.upper() == "PROD" else UAT_URL
        self._http = http_client or httpx.Client(timeout=timeout)

    def build_request(self, reference: str, amount_minor: int, customer: dict, return_url: str) -> tuple[str, str]:
        """Return the base64 request body and its ``X-VERIFY`` checksum."""
        payload = {
            "merchantId": self.merchant_id,
            "merchantTransactionId": reference,
            "merchantUserId": customer.get("user_id") or customer.get("mobile"),
            "amount": amount_minor,
            "redirectUrl": return_url,
            "redirectMode": "REDIRECT",
            "callbackUrl": return_url,
            "mobileNumber": customer.get("mobile"),
            "paymentInstrument": {"type": "PAY_PAGE"},
        }
        encoded = base64.b64encode(json.dumps(payload).encode()).decode()
        return encoded, checksum(encoded + PAY_ENDPOINT, self.salt_key, self.salt_index)

    def start_checkout(
        self,
        reference: str,
        amount_minor: int,
        customer: dict,
        return_url: str,
        currency: str = "INR",
    ) -> CheckoutSession:
        encoded, x_verify = self.build_request(reference, amount_minor, customer, return_url)
        try:
            response = self._http.post(
                self.pay_url,
                json={"request": encoded},
                headers={"X-VERIFY": x_verify, "accept": "application/json"},
            )
        except httpx.RequestError as exc:
            logger.error("PhonePe unreachable", reference=reference, error=str(exc))
            raise PaymentGatewayUnreachable(f"PhonePe unreachable: {exc}", reference=reference) from exc

        if response.status_code >= 400:
            raise PaymentGatewayUnreachable(
                f"PhonePe API error (HTTP {response.status_code}): {response.text[:200]}",
                reference=reference,
            )

        try:
            body = response.json()
            redirect_url = body["data"]["instrumentResponse"]["redirectInfo"]["url"]
        except (ValueError, KeyError, TypeError) as exc:
            raise PaymentGatewayUnreachable("PhonePe response carried no redirect URL", reference=reference) from exc
        if not body.get("success") or not redirect_url:
            raise PaymentGatewayUnreachable(body.get("message") or "Payment initiation failed", reference=reference)

        return CheckoutSession(
            gateway=self.name,
            reference=reference,
            amount_minor=amount_minor,
            currency=currency,
            params={"merchantTransactionId": reference},
            redirect_url=redirect_url,
        )

    def verify_payment(self, session: dict, signal: dict) -> str:
        encoded = signal.get("response")
        x_verify = signal.get("x_verify")
        if not (encoded and x_verify):
            raise PaymentSignatureMismatch("PhonePe completion is missing response or X-VERIFY")
        if not hmac.compare_digest(checksum(encoded, self.salt_key, self.salt_index), x_verify):
            raise PaymentSignatureMismatch("PhonePe checksum mismatch")

        try:
            decoded = json.loads(base64.b64decode(encoded))
        except ValueError as exc:
            raise PaymentSignatureMismatch("PhonePe response is not valid base64 JSON") from exc

        data = decoded.get("data") or {}
        if data.get("merchantTransactionId") != session.get("merchantTransactionId"):
            raise PaymentSignatureMismatch("PhonePe completion is for a different transaction")
        if decoded.get("code") != SUCCESS_CODE:
            raise PaymentDeclined(decoded.get("message") or decoded.get("code") or "Payment failed")
        return data.get("transactionId") or session["merchantTransactionId"]
