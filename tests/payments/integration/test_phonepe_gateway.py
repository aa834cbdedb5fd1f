"""Tests for the PhonePe adapter against a mocked HTTP transport."""

import base64
import hashlib
import json

import httpx
import pytest
from payments.gateway.phonepe_adapter import PROD_URL, UAT_URL, PhonePeGateway, checksum
from payments.gateway.port import PaymentDeclined, PaymentGatewayUnreachable, PaymentSignatureMismatch

CUSTOMER = {"name": "Asha Verma", "mobile": "9876543210", "email": "asha@example.com"}
RETURN_URL = "https://shop.test/checkout/CHK1/complete"
SALT = "salt-key"


def _gateway(handler=None, env="UAT"):
    handler = handler or (lambda r: httpx.Response(500))
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PhonePeGateway(merchant_id="MERCHANTUAT", salt_key=SALT, salt_index="1", env=env, http_client=client)


def _redirect_response(request):
    return httpx.Response(
        200,
        json={
            "success": True,
            "code": "PAYMENT_INITIATED",
            "data": {"instrumentResponse": {"redirectInfo": {"url": "https://phonepe.test/pay/abc"}}},
        },
    )


def _callback(code="PAYMENT_SUCCESS", transaction="CHK1", transaction_id="T2403"):
    body = {
        "success": code == "PAYMENT_SUCCESS",
        "code": code,
        "message": "Your payment is successful." if code == "PAYMENT_SUCCESS" else "Payment failed",
        "data": {"merchantTransactionId": transaction, "transactionId": transaction_id, "amount": 123405},
    }
    encoded = base64.b64encode(json.dumps(body).encode()).decode()
    return {"response": encoded, "x_verify": checksum(encoded, SALT, "1")}


class TestChecksum:
    def test_format(self):
        expected = hashlib.sha256(b"payloadsalt-key").hexdigest() + "###1"
        assert checksum("payload", SALT, "1") == expected

    def test_environment_selects_url(self):
        assert _gateway(env="UAT").pay_url == UAT_URL
        assert _gateway(env="prod").pay_url == PROD_URL


class TestStartCheckout:
    def test_signed_request_and_redirect(self):
        requests = []

        def handler(request):
            requests.append(request)
            return _redirect_response(request)

        session = _gateway(handler).start_checkout("CHK1", 123405, CUSTOMER, RETURN_URL)

        assert session.redirect_url == "https://phonepe.test/pay/abc"
        assert session.params == {"merchantTransactionId": "CHK1"}
        assert session.gateway == "phonepe"

        request = requests[0]
        assert str(request.url) == UAT_URL
        encoded = json.loads(request.content)["request"]
        assert request.headers["X-VERIFY"] == checksum(encoded + "/pg/v1/pay", SALT, "1")
        payload = json.loads(base64.b64decode(encoded))
        assert payload["merchantId"] == "MERCHANTUAT"
        assert payload["merchantTransactionId"] == "CHK1"
        assert payload["amount"] == 123405
        assert payload["redirectUrl"] == RETURN_URL
        assert payload["mobileNumber"] == "9876543210"
        assert payload["paymentInstrument"] == {"type": "PAY_PAGE"}

    def test_api_error(self):
        gateway = _gateway(lambda r: httpx.Response(400, json={"success": False, "code": "BAD_REQUEST"}))
        with pytest.raises(PaymentGatewayUnreachable, match="HTTP 400"):
            gateway.start_checkout("CHK1", 100, CUSTOMER, RETURN_URL)

    def test_missing_redirect(self):
        gateway = _gateway(lambda r: httpx.Response(200, json={"success": True, "data": {}}))
        with pytest.raises(PaymentGatewayUnreachable, match="no redirect URL"):
            gateway.start_checkout("CHK1", 100, CUSTOMER, RETURN_URL)

    def test_unsuccessful_initiation(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "success": False,
                    "message": "Merchant is blocked",
                    "data": {"instrumentResponse": {"redirectInfo": {"url": "https://phonepe.test/x"}}},
                },
            )

        with pytest.raises(PaymentGatewayUnreachable, match="Merchant is blocked"):
            _gateway(handler).start_checkout("CHK1", 100, CUSTOMER, RETURN_URL)

    def test_unreachable(self):
        def refuse(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(PaymentGatewayUnreachable):
            _gateway(refuse).start_checkout("CHK1", 100, CUSTOMER, RETURN_URL)


class TestVerifyPayment:
    def test_success(self):
        assert _gateway().verify_payment({"merchantTransactionId": "CHK1"}, _callback()) == "T2403"

    def test_tampered_response(self):
        signal = _callback()
        signal["x_verify"] = checksum("something else", SALT, "1")
        with pytest.raises(PaymentSignatureMismatch):
            _gateway().verify_payment({"merchantTransactionId": "CHK1"}, signal)

    def test_missing_checksum(self):
        signal = _callback()
        del signal["x_verify"]
        with pytest.raises(PaymentSignatureMismatch):
            _gateway().verify_payment({"merchantTransactionId": "CHK1"}, signal)

    def test_other_transaction(self):
        with pytest.raises(PaymentSignatureMismatch, match="different transaction"):
            _gateway().verify_payment({"merchantTransactionId": "CHK1"}, _callback(transaction="CHK2"))

    def test_failed_payment(self):
        with pytest.raises(PaymentDeclined, match="Payment failed"):
            _gateway().verify_payment({"merchantTransactionId": "CHK1"}, _callback(code="PAYMENT_ERROR"))
