"""Shiprocket adapter: the production courier integration.

Talks to Shiprocket's external API over httpx. Authentication goes through a
``CourierSession`` owned by the adapter instance. A 401 on any call drops the
token that was used, logs in again and retries the call exactly once; a
second 401 is surfaced as ``CourierAuthError``.

Only ``CourierError`` subclasses leave ``_request``. The public methods turn
them into the port's non-raising results.
"""

from datetime import timedelta

import httpx
import structlog

from fulfillment.carrier.payload import DEFAULT_PACKAGE, build_shipment_payload
from fulfillment.carrier.port import (
    CourierAuthError,
    CourierError,
    FulfillmentClient,
    FulfillmentFailure,
    ShipmentBooking,
)
from fulfillment.carrier.session import CourierSession

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://apiv2.shiprocket.in"

LOGIN_PATH = "/v1/external/auth/login"
CREATE_ORDER_PATH = "/v1/external/orders/create/adhoc"
CANCEL_ORDER_PATH = "/v1/external/orders/cancel"
TRACK_AWB_PATH = "/v1/external/courier/track/awb/{awb_code}"
SERVICEABILITY_PATH = "/v1/external/courier/serviceability"


class ShiprocketCarrier(FulfillmentClient):
    def __init__(
        self,
        email: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        pickup_location: str = "Home",
        pickup_pincode: str | None = None,
        fallback_email: str = "orders@example.com",
        token_ttl: timedelta = timedelta(hours=24),
        http_client: httpx.Client | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.email = email
        self.password = password
        self.pickup_location = pickup_location
        self.pickup_pincode = pickup_pincode
        self.fallback_email = fallback_email
        # An injected client must carry its own base_url
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self.session = CourierSession(self._login, ttl=token_ttl)

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _login(self) -> str:
        try:
            response = self._http.post(LOGIN_PATH, json={"email": self.email, "password": self.password})
        except httpx.RequestError as exc:
            raise CourierError(f"Courier unreachable during login: {exc}") from exc

        if response.status_code != 200:
            raise CourierAuthError(f"Courier login failed with HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise CourierAuthError("Courier login response is not JSON") from exc
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise CourierAuthError("Courier login response carried no token")
        return token

    def _send(self, method: str, path: str, token: str, **kwargs) -> httpx.Response:
        try:
            return self._http.request(
                method,
                path,
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
        except httpx.RequestError as exc:
            raise CourierError(f"Courier unreachable: {exc}") from exc

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        token, generation = self.session.token()
        response = self._send(method, path, token, **kwargs)

        if response.status_code == 401:
            logger.info("Courier rejected token, logging in again", path=path, generation=generation)
            self.session.invalidate(generation)
            token, _ = self.session.token()
            response = self._send(method, path, token, **kwargs)
            if response.status_code == 401:
                raise CourierAuthError(f"Courier rejected credentials for {path} after re-login")

        if response.status_code >= 400:
            raise CourierError(f"Courier answered HTTP {response.status_code} for {path}: {response.text[:200]}")
        return response

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
    def create_shipment(self, order: dict) -> ShipmentBooking | FulfillmentFailure:
        payload = build_shipment_payload(
            order,
            pickup_location=self.pickup_location,
            fallback_email=self.fallback_email,
        )
        try:
            data = self._request("POST", CREATE_ORDER_PATH, json=payload).json()
        except (CourierError, ValueError) as exc:
            logger.error("Courier booking failed", order_id=order["id"], error=str(exc))
            return FulfillmentFailure(reason=str(exc))

        external_order_id = data.get("order_id") if isinstance(data, dict) else None
        if not external_order_id:
            reason = f"Courier response had no order_id: {str(data)[:200]}"
            logger.error("Courier booking failed", order_id=order["id"], error=reason)
            return FulfillmentFailure(reason=reason)

        shipment_id = data.get("shipment_id")
        booking = ShipmentBooking(
            fulfillment_order_id=str(external_order_id),
            fulfillment_shipment_id=str(shipment_id) if shipment_id else None,
            awb_code=data.get("awb_code") or None,
        )
        logger.info(
            "Courier booking created",
            order_id=order["id"],
            fulfillment_order_id=booking.fulfillment_order_id,
            awb_code=booking.awb_code,
        )
        return booking

    def get_tracking(self, awb_code: str) -> str | None:
        try:
            data = self._request("GET", TRACK_AWB_PATH.format(awb_code=awb_code)).json()
        except (CourierError, ValueError) as exc:
            logger.warning("Courier tracking unavailable", awb_code=awb_code, error=str(exc))
            return None
        return _latest_status(data)

    def cancel_shipment(self, fulfillment_order_id: str) -> bool:
        try:
            self._request("POST", CANCEL_ORDER_PATH, json={"ids": [fulfillment_order_id]})
        except CourierError as exc:
            logger.error(
                "Courier cancellation failed",
                fulfillment_order_id=fulfillment_order_id,
                error=str(exc),
            )
            return False
        logger.info("Courier cancellation accepted", fulfillment_order_id=fulfillment_order_id)
        return True

    def check_serviceability(self, pincode: str) -> tuple[bool, dict | None]:
        params = {
            "pickup_postcode": self.pickup_pincode,
            "delivery_postcode": pincode,
            "weight": DEFAULT_PACKAGE["weight"],
            "cod": 1,
        }
        try:
            data = self._request("GET", SERVICEABILITY_PATH, params=params).json()
        except (CourierError, ValueError) as exc:
            logger.warning("Serviceability check failed", pincode=pincode, error=str(exc))
            return False, None
        if not isinstance(data, dict):
            return False, None
        return data.get("status") == 200, data

    def close(self) -> None:
        self._http.close()


def _latest_status(data) -> str | None:
    """Pull the current status string out of a tracking response.

    The response nests it as ``tracking_data.shipment_track[0].current_status``;
    the newest scan activity is used when that is missing.
    """
    if not isinstance(data, dict):
        return None
    tracking = data.get("tracking_data") or {}
    if not isinstance(tracking, dict):
        return None

    shipments = tracking.get("shipment_track") or []
    if shipments and isinstance(shipments[0], dict) and shipments[0].get("current_status"):
        return str(shipments[0]["current_status"])

    activities = tracking.get("shipment_track_activities") or []
    if activities and isinstance(activities[0], dict):
        status = activities[0].get("sr-status-label") or activities[0].get("activity")
        return str(status) if status else None
    return None
