"""FastAPI routes for the Ordering domain: checkout and orders."""

from fastapi import APIRouter, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fulfillment.carrier.port import FulfillmentFailure
from payments.gateway.port import PaymentError
from protean.integrations.fastapi import register_exception_handlers

from ordering.api.schemas import (
    CancelOrderRequest,
    CheckoutRequest,
    CheckoutResponse,
    CompleteCheckoutRequest,
    OrderResponse,
    RecordPaymentRequest,
    ServiceabilityResponse,
    ShipmentResponse,
    SyncResponse,
    UpdateTrackingRequest,
)
from ordering.checkout.flow import CheckoutService
from ordering.domain import ordering
from ordering.order.orchestrator import OrderOrchestrator
from ordering.order.order import CANCELLATION_REASONS

orchestrator = OrderOrchestrator()
checkout_service = CheckoutService(orchestrator=orchestrator)


async def _in_domain(func, *args, **kwargs):
    """Run a blocking orchestrator call on the threadpool inside the domain context.

    Courier and gateway calls go out over synchronous httpx and writes wait on
    per-order locks; the event loop must stay free for other requests.
    """

    def _call():
        with ordering.domain_context():
            return func(*args, **kwargs)

    return await run_in_threadpool(_call)


def register_error_handlers(app: FastAPI) -> None:
    """Protean's handlers (400/404) plus payment failures as 402."""
    register_exception_handlers(app)

    @app.exception_handler(PaymentError)
    async def payment_error_handler(request: Request, exc: PaymentError):  # noqa: ARG001
        return JSONResponse(
            status_code=402,
            content={"error": exc.message, "code": exc.code, "reference": exc.reference, "retryable": True},
        )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def start_checkout(body: CheckoutRequest) -> CheckoutResponse:
    draft = body.model_dump(exclude={"payment_method"})
    outcome = await _in_domain(checkout_service.start_checkout, draft, body.payment_method)

    response = CheckoutResponse(
        payment_method=outcome.payment_method.value,
        pricing=outcome.pricing.as_dict(),
    )
    if outcome.order is not None:
        response.order = OrderResponse(**outcome.order.to_summary())
    if outcome.session is not None:
        response.reference = outcome.session.reference
        response.gateway = outcome.session.gateway
        response.amount_minor = outcome.session.amount_minor
        response.params = outcome.session.params
        response.redirect_url = outcome.session.redirect_url
    return response


@checkout_router.post("/{reference}/complete", response_model=OrderResponse)
async def complete_checkout(reference: str, body: CompleteCheckoutRequest) -> OrderResponse:
    order = await _in_domain(checkout_service.complete, reference, body.model_dump())
    return OrderResponse(**order.to_summary())


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    mobile: str | None = None,
    user_id: str | None = None,
    email: str | None = None,
    limit: int = 100,
) -> list[OrderResponse]:
    """Admin listing, guest lookup by mobile, or a signed-in customer's history."""
    if mobile:
        orders = await _in_domain(orchestrator.orders_for_mobile, mobile)
    elif user_id:
        orders = await _in_domain(orchestrator.orders_for_customer, user_id, email=email)
    else:
        orders = await _in_domain(orchestrator.list_orders, limit=limit)
    return [OrderResponse(**order.to_summary()) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = await _in_domain(orchestrator.get_order, order_id)
    return OrderResponse(**order.to_summary())


@order_router.put("/{order_id}/tracking", response_model=OrderResponse)
async def update_tracking(order_id: str, body: UpdateTrackingRequest) -> OrderResponse:
    order = await _in_domain(orchestrator.update_tracking, order_id, body.status, tracking_id=body.tracking_id)
    return OrderResponse(**order.to_summary())


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> OrderResponse:
    order = await _in_domain(orchestrator.cancel, order_id, body.reason)
    return OrderResponse(**order.to_summary())


@order_router.post("/{order_id}/sync", response_model=SyncResponse)
async def sync_order(order_id: str) -> SyncResponse:
    result = await _in_domain(orchestrator.sync, order_id)
    return SyncResponse(
        order_id=result.order_id,
        applied=result.applied,
        reason=result.reason,
        tracking_status=result.tracking_status,
        external_status=result.external_status,
    )


@order_router.post("/{order_id}/shipment", response_model=ShipmentResponse)
async def book_shipment(order_id: str) -> ShipmentResponse:
    """Manual retry for an order whose courier booking failed."""
    result = await _in_domain(orchestrator.book_shipment, order_id)
    if isinstance(result, FulfillmentFailure):
        return ShipmentResponse(booked=False, reason=result.reason)
    return ShipmentResponse(
        booked=True,
        fulfillment_order_id=result.fulfillment_order_id,
        fulfillment_shipment_id=result.fulfillment_shipment_id,
        awb_code=result.awb_code,
    )


@order_router.put("/{order_id}/payment", response_model=OrderResponse)
async def record_payment(order_id: str, body: RecordPaymentRequest) -> OrderResponse:
    order = await _in_domain(
        orchestrator.record_payment, order_id, body.status, payment_reference=body.payment_reference
    )
    return OrderResponse(**order.to_summary())


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------
reference_router = APIRouter(tags=["reference"])


@reference_router.get("/cancellation-reasons", response_model=list[str])
async def cancellation_reasons() -> list[str]:
    return list(CANCELLATION_REASONS)


@reference_router.get("/serviceability/{pincode}", response_model=ServiceabilityResponse)
async def serviceability(pincode: str) -> ServiceabilityResponse:
    serviceable, _ = await _in_domain(orchestrator.check_serviceability, pincode)
    return ServiceabilityResponse(pincode=pincode, serviceable=serviceable)
