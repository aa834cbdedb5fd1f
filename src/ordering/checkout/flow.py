"""Checkout flow: from a cart to an order, through the chosen way of paying.

Cash on delivery places the order straight away with payment pending. Online
payment only starts a gateway flow: the priced draft is parked in a
``CheckoutAttempt`` and the order is placed when a verified success signal
comes back through ``complete``. Failed or cancelled payments never create
an order; the customer is told to try again.
"""

import os
from dataclasses import dataclass
from decimal import InvalidOperation
from uuid import uuid4

import structlog
from payments.gateway import get_gateway
from payments.gateway.deferred import CASH_ON_DELIVERY
from payments.gateway.port import (
    CheckoutSession,
    PaymentDeclined,
    PaymentGateway,
    PaymentGatewayUnreachable,
    PaymentSignatureMismatch,
    to_minor_units,
)
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.attempt import AttemptStatus, CheckoutAttempt
from ordering.checkout.pricing import PaymentMethod, PriceBreakdown, cart_total, price_cart
from ordering.order.creation import validate_order_draft
from ordering.order.locking import OrderLocks, order_locks
from ordering.order.orchestrator import OrderOrchestrator
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

DEFAULT_STOREFRONT_URL = "http://localhost:8000"


@dataclass(frozen=True)
class CheckoutOutcome:
    payment_method: PaymentMethod
    pricing: PriceBreakdown
    order: Order | None = None
    session: CheckoutSession | None = None


def new_reference() -> str:
    return f"CHK{uuid4().hex[:16].upper()}"


class CheckoutService:
    def __init__(
        self,
        orchestrator: OrderOrchestrator | None = None,
        gateway: PaymentGateway | None = None,
        storefront_url: str | None = None,
        locks: OrderLocks = order_locks,
    ) -> None:
        self.orchestrator = orchestrator or OrderOrchestrator()
        self._gateway = gateway
        self.storefront_url = (storefront_url or os.environ.get("STOREFRONT_BASE_URL", DEFAULT_STOREFRONT_URL)).rstrip(
            "/"
        )
        self._locks = locks

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    def return_url(self, reference: str) -> str:
        return f"{self.storefront_url}/checkout/{reference}/complete"

    def price(self, draft: dict, payment_method: PaymentMethod) -> tuple[dict, PriceBreakdown | None]:
        """Price the cart and validate the draft that would become the order."""
        items = draft.get("items") or []
        try:
            pricing = price_cart(cart_total(items), payment_method)
        except (KeyError, TypeError, ValueError, InvalidOperation):
            pricing = None

        priced = {**draft, "total_amount": float(pricing.final_total) if pricing else None}
        validate_order_draft(
            customer=priced.get("customer"),
            address=priced.get("address"),
            items=items,
            total_amount=priced["total_amount"],
            payment_status="pending",
        )
        return priced, pricing

    def start_checkout(self, draft: dict, payment_method) -> CheckoutOutcome:
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]}) from None

        priced, pricing = self.price(draft, method)

        if method is PaymentMethod.COD:
            order = self.orchestrator.create_order({**priced, "payment_status": CASH_ON_DELIVERY.settle()})
            return CheckoutOutcome(payment_method=method, pricing=pricing, order=order)

        gateway = self.gateway
        reference = new_reference()
        attempt = CheckoutAttempt.start(
            reference=reference,
            gateway=gateway.name,
            draft=priced,
            amount_minor=to_minor_units(pricing.final_total),
        )
        repo = current_domain.repository_for(CheckoutAttempt)
        logger.info(
            "Payment attempt started",
            reference=reference,
            gateway=gateway.name,
            amount_minor=attempt.amount_minor,
        )

        try:
            session = gateway.start_checkout(
                reference=reference,
                amount_minor=attempt.amount_minor,
                customer={**(priced.get("customer") or {}), "user_id": priced.get("user_id")},
                return_url=self.return_url(reference),
            )
        except PaymentGatewayUnreachable as exc:
            logger.error("Payment attempt failed", reference=reference, error=exc.message)
            attempt.fail(exc.message)
            repo.add(attempt)
            raise

        attempt.record_params(session.params)
        repo.add(attempt)
        return CheckoutOutcome(payment_method=method, pricing=pricing, session=session)

    def complete(self, reference: str, signal: dict) -> Order:
        """Apply a completion signal for an online checkout attempt.

        ``signal["outcome"]`` is ``success`` (the default), ``cancelled`` or
        ``failed``; the rest of the signal is whatever the gateway sent back.
        """
        outcome = signal.get("outcome") or "success"
        if outcome not in ("success", "cancelled", "failed"):
            raise ValidationError({"outcome": [f"Unknown checkout outcome: {outcome}"]})

        with self._locks.hold(f"checkout:{reference}"):
            repo = current_domain.repository_for(CheckoutAttempt)
            attempt = repo.get(reference)

            if attempt.status == AttemptStatus.COMPLETED.value and outcome == "success":
                logger.info("Duplicate payment completion ignored", reference=reference, order_id=attempt.order_id)
                return self.orchestrator.get_order(attempt.order_id)
            attempt.ensure_initiated()

            if outcome != "success":
                reason = signal.get("reason") or ("Payment cancelled" if outcome == "cancelled" else "Payment failed")
                attempt.fail(reason, cancelled=outcome == "cancelled")
                repo.add(attempt)
                logger.info("Payment attempt failed", reference=reference, outcome=outcome, reason=reason)
                raise PaymentDeclined(reason, reference=reference)

            try:
                payment_reference = self.gateway.verify_payment(attempt.params, signal)
            except PaymentSignatureMismatch as exc:
                logger.warning("Payment signature rejected", reference=reference, error=exc.message)
                raise PaymentSignatureMismatch(exc.message, reference=reference) from exc
            except PaymentDeclined as exc:
                attempt.fail(exc.message)
                repo.add(attempt)
                logger.info("Payment attempt failed", reference=reference, outcome="failed", reason=exc.message)
                raise PaymentDeclined(exc.message, reference=reference) from exc

            draft = {**attempt.draft_data, "payment_status": "paid", "payment_reference": payment_reference}
            order = self.orchestrator.create_order(draft)
            attempt.complete(str(order.id), payment_reference)
            repo.add(attempt)
            logger.info(
                "Payment attempt completed",
                reference=reference,
                order_id=str(order.id),
                payment_reference=payment_reference,
            )
            return order

    def attempt(self, reference: str) -> CheckoutAttempt:
        return current_domain.repository_for(CheckoutAttempt).get(reference)
