"""Payment gateway port (abstract interface).

Defines the contract that online gateway adapters must implement. A gateway
does two things only: produce the parameters needed to start a hosted or
redirect payment flow, and verify the completion signal that comes back
later, out of band, once the customer has finished on the gateway's side.

Cash on delivery never talks to a gateway; see ``payments.gateway.deferred``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal


class PaymentError(Exception):
    """Base class for payment failures. The customer may retry; no order exists."""

    code = "payment_error"

    def __init__(self, message: str, reference: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reference = reference


class PaymentGatewayUnreachable(PaymentError):
    code = "gateway_unreachable"


class PaymentSignatureMismatch(PaymentError):
    code = "signature_mismatch"


class PaymentDeclined(PaymentError):
    """The customer cancelled the flow or the gateway reported a failure."""

    code = "declined"


@dataclass(frozen=True)
class CheckoutSession:
    """Everything the client needs to hand the customer over to the gateway."""

    gateway: str
    reference: str
    amount_minor: int
    currency: str = "INR"
    params: dict = field(default_factory=dict)
    redirect_url: str | None = None


def to_minor_units(amount) -> int:
    """Convert a rupee amount to paise, rounding half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    """Abstract online payment gateway interface."""

    name: str = "gateway"

    @abstractmethod
    def start_checkout(
        self,
        reference: str,
        amount_minor: int,
        customer: dict,
        return_url: str,
        currency: str = "INR",
    ) -> CheckoutSession:
        """Prepare a payment flow for one checkout attempt.

        ``reference`` is unique per attempt and is echoed back by the
        completion signal. Raises ``PaymentGatewayUnreachable`` when the
        gateway cannot be reached.
        """
        ...

    @abstractmethod
    def verify_payment(self, session: dict, signal: dict) -> str:
        """Verify a success signal and return the gateway's payment reference.

        ``session`` holds the parameters stored when the attempt started.
        Raises ``PaymentSignatureMismatch`` when the signal cannot be trusted
        and ``PaymentDeclined`` when it reports a failed payment.
        """
        ...
