"""Typed transition errors for the Order state machine.

All of them are ``ValidationError`` subclasses so the HTTP layer reports them
as client errors, while callers that need to tell the cases apart (a support
UI choosing a message, for instance) can catch the specific type.
"""

from protean.exceptions import ValidationError


class IllegalTransition(ValidationError):
    """A tracking status change that the state machine does not allow."""

    def __init__(self, current: str, requested: str, message: str):
        self.current = current
        self.requested = requested
        super().__init__({"tracking_status": [message]})


class CancellationTooLate(IllegalTransition):
    """The order has already left the warehouse."""

    def __init__(self, current: str):
        super().__init__(
            current,
            "Cancelled",
            f"Order is already {current} and can no longer be cancelled",
        )


class AlreadyCancelled(IllegalTransition):
    """The order is cancelled; nothing about its tracking may change."""

    def __init__(self, requested: str):
        super().__init__(
            "Cancelled",
            requested,
            "Order is cancelled and cannot be modified",
        )


class BackwardTransition(IllegalTransition):
    """The requested status lies behind the current one."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            current,
            requested,
            f"Cannot move tracking status back from {current} to {requested}",
        )


class PaymentStatusConflict(ValidationError):
    """A payment status change that would undo a settled payment."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__({"payment_status": [f"Cannot change payment status from {current} to {requested}"]})
