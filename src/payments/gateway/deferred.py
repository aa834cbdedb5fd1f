"""Deferred settlement: cash collected by the courier on delivery.

There is no external call and nothing to verify. The order is placed right
away with its payment still pending.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeferredSettlement:
    name: str = "cod"

    def settle(self) -> str:
        """Resolve the payment status an order starts with."""
        return "pending"


CASH_ON_DELIVERY = DeferredSettlement()
