"""Operational alert port: where pipeline failures are reported.

Fulfillment and reconciliation failures are absorbed by the order pipeline
instead of reaching the customer. They are posted here so someone on the
operations side can act on them (book the shipment by hand, chase the
courier).
"""

from abc import ABC, abstractmethod


class OpsChannelPort(ABC):
    """Abstract interface for operational alert adapters."""

    @abstractmethod
    def alert(
        self,
        subject: str,
        message: str,
        context: dict | None = None,
    ) -> dict:
        """Post an alert.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
