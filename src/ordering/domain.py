"""Ordering bounded context: the storefront order lifecycle pipeline.

Turns a priced cart into a persisted Order, hands it to the courier on a
best-effort basis, reconciles delivery status by polling, and enforces the
tracking state machine for admin updates and cancellation.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
