"""Courier API session: a cached bearer token with explicit expiry.

One session belongs to one client instance and is shared by every request
that client makes, across threads. Logins happen under a lock, so callers
that find the token missing or expired wait for a single refresh instead of
each logging in.

A caller whose request was rejected invalidates the token it *used*, named by
the generation returned alongside it. If another caller has already refreshed
the token in the meantime, the invalidation is ignored and the fresh token is
kept. Combined with the client's one-retry rule this bounds every request to
at most one re-login.
"""

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CourierSession:
    def __init__(
        self,
        login: Callable[[], str],
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._login = login
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def expires_at(self) -> datetime | None:
        return self._expires_at

    def is_valid(self) -> bool:
        return self._token is not None and self._expires_at is not None and self._clock() < self._expires_at

    def token(self) -> tuple[str, int]:
        """Return a usable token and its generation, logging in if needed."""
        with self._lock:
            if not self.is_valid():
                self._refresh()
            return self._token, self._generation

    def invalidate(self, generation: int) -> bool:
        """Drop the token of ``generation`` if it is still the current one."""
        with self._lock:
            if generation != self._generation or self._token is None:
                return False
            self._token = None
            self._expires_at = None
            logger.info("Courier token invalidated", generation=generation)
            return True

    def _refresh(self) -> None:
        # Caller holds the lock
        token = self._login()
        self._token = token
        self._expires_at = self._clock() + self._ttl
        self._generation += 1
        logger.info(
            "Courier login succeeded",
            generation=self._generation,
            expires_at=self._expires_at.isoformat(),
        )
