"""
Distributed circuit breaker for calls to out-of-process collaborators.

State lives in Django's cache (Redis in deployment) so every web worker and
Celery worker sees the same view of a failing dependency.

States:
    - CLOSED: Normal operation, calls pass through
    - OPEN: Dependency is failing, calls fail fast
    - HALF_OPEN: Recovery window, a limited number of trial calls pass

Usage:
    from core.circuit_breaker import CircuitBreaker, CircuitOpenError

    ledger_circuit = CircuitBreaker("payment-ledger", failure_threshold=5)

    try:
        verified = ledger_circuit.call(ledger.is_payment_verified, engagement_id)
    except CircuitOpenError:
        ...

Design Notes:
    - The whole circuit state is one cache entry, written back after every
      transition. Concurrent workers may lose an increment under contention,
      which only delays opening by a call or two.
    - If the cache itself is unavailable the circuit fails open.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from django.core.cache import cache

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

logger = logging.getLogger(__name__)

R = TypeVar("R")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitSnapshot:
    """Cached circuit state."""

    state: str = CircuitState.CLOSED.value
    failures: int = 0
    opened_at: float | None = None
    trial_calls: int = 0


class CircuitOpenError(Exception):
    """
    Raised instead of calling through an open circuit.

    Signals that the dependency is considered unavailable, not that a call
    was attempted and failed.
    """

    def __init__(self, name: str, retry_in: int | None = None):
        self.name = name
        self.retry_in = retry_in
        super().__init__(f"Circuit '{name}' is open")


class CircuitBreaker:
    """
    Circuit breaker keyed by name in the Django cache.

    Args:
        name: Unique identifier (e.g. "engagement-directory")
        failure_threshold: Consecutive failures before the circuit opens
        recovery_timeout: Seconds an open circuit waits before allowing trials
        half_open_max_calls: Trial calls allowed while half-open
        cache_ttl: Lifetime of the cached state; must exceed recovery_timeout
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 30,
        half_open_max_calls: int = 1,
        cache_ttl: int = 3600,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls
        self.cache_ttl = cache_ttl
        self._cache_key = f"circuit:{name}"

    def call(self, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        """
        Invoke func through the circuit.

        Raises:
            CircuitOpenError: If the circuit is open
            Exception: Whatever func raises; the failure is recorded first
        """
        if not self.is_available():
            raise CircuitOpenError(self.name, retry_in=self._retry_in())

        try:
            result = func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        self.record_success()
        return result

    def is_available(self) -> bool:
        """
        Check whether a call may go through, consuming a trial slot when half-open.
        """
        try:
            snapshot = self._load()
            state = CircuitState(snapshot.state)

            if state == CircuitState.CLOSED:
                return True

            if state == CircuitState.OPEN:
                if self._recovery_elapsed(snapshot):
                    snapshot.state = CircuitState.HALF_OPEN.value
                    snapshot.trial_calls = 1
                    self._save(snapshot)
                    logger.info(f"Circuit '{self.name}' half-open, allowing trial call")
                    return True
                return False

            if snapshot.trial_calls < self.half_open_max_calls:
                snapshot.trial_calls += 1
                self._save(snapshot)
                return True
            return False

        except Exception as e:
            logger.warning(f"Circuit '{self.name}' cache error, failing open: {e}")
            return True

    def record_success(self) -> None:
        """Close the circuit and clear the failure count."""
        try:
            snapshot = self._load()
            if snapshot.state == CircuitState.HALF_OPEN.value:
                logger.info(f"Circuit '{self.name}' closed after successful trial")
            if snapshot.state != CircuitState.CLOSED.value or snapshot.failures:
                self._save(CircuitSnapshot())
        except Exception as e:
            logger.warning(f"Circuit '{self.name}' failed to record success: {e}")

    def record_failure(self) -> None:
        """Count a failure, opening the circuit at the threshold or on a failed trial."""
        try:
            snapshot = self._load()

            if snapshot.state == CircuitState.HALF_OPEN.value:
                self._open(snapshot)
                logger.warning(f"Circuit '{self.name}' reopened after failed trial")
                return

            snapshot.failures += 1
            if snapshot.failures >= self.failure_threshold:
                self._open(snapshot)
                logger.warning(
                    f"Circuit '{self.name}' opened after {snapshot.failures} failures"
                )
                return

            self._save(snapshot)
        except Exception as e:
            logger.warning(f"Circuit '{self.name}' failed to record failure: {e}")

    def reset(self) -> None:
        """Force the circuit closed. Used by admin tooling and tests."""
        cache.delete(self._cache_key)
        logger.info(f"Circuit '{self.name}' manually reset")

    def get_status(self) -> dict:
        """Current state for health checks and monitoring."""
        snapshot = self._load()
        status = {
            "name": self.name,
            "state": snapshot.state,
            "failure_count": snapshot.failures,
            "failure_threshold": self.failure_threshold,
        }
        retry_in = self._retry_in(snapshot)
        if retry_in is not None:
            status["recovery_in_seconds"] = retry_in
        return status

    def _recovery_elapsed(self, snapshot: CircuitSnapshot) -> bool:
        return (
            snapshot.opened_at is not None
            and time.time() - snapshot.opened_at >= self.recovery_timeout
        )

    def _retry_in(self, snapshot: CircuitSnapshot | None = None) -> int | None:
        snapshot = snapshot or self._load()
        if snapshot.state != CircuitState.OPEN.value or snapshot.opened_at is None:
            return None
        return max(0, int(self.recovery_timeout - (time.time() - snapshot.opened_at)))

    def _open(self, snapshot: CircuitSnapshot) -> None:
        snapshot.state = CircuitState.OPEN.value
        snapshot.opened_at = time.time()
        snapshot.trial_calls = 0
        self._save(snapshot)

    def _load(self) -> CircuitSnapshot:
        raw = cache.get(self._cache_key)
        if not raw:
            return CircuitSnapshot()
        return CircuitSnapshot(**raw)

    def _save(self, snapshot: CircuitSnapshot) -> None:
        cache.set(self._cache_key, asdict(snapshot), timeout=self.cache_ttl)

    def __repr__(self) -> str:
        return f"CircuitBreaker(name={self.name!r})"
