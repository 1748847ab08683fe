"""
Loading and guarded invocation of the chat's external collaborators.

Implementations are named by dotted path in settings and instantiated once
per process. Every call goes through a cache-backed CircuitBreaker so a
failing dependency is reported as DownstreamError quickly instead of tying
up workers.

Usage:
    from chat import adapters

    participants = adapters.call(
        "engagement-directory",
        adapters.get_engagement_directory().resolve_participants,
        engagement_id,
    )
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, TypeVar

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

from chat.constants import COLLABORATOR_CONFIG
from chat.exceptions import DownstreamError
from core.circuit_breaker import CircuitBreaker, CircuitOpenError

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from chat.ports import (
        ContentFilter,
        EngagementDirectory,
        NotificationBridge,
        PaymentLedger,
    )

logger = logging.getLogger(__name__)

R = TypeVar("R")

COLLABORATOR_SETTINGS = (
    "CHAT_ENGAGEMENT_DIRECTORY",
    "CHAT_PAYMENT_LEDGER",
    "CHAT_CONTENT_FILTER",
    "CHAT_NOTIFICATION_BRIDGE",
)


@functools.lru_cache(maxsize=None)
def _instantiate(dotted_path: str) -> Any:
    logger.debug(f"Loading chat collaborator {dotted_path}")
    return import_string(dotted_path)()


@functools.lru_cache(maxsize=None)
def get_circuit(name: str) -> CircuitBreaker:
    return CircuitBreaker(
        name=f"chat:{name}",
        failure_threshold=COLLABORATOR_CONFIG.FAILURE_THRESHOLD,
        recovery_timeout=COLLABORATOR_CONFIG.RECOVERY_TIMEOUT_SECONDS,
    )


def get_engagement_directory() -> EngagementDirectory:
    return _instantiate(settings.CHAT_ENGAGEMENT_DIRECTORY)


def get_payment_ledger() -> PaymentLedger:
    return _instantiate(settings.CHAT_PAYMENT_LEDGER)


def get_content_filter() -> ContentFilter:
    return _instantiate(settings.CHAT_CONTENT_FILTER)


def get_notification_bridge() -> NotificationBridge:
    return _instantiate(settings.CHAT_NOTIFICATION_BRIDGE)


def call(name: str, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """
    Invoke a collaborator method through its circuit breaker.

    Args:
        name: Collaborator name, used for the circuit and in error details
        func: Bound collaborator method
        *args, **kwargs: Passed to func

    Raises:
        DownstreamError: The circuit is open or the collaborator raised
    """
    try:
        return get_circuit(name).call(func, *args, **kwargs)
    except CircuitOpenError as e:
        logger.warning(f"Skipping call to {name}: circuit open")
        raise DownstreamError(
            f"{name} unavailable",
            details={"source": name, "retry_in": e.retry_in},
        ) from e
    except DownstreamError:
        raise
    except Exception as e:
        logger.error(f"Call to {name} failed: {e}", exc_info=True)
        raise DownstreamError(
            f"{name} unavailable",
            details={"source": name},
        ) from e


@receiver(setting_changed)
def reset_collaborators(*, setting: str, **kwargs: Any) -> None:
    """Drop cached instances when tests override a collaborator setting."""
    if setting in COLLABORATOR_SETTINGS:
        _instantiate.cache_clear()
