"""
Decorators shared by service code.

Usage:
    from django.db import OperationalError
    from core.decorators import translate_errors

    @classmethod
    @translate_errors(OperationalError, into=DownstreamError, source="database")
    def send_message(cls, ...):
        ...
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def translate_errors(
    *errors: type[Exception],
    into: type[BaseApplicationError],
    source: str,
):
    """
    Re-raise low-level errors as an application error.

    Args:
        *errors: Exception types to translate (e.g. OperationalError)
        into: BaseApplicationError subclass to raise instead
        source: Name of the failing dependency, stored in details["source"]

    The original exception is chained as __cause__ and logged once here so
    callers further up only see the application error.
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except errors as e:
                logger.error(
                    f"{func.__qualname__} failed on {source}: {e}",
                    exc_info=True,
                )
                raise into(
                    f"{source} unavailable",
                    details={"source": source},
                ) from e

        return wrapper

    return decorator
