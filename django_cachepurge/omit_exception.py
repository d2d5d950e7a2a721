from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from django_cachepurge.exceptions import _main_exceptions
from django_cachepurge.types import Reply

logger = logging.getLogger(__name__)


def omit_exception(
    method: Callable | None = None,
    return_value: Any | None = None,
) -> Callable:
    """Decorator that turns any store failure into a :class:`Reply`.

    Store adapter methods decorated with this never raise. Their plain
    return value is wrapped as ``Reply(value)``; a raised exception becomes
    ``Reply(return_value, error=...)``. Connection, timeout and protocol errors
    from redis-py or valkey-py are logged as warnings, anything else is logged
    with its traceback.

    Args:
        method: The method to wrap (when used without parentheses)
        return_value: Value to report when the call failed (default: None)

    Usage:
        @omit_exception(return_value=0)
        def unlink(self, keys): ...
    """
    if method is None:
        return functools.partial(omit_exception, return_value=return_value)

    @functools.wraps(method)
    def _decorator(self: Any, *args: Any, **kwargs: Any) -> Reply:
        try:
            result = method(self, *args, **kwargs)
        except _main_exceptions as e:
            logger.warning("Store call %s failed: %s", method.__name__, e)
            return Reply(_fresh(return_value), error=f"{method.__name__}: {e}")
        except Exception as e:  # noqa: BLE001
            logger.exception("Store call %s raised unexpectedly", method.__name__)
            return Reply(_fresh(return_value), error=f"{method.__name__}: {e}")
        if isinstance(result, Reply):
            return result
        return Reply(result)

    return _decorator


def _fresh(value: Any) -> Any:
    # Mutable defaults must not be shared between calls
    if isinstance(value, list):
        return list(value)
    if isinstance(value, tuple):
        return tuple(_fresh(item) for item in value)
    return value
