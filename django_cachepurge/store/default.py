"""Store adapters for standalone Redis-compatible clients.

Architecture:
- KeyValueStore: Base class with all logic, library-agnostic
- RedisStore: Accepts ``redis.Redis`` clients (redis-py)
- ValkeyStore: Accepts ``valkey.Valkey`` clients (valkey-py)

Every command method returns a :class:`~django_cachepurge.types.Reply` and
never raises: the purge engine is advisory tooling and a flaky store must
not fail the request that drives it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ImproperlyConfigured

from django_cachepurge.omit_exception import omit_exception
from django_cachepurge.types import TTL_MISSING, TTL_NO_EXPIRY, TTL_UNKNOWN, Reply

if TYPE_CHECKING:
    from collections.abc import Sequence

# Try to import redis-py and/or valkey-py
try:
    import redis

    _REDIS_AVAILABLE = True
except ImportError:
    redis = None  # type: ignore[assignment]
    _REDIS_AVAILABLE = False

try:
    import valkey

    _VALKEY_AVAILABLE = True
except ImportError:
    valkey = None  # type: ignore[assignment]
    _VALKEY_AVAILABLE = False

logger = logging.getLogger(__name__)


def _to_int(value: Any, default: int = 0) -> int:
    """Coerce an integer reply (int, numeric str or bytes) to ``int``."""
    if isinstance(value, int):
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _to_ttl(value: Any) -> int:
    """Coerce a ``TTL`` reply, mapping anything Redis never returns to ``TTL_UNKNOWN``."""
    if isinstance(value, Exception):
        return TTL_UNKNOWN
    ttl = _to_int(value, default=TTL_UNKNOWN)
    if ttl >= 0 or ttl in (TTL_NO_EXPIRY, TTL_MISSING):
        return ttl
    return TTL_UNKNOWN


def _decode_key(key: Any) -> str | None:
    """Decode a raw key from a reply, or None if it can't be used as a str."""
    if isinstance(key, bytes):
        try:
            key = key.decode()
        except UnicodeDecodeError:
            return None
    if not isinstance(key, str) or not key:
        return None
    return key


# =============================================================================
# KeyValueStore - base class (library-agnostic)
# =============================================================================


class KeyValueStore:
    """Uniform calling surface over a Redis-compatible client.

    Wraps a client following the standalone convention, where ``SCAN``
    returns ``(next_cursor, keys)``. Subclasses set ``_client_class`` so
    :func:`~django_cachepurge.store.get_store` can pick them by type.
    """

    # Class attribute - subclasses override this
    _client_class: type | None = None  # e.g., redis.Redis

    # SCAN COUNT hint used when the caller gives none
    _default_scan_count: int = 100

    def __init__(self, client: Any) -> None:
        self._client = client

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} client={self._client.__class__.__name__}>"

    @classmethod
    def accepts(cls, client: Any) -> bool:
        """Check whether this adapter handles the given client type."""
        return cls._client_class is not None and isinstance(client, cls._client_class)

    @classmethod
    def from_url(cls, url: str, **options: Any) -> KeyValueStore:
        """Create a client for ``url`` and wrap it."""
        if cls._client_class is None:
            msg = f"{cls.__name__} is not available; install its client library."
            raise ImproperlyConfigured(msg)
        return cls(cls._client_class.from_url(url, **options))

    @property
    def client(self) -> Any:
        return self._client

    # =========================================================================
    # Key enumeration
    # =========================================================================

    @omit_exception(return_value=(0, []))
    def scan(self, cursor: Any = 0, pattern: str = "*", count: int | None = None) -> Reply[tuple[Any, list[str]]]:
        """Run one ``SCAN cursor MATCH pattern COUNT count`` step.

        Returns:
            Reply holding ``(next_cursor, keys)``; ``next_cursor`` is 0 once
            the traversal is complete.
        """
        response = self._client.scan(cursor=cursor, match=pattern, count=count or self._default_scan_count)
        if not isinstance(response, (list, tuple)) or len(response) != 2:
            return Reply((0, []), error=f"scan: unexpected reply {response!r}")

        next_cursor, batch = response
        keys = [key for key in map(_decode_key, batch or []) if key is not None]
        return Reply((_to_int(next_cursor), keys))

    # =========================================================================
    # TTL
    # =========================================================================

    @omit_exception(return_value=TTL_UNKNOWN)
    def ttl(self, key: str) -> Reply[int]:
        """Get the TTL of a key in seconds (-1 no expiry, -2 missing, -3 unknown)."""
        return Reply(_to_ttl(self._client.ttl(key)))

    def ttl_many(self, keys: Sequence[str]) -> Reply[list[int]]:
        """Get TTLs for several keys in a single pipelined round trip."""
        if not keys:
            return Reply([])

        if not callable(getattr(self._client, "pipeline", None)):
            return self._ttl_each(keys)

        reply = self._pipeline_ttls(keys)
        if reply.value is None:
            return Reply([TTL_UNKNOWN] * len(keys), error=reply.error)
        return reply

    @omit_exception(return_value=None)
    def _pipeline_ttls(self, keys: Sequence[str]) -> Reply[list[int] | None]:
        pipe = self._client.pipeline(transaction=False)
        for key in keys:
            pipe.ttl(key)
        results = pipe.execute(raise_on_error=False)

        if len(results) != len(keys):
            return Reply(None, error=f"ttl: pipeline returned {len(results)} replies for {len(keys)} keys")
        return Reply([_to_ttl(result) for result in results])

    def _ttl_each(self, keys: Sequence[str]) -> Reply[list[int]]:
        replies = [self.ttl(key) for key in keys]
        errors = [reply.error for reply in replies if reply.error]
        return Reply([reply.value for reply in replies], error="; ".join(errors) or None)

    # =========================================================================
    # Deletion
    # =========================================================================

    @omit_exception(return_value=0)
    def unlink(self, keys: Sequence[str]) -> Reply[int]:
        """Remove keys with ``UNLINK`` (non-blocking), returning the count removed."""
        return self._delete_with("unlink", keys)

    @omit_exception(return_value=0)
    def delete(self, keys: Sequence[str]) -> Reply[int]:
        """Remove keys with ``DEL`` (blocking), returning the count removed."""
        return self._delete_with("delete", keys)

    def _delete_with(self, command: str, keys: Sequence[str]) -> Reply[int]:
        if not keys:
            return Reply(0)
        method = getattr(self._client, command, None)
        if not callable(method):
            return Reply(0, error=f"{command}: not supported by {self._client.__class__.__name__}")
        return Reply(_to_int(method(*keys)))


# =============================================================================
# RedisStore - redis-py
# =============================================================================

if _REDIS_AVAILABLE:

    class RedisStore(KeyValueStore):
        """Store adapter for ``redis.Redis`` clients."""

        _client_class = redis.Redis

else:

    class RedisStore(KeyValueStore):  # type: ignore[no-redef]
        """Redis store adapter (requires redis-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError("RedisStore requires redis-py. Install with: pip install redis")


# =============================================================================
# ValkeyStore - valkey-py
# =============================================================================

if _VALKEY_AVAILABLE:

    class ValkeyStore(KeyValueStore):
        """Store adapter for ``valkey.Valkey`` clients."""

        _client_class = valkey.Valkey

else:

    class ValkeyStore(KeyValueStore):  # type: ignore[no-redef]
        """Valkey store adapter (requires valkey-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError("ValkeyStore requires valkey-py. Install with: pip install valkey")


__all__ = [
    "_REDIS_AVAILABLE",
    "_VALKEY_AVAILABLE",
    "KeyValueStore",
    "RedisStore",
    "ValkeyStore",
]
