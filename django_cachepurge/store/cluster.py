"""Store adapters for Redis-compatible cluster clients.

Cluster clients keep one SCAN cursor per primary node and only expose the
traversal as an iterator, and multi-key commands must not cross hash slots.
The adapters here hide both behind the same surface as
:class:`~django_cachepurge.store.default.KeyValueStore`.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from itertools import islice
from typing import TYPE_CHECKING, Any, override

from django.core.exceptions import ImproperlyConfigured

from django_cachepurge.exceptions import _main_exceptions
from django_cachepurge.omit_exception import omit_exception
from django_cachepurge.store.default import KeyValueStore, _decode_key, _to_int
from django_cachepurge.types import Reply

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from django_cachepurge.types import KeyT

logger = logging.getLogger(__name__)


class ClusterScanCursor:
    """Opaque cursor over a cluster-wide SCAN.

    Wraps the client's ``scan_iter`` generator, which walks every primary
    node with its own cursor. Only meaningful to the store that issued it.
    """

    __slots__ = ("_iterator", "pattern")

    def __init__(self, iterator: Iterator[Any], pattern: str) -> None:
        self._iterator = iterator
        self.pattern = pattern

    def take(self, count: int) -> list[Any]:
        return list(islice(self._iterator, count))


class KeyValueClusterStore(KeyValueStore):
    """Cluster store adapter base class.

    Subclasses must set ``_cluster_class`` and ``_key_slot_func``.
    """

    _cluster_class: type[Any] | None = None
    _key_slot_func: Any = None  # Function to calculate key slot

    @override
    @classmethod
    def accepts(cls, client: Any) -> bool:
        return cls._cluster_class is not None and isinstance(client, cls._cluster_class)

    @override
    @classmethod
    def from_url(cls, url: str, **options: Any) -> KeyValueStore:
        if cls._cluster_class is None:
            msg = f"{cls.__name__} is not available; install its client library."
            raise ImproperlyConfigured(msg)
        return cls(cls._cluster_class.from_url(url, **options))

    def _group_keys_by_slot(self, keys: Iterable[KeyT]) -> dict[int, list[KeyT]]:
        """Group keys by their cluster slot."""
        slots: dict[int, list[KeyT]] = defaultdict(list)
        for key in keys:
            key_bytes = key.encode() if isinstance(key, str) else key
            slot = self._key_slot_func(key_bytes)
            slots[slot].append(key)
        return dict(slots)

    @override
    @omit_exception(return_value=(0, []))
    def scan(self, cursor: Any = 0, pattern: str = "*", count: int | None = None) -> Reply[tuple[Any, list[str]]]:
        """Pull up to ``count`` keys from a cluster-wide SCAN.

        A zero cursor starts a new traversal across all primary nodes. The
        returned cursor is a :class:`ClusterScanCursor`, or 0 once every node
        has been walked.
        """
        count = count or self._default_scan_count
        if isinstance(cursor, ClusterScanCursor) and cursor.pattern == pattern:
            scan_cursor = cursor
        else:
            iterator = self._client.scan_iter(
                match=pattern,
                count=count,
                target_nodes=self._cluster_class.PRIMARIES,
            )
            scan_cursor = ClusterScanCursor(iter(iterator), pattern)

        batch = scan_cursor.take(count)
        keys = [key for key in map(_decode_key, batch) if key is not None]
        if len(batch) < count:
            return Reply((0, keys))
        return Reply((scan_cursor, keys))

    @override
    def _delete_with(self, command: str, keys: Sequence[str]) -> Reply[int]:
        """Delete slot by slot; a failing slot does not lose the others' counts."""
        if not keys:
            return Reply(0)
        method = getattr(self._client, command, None)
        if not callable(method):
            return Reply(0, error=f"{command}: not supported by {self._client.__class__.__name__}")

        total = 0
        errors: list[str] = []
        for slot, slot_keys in self._group_keys_by_slot(keys).items():
            try:
                total += _to_int(method(*slot_keys))
            except _main_exceptions as e:
                logger.warning("Store call %s failed for slot %s: %s", command, slot, e)
                errors.append(f"{command}: slot {slot}: {e}")
        return Reply(total, error="; ".join(errors) or None)


# Try to import Redis Cluster
try:
    from redis.cluster import RedisCluster
    from redis.cluster import key_slot as redis_key_slot

    class RedisClusterStore(KeyValueClusterStore):
        """Store adapter for ``redis.cluster.RedisCluster`` clients."""

        _cluster_class = RedisCluster
        _key_slot_func = staticmethod(redis_key_slot)

except ImportError:

    class RedisClusterStore(KeyValueClusterStore):  # type: ignore[no-redef]
        """Redis Cluster store adapter (requires redis-py to be installed)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "RedisClusterStore requires redis-py to be installed. Install it with: pip install redis",
            )


# Try to import Valkey Cluster
try:
    from valkey.cluster import ValkeyCluster
    from valkey.cluster import key_slot as valkey_key_slot

    class ValkeyClusterStore(KeyValueClusterStore):
        """Store adapter for ``valkey.cluster.ValkeyCluster`` clients."""

        _cluster_class = ValkeyCluster
        _key_slot_func = staticmethod(valkey_key_slot)

except ImportError:

    class ValkeyClusterStore(KeyValueClusterStore):  # type: ignore[no-redef]
        """Valkey Cluster store adapter (requires valkey-py with cluster support)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "ValkeyClusterStore requires valkey-py with cluster support. Install it with: pip install valkey",
            )


__all__ = [
    "ClusterScanCursor",
    "KeyValueClusterStore",
    "RedisClusterStore",
    "ValkeyClusterStore",
]
