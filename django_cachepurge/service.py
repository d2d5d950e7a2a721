"""
CachePurgeService - list, inspect and purge keys of managed cache pools.

The service is the whole surface operator tooling needs:

- ``list_managed_pools()``: pool names and labels
- ``list_keys(pool_name, query)``: key listing with display keys and TTLs
- ``delete_keys(raw_keys)``: delete keys, restricted to managed namespaces
- ``clear_pools(pool_name)``: bulk clear, never reaching past a pool's namespace

It keeps no state between calls: namespaces are resolved and the store is
scanned again on every call. Store failures never propagate; listings carry
them in ``KeyListing.errors`` and deletes report what actually got removed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django_cachepurge.conf import MAX_KEYS_PER_POOL, SCAN_BATCH_SIZE, get_config
from django_cachepurge.keys import display_key, iter_namespace, matches_query, scan_namespace
from django_cachepurge.pools import PoolRegistry
from django_cachepurge.store import connect_store
from django_cachepurge.types import TTL_UNKNOWN, KeyListing, KeyRow

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django_cachepurge.pools import Pool
    from django_cachepurge.store import KeyValueStore

logger = logging.getLogger(__name__)


class CachePurgeService:
    """Operator-facing cache administration for the managed pools."""

    def __init__(
        self,
        registry: PoolRegistry,
        store: KeyValueStore,
        *,
        scan_batch_size: int = SCAN_BATCH_SIZE,
        max_keys_per_pool: int = MAX_KEYS_PER_POOL,
    ) -> None:
        """Initialize the CachePurgeService.

        Args:
            registry: The managed pools.
            store: Adapter over the store client all pools live in.
            scan_batch_size: COUNT hint for each SCAN call.
            max_keys_per_pool: Upper bound on keys listed per pool.
        """
        self.registry = registry
        self.store = store
        self.scan_batch_size = scan_batch_size
        self.max_keys_per_pool = max_keys_per_pool

    @classmethod
    def from_settings(cls) -> CachePurgeService:
        """Build a service from the ``CACHEPURGE`` setting."""
        config = get_config()
        return cls(
            PoolRegistry.from_settings(config["POOLS"]),
            connect_store(config["STORE"], socket_timeout=config["SOCKET_TIMEOUT"]),
            scan_batch_size=config["SCAN_BATCH_SIZE"],
            max_keys_per_pool=config["MAX_KEYS_PER_POOL"],
        )

    # Pools

    def list_managed_pools(self) -> dict[str, str]:
        """Get the managed pools as ``{name: label}``."""
        return self.registry.choices()

    # Key listing

    def list_keys(self, pool_name: str | None = None, query: str = "") -> KeyListing:
        """List keys of one pool (or all pools), optionally filtered by a search query.

        Args:
            pool_name: Pool to list; None, blank or unknown means all pools.
            query: Case-insensitive substring matched against display and raw keys.

        Returns:
            KeyListing of rows sorted by raw key within each pool, at most
            ``max_keys_per_pool`` per pool.
        """
        rows: list[KeyRow] = []
        errors: list[str] = []

        for pool in self.registry.select_pools(pool_name):
            if pool.is_inert:
                logger.debug("Skipping cache pool %s: namespace could not be resolved", pool.name)
                continue

            scanned = scan_namespace(
                self.store,
                pool.namespace,
                batch_size=self.scan_batch_size,
                limit=self.max_keys_per_pool,
            )
            if scanned.error:
                errors.append(f"{pool.name}: {scanned.error}")

            matched: list[tuple[str, str]] = []
            for raw_key in scanned.value:
                display = display_key(raw_key, pool.namespace)
                if matches_query(display, raw_key, query):
                    matched.append((raw_key, display))
            if not matched:
                continue

            ttls = self.store.ttl_many([raw_key for raw_key, _ in matched])
            if ttls.error:
                errors.append(f"{pool.name}: {ttls.error}")
            ttl_values = ttls.value if len(ttls.value) == len(matched) else [TTL_UNKNOWN] * len(matched)

            rows.extend(
                KeyRow(
                    pool=pool.name,
                    pool_label=pool.label,
                    raw_key=raw_key,
                    display_key=display,
                    ttl=ttl,
                )
                for (raw_key, display), ttl in zip(matched, ttl_values, strict=True)
            )

        return KeyListing(rows=tuple(rows), errors=tuple(errors))

    # Deletion

    def filter_managed_keys(self, raw_keys: Iterable[Any]) -> list[str]:
        """Keep only keys inside a managed namespace.

        Keys are trimmed, blanks and non-strings dropped, and duplicates
        removed (first occurrence wins). This is the only gate between
        caller-supplied keys and a destructive store command.
        """
        namespaces = self.registry.namespaces()
        managed: dict[str, None] = {}

        for raw_key in raw_keys:
            if not isinstance(raw_key, str):
                continue
            key = raw_key.strip()
            if key and any(key.startswith(namespace) for namespace in namespaces):
                managed[key] = None

        return list(managed)

    def delete_keys(self, raw_keys: Iterable[Any]) -> int:
        """Delete managed keys, returning how many were removed.

        Tries ``UNLINK`` first and falls back to ``DEL`` when nothing was
        unlinked, since some servers disable ``UNLINK``.
        """
        keys = self.filter_managed_keys(raw_keys)
        if not keys:
            return 0

        count = self._remove(keys)
        logger.info("Deleted %d of %d cache keys", count, len(keys))
        return count

    def _remove(self, keys: list[str]) -> int:
        unlinked = self.store.unlink(keys)
        if unlinked.value > 0:
            return unlinked.value
        return max(unlinked.value, self.store.delete(keys).value)

    # Bulk clear

    def clear_pools(self, pool_name: str | None = None) -> int:
        """Clear one pool (or all pools), returning how many were cleared.

        Pools whose cache clears only its own keys use the cache's
        ``clear()``. Pools whose cache would run ``FLUSHDB`` instead are
        cleared by scanning and deleting their namespace through the store,
        so keys of other pools and other systems survive.
        """
        cleared = 0
        for pool in self.registry.select_pools(pool_name):
            if pool.clear_flushes_database:
                cleared += self._clear_namespace(pool)
            else:
                cleared += pool.clear()
        logger.info("Cleared %d cache pool(s)", cleared)
        return cleared

    def _clear_namespace(self, pool: Pool) -> bool:
        if pool.is_inert:
            logger.warning(
                "Not clearing cache pool %s: its backend would flush the whole database "
                "and its namespace could not be resolved",
                pool.name,
            )
            return False

        # Collect before deleting so removals don't disturb the SCAN cursor
        keys: dict[str, None] = {}
        for batch in iter_namespace(self.store, pool.namespace, batch_size=self.scan_batch_size):
            if batch.error:
                logger.warning("Clearing cache pool %s aborted: %s", pool.name, batch.error)
                return False
            keys.update(dict.fromkeys(batch.value))

        ordered = list(keys)
        removed = sum(
            self._remove(ordered[start : start + self.scan_batch_size])
            for start in range(0, len(ordered), self.scan_batch_size)
        )
        logger.info("Cleared cache pool %s: %d of %d keys removed", pool.name, removed, len(ordered))
        return True
