"""Registry of the cache pools this application manages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.cache import caches

from django_cachepurge.conf import get_config
from django_cachepurge.namespace import resolve_namespace

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Backends whose clear() runs FLUSHDB, wiping every key in the database
FLUSHDB_BACKENDS = frozenset(
    {
        "django.core.cache.backends.redis.RedisCache",
        "django_redis.cache.RedisCache",
    },
)


class Pool:
    """One managed cache pool.

    Attributes:
        name: The cache alias in the CACHES setting.
        label: Human readable name shown to operators.
        cache: The cache object, used for bulk clears.
    """

    def __init__(self, name: str, label: str, cache: Any, namespace: str | None = None) -> None:
        self.name = name
        self.label = label
        self.cache = cache
        self._explicit_namespace = namespace

    def __repr__(self) -> str:
        return f"<Pool {self.name!r}>"

    @property
    def namespace(self) -> str:
        """Key prefix of this pool, or "" if it could not be resolved.

        Resolved on every access, so a cache reconfigured at runtime is
        picked up by a long-lived service.
        """
        return resolve_namespace(self.cache, self._explicit_namespace) or ""

    @property
    def is_inert(self) -> bool:
        """True when scanning and deleting must skip this pool."""
        return not self.namespace

    @property
    def clear_flushes_database(self) -> bool:
        """True when the cache's own ``clear()`` would empty the whole database."""
        return any(f"{klass.__module__}.{klass.__qualname__}" in FLUSHDB_BACKENDS for klass in type(self.cache).__mro__)

    def clear(self) -> bool:
        """Clear the pool through the cache's own ``clear()``.

        Only safe for backends whose ``clear()`` is scoped to their own keys;
        see :attr:`clear_flushes_database`.

        Django's ``clear()`` returns None and django-cachex returns a bool,
        so only an explicit False or an exception counts as a failure.
        """
        try:
            result = self.cache.clear()
        except Exception:  # noqa: BLE001
            logger.exception("Clearing cache pool %s failed", self.name)
            return False
        return result is not False


class PoolRegistry:
    """Fixed catalogue of managed pools, keyed by name."""

    def __init__(self, pools: Mapping[str, Pool]) -> None:
        self._pools = dict(pools)

    @classmethod
    def from_settings(cls, pools_config: Mapping[str, Mapping[str, Any]] | None = None) -> PoolRegistry:
        """Build the registry from ``CACHEPURGE["POOLS"]``.

        Aliases missing from the CACHES setting are left out.
        """
        if pools_config is None:
            pools_config = get_config()["POOLS"]

        pools: dict[str, Pool] = {}
        for alias, pool_config in pools_config.items():
            if alias not in settings.CACHES:
                logger.warning("Cache pool %s is not configured in CACHES setting; skipping", alias)
                continue
            pools[alias] = Pool(
                name=alias,
                label=pool_config.get("LABEL") or alias,
                cache=caches[alias],
                namespace=pool_config.get("NAMESPACE"),
            )
        return cls(pools)

    def list_pools(self) -> dict[str, Pool]:
        return dict(self._pools)

    def choices(self) -> dict[str, str]:
        """Map of pool name to label, for selection widgets."""
        return {name: pool.label for name, pool in self._pools.items()}

    def select_pools(self, name: str | None = None) -> list[Pool]:
        """Return the named pool, or every pool when the name is blank or unknown."""
        normalized = (name or "").strip()
        if normalized and normalized in self._pools:
            return [self._pools[normalized]]
        return list(self._pools.values())

    def namespaces(self) -> list[str]:
        """Resolved namespaces of all pools, skipping inert ones."""
        return [pool.namespace for pool in self._pools.values() if not pool.is_inert]
