"""Build a store adapter from a client or from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.core.cache import InvalidCacheBackendError, caches
from django.core.exceptions import ImproperlyConfigured

from django_cachepurge.exceptions import UnsupportedClientError
from django_cachepurge.store.cluster import RedisClusterStore, ValkeyClusterStore
from django_cachepurge.store.default import KeyValueStore, RedisStore, ValkeyStore

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Cluster adapters come first: their clients must never be scanned with a single cursor
STORE_CLASSES: tuple[type[KeyValueStore], ...] = (
    RedisClusterStore,
    ValkeyClusterStore,
    RedisStore,
    ValkeyStore,
)

# LIBRARY option -> (standalone adapter, cluster adapter)
LIBRARIES: dict[str, tuple[type[KeyValueStore], type[KeyValueStore]]] = {
    "redis": (RedisStore, RedisClusterStore),
    "valkey": (ValkeyStore, ValkeyClusterStore),
}


def get_store(client: Any) -> KeyValueStore:
    """Wrap ``client`` in the adapter matching its type.

    Clients of unknown type that still expose ``scan`` are treated as
    standalone clients.

    Raises:
        UnsupportedClientError: If no adapter can drive the client.
    """
    for store_class in STORE_CLASSES:
        if store_class.accepts(client):
            return store_class(client)

    if callable(getattr(client, "scan", None)):
        logger.debug("Using generic store adapter for %s", client.__class__.__name__)
        return KeyValueStore(client)

    raise UnsupportedClientError(client.__class__.__name__)


def client_from_cache(alias: str) -> Any:
    """Borrow the raw Redis/Valkey client behind a Django cache.

    Works with Django's own ``RedisCache`` and django-cachex (``cache._cache``)
    as well as django-redis (``cache.client``).
    """
    try:
        cache = caches[alias]
    except InvalidCacheBackendError as e:
        msg = f"Cache '{alias}' is not configured in CACHES setting."
        raise ImproperlyConfigured(msg) from e

    for attr in ("_cache", "client"):
        backend_client = getattr(cache, attr, None)
        if callable(getattr(backend_client, "get_client", None)):
            return backend_client.get_client(write=True)

    msg = f"Cache '{alias}' ({cache.__class__.__name__}) does not expose a Redis-compatible client."
    raise ImproperlyConfigured(msg)


def connect_store(store_config: Mapping[str, Any], *, socket_timeout: float | None = None) -> KeyValueStore:
    """Create the store adapter described by the ``STORE`` setting.

    Args:
        store_config: Either ``{"CACHE": alias}`` or ``{"LOCATION": url}``
            with optional ``LIBRARY`` ("redis" or "valkey"), ``CLUSTER`` and
            ``OPTIONS`` (extra client keyword arguments).
        socket_timeout: Per-call deadline for clients created from a URL.

    Raises:
        ImproperlyConfigured: If the setting names no usable store.
    """
    if store_config.get("CACHE"):
        return get_store(client_from_cache(store_config["CACHE"]))

    location = store_config.get("LOCATION")
    if not location:
        msg = "CACHEPURGE['STORE'] must define either CACHE or LOCATION."
        raise ImproperlyConfigured(msg)

    library = store_config.get("LIBRARY", "redis")
    try:
        standalone_class, cluster_class = LIBRARIES[library]
    except KeyError:
        msg = f"Unknown CACHEPURGE['STORE']['LIBRARY'] {library!r}; expected one of {sorted(LIBRARIES)}."
        raise ImproperlyConfigured(msg) from None

    options: dict[str, Any] = {}
    if socket_timeout is not None:
        options["socket_timeout"] = socket_timeout
        options["socket_connect_timeout"] = socket_timeout
    options.update(store_config.get("OPTIONS", {}))

    store_class = cluster_class if store_config.get("CLUSTER", False) else standalone_class
    return store_class.from_url(location, **options)
