"""Resolve the key prefix ("root namespace") a cache pool stores its entries under.

Django caches expose no public accessor for the prefix of the raw keys they
write. Everything that depends on how a pool lays out its keys is kept in
this module, so a pool implementation change only has to be handled here.

With Django's default key function a raw key reads ``prefix:version:key``,
so the namespace of a pool is ``"prefix:"`` and the version is the first
segment after it.
"""

from __future__ import annotations

import logging
from typing import Any

from django.core.cache.backends.base import default_key_func

from django_cachepurge.types import NamespaceProvider

logger = logging.getLogger(__name__)

# Field Django's BaseCache keeps the KEY_PREFIX setting in
PREFIX_ATTRIBUTE = "key_prefix"

KEY_SEPARATOR = ":"


def resolve_namespace(cache: Any, explicit: str | None = None) -> str | None:
    """Get the namespace of a cache pool, or None if it can't be determined.

    Args:
        cache: The pool object (usually a Django cache backend).
        explicit: Namespace configured for the pool; wins when non-empty.

    Returns:
        A non-empty namespace string, or None. A None namespace makes the pool
        inert for scanning and deletion.
    """
    if explicit:
        return explicit if isinstance(explicit, str) else None

    if isinstance(cache, NamespaceProvider):
        namespace = cache.root_namespace()
        return namespace if isinstance(namespace, str) and namespace else None

    # A custom KEY_FUNCTION may lay keys out any way it likes
    key_func = getattr(cache, "key_func", default_key_func)
    if key_func is not default_key_func:
        logger.debug("Cache %r uses a custom key function; namespace unknown", cache)
        return None

    prefix = read_attribute(cache, PREFIX_ATTRIBUTE)
    if not isinstance(prefix, str) or not prefix:
        return None
    return f"{prefix}{KEY_SEPARATOR}"


def read_attribute(obj: Any, name: str) -> Any:
    """Read a field from an object's own state, then up its class hierarchy."""
    instance_dict = getattr(obj, "__dict__", {})
    if name in instance_dict:
        return instance_dict[name]

    for klass in type(obj).__mro__:
        if name in vars(klass):
            try:
                return getattr(obj, name)
            except Exception:  # noqa: BLE001
                return None
    return None
