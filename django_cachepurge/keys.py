"""Key enumeration and the pure transforms applied to listed keys."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from django_cachepurge.conf import MAX_KEYS_PER_POOL, SCAN_BATCH_SIZE
from django_cachepurge.namespace import KEY_SEPARATOR
from django_cachepurge.types import Reply

if TYPE_CHECKING:
    from collections.abc import Iterator

    from django_cachepurge.store import KeyValueStore

# Regex for escaping glob special characters
_special_re = re.compile("([*?[])")


def glob_escape(s: str) -> str:
    """Escape glob special characters so ``s`` only matches itself."""
    return _special_re.sub(r"[\1]", s)


def iter_namespace(
    store: KeyValueStore,
    namespace: str,
    *,
    batch_size: int = SCAN_BATCH_SIZE,
) -> Iterator[Reply[list[str]]]:
    """Walk every key stored under ``namespace``, one ``SCAN`` batch at a time.

    Each batch holds only keys that really start with ``namespace``. A failed
    ``SCAN`` call is yielded with its error and ends the walk. An empty
    namespace yields nothing.
    """
    if not namespace:
        return

    pattern = glob_escape(namespace) + "*"
    cursor: object = 0

    while True:
        reply = store.scan(cursor, pattern, batch_size)
        cursor, batch = reply.value
        # Guards against stores that apply MATCH loosely
        yield Reply([key for key in batch if key.startswith(namespace)], error=reply.error)
        if not reply.ok or cursor in (0, "0"):
            return


def scan_namespace(
    store: KeyValueStore,
    namespace: str,
    *,
    batch_size: int = SCAN_BATCH_SIZE,
    limit: int = MAX_KEYS_PER_POOL,
) -> Reply[list[str]]:
    """Collect up to ``limit`` raw keys stored under ``namespace``.

    Walks the store with incremental ``SCAN`` calls until the cursor comes
    back to zero or ``limit`` distinct keys have been seen. SCAN may return
    a key more than once, so keys are de-duplicated. The traversal is not a
    snapshot: keys written or removed meanwhile may or may not show up.

    Returns:
        Reply with the keys sorted lexicographically. If a SCAN call fails,
        the keys gathered before the failure are returned with the error.
    """
    found: set[str] = set()
    error = None

    for batch in iter_namespace(store, namespace, batch_size=batch_size):
        for key in batch.value:
            found.add(key)
            if len(found) >= limit:
                return Reply(sorted(found))
        error = batch.error

    return Reply(sorted(found), error=error)


def display_key(raw_key: str, namespace: str) -> str:
    """Strip a pool's namespace and version segment from a raw key.

    >>> display_key("app:v3:user:42", "app:")
    'user:42'
    """
    if not namespace or not raw_key.startswith(namespace):
        return raw_key

    suffix = raw_key[len(namespace) :]
    if not suffix:
        return raw_key

    parts = suffix.split(KEY_SEPARATOR, 1)
    return parts[1] if len(parts) == 2 else suffix


def normalize_query(query: str | None) -> str:
    return (query or "").strip().lower()


def matches_query(display: str, raw_key: str, query: str | None) -> bool:
    """Case-insensitive substring search over a key's display and raw forms."""
    needle = normalize_query(query)
    if not needle:
        return True
    return needle in f"{display} {raw_key}".lower()
