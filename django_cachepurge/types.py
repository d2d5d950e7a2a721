"""Types shared by the store adapters and the purge service."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, overload, runtime_checkable

# Key types accepted by redis-py / valkey-py
type KeyT = bytes | str | memoryview

# TTL reported when the store cannot answer (Redis itself uses -1 and -2)
TTL_NO_EXPIRY = -1
TTL_MISSING = -2
TTL_UNKNOWN = -3


@dataclass(frozen=True)
class Reply[T]:
    """Result of a best-effort store call.

    ``value`` always holds something usable (an empty list, ``0``, ...);
    ``error`` describes the swallowed failure, if any.
    """

    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@runtime_checkable
class NamespaceProvider(Protocol):
    """Object that knows the key prefix its entries are stored under."""

    def root_namespace(self) -> str | None: ...


@dataclass(frozen=True, slots=True)
class KeyRow:
    """One row of a key listing."""

    pool: str
    pool_label: str
    raw_key: str
    display_key: str
    ttl: int


@dataclass(frozen=True)
class KeyListing(Sequence[KeyRow]):
    """Rows of a key listing plus the store failures met while building it.

    Behaves like a read-only list of :class:`KeyRow`, so callers that only
    care about rows can iterate it directly. ``errors`` lets them tell an
    empty pool apart from an unreachable store.
    """

    rows: tuple[KeyRow, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @overload
    def __getitem__(self, index: int) -> KeyRow: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[KeyRow, ...]: ...

    def __getitem__(self, index: Any) -> Any:
        return self.rows[index]

    def __len__(self) -> int:
        return len(self.rows)
