"""In-memory test double for a standalone Redis client."""

from __future__ import annotations

from fnmatch import fnmatchcase

from redis.exceptions import ResponseError

from django_cachepurge.types import TTL_MISSING


class FakeRedis:
    """Stand-in for ``redis.Redis`` covering the commands the purge engine uses.

    ``keys`` maps raw key to its TTL (-1 for no expiry). SCAN pages through
    the sorted key space with an offset cursor; ``repeat_keys`` makes each page
    after the first repeat the last key of the previous page, as a real SCAN
    may during a rehash. Commands listed in ``disabled`` fail like a server
    that renamed them away.
    """

    def __init__(
        self,
        keys: dict[str, int] | None = None,
        *,
        repeat_keys: bool = False,
        disabled: tuple[str, ...] = (),
    ) -> None:
        self.ttls: dict[str, int] = dict(keys or {})
        self.repeat_keys = repeat_keys
        self.disabled = disabled
        self.calls: list[tuple] = []

    def _check(self, command: str) -> None:
        if command in self.disabled:
            raise ResponseError(f"ERR unknown command '{command.upper()}'")

    def scan(self, cursor=0, match=None, count=None, **kwargs):
        self._check("scan")
        self.calls.append(("scan", cursor, match, count))
        keys = sorted(key for key in self.ttls if match is None or fnmatchcase(key, match))
        count = count or 10
        start = int(cursor)
        page = keys[start : start + count]
        if self.repeat_keys and start > 0:
            page = [keys[start - 1], *page]
        next_cursor = start + count if start + count < len(keys) else 0
        return next_cursor, [key.encode() for key in page]

    def ttl(self, key):
        self._check("ttl")
        self.calls.append(("ttl", key))
        return self.ttls.get(key, TTL_MISSING)

    def unlink(self, *keys):
        self._check("unlink")
        self.calls.append(("unlink", keys))
        return self._remove(keys)

    def delete(self, *keys):
        self._check("delete")
        self.calls.append(("delete", keys))
        return self._remove(keys)

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def _remove(self, keys) -> int:
        removed = 0
        for key in keys:
            if key in self.ttls:
                del self.ttls[key]
                removed += 1
        return removed

    def commands(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakePipeline:
    """Queues TTL commands and answers them on execute()."""

    def __init__(self, client: FakeRedis) -> None:
        self.client = client
        self.queued: list[str] = []

    def ttl(self, key):
        self.queued.append(key)
        return self

    def execute(self, raise_on_error=True):
        self.client._check("pipeline")
        self.client.calls.append(("pipeline", tuple(self.queued)))
        return [self.client.ttls.get(key, TTL_MISSING) for key in self.queued]
