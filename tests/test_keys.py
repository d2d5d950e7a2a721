"""Tests for namespace scanning and key display helpers."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from django_cachepurge.keys import display_key, glob_escape, iter_namespace, matches_query, scan_namespace
from django_cachepurge.store import KeyValueStore
from tests.fakes import FakeRedis


def seeded_store(count, prefix="app:v1:", **kwargs):
    keys = {f"{prefix}{i:03d}": -1 for i in range(count)}
    keys["other:x"] = -1
    return KeyValueStore(FakeRedis(keys, **kwargs))


class TestScanNamespace:
    def test_walks_every_batch(self):
        store = seeded_store(25)

        reply = scan_namespace(store, "app:v1:", batch_size=10, limit=1000)

        assert reply.ok
        assert reply.value == [f"app:v1:{i:03d}" for i in range(25)]
        assert len(store.client.commands("scan")) == 3

    def test_stops_at_limit(self):
        store = seeded_store(25)

        reply = scan_namespace(store, "app:v1:", batch_size=10, limit=12)

        assert len(reply.value) == 12
        assert reply.value == sorted(reply.value)
        assert len(store.client.commands("scan")) == 2

    def test_repeated_keys_counted_once(self):
        store = seeded_store(25, repeat_keys=True)

        reply = scan_namespace(store, "app:v1:", batch_size=10, limit=1000)

        assert reply.value == [f"app:v1:{i:03d}" for i in range(25)]

    def test_pattern_is_glob_escaped(self):
        store = KeyValueStore(FakeRedis({"we*ird:1": -1, "weXXird:1": -1}))

        reply = scan_namespace(store, "we*ird:", batch_size=10, limit=100)

        assert reply.value == ["we*ird:1"]
        assert store.client.commands("scan")[0][2] == "we[*]ird:*"

    def test_keys_outside_namespace_ignored(self):
        class LooseStore(KeyValueStore):
            def scan(self, cursor=0, pattern="*", count=None):
                return super().scan(cursor, "*", count)

        store = LooseStore(FakeRedis({"app:v1:a": -1, "other:x": -1}))

        assert scan_namespace(store, "app:v1:", batch_size=10, limit=100).value == ["app:v1:a"]

    def test_empty_namespace_never_scans(self):
        store = seeded_store(5)

        assert scan_namespace(store, "", batch_size=10, limit=100).value == []
        assert store.client.calls == []

    def test_failure_keeps_partial_keys(self):
        store = seeded_store(25)
        scan = store.client.scan
        calls = []

        def flaky_scan(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise RedisConnectionError("Connection reset by peer")
            return scan(*args, **kwargs)

        store.client.scan = flaky_scan

        reply = scan_namespace(store, "app:v1:", batch_size=10, limit=1000)

        assert reply.value == [f"app:v1:{i:03d}" for i in range(10)]
        assert "Connection reset by peer" in reply.error


class TestGlobEscape:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("app:", "app:"), ("a*b", "a[*]b"), ("a?b", "a[?]b"), ("a[b]", "a[[]b]")],
    )
    def test_escape(self, value, expected):
        assert glob_escape(value) == expected


class TestDisplayKey:
    @pytest.mark.parametrize(
        ("raw_key", "namespace", "expected"),
        [
            ("app:v1:a", "app:v1:", "a"),
            ("app:1:user:42", "app:", "user:42"),
            ("app:1", "app:", "1"),
            ("app:", "app:", "app:"),
            ("other:x", "app:", "other:x"),
            ("app:1:user", "", "app:1:user"),
        ],
    )
    def test_display(self, raw_key, namespace, expected):
        assert display_key(raw_key, namespace) == expected


class TestMatchesQuery:
    def test_blank_query_matches_everything(self):
        assert matches_query("user:1", "app:1:user:1", "")
        assert matches_query("user:1", "app:1:user:1", "   ")
        assert matches_query("user:1", "app:1:user:1", None)

    def test_case_insensitive(self):
        assert matches_query("User:1", "app:1:User:1", "  uSeR ")

    def test_matches_raw_key(self):
        assert matches_query("user:1", "app:1:user:1", "app:1")

    def test_no_match(self):
        assert not matches_query("user:1", "app:1:user:1", "session")


class TestIterNamespace:
    def test_yields_filtered_batches(self):
        store = seeded_store(7)

        batches = list(iter_namespace(store, "app:v1:", batch_size=3))

        assert [len(batch.value) for batch in batches] == [3, 3, 1]
        assert all(batch.ok for batch in batches)

    def test_failed_batch_ends_walk(self):
        store = KeyValueStore(FakeRedis({"app:v1:a": -1}, disabled=("scan",)))

        batches = list(iter_namespace(store, "app:v1:", batch_size=3))

        assert len(batches) == 1
        assert batches[0].value == []
        assert "unknown command" in batches[0].error
