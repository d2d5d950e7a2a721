"""Pytest configuration for django-cachepurge tests."""

from __future__ import annotations

import pytest
from django.core.cache import caches

from django_cachepurge.pools import Pool, PoolRegistry
from django_cachepurge.service import CachePurgeService
from django_cachepurge.store import KeyValueStore
from tests.fakes import FakeRedis

# Keys of the end-to-end scenario: two managed keys and one foreign key
SEED_KEYS = {
    "app:v1:a": 30,
    "app:v1:b": -1,
    "other:x": 100,
}


@pytest.fixture
def fake_client() -> FakeRedis:
    return FakeRedis(SEED_KEYS)


@pytest.fixture
def store(fake_client: FakeRedis) -> KeyValueStore:
    return KeyValueStore(fake_client)


@pytest.fixture
def registry() -> PoolRegistry:
    """Two managed pools with explicit namespaces, as in the seeded store."""
    return PoolRegistry(
        {
            "cache.app": Pool("cache.app", "Application Cache", caches["default"], namespace="app:v1:"),
            "result_cache": Pool("result_cache", "ORM Result Cache", caches["orm"], namespace="orm:v1:"),
        },
    )


@pytest.fixture
def service(registry: PoolRegistry, store: KeyValueStore) -> CachePurgeService:
    return CachePurgeService(registry, store)
