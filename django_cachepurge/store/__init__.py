# Store adapters (standalone and cluster)
from django_cachepurge.store.cluster import (
    ClusterScanCursor,
    KeyValueClusterStore,
    RedisClusterStore,
    ValkeyClusterStore,
)
from django_cachepurge.store.default import (
    KeyValueStore,
    RedisStore,
    ValkeyStore,
)

# Adapter selection
from django_cachepurge.store.factory import (
    client_from_cache,
    connect_store,
    get_store,
)

__all__ = [
    # Standalone adapters
    "KeyValueStore",
    "RedisStore",
    "ValkeyStore",
    # Cluster adapters
    "ClusterScanCursor",
    "KeyValueClusterStore",
    "RedisClusterStore",
    "ValkeyClusterStore",
    # Adapter selection
    "client_from_cache",
    "connect_store",
    "get_store",
]
