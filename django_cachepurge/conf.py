"""Settings for django-cachepurge.

All options live in a single ``CACHEPURGE`` dict in Django settings::

    CACHEPURGE = {
        "POOLS": {
            "default": {"LABEL": "Application Cache"},
            "orm": {"LABEL": "ORM Result Cache", "NAMESPACE": "orm:"},
        },
        "STORE": {"CACHE": "default"},
        "SCAN_BATCH_SIZE": 200,
        "MAX_KEYS_PER_POOL": 1000,
    }

Settings are read each time a service is built, never cached at import.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings

SCAN_BATCH_SIZE = 200
MAX_KEYS_PER_POOL = 1000
SOCKET_TIMEOUT = 5.0

DEFAULTS: dict[str, Any] = {
    "POOLS": {
        "default": {"LABEL": "Application Cache"},
        "orm": {"LABEL": "ORM Result Cache"},
    },
    "STORE": {"CACHE": "default"},
    "SCAN_BATCH_SIZE": SCAN_BATCH_SIZE,
    "MAX_KEYS_PER_POOL": MAX_KEYS_PER_POOL,
    "SOCKET_TIMEOUT": SOCKET_TIMEOUT,
}


def get_config() -> dict[str, Any]:
    """Return the ``CACHEPURGE`` setting merged over the defaults."""
    user_config = getattr(settings, "CACHEPURGE", {}) or {}
    config = {**DEFAULTS, **user_config}

    # POOLS may be given as {alias: "Label"} for brevity
    config["POOLS"] = {
        alias: {"LABEL": pool} if isinstance(pool, str) else dict(pool or {})
        for alias, pool in config["POOLS"].items()
    }
    return config
