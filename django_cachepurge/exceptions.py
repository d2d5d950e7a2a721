# Derived from django-redis (https://github.com/jazzband/django-redis)
# Copyright (c) 2011-2016 Andrey Antukh <niwi@niwi.nz>
# Copyright (c) 2011 Sean Bleier
# Licensed under BSD-3-Clause
#
# django-redis was used as inspiration for this project.

"""Exceptions for django-cachepurge.

Store adapters never raise transport errors to their callers; the tuples
below are only used to tell a flaky store apart from a programming error
when a failure is logged.
"""

import socket

# Build exception tuples from available libraries (redis-py / valkey-py).
_exception_list: list[type[Exception]] = [socket.timeout, ConnectionError, TimeoutError]

try:
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import RedisClusterException
    from redis.exceptions import ResponseError as RedisResponseError
    from redis.exceptions import TimeoutError as RedisTimeoutError

    _exception_list.extend([RedisConnectionError, RedisTimeoutError, RedisResponseError, RedisClusterException])
except ImportError:
    pass

try:
    from valkey.exceptions import ConnectionError as ValkeyConnectionError
    from valkey.exceptions import ResponseError as ValkeyResponseError
    from valkey.exceptions import TimeoutError as ValkeyTimeoutError
    from valkey.exceptions import ValkeyClusterException

    _exception_list.extend([ValkeyConnectionError, ValkeyTimeoutError, ValkeyResponseError, ValkeyClusterException])
except ImportError:
    pass

_main_exceptions = tuple(_exception_list)


class UnsupportedClientError(TypeError):
    """Raised when no store adapter understands the configured client.

    Attributes:
        client_type: Name of the rejected client class.

    Example:
        Building a store from an arbitrary object::

            from django_cachepurge.exceptions import UnsupportedClientError
            from django_cachepurge.store import get_store

            try:
                store = get_store(object())
            except UnsupportedClientError as e:
                logger.error(f"Cannot manage {e.client_type}")
    """

    def __init__(self, client_type: str) -> None:
        self.client_type = client_type
        super().__init__(f"No store adapter supports client type '{client_type}'")

    def __str__(self) -> str:
        return f"No store adapter supports client type '{self.client_type}'"
