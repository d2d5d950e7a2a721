"""Tests for namespace resolution of cache pools."""

from django.core.cache import caches
from django.core.cache.backends.locmem import LocMemCache

from django_cachepurge.namespace import read_attribute, resolve_namespace


def custom_key_func(key, key_prefix, version):
    return f"{version}/{key}"


class PrefixedObject:
    def __init__(self, prefix):
        self.key_prefix = prefix


class ProviderCache:
    def __init__(self, namespace):
        self.namespace = namespace

    def root_namespace(self):
        return self.namespace


class BrokenProperty:
    @property
    def key_prefix(self):
        raise RuntimeError("not ready")


class TestResolveNamespace:
    def test_explicit_namespace_wins(self):
        assert resolve_namespace(caches["default"], "custom:") == "custom:"

    def test_blank_explicit_namespace_is_ignored(self):
        assert resolve_namespace(caches["default"], "") == "app:"

    def test_key_prefix_of_django_cache(self):
        assert resolve_namespace(caches["default"]) == "app:"
        assert resolve_namespace(caches["orm"]) == "orm:"

    def test_empty_key_prefix_is_unresolved(self):
        assert resolve_namespace(caches["unprefixed"]) is None

    def test_custom_key_function_is_unresolved(self):
        cache = LocMemCache("custom", {"KEY_PREFIX": "app", "KEY_FUNCTION": custom_key_func})

        assert resolve_namespace(cache) is None

    def test_namespace_provider(self):
        assert resolve_namespace(ProviderCache("tenant:7:")) == "tenant:7:"

    def test_namespace_provider_without_answer(self):
        assert resolve_namespace(ProviderCache(None)) is None
        assert resolve_namespace(ProviderCache("")) is None

    def test_plain_object_with_prefix(self):
        assert resolve_namespace(PrefixedObject("svc")) == "svc:"

    def test_non_string_prefix(self):
        assert resolve_namespace(PrefixedObject(42)) is None

    def test_object_without_prefix(self):
        assert resolve_namespace(object()) is None


class TestReadAttribute:
    def test_instance_field(self):
        assert read_attribute(PrefixedObject("x"), "key_prefix") == "x"

    def test_missing_field(self):
        assert read_attribute(PrefixedObject("x"), "missing") is None

    def test_class_level_field(self):
        class WithDefault:
            key_prefix = "cls"

        assert read_attribute(WithDefault(), "key_prefix") == "cls"

    def test_failing_property(self):
        assert read_attribute(BrokenProperty(), "key_prefix") is None
