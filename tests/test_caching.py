"""
Tests for listing cache and the Redis cache wrapper
"""

import json
import time

import pytest
from unittest.mock import MagicMock, patch
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import (
    _generate_cache_key,
    get_cached_listing,
    invalidate_listing,
    set_cached_listing,
)
from app.core.redis_cache import RedisCache


@pytest.fixture
def mock_cache():
    """Mock Redis cache"""
    cache = MagicMock()
    cache.get.return_value = None
    cache.delete_pattern.return_value = 2
    return cache


@pytest.fixture
def cache_on(mock_cache):
    with patch("app.core.cache.settings") as mock_settings, \
         patch("app.core.cache.get_cache", return_value=mock_cache):
        mock_settings.cache_enabled = True
        mock_settings.listing_cache_ttl_minutes = 10
        yield mock_cache


@pytest.fixture
def connected_cache():
    """RedisCache with a mocked client that is already connected"""
    cache = RedisCache()
    cache._client = MagicMock()
    cache._connected = True
    return cache


class TestCacheKeyGeneration:
    """Test cache key generation"""

    def test_cache_key_format(self):
        key = _generate_cache_key("businesses", {"category": "Food", "limit": 100})

        prefix, resource, digest = key.split(":")
        assert prefix == "listing"
        assert resource == "businesses"
        assert len(digest) == 8

    def test_cache_key_ignores_param_order_and_none(self):
        key1 = _generate_cache_key("businesses", {"category": "Food", "limit": 100, "search": None})
        key2 = _generate_cache_key("businesses", {"limit": 100, "category": "Food"})

        assert key1 == key2

    def test_cache_key_different_for_different_params(self):
        key1 = _generate_cache_key("businesses", {"limit": 50})
        key2 = _generate_cache_key("businesses", {"limit": 100})

        assert key1 != key2


class TestListingCache:
    """Public listings go through Redis only when caching is enabled"""

    def test_disabled_cache_is_bypassed(self, mock_cache):
        with patch("app.core.cache.get_cache", return_value=mock_cache):
            assert get_cached_listing("packages", {}) is None
            set_cached_listing("packages", {}, [1])
            assert invalidate_listing("packages") == 0

        mock_cache.get.assert_not_called()
        mock_cache.set.assert_not_called()

    def test_set_uses_default_ttl(self, cache_on):
        set_cached_listing("packages", {"include_inactive": False}, [{"id": "pkg_1"}])

        key = _generate_cache_key("packages", {"include_inactive": False})
        cache_on.set.assert_called_once_with(key, [{"id": "pkg_1"}], 10)

    def test_get_hit(self, cache_on):
        cache_on.get.return_value = [{"id": "pkg_1"}]

        assert get_cached_listing("packages", {}) == [{"id": "pkg_1"}]

    def test_invalidate_removes_all_pages(self, cache_on):
        assert invalidate_listing("businesses") == 2
        cache_on.delete_pattern.assert_called_once_with("listing:businesses:*")

    def test_service_serves_cached_listing(self, cache_on, db_session, no_analytics):
        from app.services.business_service import BusinessService

        cached = [{"id": 1, "name": "From cache"}]
        cache_on.get.return_value = cached

        assert BusinessService().list_businesses(db_session) == cached

    def test_write_invalidates_listing(self, cache_on, db_session, no_analytics):
        from app.services.business_service import BusinessService

        BusinessService().save_business(db_session, {"name": "Mango Cafe"})

        cache_on.delete_pattern.assert_called_once_with("listing:businesses:*")


class TestRedisCache:
    """RedisCache against a mocked client"""

    def test_get_decodes_json(self, connected_cache):
        connected_cache._client.get.return_value = json.dumps({"a": 1}).encode()

        assert connected_cache.get("key") == {"a": 1}

    def test_get_drops_corrupt_value(self, connected_cache):
        connected_cache._client.get.return_value = b"{not json"

        assert connected_cache.get("key") is None
        connected_cache._client.delete.assert_called_once_with("key")

    def test_set_serializes_with_ttl(self, connected_cache):
        connected_cache.set("key", {"a": 1}, 5)
        connected_cache._client.setex.assert_called_once_with("key", 300, b'{"a": 1}')

    def test_set_int_raw(self, connected_cache):
        connected_cache.set("counter", 7, 1)
        connected_cache._client.setex.assert_called_once_with("counter", 60, b"7")

    def test_incr_sets_expiry_once(self, connected_cache):
        connected_cache._client.incr.side_effect = [1, 2]

        assert connected_cache.incr("hits", 60) == 1
        assert connected_cache.incr("hits", 60) == 2
        connected_cache._client.expire.assert_called_once_with("hits", 60)

    def test_delete_pattern(self, connected_cache):
        connected_cache._client.scan_iter.return_value = iter([b"listing:a:1", b"listing:a:2"])

        assert connected_cache.delete_pattern("listing:a:*") == 2
        connected_cache._client.delete.assert_called_once_with(b"listing:a:1", b"listing:a:2")

    def test_lock_roundtrip(self, connected_cache):
        connected_cache._client.set.return_value = True

        assert connected_cache.acquire_lock("payment:razorpay:order_1") is True
        token = connected_cache._client.set.call_args[0][1]

        connected_cache._client.get.return_value = token.encode()
        connected_cache.release_lock("payment:razorpay:order_1")
        connected_cache._client.delete.assert_called_once_with("payment:razorpay:order_1")

    def test_lock_held_elsewhere(self, connected_cache):
        """A held lock is reported after a single attempt, without waiting"""
        connected_cache._client.set.return_value = None

        started = time.monotonic()
        assert connected_cache.acquire_lock("payment:razorpay:order_1") is False

        assert time.monotonic() - started < 0.5
        connected_cache._client.set.assert_called_once()
        assert "payment:razorpay:order_1" not in connected_cache._lock_tokens

    def test_release_skips_foreign_lock(self, connected_cache):
        connected_cache._client.set.return_value = True
        connected_cache.acquire_lock("lock")
        connected_cache._client.get.return_value = b"someone-else"

        connected_cache.release_lock("lock")

        connected_cache._client.delete.assert_not_called()

    def test_unavailable_redis(self):
        cache = RedisCache()
        with patch("app.core.redis_cache.redis.from_url") as mock_from_url:
            mock_from_url.return_value.ping.side_effect = RedisConnectionError("refused")

            assert cache.get("key") is None
            assert cache.incr("key", 60) is None
            assert cache.acquire_lock("lock") is None
            assert cache.ping() is False
