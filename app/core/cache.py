import json
import hashlib
import logging
from typing import Optional, Dict, Any
from app.core.config import settings
from app.core.redis_cache import RedisCache

logger = logging.getLogger(__name__)


# Global cache instance
_cache_instance: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get global Redis cache instance"""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = RedisCache()
    return _cache_instance


def _generate_cache_key(resource: str, params: Dict[str, Any]) -> str:
    """Generate cache key from resource name and query parameters."""
    # Sort params for consistent hashing
    sorted_params = sorted((k, v) for k, v in params.items() if v is not None)
    params_str = json.dumps(sorted_params, sort_keys=True, default=str)
    params_hash = hashlib.md5(params_str.encode()).hexdigest()[:8]
    return f"listing:{resource}:{params_hash}"


def get_cached_listing(resource: str, params: Dict[str, Any]) -> Optional[Any]:
    """Get a cached public listing (businesses, influencers, packages, content)."""
    if not settings.cache_enabled:
        return None
    return get_cache().get(_generate_cache_key(resource, params))


def set_cached_listing(resource: str, params: Dict[str, Any], response: Any, ttl_minutes: Optional[int] = None):
    """Cache a public listing response."""
    if not settings.cache_enabled:
        return
    get_cache().set(
        _generate_cache_key(resource, params),
        response,
        ttl_minutes or settings.listing_cache_ttl_minutes
    )


def invalidate_listing(resource: str) -> int:
    """Drop every cached page of a resource after a write."""
    if not settings.cache_enabled:
        return 0
    removed = get_cache().delete_pattern(f"listing:{resource}:*")
    logger.info(f"invalidate_listing: {resource} - removed {removed}")
    return removed
