import json
import logging
import uuid
from typing import Optional, Dict, Any, List
import redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from app.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis-backed cache for rate limiting, public listings and payment locks"""

    def __init__(self):
        """Initialize Redis cache (lazy connection)"""
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._connecting = False
        self._lock_tokens: Dict[str, str] = {}

    def _client_kwargs(self) -> Dict[str, Any]:
        kwargs = {
            'decode_responses': False,
            'socket_connect_timeout': 2,
            'socket_timeout': 2,
            'retry_on_timeout': False,
            'health_check_interval': 0,
        }
        # settings.redis_password takes precedence over a password embedded in the URL
        if settings.redis_password:
            kwargs['password'] = settings.redis_password
        return kwargs

    def _ensure_connected(self):
        """Ensure Redis connection is established (lazy connection)"""
        if self._connecting:
            raise RuntimeError("Redis connection already in progress")

        if self._connected and self._client is not None:
            return

        self._connect()

    def _connect(self):
        """Connect to Redis server; failures leave the cache disabled rather than raising"""
        self._connecting = True
        try:
            if settings.redis_url:
                self._client = redis.from_url(settings.redis_url, **self._client_kwargs())
            else:
                self._client = redis.Redis(
                    host='localhost',
                    port=6379,
                    db=settings.redis_db,
                    **self._client_kwargs()
                )
            self._client.ping()
            self._connected = True
            logger.info("RedisCache: Connected to Redis")
        except RedisConnectionError as e:
            logger.warning(f"RedisCache: Failed to connect to Redis - {e}")
            self._connected = False
            self._client = None
        except RedisError as e:
            error_msg = str(e).lower()
            if 'auth' in error_msg or 'password' in error_msg:
                logger.error(f"RedisCache: Authentication failed - {e}. Check REDIS_PASSWORD or the password in REDIS_URL.")
            else:
                logger.error(f"RedisCache: Redis error during connection - {e}")
            self._connected = False
            self._client = None
        finally:
            self._connecting = False

    def _available(self, op: str, key: str) -> bool:
        try:
            self._ensure_connected()
        except (RedisError, RuntimeError) as e:
            logger.warning(f"RedisCache: Cannot {op} {key} - Redis not available: {e}")
            return False
        if self._client is None:
            logger.debug(f"RedisCache: Cannot {op} {key} - Redis client not available")
            return False
        return True

    def _on_error(self, op: str, key: str, e: Exception):
        logger.error(f"RedisCache: Error during {op} {key}: {e}")
        self._connected = False

    def get(self, key: str) -> Optional[Any]:
        """Get cached JSON value if present"""
        if not self._available('get', key):
            return None

        try:
            data = self._client.get(key)
            if data is None:
                logger.debug(f"Cache miss: {key}")
                return None
            try:
                decoded = json.loads(data.decode('utf-8'))
                logger.debug(f"Cache hit: {key}")
                return decoded
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(f"RedisCache: Failed to decode value for key {key}: {e}")
                self._client.delete(key)
                return None
        except RedisError as e:
            self._on_error('get', key, e)
            return None

    def get_int(self, key: str) -> Optional[int]:
        """Get cached integer value (rate-limit counters)"""
        if not self._available('get_int', key):
            return None

        try:
            data = self._client.get(key)
            if data is None:
                return None
            try:
                return int(data.decode('utf-8'))
            except (ValueError, UnicodeDecodeError) as e:
                logger.warning(f"RedisCache: Failed to decode integer for key {key}: {e}")
                self._client.delete(key)
                return None
        except RedisError as e:
            self._on_error('get_int', key, e)
            return None

    def set(self, key: str, value: Any, ttl_minutes: int):
        """Set cache value with TTL in minutes (ints stored raw, everything else as JSON)"""
        if not self._available('set', key):
            return

        try:
            if isinstance(value, int) and not isinstance(value, bool):
                serialized = str(value).encode('utf-8')
            else:
                serialized = json.dumps(value, default=str).encode('utf-8')
            self._client.setex(key, ttl_minutes * 60, serialized)
            logger.debug(f"Cache set: {key}, TTL: {ttl_minutes} minutes")
        except RedisError as e:
            self._on_error('set', key, e)

    def delete(self, key: str):
        """Delete cache entry"""
        if not self._available('delete', key):
            return

        try:
            self._client.delete(key)
            logger.debug(f"Cache deleted: {key}")
        except RedisError as e:
            self._on_error('delete', key, e)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns the number removed"""
        if not self._available('delete_pattern', pattern):
            return 0

        try:
            keys: List[bytes] = list(self._client.scan_iter(match=pattern))
            if keys:
                self._client.delete(*keys)
            logger.debug(f"Cache invalidated: {pattern} ({len(keys)} keys)")
            return len(keys)
        except RedisError as e:
            self._on_error('delete_pattern', pattern, e)
            return 0

    def incr(self, key: str, ttl_seconds: int) -> Optional[int]:
        """Atomically increment a counter, setting its expiry on first use"""
        if not self._available('incr', key):
            return None

        try:
            new_value = self._client.incr(key)
            if new_value == 1:
                self._client.expire(key, ttl_seconds)
            return new_value
        except RedisError as e:
            self._on_error('incr', key, e)
            return None

    def ping(self) -> bool:
        """Check if Redis connection is alive"""
        try:
            self._ensure_connected()
            if self._client is None:
                return False
            self._client.ping()
            return True
        except (RedisError, RuntimeError):
            self._connected = False
            return False

    def acquire_lock(self, lock_key: str, timeout_seconds: int = 30) -> Optional[bool]:
        """
        Try once to take a short-lived lock with SET NX EX.

        Returns True when acquired, False when another holder has it, and None
        when Redis is unavailable (callers fall back to database checks). It
        never waits, so it is safe to call from async request handlers.
        """
        if not self._available('acquire_lock', lock_key):
            return None

        token = str(uuid.uuid4())
        try:
            if self._client.set(lock_key, token, nx=True, ex=timeout_seconds):
                self._lock_tokens[lock_key] = token
                logger.debug(f"RedisCache: Lock acquired - {lock_key}")
                return True
            logger.warning(f"RedisCache: Lock held elsewhere - {lock_key}")
            return False
        except RedisError as e:
            self._on_error('acquire_lock', lock_key, e)
            return None

    def release_lock(self, lock_key: str):
        """Release a lock, but only if this instance still holds it"""
        token = self._lock_tokens.pop(lock_key, None)
        if token is None or not self._available('release_lock', lock_key):
            return

        try:
            current = self._client.get(lock_key)
            if current is not None and current.decode('utf-8') == token:
                self._client.delete(lock_key)
                logger.debug(f"RedisCache: Lock released - {lock_key}")
        except RedisError as e:
            self._on_error('release_lock', lock_key, e)
