from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from app.core.config import settings
from app.core.firebase import verify_firebase_token
from app.core.cache import get_cache
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

# Authenticated users are limited per Firebase UID
USER_LIMITS = {
    'per_minute': 120,
    'per_hour': 3000,
}

# Default rate limits for unauthenticated requests (IP-based)
DEFAULT_IP_LIMITS = {
    'per_minute': 60,
    'per_hour': 1000,
}

EXEMPT_PATHS = ['/health', '/docs', '/openapi.json', '/redoc']


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window rate limiting per user (Firebase UID) or per client IP.
    Vendor webhooks are exempt; they are authenticated by signature instead.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.cache = get_cache()

    async def dispatch(self, request: Request, call_next):
        if not settings.rate_limit_enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        if request.url.path.startswith(f"{settings.api_v1_str}/webhooks"):
            return await call_next(request)

        user_id = self._get_user_id(request)
        if user_id:
            subject = f"user:{user_id}"
            limits = USER_LIMITS
        else:
            subject = f"ip:{self._get_client_ip(request)}"
            limits = DEFAULT_IP_LIMITS

        allowed, minute_count = self._hit(subject, limits)
        if not allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after": 60
                },
                headers={
                    "Retry-After": "60",
                    "X-RateLimit-Limit": str(limits['per_minute']),
                    "X-RateLimit-Remaining": "0",
                }
            )

        response = await call_next(request)
        if minute_count is not None:
            response.headers["X-RateLimit-Limit"] = str(limits['per_minute'])
            response.headers["X-RateLimit-Remaining"] = str(max(0, limits['per_minute'] - minute_count))
        return response

    def _get_user_id(self, request: Request) -> str | None:
        auth_header = request.headers.get('Authorization')
        if not auth_header or not auth_header.startswith('Bearer '):
            return None
        try:
            decoded_token = verify_firebase_token(auth_header.split(' ', 1)[1])
            user_id = decoded_token.get('uid')
            if user_id:
                request.state.user_id = user_id
            return user_id
        except Exception as e:
            # The auth dependency reports the error; here we fall back to IP limits
            logger.debug(f"Rate limit middleware: Could not verify token: {e}")
            return None

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _hit(self, subject: str, limits: dict) -> tuple[bool, int | None]:
        """Count this request in the current minute and hour windows"""
        now = datetime.utcnow()
        minute_key = f"rate_limit:{subject}:minute:{now.strftime('%Y%m%d%H%M')}"
        hour_key = f"rate_limit:{subject}:hour:{now.strftime('%Y%m%d%H')}"

        minute_count = self.cache.incr(minute_key, ttl_seconds=60)
        hour_count = self.cache.incr(hour_key, ttl_seconds=3600)

        # Redis unavailable: let the request through
        if minute_count is None or hour_count is None:
            return True, None

        if minute_count > limits['per_minute']:
            logger.warning(f"Rate limit exceeded (per minute) - {subject}")
            return False, minute_count
        if hour_count > limits['per_hour']:
            logger.warning(f"Rate limit exceeded (per hour) - {subject}")
            return False, minute_count
        return True, minute_count
