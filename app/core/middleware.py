"""HTTP middleware: per-account rate limiting, request logging, security headers."""

import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import redis.asyncio as redis

from app.config import settings
from app.core.exceptions import AuthenticationError
from app.core.permissions import UserRole
from app.core.security import verify_token

logger = logging.getLogger(__name__)

UNLIMITED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")
WINDOW_SECONDS = 60

STAFF_ROLES = {UserRole.MANAGER.value, UserRole.ADMIN.value}


def client_ip(request: Request) -> str:
    """Caller IP, honouring the first hop of X-Forwarded-For behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def rate_limit_identity(request: Request) -> tuple[str, int]:
    """Bucket key and per-minute limit for a request.

    A valid access token buckets by account, with managers and admins on
    the staff allowance so dashboard polling is not throttled alongside
    customers. Anything else (no token, expired, refresh token) is
    bucketed by IP on the anonymous allowance.
    """
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            payload = verify_token(token, token_type="access")
        except AuthenticationError:
            payload = {}
        user_id = payload.get("sub")
        if user_id:
            role = payload.get("role") or UserRole.CUSTOMER.value
            if role in STAFF_ROLES:
                limit = settings.rate_limit_staff_per_minute
            else:
                limit = settings.rate_limit_user_per_minute
            return f"rate_limit:{role.lower()}:{user_id}", limit
    return f"rate_limit:ip:{client_ip(request)}", settings.rate_limit_per_minute


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute window per account (or per IP) kept in Redis.

    When Redis is unreachable the request goes through unthrottled.
    """

    def __init__(
        self,
        app,
        redis_url: str | None = None,
        redis_client: redis.Redis | None = None,
    ):
        super().__init__(app)
        self.redis_url = redis_url or settings.redis_url
        self._redis = redis_client

    async def get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in UNLIMITED_PATHS or settings.debug:
            return await call_next(request)

        key, limit = rate_limit_identity(request)
        now = time.time()
        reset_at = str(int(now) + WINDOW_SECONDS)
        try:
            redis_client = await self.get_redis()
            async with redis_client.pipeline(transaction=True) as pipe:
                await pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
                await pipe.zcard(key)
                # Members must be unique or requests in the same second collapse
                await pipe.zadd(key, {uuid.uuid4().hex: now})
                await pipe.expire(key, WINDOW_SECONDS)
                results = await pipe.execute()
        except redis.RedisError:
            logger.warning("Rate limiter unavailable; allowing request", exc_info=True)
            return await call_next(request)

        request_count = results[1]
        if request_count >= limit:
            logger.info(f"Rate limit hit for {key} ({request_count}/{limit})")
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Too many requests. Please try again later.",
                    "retry_after": WINDOW_SECONDS,
                },
                headers={
                    "Retry-After": str(WINDOW_SECONDS),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": reset_at,
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - request_count - 1))
        response.headers["X-RateLimit-Reset"] = reset_at
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and tags the response with its request id."""

    slow_request_seconds = 1.0

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.perf_counter() - started
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({duration:.3f}s) [{request_id}]"
        )
        if duration > self.slow_request_seconds:
            logger.warning(
                f"SLOW REQUEST: {request.method} {request.url.path} took {duration:.3f}s"
            )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
