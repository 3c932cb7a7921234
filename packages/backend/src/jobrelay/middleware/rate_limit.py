"""Rate limiting middleware — Redis fixed-window counter per IP.

Learn: Each IP gets a counter key like "jobrelay:rl:{ip}:{bucket}:{minute}".
POST endpoints (job creation, applications, messages) share a stricter
"write" bucket so a single client can't flood every connected browser
with broadcasts.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests
or a memory-only deployment).
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 120, write_rpm: int = 30):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.write_rpm = write_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        from jobrelay.realtime.redis_pool import get_redis

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_write = request.method == "POST"
        rpm = self.write_rpm if is_write else self.default_rpm

        window = int(time.time() // 60)
        bucket = "write" if is_write else "read"
        key = f"jobrelay:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception as e:
            # Redis error — don't block the request
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.info("rate_limit.exceeded", client_ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
