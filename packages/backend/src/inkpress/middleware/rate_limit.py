"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "inkpress:rl:{ip}:{bucket}:{minute}".
Credential endpoints (signin, signup, forgot/reset password) get a
stricter limit to slow down password guessing and reset-mail flooding.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

SENSITIVE_PREFIXES = (
    "/api/auth/signin",
    "/api/auth/signup",
    "/api/auth/forgetpassword",
    "/api/auth/resetpassword",
)


def is_sensitive_path(path: str) -> bool:
    return path.startswith(SENSITIVE_PREFIXES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        redis = getattr(request.app.state, "redis", None)
        if redis is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        sensitive = is_sensitive_path(request.url.path)
        rpm = self.auth_rpm if sensitive else self.default_rpm

        window = int(time.time() // 60)
        bucket = "auth" if sensitive else "api"
        key = f"inkpress:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)  # 2-min TTL for safety
        except Exception as e:
            # Redis error: don't block the request
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.info("rate_limit.exceeded", ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"message": "Too many requests. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
