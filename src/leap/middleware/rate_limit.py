"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "leap:rl:{ip}:{bucket}:{minute}".
Response submission gets a stricter limit than the rest of the API, since
it is the one open write endpoint. The push stream is never counted: it
is a single long-lived request per dashboard tab.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from leap.db.redis import get_redis

SUBMIT_PATH = "/api/v1/responses/submit"
STREAM_PATH = "/api/v1/realtime/stream"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 300, submit_rpm: int = 60):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.submit_rpm = submit_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(STREAM_PATH):
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_submit = path.startswith(SUBMIT_PATH)
        rpm = self.submit_rpm if is_submit else self.default_rpm

        window = int(time.time() // 60)
        bucket = "submit" if is_submit else "api"
        key = f"leap:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception:
            # Redis error — don't block the request
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
