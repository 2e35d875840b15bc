import json
import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .redis_client import get_redis

logger = logging.getLogger("styledecor.access")

_UNLIMITED_PATHS = ("/docs", "/openapi.json", "/health", "/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(json.dumps({
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": 500,
                "duration_ms": round(duration_ms, 2),
            }))
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id

        logger.info(json.dumps({
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "user_email": getattr(request.state, "user_email", None),
        }))
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed one-minute window per client IP, counted in Redis."""

    def __init__(self, app, max_per_minute: int = 120):
        super().__init__(app)
        self.max_per_minute = max_per_minute

    async def dispatch(self, request: Request, call_next):
        if self.max_per_minute <= 0 or request.url.path in _UNLIMITED_PATHS:
            return await call_next(request)
        if request.url.path.startswith("/docs/"):
            return await call_next(request)

        ip = request.client.host if request.client else "unknown"
        epoch_minute = int(time.time() // 60)
        key = f"rl:ip:{ip}:{epoch_minute}"

        try:
            r = get_redis()
            count = await r.incr(key)
            if count == 1:
                await r.expire(key, 70)
        except RedisError as e:
            logger.warning("rate limiter unavailable, letting request through: %s", e)
            return await call_next(request)

        if count > self.max_per_minute:
            return JSONResponse(
                status_code=429,
                content={"error": "RateLimited", "message": "Too many requests"},
                headers={"Retry-After": str(60 - int(time.time()) % 60)},
            )

        return await call_next(request)
