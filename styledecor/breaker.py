import logging
import time

from .redis_client import get_redis

logger = logging.getLogger(__name__)


class CircuitBreakerOpen(Exception):
    pass


class CircuitBreaker:
    """
    Redis-backed circuit breaker (shared across service instances).

    States:
      - CLOSED: allow traffic, count failures
      - OPEN: block traffic for reset_timeout seconds
      - HALF_OPEN: after timeout, allow a probe request
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout_seconds: int = 15,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout_seconds = reset_timeout_seconds

    def _key(self, suffix: str) -> str:
        return f"cb:{self.name}:{suffix}"

    async def state(self) -> str:
        state = await get_redis().get(self._key("state"))
        return state or "CLOSED"

    async def allow_request(self) -> None:
        state = await self.state()

        if state == "OPEN":
            opened_at = await get_redis().get(self._key("opened_at"))
            if not opened_at:
                await self.close()
                return

            if (time.time() - float(opened_at)) >= self.reset_timeout_seconds:
                await get_redis().set(self._key("state"), "HALF_OPEN")
                return

            raise CircuitBreakerOpen(f"Circuit breaker OPEN for {self.name}")

    async def record_success(self) -> None:
        if await self.state() != "CLOSED":
            await self.close()
        else:
            await get_redis().delete(self._key("failures"))

    async def record_failure(self) -> None:
        if await self.state() == "HALF_OPEN":
            await self.open()
            return

        r = get_redis()
        failures = await r.incr(self._key("failures"))
        if failures == 1:
            await r.expire(self._key("failures"), 60)

        if failures >= self.failure_threshold:
            await self.open()

    async def open(self) -> None:
        logger.warning("circuit breaker %s opened", self.name)
        pipe = get_redis().pipeline()
        pipe.set(self._key("state"), "OPEN")
        pipe.set(self._key("opened_at"), str(time.time()))
        pipe.expire(self._key("state"), self.reset_timeout_seconds + 30)
        pipe.expire(self._key("opened_at"), self.reset_timeout_seconds + 30)
        await pipe.execute()

    async def close(self) -> None:
        pipe = get_redis().pipeline()
        pipe.set(self._key("state"), "CLOSED")
        pipe.delete(self._key("failures"))
        pipe.delete(self._key("opened_at"))
        pipe.expire(self._key("state"), 3600)
        await pipe.execute()
