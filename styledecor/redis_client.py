import redis.asyncio as redis

from .config import REDIS_URL

_client = None


def get_redis():
    global _client
    if _client is None:
        _client = redis.from_url(REDIS_URL, decode_responses=True)
    return _client


def set_redis(client) -> None:
    global _client
    _client = client
