import os
from typing import Optional

import redis

REDIS_URL = os.environ.get("PORTAL_REDIS_URL") or os.environ.get("REDIS_URL") or "redis://redis:6379/0"
STORE_PREFIX = os.environ.get("PORTAL_STORE_PREFIX", "portal")


class RedisStore:
    def __init__(self, client: Optional[redis.Redis] = None, prefix: str = STORE_PREFIX) -> None:
        self._client = client or redis.Redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)
