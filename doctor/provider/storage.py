"""Local key/value credential storage.

Two scopes mirror what a browser client keeps: a session-scoped store that
lives as long as the process, and a persistent store backed by Redis.
"""

from __future__ import annotations

from typing import Protocol

import redis.asyncio as aioredis


class KeyValueStorage(Protocol):
    async def keys(self) -> list[str]: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Session-scoped storage held in process memory."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def keys(self) -> list[str]:
        return list(self._data)

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisStorage:
    """Persistent storage; every key is stored under ``namespace`` in Redis."""

    def __init__(self, redis: aioredis.Redis, namespace: str) -> None:
        self._redis = redis
        self._namespace = namespace

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def keys(self) -> list[str]:
        prefix_len = len(self._namespace)
        return [
            key[prefix_len:]
            async for key in self._redis.scan_iter(match=f"{self._namespace}*")
        ]

    async def get(self, key: str) -> str | None:
        return await self._redis.get(self._full_key(key))

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(self._full_key(key), value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._full_key(key))
