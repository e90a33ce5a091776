"""Tests for the local credential storages."""

from __future__ import annotations

from doctor.provider.storage import MemoryStorage, RedisStorage


class FakeRedis:
    """The slice of the redis.asyncio API RedisStorage uses."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data = dict(data or {})

    async def scan_iter(self, match: str):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def delete(self, key):
        self.data.pop(key, None)


async def test_memory_storage_roundtrip():
    storage = MemoryStorage()
    await storage.set("sb-abcd-auth-token", "{}")
    assert await storage.keys() == ["sb-abcd-auth-token"]
    assert await storage.get("sb-abcd-auth-token") == "{}"

    await storage.delete("sb-abcd-auth-token")
    await storage.delete("never-existed")
    assert await storage.keys() == []


async def test_redis_storage_is_namespaced():
    redis = FakeRedis({"other-app:token": "keep", "doctor:storage:theme": "dark"})
    storage = RedisStorage(redis, "doctor:storage:")

    await storage.set("sb-abcd-auth-token", "{}")

    assert redis.data["doctor:storage:sb-abcd-auth-token"] == "{}"
    assert sorted(await storage.keys()) == ["sb-abcd-auth-token", "theme"]
    assert await storage.get("theme") == "dark"

    await storage.delete("sb-abcd-auth-token")
    assert "doctor:storage:sb-abcd-auth-token" not in redis.data
    assert redis.data["other-app:token"] == "keep"
