import pytest

from appointlive.infrastructure.sessions.memory_role_store import InMemoryActiveRoleStore


def test_memory_store_set_get_clear():
    store = InMemoryActiveRoleStore()
    assert store.get("s1") is None
    store.set("s1", "doctor", ttl_seconds=60)
    assert store.get("s1") == "doctor"
    store.clear("s1")
    assert store.get("s1") is None
    store.clear("missing")


def test_memory_store_expires():
    store = InMemoryActiveRoleStore()
    store.set("s1", "patient", ttl_seconds=0)
    assert store.get("s1") is None


def test_memory_store_prunes_abandoned_sessions_on_set():
    store = InMemoryActiveRoleStore()
    store.set("gone-1", "patient", ttl_seconds=0)
    store.set("gone-2", "doctor", ttl_seconds=0)
    store.set("live", "doctor", ttl_seconds=60)
    assert len(store) == 1
    assert store.get("live") == "doctor"


def test_redis_store_with_fake_client():
    pytest.importorskip("redis")
    from appointlive.infrastructure.sessions.redis_role_store import RedisActiveRoleStore

    class FakeRedis:
        def __init__(self):
            self.store = {}
            self.ttl = {}

        def get(self, key):
            value = self.store.get(key)
            return value.encode() if value is not None else None

        def set(self, key, value, ex=None):
            self.store[key] = value
            self.ttl[key] = ex

        def delete(self, key):
            self.store.pop(key, None)

    client = FakeRedis()
    store = RedisActiveRoleStore(client=client, prefix="role:")

    store.set("abc", "doctor", ttl_seconds=3600)
    assert client.store == {"role:abc": "doctor"}
    assert client.ttl["role:abc"] == 3600
    assert store.get("abc") == "doctor"

    store.clear("abc")
    assert store.get("abc") is None


def test_redis_store_needs_url_or_client():
    pytest.importorskip("redis")
    from appointlive.infrastructure.sessions.redis_role_store import RedisActiveRoleStore

    with pytest.raises(ValueError):
        RedisActiveRoleStore()
