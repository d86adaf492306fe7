from __future__ import annotations

from trackgate.config import load_settings
from trackgate.store import FIRST_RUN_KEY, FileFlagStore, RedisFlagStore, build_store


class FakeRedis:
    def __init__(self) -> None:
        self.hashes = {}

    def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    def hset(self, name, key, value):
        self.hashes.setdefault(name, {})[key] = value


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "state.json"
    FileFlagStore(path).set_boolean(FIRST_RUN_KEY, False)

    assert FileFlagStore(path).get_boolean(FIRST_RUN_KEY, True) is False
    assert FileFlagStore(path).get_boolean("other", True) is True


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileFlagStore(path)

    assert store.get_boolean(FIRST_RUN_KEY, True) is True
    store.set_boolean(FIRST_RUN_KEY, False)
    assert store.get_boolean(FIRST_RUN_KEY, True) is False


def test_redis_store_round_trip():
    client = FakeRedis()
    store = RedisFlagStore(client, namespace="test:flags")

    assert store.get_boolean(FIRST_RUN_KEY, True) is True
    store.set_boolean(FIRST_RUN_KEY, False)

    assert client.hashes["test:flags"][FIRST_RUN_KEY] == "0"
    assert store.get_boolean(FIRST_RUN_KEY, True) is False


def test_build_store_defaults_to_file(monkeypatch, tmp_path):
    monkeypatch.setenv("TRACKGATE_STATE_PATH", str(tmp_path / "flags.json"))

    store = build_store(load_settings())

    assert isinstance(store, FileFlagStore)
    assert store.path == (tmp_path / "flags.json").resolve()


def test_build_store_uses_redis_when_configured(monkeypatch):
    monkeypatch.setenv("TRACKGATE_REDIS_URL", "redis://localhost:6379/3")

    store = build_store(load_settings())

    assert isinstance(store, RedisFlagStore)
