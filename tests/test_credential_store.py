"""
Tests for the credential store backends.

Run with:
    pytest tests/test_credential_store.py -v
"""

import json
from unittest.mock import MagicMock

import pytest

from auth_session.config import get_settings
from auth_session.credential_store import (
    FileCredentialStore,
    MemoryCredentialStore,
    RedisCredentialStore,
    build_credential_store,
)
from auth_session.errors import CredentialStoreError


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = MagicMock()
    redis_mock.get.return_value = None
    return redis_mock


class TestMemoryCredentialStore:

    def test_set_get_remove(self):
        store = MemoryCredentialStore()
        assert store.get() is None

        store.set("tok123")
        assert store.get() == "tok123"

        store.remove()
        assert store.get() is None

    def test_remove_missing_is_noop(self):
        store = MemoryCredentialStore()
        store.remove()
        assert store.get() is None

    def test_initial_value(self):
        assert MemoryCredentialStore(initial="tok123").get() == "tok123"

    def test_compare_and_remove(self):
        store = MemoryCredentialStore(initial="new")

        assert store.compare_and_remove("old") is False
        assert store.get() == "new"

        assert store.compare_and_remove("new") is True
        assert store.get() is None


class TestFileCredentialStore:

    def test_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "creds" / "credentials.json")

        FileCredentialStore(path).set("tok123")

        assert FileCredentialStore(path).get() == "tok123"
        with open(path, encoding="utf-8") as f:
            assert json.load(f) == {"token": "tok123"}

    def test_keys_share_one_file(self, tmp_path):
        path = str(tmp_path / "credentials.json")
        main = FileCredentialStore(path, key="token")
        other = FileCredentialStore(path, key="admin_token")

        main.set("a")
        other.set("b")
        main.remove()

        assert main.get() is None
        assert other.get() == "b"

    def test_missing_file_reads_empty(self, tmp_path):
        store = FileCredentialStore(str(tmp_path / "absent.json"))

        assert store.get() is None
        store.remove()

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text("{not json", encoding="utf-8")
        store = FileCredentialStore(str(path))

        assert store.get() is None

        store.set("tok123")
        assert store.get() == "tok123"

    def test_binary_garbage_reads_empty(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_bytes(b"\xff\xfe{garbage")
        store = FileCredentialStore(str(path))

        assert store.get() is None

        store.set("tok123")
        assert store.get() == "tok123"

    def test_non_object_file_reads_empty(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text('["tok123"]', encoding="utf-8")

        assert FileCredentialStore(str(path)).get() is None

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = FileCredentialStore(str(blocker / "credentials.json"))

        with pytest.raises(CredentialStoreError):
            store.set("tok123")


class TestRedisCredentialStore:

    def test_key_format(self, mock_redis):
        store = RedisCredentialStore(redis_client=mock_redis)

        store.set("tok123")

        mock_redis.set.assert_called_once_with("credential:token", "tok123")

    def test_get_decodes_bytes(self, mock_redis):
        mock_redis.get.return_value = b"tok123"
        store = RedisCredentialStore(redis_client=mock_redis, key="session")

        assert store.get() == "tok123"
        mock_redis.get.assert_called_once_with("credential:session")

    def test_get_missing(self, mock_redis):
        assert RedisCredentialStore(redis_client=mock_redis).get() is None

    def test_remove(self, mock_redis):
        RedisCredentialStore(redis_client=mock_redis).remove()

        mock_redis.delete.assert_called_once_with("credential:token")

    def test_redis_errors_are_wrapped(self, mock_redis):
        mock_redis.get.side_effect = ConnectionError("redis down")
        store = RedisCredentialStore(redis_client=mock_redis)

        with pytest.raises(CredentialStoreError):
            store.get()


class TestBuildCredentialStore:

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("CREDENTIAL_STORE", "memory")
        monkeypatch.setenv("CREDENTIAL_KEY", "auth")

        store = build_credential_store(get_settings())

        assert isinstance(store, MemoryCredentialStore)
        assert store.key == "auth"

    def test_file_backend(self, monkeypatch, tmp_path):
        path = str(tmp_path / "credentials.json")
        monkeypatch.setenv("CREDENTIAL_STORE", "file")
        monkeypatch.setenv("CREDENTIAL_STORE_PATH", path)

        store = build_credential_store(get_settings())

        assert isinstance(store, FileCredentialStore)
        assert store.path == path

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("CREDENTIAL_STORE", "cookie-jar")

        with pytest.raises(ValueError):
            build_credential_store(get_settings())

    def test_redis_backend(self, monkeypatch):
        from auth_session import redis_client

        redis_cls = MagicMock()
        monkeypatch.setattr(redis_client, "_redis_client", None)
        monkeypatch.setattr(redis_client.redis, "Redis", redis_cls)
        monkeypatch.setenv("CREDENTIAL_STORE", "redis")
        monkeypatch.setenv("USE_LOCAL_REDIS", "true")

        store = build_credential_store(get_settings())

        assert isinstance(store, RedisCredentialStore)
        assert store.redis is redis_cls.return_value
        kwargs = redis_cls.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 6379
