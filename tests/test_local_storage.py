"""
Tests for the key-value storage backends.
"""
import json
from unittest.mock import MagicMock

import pytest
import redis

from tai_test.utils.local_storage import (
    FileStorage,
    RedisStorage,
    StorageError,
    create_storage,
)


class TestFileStorage:

    def test_round_trip(self, tmp_path):
        storage = FileStorage(str(tmp_path / "kv"))
        storage.set("tai_app_settings", {"theme": "dark", "name": "Organización"})

        assert storage.get("tai_app_settings") == {"theme": "dark", "name": "Organización"}

    def test_missing_key_returns_none(self, tmp_path):
        assert FileStorage(str(tmp_path)).get("nothing") is None

    def test_delete_is_tolerant_of_missing_keys(self, tmp_path):
        storage = FileStorage(str(tmp_path))
        storage.set("a", 1)

        storage.delete("a", "b")

        assert storage.get("a") is None

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "bad.json").write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StorageError):
            FileStorage(str(tmp_path)).get("bad")

    def test_unserializable_value_raises(self, tmp_path):
        with pytest.raises(StorageError):
            FileStorage(str(tmp_path)).set("bad", {1, 2})


class TestRedisStorage:

    def test_set_serializes_json(self):
        client = MagicMock()
        RedisStorage(client=client).set("tai_test_last_sync", 1700000000000)
        client.set.assert_called_once_with("tai_test_last_sync", "1700000000000")

    def test_get_parses_json(self):
        client = MagicMock()
        client.get.return_value = json.dumps([{"id": "r1"}])
        assert RedisStorage(client=client).get("tai_test_results") == [{"id": "r1"}]

    def test_get_missing(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisStorage(client=client).get("tai_test_results") is None

    def test_connection_error_raises_storage_error(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("refused")
        with pytest.raises(StorageError):
            RedisStorage(client=client).get("tai_test_results")

    def test_corrupt_value_raises_storage_error(self):
        client = MagicMock()
        client.get.return_value = "{oops"
        with pytest.raises(StorageError):
            RedisStorage(client=client).get("tai_test_results")

    def test_delete_many(self):
        client = MagicMock()
        RedisStorage(client=client).delete("a", "b")
        client.delete.assert_called_once_with("a", "b")


def test_create_storage_file_backend():
    assert isinstance(create_storage("file"), FileStorage)


def test_create_storage_unknown_backend():
    with pytest.raises(ValueError):
        create_storage("sqlite")
