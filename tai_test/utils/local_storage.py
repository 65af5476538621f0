"""
Key-value blob storage for device-local data

Each key holds one JSON document that callers read, modify and write back
whole. Backends raise StorageError; the result store decides how to degrade.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import redis

from tai_test.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the underlying storage cannot be read or written"""


class KeyValueStorage:
    """Interface shared by the storage backends"""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, *keys: str) -> None:
        raise NotImplementedError


class FileStorage(KeyValueStorage):
    """One JSON file per key inside a directory"""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {key}: {str(e)}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize {key}: {str(e)}") from e

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            # Atomic swap, readers see the old or the new document
            os.replace(tmp_path, self._path(key))
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {str(e)}") from e

    def delete(self, *keys: str) -> None:
        try:
            for key in keys:
                self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {keys}: {str(e)}") from e


class RedisStorage(KeyValueStorage):
    """Redis-backed storage, values serialized as JSON strings"""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.redis_client = client or redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5
        )

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.redis_client.get(key)
        except redis.RedisError as e:
            raise StorageError(f"Redis get error for {key}: {str(e)}") from e
        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError as e:
            raise StorageError(f"Corrupt value under {key}: {str(e)}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            self.redis_client.set(key, json.dumps(value, ensure_ascii=False))
        except (redis.RedisError, TypeError, ValueError) as e:
            raise StorageError(f"Redis set error for {key}: {str(e)}") from e

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self.redis_client.delete(*keys)
        except redis.RedisError as e:
            raise StorageError(f"Redis delete error for {keys}: {str(e)}") from e


def create_storage(backend: Optional[str] = None) -> KeyValueStorage:
    """Build the storage backend named in settings"""
    backend = backend or settings.LOCAL_STORAGE_BACKEND
    if backend == "redis":
        logger.info("Using Redis local storage")
        return RedisStorage(settings.REDIS_URL)
    if backend == "file":
        logger.info(f"Using file local storage in {settings.LOCAL_STORAGE_DIR}")
        return FileStorage(settings.LOCAL_STORAGE_DIR)
    raise ValueError(f"Unknown storage backend: {backend}")
