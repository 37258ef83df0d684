"""
Credential Store - persistence of the bearer credential.
========================================================

The store keeps exactly one opaque credential under a well-known key. It is
the single source of truth for the credential: the session manager reads it
back from here instead of keeping its own copy.

Backends:
    - MemoryCredentialStore: process-local, lost on exit (tests, embedding)
    - FileCredentialStore: JSON file on disk, survives restarts
    - RedisCredentialStore: key ``credential:{key}`` in Redis

Usage:
    store = build_credential_store(get_settings())
    store.set("tok123")
    store.get()      # "tok123"
    store.remove()
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .config import Settings
from .errors import CredentialStoreError
from .logging_setup import mask_token

logger = logging.getLogger("auth_session.store")

CREDENTIAL_PREFIX = "credential"


class CredentialStore(ABC):
    """Scoped key-value surface holding one credential."""

    def __init__(self, key: str = "token"):
        self.key = key

    @abstractmethod
    def get(self) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, token: str) -> None:
        ...

    @abstractmethod
    def remove(self) -> None:
        ...

    def compare_and_remove(self, token: str) -> bool:
        """Remove the credential only if it is still ``token``."""
        if self.get() != token:
            logger.debug(
                "credential_keep key=%s reason=replaced token=%s", self.key, mask_token(token)
            )
            return False
        self.remove()
        return True


class MemoryCredentialStore(CredentialStore):

    def __init__(self, key: str = "token", initial: Optional[str] = None):
        super().__init__(key)
        self._values: Dict[str, str] = {}
        if initial:
            self._values[key] = initial

    def get(self) -> Optional[str]:
        return self._values.get(self.key)

    def set(self, token: str) -> None:
        self._values[self.key] = token

    def remove(self) -> None:
        self._values.pop(self.key, None)


class FileCredentialStore(CredentialStore):
    """
    JSON file backend.

    Several keys may share one file; each instance only touches its own key.
    A missing or unreadable file reads as an empty store.
    """

    def __init__(self, path: str, key: str = "token"):
        super().__init__(key)
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            logger.warning("credential_file_corrupt path=%s error=%s", self.path, e)
            return {}
        except OSError as e:
            raise CredentialStoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            logger.warning("credential_file_corrupt path=%s error=not_an_object", self.path)
            return {}
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        tmp_path = f"{self.path}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CredentialStoreError(f"Cannot write {self.path}: {e}") from e

    def get(self) -> Optional[str]:
        value = self._load().get(self.key)
        return value if isinstance(value, str) and value else None

    def set(self, token: str) -> None:
        data = self._load()
        data[self.key] = token
        self._dump(data)
        logger.debug("credential_set backend=file key=%s token=%s", self.key, mask_token(token))

    def remove(self) -> None:
        data = self._load()
        if self.key not in data:
            return
        del data[self.key]
        self._dump(data)
        logger.debug("credential_remove backend=file key=%s", self.key)


class RedisCredentialStore(CredentialStore):

    def __init__(self, redis_client=None, key: str = "token"):
        super().__init__(key)
        self._redis = redis_client

    @property
    def redis(self):
        if self._redis is None:
            from .redis_client import get_redis
            self._redis = get_redis()
        return self._redis

    def _build_key(self) -> str:
        return f"{CREDENTIAL_PREFIX}:{self.key}"

    def get(self) -> Optional[str]:
        try:
            raw = self.redis.get(self._build_key())
        except Exception as e:
            raise CredentialStoreError(f"Redis get failed: {e}") from e
        if not raw:
            return None
        return raw if isinstance(raw, str) else raw.decode()

    def set(self, token: str) -> None:
        try:
            self.redis.set(self._build_key(), token)
        except Exception as e:
            raise CredentialStoreError(f"Redis set failed: {e}") from e
        logger.debug("credential_set backend=redis key=%s token=%s", self.key, mask_token(token))

    def remove(self) -> None:
        try:
            self.redis.delete(self._build_key())
        except Exception as e:
            raise CredentialStoreError(f"Redis delete failed: {e}") from e
        logger.debug("credential_remove backend=redis key=%s", self.key)


def build_credential_store(settings: Settings) -> CredentialStore:
    backend = settings.credential_store
    if backend == "memory":
        return MemoryCredentialStore(key=settings.credential_key)
    if backend == "file":
        return FileCredentialStore(settings.credential_store_path, key=settings.credential_key)
    if backend == "redis":
        from .redis_client import get_redis
        return RedisCredentialStore(get_redis(settings), key=settings.credential_key)
    raise ValueError(f"Unknown credential store backend: {backend!r}")


__all__ = [
    "CredentialStore",
    "MemoryCredentialStore",
    "FileCredentialStore",
    "RedisCredentialStore",
    "build_credential_store",
]
