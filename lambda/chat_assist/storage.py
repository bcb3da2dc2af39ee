"""
Local state storage for the chat client.

Two pieces of client state are persisted:
- The auth session, one JSON record under the token storage key
  (persistent, FileStorage)
- The conversation session id, a plain string under the session storage key
  (tab-scoped, MemoryStorage)

Stores are explicit objects injected into the clients so they can be
replaced in tests. Every write replaces the whole value for its key.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from .schemas import AuthSession, AuthUser
from .utils import generate_session_id, now_ms

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Minimal string key-value storage with atomic get/set/remove."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class MemoryStorage(KeyValueStorage):
    """Process-lifetime storage, the equivalent of tab-scoped storage."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage(KeyValueStorage):
    """
    Persistent storage, one file per key under a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers see either the old or the new value.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


class SessionStore:
    """
    Owns the persisted auth session.

    Expired sessions are deleted when read.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "aws_auth_token"):
        self.storage = storage
        self.key = key

    def get(self) -> Optional[AuthSession]:
        """
        Get the stored auth session.

        Returns:
            AuthSession, or None when absent, expired or unreadable
        """
        stored = self.storage.get_item(self.key)
        if not stored:
            return None

        try:
            session = AuthSession.model_validate(json.loads(stored))
        except (ValueError, ValidationError) as e:
            logger.warning(f"[session-store] Ignoring unreadable stored session: {e}")
            return None

        if session.expires_at < now_ms():
            logger.info("[session-store] Stored session expired, clearing")
            self.storage.remove_item(self.key)
            return None

        return session

    def save(self, session: AuthSession) -> None:
        self.storage.set_item(self.key, session.to_json())

    def clear(self) -> None:
        self.storage.remove_item(self.key)

    def get_auth_token(self) -> Optional[str]:
        session = self.get()
        return session.token if session else None

    def get_current_user(self) -> Optional[AuthUser]:
        session = self.get()
        return session.user if session else None


class SessionIdStore:
    """Owns the conversation session id, created lazily and reused until cleared."""

    def __init__(self, storage: KeyValueStorage, key: str = "aws_session_id"):
        self.storage = storage
        self.key = key

    def get_or_create(self) -> str:
        session_id = self.storage.get_item(self.key)

        if not session_id:
            session_id = generate_session_id()
            self.storage.set_item(self.key, session_id)
            logger.info(f"[session-store] Started conversation {session_id}")

        return session_id

    def clear(self) -> None:
        self.storage.remove_item(self.key)
