"""Unit tests for session and session-id storage."""

import json
import re
from unittest.mock import patch

import pytest

from chat_assist.schemas import AuthSession
from chat_assist.storage import FileStorage, MemoryStorage, SessionIdStore, SessionStore
from chat_assist.utils import now_ms


def make_session(expires_in_ms=3600 * 1000, refresh_token="refresh-1"):
    return AuthSession(
        token="token-1",
        refresh_token=refresh_token,
        expires_at=now_ms() + expires_in_ms,
        user={"id": "user-1", "email": "jane@example.com", "name": "Jane"},
    )


@pytest.mark.unit
class TestMemoryStorage:
    """Test in-memory storage."""

    def test_set_get_remove(self):
        storage = MemoryStorage()

        storage.set_item("key", "value")
        assert storage.get_item("key") == "value"

        storage.remove_item("key")
        assert storage.get_item("key") is None

    def test_remove_missing_key_is_noop(self):
        MemoryStorage().remove_item("missing")


@pytest.mark.unit
class TestFileStorage:
    """Test file-backed storage."""

    def test_set_creates_directory_and_file(self, tmp_path):
        # Arrange
        storage = FileStorage(tmp_path / "state")

        # Act
        storage.set_item("aws_auth_token", "{\"token\": \"x\"}")

        # Assert
        assert (tmp_path / "state" / "aws_auth_token.json").read_text() == "{\"token\": \"x\"}"
        assert storage.get_item("aws_auth_token") == "{\"token\": \"x\"}"

    def test_overwrite_replaces_whole_value(self, tmp_path):
        storage = FileStorage(tmp_path)

        storage.set_item("key", "a much longer first value")
        storage.set_item("key", "short")

        assert storage.get_item("key") == "short"

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = FileStorage(tmp_path)

        storage.set_item("key", "value")

        assert [path.name for path in tmp_path.iterdir()] == ["key.json"]

    def test_failed_write_keeps_previous_value(self, tmp_path):
        # Arrange
        storage = FileStorage(tmp_path)
        storage.set_item("key", "old")

        # Act
        with patch("chat_assist.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                storage.set_item("key", "new")

        # Assert
        assert storage.get_item("key") == "old"
        assert [path.name for path in tmp_path.iterdir()] == ["key.json"]

    def test_get_missing_and_remove_missing(self, tmp_path):
        storage = FileStorage(tmp_path)

        assert storage.get_item("missing") is None
        storage.remove_item("missing")


@pytest.mark.unit
class TestSessionStore:
    """Test auth session persistence."""

    def setup_method(self):
        self.storage = MemoryStorage()
        self.store = SessionStore(self.storage, "aws_auth_token")

    def test_save_uses_camel_case_record(self):
        # Act
        self.store.save(make_session())

        # Assert
        stored = json.loads(self.storage.get_item("aws_auth_token"))
        assert stored["token"] == "token-1"
        assert stored["refreshToken"] == "refresh-1"
        assert "expiresAt" in stored
        assert stored["user"]["email"] == "jane@example.com"

    def test_get_round_trips_session(self):
        session = make_session()
        self.store.save(session)

        assert self.store.get() == session
        assert self.store.get_auth_token() == "token-1"
        assert self.store.get_current_user().id == "user-1"

    def test_get_without_session(self):
        assert self.store.get() is None
        assert self.store.get_auth_token() is None
        assert self.store.get_current_user() is None

    def test_expired_session_is_removed_on_read(self):
        # Arrange
        self.store.save(make_session(expires_in_ms=-1000))

        # Act
        session = self.store.get()

        # Assert
        assert session is None
        assert self.storage.get_item("aws_auth_token") is None

    def test_corrupt_session_reads_as_none(self):
        self.storage.set_item("aws_auth_token", "{not json")

        assert self.store.get() is None

    def test_clear(self):
        self.store.save(make_session())

        self.store.clear()

        assert self.store.get() is None


@pytest.mark.unit
class TestSessionIdStore:
    """Test conversation session id storage."""

    def test_get_or_create_generates_once(self):
        # Arrange
        store = SessionIdStore(MemoryStorage(), "aws_session_id")

        # Act
        first = store.get_or_create()
        second = store.get_or_create()

        # Assert
        assert re.fullmatch(r"session_\d+_[a-z0-9]{7}", first)
        assert first == second

    def test_clear_starts_new_conversation(self):
        store = SessionIdStore(MemoryStorage())
        first = store.get_or_create()

        store.clear()

        assert store.storage.get_item("aws_session_id") is None
        assert store.get_or_create() != first
