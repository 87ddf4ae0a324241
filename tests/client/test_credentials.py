"""Tests for persisted credentials."""

import json
import stat
from pathlib import Path

from watchdesk.client.credentials import CredentialStore


class TestMemoryStore:
    """Tests for a store without a file."""

    def test_empty_by_default(self) -> None:
        store = CredentialStore()
        assert store.access_token is None
        assert store.refresh_token is None
        assert store.user is None

    def test_save_and_clear(self) -> None:
        store = CredentialStore()
        store.save("access", "refresh", {"username": "ada"})

        assert store.access_token == "access"
        assert store.refresh_token == "refresh"
        assert store.user == {"username": "ada"}

        store.clear()
        assert store.access_token is None
        assert store.refresh_token is None

    def test_set_access_token_keeps_refresh_token(self) -> None:
        store = CredentialStore()
        store.save("access", "refresh")
        store.set_access_token("access-2")

        assert store.access_token == "access-2"
        assert store.refresh_token == "refresh"


class TestFileStore:
    """Tests for a store backed by a JSON file."""

    def test_persists_between_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        CredentialStore(path).save("access", "refresh")

        store = CredentialStore(path)
        assert store.access_token == "access"
        assert store.refresh_token == "refresh"

    def test_reads_changes_from_disk(self, tmp_path: Path) -> None:
        """A token refreshed by another process is picked up."""
        path = tmp_path / "credentials.json"
        store = CredentialStore(path)
        store.save("access", "refresh")

        CredentialStore(path).set_access_token("from-elsewhere")

        assert store.access_token == "from-elsewhere"

    def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        CredentialStore(path).save("access")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        store = CredentialStore(path)
        store.save("access", "refresh")

        store.clear()

        assert not path.exists()
        assert store.access_token is None

    def test_corrupt_file_is_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text("{not json")

        assert CredentialStore(path).access_token is None

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "credentials.json"
        CredentialStore(path).save("access")

        assert json.loads(path.read_text())["access_token"] == "access"
