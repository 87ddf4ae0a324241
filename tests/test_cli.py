"""Tests for CLI commands - login, logout, whoami, upload, cancel, files, tasks."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from watchdesk.cli import cli
from watchdesk.cli.config import get_credentials_file
from watchdesk.cli.runtime import session_expired
from watchdesk.client.api import WatchdeskAPI
from watchdesk.client.credentials import CredentialStore
from watchdesk.client.notifications import ConsoleNotifier
from watchdesk.client.transport import AuthenticatedTransport
from watchdesk.core.config import ClientConfig

SERVER = "http://watchdesk.test"

USER = {"id": "u1", "username": "ada", "email": "ada@example.com", "first_name": "Ada"}

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the CLI at a temporary config directory."""
    monkeypatch.delenv("WATCHDESK_SERVER_URL", raising=False)
    with patch("watchdesk.cli.config.get_config_dir", return_value=tmp_path):
        yield tmp_path


@pytest.fixture
def serve(config_dir: Path) -> Iterator[Callable[[Handler], list[httpx.Request]]]:
    """Route the CLI's API calls to a handler; returns the recorded requests."""
    patcher = None

    def install(handler: Handler) -> list[httpx.Request]:
        nonlocal patcher
        requests: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        def build_api(server_url: str) -> WatchdeskAPI:
            transport = AuthenticatedTransport(
                ClientConfig(server_url=server_url),
                CredentialStore(get_credentials_file()),
                notifier=ConsoleNotifier(),
                on_session_expired=session_expired,
                transport=httpx.MockTransport(recording),
            )
            return WatchdeskAPI(transport)

        patcher = patch("watchdesk.cli.runtime.build_api", side_effect=build_api)
        patcher.start()
        return requests

    yield install
    if patcher is not None:
        patcher.stop()


@pytest.fixture
def logged_in(config_dir: Path) -> CredentialStore:
    """Stored credentials and server URL from a previous login."""
    (config_dir / "config.json").write_text(json.dumps({"server_url": SERVER}))
    store = CredentialStore(config_dir / "credentials.json")
    store.save("access-1", "refresh-1", USER)
    return store


class TestServerResolution:
    """Tests for picking the server URL."""

    def test_no_server_configured(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["files"])

        assert result.exit_code == 1
        assert "No server configured" in result.output

    def test_server_from_environment(self, runner: CliRunner, serve, monkeypatch: pytest.MonkeyPatch) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(200, json={"tasks": []}))
        monkeypatch.setenv("WATCHDESK_SERVER_URL", "http://env.test/")

        result = runner.invoke(cli, ["tasks"])

        assert result.exit_code == 0
        assert str(requests[0].url) == "http://env.test/task"

    def test_option_beats_config(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(200, json={"tasks": []}))

        result = runner.invoke(cli, ["--server", "http://other.test", "tasks"])

        assert result.exit_code == 0
        assert requests[0].url.host == "other.test"


class TestLoginCommand:
    """Tests for 'watchdesk login'."""

    def test_login_stores_tokens(self, runner: CliRunner, serve, config_dir: Path) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(
            200, json={"access_token": "a1", "refresh_token": "r1", "user": USER}
        ))

        result = runner.invoke(
            cli, ["--server", SERVER, "login", "-u", "ada", "--password", "secret"]
        )

        assert result.exit_code == 0
        assert "Logged in as ada" in result.output
        store = CredentialStore(config_dir / "credentials.json")
        assert store.access_token == "a1"
        assert store.refresh_token == "r1"
        assert json.loads((config_dir / "config.json").read_text()) == {"server_url": SERVER}

    def test_login_prompts(self, runner: CliRunner, serve) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(
            200, json={"access_token": "a1", "refresh_token": "r1", "user": USER}
        ))

        result = runner.invoke(cli, ["--server", SERVER, "login"], input="ada\nsecret\n")

        assert result.exit_code == 0
        assert json.loads(requests[0].content)["password"] == "secret"

    def test_bad_credentials(self, runner: CliRunner, serve, config_dir: Path) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(401, json={"detail": "Invalid credentials"}))

        result = runner.invoke(
            cli, ["--server", SERVER, "login", "-u", "ada", "--password", "wrong"]
        )

        assert result.exit_code == 1
        assert "Invalid username or password" in result.output
        assert len(requests) == 1
        assert not (config_dir / "config.json").exists()


class TestSessionCommands:
    """Tests for logout and whoami."""

    def test_logout(self, runner: CliRunner, serve, logged_in: CredentialStore) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(200, json={}))

        result = runner.invoke(cli, ["logout"])

        assert result.exit_code == 0
        assert "Logged out." in result.output
        assert logged_in.access_token is None

    def test_whoami(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(200, json=USER))

        result = runner.invoke(cli, ["whoami"])

        assert result.exit_code == 0
        assert "ada <ada@example.com> (Ada)" in result.output
        assert requests[0].headers["Authorization"] == "Bearer access-1"

    def test_expired_session(self, runner: CliRunner, serve, logged_in: CredentialStore) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(401, json={"detail": "Token expired"}))

        result = runner.invoke(cli, ["whoami"])

        assert result.exit_code == 1
        assert "Session expired" in result.output
        assert logged_in.access_token is None
        assert logged_in.refresh_token is None

    def test_refreshed_token_is_stored(self, runner: CliRunner, serve, logged_in: CredentialStore) -> None:  # type: ignore[no-untyped-def]
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/auth/refresh":
                return httpx.Response(200, json={"access_token": "access-2"})
            if request.headers["Authorization"] == "Bearer access-2":
                return httpx.Response(200, json=USER)
            return httpx.Response(401)

        serve(handler)

        result = runner.invoke(cli, ["whoami"])

        assert result.exit_code == 0
        assert logged_in.access_token == "access-2"
        assert logged_in.refresh_token == "refresh-1"


class TestUploadCommand:
    """Tests for 'watchdesk upload'."""

    def test_small_file(self, runner: CliRunner, serve, logged_in, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "people.csv"
        path.write_text("name\nada\n")
        requests = serve(lambda r: httpx.Response(200, json={"id": "f1"}))

        result = runner.invoke(cli, ["upload", str(path)])

        assert result.exit_code == 0
        assert "Uploaded people.csv" in result.output
        assert "Upload ID" not in result.output
        assert len(requests) == 1

    def test_chunked_file(self, runner: CliRunner, serve, logged_in, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "people.csv"
        path.write_bytes(b"0123456789")
        requests = serve(lambda r: httpx.Response(200, json={"received": True}))

        result = runner.invoke(cli, ["upload", str(path), "--chunk-size", "4", "--no-progress"])

        assert result.exit_code == 0
        assert "Upload ID:" in result.output
        assert len(requests) == 3
        assert b'filename="people.csv.chunk2"' in requests[2].content

    def test_failed_chunk(self, runner: CliRunner, serve, logged_in, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "people.csv"
        path.write_bytes(b"0123456789")
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 2:
                return httpx.Response(507, json={"detail": "Disk full"})
            return httpx.Response(200, json={})

        serve(handler)

        result = runner.invoke(cli, ["upload", str(path), "--chunk-size", "4", "--no-progress"])

        assert result.exit_code == 1
        assert "Error: Failed to upload chunk 2/3: Disk full" in result.output
        assert calls["count"] == 2

    def test_missing_file(self, runner: CliRunner, logged_in, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
        result = runner.invoke(cli, ["upload", str(tmp_path / "missing.csv")])

        assert result.exit_code == 2


class TestListingCommands:
    """Tests for 'watchdesk files', 'watchdesk tasks' and 'watchdesk cancel'."""

    def test_files(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(200, json={
            "files": [{"id": "f1", "filename": "people.csv", "file_size": 2048, "status": "completed"}],
            "total": 1,
            "page": 1,
            "per_page": 20,
            "total_pages": 1,
        }))

        result = runner.invoke(cli, ["files"])

        assert result.exit_code == 0
        assert "people.csv" in result.output
        assert "2.0 KB" in result.output
        assert "Page 1/1 (1 files)" in result.output

    def test_no_files(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(200, json={
            "files": [], "total": 0, "page": 1, "per_page": 20, "total_pages": 0,
        }))

        result = runner.invoke(cli, ["files"])

        assert result.exit_code == 0
        assert "No files." in result.output

    def test_tasks(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(200, json={
            "tasks": [{"id": "t1", "status": "running", "name": "Q1 screening"}],
            "total": 1,
        }))

        result = runner.invoke(cli, ["tasks"])

        assert result.exit_code == 0
        assert "Q1 screening" in result.output
        assert "1 tasks" in result.output

    def test_cancel(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        requests = serve(lambda r: httpx.Response(200, json={}))

        result = runner.invoke(cli, ["cancel", "abc-123"])

        assert result.exit_code == 0
        assert "Cancelled upload abc-123" in result.output
        assert requests[0].method == "DELETE"
        assert requests[0].url.path == "/files/chunked/abc-123"

    def test_cancel_failure_is_reported(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(404, json={"detail": "Upload not found"}))

        result = runner.invoke(cli, ["cancel", "abc-123"])

        assert result.exit_code == 1
        assert "Server could not discard upload abc-123: Upload not found" in result.output
        assert "Cancelled upload" not in result.output

    def test_server_error_exits_nonzero(self, runner: CliRunner, serve, logged_in) -> None:  # type: ignore[no-untyped-def]
        serve(lambda r: httpx.Response(500, json={"message": "Database unavailable"}))

        result = runner.invoke(cli, ["files"])

        assert result.exit_code == 1
        assert "Database unavailable" in result.output


def test_format_size() -> None:
    from watchdesk.cli.files import format_size

    assert format_size(512) == "512 B"
    assert format_size(2048) == "2.0 KB"
    assert format_size(5 * 1024 * 1024) == "5.0 MB"
