from unittest import mock

import pytest
from typer.testing import CliRunner

from library_sync.api.error_handling import ErrorCategory, TransientTransportError
from library_sync.cli import app
from library_sync.data.models import Book, ComparisonResult
from library_sync.data.sync_types import ReplicaStats, SyncStatusResponse, TransportStatus

runner = CliRunner()


@pytest.fixture
def mock_client():
    """Patch the container so commands never open a real session."""
    client = mock.MagicMock()
    client.sync.get_sync_status = mock.AsyncMock()
    client.sync.trigger_sync = mock.AsyncMock()
    client.sync.compare_libraries = mock.AsyncMock()
    client.sync.get_sync_history = mock.AsyncMock()
    client.sync.check_health = mock.AsyncMock()
    client.books.get_books = mock.AsyncMock()
    with mock.patch("library_sync.cli.LibrarySyncClient") as client_cls:
        client_cls.return_value.__aenter__.return_value = client
        client.client_cls = client_cls
        yield client


def test_status(mock_client):
    """Test status command shows the last result summary."""
    mock_client.sync.get_sync_status.return_value = SyncStatusResponse(
        status=TransportStatus.IDLE,
        last_sync="2024-05-01T10:00:00",
        result={"/mnt/kobo": ReplicaStats(added=2)},
    )
    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "Status: idle" in result.stdout
    assert "Last result: 2 added" in result.stdout


def test_trigger_dry_run(mock_client):
    """Test trigger command passes the dry-run flag through."""
    mock_client.sync.trigger_sync.return_value = SyncStatusResponse(status=TransportStatus.STARTED)
    result = runner.invoke(app, ["trigger", "--dry-run", "--base-url", "http://nas:8000/api/v1"])

    mock_client.sync.trigger_sync.assert_awaited_once_with(dry_run=True)
    mock_client.client_cls.assert_called_once_with(base_url="http://nas:8000/api/v1")
    assert "Sync service answered: started" in result.stdout
    assert result.exit_code == 0


def test_books(mock_client):
    mock_client.books.get_books.return_value = [Book(id=1, title="Dune", authors=["Frank Herbert"])]
    result = runner.invoke(app, ["books", "--location", "kindle"])

    mock_client.books.get_books.assert_awaited_once_with("kindle")
    assert "Dune - Frank Herbert" in result.stdout
    assert "1 book(s)" in result.stdout


def test_compare(mock_client):
    mock_client.sync.compare_libraries.return_value = ComparisonResult.from_dict(
        {"replicas": [{"name": "kobo", "path": "/mnt/kobo", "status": "ok", "unique_to_main_library": 2}]}
    )
    result = runner.invoke(app, ["compare"])

    assert "kobo: 2 only in main, 0 only in replica" in result.stdout
    assert "Total differences: 2" in result.stdout


def test_history_limit(mock_client):
    mock_client.sync.get_sync_history.return_value = [{"id": 1, "status": "completed"}]
    result = runner.invoke(app, ["history", "-n", "1"])

    mock_client.sync.get_sync_history.assert_awaited_once_with(limit=1)
    assert "id=1 status=completed" in result.stdout
    assert "1 entry" in result.stdout


def test_api_error_exits_with_code_1(mock_client):
    """Test that client errors are reported without a traceback."""
    mock_client.sync.check_health.side_effect = TransientTransportError(
        ErrorCategory.NETWORK, "Unable to connect to server. Please check your internet connection.", 0
    )
    result = runner.invoke(app, ["health"])

    assert result.exit_code == 1
    assert "Unable to connect to server" in result.output
