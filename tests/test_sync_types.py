"""Tests for sync result and status types."""

import pytest

from library_sync.data.sync_types import (
    JobState,
    ReplicaError,
    ReplicaStats,
    SyncStatus,
    SyncStatusResponse,
    TransportStatus,
    job_state_for,
    parse_replica_outcome,
    replica_display_name,
    result_has_errors,
    summarize_result,
    total_changes,
)


class TestJobState:
    """Test the mapping from wire statuses to client job state."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (TransportStatus.STARTED, JobState.RUNNING),
            (TransportStatus.ALREADY_RUNNING, JobState.RUNNING),
            (TransportStatus.IN_PROGRESS, JobState.RUNNING),
            (TransportStatus.IDLE, JobState.IDLE),
        ],
    )
    def test_job_state_for(self, status, expected):
        assert job_state_for(status) is expected

    def test_sync_status_keeps_raw_status(self):
        status = SyncStatus.from_response(SyncStatusResponse(status=TransportStatus.ALREADY_RUNNING))
        assert status.is_running
        assert status.raw_status is TransportStatus.ALREADY_RUNNING


class TestReplicaOutcome:
    """Test the stats/error variant split."""

    def test_error_variant(self):
        outcome = parse_replica_outcome({"error": "Permission denied"})
        assert isinstance(outcome, ReplicaError)
        assert outcome.kind == "error"

    def test_stats_variant_defaults(self):
        outcome = parse_replica_outcome({"added": 1})
        assert isinstance(outcome, ReplicaStats)
        assert outcome.kind == "stats"
        assert outcome.updated == 0
        assert outcome.error_files == ()

    def test_from_dict_without_details(self):
        response = SyncStatusResponse.from_dict({"status": "idle"})
        assert response.result is None
        assert response.errors is None


class TestSummaries:
    def test_summary_counts(self):
        result = {
            "/mnt/a": ReplicaStats(added=3, updated=1),
            "/mnt/b": ReplicaStats(deleted=2, errors=1),
            "/mnt/c": ReplicaError("offline"),
        }
        assert summarize_result(result) == "3 added, 1 updated, 2 deleted, 2 errors"
        assert result_has_errors(result)

    def test_no_changes(self):
        result = {"/mnt/a": ReplicaStats(unchanged=10)}
        assert summarize_result(result) == "No changes"
        assert not result_has_errors(result)

    def test_total_changes(self):
        assert total_changes(ReplicaStats(added=1, updated=2, deleted=3, unchanged=9)) == 6

    def test_replica_display_name(self):
        assert replica_display_name("/mnt/kobo/") == "kobo"
        assert replica_display_name("kindle") == "kindle"
