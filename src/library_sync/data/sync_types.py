"""Typed contracts for replica synchronization results and job status."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union


class TransportStatus(str, Enum):
    """Job status values reported by the sync service."""

    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    IDLE = "idle"
    IN_PROGRESS = "in_progress"


class JobState(str, Enum):
    """Whether a sync job is currently running, as seen by the client."""

    IDLE = "idle"
    RUNNING = "running"


_RUNNING_STATUSES = {TransportStatus.STARTED, TransportStatus.ALREADY_RUNNING, TransportStatus.IN_PROGRESS}


def job_state_for(status: TransportStatus) -> JobState:
    """Collapse a transport status into the idle/running pair used for polling."""
    return JobState.RUNNING if status in _RUNNING_STATUSES else JobState.IDLE


@dataclass(frozen=True)
class ReplicaStats:
    """Per-replica counts from a completed sync."""

    added: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    ignored: int = 0
    errors: int = 0
    added_files: tuple[str, ...] = ()
    updated_files: tuple[str, ...] = ()
    deleted_files: tuple[str, ...] = ()
    ignored_files: tuple[str, ...] = ()
    error_files: tuple[str, ...] = ()
    kind: Literal["stats"] = field(default="stats", init=False)


@dataclass(frozen=True)
class ReplicaError:
    """A replica the sync could not process at all."""

    error: str
    kind: Literal["error"] = field(default="error", init=False)


ReplicaOutcome = Union[ReplicaStats, ReplicaError]
SyncResult = Mapping[str, ReplicaOutcome]

_COUNT_FIELDS = ("added", "updated", "deleted", "unchanged", "ignored", "errors")
_FILE_FIELDS = ("added_files", "updated_files", "deleted_files", "ignored_files", "error_files")


def parse_replica_outcome(data: Mapping[str, Any]) -> ReplicaOutcome:
    """Pick the variant for one replica from its wire shape."""
    if "error" in data:
        return ReplicaError(error=str(data["error"]))
    counts = {name: int(data.get(name) or 0) for name in _COUNT_FIELDS}
    files = {name: tuple(data.get(name) or ()) for name in _FILE_FIELDS}
    return ReplicaStats(**counts, **files)


def parse_sync_result(data: Optional[Mapping[str, Any]]) -> Optional[dict[str, ReplicaOutcome]]:
    if data is None:
        return None
    return {replica: parse_replica_outcome(outcome) for replica, outcome in data.items()}


@dataclass(frozen=True)
class SyncStatusResponse:
    """Status of the sync job as returned by the service."""

    status: TransportStatus
    last_sync: Optional[str] = None
    result: Optional[dict[str, ReplicaOutcome]] = None
    errors: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SyncStatusResponse":
        details = data.get("details") or {}
        return cls(
            status=TransportStatus(data["status"]),
            last_sync=data.get("last_sync"),
            result=parse_sync_result(details.get("result")),
            errors=details.get("errors"),
        )


@dataclass(frozen=True)
class SyncStatus:
    """Client-side view of the job; keeps the raw status for callers that care."""

    state: JobState
    raw_status: TransportStatus
    last_sync: Optional[str] = None
    result: Optional[dict[str, ReplicaOutcome]] = None
    errors: Optional[str] = None

    @classmethod
    def from_response(cls, response: SyncStatusResponse) -> "SyncStatus":
        return cls(
            state=job_state_for(response.status),
            raw_status=response.status,
            last_sync=response.last_sync,
            result=response.result,
            errors=response.errors,
        )

    @property
    def is_running(self) -> bool:
        return self.state is JobState.RUNNING


def total_changes(stats: ReplicaStats) -> int:
    return stats.added + stats.updated + stats.deleted


def result_has_errors(result: SyncResult) -> bool:
    """True when any replica failed outright or reported file errors."""
    for outcome in result.values():
        if isinstance(outcome, ReplicaError) or outcome.errors > 0:
            return True
    return False


def summarize_result(result: SyncResult) -> str:
    """One-line summary such as ``"3 added, 1 updated, 2 errors"``."""
    added = updated = deleted = errors = 0
    for outcome in result.values():
        if outcome.kind == "error":
            errors += 1
            continue
        added += outcome.added
        updated += outcome.updated
        deleted += outcome.deleted
        if outcome.errors > 0:
            errors += 1

    parts = []
    if added:
        parts.append(f"{added} added")
    if updated:
        parts.append(f"{updated} updated")
    if deleted:
        parts.append(f"{deleted} deleted")
    if errors:
        parts.append(f"{errors} errors")
    return ", ".join(parts) if parts else "No changes"


def replica_display_name(path: str) -> str:
    return path.rstrip("/").split("/")[-1] or path
