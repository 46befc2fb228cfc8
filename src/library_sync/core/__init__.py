"""Core client plumbing: loading state, notifications and dependency wiring."""

from .loading import LoadingTracker
from .notifications import LoggingNotifier, Notifier, RecordingNotifier, Severity

__all__ = ["LoadingTracker", "Notifier", "LoggingNotifier", "RecordingNotifier", "Severity"]
