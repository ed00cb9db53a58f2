"""Data models for Git Replay."""

from .record import CommitRecord, FileChange, FileState
from .replay import FileAction, ReplaySummary
from .watermark import ReplayWatermark

__all__ = [
    "CommitRecord",
    "FileChange",
    "FileState",
    "FileAction",
    "ReplaySummary",
    "ReplayWatermark",
]
