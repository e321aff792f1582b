"""Pydantic models for aiomirror."""

from .config import NextRelease, PublishConfig
from .git import RepoStatus
from .publish import PublishResult
from .sync import DiffEntry, DiffState, EntryKind, SyncResult, TreeEntry

__all__ = [
    "DiffEntry",
    "DiffState",
    "EntryKind",
    "NextRelease",
    "PublishConfig",
    "PublishResult",
    "RepoStatus",
    "SyncResult",
    "TreeEntry",
]
