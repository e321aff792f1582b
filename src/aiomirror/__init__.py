"""aiomirror — Async Python library for mirroring a project tree into another git repository."""

from ._version import __version__
from .config import load_config, parse_config
from .exceptions import (
    ConfigError,
    FilesystemError,
    GitError,
    GitNotInitializedError,
    IndexUpdateError,
    MirrorError,
    SyncError,
    UnsupportedDiffShapeError,
    VerificationError,
    YAMLParseError,
)
from .git import GitManager, build_exclusion_predicate, compare_trees, synchronize
from .models import (
    DiffEntry,
    DiffState,
    EntryKind,
    NextRelease,
    PublishConfig,
    PublishResult,
    RepoStatus,
    SyncResult,
    TreeEntry,
)
from .publish import publish
from .verify import verify_conditions

__all__ = [
    "ConfigError",
    "DiffEntry",
    "DiffState",
    "EntryKind",
    "FilesystemError",
    "GitError",
    "GitManager",
    "GitNotInitializedError",
    "IndexUpdateError",
    "MirrorError",
    "NextRelease",
    "PublishConfig",
    "PublishResult",
    "RepoStatus",
    "SyncError",
    "SyncResult",
    "TreeEntry",
    "UnsupportedDiffShapeError",
    "VerificationError",
    "YAMLParseError",
    "__version__",
    "build_exclusion_predicate",
    "compare_trees",
    "load_config",
    "parse_config",
    "publish",
    "synchronize",
    "verify_conditions",
]
