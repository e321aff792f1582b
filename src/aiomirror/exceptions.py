"""Exception hierarchy for aiomirror."""

from __future__ import annotations


class MirrorError(Exception):
    """Base exception for all aiomirror errors."""


class GitError(MirrorError):
    """Error during a git operation."""


class GitNotInitializedError(GitError):
    """The git repository has not been opened or initialised."""


class SyncError(MirrorError):
    """Tree synchronisation failed for a single path.

    *path* is relative to the tree roots and *operation* names the step that
    was being attempted (``create``, ``update``, ``remove`` ...).
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.operation = operation

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation and self.path is not None:
            return f"{message} ({self.operation} {self.path!r})"
        if self.path is not None:
            return f"{message} ({self.path!r})"
        return message


class UnsupportedDiffShapeError(SyncError):
    """A path changed kind between the trees, or a directory came out distinct."""


class FilesystemError(SyncError):
    """An I/O error while creating, copying or scanning a path."""


class IndexUpdateError(SyncError):
    """The git index rejected a stage, remove or ignore query."""


class ConfigError(MirrorError):
    """Invalid or unreadable configuration."""


class YAMLParseError(ConfigError):
    """Failed to parse a YAML configuration file."""


class VerificationError(MirrorError):
    """A pre-publication condition was not met."""
