"""Git-related models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RepoStatus(BaseModel):
    """Working-copy status of a git repository.

    The ``staged_*`` lists describe the index relative to ``HEAD``;
    ``unstaged`` and ``untracked`` describe the worktree relative to the index.
    """

    staged_added: list[str] = Field(default_factory=list)
    staged_modified: list[str] = Field(default_factory=list)
    staged_deleted: list[str] = Field(default_factory=list)
    staged_renamed: list[str] = Field(default_factory=list)
    unstaged: list[str] = Field(default_factory=list)
    untracked: list[str] = Field(default_factory=list)

    @property
    def staged(self) -> list[str]:
        """All staged paths, in the order ``git status`` reported them by category."""
        return [
            *self.staged_added,
            *self.staged_modified,
            *self.staged_deleted,
            *self.staged_renamed,
        ]

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked)
