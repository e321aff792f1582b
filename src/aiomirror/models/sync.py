"""Tree comparison models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EntryKind(str, Enum):
    """Filesystem entry kind."""

    FILE = "file"
    DIRECTORY = "directory"


class DiffState(str, Enum):
    """Outcome of comparing one relative path across two trees."""

    EQUAL = "equal"
    ONLY_SOURCE = "only_source"
    ONLY_DEST = "only_dest"
    DISTINCT = "distinct"


class TreeEntry(BaseModel):
    """A path found while scanning one tree."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    kind: EntryKind
    size: int | None = None
    # Set for symlinks that were recorded rather than followed.
    link_target: str | None = None


class DiffEntry(BaseModel):
    """One path's classified comparison result between source and destination."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    state: DiffState
    source_kind: EntryKind | None = None
    dest_kind: EntryKind | None = None

    @model_validator(mode="after")
    def _check_sides(self) -> DiffEntry:
        has_source = self.source_kind is not None
        has_dest = self.dest_kind is not None
        if self.state is DiffState.ONLY_SOURCE and (not has_source or has_dest):
            raise ValueError("only_source entries need a source kind and no destination kind")
        if self.state is DiffState.ONLY_DEST and (has_source or not has_dest):
            raise ValueError("only_dest entries need a destination kind and no source kind")
        if self.state in (DiffState.EQUAL, DiffState.DISTINCT) and not (has_source and has_dest):
            raise ValueError(f"{self.state.value} entries need both kinds")
        return self


class SyncResult(BaseModel):
    """Summary of the mutations applied to a destination tree."""

    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    directories_created: list[str] = Field(default_factory=list)
    # Written to disk but left unstaged because git reports them as ignored.
    unstaged: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed or self.directories_created)
