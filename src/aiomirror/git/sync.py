"""Source → destination tree reconciliation.

Makes the tracked content of a destination git working copy equal to a
source directory.  Both trees are scanned and classified before any mutation
is applied, then every non-equal path is dispatched on its
``(state, kind)`` pair and staged through a :class:`StagingIndex`.

Processing is sequential; the first failure aborts the run and leaves the
destination partially synchronised.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol

from ..exceptions import (
    FilesystemError,
    GitError,
    IndexUpdateError,
    UnsupportedDiffShapeError,
)
from ..models.sync import DiffEntry, DiffState, EntryKind, SyncResult, TreeEntry
from .filters import build_exclusion_predicate
from .manager import GitManager

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class StagingIndex(Protocol):
    """The version-control operations the reconciler needs from a destination."""

    def add(self, path: str) -> None: ...

    def remove(self, path: str) -> None: ...

    def is_ignored(self, path: str) -> bool: ...


# ----------------------------------------------------------------------
# Scanning and comparison
# ----------------------------------------------------------------------


def scan_tree(
    root: Path,
    is_excluded: Callable[..., bool],
    *,
    follow_links: bool = False,
) -> dict[str, TreeEntry]:
    """Return every non-excluded entry below *root*, keyed by relative path.

    With *follow_links*, symlinks are resolved: linked directories are
    descended (a link back into one of its own ancestors is skipped) and
    linked files are recorded by their target's size.  Without it, every
    symlink is recorded as a file entry carrying its ``link_target`` and is
    never descended, so nothing outside *root* is read or written through it.
    """
    if not root.is_dir():
        raise FilesystemError(f"Tree root is not a directory: {root}", path="", operation="scan")

    entries: dict[str, TreeEntry] = {}
    top = os.fspath(root)
    root_stat = os.stat(top)
    # Directory identities on the path from the root, per walked directory.
    ancestors: dict[str, frozenset[tuple[int, int]]] = {
        top: frozenset({(root_stat.st_dev, root_stat.st_ino)})
    }

    def _on_error(exc: OSError) -> None:
        rel_path = os.path.relpath(exc.filename, top) if exc.filename else None
        raise FilesystemError(str(exc), path=rel_path, operation="scan") from exc

    def _link_entry(rel_path: str, full_path: str) -> TreeEntry:
        try:
            target = os.readlink(full_path)
        except OSError as exc:
            raise FilesystemError(str(exc), path=rel_path, operation="scan") from exc
        return TreeEntry(
            relative_path=rel_path, kind=EntryKind.FILE, size=len(target), link_target=target
        )

    for current, dirs, files in os.walk(top, onerror=_on_error, followlinks=follow_links):
        rel_root = os.path.relpath(current, top)
        rel_root = "" if rel_root == "." else rel_root.replace(os.sep, "/")

        # Prune directories
        for d in list(dirs):
            rel_dir = f"{rel_root}/{d}" if rel_root else d
            full_dir = os.path.join(current, d)
            if not follow_links and os.path.islink(full_dir):
                dirs.remove(d)
                if not is_excluded(rel_dir, is_dir=False):
                    entries[rel_dir] = _link_entry(rel_dir, full_dir)
                continue
            if is_excluded(rel_dir, is_dir=True):
                dirs.remove(d)
                continue
            if follow_links:
                try:
                    st = os.stat(full_dir)
                except OSError as exc:
                    raise FilesystemError(str(exc), path=rel_dir, operation="scan") from exc
                identity = (st.st_dev, st.st_ino)
                if identity in ancestors[current]:
                    logger.warning("Skipping symlink loop at %s", rel_dir)
                    dirs.remove(d)
                    continue
                ancestors[full_dir] = ancestors[current] | {identity}
            entries[rel_dir] = TreeEntry(relative_path=rel_dir, kind=EntryKind.DIRECTORY)

        for filename in files:
            rel_path = f"{rel_root}/{filename}" if rel_root else filename
            if is_excluded(rel_path, is_dir=False):
                continue
            full_path = os.path.join(current, filename)
            if not follow_links and os.path.islink(full_path):
                entries[rel_path] = _link_entry(rel_path, full_path)
                continue
            try:
                size = os.stat(full_path).st_size
            except OSError as exc:
                raise FilesystemError(str(exc), path=rel_path, operation="scan") from exc
            entries[rel_path] = TreeEntry(relative_path=rel_path, kind=EntryKind.FILE, size=size)

    return entries


def _same_content(source: Path, dest: Path) -> bool:
    with source.open("rb") as fsrc, dest.open("rb") as fdst:
        while True:
            chunk = fsrc.read(_CHUNK_SIZE)
            if chunk != fdst.read(_CHUNK_SIZE):
                return False
            if not chunk:
                return True


def _classify(
    rel_path: str,
    source: TreeEntry | None,
    dest: TreeEntry | None,
    source_root: Path,
    dest_root: Path,
) -> DiffEntry:
    if source is None:
        return DiffEntry(relative_path=rel_path, state=DiffState.ONLY_DEST, dest_kind=dest.kind)
    if dest is None:
        return DiffEntry(
            relative_path=rel_path, state=DiffState.ONLY_SOURCE, source_kind=source.kind
        )

    state = DiffState.DISTINCT
    if source.kind is dest.kind:
        if source.kind is EntryKind.DIRECTORY:
            state = DiffState.EQUAL
        elif source.link_target is not None or dest.link_target is not None:
            # Links only match links, by target text.
            if source.link_target == dest.link_target:
                state = DiffState.EQUAL
        elif source.size == dest.size:
            try:
                if _same_content(source_root / rel_path, dest_root / rel_path):
                    state = DiffState.EQUAL
            except OSError as exc:
                raise FilesystemError(str(exc), path=rel_path, operation="compare") from exc

    return DiffEntry(
        relative_path=rel_path,
        state=state,
        source_kind=source.kind,
        dest_kind=dest.kind,
    )


def compare_trees(
    source_root: Path,
    dest_root: Path,
    is_excluded: Callable[..., bool],
) -> list[DiffEntry]:
    """Classify every non-excluded path found in either tree.

    Entries are sorted by relative path, so a directory always precedes its
    contents.  ``equal`` entries are included.  Symlinks in the source tree
    are followed and published as their content; symlinks in the destination
    are compared as links and replaced rather than written through.
    """
    source_entries = scan_tree(source_root, is_excluded, follow_links=True)
    dest_entries = scan_tree(dest_root, is_excluded)

    return [
        _classify(
            rel_path,
            source_entries.get(rel_path),
            dest_entries.get(rel_path),
            source_root,
            dest_root,
        )
        for rel_path in sorted(source_entries.keys() | dest_entries.keys())
    ]


# ----------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------


def _stage_unless_ignored(index: StagingIndex, rel_path: str, result: SyncResult) -> None:
    try:
        if index.is_ignored(rel_path):
            logger.debug("Not staging %s: ignored by destination", rel_path)
            result.unstaged.append(rel_path)
            return
        index.add(rel_path)
    except GitError as exc:
        raise IndexUpdateError(str(exc), path=rel_path, operation="stage") from exc


def _create_file(
    source_root: Path,
    dest_root: Path,
    rel_path: str,
    index: StagingIndex,
    result: SyncResult,
) -> None:
    src = source_root / rel_path
    dst = dest_root / rel_path
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        # Exclusive create: never clobber a file the scan did not see.
        with src.open("rb") as fsrc, dst.open("xb") as fdst:
            shutil.copyfileobj(fsrc, fdst)
        shutil.copymode(src, dst)
    except OSError as exc:
        raise FilesystemError(str(exc), path=rel_path, operation="create") from exc

    _stage_unless_ignored(index, rel_path, result)
    result.created.append(rel_path)
    logger.debug("Created %s", rel_path)


def _create_directory(dest_root: Path, rel_path: str, result: SyncResult) -> None:
    target = dest_root / rel_path
    if target.is_dir():
        return
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(str(exc), path=rel_path, operation="mkdir") from exc
    result.directories_created.append(rel_path)
    logger.debug("Created directory %s", rel_path)


def _remove_file(rel_path: str, index: StagingIndex, result: SyncResult) -> None:
    try:
        index.remove(rel_path)
    except GitError as exc:
        raise IndexUpdateError(str(exc), path=rel_path, operation="remove") from exc
    result.removed.append(rel_path)
    logger.debug("Removed %s", rel_path)


def _update_file(
    source_root: Path,
    dest_root: Path,
    rel_path: str,
    index: StagingIndex,
    result: SyncResult,
) -> None:
    src = source_root / rel_path
    dst = dest_root / rel_path
    try:
        # Replace a link itself instead of writing through to its target.
        if dst.is_symlink():
            dst.unlink()
        shutil.copyfile(src, dst)
        shutil.copymode(src, dst)
    except OSError as exc:
        raise FilesystemError(str(exc), path=rel_path, operation="update") from exc

    _stage_unless_ignored(index, rel_path, result)
    result.updated.append(rel_path)
    logger.debug("Updated %s", rel_path)


def apply_diff(
    diff: DiffEntry,
    source_root: Path,
    dest_root: Path,
    index: StagingIndex,
    result: SyncResult,
) -> None:
    """Apply the mutation for a single diff entry to *dest_root*."""
    state = diff.state
    rel_path = diff.relative_path

    if state is DiffState.EQUAL:
        return
    if state is DiffState.ONLY_SOURCE and diff.source_kind is EntryKind.FILE:
        _create_file(source_root, dest_root, rel_path, index, result)
    elif state is DiffState.ONLY_SOURCE and diff.source_kind is EntryKind.DIRECTORY:
        _create_directory(dest_root, rel_path, result)
    elif state is DiffState.ONLY_DEST and diff.dest_kind is EntryKind.FILE:
        _remove_file(rel_path, index, result)
    elif state is DiffState.ONLY_DEST and diff.dest_kind is EntryKind.DIRECTORY:
        # git tracks files only; removing the last file removes the directory.
        return
    elif (
        state is DiffState.DISTINCT
        and diff.source_kind is EntryKind.FILE
        and diff.dest_kind is EntryKind.FILE
    ):
        _update_file(source_root, dest_root, rel_path, index, result)
    else:
        source_kind = diff.source_kind.value if diff.source_kind else None
        dest_kind = diff.dest_kind.value if diff.dest_kind else None
        raise UnsupportedDiffShapeError(
            f"unsupported diff shape: {state.value} {source_kind} -> {dest_kind}",
            path=rel_path,
            operation="dispatch",
        )


def sync_trees(
    source_root: Path,
    dest_root: Path,
    index: StagingIndex,
    exclude_patterns: Iterable[str] | None = None,
) -> SyncResult:
    """Make *dest_root* equal to *source_root*, staging every change in *index*.

    Paths excluded by either tree's ``.gitignore`` rules or by
    *exclude_patterns* are left untouched on both sides.  Raises
    :class:`~aiomirror.exceptions.SyncError` on the first failure.
    """
    source_root = Path(source_root).resolve()
    dest_root = Path(dest_root).resolve()

    is_excluded = build_exclusion_predicate(source_root, dest_root, exclude_patterns)
    diffs = [
        diff
        for diff in compare_trees(source_root, dest_root, is_excluded)
        if diff.state is not DiffState.EQUAL
    ]
    logger.debug("Found %d difference(s) between %s and %s", len(diffs), source_root, dest_root)

    result = SyncResult()
    for diff in diffs:
        apply_diff(diff, source_root, dest_root, index, result)

    logger.info(
        "Synced %s -> %s: %d created, %d updated, %d removed",
        source_root,
        dest_root,
        len(result.created),
        len(result.updated),
        len(result.removed),
    )
    return result


async def synchronize(
    source_root: Path,
    dest_root: Path,
    exclude_patterns: Iterable[str] | None = None,
    *,
    index: StagingIndex | None = None,
) -> SyncResult:
    """Async entry point for :func:`sync_trees`.

    When *index* is omitted, the git repository at *dest_root* is opened and
    used for staging; a destination that cannot be opened raises
    :class:`~aiomirror.exceptions.IndexUpdateError`.  Must not run
    concurrently against the same destination.
    """
    if index is None:
        manager = GitManager(Path(dest_root))
        try:
            await manager.open_repo()
        except GitError as exc:
            raise IndexUpdateError(str(exc), path="", operation="open") from exc
        index = manager

    patterns = list(exclude_patterns) if exclude_patterns is not None else None
    return await asyncio.to_thread(sync_trees, source_root, dest_root, index, patterns)
