"""Git working-copy manager built on GitPython.

The synchronous index primitives (:meth:`GitManager.add`,
:meth:`GitManager.remove`, :meth:`GitManager.is_ignored`) are called from the
tree reconciler's worker thread.  Everything else is exposed as async methods
that delegate to synchronous helpers via ``asyncio.to_thread`` so that git
subprocesses never block the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from git import Actor, Repo
from git.cmd import Git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..exceptions import GitError, GitNotInitializedError
from ..models.git import RepoStatus

logger = logging.getLogger(__name__)

_DEFAULT_AUTHOR_NAME = "aiomirror"
_DEFAULT_AUTHOR_EMAIL = "aiomirror@localhost"


def parse_porcelain_status(output: str) -> RepoStatus:
    """Parse ``git status --porcelain -z`` output into a :class:`RepoStatus`."""
    status = RepoStatus()
    records = output.split("\0")
    i = 0
    while i < len(records):
        record = records[i]
        i += 1
        if len(record) < 4:
            continue

        index_state, worktree_state, path = record[0], record[1], record[3:]
        if index_state == "?":
            status.untracked.append(path)
            continue
        if index_state == "!":
            continue

        if index_state in ("R", "C"):
            # Renames and copies are followed by a record holding the old path.
            i += 1
            status.staged_renamed.append(path)
        elif index_state == "A":
            status.staged_added.append(path)
        elif index_state == "M" or index_state == "T":
            status.staged_modified.append(path)
        elif index_state == "D":
            status.staged_deleted.append(path)

        if worktree_state not in (" ", "?", "!"):
            status.unstaged.append(path)
    return status


class GitManager:
    """Manages a git working copy that acts as a synchronisation destination.

    The constructor accepts plain values; no environment variables are read.
    Call :meth:`open_repo`, :meth:`init_repo` or :meth:`clone` before using it.
    """

    def __init__(
        self,
        repo_path: Path,
        *,
        author_name: str = _DEFAULT_AUTHOR_NAME,
        author_email: str = _DEFAULT_AUTHOR_EMAIL,
    ) -> None:
        self.repo_path = Path(repo_path).resolve()
        self.author = Actor(author_name, author_email)
        self._repo: Repo | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _open_repo_sync(self) -> None:
        try:
            self._repo = Repo(str(self.repo_path))
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise GitError(f"Not a git repository: {self.repo_path}") from exc
        logger.debug("Git repository loaded from %s", self.repo_path)

    async def open_repo(self) -> None:
        """Open the existing repository at *repo_path*."""
        await asyncio.to_thread(self._open_repo_sync)

    def _init_repo_sync(self) -> None:
        self.repo_path.mkdir(parents=True, exist_ok=True)
        self._repo = Repo.init(str(self.repo_path))
        logger.info("Git repository initialised in %s", self.repo_path)

    async def init_repo(self) -> None:
        """Initialise a new repository at *repo_path* (no-op for an existing one)."""
        try:
            await asyncio.to_thread(self._init_repo_sync)
        except GitCommandError as exc:
            logger.error("Failed to initialise git repository: %s", exc)
            raise GitError(f"Init failed: {exc}") from exc

    @classmethod
    async def clone(
        cls,
        url: str,
        target: Path,
        *,
        author_name: str = _DEFAULT_AUTHOR_NAME,
        author_email: str = _DEFAULT_AUTHOR_EMAIL,
    ) -> GitManager:
        """Clone *url* into *target* and return a manager bound to the clone."""
        manager = cls(target, author_name=author_name, author_email=author_email)
        try:
            manager._repo = await asyncio.to_thread(
                Repo.clone_from, url, str(manager.repo_path)
            )
        except GitCommandError as exc:
            logger.error("Failed to clone %s: %s", url, exc)
            raise GitError(f"Clone of {url} failed: {exc}") from exc
        logger.info("Cloned %s to %s", url, manager.repo_path)
        return manager

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            raise GitNotInitializedError(
                "Repository not opened; call open_repo(), init_repo() or clone() first"
            )
        return self._repo

    # ------------------------------------------------------------------
    # Index primitives
    # ------------------------------------------------------------------

    def add(self, path: str) -> None:
        """Stage *path* (relative to the working copy root)."""
        try:
            self.repo.git.add("--", path)
        except GitCommandError as exc:
            raise GitError(f"git add failed for {path}: {exc.stderr.strip()}") from exc

    def remove(self, path: str) -> None:
        """Remove *path* from both the index and the working tree."""
        try:
            self.repo.git.rm("--quiet", "--", path)
        except GitCommandError as exc:
            raise GitError(f"git rm failed for {path}: {exc.stderr.strip()}") from exc

    def is_ignored(self, path: str) -> bool:
        """Return ``True`` if git's own ignore rules exclude *path*.

        Tracked paths are never reported as ignored.
        """
        status, _, stderr = self.repo.git.check_ignore(
            "--quiet",
            "--",
            path,
            with_extended_output=True,
            with_exceptions=False,
        )
        if status == 0:
            return True
        if status == 1:
            return False
        raise GitError(f"git check-ignore failed for {path}: {stderr.strip()}")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _status_sync(self) -> RepoStatus:
        try:
            output = self.repo.git.status("--porcelain", "-z", "--untracked-files=all")
        except GitCommandError as exc:
            raise GitError(f"git status failed: {exc}") from exc
        return parse_porcelain_status(output)

    async def status(self) -> RepoStatus:
        """Return the working-copy status."""
        return await asyncio.to_thread(self._status_sync)

    async def is_clean(self) -> bool:
        """Return ``True`` if there is nothing staged, modified or untracked."""
        return (await self.status()).is_clean

    # ------------------------------------------------------------------
    # Commit / tag
    # ------------------------------------------------------------------

    def _commit_sync(self, message: str, allow_empty: bool) -> str | None:
        if not allow_empty and not self._status_sync().staged:
            logger.debug("Nothing staged, skipping commit")
            return None

        commit = self.repo.index.commit(
            message,
            author=self.author,
            committer=self.author,
        )
        short_hash = commit.hexsha[:8]
        logger.info("Committed changes: %s %s", short_hash, message.partition("\n")[0])
        return short_hash

    async def commit(self, message: str, *, allow_empty: bool = True) -> str | None:
        """Commit the index.

        Returns the short commit hash, or ``None`` if nothing was staged and
        *allow_empty* is false.
        """
        try:
            return await asyncio.to_thread(self._commit_sync, message, allow_empty)
        except (GitCommandError, ValueError) as exc:
            logger.error("Failed to commit changes: %s", exc)
            raise GitError(f"Commit failed: {exc}") from exc

    async def add_tag(self, name: str) -> None:
        """Create a lightweight tag *name* pointing at ``HEAD``."""
        try:
            await asyncio.to_thread(self.repo.create_tag, name)
        except GitCommandError as exc:
            logger.error("Failed to create tag %s: %s", name, exc)
            raise GitError(f"Tag {name} failed: {exc}") from exc
        logger.info("Created tag: %s", name)

    # ------------------------------------------------------------------
    # Remote
    # ------------------------------------------------------------------

    def _push_sync(self, tags: bool) -> None:
        origin = self.repo.remote("origin")
        if tags:
            results = origin.push(tags=True)
        else:
            results = origin.push()
        results.raise_if_error()

    async def push(self) -> None:
        """Push the current branch to ``origin``."""
        try:
            await asyncio.to_thread(self._push_sync, False)
        except (GitCommandError, ValueError) as exc:
            logger.error("Failed to push: %s", exc)
            raise GitError(f"Push failed: {exc}") from exc

    async def push_tags(self) -> None:
        """Push all tags to ``origin``."""
        try:
            await asyncio.to_thread(self._push_sync, True)
        except (GitCommandError, ValueError) as exc:
            logger.error("Failed to push tags: %s", exc)
            raise GitError(f"Push of tags failed: {exc}") from exc

    @staticmethod
    async def list_remote(url: str) -> bool:
        """Return ``True`` if ``git ls-remote`` can reach *url*."""
        try:
            await asyncio.to_thread(Git().ls_remote, url)
        except GitCommandError as exc:
            logger.error(
                "Unable to connect to repository %s. See error:\n%s",
                url,
                str(exc.stderr).strip(),
            )
            return False
        return True
