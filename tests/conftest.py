"""Shared fixtures for aiomirror tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from git import Actor, Repo

from aiomirror.git.manager import parse_porcelain_status
from aiomirror.models import RepoStatus

TEST_ACTOR = Actor("Test", "test@example.com")


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory creating a plain directory populated with *files*."""

    def _make(name: str, files: dict[str, str] | None = None) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True)
        write_files(root, files or {})
        return root

    return _make


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory creating a git repository with *files* committed.

    Files matched by the repository's own ``.gitignore`` stay on disk but are
    not committed.
    """

    def _make(name: str, files: dict[str, str] | None = None) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True)
        with Repo.init(root) as repo:
            if files:
                write_files(root, files)
                repo.git.add("--all")
                repo.index.commit("add all test files", author=TEST_ACTOR, committer=TEST_ACTOR)
        return root

    return _make


@pytest.fixture
def bare_remote(tmp_path: Path, make_repo: Callable[..., Path]) -> Path:
    """A bare repository with one commit, usable as a push target."""
    work = make_repo("remote-work", {"README.md": "# Destination\n", "docs/guide.md": "guide\n"})
    remote = tmp_path / "remote.git"
    Repo.clone_from(str(work), str(remote), bare=True).close()
    return remote


@pytest.fixture
def repo_status() -> Callable[[Path], RepoStatus]:
    """Return a function reading the porcelain status of a repository."""

    def _status(root: Path) -> RepoStatus:
        with Repo(root) as repo:
            return parse_porcelain_status(
                repo.git.status("--porcelain", "-z", "--untracked-files=all")
            )

    return _status
