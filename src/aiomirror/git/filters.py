"""Path exclusion: decide which paths take part in a tree comparison.

Combines the ``.gitignore`` rules of both trees with an explicit list of
exclude patterns.  All three rule sets use gitignore glob semantics, so a
bare name matches at any depth, a leading ``/`` anchors a pattern and ``**``
matches across directories.  This module reads ignore files but never writes
to either tree.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from pathspec import GitIgnoreSpec

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".gitignore"
_GIT_DIR = ".git"


def normalize_relative_path(rel_path: str) -> str:
    """Return *rel_path* with forward slashes and no leading/trailing slash."""
    return rel_path.replace(os.sep, "/").strip("/")


def _read_spec(path: Path) -> GitIgnoreSpec | None:
    if not path.is_file():
        return None
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        logger.warning("Failed to read ignore file %s: %s", path, exc)
        return None
    spec = GitIgnoreSpec.from_lines(lines)
    return spec if spec.patterns else None


def _spec_path(rel_path: str, is_dir: bool) -> str:
    # pathspec treats a trailing slash as "this is a directory", which is
    # what makes ``build/`` patterns skip plain files named ``build``.
    return f"{rel_path}/" if is_dir else rel_path


class IgnoreRules:
    """Cascading ``.gitignore`` rules for one tree root.

    Ignore files are read lazily, once per directory, and cached for the
    lifetime of the instance.  When *include_info_exclude* is set, the
    repository's ``.git/info/exclude`` applies at the lowest precedence.
    """

    def __init__(self, root: Path, *, include_info_exclude: bool = False) -> None:
        self.root = root
        self._specs: dict[str, GitIgnoreSpec | None] = {}
        self._info_exclude = (
            _read_spec(root / _GIT_DIR / "info" / "exclude") if include_info_exclude else None
        )

    def _spec_for(self, rel_dir: str) -> GitIgnoreSpec | None:
        if rel_dir not in self._specs:
            directory = self.root / rel_dir if rel_dir else self.root
            self._specs[rel_dir] = _read_spec(directory / IGNORE_FILENAME)
        return self._specs[rel_dir]

    def check(self, rel_path: str, is_dir: bool = False) -> bool | None:
        """Return ``True`` if ignored, ``False`` if re-included, ``None`` if unmatched.

        Only *rel_path* itself is tested; callers are responsible for checking
        parent directories first.
        """
        parts = rel_path.split("/")
        own_dir_depth = len(parts) - 1

        # The nearest ignore file with a matching pattern wins.
        for depth in range(own_dir_depth, -1, -1):
            if depth == own_dir_depth and parts[-1] == IGNORE_FILENAME and not is_dir:
                continue
            spec = self._spec_for("/".join(parts[:depth]))
            if spec is None:
                continue
            result = spec.check_file(_spec_path("/".join(parts[depth:]), is_dir))
            if result.include is not None:
                return result.include

        if self._info_exclude is not None:
            result = self._info_exclude.check_file(_spec_path(rel_path, is_dir))
            if result.include is not None:
                return result.include
        return None


class ExclusionPredicate:
    """Callable telling whether a relative path is excluded from comparison.

    A path is excluded when any parent directory is excluded, when an explicit
    pattern matches it, or when any of the rule sets ignores it.  Results are
    memoised per ``(path, is_dir)``.
    """

    def __init__(
        self,
        rule_sets: Iterable[IgnoreRules] = (),
        patterns: Iterable[str] = (),
    ) -> None:
        self.rule_sets = tuple(rule_sets)
        self.patterns = tuple(patterns)
        self._explicit = GitIgnoreSpec.from_lines(self.patterns) if self.patterns else None
        self._cache: dict[tuple[str, bool], bool] = {}

    def __call__(self, rel_path: str, is_dir: bool = False) -> bool:
        rel_path = normalize_relative_path(rel_path)
        if not rel_path:
            return False

        key = (rel_path, is_dir)
        cached = self._cache.get(key)
        if cached is None:
            cached = self._cache[key] = self._evaluate(rel_path, is_dir)
        return cached

    def _evaluate(self, rel_path: str, is_dir: bool) -> bool:
        parent, _, name = rel_path.rpartition("/")
        if name == _GIT_DIR:
            return True
        if parent and self(parent, is_dir=True):
            return True
        if self._explicit is not None and self._explicit.match_file(_spec_path(rel_path, is_dir)):
            return True
        return any(rules.check(rel_path, is_dir) for rules in self.rule_sets)


def build_exclusion_predicate(
    source_root: Path,
    dest_root: Path,
    exclude_patterns: Iterable[str] | None = None,
) -> ExclusionPredicate:
    """Build the exclusion predicate used to compare *source_root* with *dest_root*.

    Parameters
    ----------
    source_root:
        Tree being published.  Its ``.gitignore`` files apply.
    dest_root:
        Destination working copy.  Its ``.gitignore`` files and
        ``.git/info/exclude`` apply.
    exclude_patterns:
        Extra gitignore-style patterns, anchored at the compared relative path.
    """
    patterns = [p for p in (exclude_patterns or ()) if p.strip()]
    predicate = ExclusionPredicate(
        rule_sets=(
            IgnoreRules(Path(source_root)),
            IgnoreRules(Path(dest_root), include_info_exclude=True),
        ),
        patterns=patterns,
    )
    logger.debug(
        "Built exclusion predicate for %s -> %s with %d explicit pattern(s)",
        source_root,
        dest_root,
        len(patterns),
    )
    return predicate
