"""Tests for the exclusion predicate."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from aiomirror.git.filters import (
    ExclusionPredicate,
    IgnoreRules,
    build_exclusion_predicate,
    normalize_relative_path,
)


@pytest.fixture
def roots(make_tree: Callable[..., Path]) -> tuple[Path, Path]:
    return make_tree("source"), make_tree("dest")


class TestNormalize:
    def test_strips_slashes(self) -> None:
        assert normalize_relative_path("/a/b/") == "a/b"

    def test_plain_path_unchanged(self) -> None:
        assert normalize_relative_path("a/b.txt") == "a/b.txt"


class TestDefaults:
    def test_nothing_excluded_without_rules(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots)
        assert predicate("a.txt") is False
        assert predicate("deep/nested/file.txt") is False
        assert predicate("deep", is_dir=True) is False

    def test_git_dir_always_excluded(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots)
        assert predicate(".git", is_dir=True) is True
        assert predicate(".git/config") is True
        assert predicate("vendor/lib/.git", is_dir=True) is True

    def test_root_never_excluded(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots, ["*"])
        assert predicate("") is False


class TestIgnoreFileRules:
    def test_bare_name_matches_any_depth(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("error.log") is True
        assert predicate("deep/inner/error.log") is True
        assert predicate("error.txt") is False

    def test_ignore_file_not_excluded_by_itself(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate(".gitignore") is False
        assert predicate("anything.txt") is True

    def test_ignore_file_excluded_by_explicit_pattern(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n")
        predicate = build_exclusion_predicate(source, dest, [".gitignore"])
        assert predicate(".gitignore") is True

    def test_directory_only_pattern(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("build/\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("build", is_dir=True) is True
        assert predicate("build/out.o") is True
        assert predicate("build") is False

    def test_excluded_directory_covers_contents(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("vendor\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("vendor", is_dir=True) is True
        assert predicate("vendor/lib/module.py") is True
        assert predicate("src/vendor.py") is False

    def test_negation_reincludes(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n!keep.log\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("drop.log") is True
        assert predicate("keep.log") is False

    def test_nested_ignore_file_scoped_to_its_directory(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / "sub").mkdir()
        (source / "sub" / ".gitignore").write_text("local.txt\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("sub/local.txt") is True
        assert predicate("sub/deeper/local.txt") is True
        assert predicate("local.txt") is False

    def test_nested_ignore_file_overrides_parent(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.txt\n")
        (source / "sub").mkdir()
        (source / "sub" / ".gitignore").write_text("!keep.txt\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("keep.txt") is True
        assert predicate("sub/keep.txt") is False
        assert predicate("sub/other.txt") is True

    def test_anchored_ignore_pattern(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("/config.ini\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("config.ini") is True
        assert predicate("sub/config.ini") is False

    def test_dest_info_exclude(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (dest / ".git" / "info").mkdir(parents=True)
        (dest / ".git" / "info" / "exclude").write_text("*.swp\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("notes.swp") is True
        assert predicate("notes.txt") is False

    def test_comment_only_ignore_file(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("# nothing to see\n\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("a.txt") is False


class TestUnion:
    def test_either_root_excludes(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.tmp\n")
        (dest / ".gitignore").write_text("*.cache\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("a.tmp") is True
        assert predicate("b.cache") is True
        assert predicate("c.txt") is False

    def test_negation_does_not_cross_roots(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n")
        (dest / ".gitignore").write_text("!app.log\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("app.log") is True


class TestExplicitPatterns:
    def test_recursive_glob(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots, ["**/*.json"])
        assert predicate("package.json") is True
        assert predicate("a/b/c/data.json") is True
        assert predicate("a/b/c/data.yaml") is False

    def test_anchored_pattern_matches_exact_path(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots, ["/subdir/file.txt"])
        assert predicate("subdir/file.txt") is True
        assert predicate("other/subdir/file.txt") is False
        assert predicate("file.txt") is False

    def test_bare_directory_name(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots, ["node_modules"])
        assert predicate("node_modules", is_dir=True) is True
        assert predicate("web/node_modules/react/index.js") is True

    def test_overrides_ignore_file_negation(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("!README.md\n")
        predicate = build_exclusion_predicate(source, dest, ["*.md"])
        assert predicate("README.md") is True

    def test_overlap_with_ignore_file(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n")
        both = build_exclusion_predicate(source, dest, ["*.log"])
        rules_only = build_exclusion_predicate(source, dest)
        pattern_only = ExclusionPredicate(patterns=["*.log"])
        for path in ("a.log", "sub/b.log", "c.txt"):
            assert both(path) == rules_only(path) == pattern_only(path)

    def test_blank_patterns_ignored(self, roots: tuple[Path, Path]) -> None:
        predicate = build_exclusion_predicate(*roots, ["", "   "])
        assert predicate.patterns == ()
        assert predicate("a.txt") is False


class TestMemoisation:
    def test_rules_consulted_once_per_path(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("*.log\n")
        predicate = build_exclusion_predicate(source, dest)
        with patch.object(IgnoreRules, "check", autospec=True, return_value=None) as check:
            predicate("sub/a.txt")
            calls = check.call_count
            predicate("sub/a.txt")
            predicate("/sub/a.txt")
        assert calls > 0
        assert check.call_count == calls

    def test_file_and_directory_cached_separately(self, roots: tuple[Path, Path]) -> None:
        source, dest = roots
        (source / ".gitignore").write_text("build/\n")
        predicate = build_exclusion_predicate(source, dest)
        assert predicate("build") is False
        assert predicate("build", is_dir=True) is True
