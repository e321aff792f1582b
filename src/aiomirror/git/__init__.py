"""Git-aware tree synchronisation built on GitPython."""

from .filters import ExclusionPredicate, IgnoreRules, build_exclusion_predicate
from .manager import GitManager
from .sync import StagingIndex, compare_trees, scan_tree, sync_trees, synchronize

__all__ = [
    "ExclusionPredicate",
    "GitManager",
    "IgnoreRules",
    "StagingIndex",
    "build_exclusion_predicate",
    "compare_trees",
    "scan_tree",
    "sync_trees",
    "synchronize",
]
