"""Filesystem traversal, snapshot storage, and ranking for the Spyglass index.

``IndexService`` lives in :mod:`spyglass.index.service`; it depends on the
configuration models and is imported from there directly.
"""

from .progress import ProgressPublisher, ProgressTracker
from .ranker import MAX_RESULTS, rank_entries, score_entry
from .store import IndexSnapshot, IndexStore
from .traversal import DEFAULT_EXCLUDED_NAMES, TreeScanner

__all__ = [
    "DEFAULT_EXCLUDED_NAMES",
    "IndexSnapshot",
    "IndexStore",
    "MAX_RESULTS",
    "ProgressPublisher",
    "ProgressTracker",
    "TreeScanner",
    "rank_entries",
    "score_entry",
]
