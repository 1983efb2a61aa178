"""Relevance scoring for name queries against an index snapshot.

Scores are additive:

* exact name match ``+1000``, otherwise a prefix match ``+500``, otherwise a
  match right after ``-`` or ``_`` ``+300`` (only one of the three applies);
* directories ``+200``;
* shorter names up to ``+50`` (``50 - min(len(name), 50)``);
* paths containing ``/projects/`` ``+100``.
"""

from __future__ import annotations

from typing import Iterable

from spyglass.state.models import IndexEntry

from .store import IndexSnapshot

MAX_RESULTS = 100

EXACT_MATCH_SCORE = 1000
PREFIX_MATCH_SCORE = 500
WORD_BOUNDARY_SCORE = 300
DIRECTORY_BONUS = 200
NAME_LENGTH_CAP = 50
PROJECTS_BONUS = 100
PROJECTS_SEGMENT = "/projects/"


def score_entry(entry: IndexEntry, name_lower: str, query_lower: str) -> int:
    """Return the relevance score of an entry whose name contains the query.

    Args:
        entry: Candidate entry.
        name_lower: Lowercased ``entry.name``.
        query_lower: Lowercased, non-empty query.

    Returns:
        int: Additive score; higher ranks first.
    """
    score = 0
    if name_lower == query_lower:
        score += EXACT_MATCH_SCORE
    elif name_lower.startswith(query_lower):
        score += PREFIX_MATCH_SCORE
    elif f"-{query_lower}" in name_lower or f"_{query_lower}" in name_lower:
        score += WORD_BOUNDARY_SCORE

    if entry.is_directory:
        score += DIRECTORY_BONUS

    score += NAME_LENGTH_CAP - min(len(entry.name), NAME_LENGTH_CAP)

    if PROJECTS_SEGMENT in entry.path:
        score += PROJECTS_BONUS
    return score


def iter_matches(snapshot: IndexSnapshot, query_lower: str) -> Iterable[tuple[int, IndexEntry]]:
    """Yield ``(score, entry)`` for every entry whose name contains the query."""
    for entry, name_lower in zip(snapshot.entries, snapshot.lower_names):
        if query_lower not in name_lower:
            continue
        yield score_entry(entry, name_lower, query_lower), entry


def rank_entries(
    snapshot: IndexSnapshot,
    query: str,
    *,
    limit: int = MAX_RESULTS,
) -> list[IndexEntry]:
    """Return the best matches for ``query``, highest score first.

    Matching is a case-insensitive substring test on the entry name. Entries
    with equal scores keep their snapshot order.

    Args:
        snapshot: Committed snapshot to search.
        query: Raw user query; an empty query matches nothing.
        limit: Maximum number of entries returned, capped at ``MAX_RESULTS``.

    Returns:
        list[IndexEntry]: At most ``limit`` entries, without their scores.
    """
    if not query:
        return []
    limit = max(0, min(limit, MAX_RESULTS))
    query_lower = query.lower()
    scored = sorted(iter_matches(snapshot, query_lower), key=lambda item: item[0], reverse=True)
    return [entry for _, entry in scored[:limit]]


__all__ = ["MAX_RESULTS", "rank_entries", "score_entry", "iter_matches"]
