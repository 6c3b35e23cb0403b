"""Query helpers for ordered and unordered sequences.

Both helpers accept an optional ``key`` projection so callers can query a
sequence of full records with a lightweight key (for example, searching a
list of ``CrateDetails`` with a ``CrateKey``) without building a record.
"""

import bisect
from collections.abc import Callable, Sequence
from typing import Any, NamedTuple, Optional


class SearchResult(NamedTuple):
    """Outcome of a binary search.

    Attributes:
        found: True if an element matching the query exists.
        index: Position of a matching element when found, otherwise the
            position where the query would be inserted to keep order.
    """

    found: bool
    index: int


def binary_search(
    seq: Sequence[Any],
    query: Any,
    key: Optional[Callable[[Any], Any]] = None,
) -> SearchResult:
    """Binary search a sorted sequence.

    The sequence must already be sorted by the same ordering that ``key``
    (or the elements themselves) compare with. This is not validated; an
    unsorted sequence gives an unspecified result.

    Args:
        seq: Sorted sequence to search.
        query: Value to look for, of the projected key type.
        key: Optional projection from an element to the query's type.

    Returns:
        SearchResult with the match position or insertion point.
    """
    index = bisect.bisect_left(seq, query, key=key)
    if index < len(seq):
        candidate = seq[index] if key is None else key(seq[index])
        if candidate == query:
            return SearchResult(True, index)
    return SearchResult(False, index)


def contains(
    seq: Sequence[Any],
    query: Any,
    key: Optional[Callable[[Any], Any]] = None,
) -> bool:
    """Return True if any element (or its projection) equals ``query``.

    Linear scan using equality only, so it works on unsorted sequences.
    """
    if key is None:
        return any(item == query for item in seq)
    return any(key(item) == query for item in seq)
