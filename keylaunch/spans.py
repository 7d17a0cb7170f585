"""Highlight spans for matched characters."""
from typing import List, Tuple

Span = Tuple[int, int]


def subsequence_positions(query: str, text: str) -> List[int]:
    """Find positions of ``query`` in ``text`` as a case-insensitive subsequence.

    Greedy left-to-right scan: each query character takes the first matching
    text character at or after the current position.

    Returns:
        Matched indices, or an empty list if the query is empty or not fully consumed
    """
    if not query:
        return []
    lq = query.lower()
    lt = text.lower()
    positions = []
    qi = 0
    for i, ch in enumerate(lt):
        if ch == lq[qi]:
            positions.append(i)
            qi += 1
            if qi == len(lq):
                return positions
    return []


def subsequence_spans(query: str, text: str) -> List[Span]:
    """Convert subsequence positions into ``(start, length)`` spans."""
    return [(pos, 1) for pos in subsequence_positions(query, text)]


def prefixed_spans(query: str, label: str, prefix: str) -> List[Span]:
    """Compute spans against the part of ``label`` after a decorative ``prefix``.

    Spans are shifted back into ``label`` coordinates so the prefix itself is
    never highlighted.
    """
    offset = len(prefix) if label.startswith(prefix) else 0
    return [(offset + start, length) for start, length in subsequence_spans(query, label[offset:])]
