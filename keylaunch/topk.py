"""Bounded top-K selection over scored candidates."""
import heapq
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from keylaunch.scorer import NO_MATCH

T = TypeVar("T")

DEFAULT_MIN_CAPACITY = 200


class _Entry(Generic[T]):
    """Heap entry; the heap root is always the worst entry kept."""

    __slots__ = ("score", "label_key", "item")

    def __init__(self, score: int, label_key: str, item: T):
        self.score = score
        self.label_key = label_key
        self.item = item

    def __lt__(self, other: "_Entry") -> bool:
        if self.score != other.score:
            return self.score < other.score
        # On equal scores the later label ranks lower, so it is evicted first.
        return self.label_key > other.label_key


class TopKSelector(Generic[T]):
    """Keep the best ``limit`` items of a stream without sorting all of it.

    Items are pushed into a min-heap bounded to ``capacity`` entries
    (default ``max(limit, 200)``); each push is O(log capacity). ``results()``
    drains the heap and orders it by descending score, then case-insensitive
    label.
    """

    def __init__(self, limit: int, capacity: Optional[int] = None):
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self.limit = limit
        self.capacity = max(limit, capacity if capacity is not None else DEFAULT_MIN_CAPACITY)
        self._heap: List[_Entry[T]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, score: int, label: str, item: T) -> bool:
        """Offer an item.

        Args:
            score: Item score; NO_MATCH items are ignored
            label: Label used to break ties deterministically
            item: Payload returned by ``results()``

        Returns:
            True if the item is currently kept
        """
        if score <= NO_MATCH or self.limit == 0:
            return False
        entry = _Entry(score, label.lower(), item)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True
        if self._heap[0] < entry:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def results(self) -> List[T]:
        """Drain the heap and return the best ``limit`` items, best first."""
        drained = []
        while self._heap:
            drained.append(heapq.heappop(self._heap))
        drained.sort(key=lambda e: (-e.score, e.label_key))
        return [e.item for e in drained[:self.limit]]


def top_k(
    items: Iterable[T],
    limit: int,
    score_fn: Callable[[T], int],
    label_fn: Callable[[T], str],
    capacity: Optional[int] = None,
) -> List[T]:
    """Select the ``limit`` best items by ``score_fn``.

    Args:
        items: Candidate stream
        limit: Number of items to return
        score_fn: Scoring function; NO_MATCH excludes an item
        label_fn: Label used for tie-breaking
        capacity: Optional heap ceiling (defaults to ``max(limit, 200)``)

    Returns:
        Up to ``limit`` items ordered best first
    """
    selector: TopKSelector[T] = TopKSelector(limit, capacity)
    for item in items:
        selector.push(score_fn(item), label_fn(item), item)
    return selector.results()
