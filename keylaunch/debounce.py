"""Debounce and result caching for the external file search.

Flow per keystroke in ``:s`` mode:
  1. Typing fast or query too short -> "Searching…" placeholder, no work
  2. Query extends the cached query -> narrow the cached paths in memory
  3. Otherwise -> run the external search and replace the cache

The idle loop calls ``rebuild_due`` once per iteration so that a search left
showing the placeholder is rebuilt once typing pauses.
"""
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from keylaunch.models import SearchCacheEntry

DEFAULT_DEBOUNCE_MS = 240
MIN_QUERY_LEN = 2


@dataclass
class SearchOutcome:
    placeholder: bool
    paths: List[str] = field(default_factory=list)
    from_cache: bool = False


def narrow_paths(paths: Sequence[str], query: str) -> List[str]:
    """Keep the paths containing ``query`` (case-insensitive)."""
    ql = query.lower()
    return [p for p in paths if ql in p.lower()]


class SearchController:
    """Decides whether to rescan, narrow the cache, or wait."""

    def __init__(
        self,
        search_fn: Callable[[str], List[str]],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        min_query_len: int = MIN_QUERY_LEN,
    ):
        self.search_fn = search_fn
        self.debounce_ms = debounce_ms
        self.min_query_len = min_query_len
        self.cache = SearchCacheEntry()
        self.last_edit_ms = 0
        self.last_build_ms = 0
        self.search_calls = 0

    def reset(self) -> None:
        self.cache = SearchCacheEntry()
        self.last_edit_ms = 0
        self.last_build_ms = 0

    def note_edit(self, now_ms: int) -> None:
        """Record that the input changed at ``now_ms``."""
        self.last_edit_ms = now_ms

    def is_settled(self, query: str, now_ms: int) -> bool:
        """True once the query is long enough and typing has paused."""
        if len(query) < self.min_query_len:
            return False
        return now_ms - self.last_edit_ms >= self.debounce_ms

    def _extends_cache(self, query: str) -> bool:
        last = self.cache.last_query
        return bool(last) and bool(self.cache.cached_paths) and query.startswith(last)

    def lookup(self, query: str, now_ms: int) -> SearchOutcome:
        """Resolve the paths for ``query`` at time ``now_ms``.

        Args:
            query: Residual query after the ``:s`` prefix
            now_ms: Current time in milliseconds

        Returns:
            SearchOutcome; ``placeholder`` is set when no work was done
        """
        if not self.is_settled(query, now_ms):
            return SearchOutcome(placeholder=True)

        if self._extends_cache(query):
            paths = narrow_paths(self.cache.cached_paths, query)
            from_cache = True
        else:
            try:
                paths = list(self.search_fn(query))
            except Exception as e:
                print(f"[FileSearch] Search failed for {query!r}: {e}", file=sys.stderr)
                paths = []
            self.search_calls += 1
            from_cache = False

        self.cache = SearchCacheEntry(last_query=query, cached_paths=paths)
        return SearchOutcome(placeholder=False, paths=paths, from_cache=from_cache)

    def rebuild_due(self, query: str, now_ms: int) -> bool:
        """Scheduler step: should a paused search be rebuilt now?"""
        return self.is_settled(query, now_ms) and self.last_build_ms < self.last_edit_ms

    def mark_built(self, now_ms: int) -> None:
        self.last_build_ms = now_ms
