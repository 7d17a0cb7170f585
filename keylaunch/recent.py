"""Most-recently-used application list and its JSON persistence."""
import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional

DEFAULT_MAX_RECENT = 10

# Boost for the most recent entry; each older slot loses RECENT_STEP.
RECENT_TOP_BOOST = 200
RECENT_STEP = 40


class RecentList:
    """Launched application labels, most recent first, bounded in length."""

    def __init__(self, items: Optional[Iterable[str]] = None, max_len: int = DEFAULT_MAX_RECENT):
        self.max_len = max_len
        self._items: List[str] = []
        for item in items or []:
            if item and item not in self._items:
                self._items.append(item)
        del self._items[max_len:]

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, label: object) -> bool:
        return label in self._items

    def items(self) -> List[str]:
        return list(self._items)

    def index(self, label: str) -> int:
        """Position of ``label``, or -1 if it was never launched."""
        try:
            return self._items.index(label)
        except ValueError:
            return -1

    def boost(self, label: str) -> int:
        """Score bonus for a recently launched application (first is strongest)."""
        idx = self.index(label)
        if idx < 0:
            return 0
        return max(0, RECENT_TOP_BOOST - RECENT_STEP * idx)

    def record(self, label: str) -> None:
        """Move ``label`` to the front, or prepend it and truncate."""
        if not label:
            return
        idx = self.index(label)
        if idx >= 0:
            del self._items[idx]
        self._items.insert(0, label)
        del self._items[self.max_len:]


def load_recent(path: Path, max_len: int = DEFAULT_MAX_RECENT) -> RecentList:
    """Load the recent list from a JSON array file.

    Args:
        path: Path to recent.json
        max_len: Maximum number of entries kept

    Returns:
        RecentList (empty if the file is missing or unreadable)
    """
    if not path.exists():
        return RecentList(max_len=max_len)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[Recent] Could not read {path}: {e}", file=sys.stderr)
        return RecentList(max_len=max_len)

    if not isinstance(data, list):
        print(f"[Recent] Ignoring {path}: expected a JSON list", file=sys.stderr)
        return RecentList(max_len=max_len)

    return RecentList((str(item) for item in data), max_len=max_len)


def save_recent(recent: RecentList, path: Path) -> bool:
    """Write the recent list to disk atomically.

    Returns:
        True if written, False if the write failed (logged to stderr)
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(recent.items(), f, indent=2)
        temp_path.replace(path)
        return True
    except OSError as e:
        print(f"[Recent] Could not save {path}: {e}", file=sys.stderr)
        return False
