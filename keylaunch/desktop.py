"""Application index built from .desktop files, with a JSON cache."""
import configparser
import json
import re
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from keylaunch.models import AppRecord

CACHE_FORMAT_VERSION = 3

DESKTOP_DIRS = (
    Path.home() / ".local/share/flatpak/exports/share/applications",
    Path.home() / ".local/share/applications",
    Path("/usr/share/applications"),
    Path("/var/lib/flatpak/exports/share/applications"),
)

_FIELD_CODE = re.compile(r"%(%|[fFuUdDnNickvm])")


def strip_field_codes(exec_line: str) -> str:
    """Remove .desktop field codes (``%U``, ``%f`` ...) and unescape ``%%``."""
    return _FIELD_CODE.sub(lambda m: "%" if m.group(1) == "%" else "", exec_line).strip()


def base_exec(exec_line: str) -> str:
    """Extract the executable name from an Exec line."""
    clean = exec_line.split("%")[0].strip()
    if not clean:
        return ""
    return Path(clean.split(" ")[0]).name


def _best_value(entry: configparser.SectionProxy, key: str) -> str:
    """Pick ``key`` with a fallback to its localized variants."""
    for candidate in (key, f"{key}[en_US]", f"{key}[en]"):
        if candidate in entry:
            return entry[candidate].strip()
    for name, value in entry.items():
        if name.startswith(f"{key}["):
            return value.strip()
    return ""


def parse_desktop_file(path: Path) -> Optional[AppRecord]:
    """Parse a .desktop file.

    Args:
        path: Path to the .desktop file

    Returns:
        AppRecord, or None if the entry is hidden, a terminal app, a
        settings/system tool, or unreadable
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False, delimiters=("=",))
    parser.optionxform = str  # Keep "Name[de]" style keys intact
    try:
        parser.read(path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError, OSError) as e:
        print(f"[Desktop] Skipping {path}: {e}", file=sys.stderr)
        return None

    if "Desktop Entry" not in parser:
        return None
    entry = parser["Desktop Entry"]

    name = _best_value(entry, "Name")
    exec_line = _best_value(entry, "Exec")
    categories = entry.get("Categories", "")
    no_display = entry.get("NoDisplay", "false").strip().lower() == "true"
    terminal = entry.get("Terminal", "false").strip().lower() == "true"

    if not name or not exec_line or no_display or terminal:
        return None
    if "Settings" in categories or "System" in categories:
        return None

    return AppRecord(name=name, exec_template=exec_line, has_icon=bool(entry.get("Icon", "").strip()))


def newest_desktop_mtime(directory: Path) -> float:
    """Newest modification time among ``*.desktop`` files in ``directory``."""
    if not directory.is_dir():
        return 0.0
    newest = 0.0
    for path in directory.glob("*.desktop"):
        try:
            newest = max(newest, path.stat().st_mtime)
        except OSError:
            continue
    return newest


def _dedup_key(app: AppRecord) -> str:
    key = strip_field_codes(app.exec_template).lower()
    if not key:
        key = base_exec(app.exec_template).lower()
    if not key:
        key = app.name.lower()
    return key


def scan_applications(dirs: Iterable[Path]) -> List[AppRecord]:
    """Scan directories for applications, deduplicated and sorted by name.

    Entries sharing a sanitized Exec line are merged; an entry with an icon
    replaces one without.
    """
    dedup: Dict[str, AppRecord] = {}
    for directory in dirs:
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob("*.desktop")):
            app = parse_desktop_file(path)
            if app is None:
                continue
            key = _dedup_key(app)
            existing = dedup.get(key)
            if existing is None or (app.has_icon and not existing.has_icon):
                dedup[key] = app
    return sorted(dedup.values(), key=lambda a: a.name.lower())


def _read_cache(cache_path: Path, mtimes: List[float]) -> Optional[List[AppRecord]]:
    if not cache_path.exists():
        return None
    try:
        with open(cache_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if data.get("formatVersion") != CACHE_FORMAT_VERSION or data.get("mtimes") != mtimes:
            return None
        return [AppRecord.from_dict(item) for item in data["apps"]]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        print(f"[Desktop] Cache miss, rescanning: {e}", file=sys.stderr)
        return None


def _write_cache(cache_path: Path, mtimes: List[float], apps: Sequence[AppRecord]) -> None:
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = cache_path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump({
                "formatVersion": CACHE_FORMAT_VERSION,
                "mtimes": mtimes,
                "apps": [app.to_dict() for app in apps],
            }, f, indent=2)
        temp_path.replace(cache_path)
    except OSError as e:
        print(f"[Desktop] Warning: cache not saved: {e}", file=sys.stderr)


def load_applications(
    dirs: Sequence[Path] = DESKTOP_DIRS,
    cache_path: Optional[Path] = None,
) -> List[AppRecord]:
    """Load the application index, reusing the cache when nothing changed.

    Args:
        dirs: Directories holding .desktop files, highest priority first
        cache_path: JSON cache file; None disables caching

    Returns:
        Applications sorted by name
    """
    mtimes = [newest_desktop_mtime(d) for d in dirs]

    if cache_path is not None:
        cached = _read_cache(cache_path, mtimes)
        if cached is not None:
            return cached

    apps = scan_applications(dirs)

    if cache_path is not None:
        _write_cache(cache_path, mtimes, apps)

    return apps
