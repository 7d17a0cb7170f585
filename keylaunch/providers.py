"""Candidate providers: file search, config files, themes, power actions, shortcuts."""
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import quote_plus

from keylaunch.models import (
    Candidate,
    CandidateKind,
    PowerActionSpec,
    ShortcutMode,
    ShortcutSpec,
    Theme,
)
from keylaunch.scorer import is_match, score
from keylaunch.topk import TopKSelector

SEARCH_TIMEOUT = 5.0  # seconds before an fd/locate call is abandoned

QUERY_PLACEHOLDER = "{query}"


# ============================================================================
# External file search
# ============================================================================

def _run_search_tool(args: List[str]) -> List[str]:
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        timeout=SEARCH_TIMEOUT,
        check=False,
    )
    return [line for line in result.stdout.splitlines() if line]


def scan_files(query: str, cap: int = 800, home: Optional[Path] = None) -> List[str]:
    """Find files whose path matches ``query``.

    Tries, in order: ``fd`` (fast, respects .gitignore), ``locate -i``
    (database backed, may be stale), then a bounded walk under ``home``.

    Args:
        query: Search text
        cap: Maximum number of paths returned
        home: Root for fd and the walk fallback (defaults to the home directory)

    Returns:
        Absolute paths; empty on any failure
    """
    home = home or Path.home()

    try:
        fd_exe = shutil.which("fd") or shutil.which("fdfind")
        if fd_exe:
            return _run_search_tool([
                fd_exe, "-i", "--type", "f", "--absolute-path",
                "--max-results", str(cap), query, str(home),
            ])[:cap]

        locate_exe = shutil.which("locate")
        if locate_exe:
            return _run_search_tool([locate_exe, "-i", "-l", str(cap), query])[:cap]

        return walk_files(query, home, cap)

    except (OSError, subprocess.SubprocessError) as e:
        print(f"[FileSearch] Warning: {type(e).__name__}: {e}", file=sys.stderr)
        return []


def walk_files(query: str, root: Path, cap: int) -> List[str]:
    """Bounded recursive walk keeping paths that contain ``query`` (case-insensitive)."""
    ql = query.lower()
    found = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=lambda e: None):
        for name in filenames:
            path = os.path.join(dirpath, name)
            if ql in path.lower():
                found.append(path)
                if len(found) >= cap:
                    return found
    return found


def scan_config_files(query: str, root: Optional[Path] = None) -> List[Candidate]:
    """List files under ``root`` (default ``~/.config``) whose name contains ``query``."""
    root = root or Path.home() / ".config"
    ql = query.lower()
    candidates = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=lambda e: None):
        for name in sorted(filenames):
            if ql in name.lower():
                path = os.path.join(dirpath, name)
                candidates.append(Candidate(
                    kind=CandidateKind.CONFIG_FILE,
                    label=name,
                    exec_target=f"xdg-open {shlex.quote(path)}",
                ))
    return candidates


# ============================================================================
# File ranking
# ============================================================================

def shorten_path(path: str, home: str = "", max_len: int = 80) -> str:
    """Replace ``home`` with ``~`` and ellipsize the middle of long paths."""
    s = path
    if home and (s == home or s.startswith(home.rstrip("/") + "/")):
        s = "~" + s[len(home.rstrip("/")):]
    if len(s) <= max_len:
        return s
    keep = max_len // 2 - 2
    if keep <= 0:
        return s
    return s[:keep] + "…" + s[len(s) - keep:]


def file_score(query: str, path: str, home: str) -> int:
    """Score a file path: basename match plus locality and depth adjustments."""
    name = os.path.basename(path)
    s = score(query, name, path, home)
    if not is_match(s):
        return s

    nl = name.lower()
    ql = query.lower()
    if nl == ql:
        s += 12_000
    elif nl.startswith(ql):
        s += 4_000

    home_root = home.rstrip("/")
    if home_root and path.startswith(home_root + "/"):
        s += 800
        directory = os.path.dirname(path)
        rel_depth = max(0, directory.count("/") - home_root.count("/"))
        s -= min(rel_depth, 10) * 200
        if directory == home_root:
            s += 5_000
            if name.startswith("."):
                s += 4_000
    else:
        s -= 2_000
    return s


def rank_file_paths(
    paths: Sequence[str],
    query: str,
    home: str,
    limit: int,
    score_cap: int = 250,
    show_cap: int = 40,
) -> List[Candidate]:
    """Rank search hits into FILE candidates.

    Only the first ``score_cap`` paths are scored. At least ``limit`` rows are
    shown, and up to ``show_cap`` when there are more good hits.
    """
    selector: TopKSelector[str] = TopKSelector(max(limit, min(show_cap, score_cap)), max(limit, 200))
    for path in paths[:score_cap]:
        selector.push(file_score(query, path, home), os.path.basename(path), path)

    candidates = []
    for path in selector.results():
        name = os.path.basename(path)
        directory = os.path.dirname(path)
        candidates.append(Candidate(
            kind=CandidateKind.FILE,
            label=f"{name} — {shorten_path(directory, home)}",
            exec_target=path,
        ))
    return candidates


# ============================================================================
# Static tables
# ============================================================================

def filter_themes(themes: Sequence[Theme], query: str) -> List[Candidate]:
    ql = query.lower()
    return [
        Candidate(kind=CandidateKind.THEME, label=theme.name, exec_target=theme.name)
        for theme in themes
        if not ql or ql in theme.name.lower()
    ]


def filter_power_actions(actions: Sequence[PowerActionSpec], query: str) -> List[Candidate]:
    ql = query.strip().lower()
    return [
        Candidate(
            kind=CandidateKind.POWER_ACTION,
            label=action.label,
            exec_target=action.command,
            power_mode=action.mode,
            stay_open=action.stay_open,
        )
        for action in actions
        if not ql or ql in action.label.lower()
    ]


def substitute_query(pattern: str, value: str) -> str:
    """Replace ``{query}`` in ``pattern``, or append ``value`` if absent."""
    if QUERY_PLACEHOLDER in pattern:
        return pattern.replace(QUERY_PLACEHOLDER, value)
    return pattern + value


def shortcut_label(shortcut: ShortcutSpec, query: str) -> str:
    """Compose the row label, keeping the user's spacing but adding one space if needed."""
    if not shortcut.label:
        return query or f":{shortcut.prefix}"
    if not query:
        return shortcut.label
    sep = "" if shortcut.label[-1].isspace() else " "
    return f"{shortcut.label}{sep}{query}"


def shortcut_exec(shortcut: ShortcutSpec, query: str) -> str:
    if shortcut.mode is ShortcutMode.URL:
        return substitute_query(shortcut.base, quote_plus(query))
    if shortcut.mode is ShortcutMode.SHELL:
        return substitute_query(shortcut.base, shlex.quote(query))
    return substitute_query(shortcut.base, query)


def shortcut_candidate(shortcut: ShortcutSpec, query: str) -> Candidate:
    return Candidate(
        kind=CandidateKind.SHORTCUT,
        label=shortcut_label(shortcut, query),
        exec_target=shortcut_exec(shortcut, query),
        shortcut_mode=shortcut.mode,
    )
