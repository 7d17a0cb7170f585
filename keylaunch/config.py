"""Configuration for the launcher engine.

Runtime knobs come from environment variables (``Config.from_env``). The
user's tables (shortcuts, power actions, themes) come from a TOML file, by
default ``~/.config/keylaunch/keylaunch.toml``.
"""
import os
import sys
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from keylaunch.models import PowerActionSpec, PowerMode, ShortcutMode, ShortcutSpec, Theme
from keylaunch.parser import normalize_prefix
from keylaunch.themes import BUILTIN_THEMES, find_theme


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "keylaunch" / "keylaunch.toml"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "keylaunch"


@dataclass
class SearchConfig:
    """Configuration for the ``:s`` external file search."""
    debounce_ms: int = 240
    min_query_len: int = 2
    result_cap: int = 800  # Max paths returned by fd/locate/walk
    score_cap: int = 250  # Max paths scored per rebuild
    show_cap: int = 40  # Max file rows shown

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            debounce_ms=int(os.environ.get("KEYLAUNCH_DEBOUNCE_MS", "240")),
            result_cap=int(os.environ.get("KEYLAUNCH_SEARCH_CAP", "800")),
        )


@dataclass
class Config:
    """Main configuration for the launcher."""
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    max_visible_items: int = 10
    max_recent: int = 10
    power_prefix: str = "p"
    terminal: str = "gnome-terminal"
    config_path: Path = DEFAULT_CONFIG_PATH
    recent_path: Path = DEFAULT_CACHE_DIR / "recent.json"
    app_cache_path: Path = DEFAULT_CACHE_DIR / "apps.json"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        config_path = os.environ.get("KEYLAUNCH_CONFIG")
        recent_path = os.environ.get("KEYLAUNCH_RECENT")
        cache_path = os.environ.get("KEYLAUNCH_APP_CACHE")

        return cls(
            search=SearchConfig.from_env(),
            max_visible_items=max(1, int(os.environ.get("KEYLAUNCH_MAX_VISIBLE", "10"))),
            power_prefix=normalize_prefix(os.environ.get("KEYLAUNCH_POWER_PREFIX", "p")),
            terminal=os.environ.get("KEYLAUNCH_TERMINAL", "gnome-terminal"),
            config_path=Path(config_path) if config_path else DEFAULT_CONFIG_PATH,
            recent_path=Path(recent_path) if recent_path else DEFAULT_CACHE_DIR / "recent.json",
            app_cache_path=Path(cache_path) if cache_path else DEFAULT_CACHE_DIR / "apps.json",
        )


@dataclass
class UserTables:
    """Read-only tables loaded from the TOML config file."""
    shortcuts: List[ShortcutSpec] = field(default_factory=list)
    power_actions: List[PowerActionSpec] = field(default_factory=list)
    themes: List[Theme] = field(default_factory=lambda: list(BUILTIN_THEMES))
    theme_name: str = BUILTIN_THEMES[0].name


def _warn(section: str, path: Path) -> None:
    print(f"[Config] Ignoring invalid {section} in {path}", file=sys.stderr)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return table ``name``, raising TypeError when it is not a table."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise TypeError(f"[{name}] is not a table")
    return section


def _truthy(value: Any) -> bool:
    """Accept a TOML boolean or the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _parse_shortcuts(entries: List[Dict[str, Any]]) -> List[ShortcutSpec]:
    shortcuts = []
    for entry in entries:
        prefix = normalize_prefix(str(entry.get("prefix", "")))
        base = str(entry.get("base", "")).strip()
        if not prefix or not base:
            continue
        label = str(entry.get("label", "")).strip("\t\r\n")
        mode_str = str(entry.get("mode", "url")).strip().lower()
        try:
            mode = ShortcutMode(mode_str)
        except ValueError:
            mode = ShortcutMode.URL
        shortcuts.append(ShortcutSpec(prefix=prefix, label=label, base=base, mode=mode))
    return shortcuts


def _parse_power_actions(entries: List[Dict[str, Any]]) -> List[PowerActionSpec]:
    actions = []
    for entry in entries:
        label = str(entry.get("label", "")).strip()
        command = str(entry.get("command", "")).strip()
        if not label or not command:
            continue
        mode_str = str(entry.get("mode", "spawn")).strip().lower()
        mode = PowerMode.TERMINAL if mode_str == "terminal" else PowerMode.SPAWN
        actions.append(PowerActionSpec(
            label=label,
            command=command,
            mode=mode,
            stay_open=_truthy(entry.get("stay_open", False)),
        ))
    return actions


def _parse_themes(entries: List[Dict[str, Any]]) -> List[Theme]:
    themes = []
    for entry in entries:
        name = str(entry.get("name", "")).strip()
        if not name:
            continue
        themes.append(Theme(
            name=name,
            bg=entry.get("bgColorHex", ""),
            fg=entry.get("fgColorHex", ""),
            highlight_bg=entry.get("highlightBgColorHex", ""),
            highlight_fg=entry.get("highlightFgColorHex", ""),
            border=entry.get("borderColorHex", ""),
            match_fg=entry.get("matchFgColorHex", ""),
        ))
    return themes


def load_config_file(path: Path, config: Optional[Config] = None) -> Tuple[Config, UserTables]:
    """Load the TOML config file.

    Args:
        path: Path to keylaunch.toml
        config: Base config to overlay file values onto (defaults to ``get_config()``)

    Returns:
        Tuple of (Config, UserTables). A missing or malformed file yields
        the base config and default tables.
    """
    config = config or get_config()
    tables = UserTables()

    if not path.exists():
        return config, tables

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"[Config] Could not parse {path}: {e}", file=sys.stderr)
        return config, tables

    try:
        window = _section(data, "window")
        max_visible = int(window.get("max_visible_items", config.max_visible_items))
        config = replace(config, max_visible_items=max(1, max_visible))
    except (TypeError, ValueError):
        _warn("[window] section", path)

    try:
        terminal = _section(data, "terminal")
        config = replace(config, terminal=str(terminal.get("program", config.terminal)))
    except (TypeError, ValueError):
        _warn("[terminal] section", path)

    try:
        power = _section(data, "power")
        config = replace(config, power_prefix=normalize_prefix(str(power.get("prefix", config.power_prefix))))
    except (TypeError, ValueError):
        _warn("[power] section", path)

    for key, parse, attr in (
        ("shortcuts", _parse_shortcuts, "shortcuts"),
        ("power_actions", _parse_power_actions, "power_actions"),
        ("themes", _parse_themes, "themes"),
    ):
        entries = data.get(key)
        if entries is None:
            continue
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            _warn(f"[[{key}]] entries", path)
            continue
        try:
            parsed = parse(entries)
        except (TypeError, ValueError):
            _warn(f"[[{key}]] entries", path)
            continue
        if key == "themes" and not parsed:
            continue
        setattr(tables, attr, parsed)

    theme_section = data.get("theme", {})
    last_chosen = theme_section.get("last_chosen", "") if isinstance(theme_section, dict) else ""
    chosen = find_theme(tables.themes, str(last_chosen)) if last_chosen else None
    tables.theme_name = chosen.name if chosen else tables.themes[0].name

    return config, tables


def _last_chosen_line(theme_name: str) -> str:
    escaped = theme_name.replace("\\", "\\\\").replace('"', '\\"')
    return f'last_chosen = "{escaped}"'


def save_last_theme(path: Path, theme_name: str) -> bool:
    """Record ``theme_name`` as ``[theme] last_chosen`` in the config file.

    Only the ``[theme]`` table is edited, line by line, so comments and
    formatting elsewhere in the file survive. The table is appended when
    the file has none.

    Returns:
        True if written, False if the write failed (logged to stderr)
    """
    new_line = _last_chosen_line(theme_name)
    try:
        lines = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    except (OSError, UnicodeDecodeError) as e:
        print(f"[Config] Could not read {path}: {e}", file=sys.stderr)
        return False

    in_theme = False
    theme_found = False
    updated = False
    for i, raw in enumerate(lines):
        line = raw.strip()
        if line == "[theme]":
            in_theme = theme_found = True
            continue
        if not in_theme:
            continue
        if line.startswith("[") and line.endswith("]"):
            lines.insert(i, new_line)
            updated = True
            break
        if line.startswith("last_chosen"):
            lines[i] = new_line
            updated = True
            break

    if theme_found and not updated:
        lines.append(new_line)
    elif not theme_found:
        if lines:
            lines.append("")
        lines.extend(["[theme]", new_line])

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        temp_path.replace(path)
        return True
    except OSError as e:
        print(f"[Config] Could not save theme to {path}: {e}", file=sys.stderr)
        return False


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
