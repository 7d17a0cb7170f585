"""Core data types shared by the parser, providers and action builder."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class CommandKind(Enum):
    """Recognised input prefixes."""
    NONE = "none"          # plain application search
    THEME = "theme"        # :t
    CONFIG = "config"      # :c
    SEARCH = "search"      # :s fast file search
    POWER = "power"        # configured power prefix
    SHORTCUT = "shortcut"  # user-defined shortcuts (e.g. :g, :wiki)
    RUN = "run"            # :r or !


class CandidateKind(Enum):
    """Kinds of selectable result items."""
    APP = "app"
    FILE = "file"
    CONFIG_FILE = "config_file"
    SHORTCUT = "shortcut"
    POWER_ACTION = "power_action"
    THEME = "theme"
    RUN_COMMAND = "run_command"
    PLACEHOLDER = "placeholder"


class ShortcutMode(Enum):
    URL = "url"
    SHELL = "shell"
    FILE = "file"


class PowerMode(Enum):
    SPAWN = "spawn"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class AppRecord:
    """A launchable application found in a .desktop file."""
    name: str
    exec_template: str
    has_icon: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "exec": self.exec_template, "has_icon": self.has_icon}

    @classmethod
    def from_dict(cls, data: dict) -> "AppRecord":
        return cls(
            name=data["name"],
            exec_template=data["exec"],
            has_icon=bool(data.get("has_icon", False)),
        )


@dataclass(frozen=True)
class ShortcutSpec:
    """User-defined shortcut such as ``:g <query>`` opening a search URL."""
    prefix: str
    label: str
    base: str
    mode: ShortcutMode = ShortcutMode.URL


@dataclass(frozen=True)
class PowerActionSpec:
    """System action listed under the power prefix (shutdown, lock, ...)."""
    label: str
    command: str
    mode: PowerMode = PowerMode.SPAWN
    stay_open: bool = False


@dataclass(frozen=True)
class Theme:
    """One colour scheme. Colours are ``#RRGGBB`` strings."""
    name: str
    bg: str = ""
    fg: str = ""
    highlight_bg: str = ""
    highlight_fg: str = ""
    border: str = ""
    match_fg: str = ""


@dataclass(frozen=True)
class Candidate:
    """A named, executable thing that can appear in the result list."""
    kind: CandidateKind
    label: str
    exec_target: str = ""
    app: Optional[AppRecord] = None
    shortcut_mode: Optional[ShortcutMode] = None
    power_mode: Optional[PowerMode] = None
    stay_open: bool = False

    @property
    def has_icon(self) -> bool:
        return self.kind is CandidateKind.APP and self.app is not None and self.app.has_icon


def placeholder(label: str) -> Candidate:
    """Build a non-actionable candidate carrying explanatory text."""
    return Candidate(kind=CandidateKind.PLACEHOLDER, label=label)


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its final score, as fed to the top-K selector."""
    score: int
    candidate: Candidate


@dataclass
class SearchCacheEntry:
    """Last external file search, kept for narrowing follow-up queries."""
    last_query: str = ""
    cached_paths: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResultRow:
    """One row of Action Builder output, as consumed by the renderer."""
    label: str
    spans: List[Tuple[int, int]]
    kind: CandidateKind
    payload: str
    has_icon: bool = False

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "spans": [list(span) for span in self.spans],
            "kind": self.kind.value,
            "payload": self.payload,
            "has_icon": self.has_icon,
        }


@dataclass(frozen=True)
class Activation:
    """What should happen when a row is activated; the executor decides how."""
    kind: CandidateKind
    payload: str
    candidate: Candidate
