"""Launcher engine: turns the current input into ranked, highlighted rows.

The engine owns every piece of mutable state (input text, search cache,
recent list, selection). One keystroke is one ``set_input`` call; the idle
loop calls ``idle_tick`` between events so that a debounced file search is
rebuilt once typing pauses.
"""
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from keylaunch.config import Config, get_config, save_last_theme
from keylaunch.debounce import SearchController
from keylaunch.models import (
    Activation,
    AppRecord,
    Candidate,
    CandidateKind,
    CommandKind,
    PowerActionSpec,
    ResultRow,
    ScoredCandidate,
    ShortcutSpec,
    Theme,
    placeholder,
)
from keylaunch.parser import ParsedCommand, parse_command
from keylaunch.providers import (
    filter_power_actions,
    filter_themes,
    rank_file_paths,
    scan_config_files,
    scan_files,
    shortcut_candidate,
)
from keylaunch.recent import RecentList, save_recent
from keylaunch.scorer import is_match, score
from keylaunch.spans import prefixed_spans, subsequence_spans
from keylaunch.themes import BUILTIN_THEMES, find_theme
from keylaunch.topk import TopKSelector

RUN_LABEL_PREFIX = "Run: "

NO_MATCHES = "No matches"
SEARCHING = "Searching…"
NO_POWER_ACTIONS = "No power actions configured"
RUN_HINT = "Run: enter a command"


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class LauncherEngine:
    """Parser -> provider -> scorer/top-K -> spans, plus selection state."""

    def __init__(
        self,
        config: Optional[Config] = None,
        apps: Sequence[AppRecord] = (),
        recent: Optional[RecentList] = None,
        themes: Sequence[Theme] = BUILTIN_THEMES,
        shortcuts: Sequence[ShortcutSpec] = (),
        power_actions: Sequence[PowerActionSpec] = (),
        search_fn: Optional[Callable[[str], List[str]]] = None,
        config_files_fn: Callable[[str], List[Candidate]] = scan_config_files,
        clock: Callable[[], int] = monotonic_ms,
        home: Optional[str] = None,
        persist_recent: bool = True,
        theme_name: str = "",
        persist_theme: bool = True,
    ):
        self.config = config or get_config()
        self.apps = list(apps)
        self.recent = recent if recent is not None else RecentList(max_len=self.config.max_recent)
        self.themes = list(themes)
        self.shortcuts = list(shortcuts)
        self.power_actions = list(power_actions)
        self.config_files_fn = config_files_fn
        self.clock = clock
        self.home = home if home is not None else str(Path.home())
        self.persist_recent = persist_recent
        self.persist_theme = persist_theme
        self.theme_name = theme_name or (self.themes[0].name if self.themes else "")

        if search_fn is None:
            cap = self.config.search.result_cap
            search_fn = lambda query: scan_files(query, cap=cap)  # noqa: E731
        self.search = SearchController(
            search_fn,
            debounce_ms=self.config.search.debounce_ms,
            min_query_len=self.config.search.min_query_len,
        )

        self.input_text = ""
        self.candidates: List[Candidate] = []
        self.rows: List[ResultRow] = []
        self.selected_index = 0
        self.view_offset = 0

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def parse(self, text: Optional[str] = None) -> ParsedCommand:
        return parse_command(
            self.input_text if text is None else text,
            self.config.power_prefix,
            self.shortcuts,
        )

    def set_input(self, text: str, now_ms: Optional[int] = None) -> List[ResultRow]:
        """Replace the input text, note the edit, and rebuild the rows."""
        now_ms = self.clock() if now_ms is None else now_ms
        self.input_text = text
        self.search.note_edit(now_ms)
        return self.build_actions(now_ms)

    def append(self, text: str, now_ms: Optional[int] = None) -> List[ResultRow]:
        return self.set_input(self.input_text + text, now_ms)

    def backspace(self, now_ms: Optional[int] = None) -> List[ResultRow]:
        if not self.input_text:
            return self.rows
        return self.set_input(self.input_text[:-1], now_ms)

    def clear(self, now_ms: Optional[int] = None) -> List[ResultRow]:
        return self.set_input("", now_ms)

    def idle_tick(self, now_ms: Optional[int] = None) -> bool:
        """Run one idle-loop step.

        Returns:
            True if a debounced file search was rebuilt
        """
        now_ms = self.clock() if now_ms is None else now_ms
        command = self.parse()
        if command.kind is not CommandKind.SEARCH:
            return False
        if not self.search.rebuild_due(command.rest, now_ms):
            return False
        self.build_actions(now_ms)
        return True

    def settle(self) -> List[ResultRow]:
        """Rebuild as if the debounce window had already elapsed since the last edit."""
        if self.parse().kind is not CommandKind.SEARCH:
            return self.rows
        return self.build_actions(self.search.last_edit_ms + self.search.debounce_ms)

    # ------------------------------------------------------------------
    # Action building
    # ------------------------------------------------------------------

    def build_actions(self, now_ms: Optional[int] = None) -> List[ResultRow]:
        """Rebuild the result rows for the current input.

        Resets the selection and scroll offset to the top.
        """
        now_ms = self.clock() if now_ms is None else now_ms
        command = self.parse()

        if command.kind is CommandKind.NONE:
            candidates = self._app_candidates(command.rest)
        elif command.kind is CommandKind.THEME:
            candidates = filter_themes(self.themes, command.rest)
        elif command.kind is CommandKind.CONFIG:
            candidates = self.config_files_fn(command.rest)
        elif command.kind is CommandKind.SHORTCUT:
            candidates = self._shortcut_candidates(command)
        elif command.kind is CommandKind.POWER:
            candidates = self._power_candidates(command.rest)
        elif command.kind is CommandKind.SEARCH:
            candidates = self._file_candidates(command.rest, now_ms)
        elif command.kind is CommandKind.RUN:
            candidates = self._run_candidates(command.rest)
        else:
            raise ValueError(f"Unhandled command kind: {command.kind}")

        if not candidates:
            candidates = [placeholder(NO_MATCHES)]

        self.candidates = candidates
        self.rows = [self._to_row(c, command.rest) for c in candidates]
        self.selected_index = 0
        self.view_offset = 0
        return self.rows

    def _app_candidates(self, query: str) -> List[Candidate]:
        if not query:
            # MRU first, then the rest of the index in name order
            by_name = {app.name: app for app in self.apps}
            ordered = [by_name[name] for name in self.recent if name in by_name]
            seen = {app.name for app in ordered}
            ordered.extend(app for app in self.apps if app.name not in seen)
            return [self._app_candidate(app) for app in ordered]

        selector: TopKSelector[ScoredCandidate] = TopKSelector(max(1, self.config.max_visible_items))
        for app in self.apps:
            s = score(query, app.name)
            if is_match(s):
                scored = ScoredCandidate(s + self.recent.boost(app.name), self._app_candidate(app))
                selector.push(scored.score, app.name, scored)
        return [sc.candidate for sc in selector.results()]

    @staticmethod
    def _app_candidate(app: AppRecord) -> Candidate:
        return Candidate(kind=CandidateKind.APP, label=app.name, exec_target=app.exec_template, app=app)

    def _shortcut_candidates(self, command: ParsedCommand) -> List[Candidate]:
        if 0 <= command.index < len(self.shortcuts):
            return [shortcut_candidate(self.shortcuts[command.index], command.rest)]
        return []

    def _power_candidates(self, query: str) -> List[Candidate]:
        if not self.power_actions:
            return [placeholder(NO_POWER_ACTIONS)]
        return filter_power_actions(self.power_actions, query)

    def _file_candidates(self, query: str, now_ms: int) -> List[Candidate]:
        outcome = self.search.lookup(query, now_ms)
        if outcome.placeholder:
            return [placeholder(SEARCHING)]
        self.search.mark_built(now_ms)
        return rank_file_paths(
            outcome.paths,
            query,
            self.home,
            self.config.max_visible_items,
            score_cap=self.config.search.score_cap,
            show_cap=self.config.search.show_cap,
        )

    @staticmethod
    def _run_candidates(command_line: str) -> List[Candidate]:
        if not command_line:
            return [placeholder(RUN_HINT)]
        return [Candidate(
            kind=CandidateKind.RUN_COMMAND,
            label=RUN_LABEL_PREFIX + command_line,
            exec_target=command_line,
        )]

    def _to_row(self, candidate: Candidate, query: str) -> ResultRow:
        if not self.input_text or not query:
            spans = []
        elif candidate.kind is CandidateKind.RUN_COMMAND:
            spans = prefixed_spans(query, candidate.label, RUN_LABEL_PREFIX)
        else:
            spans = subsequence_spans(query, candidate.label)
        return ResultRow(
            label=candidate.label,
            spans=spans,
            kind=candidate.kind,
            payload=candidate.exec_target,
            has_icon=candidate.has_icon,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def move_selection(self, step: int) -> None:
        """Move the selection by ``step`` rows, scrolling to keep it visible."""
        if not self.rows:
            return
        new_index = min(max(self.selected_index + step, 0), len(self.rows) - 1)
        if new_index == self.selected_index:
            return
        self.selected_index = new_index
        visible = max(1, self.config.max_visible_items)
        if self.selected_index < self.view_offset:
            self.view_offset = self.selected_index
        elif self.selected_index >= self.view_offset + visible:
            self.view_offset = max(0, self.selected_index - visible + 1)

    def page(self, direction: int) -> None:
        self.move_selection(direction * max(1, self.config.max_visible_items))

    def jump_to_top(self) -> None:
        if self.rows:
            self.selected_index = 0
            self.view_offset = 0

    def jump_to_bottom(self) -> None:
        if self.rows:
            self.selected_index = len(self.rows) - 1
            self.view_offset = max(0, len(self.rows) - self.config.max_visible_items)

    def visible_rows(self) -> List[ResultRow]:
        return self.rows[self.view_offset:self.view_offset + self.config.max_visible_items]

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def activate(self, index: Optional[int] = None) -> Optional[Activation]:
        """Describe what activating a row should do.

        Args:
            index: Row index (defaults to the current selection)

        Returns:
            Activation, or None for placeholders and out-of-range indices
        """
        index = self.selected_index if index is None else index
        if not 0 <= index < len(self.candidates):
            return None
        candidate = self.candidates[index]
        if candidate.kind is CandidateKind.PLACEHOLDER:
            return None
        return Activation(kind=candidate.kind, payload=candidate.exec_target, candidate=candidate)

    def record_launch(self, label: str) -> None:
        """Update the recent list after a successful application launch."""
        self.recent.record(label)
        if self.persist_recent:
            save_recent(self.recent, self.config.recent_path)

    def apply_theme(self, name: str) -> bool:
        """Make ``name`` the active theme and remember it; unknown names are ignored."""
        theme = find_theme(self.themes, name)
        if theme is None:
            return False
        self._set_theme(theme.name)
        return True

    def cycle_theme(self) -> Optional[str]:
        """Switch to the theme after the active one, wrapping around.

        Returns:
            The new theme name, or None when no themes are loaded
        """
        if not self.themes:
            return None
        current = find_theme(self.themes, self.theme_name)
        index = self.themes.index(current) if current is not None else -1
        theme = self.themes[(index + 1) % len(self.themes)]
        self._set_theme(theme.name)
        return theme.name

    def _set_theme(self, name: str) -> None:
        self.theme_name = name
        if self.persist_theme:
            save_last_theme(self.config.config_path, name)

    def snapshot(self) -> dict:
        """Serializable view of the rows and selection for a renderer."""
        return {
            "input": self.input_text,
            "command": self.parse().kind.value,
            "selected_index": self.selected_index,
            "view_offset": self.view_offset,
            "theme": self.theme_name,
            "rows": [row.to_dict() for row in self.rows],
        }
