"""Executor: turns an Activation into a process spawn, URL open, or theme change.

The engine decides *what* should happen; this module decides *how*. Every
failure is reported as an ExecutionResult with a short status message so
that the caller can show it without blocking.
"""
import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from keylaunch.desktop import strip_field_codes
from keylaunch.models import Activation, CandidateKind, PowerMode, ShortcutMode

FALLBACK_TERMINALS = (
    "kitty", "alacritty", "wezterm", "foot", "gnome-terminal", "kgx",
    "konsole", "xfce4-terminal", "xterm",
)

HOLD_FLAGS = frozenset({
    "--hold", "-hold", "--keep-open", "--wait", "--noclose",
    "--stay-open", "--keep", "--keepalive",
})


@dataclass
class ExecutionResult:
    ok: bool
    message: str = ""
    exit_launcher: bool = True


# ============================================================================
# Process helpers
# ============================================================================

def spawn_detached(argv: Sequence[str]) -> bool:
    """Start ``argv`` in its own session without waiting for it."""
    try:
        subprocess.Popen(
            list(argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        return True
    except OSError as e:
        print(f"[Executor] Failed to start {argv[0] if argv else '?'}: {e}", file=sys.stderr)
        return False


def spawn_shell(command: str) -> bool:
    """Run ``command`` through /bin/sh in the background."""
    return spawn_detached(["/bin/sh", "-c", command])


def which_exists(name: str) -> bool:
    if not name:
        return False
    if "/" in name:
        return os.path.isfile(name)
    return shutil.which(name) is not None


def choose_terminal(configured: str) -> str:
    """Prefer the configured terminal, then ``$TERMINAL``, then known fallbacks.

    Returns:
        Terminal command line, or "" when running headless
    """
    for candidate in (configured, os.environ.get("TERMINAL", "")):
        tokens = shlex.split(candidate) if candidate else []
        if tokens and which_exists(tokens[0]):
            return candidate
    for term in FALLBACK_TERMINALS:
        if which_exists(term):
            return term
    return ""


def build_shell_command(command: str, shell: str, hold: bool = False) -> Tuple[str, List[str]]:
    """Group ``command`` and, unless the terminal holds itself, add a hold prompt."""
    suffix = "" if hold else "; printf '\\n[Press Enter to close]\\n'; read -r _"
    full = "{ " + command + " ; }" + suffix
    args = ["-lc", full] if shell.endswith("bash") else ["-c", full]
    return full, args


def build_terminal_argv(terminal: str, command: str, shell: str) -> List[str]:
    """Build the argv that runs ``command`` inside ``terminal``."""
    tokens = shlex.split(terminal)
    exe, term_args = tokens[0], tokens[1:]
    hold = any(arg in HOLD_FLAGS for arg in term_args)
    _, shell_args = build_shell_command(command, shell, hold)

    base = Path(exe).name
    if base in ("gnome-terminal", "kgx"):
        argv = term_args + ["--"]
    elif base == "wezterm":
        argv = ["start"] + term_args
    else:
        argv = term_args + ["-e"]
    return [exe] + argv + [shell] + shell_args


# ============================================================================
# Executor
# ============================================================================

class Executor:
    """Carries out activations.

    Args:
        terminal: Configured terminal command line
        on_app_launched: Called with the app label after a successful launch
        on_theme_selected: Called with the theme name when a theme is picked
        spawn: Process starter, replaceable in tests
    """

    def __init__(
        self,
        terminal: str = "gnome-terminal",
        on_app_launched: Optional[Callable[[str], None]] = None,
        on_theme_selected: Optional[Callable[[str], None]] = None,
        spawn: Callable[[Sequence[str]], bool] = spawn_detached,
    ):
        self.terminal = terminal
        self.on_app_launched = on_app_launched
        self.on_theme_selected = on_theme_selected
        self.spawn = spawn

    def run_in_terminal(self, command: str) -> bool:
        shell = shutil.which("bash") or "/bin/sh"
        terminal = choose_terminal(self.terminal)
        if not terminal:
            _, shell_args = build_shell_command(command, shell)
            return self.spawn([shell] + shell_args)
        return self.spawn(build_terminal_argv(terminal, command, shell))

    def open_path(self, path: str) -> bool:
        return self.spawn(["xdg-open", path])

    def execute(self, activation: Activation) -> ExecutionResult:
        """Perform an activation.

        Returns:
            ExecutionResult; ``exit_launcher`` tells the caller whether to close
        """
        kind = activation.kind
        candidate = activation.candidate
        label = candidate.label

        if kind is CandidateKind.APP:
            if not self.spawn(["/bin/sh", "-c", strip_field_codes(activation.payload)]):
                return ExecutionResult(False, f"Failed: {label}", exit_launcher=False)
            if self.on_app_launched:
                self.on_app_launched(label)
            return ExecutionResult(True)

        if kind is CandidateKind.RUN_COMMAND:
            ok = self.run_in_terminal(activation.payload)
            return ExecutionResult(ok, "" if ok else f"Failed: {label}", exit_launcher=ok)

        if kind is CandidateKind.CONFIG_FILE:
            if not self.spawn(["/bin/sh", "-c", activation.payload]):
                return ExecutionResult(False, f"Failed: {label}", exit_launcher=False)
            return ExecutionResult(True)

        if kind is CandidateKind.FILE:
            ok = self.open_path(activation.payload)
            return ExecutionResult(ok, "" if ok else f"Failed to open: {label}", exit_launcher=ok)

        if kind is CandidateKind.SHORTCUT:
            return self._execute_shortcut(activation)

        if kind is CandidateKind.POWER_ACTION:
            if candidate.power_mode is PowerMode.TERMINAL:
                ok = self.run_in_terminal(activation.payload)
            else:
                ok = self.spawn(["/bin/sh", "-c", activation.payload])
            if not ok:
                return ExecutionResult(False, f"Failed: {label}", exit_launcher=False)
            return ExecutionResult(True, exit_launcher=not candidate.stay_open)

        if kind is CandidateKind.THEME:
            if self.on_theme_selected:
                self.on_theme_selected(activation.payload)
            return ExecutionResult(True, f"Theme: {activation.payload}", exit_launcher=False)

        return ExecutionResult(False, exit_launcher=False)

    def _execute_shortcut(self, activation: Activation) -> ExecutionResult:
        mode = activation.candidate.shortcut_mode
        if mode is ShortcutMode.URL:
            ok = self.spawn(["xdg-open", activation.payload])
            return ExecutionResult(ok, "" if ok else f"Failed: {activation.payload}", exit_launcher=ok)
        if mode is ShortcutMode.SHELL:
            ok = self.run_in_terminal(activation.payload)
            return ExecutionResult(ok, "" if ok else f"Failed: {activation.payload}", exit_launcher=ok)

        expanded = os.path.expanduser(activation.payload)
        if not os.path.exists(expanded):
            return ExecutionResult(False, f"Not found: {expanded}", exit_launcher=False)
        ok = self.open_path(expanded)
        return ExecutionResult(ok, "" if ok else f"Failed to open: {expanded}", exit_launcher=ok)
