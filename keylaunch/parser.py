"""Command-prefix parser: raw input -> (command kind, residual query, sub-index)."""
import re
from typing import NamedTuple, Optional, Sequence

from keylaunch.models import CommandKind, ShortcutSpec

BUILTIN_KEYWORDS = {
    "s": CommandKind.SEARCH,
    "c": CommandKind.CONFIG,
    "t": CommandKind.THEME,
    "r": CommandKind.RUN,
}

RUN_BANG = "!"

_WHITESPACE = re.compile(r"\s")


class ParsedCommand(NamedTuple):
    kind: CommandKind
    rest: str
    index: int = -1


def normalize_prefix(prefix: str) -> str:
    """Canonicalise a command keyword.

    Variants like ``":g"``, ``"g:"`` or ``" :G: "`` all become ``"g"``.
    """
    return prefix.strip().strip(":").strip().lower()


def take_prefix(text: str, prefix: str) -> Optional[str]:
    """Consume ``prefix`` from ``text``.

    Returns:
        The trimmed remainder, or None if ``text`` does not start with ``prefix``
    """
    if not text.startswith(prefix):
        return None
    return text[len(prefix):].strip()


def parse_command(
    text: str,
    power_prefix: str = "",
    shortcuts: Sequence[ShortcutSpec] = (),
) -> ParsedCommand:
    """Classify raw input by its command prefix.

    Args:
        text: Raw input as typed
        power_prefix: Normalised keyword for power actions (empty disables them)
        shortcuts: Shortcut table; the first matching prefix wins

    Returns:
        ParsedCommand. Unknown ``:keywords`` fall through to a plain search of
        the original input so nothing the user typed is dropped.
    """
    if text.startswith(":"):
        body = text[1:]
        match = _WHITESPACE.search(body)
        if match:
            keyword = body[:match.start()]
            rest = body[match.end():].strip()
        else:
            keyword = body
            rest = ""

        norm = normalize_prefix(keyword)
        builtin = BUILTIN_KEYWORDS.get(norm)
        if builtin is not None:
            return ParsedCommand(builtin, rest)

        if power_prefix and norm == power_prefix:
            return ParsedCommand(CommandKind.POWER, rest)

        for i, shortcut in enumerate(shortcuts):
            if norm == shortcut.prefix:
                return ParsedCommand(CommandKind.SHORTCUT, rest, i)

        return ParsedCommand(CommandKind.NONE, text)

    rest = take_prefix(text, RUN_BANG)
    if rest is not None:
        return ParsedCommand(CommandKind.RUN, rest)

    return ParsedCommand(CommandKind.NONE, text)


def visible_query(
    text: str,
    power_prefix: str = "",
    shortcuts: Sequence[ShortcutSpec] = (),
) -> str:
    """Return the part of the input the user is actually searching for."""
    return parse_command(text, power_prefix, shortcuts).rest
