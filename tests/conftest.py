"""Shared fixtures for tests."""
import pytest

from keylaunch.config import Config, SearchConfig
from keylaunch.engine import LauncherEngine
from keylaunch.models import AppRecord, PowerActionSpec, PowerMode, ShortcutMode, ShortcutSpec
from keylaunch.recent import RecentList


SAMPLE_DESKTOP_ENTRY = """[Desktop Entry]
Type=Application
Name=Firefox
Name[de]=Firefox Webbrowser
Exec=firefox %u
Icon=firefox
Categories=Network;WebBrowser;
"""


@pytest.fixture
def sample_desktop_entry():
    return SAMPLE_DESKTOP_ENTRY


@pytest.fixture
def sample_apps():
    """Application index as the desktop provider returns it (sorted by name)."""
    return [
        AppRecord("Blender", "blender %f", True),
        AppRecord("Files", "nautilus --new-window", True),
        AppRecord("Firefox", "firefox %u", True),
        AppRecord("Fire Starter", "firestarter", False),
        AppRecord("GIMP", "gimp-2.10 %U", True),
        AppRecord("Kitty", "kitty", True),
        AppRecord("LibreOffice Writer", "libreoffice --writer %U", True),
        AppRecord("Wireshark", "wireshark %f", True),
    ]


@pytest.fixture
def shortcuts():
    return [
        ShortcutSpec(prefix="g", label="Search Google:", base="https://www.google.com/search?q={query}"),
        ShortcutSpec(prefix="gh", label="GitHub", base="https://github.com/search?q=", mode=ShortcutMode.URL),
        ShortcutSpec(prefix="man", label="Man page:", base="man {query}", mode=ShortcutMode.SHELL),
        ShortcutSpec(prefix="notes", label="Open notes", base="~/notes/{query}", mode=ShortcutMode.FILE),
    ]


@pytest.fixture
def power_actions():
    return [
        PowerActionSpec("Lock Screen", "loginctl lock-session"),
        PowerActionSpec("Shutdown", "systemctl poweroff"),
        PowerActionSpec("Reboot", "systemctl reboot"),
        PowerActionSpec("Update System", "sudo apt upgrade", mode=PowerMode.TERMINAL, stay_open=True),
    ]


@pytest.fixture
def config(tmp_path):
    return Config(
        search=SearchConfig(),
        max_visible_items=5,
        power_prefix="p",
        recent_path=tmp_path / "recent.json",
        app_cache_path=tmp_path / "apps.json",
        config_path=tmp_path / "keylaunch.toml",
    )


class FakeSearch:
    """Stands in for the external file search and counts invocations."""

    def __init__(self, paths):
        self.paths = list(paths)
        self.calls = []

    def __call__(self, query):
        self.calls.append(query)
        ql = query.lower()
        return [p for p in self.paths if ql in p.lower()]


@pytest.fixture
def fake_search():
    return FakeSearch([
        "/home/user/notes.txt",
        "/home/user/docs/notes-2024.md",
        "/home/user/docs/projects/keylaunch/NOTES.rst",
        "/usr/share/doc/notes/README",
        "/home/user/.notesrc",
        "/home/user/music/song.mp3",
    ])


@pytest.fixture
def engine(config, sample_apps, shortcuts, power_actions, fake_search):
    return LauncherEngine(
        config=config,
        apps=sample_apps,
        recent=RecentList(max_len=config.max_recent),
        shortcuts=shortcuts,
        power_actions=power_actions,
        search_fn=fake_search,
        config_files_fn=lambda query: [],
        home="/home/user",
        clock=lambda: 0,
    )
