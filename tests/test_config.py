"""Tests for config module."""
from pathlib import Path

import pytest

from keylaunch.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    SearchConfig,
    UserTables,
    get_config,
    load_config_file,
    save_last_theme,
)
from keylaunch.models import PowerMode, ShortcutMode, Theme
from keylaunch.themes import BUILTIN_THEMES

FULL_CONFIG = """
[window]
max_visible_items = 8

[terminal]
program = "kitty --hold"

[power]
prefix = ":Sys"

[theme]
last_chosen = "nord"

[[shortcuts]]
prefix = ":G"
label = "Google"
base = "https://google.com/search?q={query}"

[[shortcuts]]
prefix = "man"
base = "man {query}"
mode = "shell"

[[shortcuts]]
prefix = "broken"
base = "https://x.test/"
mode = "bogus"

[[shortcuts]]
prefix = ""
base = "ignored"

[[power_actions]]
label = "Shutdown"
command = "systemctl poweroff"

[[power_actions]]
label = "Upgrade"
command = "sudo apt upgrade"
mode = "terminal"
stay_open = true

[[power_actions]]
label = "No command"
"""


@pytest.fixture
def base_config():
    return Config(search=SearchConfig())


class TestConfig:
    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("KEYLAUNCH_DEBOUNCE_MS", raising=False)
        monkeypatch.delenv("KEYLAUNCH_SEARCH_CAP", raising=False)
        config = Config()
        assert config.search.debounce_ms == 240
        assert config.search.min_query_len == 2
        assert config.search.result_cap == 800
        assert config.search.score_cap == 250
        assert config.search.show_cap == 40
        assert config.max_visible_items == 10
        assert config.max_recent == 10
        assert config.power_prefix == "p"
        assert config.config_path == DEFAULT_CONFIG_PATH

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("KEYLAUNCH_MAX_VISIBLE", "7")
        monkeypatch.setenv("KEYLAUNCH_POWER_PREFIX", ":Sys:")
        monkeypatch.setenv("KEYLAUNCH_DEBOUNCE_MS", "100")
        monkeypatch.setenv("KEYLAUNCH_RECENT", "/tmp/recent.json")
        monkeypatch.setenv("KEYLAUNCH_TERMINAL", "foot")

        config = Config.from_env()
        assert config.max_visible_items == 7
        assert config.power_prefix == "sys"
        assert config.search.debounce_ms == 100
        assert config.recent_path == Path("/tmp/recent.json")
        assert config.terminal == "foot"

    def test_config_path_from_env(self, monkeypatch):
        monkeypatch.setenv("KEYLAUNCH_CONFIG", "/tmp/launcher.toml")
        assert Config.from_env().config_path == Path("/tmp/launcher.toml")

    def test_get_config_is_cached(self, monkeypatch):
        monkeypatch.setattr("keylaunch.config._config", None)
        assert get_config() is get_config()


class TestConfigFile:
    def test_missing_file_gives_defaults(self, tmp_path, base_config):
        config, tables = load_config_file(tmp_path / "missing.toml", base_config)
        assert config == base_config
        assert tables == UserTables()
        assert tables.themes == BUILTIN_THEMES
        assert tables.theme_name == "Ayu Dark"

    def test_full_file(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text(FULL_CONFIG)
        config, tables = load_config_file(path, base_config)

        assert config.max_visible_items == 8
        assert config.terminal == "kitty --hold"
        assert config.power_prefix == "sys"

        assert [s.prefix for s in tables.shortcuts] == ["g", "man", "broken"]
        assert tables.shortcuts[0].label == "Google"
        assert tables.shortcuts[1].mode is ShortcutMode.SHELL
        assert tables.shortcuts[1].label == ""
        assert tables.shortcuts[2].mode is ShortcutMode.URL

        assert [a.label for a in tables.power_actions] == ["Shutdown", "Upgrade"]
        assert tables.power_actions[0].mode is PowerMode.SPAWN
        assert tables.power_actions[1].mode is PowerMode.TERMINAL
        assert tables.power_actions[1].stay_open

        assert tables.themes == BUILTIN_THEMES
        assert tables.theme_name == "Nord"

    def test_custom_themes_replace_builtins(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text(
            '[[themes]]\nname = "Mine"\nbgColorHex = "#000000"\nfgColorHex = "#FFFFFF"\n'
            '[theme]\nlast_chosen = "Missing"\n'
        )
        _, tables = load_config_file(path, base_config)
        assert tables.themes == [Theme("Mine", bg="#000000", fg="#FFFFFF")]
        assert tables.theme_name == "Mine"

    def test_malformed_file(self, tmp_path, base_config, capsys):
        path = tmp_path / "keylaunch.toml"
        path.write_text("[window\nmax_visible_items = ")
        config, tables = load_config_file(path, base_config)
        assert config == base_config
        assert tables.shortcuts == []
        assert "[Config]" in capsys.readouterr().err

    def test_wrong_section_type(self, tmp_path, base_config, capsys):
        path = tmp_path / "keylaunch.toml"
        path.write_text('window = "big"\nshortcuts = "none"\n')
        config, tables = load_config_file(path, base_config)
        assert config.max_visible_items == base_config.max_visible_items
        assert tables.shortcuts == []
        err = capsys.readouterr().err
        assert "[window]" in err
        assert "[[shortcuts]]" in err

    def test_non_integer_window_size_is_skipped(self, tmp_path, base_config, capsys):
        path = tmp_path / "keylaunch.toml"
        path.write_text('[window]\nmax_visible_items = "ten"\n\n[power]\nprefix = "sys"\n')
        config, _ = load_config_file(path, base_config)
        assert config.max_visible_items == base_config.max_visible_items
        assert config.power_prefix == "sys"
        assert "[window]" in capsys.readouterr().err

    def test_window_size_clamped_to_one(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text("[window]\nmax_visible_items = -1\n")
        config, _ = load_config_file(path, base_config)
        assert config.max_visible_items == 1

    def test_stay_open_string_values(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text(
            '[[power_actions]]\nlabel = "A"\ncommand = "a"\nstay_open = "false"\n'
            '[[power_actions]]\nlabel = "B"\ncommand = "b"\nstay_open = "true"\n'
        )
        _, tables = load_config_file(path, base_config)
        assert [a.stay_open for a in tables.power_actions] == [False, True]


class TestSaveLastTheme:
    def test_replaces_existing_value(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text(
            '# my launcher\n[theme]\nlast_chosen = "Nord"\n\n[[shortcuts]]\nprefix = "g"\nbase = "https://g.test/"\n'
        )
        assert save_last_theme(path, "Dracula")
        text = path.read_text()
        assert 'last_chosen = "Dracula"' in text
        assert "Nord" not in text
        assert text.startswith("# my launcher\n")
        _, tables = load_config_file(path, base_config)
        assert tables.theme_name == "Dracula"
        assert [s.prefix for s in tables.shortcuts] == ["g"]

    def test_inserts_into_theme_table(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text('[theme]\n[power]\nprefix = "sys"\n')
        save_last_theme(path, "Nord")
        config, tables = load_config_file(path, base_config)
        assert tables.theme_name == "Nord"
        assert config.power_prefix == "sys"

    def test_appends_theme_table(self, tmp_path, base_config):
        path = tmp_path / "keylaunch.toml"
        path.write_text('[power]\nprefix = "sys"\n')
        save_last_theme(path, "Gruvbox Dark")
        assert path.read_text().endswith('[theme]\nlast_chosen = "Gruvbox Dark"\n')
        assert load_config_file(path, base_config)[1].theme_name == "Gruvbox Dark"

    def test_creates_missing_file(self, tmp_path, base_config):
        path = tmp_path / "new" / "keylaunch.toml"
        assert save_last_theme(path, "Nord")
        assert load_config_file(path, base_config)[1].theme_name == "Nord"
        assert not path.with_suffix(".tmp").exists()
