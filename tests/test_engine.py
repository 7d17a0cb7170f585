"""Tests for the launcher engine."""
import json
from unittest.mock import call, patch

from keylaunch.config import load_config_file
from keylaunch.engine import (
    NO_MATCHES,
    NO_POWER_ACTIONS,
    RUN_HINT,
    SEARCHING,
    LauncherEngine,
)
from keylaunch.models import Candidate, CandidateKind, CommandKind
from keylaunch.recent import RecentList
from keylaunch.topk import TopKSelector


def labels(rows):
    return [row.label for row in rows]


class TestApplicationSearch:
    def test_empty_input_lists_recent_first(self, engine):
        engine.recent.record("GIMP")
        engine.recent.record("Kitty")
        rows = engine.set_input("")
        assert labels(rows) == [
            "Kitty", "GIMP", "Blender", "Files", "Firefox", "Fire Starter",
            "LibreOffice Writer", "Wireshark",
        ]
        assert all(row.spans == [] for row in rows)

    def test_recent_entries_missing_from_index_are_skipped(self, engine):
        engine.recent.record("Uninstalled App")
        assert labels(engine.set_input(""))[0] == "Blender"

    def test_prefix_matches_rank_first(self, engine):
        rows = engine.set_input("fire")
        assert labels(rows)[:2] == ["Firefox", "Fire Starter"]
        assert rows[0].spans == [(0, 1), (1, 1), (2, 1), (3, 1)]
        assert rows[0].kind is CandidateKind.APP
        assert rows[0].payload == "firefox %u"
        assert rows[0].has_icon
        assert not rows[1].has_icon

    def test_typo_matches_follow_substring_matches(self, engine):
        rows = engine.set_input("fire")
        assert len(rows) == 5
        assert labels(rows)[2] == "Files"
        assert set(labels(rows)[3:]) == {"Wireshark", "LibreOffice Writer"}

    def test_recent_boost_breaks_near_ties(self, engine):
        engine.recent.record("Fire Starter")
        assert labels(engine.set_input("fire"))[:2] == ["Fire Starter", "Firefox"]

    def test_results_limited_to_visible_items(self, engine):
        assert len(engine.set_input("e")) == 5

    def test_matches_stream_through_bounded_selector(self, engine):
        with patch("keylaunch.engine.TopKSelector", wraps=TopKSelector) as selector_cls:
            rows = engine.set_input("fire")
        assert selector_cls.call_args == call(5)
        assert labels(rows)[:2] == ["Firefox", "Fire Starter"]

    def test_no_matches_placeholder(self, engine):
        rows = engine.set_input("zzzz")
        assert labels(rows) == [NO_MATCHES]
        assert rows[0].kind is CandidateKind.PLACEHOLDER
        assert engine.activate() is None

    def test_unknown_keyword_searches_whole_input(self, engine):
        assert engine.parse(":zz firefox").kind is CommandKind.NONE
        assert labels(engine.set_input(":zz firefox")) == [NO_MATCHES]


class TestCommands:
    def test_power_actions(self, engine):
        rows = engine.set_input(":p shut")
        assert labels(rows) == ["Shutdown"]
        assert rows[0].kind is CandidateKind.POWER_ACTION
        assert rows[0].payload == "systemctl poweroff"

    def test_power_without_query_lists_all(self, engine):
        assert labels(engine.set_input(":p")) == ["Lock Screen", "Shutdown", "Reboot", "Update System"]

    def test_power_no_match(self, engine):
        assert labels(engine.set_input(":p zzz")) == [NO_MATCHES]

    def test_power_not_configured(self, config, sample_apps):
        engine = LauncherEngine(config=config, apps=sample_apps, home="/home/user", clock=lambda: 0)
        assert labels(engine.set_input(":p")) == [NO_POWER_ACTIONS]

    def test_shortcut_row(self, engine):
        rows = engine.set_input(":g rust lang")
        assert labels(rows) == ["Search Google: rust lang"]
        assert rows[0].kind is CandidateKind.SHORTCUT
        assert rows[0].payload == "https://www.google.com/search?q=rust+lang"

    def test_longer_shortcut_prefix(self, engine):
        rows = engine.set_input(":gh foo")
        assert labels(rows) == ["GitHub foo"]
        assert rows[0].payload == "https://github.com/search?q=foo"

    def test_themes(self, engine):
        rows = engine.set_input(":t nord")
        assert labels(rows) == ["Nord"]
        assert rows[0].kind is CandidateKind.THEME

    def test_config_files(self, engine):
        engine.config_files_fn = lambda query: [
            Candidate(kind=CandidateKind.CONFIG_FILE, label="kitty.conf", exec_target="xdg-open kitty.conf"),
        ]
        rows = engine.set_input(":c kitty")
        assert labels(rows) == ["kitty.conf"]
        assert rows[0].spans == [(0, 1), (1, 1), (2, 1), (3, 1), (4, 1)]

    def test_run_row_spans_skip_label_prefix(self, engine):
        rows = engine.set_input("!htop")
        assert labels(rows) == ["Run: htop"]
        assert rows[0].kind is CandidateKind.RUN_COMMAND
        assert rows[0].payload == "htop"
        assert rows[0].spans == [(5, 1), (6, 1), (7, 1), (8, 1)]

    def test_run_without_command(self, engine):
        rows = engine.set_input(":r")
        assert labels(rows) == [RUN_HINT]
        assert engine.activate() is None


class TestDebouncedFileSearch:
    def test_placeholder_then_idle_rebuild(self, engine, fake_search):
        assert labels(engine.set_input(":s notes", now_ms=1000)) == [SEARCHING]
        assert fake_search.calls == []

        assert not engine.idle_tick(1100)
        assert engine.idle_tick(1240)
        assert fake_search.calls == ["notes"]
        assert labels(engine.rows)[0] == "notes.txt — ~"

        assert not engine.idle_tick(1500)
        assert fake_search.calls == ["notes"]

    def test_extension_is_narrowed_without_rescan(self, engine, fake_search):
        engine.set_input(":s notes", now_ms=1000)
        engine.idle_tick(1240)
        assert labels(engine.set_input(":s notes-", now_ms=1300)) == [SEARCHING]
        assert engine.idle_tick(1540)
        assert labels(engine.rows) == ["notes-2024.md — ~/docs"]
        assert fake_search.calls == ["notes"]

    def test_short_query_waits(self, engine, fake_search):
        engine.set_input(":s n", now_ms=0)
        assert not engine.idle_tick(10_000)
        assert labels(engine.rows) == [SEARCHING]

    def test_idle_tick_outside_search_mode(self, engine):
        engine.set_input("fire", now_ms=0)
        assert not engine.idle_tick(10_000)

    def test_settle_skips_the_wait(self, engine, fake_search):
        engine.set_input(":s song", now_ms=5000)
        rows = engine.settle()
        assert labels(rows) == ["song.mp3 — ~/music"]
        assert fake_search.calls == ["song"]


class TestSelection:
    def test_clamped_at_top(self, engine):
        engine.set_input("")
        engine.move_selection(-1)
        assert engine.selected_index == 0
        assert engine.view_offset == 0

    def test_scrolls_to_keep_selection_visible(self, engine):
        engine.set_input("")
        engine.move_selection(5)
        assert (engine.selected_index, engine.view_offset) == (5, 1)
        engine.move_selection(10)
        assert (engine.selected_index, engine.view_offset) == (7, 3)
        engine.move_selection(-5)
        assert (engine.selected_index, engine.view_offset) == (2, 2)

    def test_page_and_jumps(self, engine):
        engine.set_input("")
        engine.page(1)
        assert (engine.selected_index, engine.view_offset) == (5, 1)
        engine.jump_to_bottom()
        assert (engine.selected_index, engine.view_offset) == (7, 3)
        assert labels(engine.visible_rows()) == [
            "Fire Starter", "GIMP", "Kitty", "LibreOffice Writer", "Wireshark",
        ]
        engine.jump_to_top()
        assert (engine.selected_index, engine.view_offset) == (0, 0)

    def test_rebuild_resets_selection(self, engine):
        engine.set_input("")
        engine.move_selection(3)
        engine.append("f")
        assert engine.selected_index == 0
        assert engine.view_offset == 0

    def test_append_and_backspace(self, engine):
        engine.set_input("fir")
        engine.append("e")
        assert engine.input_text == "fire"
        engine.backspace()
        assert engine.input_text == "fir"
        engine.clear()
        assert engine.input_text == ""
        engine.backspace()
        assert engine.input_text == ""


class TestActivation:
    def test_activate_selected_app(self, engine):
        engine.set_input("")
        engine.move_selection(2)
        activation = engine.activate()
        assert activation.kind is CandidateKind.APP
        assert activation.payload == "firefox %u"
        assert activation.candidate.label == "Firefox"

    def test_activate_by_index(self, engine):
        engine.set_input(":p")
        assert engine.activate(3).candidate.stay_open

    def test_out_of_range(self, engine):
        engine.set_input("")
        assert engine.activate(99) is None
        assert engine.activate(-1) is None

    def test_record_launch_persists(self, engine, config):
        engine.record_launch("GIMP")
        engine.record_launch("Kitty")
        assert engine.recent.items() == ["Kitty", "GIMP"]
        assert json.loads(config.recent_path.read_text()) == ["Kitty", "GIMP"]

    def test_record_launch_without_persistence(self, config, sample_apps):
        engine = LauncherEngine(
            config=config, apps=sample_apps, recent=RecentList(), persist_recent=False, clock=lambda: 0,
        )
        engine.record_launch("GIMP")
        assert not config.recent_path.exists()

    def test_apply_theme(self, engine):
        assert engine.theme_name == "Ayu Dark"
        assert engine.apply_theme("nord")
        assert engine.theme_name == "Nord"
        assert not engine.apply_theme("Nope")
        assert engine.theme_name == "Nord"

    def test_apply_theme_persists_choice(self, engine, config):
        config.config_path.write_text('[power]\nprefix = "p"\n')
        engine.apply_theme("dracula")
        _, tables = load_config_file(config.config_path, config)
        assert tables.theme_name == "Dracula"

    def test_cycle_theme_wraps_and_persists(self, engine, config):
        assert engine.cycle_theme() == "Ayu Light"
        engine.apply_theme("Tokyo Night")
        assert engine.cycle_theme() == "Ayu Dark"
        assert engine.theme_name == "Ayu Dark"
        assert load_config_file(config.config_path, config)[1].theme_name == "Ayu Dark"

    def test_cycle_theme_without_themes(self, config):
        engine = LauncherEngine(config=config, themes=(), persist_theme=False, clock=lambda: 0)
        assert engine.cycle_theme() is None
        assert not config.config_path.exists()


class TestSnapshot:
    def test_snapshot(self, engine):
        engine.set_input("!ls")
        snap = engine.snapshot()
        assert snap["input"] == "!ls"
        assert snap["command"] == "run"
        assert snap["selected_index"] == 0
        assert snap["theme"] == "Ayu Dark"
        assert snap["rows"] == [{
            "label": "Run: ls",
            "spans": [[5, 1], [6, 1]],
            "kind": "run_command",
            "payload": "ls",
            "has_icon": False,
        }]
