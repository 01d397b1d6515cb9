"""Tests for termpanes.config.PaneSettings."""

from __future__ import annotations

from termpanes.colors import Color
from termpanes.config import DEFAULT_SCROLL_THRESHOLD, DEFAULT_TAB_WIDTH, PaneSettings


class TestPaneSettings:
    def test_defaults(self) -> None:
        settings = PaneSettings()
        assert settings.tab_width == 8
        assert settings.scroll_threshold == 5
        assert settings.vertical_divider == "│"
        assert settings.horizontal_divider == "─"
        assert settings.divider_fg is Color.WHITE
        assert (settings.scroll_left_glyph, settings.scroll_right_glyph) == ("←", "→")

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TERMPANES_TAB_WIDTH", "4")
        monkeypatch.setenv("TERMPANES_SCROLL_THRESHOLD", "2")
        monkeypatch.setenv("TERMPANES_WRITE_LOG", "/tmp/panes.log")
        settings = PaneSettings.from_env()
        assert settings.tab_width == 4
        assert settings.scroll_threshold == 2
        assert settings.write_log_path == "/tmp/panes.log"

    def test_from_env_ignores_bad_values(self, monkeypatch) -> None:
        monkeypatch.setenv("TERMPANES_TAB_WIDTH", "wide")
        monkeypatch.setenv("TERMPANES_SCROLL_THRESHOLD", "-1")
        monkeypatch.delenv("TERMPANES_WRITE_LOG", raising=False)
        settings = PaneSettings.from_env()
        assert settings.tab_width == DEFAULT_TAB_WIDTH
        assert settings.scroll_threshold == DEFAULT_SCROLL_THRESHOLD
        assert settings.write_log_path == ""
