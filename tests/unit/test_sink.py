"""Unit tests for the presentation sinks."""

import logging
import pytest

from webota.main import ConsoleSink
from webota.models.status import Badge, MessageLevel
from webota.services.sink import LoggingSink, PresentationSink


@pytest.mark.unit
class TestSinks:
    """Test PresentationSink implementations."""

    def test_base_sink_is_noop(self):
        sink = PresentationSink()

        sink.show_progress(50)
        sink.show_badge(Badge.UPDATING)
        sink.show_message("hello", MessageLevel.ERROR)
        sink.show_login()
        sink.reload()

    def test_logging_sink_levels(self, caplog):
        sink = LoggingSink()

        with caplog.at_level(logging.DEBUG, logger="webota.ui"):
            sink.show_message("❌ Connection lost.", MessageLevel.WARNING)
            sink.show_message("✅ Update successful!", MessageLevel.SUCCESS)
            sink.show_login()

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert (logging.WARNING, "❌ Connection lost.") in levels
        assert (logging.INFO, "✅ Update successful!") in levels
        assert (logging.WARNING, "Session expired, login required") in levels

    def test_logging_sink_skips_repeated_progress(self, caplog):
        sink = LoggingSink()

        with caplog.at_level(logging.INFO, logger="webota.ui"):
            for percent in (10, 10, 10, 20):
                sink.show_progress(percent)

        assert [r.getMessage() for r in caplog.records] == ["Progress: 10%", "Progress: 20%"]

    def test_console_sink_renders_bar(self, capsys):
        sink = ConsoleSink()

        sink.show_progress(50)
        sink.show_badge(Badge.SUCCESS)
        sink.show_message("✅ Update successful! Restarting...", MessageLevel.SUCCESS)

        out = capsys.readouterr().out
        assert "[##########..........]  50%" in out
        assert "Update successful" in out
