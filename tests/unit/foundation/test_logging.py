"""Tests for logging configuration and persistent session logs."""

import io
import logging
import os
import time
from pathlib import Path

import pytest

from spikeforge.foundation.logging import _cleanup_old_logs, _parse_level, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevelResolution:
    """Priority: explicit level, env level, env debug, debug flag, config, default."""

    def test_default_is_warning(self) -> None:
        configure_logging(stream=io.StringIO())
        assert logging.getLogger().level == logging.WARNING

    def test_debug_flag(self) -> None:
        configure_logging(debug=True, stream=io.StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPIKEFORGE_LOG_LEVEL", "DEBUG")
        configure_logging(level="ERROR", stream=io.StringIO())
        assert logging.getLogger().level == logging.ERROR

    def test_env_level_beats_debug_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPIKEFORGE_LOG_LEVEL", "info")
        configure_logging(debug=True, stream=io.StringIO())
        assert logging.getLogger().level == logging.INFO

    def test_env_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPIKEFORGE_DEBUG", "yes")
        configure_logging(stream=io.StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_config_debug(self, tmp_path: Path) -> None:
        local = tmp_path / ".spikeforge"
        local.mkdir()
        (local / "config.yaml").write_text("debug: true\n")
        configure_logging(stream=io.StringIO())
        assert logging.getLogger().level == logging.DEBUG

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("15", 15), (20, 20), ("loud", logging.WARNING)],
    )
    def test_parse_level(self, raw: int | str, expected: int) -> None:
        assert _parse_level(raw) == expected


class TestConsoleOutput:
    def test_messages_go_to_stream(self) -> None:
        stream = io.StringIO()
        configure_logging(level="INFO", stream=stream)

        logging.getLogger("spikeforge.test").info("hello %s", "there")

        assert "spikeforge.test: hello there" in stream.getvalue()

    def test_noisy_loggers_quieted(self) -> None:
        configure_logging(debug=True, stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING


class TestPersistentLogging:
    """Session logs under .spikeforge/logs/."""

    def test_creates_session_log(self, tmp_path: Path) -> None:
        configure_logging(persist=True, stream=io.StringIO(), log_root=tmp_path)
        logging.getLogger("spikeforge.test").debug("recorded")
        for handler in logging.getLogger().handlers:
            handler.flush()

        logs = list((tmp_path / ".spikeforge" / "logs").glob("session_*.log"))
        assert len(logs) == 1
        assert "recorded" in logs[0].read_text(encoding="utf-8")

    def test_console_still_filters(self, tmp_path: Path) -> None:
        stream = io.StringIO()
        configure_logging(persist=True, stream=stream, log_root=tmp_path)
        logging.getLogger("spikeforge.test").debug("quiet")
        assert "quiet" not in stream.getvalue()

    def test_cleanup_keeps_most_recent(self, tmp_path: Path) -> None:
        now = time.time()
        for i in range(5):
            log = tmp_path / f"session_{i}.log"
            log.write_text("x")
            os.utime(log, (now + i, now + i))

        _cleanup_old_logs(tmp_path, max_sessions=2)

        remaining = sorted(p.name for p in tmp_path.glob("session_*.log"))
        assert remaining == ["session_3.log", "session_4.log"]
