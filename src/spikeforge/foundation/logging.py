"""Logging setup for the spikeforge MCP server.

The server speaks MCP over stdio, so console logging is always written to
stderr. By default only warnings are shown. The effective level comes from
the first of these that is set:

    1. the ``level`` argument
    2. SPIKEFORGE_LOG_LEVEL (DEBUG, INFO, WARNING, ... or a number)
    3. SPIKEFORGE_DEBUG=true
    4. the ``debug`` argument (``--debug`` on the command line)
    5. ``debug: true`` in the config file

With ``persist=True`` every record, whatever the console level, is also
written to a per-session file under ``.spikeforge/logs/``; only the most
recent sessions are kept.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

VERBOSE_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
CONSOLE_FORMAT = "%(name)s: %(message)s"

SESSION_LOGS_KEPT = 10

# Transport and client libraries pulled in by mcp; held at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "anyio", "mcp.server.lowlevel")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_level(level: int | str) -> int:
    """Level name or number to a logging level; unknown names mean WARNING."""
    if isinstance(level, int):
        return level
    named = logging.getLevelName(level.strip().upper())
    if isinstance(named, int):
        return named
    try:
        return int(level)
    except ValueError:
        return logging.WARNING


def _config_wants_debug() -> bool:
    from spikeforge.foundation.config import get_config
    from spikeforge.foundation.errors import SpikeforgeError

    try:
        return get_config().debug
    except SpikeforgeError:
        # A broken config file must not stop the server from logging
        return False


def _resolve_level(level: int | str | None, debug: bool) -> int:
    if level is not None:
        return _parse_level(level)
    env_level = os.environ.get("SPIKEFORGE_LOG_LEVEL")
    if env_level:
        return _parse_level(env_level)
    if os.environ.get("SPIKEFORGE_DEBUG", "").strip().lower() in _TRUTHY:
        return logging.DEBUG
    if debug or _config_wants_debug():
        return logging.DEBUG
    return logging.WARNING


def _cleanup_old_logs(log_dir: Path, max_sessions: int = SESSION_LOGS_KEPT) -> None:
    """Delete all but the ``max_sessions`` newest session logs."""
    if not log_dir.is_dir():
        return
    sessions = sorted(log_dir.glob("session_*.log"), key=lambda p: p.stat().st_mtime)
    for stale in sessions[: max(len(sessions) - max_sessions, 0)]:
        try:
            stale.unlink()
        except FileNotFoundError:
            continue


def _session_handler(log_root: Path | None) -> logging.Handler:
    log_dir = (log_root or Path.cwd()) / ".spikeforge" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs(log_dir, SESSION_LOGS_KEPT - 1)

    started = datetime.now().strftime("%Y%m%d-%H%M%S")
    handler = logging.FileHandler(
        log_dir / f"session_{started}_{os.getpid()}.log",
        mode="w",
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
    return handler


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    persist: bool = False,
    log_root: Path | None = None,
) -> None:
    """Install the console handler (and optionally a session log) on the root logger.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.

    Args:
        debug: Show DEBUG records with timestamps
        level: Explicit level, overriding environment and config
        stream: Console stream (default: stderr)
        persist: Also write a session log under ``<log_root>/.spikeforge/logs``
        log_root: Directory holding ``.spikeforge`` (default: current directory)
    """
    console_level = _resolve_level(level, debug)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        logging.Formatter(VERBOSE_FORMAT if console_level <= logging.DEBUG else CONSOLE_FORMAT)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(console_level)

    if persist:
        try:
            root.addHandler(_session_handler(log_root))
            root.setLevel(logging.DEBUG)
        except OSError as e:
            print(f"spikeforge: session logging disabled: {e}", file=sys.stderr)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging ready (console=%s, persist=%s)",
        logging.getLevelName(console_level),
        persist,
    )
