"""Spikeforge MCP server.

Serves the spike tools over stdio to MCP hosts (Cursor, Claude Desktop, ...).
Run ``spikeforge-mcp --test`` to check the catalog loads without starting
the transport.
"""

import argparse
import asyncio
import contextlib
import dataclasses
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from spikeforge.foundation.config import SpikeforgeConfig, load_config
from spikeforge.foundation.logging import configure_logging
from spikeforge.mcp.instructions import SPIKEFORGE_INSTRUCTIONS
from spikeforge.mcp.tools import register_tools
from spikeforge.spikes.engine import SpikeEngine

logger = logging.getLogger(__name__)


def _with_spec_dirs(config: SpikeforgeConfig, spec_dirs: Sequence[str]) -> SpikeforgeConfig:
    """Append command-line spike directories after the configured ones."""
    if not spec_dirs:
        return config
    catalog = dataclasses.replace(
        config.catalog,
        spec_dirs=(*config.catalog.spec_dirs, *spec_dirs),
    )
    return dataclasses.replace(config, catalog=catalog)


def create_server(
    spec_dirs: Sequence[str] | None = None,
    workspace: str | None = None,
    config_path: str | None = None,
) -> FastMCP:
    """Build the engine and a FastMCP server exposing it.

    Args:
        spec_dirs: Extra directories of spike documents
        workspace: Target root for apply-spike and validate-spike
            (default: the server's working directory at call time)
        config_path: Explicit config file instead of the default search
    """
    config = _with_spec_dirs(load_config(config_path), spec_dirs or ())
    engine = SpikeEngine.from_config(config)

    mcp = FastMCP("spikeforge", instructions=SPIKEFORGE_INSTRUCTIONS)
    register_tools(mcp, lambda: engine, workspace)

    mcp._spikeforge_workspace = workspace  # type: ignore[attr-defined]
    mcp._spikeforge_engine = engine  # type: ignore[attr-defined]

    logger.info(
        "spikeforge server ready: %d static spikes, workspace %s",
        engine.catalog.static_count,
        workspace or Path.cwd(),
    )
    return mcp


async def serve(mcp: FastMCP) -> None:
    """Serve over stdio until the host disconnects or SIGINT/SIGTERM arrives."""
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    signals = () if sys.platform == "win32" else (signal.SIGINT, signal.SIGTERM)
    for sig in signals:
        loop.add_signal_handler(sig, stop.set)

    transport = asyncio.create_task(mcp.run_stdio_async())
    stopped = asyncio.create_task(stop.wait())
    try:
        await asyncio.wait({transport, stopped}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (transport, stopped):
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        for sig in signals:
            loop.remove_signal_handler(sig)

    if not transport.cancelled():
        # Surface transport failures instead of exiting cleanly
        transport.result()
    logger.info("spikeforge server stopped")


def _self_test(mcp: FastMCP) -> None:
    stats = mcp._spikeforge_engine.stats()  # type: ignore[attr-defined]
    print("Testing Spikeforge MCP Server setup...", file=sys.stderr)
    print(f"  Server created: {mcp.name}", file=sys.stderr)
    print(f"  Static spikes: {stats['static_spikes']}", file=sys.stderr)
    print(f"  Generated spikes: {stats['generated_spikes']}", file=sys.stderr)
    print(f"  Axes version: {stats['axes_version']}", file=sys.stderr)
    print("  MCP server is ready!", file=sys.stderr)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spikeforge-mcp",
        description="Serve spike discovery, preview and apply tools over MCP stdio",
    )
    parser.add_argument("--workspace", help="Target root for apply/validate (default: current directory)")
    parser.add_argument(
        "--spec-dir",
        action="append",
        default=[],
        dest="spec_dirs",
        help="Extra directory of spike documents (repeatable)",
    )
    parser.add_argument(
        "--config",
        help="Config file (default: .spikeforge/config.yaml, then ~/.spikeforge/config.yaml)",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--persist-logs", action="store_true", help="Keep session logs in .spikeforge/logs/")
    parser.add_argument("--test", action="store_true", help="Load the catalog, print stats and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for ``spikeforge-mcp``."""
    args = _parser().parse_args(argv)
    configure_logging(debug=args.debug, persist=args.persist_logs)

    if args.workspace and not Path(args.workspace).is_dir():
        print(f"Error: Workspace directory not found: {args.workspace}", file=sys.stderr)
        sys.exit(1)
    missing = [d for d in args.spec_dirs if not Path(d).is_dir()]
    if missing:
        print(f"Error: Spike directory not found: {missing[0]}", file=sys.stderr)
        sys.exit(1)

    mcp = create_server(args.spec_dirs, args.workspace, args.config)
    if args.test:
        _self_test(mcp)
        return

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(mcp))


if __name__ == "__main__":
    main()
