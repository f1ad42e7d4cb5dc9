"""MCP Tool definitions for Spikeforge."""

from collections.abc import Callable

from mcp.server.fastmcp import FastMCP

from spikeforge.mcp.tools.spikes import register_spike_tools
from spikeforge.spikes.engine import SpikeEngine


def register_tools(
    mcp: FastMCP,
    engine_factory: Callable[[], SpikeEngine],
    workspace: str | None = None,
) -> None:
    """Register all Spikeforge tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        engine_factory: Returns the SpikeEngine the tools call
        workspace: Target root for apply/validate (default: current directory)
    """
    register_spike_tools(mcp, engine_factory, workspace)
