"""Spikeforge MCP Server - expose the spike engine to AI agents.

Usage:
    # As MCP server (stdio)
    spikeforge-mcp

    # With workspace and extra spike documents
    spikeforge-mcp --workspace /path/to/project --spec-dir ./spikes
"""

from spikeforge.mcp.server import create_server, main

__all__ = ["create_server", "main"]
