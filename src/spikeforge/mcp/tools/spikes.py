"""MCP spike tools for Spikeforge.

Provides discover-spikes, auto-spike, preview-spike, apply-spike,
validate-spike, explain-spike, list-generated-spikes, list-spike-packs and
spike-stats.

Every tool returns JSON text except explain-spike, which returns plain
documentation. Engine errors come back as the error's to_dict() payload;
anything else propagates to the MCP host.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from spikeforge.apply.merge import ConflictStrategy
from spikeforge.foundation.errors import SpikeforgeError
from spikeforge.mcp.formatting import (
    FORMAT_COMPACT,
    FORMAT_FULL,
    discovery_payload,
    error_payload,
    mcp_json,
    next_action,
    resolve_format,
)
from spikeforge.spikes.engine import SpikeEngine, get_engine
from spikeforge.spikes.selection import NoMatch

logger = logging.getLogger(__name__)


def _error(tool: str, e: SpikeforgeError) -> str:
    logger.warning("%s failed: %s", tool, e)
    return mcp_json(error_payload(e))


def register_spike_tools(
    mcp: FastMCP,
    engine_factory: Callable[[], SpikeEngine] = get_engine,
    workspace: str | None = None,
) -> None:
    """Register spike tools.

    Args:
        mcp: FastMCP server instance
        engine_factory: Returns the engine to call (lazily, per request)
        workspace: Target root for apply/validate (default: current directory)
    """

    def target_root() -> Path:
        return Path(workspace) if workspace else Path.cwd()

    @mcp.tool(name="discover-spikes")
    def discover_spikes(query: str = "", limit: int = 10, format: str = "compact") -> str:
        """
        Find spikes matching a free-text query, best first.

        Matches spike ids, tags, stack entries, names and descriptions.
        An empty query lists spikes in catalog order. The limit is clamped
        to the server's list limit; "truncated" tells you more matched.

        Args:
            query: Free text, e.g. "nextjs route" or "jwt auth"
            limit: Maximum spikes to return (default 10)
            format: "summary" (ids only), "compact" (default), "full"

        Returns:
            JSON with items (id, name, stack, tags, score), total, truncated
        """
        fmt = resolve_format(format)
        try:
            result = engine_factory().discover(query, limit)
        except SpikeforgeError as e:
            return _error("discover-spikes", e)

        return mcp_json(discovery_payload(result, fmt), fmt)

    @mcp.tool(name="auto-spike")
    def auto_spike(
        task: str,
        constraints: list[str] | dict[str, str] | str | None = None,
    ) -> str:
        """
        Pick the single best spike for a task.

        Constraints are hard: every constraint (e.g. "ts", "typescript",
        "nextjs", "secure") must appear in the chosen spike's stack or tags.
        When nothing satisfies them the answer is {"no_match": true, ...}.

        Args:
            task: What you want to build, e.g. "stripe webhook handler"
            constraints: List, mapping (values are used) or comma-separated string

        Returns:
            JSON with id, confidence, rationale, alternatives, or no_match
        """
        try:
            selection = engine_factory().auto_select(task, constraints)
        except SpikeforgeError as e:
            return _error("auto-spike", e)

        data = selection.to_dict()
        if not isinstance(selection, NoMatch):
            data["next_actions"] = [next_action("preview-spike", id=selection.id)]
        return mcp_json(data)

    @mcp.tool(name="preview-spike")
    def preview_spike(
        id: str,
        params: dict[str, Any] | None = None,
        include_content: bool = True,
    ) -> str:
        """
        Render a spike in memory without writing anything.

        Args:
            id: Spike id
            params: Parameter values (see explain-spike)
            include_content: False returns paths and sizes only

        Returns:
            JSON with rendered files (path, size, content), patches and a digest
        """
        try:
            rendered = engine_factory().preview(id, params)
        except SpikeforgeError as e:
            return _error("preview-spike", e)

        data = rendered.to_dict(include_content)
        data["digest"] = rendered.digest()
        data["next_actions"] = [next_action("apply-spike", id=rendered.spec_id, params=data["params"])]
        return mcp_json(data, FORMAT_FULL if include_content else FORMAT_COMPACT)

    @mcp.tool(name="apply-spike")
    def apply_spike(
        id: str,
        params: dict[str, Any] | None = None,
        strategy: str | None = None,
    ) -> str:
        """
        Render a spike and apply it to the workspace.

        All or nothing: if any file conflicts, nothing is written.

        Args:
            id: Spike id
            params: Parameter values (see explain-spike)
            strategy: "abort" (default), "overwrite" or "three_way_merge"

        Returns:
            JSON ApplyResult: success, strategy, per-file status
            (created/overwritten/merged/skipped/conflicted,
            or not_written when the apply failed), error
        """
        try:
            result = engine_factory().apply(id, params, strategy, target_root())
        except SpikeforgeError as e:
            return _error("apply-spike", e)

        data = result.to_dict()
        if result.success:
            data["next_actions"] = [next_action("validate-spike", id=id, params=params or {})]
        elif result.has_conflicts and result.strategy is ConflictStrategy.ABORT:
            data["next_actions"] = [
                next_action("apply-spike", id=id, params=params or {}, strategy="three_way_merge")
            ]
        return mcp_json(data)

    @mcp.tool(name="validate-spike")
    def validate_spike(id: str, params: dict[str, Any] | None = None) -> str:
        """
        Check the workspace for what a spike produces.

        Advisory: never writes. Reports per-check pass/warn/fail/skipped and
        a score (passed over checks that ran).

        Args:
            id: Spike id
            params: Parameter values used when the spike was applied

        Returns:
            JSON ValidationReport: status, score, checks, findings
        """
        try:
            report = engine_factory().validate(id, params, target_root())
        except SpikeforgeError as e:
            return _error("validate-spike", e)
        return mcp_json(report.to_dict())

    @mcp.tool(name="explain-spike")
    def explain_spike(id: str) -> str:
        """
        Document a spike: description, stack, tags, parameters, files, patches.

        Args:
            id: Spike id

        Returns:
            Plain-text documentation
        """
        try:
            return engine_factory().explain(id)
        except SpikeforgeError as e:
            return _error("explain-spike", e)

    @mcp.tool(name="list-generated-spikes")
    def list_generated_spikes(
        libraries: list[str] | None = None,
        patterns: list[str] | None = None,
        styles: list[str] | None = None,
        languages: list[str] | None = None,
        limit: int = 50,
        pack: str | None = None,
    ) -> str:
        """
        Browse generated spike ids by axis value or pack.

        Args:
            libraries: e.g. ["stripe", "nextjs"]
            patterns: e.g. ["webhook", "route"]
            styles: basic, typed, advanced, secure, testing
            languages: ts, js, py, go, rs, kt, java, rb
            limit: Maximum ids (clamped to the list limit)
            pack: Restrict to a spike pack (see list-spike-packs)

        Returns:
            JSON with ids, truncated, scanned
        """
        listing = engine_factory().list_generated(libraries, patterns, styles, languages, limit, pack)
        return mcp_json({"ids": list(listing.ids), "truncated": listing.truncated, "scanned": listing.scanned})

    @mcp.tool(name="list-spike-packs")
    def list_spike_packs() -> str:
        """
        List curated spike packs (named subsets of generated spikes).

        Returns:
            JSON list of packs with name and description
        """
        return mcp_json({"packs": [p.to_dict() for p in engine_factory().list_packs()]})

    @mcp.tool(name="spike-stats")
    def spike_stats() -> str:
        """
        Catalog statistics: static and generated counts, axis sizes, cache.

        Returns:
            JSON statistics
        """
        return mcp_json(engine_factory().stats())
