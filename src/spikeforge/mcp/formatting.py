"""Shaping spike tool responses for MCP clients.

Three format tiers trade detail for tokens: summary (ids only), compact
(one-line descriptions, no whitespace) and full (pretty-printed, all
fields). Every JSON response goes through mcp_json.
"""

import json
from typing import Any

from spikeforge.foundation.errors import SpikeforgeError
from spikeforge.spikes.discovery import DiscoveryResult

FORMAT_SUMMARY = "summary"
FORMAT_COMPACT = "compact"
FORMAT_FULL = "full"

DEFAULT_FORMAT = FORMAT_COMPACT
VALID_FORMATS = frozenset({FORMAT_SUMMARY, FORMAT_COMPACT, FORMAT_FULL})

# Description length in compact discovery items
COMPACT_DESCRIPTION_LEN = 120


def resolve_format(format: str | None) -> str:
    """Normalize a requested tier; unknown or missing tiers fall back to compact."""
    if not format:
        return DEFAULT_FORMAT
    lowered = format.strip().lower()
    return lowered if lowered in VALID_FORMATS else DEFAULT_FORMAT


def mcp_json(data: Any, format: str = DEFAULT_FORMAT) -> str:
    """Serialize a response. Only the full tier is indented.

    Paths, enums and other non-JSON values are written with str().
    """
    if format == FORMAT_FULL:
        return json.dumps(data, indent=2, default=str)
    return json.dumps(data, separators=(",", ":"), default=str)


def first_line(text: str | None, max_len: int = 200) -> str:
    """First line of ``text``, cut to ``max_len`` with a trailing ellipsis."""
    if not text:
        return ""
    line = text.split("\n", 1)[0]
    if len(line) > max_len:
        return line[: max_len - 3] + "..."
    return line


def omit_empty(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v not in (None, [], {}, "", ())}


def discovery_payload(result: DiscoveryResult, format: str) -> dict[str, Any]:
    """discover-spikes response for one format tier."""
    if format == FORMAT_SUMMARY:
        return {
            "ids": result.ids,
            "total": result.total_candidates,
            "truncated": result.truncated,
        }

    data = result.to_dict()
    if format != FORMAT_FULL:
        for item in data["items"]:
            item["description"] = first_line(item["description"], COMPACT_DESCRIPTION_LEN)
            del item["matched_terms"]
            del item["matched_fields"]
    return data


def next_action(tool: str, **args: Any) -> dict[str, Any]:
    """A suggested follow-up call for the client."""
    return {"tool": tool, "args": args}


def error_payload(error: SpikeforgeError) -> dict[str, Any]:
    """Structured error body; empty context entries are dropped."""
    data = error.to_dict()
    data["context"] = omit_empty(data.get("context") or {})
    return omit_empty(data)
