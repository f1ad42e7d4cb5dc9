"""Tests for MCP response shaping."""

import json

import pytest

from spikeforge.foundation.errors import ErrorCode, NotFoundError, not_found
from spikeforge.mcp.formatting import (
    DEFAULT_FORMAT,
    FORMAT_COMPACT,
    FORMAT_FULL,
    FORMAT_SUMMARY,
    discovery_payload,
    error_payload,
    first_line,
    mcp_json,
    next_action,
    omit_empty,
    resolve_format,
)
from spikeforge.spikes.discovery import DiscoveryEngine
from spikeforge.spikes.catalog import SpikeCatalog


class TestMcpJson:
    def test_compact_has_no_whitespace(self) -> None:
        assert mcp_json({"a": 1, "b": "hello"}, FORMAT_COMPACT) == '{"a":1,"b":"hello"}'

    def test_full_is_pretty_printed(self) -> None:
        assert mcp_json({"a": 1}, FORMAT_FULL) == '{\n  "a": 1\n}'

    def test_non_json_values_use_str(self, tmp_path) -> None:
        assert json.loads(mcp_json({"p": tmp_path})) == {"p": str(tmp_path)}


class TestResolveFormat:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, DEFAULT_FORMAT), ("", DEFAULT_FORMAT), ("FULL", FORMAT_FULL), (" summary ", FORMAT_SUMMARY), ("xml", DEFAULT_FORMAT)],
    )
    def test_resolve(self, raw: str | None, expected: str) -> None:
        assert resolve_format(raw) == expected


class TestHelpers:
    def test_first_line(self) -> None:
        assert first_line(None) == ""
        assert first_line("one\ntwo") == "one"
        assert first_line("x" * 10, max_len=6) == "xxx..."

    def test_omit_empty_keeps_false_and_zero(self) -> None:
        assert omit_empty({"a": None, "b": [], "c": False, "d": 0, "e": ""}) == {"c": False, "d": 0}

    def test_next_action(self) -> None:
        assert next_action("preview-spike", id="x") == {"tool": "preview-spike", "args": {"id": "x"}}

    def test_error_payload(self) -> None:
        data = error_payload(not_found("nope"))

        assert data["error_id"] == "SF-1001"
        assert data["code"] == ErrorCode.SPIKE_NOT_FOUND.value
        assert data["kind"] == NotFoundError.__name__
        assert data["context"] == {"spike": "nope"}


class TestDiscoveryPayload:
    @pytest.fixture
    def result(self, catalog: SpikeCatalog):
        return DiscoveryEngine(catalog).discover("jwt auth", 3)

    def test_summary_is_ids_only(self, result) -> None:
        data = discovery_payload(result, FORMAT_SUMMARY)
        assert set(data) == {"ids", "total", "truncated"}
        assert data["ids"][0] == "jwt-auth-express"

    def test_compact_drops_match_details(self, result) -> None:
        item = discovery_payload(result, FORMAT_COMPACT)["items"][0]
        assert "matched_terms" not in item
        assert "\n" not in item["description"]
        assert len(item["description"]) <= 120

    def test_full_keeps_everything(self, result) -> None:
        item = discovery_payload(result, FORMAT_FULL)["items"][0]
        assert set(item) == {"id", "name", "score", "stack", "tags", "description", "matched_terms", "matched_fields"}
        assert "id" in item["matched_fields"]

    def test_compact_keys(self, result) -> None:
        item = discovery_payload(result, FORMAT_COMPACT)["items"][0]
        assert set(item) == {"id", "name", "score", "stack", "tags", "description"}
