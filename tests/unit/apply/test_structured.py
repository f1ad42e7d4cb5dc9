"""Tests for structured and line-based merging."""

import json

import pytest

from spikeforge.apply.structured import (
    decode_text,
    deep_merge,
    is_binary,
    merge_content,
    merge_lines,
    merge_structured,
    structured_format,
)
from spikeforge.foundation.errors import ConflictError, ErrorCode


class TestDeepMerge:
    def test_adds_new_keys_and_keeps_existing(self) -> None:
        merged, conflicts = deep_merge({"a": 1, "n": {"x": 1}}, {"b": 2, "n": {"y": 2}})
        assert merged == {"a": 1, "b": 2, "n": {"x": 1, "y": 2}}
        assert conflicts == []

    def test_lists_are_unioned_in_order(self) -> None:
        merged, _ = deep_merge({"l": ["a", "b"]}, {"l": ["b", "c"]})
        assert merged == {"l": ["a", "b", "c"]}

    def test_scalar_conflict_path(self) -> None:
        _, conflicts = deep_merge({"s": {"port": 3000}}, {"s": {"port": 4000}})
        assert conflicts == ["s.port"]

    def test_type_change_conflicts(self) -> None:
        _, conflicts = deep_merge({"v": 1}, {"v": "1"})
        assert conflicts == ["v"]

    def test_prefer_incoming(self) -> None:
        merged, conflicts = deep_merge({"v": 1, "k": 0}, {"v": 2}, prefer_incoming=True)
        assert merged == {"v": 2, "k": 0}
        assert conflicts == []

    def test_inputs_are_not_mutated(self) -> None:
        existing = {"n": {"x": 1}}
        deep_merge(existing, {"n": {"y": 2}})
        assert existing == {"n": {"x": 1}}


class TestMergeStructured:
    def test_json_merge_is_pretty_printed(self) -> None:
        merged = merge_structured("package.json", '{"name": "a"}', '{"dependencies": {"jsonwebtoken": "^9.0.2"}}')
        assert json.loads(merged) == {"name": "a", "dependencies": {"jsonwebtoken": "^9.0.2"}}
        assert merged.endswith("}\n")

    def test_no_change_returns_existing_bytes(self) -> None:
        existing = '{"name":"a","deps":{"x":"1"}}'
        assert merge_structured("p.json", existing, '{"deps": {"x": "1"}}') is existing

    def test_yaml_merge(self) -> None:
        merged = merge_structured("ci.yml", "name: CI\nruns: 1\n", "env:\n  CI: 'true'\n")
        assert "env:" in merged
        assert merged.index("name") < merged.index("env")

    def test_conflict_lists_keys(self) -> None:
        with pytest.raises(ConflictError) as exc_info:
            merge_structured("package.json", '{"name": "a"}', '{"name": "b"}')
        assert exc_info.value.context["keys"] == ["name"]

    def test_unparseable_existing(self) -> None:
        with pytest.raises(ConflictError) as exc_info:
            merge_structured("package.json", "{not json", "{}")
        assert "existing json does not parse" in exc_info.value.context["detail"]

    def test_empty_existing_counts_as_empty_mapping(self) -> None:
        assert json.loads(merge_structured("a.json", "", '{"k": 1}')) == {"k": 1}

    def test_rejects_unstructured_paths(self) -> None:
        with pytest.raises(ValueError):
            merge_structured("README.md", "", "")


class TestMergeLines:
    def test_insertions_are_kept(self) -> None:
        assert merge_lines("f", "a\nc\n", "a\nb\nc\n") == "a\nb\nc\n"

    def test_lines_only_existing_has_are_kept(self) -> None:
        assert merge_lines("f", "a\nlocal\nb\n", "a\nb\n") == "a\nlocal\nb\n"

    def test_identical(self) -> None:
        assert merge_lines("f", "a\nb\n", "a\nb\n") == "a\nb\n"

    def test_missing_final_newline_is_not_a_change(self) -> None:
        assert merge_lines("f", "a\nb", "a\nb\nc\n") == "a\nb\nc\n"

    def test_overlapping_change_conflicts(self) -> None:
        with pytest.raises(ConflictError) as exc_info:
            merge_lines("f", "a\nb\nc\n", "a\nB\nc\n")
        assert exc_info.value.context["hunks"] == ["lines 2-2"]


class TestBinary:
    @pytest.mark.parametrize(("data", "binary"), [(b"text", False), (b"a\x00b", True), (b"\xff\xfe", True)])
    def test_is_binary(self, data: bytes, binary: bool) -> None:
        assert is_binary(data) is binary

    def test_decode_text_refuses_binary(self) -> None:
        with pytest.raises(ConflictError) as exc_info:
            decode_text("logo.png", b"\x89PNG\x00")
        assert exc_info.value.code is ErrorCode.BINARY_MERGE_UNSUPPORTED

    def test_merge_content_dispatches_on_suffix(self) -> None:
        assert json.loads(merge_content("a.json", b'{"x": 1}', '{"y": 2}')) == {"x": 1, "y": 2}
        assert merge_content("a.txt", b"one\n", "one\ntwo\n") == "one\ntwo\n"

    @pytest.mark.parametrize(("path", "fmt"), [("a.JSON", "json"), ("x/b.yml", "yaml"), ("c.yaml", "yaml"), ("d.ts", None)])
    def test_structured_format(self, path: str, fmt: str | None) -> None:
        assert structured_format(path) == fmt
