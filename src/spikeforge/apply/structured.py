"""Content merging for three-way apply and merge patches.

Two mergers:

- Structured (JSON/YAML): field-level. Existing keys and values are kept,
  new keys are added, lists are unioned in order. Two different scalars at
  the same key are a conflict unless the incoming side is preferred.
- Line: the two texts are aligned on their longest common subsequence.
  Lines only one side has are kept; a region where both sides differ is a
  conflict.

Binary content (NUL bytes or invalid UTF-8) is never merged.
"""


import difflib
import json
from pathlib import PurePosixPath
from typing import Any

import yaml

from spikeforge.foundation.errors import ErrorCode, conflict_error
from spikeforge.foundation.utils import safe_json_dumps, safe_yaml_dumps

_JSON_SUFFIXES = frozenset({".json"})
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})

_MISSING = object()


def is_binary(data: bytes) -> bool:
    """NUL bytes or undecodable UTF-8 mark content as binary."""
    if b"\x00" in data:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def decode_text(path: str, data: bytes) -> str:
    """Decode on-disk bytes for merging.

    Raises:
        ConflictError: The content is binary (BINARY_MERGE_UNSUPPORTED).
    """
    if is_binary(data):
        raise conflict_error(
            path,
            "binary content cannot be merged",
            code=ErrorCode.BINARY_MERGE_UNSUPPORTED,
        )
    return data.decode("utf-8")


def structured_format(path: str) -> str | None:
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in _JSON_SUFFIXES:
        return "json"
    if suffix in _YAML_SUFFIXES:
        return "yaml"
    return None


# =============================================================================
# Structured merge
# =============================================================================


def deep_merge(
    existing: Any,
    incoming: Any,
    prefer_incoming: bool = False,
    _where: str = "",
) -> tuple[Any, list[str]]:
    """Merge ``incoming`` into ``existing``.

    Returns:
        (merged value, key paths of conflicting scalars). With
        ``prefer_incoming`` the incoming scalar wins and nothing conflicts.
    """
    if isinstance(existing, dict) and isinstance(incoming, dict):
        merged = dict(existing)
        conflicts: list[str] = []
        for key, value in incoming.items():
            where = f"{_where}.{key}" if _where else str(key)
            current = existing.get(key, _MISSING)
            if current is _MISSING:
                merged[key] = value
                continue
            merged[key], sub = deep_merge(current, value, prefer_incoming, where)
            conflicts.extend(sub)
        return merged, conflicts

    if isinstance(existing, list) and isinstance(incoming, list):
        merged_list = list(existing)
        for item in incoming:
            if item not in merged_list:
                merged_list.append(item)
        return merged_list, []

    if existing == incoming and type(existing) is type(incoming):
        return existing, []

    if prefer_incoming:
        return incoming, []
    return existing, [_where or "<root>"]


def _load(fmt: str, text: str) -> Any:
    if not text.strip():
        return {}
    if fmt == "json":
        return json.loads(text)
    return yaml.safe_load(text)


def _dump(fmt: str, value: Any) -> str:
    if fmt == "json":
        return safe_json_dumps(value)
    return safe_yaml_dumps(value)


def merge_structured(path: str, existing: str, incoming: str, prefer_incoming: bool = False) -> str:
    """Field-level merge of two JSON or YAML documents.

    Returns ``existing`` unchanged (byte for byte) when the merge adds nothing.

    Raises:
        ConflictError: Either side does not parse, or scalars conflict.
    """
    fmt = structured_format(path)
    if fmt is None:
        raise ValueError(f"{path} is not a structured document")

    try:
        current = _load(fmt, existing)
    except (ValueError, yaml.YAMLError) as e:
        raise conflict_error(path, f"existing {fmt} does not parse: {e}") from e
    try:
        payload = _load(fmt, incoming)
    except (ValueError, yaml.YAMLError) as e:
        raise conflict_error(path, f"incoming {fmt} does not parse: {e}") from e

    merged, conflicts = deep_merge(current, payload, prefer_incoming)
    if conflicts:
        raise conflict_error(
            path,
            f"conflicting values at {', '.join(conflicts)}",
            keys=conflicts,
        )
    if merged == current:
        return existing
    return _dump(fmt, merged)


# =============================================================================
# Line merge
# =============================================================================


def merge_lines(path: str, existing: str, incoming: str) -> str:
    """Union of two texts aligned on their longest common subsequence.

    Raises:
        ConflictError: Both sides changed the same region.
    """
    ours = existing.splitlines(keepends=True)
    theirs = incoming.splitlines(keepends=True)
    # Compare without line endings so a missing final newline is not a change
    matcher = difflib.SequenceMatcher(
        None,
        [line.rstrip("\r\n") for line in ours],
        [line.rstrip("\r\n") for line in theirs],
        autojunk=False,
    )

    out: list[str] = []
    hunks: list[str] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal" or tag == "delete":
            out.extend(ours[i1:i2])
        elif tag == "insert":
            if out and not out[-1].endswith("\n"):
                out[-1] += "\n"
            out.extend(theirs[j1:j2])
        else:
            hunks.append(f"lines {i1 + 1}-{i2}")

    if hunks:
        raise conflict_error(path, f"overlapping changes at {', '.join(hunks)}", hunks=hunks)
    return "".join(out)


def merge_content(path: str, existing: bytes, incoming: str, prefer_incoming: bool = False) -> str:
    """Merge rendered text into on-disk bytes.

    Structured documents merge field by field, everything else line by line.

    Raises:
        ConflictError: Binary content, unparseable documents, or overlapping
            changes.
    """
    text = decode_text(path, existing)
    if structured_format(path) is not None:
        return merge_structured(path, text, incoming, prefer_incoming)
    return merge_lines(path, text, incoming)
