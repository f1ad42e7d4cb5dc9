"""JSON and YAML helpers shared by the spike loader and structured merging.

Parse failures are raised as ValueError with the parser's position, so
callers can wrap them in their own error types.
"""

import json
from pathlib import Path
from typing import Any

import yaml


def safe_json_loads(data: str) -> Any:
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e.msg} at line {e.lineno}, column {e.colno}") from e


def safe_json_dumps(obj: Any, indent: int = 2) -> str:
    """Indented JSON ending in a newline, as written to package.json and friends."""
    return json.dumps(obj, indent=indent, ensure_ascii=False) + "\n"


def safe_yaml_loads(content: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        raise ValueError(f"Invalid YAML{where}: {getattr(e, 'problem', None) or e}") from e


def safe_yaml_dumps(obj: Any) -> str:
    """Block-style YAML in insertion order (workflow files read top to bottom)."""
    return yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_document(path: Path) -> dict[str, Any]:
    """Read a .json, .yaml or .yml file whose top level must be a mapping.

    Raises:
        OSError: The file cannot be read.
        ValueError: The content does not parse or is not a mapping.
    """
    content = path.read_text(encoding="utf-8")
    data = safe_json_loads(content) if path.suffix.lower() == ".json" else safe_yaml_loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"Document must contain a mapping, got {type(data).__name__}")
    return data
