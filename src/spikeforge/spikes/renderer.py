"""Render a spike spec into in-memory files and patches.

Rendering is two steps. Parameters are resolved first (caller value, then
default, then a required-parameter error), coerced to their declared type and
checked against their constraints; every violation is collected before
anything is rendered. Only then are path and content templates substituted.

The output is a pure function of (spec, resolved params).
"""


import logging
import posixpath
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from spikeforge.foundation.errors import (
    ErrorCode,
    ValidationError,
    param_error,
)
from spikeforge.foundation.utils import compute_hash
from spikeforge.spikes.template import format_value, parse_template
from spikeforge.spikes.types import Param, ParamType, Patch, PatchOperation, SpikeSpec

logger = logging.getLogger(__name__)

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0", ""})


@dataclass(frozen=True, slots=True)
class RenderedFile:
    path: str
    content: str

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "size": len(self.content.encode("utf-8"))}
        if include_content:
            data["content"] = self.content
        return data


@dataclass(frozen=True, slots=True)
class RenderedPatch:
    path: str
    operation: PatchOperation
    content: str = ""
    search: str | None = None
    replace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "op": self.operation.value}
        if self.operation is PatchOperation.REPLACE:
            data["search"] = self.search
            data["replace"] = self.replace
        else:
            data["content"] = self.content
        return data


@dataclass(frozen=True, slots=True)
class RenderedOutput:
    """Everything a spike produces for one set of parameters."""

    spec_id: str
    params: Mapping[str, Any]
    files: tuple[RenderedFile, ...]
    patches: tuple[RenderedPatch, ...] = ()

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(f.path for f in self.files)

    def file(self, path: str) -> RenderedFile | None:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def digest(self) -> str:
        """Stable checksum over paths, contents and patches."""
        parts: list[str] = [self.spec_id]
        for f in self.files:
            parts.extend(("F", f.path, f.content))
        for p in self.patches:
            parts.extend(("P", p.path, p.operation.value, p.content, p.search or "", p.replace or ""))
        return compute_hash("\x00".join(parts))

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        return {
            "id": self.spec_id,
            "params": {k: _jsonable(v) for k, v in self.params.items()},
            "files": [f.to_dict(include_content) for f in self.files],
            "patches": [p.to_dict() for p in self.patches],
        }


@dataclass(frozen=True, slots=True)
class Violation:
    """One parameter problem."""

    param: str
    code: ErrorCode
    rule: str
    detail: str

    def to_dict(self) -> dict[str, str]:
        return {"param": self.param, "rule": self.rule, "detail": self.detail}


# =============================================================================
# Parameter resolution
# =============================================================================


def resolve_params(spec: SpikeSpec, supplied: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Resolve, coerce and validate parameters for ``spec``.

    Raises:
        ValidationError: Naming the first offending parameter; the full list
            is in ``context["violations"]``.
    """
    supplied = dict(supplied or {})
    resolved: dict[str, Any] = {}
    violations: list[Violation] = []

    declared = set(spec.param_names)
    for name in sorted(set(supplied) - declared):
        violations.append(
            Violation(name, ErrorCode.PARAM_UNKNOWN, "declaration", f"'{name}' is not declared")
        )

    for param in spec.params:
        raw = supplied.get(param.name)
        if raw is None:
            if param.has_default:
                raw = param.default
            elif param.required:
                violations.append(
                    Violation(param.name, ErrorCode.PARAM_MISSING, "required", "no value supplied")
                )
                continue
            else:
                resolved[param.name] = None
                continue

        try:
            value = coerce(param, raw)
        except ValueError as e:
            violations.append(Violation(param.name, ErrorCode.PARAM_INVALID, "type", str(e)))
            continue

        problem = check_constraints(param, value)
        if problem is not None:
            rule, detail = problem
            violations.append(Violation(param.name, ErrorCode.PARAM_INVALID, rule, detail))
            continue
        resolved[param.name] = value

    if violations:
        first = violations[0]
        raise param_error(
            first.code,
            spike=spec.id,
            param=first.param,
            rule=first.rule,
            detail=first.detail,
            violations=[v.to_dict() for v in violations],
        )
    return resolved


def coerce(param: Param, raw: Any) -> Any:
    """Convert a caller- or default-supplied value to the declared type.

    Raises:
        ValueError: The value cannot represent the declared type.
    """
    if param.type is ParamType.BOOLEAN:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, (int, float)) and raw in (0, 1):
            return bool(raw)
        text = str(raw).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"expected a boolean, got {raw!r}")

    if param.type is ParamType.NUMBER:
        if isinstance(raw, bool):
            raise ValueError(f"expected a number, got {raw!r}")
        if isinstance(raw, (int, float)):
            return raw
        text = str(raw).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"expected a number, got {raw!r}") from None
        if number != number or number in (float("inf"), float("-inf")):
            raise ValueError(f"expected a finite number, got {raw!r}")
        return number

    if param.type is ParamType.LIST:
        if isinstance(raw, (list, tuple)):
            items = [format_value(v).strip() for v in raw]
        else:
            items = [part.strip() for part in str(raw).split(",")]
        return tuple(item for item in items if item)

    if isinstance(raw, (list, tuple, dict)):
        raise ValueError(f"expected a scalar, got {type(raw).__name__}")
    return format_value(raw) if not isinstance(raw, str) else raw


def check_constraints(param: Param, value: Any) -> tuple[str, str] | None:
    """Return (rule, detail) for the first constraint ``value`` breaks."""
    if param.type is ParamType.ENUM and param.options and value not in param.options:
        return "options", f"{value!r} is not one of {', '.join(param.options)}"

    if param.pattern is not None:
        candidates = value if isinstance(value, tuple) else (value,)
        for item in candidates:
            if re.fullmatch(param.pattern, format_value(item)) is None:
                return "pattern", f"{format_value(item)!r} does not match /{param.pattern}/"

    if param.type is ParamType.NUMBER:
        measured, what = value, "value"
    elif param.type is ParamType.BOOLEAN:
        return None
    else:
        measured, what = len(value), "length"

    if param.minimum is not None and measured < param.minimum:
        return "min", f"{what} {format_value(measured)} is below {format_value(param.minimum)}"
    if param.maximum is not None and measured > param.maximum:
        return "max", f"{what} {format_value(measured)} is above {format_value(param.maximum)}"
    return None


# =============================================================================
# Rendering
# =============================================================================


def render(spec: SpikeSpec, params: Mapping[str, Any] | None = None) -> RenderedOutput:
    """Resolve params and render every file and patch of ``spec``.

    Raises:
        ValidationError: Parameter problems, template errors, or unsafe or
            duplicate output paths. Nothing is rendered on failure.
    """
    resolved = resolve_params(spec, params)

    files: list[RenderedFile] = []
    seen: set[str] = set()
    for template in spec.files:
        path = _render_path(spec, template.path, resolved)
        if path in seen:
            raise param_error(
                ErrorCode.DUPLICATE_OUTPUT_PATH,
                spike=spec.id,
                param="",
                path=path,
            )
        seen.add(path)
        content = parse_template(template.template, f"{spec.id}:{template.path}").render(resolved)
        files.append(RenderedFile(path=path, content=content))

    patches = tuple(_render_patch(spec, patch, resolved) for patch in spec.patches)

    logger.debug("Rendered %s: %d files, %d patches", spec.id, len(files), len(patches))
    return RenderedOutput(spec_id=spec.id, params=resolved, files=tuple(files), patches=patches)


def _render_patch(spec: SpikeSpec, patch: Patch, resolved: dict[str, Any]) -> RenderedPatch:
    name = f"{spec.id}:{patch.path} (patch)"
    path = _render_path(spec, patch.path, resolved)
    if patch.operation is PatchOperation.REPLACE:
        return RenderedPatch(
            path=path,
            operation=patch.operation,
            search=parse_template(patch.search or "", name).render(resolved),
            replace=parse_template(patch.replace or "", name).render(resolved),
        )
    return RenderedPatch(
        path=path,
        operation=patch.operation,
        content=parse_template(patch.content, name).render(resolved),
    )


def _render_path(spec: SpikeSpec, template: str, resolved: dict[str, Any]) -> str:
    rendered = parse_template(template, f"{spec.id}:{template} (path)").render(resolved)
    return normalize_output_path(spec.id, rendered)


def normalize_output_path(spike_id: str, path: str) -> str:
    """Normalize a rendered path; reject absolute paths and root escapes."""
    candidate = path.strip().replace("\\", "/")
    if (
        not candidate
        or candidate.startswith("/")
        or re.match(r"^[A-Za-z]:", candidate)
        or "\x00" in candidate
    ):
        raise _unsafe(spike_id, path)
    normalized = posixpath.normpath(candidate)
    if normalized in (".", "") or normalized == ".." or normalized.startswith("../"):
        raise _unsafe(spike_id, path)
    return normalized


def _unsafe(spike_id: str, path: str) -> ValidationError:
    return param_error(ErrorCode.UNSAFE_OUTPUT_PATH, spike=spike_id, param="", path=path)


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value
