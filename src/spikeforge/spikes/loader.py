"""Load hand-authored spike definitions from YAML/JSON files."""


import re
from pathlib import Path
from typing import Any

from spikeforge.foundation.errors import TemplateError, spec_error
from spikeforge.foundation.utils import load_document, safe_json_dumps, safe_yaml_loads
from spikeforge.spikes.template import parse_template
from spikeforge.spikes.types import (
    FileTemplate,
    Param,
    ParamType,
    Patch,
    PatchOperation,
    SpikeSpec,
)

SPEC_SUFFIXES = (".yaml", ".yml", ".json")

_PARAM_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SpikeLoader:
    """Load spike specs from files or strings."""

    def load(self, path: Path | str) -> SpikeSpec:
        """Load a spike from a YAML or JSON document.

        Raises:
            SpecParseError: The file cannot be read, is not a mapping, or
                describes an invalid spec.
        """
        path = Path(path)
        try:
            data = load_document(path)
        except (OSError, ValueError) as e:
            raise spec_error(
                spike=path.stem,
                detail=str(e),
                path=str(path),
                cause=e,
            ) from e
        return self.parse(data, source=str(path))

    def load_string(self, content: str, source: str = "<string>") -> SpikeSpec:
        """Load a spike from YAML (or JSON, which YAML accepts) text."""
        try:
            data = safe_yaml_loads(content)
        except ValueError as e:
            raise spec_error(spike="<string>", detail=str(e), path=source, cause=e) from e
        if not isinstance(data, dict):
            raise spec_error(spike="<string>", detail="document must be a mapping", path=source)
        return self.parse(data, source=source)

    def parse(self, data: dict[str, Any], source: str | None = None) -> SpikeSpec:
        """Parse a raw document into a SpikeSpec.

        Every template is parsed here, so a spec that loads is a spec that
        renders: undeclared template variables are rejected up front.
        """
        spike_id = data.get("id")
        if not isinstance(spike_id, str) or not spike_id.strip():
            raise spec_error(
                spike=source or "<unknown>",
                detail="missing 'id'",
                path=source or "",
            )
        spike_id = spike_id.strip()

        try:
            spec = SpikeSpec(
                id=spike_id,
                name=str(data.get("name") or spike_id),
                version=str(data.get("version") or "0.1.0"),
                stack=_str_tuple(data.get("stack"), "stack"),
                tags=_str_tuple(data.get("tags"), "tags"),
                description=str(data.get("description") or ""),
                params=self._parse_params(data.get("params") or []),
                files=self._parse_files(data.get("files") or []),
                patches=self._parse_patches(data.get("patches") or []),
                source=source,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            detail = f"missing field {e}" if isinstance(e, KeyError) else str(e)
            raise spec_error(spike=spike_id, detail=detail, path=source or "") from e

        self._check_templates(spec)
        return spec

    @staticmethod
    def _parse_params(data: list[Any]) -> tuple[Param, ...]:
        if not isinstance(data, list):
            raise TypeError("'params' must be a list")

        params: list[Param] = []
        seen: set[str] = set()
        for entry in data:
            if isinstance(entry, str):
                entry = {"name": entry}
            name = entry["name"]
            if not isinstance(name, str) or not _PARAM_NAME_RE.match(name):
                raise ValueError(f"invalid parameter name {name!r}")
            if name in seen:
                raise ValueError(f"parameter '{name}' declared more than once")
            seen.add(name)

            type_str = str(entry.get("type", "string")).lower()
            try:
                param_type = ParamType(type_str)
            except ValueError:
                allowed = ", ".join(t.value for t in ParamType)
                raise ValueError(
                    f"parameter '{name}' has unknown type '{type_str}' (expected {allowed})"
                ) from None

            options = _str_tuple(entry.get("options"), f"{name}.options")
            if param_type is ParamType.ENUM and not options:
                raise ValueError(f"enum parameter '{name}' declares no options")

            pattern = entry.get("pattern")
            if pattern is not None:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise ValueError(f"parameter '{name}' has invalid pattern: {e}") from e

            default = entry.get("default")
            if param_type is ParamType.LIST and isinstance(default, list):
                default = tuple(default)

            params.append(
                Param(
                    name=name,
                    required=bool(entry.get("required", False)),
                    default=default,
                    type=param_type,
                    description=str(entry.get("description") or ""),
                    pattern=pattern,
                    minimum=_number(entry.get("min"), f"{name}.min"),
                    maximum=_number(entry.get("max"), f"{name}.max"),
                    options=options,
                )
            )
        return tuple(params)

    @staticmethod
    def _parse_files(data: list[Any]) -> tuple[FileTemplate, ...]:
        if not isinstance(data, list):
            raise TypeError("'files' must be a list")

        files: list[FileTemplate] = []
        for entry in data:
            # 'content' is the older spelling of 'template'
            template = entry.get("template", entry.get("content"))
            if template is None:
                raise ValueError(f"file '{entry.get('path')}' has no template")
            files.append(FileTemplate(path=str(entry["path"]), template=str(template)))
        return tuple(files)

    @staticmethod
    def _parse_patches(data: list[Any]) -> tuple[Patch, ...]:
        if not isinstance(data, list):
            raise TypeError("'patches' must be a list")

        patches: list[Patch] = []
        for entry in data:
            path = str(entry["path"])
            op_str = str(entry.get("op", entry.get("operation", ""))).lower()
            try:
                operation = PatchOperation(op_str)
            except ValueError:
                allowed = ", ".join(o.value for o in PatchOperation)
                raise ValueError(
                    f"patch on '{path}' has unknown op '{op_str}' (expected {allowed})"
                ) from None

            if operation is PatchOperation.REPLACE:
                search = entry.get("search")
                replace = entry.get("replace")
                if not search or replace is None:
                    raise ValueError(f"replace patch on '{path}' needs 'search' and 'replace'")
                patches.append(
                    Patch(path=path, operation=operation, search=str(search), replace=str(replace))
                )
            else:
                content = entry.get("content")
                if content is None:
                    raise ValueError(f"{operation.value} patch on '{path}' has no content")
                if isinstance(content, (dict, list)):
                    # Structured merge payload written inline as YAML
                    content = safe_json_dumps(content)
                patches.append(Patch(path=path, operation=operation, content=str(content)))
        return tuple(patches)

    @staticmethod
    def _check_templates(spec: SpikeSpec) -> None:
        declared = set(spec.param_names)
        sources: list[tuple[str, str]] = []
        for f in spec.files:
            sources.append((f"{spec.id}:{f.path} (path)", f.path))
            sources.append((f"{spec.id}:{f.path}", f.template))
        for p in spec.patches:
            sources.append((f"{spec.id}:{p.path} (patch path)", p.path))
            for text in (p.content, p.search, p.replace):
                if text:
                    sources.append((f"{spec.id}:{p.path} (patch)", text))

        for name, text in sources:
            try:
                template = parse_template(text, name)
            except TemplateError as e:
                raise spec_error(spike=spec.id, detail=e.message, path=spec.source or "") from e
            undeclared = sorted(template.variables - declared)
            if undeclared:
                raise spec_error(
                    spike=spec.id,
                    detail=f"{name} uses undeclared parameter(s): {', '.join(undeclared)}",
                    path=spec.source or "",
                )


def _str_tuple(value: Any, field: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise TypeError(f"'{field}' must be a list")
    return tuple(str(v) for v in value)


def _number(value: Any, field: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"'{field}' must be a number")
    return value


def iter_spec_files(directory: Path) -> list[Path]:
    """Spike documents in a directory, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in SPEC_SUFFIXES)

