"""Spike data models.

A spike spec is a parameterized scaffold: declared params, file templates and
patches against pre-existing files. Hand-authored specs and generated specs
share these types; both are immutable once built.
"""


from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ParamType(Enum):
    """Declared type of a template parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    LIST = "list"  # Comma-separated on the wire, iterated with {{#each}}


class PatchOperation(Enum):
    """How a patch modifies its target file."""

    MERGE = "merge"  # Field-level combination of structured content
    PREPEND = "prepend"
    APPEND = "append"
    REPLACE = "replace"  # Literal search/replace


@dataclass(frozen=True, slots=True)
class Param:
    """A declared template variable."""

    name: str
    required: bool = False
    default: Any = None
    type: ParamType = ParamType.STRING
    description: str = ""
    pattern: str | None = None
    """Regex the (string form of the) value must fully match."""

    minimum: float | None = None
    """Lower bound: value for numbers, length for strings and lists."""

    maximum: float | None = None
    """Upper bound: value for numbers, length for strings and lists."""

    options: tuple[str, ...] = ()
    """Allowed values for enum params."""

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def describe_constraints(self) -> list[str]:
        """Human-readable constraint list for explain output."""
        parts: list[str] = []
        if self.options:
            parts.append("one of " + ", ".join(self.options))
        if self.pattern:
            parts.append(f"matches /{self.pattern}/")
        if self.minimum is not None:
            parts.append(f"min {_format_bound(self.minimum)}")
        if self.maximum is not None:
            parts.append(f"max {_format_bound(self.maximum)}")
        return parts


def _format_bound(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass(frozen=True, slots=True)
class FileTemplate:
    """One file to be produced. Both path and content are templates."""

    path: str
    template: str


@dataclass(frozen=True, slots=True)
class Patch:
    """A modification to a file that already exists on disk."""

    path: str
    operation: PatchOperation
    content: str = ""
    """Payload for merge/prepend/append."""

    search: str | None = None
    """Literal text to find (replace only)."""

    replace: str | None = None
    """Replacement text (replace only)."""


@dataclass(frozen=True, slots=True)
class SpikeMetadata:
    """Lightweight summary used for listing and ranking."""

    id: str
    name: str
    version: str = "0.1.0"
    stack: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str = ""
    file_count: int = 0
    patch_count: int = 0
    generated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "stack": list(self.stack),
            "tags": list(self.tags),
            "description": self.description,
            "file_count": self.file_count,
            "patch_count": self.patch_count,
            "generated": self.generated,
        }


@dataclass(frozen=True, slots=True)
class SpikeSpec:
    """A fully resolved template definition."""

    id: str
    name: str
    version: str = "0.1.0"
    stack: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str = ""
    params: tuple[Param, ...] = ()
    files: tuple[FileTemplate, ...] = ()
    patches: tuple[Patch, ...] = ()
    source: str | None = None
    """Document path for hand-authored specs, None for generated ones."""

    generated: bool = field(default=False, compare=False)

    def param(self, name: str) -> Param | None:
        """Look up a declared param by name."""
        for p in self.params:
            if p.name == name:
                return p
        return None

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)

    def metadata(self) -> SpikeMetadata:
        return SpikeMetadata(
            id=self.id,
            name=self.name,
            version=self.version,
            stack=self.stack,
            tags=self.tags,
            description=self.description,
            file_count=len(self.files),
            patch_count=len(self.patches),
            generated=self.generated,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk document shape."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "stack": list(self.stack),
            "tags": list(self.tags),
            "description": self.description,
            "params": [_param_to_dict(p) for p in self.params],
            "files": [{"path": f.path, "template": f.template} for f in self.files],
            "patches": [_patch_to_dict(p) for p in self.patches],
        }


def _param_to_dict(param: Param) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": param.name,
        "type": param.type.value,
        "required": param.required,
    }
    if param.default is not None:
        data["default"] = param.default
    if param.description:
        data["description"] = param.description
    if param.pattern:
        data["pattern"] = param.pattern
    if param.minimum is not None:
        data["min"] = param.minimum
    if param.maximum is not None:
        data["max"] = param.maximum
    if param.options:
        data["options"] = list(param.options)
    return data


def _patch_to_dict(patch: Patch) -> dict[str, Any]:
    data: dict[str, Any] = {"path": patch.path, "op": patch.operation.value}
    if patch.operation is PatchOperation.REPLACE:
        data["search"] = patch.search
        data["replace"] = patch.replace
    else:
        data["content"] = patch.content
    return data
