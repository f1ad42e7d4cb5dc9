"""Structured errors for catalog, rendering, apply and IO failures.

Every error carries a numeric code, a message built from its context and
recovery hints an automated caller can act on.

The taxonomy subclasses (NotFoundError, ValidationError, ConflictError,
PatchTargetMissingError, SpikeIOError) let callers catch by kind while the
code carries the precise reason.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Error codes, XYYY: X is the category, YYY the specific failure.

    Categories:
        1xxx - Catalog errors
        2xxx - Parameter/rendering errors
        3xxx - Apply errors
        4xxx - Validation errors
        5xxx - Configuration errors
        7xxx - IO errors
    """

    # 1xxx - Catalog Errors
    SPIKE_NOT_FOUND = 1001
    SPEC_PARSE_ERROR = 1003
    SPEC_INVALID = 1004
    DUPLICATE_SPIKE_ID = 1005

    # 2xxx - Parameter/Rendering Errors
    PARAM_MISSING = 2001
    PARAM_INVALID = 2002
    PARAM_UNKNOWN = 2003
    TEMPLATE_SYNTAX = 2004
    TEMPLATE_UNRESOLVED = 2005
    DUPLICATE_OUTPUT_PATH = 2006
    UNSAFE_OUTPUT_PATH = 2007

    # 3xxx - Apply Errors
    APPLY_CONFLICT = 3001
    PATCH_TARGET_MISSING = 3002
    PATCH_SEARCH_MISSING = 3003
    STRATEGY_INVALID = 3004
    BINARY_MERGE_UNSUPPORTED = 3005

    # 4xxx - Validation Errors
    ANALYZER_UNAVAILABLE = 4001

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5001

    # 7xxx - IO Errors
    FILE_READ_FAILED = 7001
    FILE_WRITE_FAILED = 7002
    ROLLBACK_INCOMPLETE = 7003

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "catalog",
            2: "params",
            3: "apply",
            4: "validation",
            5: "config",
            7: "io",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable by the caller."""
        non_recoverable = {
            ErrorCode.PATCH_TARGET_MISSING,
            ErrorCode.SPEC_INVALID,
            ErrorCode.SPEC_PARSE_ERROR,
            ErrorCode.DUPLICATE_OUTPUT_PATH,
            ErrorCode.CONFIG_INVALID,
            ErrorCode.ROLLBACK_INCOMPLETE,
        }
        return self not in non_recoverable


# Message templates, filled from the error context
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Catalog errors
    ErrorCode.SPIKE_NOT_FOUND: "Spike '{spike}' not found.",
    ErrorCode.SPEC_PARSE_ERROR: "Failed to parse spike document '{path}': {detail}",
    ErrorCode.SPEC_INVALID: "Invalid spike spec '{spike}': {detail}",
    ErrorCode.DUPLICATE_SPIKE_ID: "Spike id '{spike}' is defined more than once ({path}).",

    # Parameter/rendering errors
    ErrorCode.PARAM_MISSING: "Required parameter '{param}' for spike '{spike}' has no value.",
    ErrorCode.PARAM_INVALID: "Parameter '{param}' for spike '{spike}' violates {rule}: {detail}",
    ErrorCode.PARAM_UNKNOWN: "Spike '{spike}' does not declare parameter '{param}'.",
    ErrorCode.TEMPLATE_SYNTAX: "Template syntax error in {source}: {detail}",
    ErrorCode.TEMPLATE_UNRESOLVED: "Unresolved placeholder '{name}' in {source}.",
    ErrorCode.DUPLICATE_OUTPUT_PATH: "Spike '{spike}' renders '{path}' more than once.",
    ErrorCode.UNSAFE_OUTPUT_PATH: "Rendered path '{path}' for spike '{spike}' escapes the target root.",

    # Apply errors
    ErrorCode.APPLY_CONFLICT: "Conflict at '{path}': {detail}",
    ErrorCode.PATCH_TARGET_MISSING: "Patch target '{path}' for spike '{spike}' does not exist.",
    ErrorCode.PATCH_SEARCH_MISSING: "Search text for replace patch not found in '{path}'.",
    ErrorCode.STRATEGY_INVALID: "Unknown conflict strategy '{strategy}'. Expected one of: {allowed}.",
    ErrorCode.BINARY_MERGE_UNSUPPORTED: "Cannot merge binary content at '{path}'.",

    # Validation errors
    ErrorCode.ANALYZER_UNAVAILABLE: "Static analyzer unavailable: {detail}",

    # Config errors
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",

    # IO errors
    ErrorCode.FILE_READ_FAILED: "Failed to read file: {path} ({detail})",
    ErrorCode.FILE_WRITE_FAILED: "Failed to write file: {path} ({detail})",
    ErrorCode.ROLLBACK_INCOMPLETE: "Rollback incomplete; indeterminate paths: {paths}",
}


# Recovery hints for self-correction
RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.SPIKE_NOT_FOUND: [
        "Use 'discover-spikes' to find an existing spike id",
        "Generated ids follow gen-<library>-<pattern>-<style>-<language>",
    ],
    ErrorCode.PARAM_MISSING: [
        "Pass a value for '{param}' in params",
        "Use 'explain-spike' to see parameter documentation",
    ],
    ErrorCode.PARAM_INVALID: [
        "Correct the value for '{param}' so it satisfies {rule}",
        "Use 'explain-spike' to see parameter constraints",
    ],
    ErrorCode.PARAM_UNKNOWN: [
        "Remove '{param}' from params",
        "Use 'explain-spike' to see declared parameters",
    ],
    ErrorCode.APPLY_CONFLICT: [
        "Retry with strategy 'three_way_merge' or 'overwrite'",
        "Move or delete '{path}' before applying",
    ],
    ErrorCode.STRATEGY_INVALID: [
        "Use one of: {allowed}",
    ],
    ErrorCode.PATCH_TARGET_MISSING: [
        "Apply the spike that creates '{path}' first",
        "Fix the spike definition so the patch targets an existing file",
    ],
    ErrorCode.BINARY_MERGE_UNSUPPORTED: [
        "Retry with strategy 'overwrite' to replace the file",
    ],
}


def _fill(template: str, context: dict[str, Any]) -> str:
    """Format ``template`` from context, leaving it as-is when a field is missing."""
    try:
        return template.format(**context)
    except (KeyError, IndexError):
        return template


class SpikeforgeError(Exception):
    """Base of every error spikeforge raises.

    The code says what went wrong, the context names the spike, parameter
    or path involved, and the recovery hints tell an agent what to retry.

    Example:
        >>> err = SpikeforgeError(
        ...     code=ErrorCode.SPIKE_NOT_FOUND,
        ...     context={"spike": "gen-foo-route-basic-ts"},
        ... )
        >>> print(err)
        [SF-1001] Spike 'gen-foo-route-basic-ts' not found.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        return _fill(ERROR_MESSAGES.get(self.code, "Spike operation failed: {detail}"), self.context)

    @property
    def recovery_hints(self) -> list[str]:
        return [_fill(hint, self.context) for hint in RECOVERY_HINTS.get(self.code, [])]

    @property
    def is_recoverable(self) -> bool:
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Stable identifier such as 'SF-1001'."""
        return f"SF-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload returned by the MCP tools."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "kind": type(self).__name__,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }

    def for_llm(self) -> str:
        """Plain-text rendering for an agent deciding how to retry."""
        lines = [
            f"ERROR {self.error_id}: {self.message}",
            f"Category: {self.category}",
            f"Recoverable: {self.is_recoverable}",
        ]
        hints = self.recovery_hints
        if hints:
            lines.append("Recovery options:")
            lines.extend(f"  {n}. {hint}" for n, hint in enumerate(hints, 1))
        if self.context:
            lines.append(f"Context: {self.context}")
        return "\n".join(lines)


class NotFoundError(SpikeforgeError):
    """Unknown spike identifier or axis value."""


class ValidationError(SpikeforgeError):
    """Bad or missing parameter, or an invalid template/spec."""


class TemplateError(ValidationError):
    """Template could not be parsed or rendered."""


class SpecParseError(ValidationError):
    """A hand-authored spike document could not be read."""


class ConflictError(SpikeforgeError):
    """Pre-existing file state blocks application under the chosen strategy."""


class PatchTargetMissingError(SpikeforgeError):
    """A patch targets a file that does not exist (misconfigured spec)."""


class SpikeIOError(SpikeforgeError):
    """Filesystem failure during apply."""


# Convenience factory functions

def not_found(spike: str, detail: str = "") -> NotFoundError:
    """Create a SPIKE_NOT_FOUND error."""
    return NotFoundError(
        code=ErrorCode.SPIKE_NOT_FOUND,
        context={"spike": spike, "detail": detail},
    )


def param_error(
    code: ErrorCode,
    spike: str,
    param: str,
    rule: str = "",
    detail: str = "",
    **extra: Any,
) -> ValidationError:
    """Create a parameter-related error."""
    return ValidationError(
        code=code,
        context={"spike": spike, "param": param, "rule": rule, "detail": detail, **extra},
    )


def template_error(
    code: ErrorCode,
    source: str,
    detail: str = "",
    name: str = "",
) -> TemplateError:
    """Create a template syntax or resolution error."""
    return TemplateError(
        code=code,
        context={"source": source, "detail": detail, "name": name},
    )


def spec_error(
    spike: str,
    detail: str,
    path: str = "",
    cause: Exception | None = None,
) -> SpecParseError:
    """Create an error for an invalid spike document."""
    code = ErrorCode.SPEC_PARSE_ERROR if cause is not None else ErrorCode.SPEC_INVALID
    return SpecParseError(
        code=code,
        context={"spike": spike, "detail": detail, "path": path},
        cause=cause,
    )


def conflict_error(
    path: str,
    detail: str,
    code: ErrorCode = ErrorCode.APPLY_CONFLICT,
    **extra: Any,
) -> ConflictError:
    """Create a conflict error for a single path."""
    return ConflictError(code=code, context={"path": path, "detail": detail, **extra})


def patch_target_missing(spike: str, path: str) -> PatchTargetMissingError:
    """Create a PATCH_TARGET_MISSING error."""
    return PatchTargetMissingError(
        code=ErrorCode.PATCH_TARGET_MISSING,
        context={"spike": spike, "path": path},
    )


def io_error(
    code: ErrorCode,
    path: str,
    cause: OSError | None = None,
    **extra: Any,
) -> SpikeIOError:
    """Translate an OSError into a SpikeIOError, keeping the OS message verbatim."""
    return SpikeIOError(
        code=code,
        context={"path": path, "detail": str(cause) if cause else "", **extra},
        cause=cause,
    )
