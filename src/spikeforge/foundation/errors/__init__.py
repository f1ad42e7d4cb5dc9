"""Error system for Spikeforge."""

from spikeforge.foundation.errors.errors import (
    ERROR_MESSAGES,
    RECOVERY_HINTS,
    ConflictError,
    ErrorCode,
    NotFoundError,
    PatchTargetMissingError,
    SpecParseError,
    SpikeforgeError,
    SpikeIOError,
    TemplateError,
    ValidationError,
    conflict_error,
    io_error,
    not_found,
    param_error,
    patch_target_missing,
    spec_error,
    template_error,
)

__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "RECOVERY_HINTS",
    "SpikeforgeError",
    "NotFoundError",
    "ValidationError",
    "TemplateError",
    "SpecParseError",
    "ConflictError",
    "PatchTargetMissingError",
    "SpikeIOError",
    "conflict_error",
    "io_error",
    "not_found",
    "param_error",
    "patch_target_missing",
    "spec_error",
    "template_error",
]
