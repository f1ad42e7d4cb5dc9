"""Conflict strategies and result types for applying rendered spikes.

Defines how rendered files are reconciled with files already on disk:
- OVERWRITE: Replace existing files with the rendered content
- THREE_WAY_MERGE: Combine existing and rendered content, flag overlaps
- ABORT: Fail the whole apply if any output path already exists
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from spikeforge.foundation.errors import ErrorCode, ValidationError


class ConflictStrategy(Enum):
    """Strategy for reconciling rendered output with existing files."""

    OVERWRITE = "overwrite"
    """Replace existing files.

    Idempotent: applying the same output twice leaves the same tree.
    """

    THREE_WAY_MERGE = "three_way_merge"
    """Merge rendered content into existing files.

    Structured documents (JSON, YAML) merge field by field; other text
    merges hunk by hunk. Overlapping changes are flagged as conflicts.
    """

    ABORT = "abort"
    """Fail if any output path already exists.

    The default. A failed apply leaves the tree byte-identical.
    """

    @classmethod
    def parse(cls, value: "ConflictStrategy | str | None") -> "ConflictStrategy":
        """Parse a caller-supplied strategy; None means ABORT.

        Raises:
            ValidationError: Unknown strategy name (STRATEGY_INVALID).
        """
        if value is None:
            return cls.ABORT
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized == "":
            return cls.ABORT
        for strategy in cls:
            if strategy.value == normalized:
                return strategy
        raise ValidationError(
            code=ErrorCode.STRATEGY_INVALID,
            context={
                "strategy": value,
                "allowed": ", ".join(s.value for s in cls),
            },
        )


class FileStatus(Enum):
    """What happened (or would happen) to one path."""

    CREATED = "created"
    OVERWRITTEN = "overwritten"
    MERGED = "merged"
    SKIPPED = "skipped"
    """Already in the desired state; nothing to write."""

    CONFLICTED = "conflicted"

    NOT_WRITTEN = "not_written"
    """Would have been written, but the apply failed before committing it."""


_WRITE_STATUSES = frozenset({FileStatus.CREATED, FileStatus.OVERWRITTEN, FileStatus.MERGED})


@dataclass(frozen=True, slots=True)
class FileOutcome:
    """Per-path outcome of an apply.

    Attributes:
        path: Path relative to the target root
        status: What happened to the path
        detail: Why (conflict reason, skip reason)
        source: "file" for rendered files, "patch:<op>" for patches
    """

    path: str
    status: FileStatus
    detail: str = ""
    source: str = "file"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "status": self.status.value,
            "source": self.source,
        }
        if self.detail:
            data["detail"] = self.detail
        return data

    def unwritten(self) -> "FileOutcome":
        """This outcome as seen after a failed apply.

        Planned writes become NOT_WRITTEN; conflicts and skips are unchanged.
        """
        if self.status not in _WRITE_STATUSES:
            return self
        return FileOutcome(self.path, FileStatus.NOT_WRITTEN, f"would be {self.status.value}", self.source)


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Result of applying a rendered spike to a target root.

    Attributes:
        success: Whether every change was committed
        strategy: Which conflict strategy was applied
        files: Per-path outcomes, in rendering order
        error: Error message if the apply failed
        indeterminate: Paths whose pre-apply state could not be restored
    """

    success: bool
    """Whether every change was committed."""

    strategy: ConflictStrategy
    """Which conflict strategy was applied."""

    files: tuple[FileOutcome, ...]
    """Per-path outcomes, in rendering order."""

    error: str | None = None
    """Error message if the apply failed."""

    indeterminate: tuple[str, ...] = ()
    """Paths left in an unknown state after a failed rollback."""

    @property
    def conflicts(self) -> tuple[str, ...]:
        """Paths with conflicts."""
        return tuple(f.path for f in self.files if f.status is FileStatus.CONFLICTED)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    def by_status(self, status: FileStatus) -> tuple[str, ...]:
        return tuple(f.path for f in self.files if f.status is status)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "strategy": self.strategy.value,
            "files": [f.to_dict() for f in self.files],
        }
        if self.error:
            data["error"] = self.error
        if self.indeterminate:
            data["indeterminate"] = list(self.indeterminate)
        return data

    def __str__(self) -> str:
        """Human-readable apply summary."""
        if self.success:
            counts: dict[str, int] = {}
            for f in self.files:
                counts[f.status.value] = counts.get(f.status.value, 0) + 1
            summary = ", ".join(f"{n} {status}" for status, n in counts.items())
            return f"Applied {len(self.files)} change(s) ({self.strategy.value}): {summary}"
        if self.conflicts:
            return f"Apply failed: {len(self.conflicts)} conflict(s)"
        return f"Apply failed: {self.error}"
