"""Applying rendered spikes to a target tree.

Rendered output is staged in memory, checked for conflicts under the chosen
ConflictStrategy, and committed all-or-nothing.
"""

from spikeforge.apply.applier import PatchApplier, apply_rendered
from spikeforge.apply.merge import ApplyResult, ConflictStrategy, FileOutcome, FileStatus
from spikeforge.apply.staging import CommitResult, StagedFile, StagingBuffer, root_lock
from spikeforge.apply.structured import deep_merge, merge_content, merge_lines, merge_structured

__all__ = [
    "ApplyResult",
    "CommitResult",
    "ConflictStrategy",
    "FileOutcome",
    "FileStatus",
    "PatchApplier",
    "StagedFile",
    "StagingBuffer",
    "apply_rendered",
    "deep_merge",
    "merge_content",
    "merge_lines",
    "merge_structured",
    "root_lock",
]
