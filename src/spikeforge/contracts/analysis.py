"""Static analyzer protocol.

The framework-aware static analyzer is an external collaborator. Spikeforge
calls it only during validate-spike and treats its absence as a degradation.
This module imports ONLY from stdlib.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

IssueSeverity = Literal["error", "warning", "info"]


@dataclass(frozen=True, slots=True)
class AnalysisIssue:
    """One finding reported by the analyzer."""

    path: str
    message: str
    severity: IssueSeverity = "warning"
    rule: str | None = None
    line: int | None = None


@runtime_checkable
class StaticAnalyzer(Protocol):
    """Protocol for framework-aware static analyzers."""

    def analyze(self, path: str, framework: str | None = None) -> Sequence[AnalysisIssue]:
        """Analyze one file and return its issues."""
        ...
