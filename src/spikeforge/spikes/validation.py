"""Validation and explanation of spikes.

Validation is advisory. It re-renders a spike, checks that what the spike
would produce is present under a target root, and optionally asks a static
analyzer about the files it finds. It never writes to disk and never raises
for what it finds; parameter problems and analyzer failures become checks.
"""


import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from spikeforge.apply.structured import deep_merge, is_binary, structured_format
from spikeforge.contracts.analysis import AnalysisIssue, StaticAnalyzer
from spikeforge.foundation.errors import ErrorCode, SpikeforgeError, ValidationError
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.renderer import RenderedPatch, render
from spikeforge.spikes.types import PatchOperation, SpikeSpec

logger = logging.getLogger(__name__)


class CheckStatus(Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class Check:
    """One validation check."""

    name: str
    status: CheckStatus
    detail: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {"name": self.name, "status": self.status.value}
        if self.detail:
            data["detail"] = self.detail
        return data


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Advisory result of validate-spike.

    Attributes:
        spike_id: The validated spike
        checks: Every check run, in order
        findings: Issues reported by the static analyzer
    """

    spike_id: str
    checks: tuple[Check, ...]
    findings: tuple[AnalysisIssue, ...] = field(default=())

    @property
    def score(self) -> float:
        """Passed checks over checks that actually ran (skipped excluded)."""
        counted = [c for c in self.checks if c.status is not CheckStatus.SKIPPED]
        if not counted:
            return 0.0
        passed = sum(1 for c in counted if c.status is CheckStatus.PASS)
        return passed / len(counted)

    @property
    def status(self) -> CheckStatus:
        """Worst status among checks that ran."""
        statuses = {c.status for c in self.checks}
        for worst in (CheckStatus.FAIL, CheckStatus.WARN):
            if worst in statuses:
                return worst
        return CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.spike_id,
            "status": self.status.value,
            "score": round(self.score, 4),
            "checks": [c.to_dict() for c in self.checks],
            "findings": [
                {
                    "path": f.path,
                    "message": f.message,
                    "severity": f.severity,
                    "rule": f.rule,
                    "line": f.line,
                }
                for f in self.findings
            ],
        }


class SpikeValidator:
    """Validate rendered spikes against a target tree and explain spikes."""

    def __init__(self, catalog: SpikeCatalog, analyzer: StaticAnalyzer | None = None) -> None:
        self.catalog = catalog
        self.analyzer = analyzer

    def validate(
        self,
        spike_id: str,
        params: dict[str, Any] | None = None,
        target_root: Path | str = ".",
    ) -> ValidationReport:
        """Check a target root for what ``spike_id`` would produce.

        Raises:
            NotFoundError: Unknown spike id. Everything else is reported.
        """
        spec = self.catalog.require(spike_id)
        root = Path(target_root)

        try:
            rendered = render(spec, params)
        except ValidationError as e:
            return ValidationReport(
                spike_id=spec.id,
                checks=(Check("params", CheckStatus.FAIL, e.message),),
            )

        checks: list[Check] = [Check("params", CheckStatus.PASS)]
        present: list[str] = []

        for rendered_file in rendered.files:
            if (root / rendered_file.path).is_file():
                present.append(rendered_file.path)
                checks.append(Check(f"file:{rendered_file.path}", CheckStatus.PASS))
            else:
                checks.append(Check(f"file:{rendered_file.path}", CheckStatus.FAIL, "missing"))

        for patch in rendered.patches:
            checks.append(self._check_patch(root, patch))

        analysis, findings = self._analyze(spec, root, present)
        checks.append(analysis)

        report = ValidationReport(spike_id=spec.id, checks=tuple(checks), findings=findings)
        logger.debug("Validated %s: %s (score %.2f)", spec.id, report.status.value, report.score)
        return report

    def _check_patch(self, root: Path, patch: RenderedPatch) -> Check:
        name = f"patch:{patch.operation.value}:{patch.path}"
        target = root / patch.path
        if not target.is_file():
            return Check(name, CheckStatus.FAIL, "target missing")

        data = target.read_bytes()
        if is_binary(data):
            return Check(name, CheckStatus.WARN, "binary target")
        text = data.decode("utf-8")

        if _payload_present(patch, text):
            return Check(name, CheckStatus.PASS)
        return Check(name, CheckStatus.WARN, "payload not present")

    def _analyze(
        self,
        spec: SpikeSpec,
        root: Path,
        present: list[str],
    ) -> tuple[Check, tuple[AnalysisIssue, ...]]:
        if self.analyzer is None:
            return Check("static-analysis", CheckStatus.SKIPPED, "no analyzer configured"), ()
        if not present:
            return Check("static-analysis", CheckStatus.SKIPPED, "no files to analyze"), ()

        framework = spec.stack[0] if spec.stack else None
        findings: list[AnalysisIssue] = []
        try:
            for path in present:
                findings.extend(self.analyzer.analyze(str(root / path), framework))
        except Exception as e:
            # Analyzer failures only degrade the report
            unavailable = SpikeforgeError(ErrorCode.ANALYZER_UNAVAILABLE, {"detail": str(e)}, cause=e)
            logger.warning("%s (spike %s)", unavailable.message, spec.id)
            return Check("static-analysis", CheckStatus.SKIPPED, f"analyzer failed: {e}"), ()

        errors = sum(1 for f in findings if f.severity == "error")
        if errors:
            status = CheckStatus.FAIL
        elif findings:
            status = CheckStatus.WARN
        else:
            status = CheckStatus.PASS
        detail = f"{len(findings)} issue(s), {errors} error(s)" if findings else ""
        return Check("static-analysis", status, detail), tuple(findings)

    # =========================================================================
    # Explain
    # =========================================================================

    def explain(self, spike_id: str) -> str:
        """Documentation for a spike. No disk access.

        Raises:
            NotFoundError: Unknown spike id.
        """
        return explain_spec(self.catalog.require(spike_id))


def explain_spec(spec: SpikeSpec) -> str:
    """Render human-readable documentation for ``spec``."""
    lines = [f"Spike: {spec.name}@{spec.version} ({spec.id})"]
    if spec.description:
        lines.append(spec.description)
    if spec.stack:
        lines.append(f"Stack: {', '.join(spec.stack)}")
    if spec.tags:
        lines.append(f"Tags: {', '.join(spec.tags)}")

    lines.append("")
    if spec.params:
        lines.append("Parameters:")
        for param in spec.params:
            if param.required and not param.has_default:
                requirement = "required"
            elif param.has_default:
                requirement = f"default {json.dumps(_plain(param.default))}"
            else:
                requirement = "optional"
            head = f"  - {param.name} ({param.type.value}, {requirement})"
            constraints = param.describe_constraints()
            if constraints:
                head += f" [{'; '.join(constraints)}]"
            lines.append(head)
            if param.description:
                lines.append(f"      {param.description}")
    else:
        lines.append("Parameters: none")

    lines.append("")
    lines.append(f"Files ({len(spec.files)}):")
    lines.extend(f"  - {f.path}" for f in spec.files)

    if spec.patches:
        lines.append("")
        lines.append(f"Patches ({len(spec.patches)}):")
        lines.extend(f"  - {p.operation.value} {p.path}" for p in spec.patches)

    return "\n".join(lines)


def _payload_present(patch: RenderedPatch, text: str) -> bool:
    op = patch.operation
    if op is PatchOperation.REPLACE:
        if not patch.replace or patch.replace not in text:
            return False
        search = patch.search or ""
        return not search or search not in text or search in patch.replace
    if op in (PatchOperation.APPEND, PatchOperation.PREPEND):
        return patch.content in text

    fmt = structured_format(patch.path)
    if fmt is None:
        return all(line in text for line in patch.content.splitlines() if line.strip())
    try:
        if fmt == "json":
            current, payload = json.loads(text or "{}"), json.loads(patch.content or "{}")
        else:
            current, payload = yaml.safe_load(text) or {}, yaml.safe_load(patch.content) or {}
    except (ValueError, yaml.YAMLError):
        return False
    merged, conflicts = deep_merge(current, payload)
    return not conflicts and merged == current


def _plain(value: Any) -> Any:
    return list(value) if isinstance(value, tuple) else value


__all__ = [
    "Check",
    "CheckStatus",
    "SpikeValidator",
    "ValidationReport",
    "explain_spec",
]
