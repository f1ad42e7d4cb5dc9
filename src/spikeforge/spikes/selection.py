"""Auto-selection: pick one spike for a task description.

Selection runs discovery over a wider window, keeps only candidates that
satisfy every hard constraint, and reports the best one with a confidence
and a rationale. Constraints are never relaxed: when nothing satisfies them
the answer is NoMatch.
"""


import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from spikeforge.spikes.axes import canonical_language
from spikeforge.spikes.discovery import DiscoveryEngine, DiscoveryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AutoSelection:
    """The chosen spike."""

    id: str
    confidence: float
    """Winner's normalized discovery score (0-1)."""

    rationale: str
    alternatives: tuple[str, ...] = ()
    matched_constraints: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "confidence": round(self.confidence, 4),
            "rationale": self.rationale,
            "alternatives": list(self.alternatives),
        }


@dataclass(frozen=True, slots=True)
class NoMatch:
    """No candidate satisfied the task and its constraints."""

    task: str
    constraints: tuple[str, ...] = field(default=())
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "no_match": True,
            "task": self.task,
            "constraints": list(self.constraints),
            "reason": self.reason,
        }


def normalize_constraints(
    constraints: Sequence[str] | Mapping[str, str] | str | None,
) -> tuple[str, ...]:
    """Flatten constraints into lowercase axis-style values.

    Accepts a list (``["typescript", "nextjs"]``), a mapping
    (``{"language": "typescript"}``, values only) or a comma-separated string.
    """
    if constraints is None:
        return ()
    if isinstance(constraints, str):
        raw = constraints.split(",")
    elif isinstance(constraints, Mapping):
        raw = [str(v) for v in constraints.values()]
    else:
        raw = [str(c) for c in constraints]
    values = (canonical_language(c.strip()) for c in raw if c and c.strip())
    return tuple(dict.fromkeys(values))


def satisfies(item: DiscoveryItem, constraint: str) -> bool:
    """A constraint holds when it names a stack entry or a tag of the candidate."""
    stack = {s.lower() for s in item.stack}
    tags = {t.lower() for t in item.tags}
    return constraint in stack or constraint in tags


class AutoSelector:
    """Chooses a single spike for a task."""

    def __init__(self, discovery: DiscoveryEngine, batch_size: int = 200, top_n: int = 5) -> None:
        self.discovery = discovery
        self.batch_size = batch_size
        self.top_n = top_n

    def select(
        self,
        task: str,
        constraints: Sequence[str] | Mapping[str, str] | str | None = None,
    ) -> AutoSelection | NoMatch:
        wanted = normalize_constraints(constraints)
        # Constraint words join the query so the candidate scan reaches their subspace
        query = " ".join([task, *wanted]).strip()

        result = self.discovery.discover(
            query,
            limit=self.batch_size,
            window=max(self.batch_size, self.discovery.candidate_window),
        )
        candidates = [
            item for item in result.items if all(satisfies(item, c) for c in wanted)
        ]

        if not candidates:
            if not result.items:
                reason = "no spike matched the task description"
            else:
                reason = (
                    f"{len(result.items)} candidate(s) matched the task but none satisfied "
                    f"constraints: {', '.join(wanted)}"
                )
            logger.debug("Auto-selection for '%s' found nothing: %s", task, reason)
            return NoMatch(task=task, constraints=wanted, reason=reason)

        top = candidates[: self.top_n]
        winner = top[0]
        return AutoSelection(
            id=winner.id,
            confidence=winner.score,
            rationale=_rationale(winner, wanted),
            alternatives=tuple(item.id for item in top[1:]),
            matched_constraints=wanted,
        )


def _rationale(item: DiscoveryItem, constraints: tuple[str, ...]) -> str:
    parts: list[str] = []
    if item.matched_terms:
        parts.append(f"matched terms: {', '.join(item.matched_terms)}")
    if item.matched_fields:
        parts.append(f"in fields: {', '.join(item.matched_fields)}")
    if constraints:
        parts.append(f"satisfies constraints: {', '.join(constraints)}")
    if not parts:
        parts.append("alias match")
    return "; ".join(parts)
