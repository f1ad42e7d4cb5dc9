"""Discovery: rank catalog spikes against a free-text query.

Scoring is deterministic and per term; for each query term the best field
match counts once:

    identifier token (exact)                 3.0
    tag (exact)                              2.0
    stack / name / description (substring)   1.0

The raw score is the sum over terms. The normalized score divides by the
best possible raw score (3.0 per term) and is capped at 1.0. A term equal to
a configured alias adds ``alias_boost`` to the raw score of the alias's
canonical spike. Ties are broken by identifier, ascending.
"""


import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from spikeforge.spikes.axes import AxisKind, axis_kinds_for, canonical_language
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.types import SpikeMetadata

logger = logging.getLogger(__name__)

WEIGHT_ID_TOKEN = 3.0
WEIGHT_TAG = 2.0
WEIGHT_TEXT = 1.0

_SPLIT_RE = re.compile(r"[^a-z0-9_+.#@]+")


def tokenize(text: str | None) -> list[str]:
    """Lowercase, split on separators (including '-'), drop duplicates."""
    if not text:
        return []
    words = _SPLIT_RE.split(text.lower().replace("-", " "))
    return list(dict.fromkeys(w.strip(".") for w in words if w.strip(".")))


@dataclass(frozen=True, slots=True)
class DiscoveryItem:
    """One ranked spike."""

    id: str
    name: str
    score: float
    """Normalized score in [0, 1]."""

    raw_score: float
    stack: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str = ""
    matched_terms: tuple[str, ...] = ()
    matched_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "score": round(self.score, 4),
            "stack": list(self.stack),
            "tags": list(self.tags),
            "description": self.description,
            "matched_terms": list(self.matched_terms),
            "matched_fields": list(self.matched_fields),
        }


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """Ranked discovery output."""

    query: str
    items: tuple[DiscoveryItem, ...]
    total_candidates: int
    """Candidates with a non-zero score (before the limit was applied)."""

    truncated: bool
    limit: int
    """Effective limit after clamping."""

    terms: tuple[str, ...] = field(default=())

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self.items]

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "items": [item.to_dict() for item in self.items],
            "total": self.total_candidates,
            "truncated": self.truncated,
            "limit": self.limit,
        }


@dataclass(frozen=True, slots=True)
class _Match:
    raw: float
    terms: tuple[str, ...]
    fields: tuple[str, ...]


class DiscoveryEngine:
    """Ranks catalog entries for a query."""

    def __init__(
        self,
        catalog: SpikeCatalog,
        candidate_window: int = 500,
        aliases: Mapping[str, str] | None = None,
        alias_boost: float = 1.5,
        alias_boost_enabled: bool = True,
    ) -> None:
        self.catalog = catalog
        self.candidate_window = candidate_window
        self.aliases = {k.lower(): v for k, v in (aliases or {}).items()}
        self.alias_boost = alias_boost
        self.alias_boost_enabled = alias_boost_enabled

    def discover(
        self,
        query: str | None,
        limit: int | None = None,
        window: int | None = None,
    ) -> DiscoveryResult:
        """Rank spikes for ``query``.

        Args:
            query: Free text. Empty returns catalog listing order.
            limit: Maximum items returned, clamped to the catalog list limit.
            window: Candidate window override (defaults to candidate_window).

        Never raises on oversized limits.
        """
        query = query or ""
        cap = self.catalog.effective_limit(limit)
        terms = self.normalize_terms(tokenize(query))

        if not terms:
            listing = self.catalog.list(limit=cap)
            items = []
            for spike_id in listing.ids:
                meta = self.catalog.metadata(spike_id)
                if meta is not None:
                    items.append(_item(meta, _Match(0.0, (), ()), 0.0))
            return DiscoveryResult(
                query=query,
                items=tuple(items),
                total_candidates=len(items),
                truncated=listing.truncated,
                limit=cap,
            )

        boosted = self._boosted_ids(terms)

        def predicate(meta: SpikeMetadata) -> bool:
            return meta.id in boosted or self._match(meta, terms).raw > 0

        listing = self.catalog.scan(
            predicate,
            window or self.candidate_window,
            axis_filters=axis_filters_for(terms),
        )

        candidate_ids = list(listing.ids)
        for spike_id in sorted(boosted):
            if spike_id not in candidate_ids:
                candidate_ids.append(spike_id)

        scored: list[DiscoveryItem] = []
        max_raw = WEIGHT_ID_TOKEN * len(terms)
        for spike_id in candidate_ids:
            meta = self.catalog.metadata(spike_id)
            if meta is None:
                logger.debug("Alias target '%s' is not in the catalog", spike_id)
                continue
            match = self._match(meta, terms)
            raw = match.raw + (self.alias_boost if spike_id in boosted else 0.0)
            if raw <= 0:
                continue
            scored.append(_item(meta, match, raw, max_raw))

        scored.sort(key=lambda item: (-item.raw_score, item.id))
        logger.debug(
            "Discovery '%s': %d candidates scanned, %d scored",
            query,
            listing.scanned,
            len(scored),
        )
        return DiscoveryResult(
            query=query,
            items=tuple(scored[:cap]),
            total_candidates=len(scored),
            truncated=len(scored) > cap or listing.truncated,
            limit=cap,
            terms=tuple(terms),
        )

    @staticmethod
    def normalize_terms(terms: Iterable[str]) -> list[str]:
        """Map language spellings onto axis values (typescript -> ts)."""
        return list(dict.fromkeys(canonical_language(t) for t in terms))

    def _boosted_ids(self, terms: list[str]) -> set[str]:
        if not self.alias_boost_enabled:
            return set()
        return {self.aliases[t] for t in terms if t in self.aliases}

    def _match(self, meta: SpikeMetadata, terms: list[str]) -> _Match:
        id_tokens = set(tokenize(meta.id))
        tags = {t.lower() for t in meta.tags}
        texts = (
            ("stack", " ".join(meta.stack).lower()),
            ("name", meta.name.lower()),
            ("description", meta.description.lower()),
        )

        raw = 0.0
        matched_terms: list[str] = []
        matched_fields: list[str] = []
        for term in terms:
            if term in id_tokens:
                best, where = WEIGHT_ID_TOKEN, "id"
            elif term in tags:
                best, where = WEIGHT_TAG, "tags"
            else:
                where = next((name for name, text in texts if term in text), "")
                best = WEIGHT_TEXT if where else 0.0
            if best:
                raw += best
                matched_terms.append(term)
                if where not in matched_fields:
                    matched_fields.append(where)
        return _Match(raw, tuple(matched_terms), tuple(matched_fields))


def axis_filters_for(terms: Iterable[str]) -> list[dict[AxisKind, tuple[str, ...]]] | None:
    """Generated subspaces worth scanning for these terms.

    The intersection of every named axis comes first (the most specific
    ids), followed by one subspace per axis value named. None when no term
    names an axis value, meaning the plain scan order.
    """
    named: dict[AxisKind, list[str]] = {}
    for term in terms:
        for kind in axis_kinds_for(term):
            named.setdefault(kind, []).append(term)
    if not named:
        return None

    filters: list[dict[AxisKind, tuple[str, ...]]] = []
    if len(named) > 1:
        filters.append({kind: tuple(values) for kind, values in named.items()})
    for kind in AxisKind:
        for value in named.get(kind, ()):
            filters.append({kind: (value,)})
    return filters


def _item(meta: SpikeMetadata, match: _Match, raw: float, max_raw: float = 0.0) -> DiscoveryItem:
    score = min(1.0, raw / max_raw) if max_raw else 0.0
    return DiscoveryItem(
        id=meta.id,
        name=meta.name,
        score=score,
        raw_score=raw,
        stack=meta.stack,
        tags=meta.tags,
        description=meta.description,
        matched_terms=match.terms,
        matched_fields=match.fields,
    )
