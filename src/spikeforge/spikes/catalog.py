"""Catalog resolver: one lookup surface over static and generated spikes.

Lookups check the static store first, so a hand-authored spec always shadows
a generated one with the same id. Listing walks static ids (sorted) and then
the generated space lazily, stopping as soon as the effective limit or the
generated scan ceiling is reached.
"""


import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass

from spikeforge.foundation.errors import not_found
from spikeforge.spikes.axes import AxisKind
from spikeforge.spikes.generator import SpikeGenerator
from spikeforge.spikes.store import StaticSpecStore
from spikeforge.spikes.types import SpikeMetadata, SpikeSpec

logger = logging.getLogger(__name__)

MetadataPredicate = Callable[[SpikeMetadata], bool]

AxisFilter = Mapping[AxisKind, Iterable[str]]
"""Per-axis allowed values. A missing axis is unconstrained."""


@dataclass(frozen=True, slots=True)
class CatalogListing:
    """One page of catalog ids."""

    ids: tuple[str, ...]
    truncated: bool
    """True when the effective limit or the scan ceiling cut the listing short."""

    scanned: int
    """Ids examined (static plus generated) to produce this page."""


class SpikeCatalog:
    """Unified catalog over a StaticSpecStore and a SpikeGenerator."""

    def __init__(
        self,
        store: StaticSpecStore,
        generator: SpikeGenerator,
        list_limit: int = 200,
    ) -> None:
        self.store = store
        self.generator = generator
        self.list_limit = list_limit

    def get(self, spike_id: str) -> SpikeSpec | None:
        spec = self.store.get(spike_id)
        if spec is not None:
            return spec
        return self.generator.resolve(spike_id)

    def require(self, spike_id: str) -> SpikeSpec:
        """Like get(), but raise NotFoundError for unknown ids."""
        spec = self.get(spike_id)
        if spec is None:
            raise not_found(spike_id)
        return spec

    def metadata(self, spike_id: str) -> SpikeMetadata | None:
        spec = self.store.get(spike_id)
        if spec is not None:
            return spec.metadata()
        return self.generator.metadata(spike_id)

    def effective_limit(self, limit: int | None) -> int:
        if limit is None or limit <= 0:
            return self.list_limit
        return min(limit, self.list_limit)

    def list(
        self,
        predicate: MetadataPredicate | None = None,
        limit: int | None = None,
        axis_filters: AxisFilter | Iterable[AxisFilter] | None = None,
    ) -> CatalogListing:
        """List ids matching ``predicate``, static first.

        Args:
            predicate: Filter over metadata; None accepts everything.
            limit: Requested page size, clamped to list_limit.
            axis_filters: Narrow the generated scan to one or more axis
                subspaces (their union, deduplicated). Static specs are
                not affected.

        Never raises for oversized limits; reports truncation instead.
        """
        return self.scan(predicate, self.effective_limit(limit), axis_filters)

    def scan(
        self,
        predicate: MetadataPredicate | None,
        cap: int,
        axis_filters: AxisFilter | Iterable[AxisFilter] | None = None,
    ) -> CatalogListing:
        """Collect up to ``cap`` matching ids, bounded only by the scan ceiling.

        Discovery uses this directly to draw a candidate window wider than
        the public page size.
        """
        ids: list[str] = []
        scanned = 0

        for spike_id in self.store.ids:
            scanned += 1
            spec = self.store.get(spike_id)
            if spec is None or (predicate is not None and not predicate(spec.metadata())):
                continue
            if len(ids) >= cap:
                return CatalogListing(tuple(ids), truncated=True, scanned=scanned)
            ids.append(spike_id)

        seen = set(ids)
        generated_scanned = 0
        scan_limit = self.generator.scan_limit
        exhausted = True

        for spike_id in self._generated_ids(axis_filters):
            if generated_scanned >= scan_limit:
                exhausted = False
                break
            generated_scanned += 1
            if spike_id in seen or spike_id in self.store:
                continue
            if predicate is not None:
                meta = self.generator.metadata(spike_id)
                if meta is None or not predicate(meta):
                    continue
            if len(ids) >= cap:
                exhausted = False
                break
            ids.append(spike_id)
            seen.add(spike_id)

        scanned += generated_scanned
        if not exhausted:
            logger.debug(
                "Catalog listing stopped after %d generated ids (cap=%d, scan_limit=%d)",
                generated_scanned,
                cap,
                scan_limit,
            )
        return CatalogListing(tuple(ids), truncated=not exhausted, scanned=scanned)

    def _generated_ids(
        self, axis_filters: AxisFilter | Iterable[AxisFilter] | None
    ) -> Iterator[str]:
        if axis_filters is None:
            yield from self.generator.iter_ids()
            return

        subspaces = [axis_filters] if isinstance(axis_filters, Mapping) else list(axis_filters)
        for subspace in subspaces:
            yield from self.generator.iter_ids(
                libraries=_values(subspace, AxisKind.LIBRARY),
                patterns=_values(subspace, AxisKind.PATTERN),
                styles=_values(subspace, AxisKind.STYLE),
                languages=_values(subspace, AxisKind.LANGUAGE),
            )

    @property
    def static_count(self) -> int:
        return len(self.store)

    @property
    def generated_count(self) -> int:
        return self.generator.count()


def _values(subspace: AxisFilter, kind: AxisKind) -> list[str] | None:
    values = subspace.get(kind)
    return None if values is None else list(values)
