"""Lazy generator over the generation-axis product.

The product of the four axes is far too large to hold, so nothing here ever
materializes it: identifiers are yielded one at a time and specs are built
only when asked for by id. Built specs live in a small LRU (SpecCache) that
is purely an optimization.
"""


import logging
import threading
from collections import OrderedDict
from collections.abc import Iterable, Iterator
from itertools import islice, product

from spikeforge.spikes import synthesis
from spikeforge.spikes.axes import (
    AXES_BY_KIND,
    AxisKind,
    AxisTuple,
    format_generated_id,
    parse_generated_id,
    space_size,
)
from spikeforge.spikes.types import SpikeMetadata, SpikeSpec

logger = logging.getLogger(__name__)


# =============================================================================
# SPEC CACHE
# =============================================================================


class SpecCache:
    """LRU cache of synthesized specs keyed by identifier.

    Thread-safe via internal locking. A max_size of 0 disables caching.
    """

    def __init__(self, max_size: int = 128) -> None:
        self._cache: OrderedDict[str, SpikeSpec] = OrderedDict()
        self._lock = threading.Lock()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0

    def get(self, spike_id: str) -> SpikeSpec | None:
        with self._lock:
            spec = self._cache.get(spike_id)
            if spec is not None:
                self._hits += 1
                self._cache.move_to_end(spike_id)
            else:
                self._misses += 1
            return spec

    def set(self, spec: SpikeSpec) -> None:
        if self._max_size <= 0:
            return
        with self._lock:
            if spec.id in self._cache:
                del self._cache[spec.id]
            while len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
            self._cache[spec.id] = spec

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> dict[str, int | float]:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total else 0.0,
            }


# =============================================================================
# GENERATOR
# =============================================================================


class SpikeGenerator:
    """Enumerates and synthesizes generated spikes."""

    def __init__(self, scan_limit: int = 5000, cache: SpecCache | None = None) -> None:
        self.scan_limit = scan_limit
        self.cache = cache if cache is not None else SpecCache()

    def synthesize(
        self,
        libraries: Iterable[str] | None = None,
        patterns: Iterable[str] | None = None,
        styles: Iterable[str] | None = None,
        languages: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> Iterator[str]:
        """Yield generated identifiers lazily in axis order.

        Each axis argument narrows that axis (None keeps it whole). Unknown
        values are ignored. At most min(limit, scan_limit) ids are yielded.
        """
        cap = self.scan_limit if limit is None else min(limit, self.scan_limit)
        if cap <= 0:
            return iter(())
        return islice(self.iter_ids(libraries, patterns, styles, languages), cap)

    def iter_ids(
        self,
        libraries: Iterable[str] | None = None,
        patterns: Iterable[str] | None = None,
        styles: Iterable[str] | None = None,
        languages: Iterable[str] | None = None,
    ) -> Iterator[str]:
        """Uncapped lazy walk of a (narrowed) subspace; callers bound it."""
        selected: list[tuple[str, ...]] = []
        for kind, wanted in (
            (AxisKind.LIBRARY, libraries),
            (AxisKind.PATTERN, patterns),
            (AxisKind.STYLE, styles),
            (AxisKind.LANGUAGE, languages),
        ):
            if wanted is not None:
                wanted = list(wanted)
            values = AXES_BY_KIND[kind].select(wanted)
            if wanted is not None and len(values) < len(set(wanted)):
                unknown = sorted({w.lower() for w in wanted} - set(values))
                logger.debug("Ignoring unknown %s values: %s", kind.value, unknown)
            selected.append(values)

        for lib, pat, style, lang in product(*selected):
            yield format_generated_id(lib, pat, style, lang)

    def resolve(self, spike_id: str) -> SpikeSpec | None:
        """Build the spec for a generated id, or None if the id is not in the space."""
        cached = self.cache.get(spike_id)
        if cached is not None:
            return cached

        axis = parse_generated_id(spike_id)
        if axis is None:
            return None

        spec = SpikeSpec(
            id=spike_id,
            name=_name(axis),
            version="0.1.0",
            stack=(axis.library, axis.language),
            tags=_tags(axis),
            description=synthesis.describe(axis),
            params=synthesis.build_params(axis),
            files=synthesis.build_files(axis),
            patches=(),
            source=None,
            generated=True,
        )
        self.cache.set(spec)
        return spec

    def metadata(self, spike_id: str) -> SpikeMetadata | None:
        """Metadata for a generated id without building file content."""
        axis = parse_generated_id(spike_id)
        if axis is None:
            return None
        return SpikeMetadata(
            id=spike_id,
            name=_name(axis),
            version="0.1.0",
            stack=(axis.library, axis.language),
            tags=_tags(axis),
            description=synthesis.describe(axis),
            file_count=len(synthesis.plan_files(axis)),
            patch_count=0,
            generated=True,
        )

    def count(self) -> int:
        """Size of the whole generation space."""
        return space_size()


def _name(axis: AxisTuple) -> str:
    return f"{axis.library} {axis.pattern} {axis.style} {axis.language}"


def _tags(axis: AxisTuple) -> tuple[str, ...]:
    tags = [axis.pattern, axis.style, axis.category, "generated"]
    return tuple(dict.fromkeys(tags))
