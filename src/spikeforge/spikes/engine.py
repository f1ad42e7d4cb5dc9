"""SpikeEngine: the single entry point over catalog, discovery and apply.

Wires the static store, the generator, discovery, auto-selection, rendering,
application and validation together from configuration. The MCP tools call
only this class.
"""


import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from itertools import islice
from pathlib import Path
from typing import Any

from spikeforge.apply.applier import PatchApplier
from spikeforge.apply.merge import ApplyResult, ConflictStrategy
from spikeforge.contracts.analysis import StaticAnalyzer
from spikeforge.foundation.config import SpikeforgeConfig, get_config
from spikeforge.spikes.axes import AXES, AXES_VERSION, AxisKind
from spikeforge.spikes.catalog import CatalogListing, SpikeCatalog
from spikeforge.spikes.discovery import DiscoveryEngine, DiscoveryResult
from spikeforge.spikes.generator import SpecCache, SpikeGenerator
from spikeforge.spikes.packs import SpikePack, get_pack, list_packs
from spikeforge.spikes.renderer import RenderedOutput, render
from spikeforge.spikes.selection import AutoSelection, AutoSelector, NoMatch
from spikeforge.spikes.store import StaticSpecStore
from spikeforge.spikes.validation import SpikeValidator, ValidationReport

logger = logging.getLogger(__name__)


class SpikeEngine:
    """Facade over every spike operation.

    Example:
        >>> engine = SpikeEngine.from_config()
        >>> result = engine.discover("jwt auth", limit=5)
        >>> rendered = engine.preview(result.items[0].id)
        >>> engine.apply(rendered.spec_id, target_root="app", strategy="abort")
    """

    def __init__(
        self,
        catalog: SpikeCatalog,
        discovery: DiscoveryEngine,
        selector: AutoSelector,
        validator: SpikeValidator,
        applier: PatchApplier | None = None,
    ) -> None:
        self.catalog = catalog
        self.discovery = discovery
        self.selector = selector
        self.validator = validator
        self.applier = applier or PatchApplier()

    @classmethod
    def from_config(
        cls,
        config: SpikeforgeConfig | None = None,
        store: StaticSpecStore | None = None,
        analyzer: StaticAnalyzer | None = None,
    ) -> "SpikeEngine":
        """Build an engine from configuration.

        Args:
            config: Configuration (defaults to get_config()).
            store: Pre-built static store; loaded from config when omitted.
            analyzer: Optional static analyzer used by validate.
        """
        config = config or get_config()
        if store is None:
            store = StaticSpecStore.from_config(
                config.catalog.spec_dirs,
                include_builtin=config.catalog.include_builtin,
            )
        generator = SpikeGenerator(
            scan_limit=config.catalog.generated_scan_limit,
            cache=SpecCache(max_size=config.cache.spec_cache_size),
        )
        catalog = SpikeCatalog(store, generator, list_limit=config.catalog.list_limit)
        discovery = DiscoveryEngine(
            catalog,
            candidate_window=config.discovery.candidate_window,
            aliases=config.discovery.aliases,
            alias_boost=config.discovery.alias_boost,
            alias_boost_enabled=config.discovery.alias_boost_enabled,
        )
        selector = AutoSelector(
            discovery,
            batch_size=config.selection.batch_size,
            top_n=config.selection.top_n,
        )
        validator = SpikeValidator(catalog, analyzer)

        logger.debug(
            "Spike engine ready: %d static spikes, %d generated",
            catalog.static_count,
            catalog.generated_count,
        )
        return cls(catalog, discovery, selector, validator)

    # =========================================================================
    # Finding spikes
    # =========================================================================

    def discover(self, query: str | None = None, limit: int | None = None) -> DiscoveryResult:
        return self.discovery.discover(query, limit)

    def auto_select(
        self,
        task: str,
        constraints: Sequence[str] | Mapping[str, str] | str | None = None,
    ) -> AutoSelection | NoMatch:
        return self.selector.select(task, constraints)

    def list_generated(
        self,
        libraries: Iterable[str] | None = None,
        patterns: Iterable[str] | None = None,
        styles: Iterable[str] | None = None,
        languages: Iterable[str] | None = None,
        limit: int | None = None,
        pack: str | None = None,
    ) -> CatalogListing:
        """List generated ids, optionally narrowed to axis values and a pack.

        Bounded by the list limit and the generated scan ceiling. An unknown
        pack lists nothing.
        """
        cap = self.catalog.effective_limit(limit)
        requested: dict[AxisKind, list[str] | None] = {
            AxisKind.LIBRARY: _lowered(libraries),
            AxisKind.PATTERN: _lowered(patterns),
            AxisKind.STYLE: _lowered(styles),
            AxisKind.LANGUAGE: _lowered(languages),
        }

        spike_pack: SpikePack | None = None
        if pack is not None:
            spike_pack = get_pack(pack)
            if spike_pack is None:
                logger.debug("Unknown spike pack '%s'", pack)
                return CatalogListing(ids=(), truncated=False, scanned=0)
            requested = _narrow(requested, spike_pack)

        generator = self.catalog.generator
        walk = generator.iter_ids(
            libraries=requested[AxisKind.LIBRARY],
            patterns=requested[AxisKind.PATTERN],
            styles=requested[AxisKind.STYLE],
            languages=requested[AxisKind.LANGUAGE],
        )

        ids: list[str] = []
        scanned = 0
        truncated = False
        for spike_id in islice(walk, generator.scan_limit + 1):
            if scanned >= generator.scan_limit:
                truncated = True
                break
            scanned += 1
            if spike_pack is not None and not spike_pack.matches(spike_id):
                continue
            if len(ids) >= cap:
                truncated = True
                break
            ids.append(spike_id)

        return CatalogListing(ids=tuple(ids), truncated=truncated, scanned=scanned)

    def list_packs(self) -> list[SpikePack]:
        return list_packs()

    # =========================================================================
    # Rendering and applying
    # =========================================================================

    def preview(self, spike_id: str, params: Mapping[str, Any] | None = None) -> RenderedOutput:
        """Render a spike in memory. Nothing is written.

        Raises:
            NotFoundError: Unknown spike id.
            ValidationError: Parameter, template or output path problems.
        """
        return render(self.catalog.require(spike_id), params)

    def apply(
        self,
        spike_id: str,
        params: Mapping[str, Any] | None = None,
        strategy: ConflictStrategy | str | None = None,
        target_root: Path | str = ".",
    ) -> ApplyResult:
        """Render and apply a spike onto ``target_root``.

        Raises:
            NotFoundError: Unknown spike id.
            ValidationError: Bad strategy or parameters (before any disk access).
            PatchTargetMissingError: A patch targets a file that does not exist.
        """
        chosen = ConflictStrategy.parse(strategy)
        rendered = self.preview(spike_id, params)
        return self.applier.apply(rendered, target_root, chosen)

    def validate(
        self,
        spike_id: str,
        params: Mapping[str, Any] | None = None,
        target_root: Path | str = ".",
    ) -> ValidationReport:
        return self.validator.validate(spike_id, dict(params or {}), target_root)

    def explain(self, spike_id: str) -> str:
        return self.validator.explain(spike_id)

    def stats(self) -> dict[str, Any]:
        """Catalog and cache statistics."""
        return {
            "static_spikes": self.catalog.static_count,
            "generated_spikes": self.catalog.generated_count,
            "axes_version": AXES_VERSION,
            "axes": {axis.kind.value: len(axis) for axis in AXES},
            "cache": self.catalog.generator.cache.stats(),
            "limits": {
                "list_limit": self.catalog.list_limit,
                "generated_scan_limit": self.catalog.generator.scan_limit,
                "candidate_window": self.discovery.candidate_window,
            },
        }


def _lowered(values: Iterable[str] | None) -> list[str] | None:
    if values is None:
        return None
    return [v.strip().lower() for v in values if v and v.strip()] or None


def _narrow(
    requested: dict[AxisKind, list[str] | None],
    pack: SpikePack,
) -> dict[AxisKind, list[str] | None]:
    """Intersect caller axis values with a pack's axis filter."""
    allowed_by_kind = pack.axis_filter()
    narrowed: dict[AxisKind, list[str] | None] = {}
    for kind, wanted in requested.items():
        allowed = allowed_by_kind.get(kind)
        if allowed is None:
            narrowed[kind] = wanted
        elif wanted is None:
            narrowed[kind] = list(allowed)
        else:
            narrowed[kind] = [v for v in wanted if v in allowed]
    return narrowed


# =============================================================================
# Process-wide engine
# =============================================================================

_engine: SpikeEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> SpikeEngine:
    """Get the process-wide engine, building it from config on first use.

    Thread-safe with double-check locking.
    """
    global _engine

    if _engine is not None:
        return _engine

    with _engine_lock:
        if _engine is None:
            _engine = SpikeEngine.from_config()
        return _engine


def reset_engine() -> None:
    """Drop the process-wide engine (useful for testing)."""
    global _engine
    with _engine_lock:
        _engine = None
