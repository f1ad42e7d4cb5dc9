"""Tests for the lazy generator and its spec cache."""

import itertools

from spikeforge.spikes.axes import LANGUAGES, STYLES, space_size
from spikeforge.spikes.generator import SpecCache, SpikeGenerator
from spikeforge.spikes.renderer import render
from spikeforge.spikes.types import ParamType


class TestSynthesize:
    """Identifier enumeration."""

    def test_narrowed_to_one_point(self, generator: SpikeGenerator) -> None:
        ids = list(generator.synthesize(["stripe"], ["webhook"], ["secure"], ["ts"]))
        assert ids == ["gen-stripe-webhook-secure-ts"]

    def test_axis_order(self, generator: SpikeGenerator) -> None:
        ids = list(generator.synthesize(["redis"], ["cache"]))
        assert len(ids) == len(STYLES) * len(LANGUAGES)
        assert ids[0] == "gen-redis-cache-basic-ts"
        assert ids[1] == "gen-redis-cache-basic-js"

    def test_limit_and_scan_limit_bound_output(self) -> None:
        generator = SpikeGenerator(scan_limit=7)
        assert len(list(generator.synthesize())) == 7
        assert len(list(generator.synthesize(limit=3))) == 3
        assert list(generator.synthesize(limit=0)) == []

    def test_unknown_values_are_ignored(self, generator: SpikeGenerator) -> None:
        ids = list(generator.synthesize(["stripe", "cobol-pay"], ["webhook"], ["basic"], ["ts"]))
        assert ids == ["gen-stripe-webhook-basic-ts"]

    def test_is_lazy(self, generator: SpikeGenerator) -> None:
        head = list(itertools.islice(generator.iter_ids(), 2))
        assert len(head) == 2
        assert generator.count() == space_size()


class TestResolve:
    """Spec synthesis for generated ids."""

    def test_resolve_secure_spike(self, generator: SpikeGenerator) -> None:
        spec = generator.resolve("gen-stripe-webhook-secure-ts")

        assert spec is not None
        assert spec.generated
        assert spec.source is None
        assert spec.stack == ("stripe", "ts")
        assert spec.tags == ("webhook", "secure", "payments", "generated")
        assert spec.param("allowed_origins").type is ParamType.LIST
        paths = [f.path for f in spec.files]
        assert "spikes/gen-stripe-webhook-secure-ts/index.ts" in paths
        assert "spikes/gen-stripe-webhook-secure-ts/guard.ts" in paths

    def test_unknown_id_resolves_to_none(self, generator: SpikeGenerator) -> None:
        assert generator.resolve("gen-stripe-webhook-secure-cobol") is None
        assert generator.resolve("nextjs-minimal") is None

    def test_specialized_files(self, generator: SpikeGenerator) -> None:
        spec = generator.resolve("gen-nextjs-route-basic-ts")
        assert "app/api/health/route.ts" in [f.path for f in spec.files]

    def test_metadata_matches_spec(self, generator: SpikeGenerator) -> None:
        spike_id = "gen-prisma-crud-typed-ts"
        meta = generator.metadata(spike_id)
        spec = generator.resolve(spike_id)
        assert meta == spec.metadata()

    def test_defaults_render(self, generator: SpikeGenerator) -> None:
        spec = generator.resolve("gen-fastapi-route-advanced-py")
        rendered = render(spec)
        main = rendered.file("spikes/gen-fastapi-route-advanced-py/main.py")
        assert main is not None
        assert "fastapi-route-app" in main.content


class TestSpecCache:
    """LRU behaviour."""

    def test_hit_after_resolve(self, generator: SpikeGenerator) -> None:
        first = generator.resolve("gen-redis-cache-typed-go")
        second = generator.resolve("gen-redis-cache-typed-go")
        assert first is second
        assert generator.cache.stats()["hits"] == 1

    def test_evicts_least_recently_used(self) -> None:
        generator = SpikeGenerator(cache=SpecCache(max_size=2))
        a = "gen-redis-cache-basic-ts"
        b = "gen-redis-cache-basic-js"
        c = "gen-redis-cache-basic-py"
        generator.resolve(a)
        generator.resolve(b)
        generator.resolve(a)
        generator.resolve(c)

        assert generator.cache.get(a) is not None
        assert generator.cache.get(b) is None
        assert len(generator.cache) == 2

    def test_zero_size_disables(self) -> None:
        generator = SpikeGenerator(cache=SpecCache(max_size=0))
        generator.resolve("gen-redis-cache-basic-ts")
        assert len(generator.cache) == 0

    def test_clear_resets_counters(self) -> None:
        cache = SpecCache()
        cache.get("missing")
        cache.clear()
        assert cache.stats() == {"size": 0, "max_size": 128, "hits": 0, "misses": 0, "hit_rate": 0.0}
