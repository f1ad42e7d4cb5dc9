"""Property-based tests for the spike catalog using Hypothesis.

Tests invariants that should hold across the whole generation space.
"""

from hypothesis import given, settings, strategies as st

from spikeforge.spikes.axes import (
    LANGUAGES,
    LIBRARIES,
    PATTERNS,
    STYLES,
    AxisKind,
    format_generated_id,
    parse_generated_id,
)
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.generator import SpikeGenerator
from spikeforge.spikes.renderer import render
from spikeforge.spikes.store import StaticSpecStore
from spikeforge.spikes.template import render_string

axis_points = st.tuples(
    st.sampled_from(LIBRARIES),
    st.sampled_from(PATTERNS),
    st.sampled_from(STYLES),
    st.sampled_from(LANGUAGES),
)

# Module-level so Hypothesis examples share one catalog
_STORE = StaticSpecStore.from_config()


class TestIdCodecProperties:
    @given(axis_points)
    def test_format_then_parse_recovers_the_point(self, point: tuple[str, str, str, str]) -> None:
        parsed = parse_generated_id(format_generated_id(*point))
        assert parsed is not None
        assert (parsed.library, parsed.pattern, parsed.style, parsed.language) == point

    @given(st.text(max_size=40))
    def test_parse_never_raises(self, raw: str) -> None:
        parsed = parse_generated_id(raw)
        assert parsed is None or parsed.id == raw


class TestGeneratedSpikeProperties:
    @settings(max_examples=40, deadline=None)
    @given(axis_points)
    def test_every_point_resolves_and_renders_deterministically(self, point: tuple[str, str, str, str]) -> None:
        generator = SpikeGenerator()
        spec = generator.resolve(format_generated_id(*point))

        assert spec is not None
        first = render(spec)
        second = render(generator.resolve(spec.id))
        assert first.digest() == second.digest()
        assert len(set(first.paths)) == len(first.paths)
        assert generator.metadata(spec.id).file_count == len(first.files)

    @settings(max_examples=25, deadline=None)
    @given(
        st.lists(st.sampled_from(LIBRARIES), max_size=3),
        st.lists(st.sampled_from(LANGUAGES), max_size=3),
        st.integers(min_value=-5, max_value=500),
    )
    def test_listing_is_bounded(self, libraries: list[str], languages: list[str], limit: int) -> None:
        catalog = SpikeCatalog(_STORE, SpikeGenerator(scan_limit=300), list_limit=200)
        listing = catalog.list(
            lambda m: True,
            limit=limit,
            axis_filters={AxisKind.LIBRARY: libraries or None, AxisKind.LANGUAGE: languages or None},
        )

        assert len(listing.ids) <= catalog.effective_limit(limit)
        assert listing.scanned <= len(_STORE) + 300
        assert len(set(listing.ids)) == len(listing.ids)


class TestTemplateProperties:
    @given(st.text(alphabet=st.characters(blacklist_characters="{}\\"), max_size=200))
    def test_plain_text_is_unchanged(self, text: str) -> None:
        assert render_string(text, {}) == text
