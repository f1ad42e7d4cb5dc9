"""Tests for discovery ranking and auto-selection."""

import pytest

from spikeforge.foundation.types import DEFAULT_ALIASES
from spikeforge.spikes.axes import AxisKind
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.discovery import (
    WEIGHT_ID_TOKEN,
    DiscoveryEngine,
    axis_filters_for,
    tokenize,
)
from spikeforge.spikes.selection import AutoSelection, AutoSelector, NoMatch, normalize_constraints


@pytest.fixture
def discovery(catalog: SpikeCatalog) -> DiscoveryEngine:
    return DiscoveryEngine(catalog, aliases=DEFAULT_ALIASES)


@pytest.fixture
def selector(discovery: DiscoveryEngine) -> AutoSelector:
    return AutoSelector(discovery)


class TestTokenize:
    def test_splits_ids_and_text(self) -> None:
        assert tokenize("JWT-auth  Express, jwt") == ["jwt", "auth", "express"]

    def test_empty(self) -> None:
        assert tokenize("") == []
        assert tokenize(None) == []

    def test_keeps_dotted_words(self) -> None:
        assert tokenize("next.js node.") == ["next.js", "node"]


class TestDiscover:
    """Ranking, limits and determinism."""

    def test_jwt_auth(self, discovery: DiscoveryEngine) -> None:
        result = discovery.discover("jwt auth", 5)

        assert len(result.items) <= 5
        assert result.ids[0] == "jwt-auth-express"
        for item in result.items:
            assert "jwt" in item.id or "auth" in item.id or {"jwt", "auth"} & set(item.tags)

    def test_scores_are_normalized_and_sorted(self, discovery: DiscoveryEngine) -> None:
        result = discovery.discover("stripe webhook", 20)

        raw = [item.raw_score for item in result.items]
        assert raw == sorted(raw, reverse=True)
        assert all(0.0 <= item.score <= 1.0 for item in result.items)
        top = result.items[0]
        assert top.raw_score == 2 * WEIGHT_ID_TOKEN
        assert top.score == 1.0

    def test_ties_broken_by_id(self, discovery: DiscoveryEngine) -> None:
        items = discovery.discover("nextjs route", 10).items
        tied = [i.id for i in items if i.raw_score == items[0].raw_score]
        assert tied == sorted(tied)
        assert items[0].id.startswith("gen-nextjs-route-")

    def test_alias_boost(self, catalog: SpikeCatalog) -> None:
        boosted = DiscoveryEngine(catalog, aliases=DEFAULT_ALIASES).discover("docker", 50)
        plain = DiscoveryEngine(catalog, aliases=DEFAULT_ALIASES, alias_boost_enabled=False).discover("docker", 50)

        assert boosted.ids[0] == "docker-node"
        first = next(i for i in boosted.items if i.id == "docker-node")
        second = next(i for i in plain.items if i.id == "docker-node")
        assert first.raw_score == second.raw_score + 1.5

    def test_language_spelling(self, discovery: DiscoveryEngine) -> None:
        result = discovery.discover("redis cache typescript", 5)
        assert result.terms == ("redis", "cache", "ts")
        assert result.ids[0].endswith("-ts")

    def test_empty_query_lists_catalog_order(self, discovery: DiscoveryEngine, catalog: SpikeCatalog) -> None:
        result = discovery.discover("", 3)
        assert result.ids == list(catalog.store.ids[:3])
        assert all(item.score == 0.0 for item in result.items)

    def test_oversized_limit_is_clamped(self, discovery: DiscoveryEngine) -> None:
        result = discovery.discover("auth", 10_000)
        assert result.limit == 200
        assert len(result.items) <= 200
        assert result.truncated

    def test_no_match(self, discovery: DiscoveryEngine) -> None:
        result = discovery.discover("zzqxv", 5)
        assert result.items == ()
        assert result.total_candidates == 0

    def test_deterministic(self, discovery: DiscoveryEngine) -> None:
        assert discovery.discover("express middleware", 10) == discovery.discover("express middleware", 10)

    def test_to_dict(self, discovery: DiscoveryEngine) -> None:
        data = discovery.discover("fastapi", 2).to_dict()
        assert data["query"] == "fastapi"
        assert set(data["items"][0]) == {"id", "name", "score", "stack", "tags", "description", "matched_terms", "matched_fields"}


class TestAxisFilters:
    def test_none_without_axis_words(self) -> None:
        assert axis_filters_for(["hello"]) is None

    def test_intersection_first(self) -> None:
        filters = axis_filters_for(["stripe", "webhook"])
        assert filters[0] == {AxisKind.LIBRARY: ("stripe",), AxisKind.PATTERN: ("webhook",)}
        assert {AxisKind.LIBRARY: ("stripe",)} in filters
        assert {AxisKind.PATTERN: ("webhook",)} in filters


class TestAutoSelect:
    """Hard constraints, confidence and NoMatch."""

    def test_picks_jwt_spike(self, selector: AutoSelector) -> None:
        selection = selector.select("jwt auth for express", ["js"])

        assert isinstance(selection, AutoSelection)
        assert selection.id == "jwt-auth-express"
        assert 0.0 < selection.confidence <= 1.0
        assert "satisfies constraints: js" in selection.rationale

    def test_constraints_are_hard(self, selector: AutoSelector, catalog: SpikeCatalog) -> None:
        selection = selector.select("express server", {"language": "TypeScript"})

        assert isinstance(selection, AutoSelection)
        meta = catalog.metadata(selection.id)
        assert "ts" in meta.stack
        assert "express" in meta.stack
        for alternative in selection.alternatives:
            assert "ts" in catalog.metadata(alternative).stack + catalog.metadata(alternative).tags

    def test_unsatisfiable_constraint(self, selector: AutoSelector) -> None:
        selection = selector.select("nextjs app", ["cobol"])

        assert isinstance(selection, NoMatch)
        assert selection.constraints == ("cobol",)
        assert "none satisfied constraints: cobol" in selection.reason
        assert selection.to_dict()["no_match"] is True

    def test_nothing_matches_task(self, selector: AutoSelector) -> None:
        selection = selector.select("zzqxv")
        assert isinstance(selection, NoMatch)
        assert selection.reason == "no spike matched the task description"

    def test_top_n_bounds_alternatives(self, discovery: DiscoveryEngine) -> None:
        selection = AutoSelector(discovery, top_n=2).select("stripe webhook")
        assert len(selection.alternatives) == 1

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, ()),
            ("ts, nextjs", ("ts", "nextjs")),
            (["TypeScript", "typescript", " "], ("ts",)),
            ({"language": "Python", "framework": "fastapi"}, ("py", "fastapi")),
        ],
    )
    def test_normalize_constraints(self, raw: object, expected: tuple[str, ...]) -> None:
        assert normalize_constraints(raw) == expected
