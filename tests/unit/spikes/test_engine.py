"""End-to-end tests through SpikeEngine."""

import json
from pathlib import Path

import pytest

from spikeforge.apply.merge import FileStatus
from spikeforge.foundation.config import SpikeforgeConfig
from spikeforge.foundation.errors import ErrorCode, NotFoundError, PatchTargetMissingError, ValidationError
from spikeforge.foundation.types import CatalogConfig
from spikeforge.spikes.axes import AXES_VERSION, LANGUAGES
from spikeforge.spikes.engine import SpikeEngine, get_engine, reset_engine
from spikeforge.spikes.selection import AutoSelection
from spikeforge.spikes.store import StaticSpecStore
from spikeforge.spikes.validation import CheckStatus


class TestScenarios:
    """Discover, preview and apply like an agent would."""

    def test_discover_then_apply(self, engine: SpikeEngine, workspace: Path) -> None:
        top = engine.discover("nextjs minimal", limit=3).items[0]
        assert top.id == "nextjs-minimal"

        rendered = engine.preview(top.id, {"app_name": "demo", "port": "4000"})
        assert rendered.params["port"] == 4000

        result = engine.apply(top.id, {"app_name": "demo", "port": "4000"}, "abort", workspace)
        assert result.success
        assert len(result.by_status(FileStatus.CREATED)) == 5
        assert '"dev": "next dev -p 4000"' in (workspace / "package.json").read_text()

        report = engine.validate(top.id, {"app_name": "demo", "port": 4000}, workspace)
        assert report.status is CheckStatus.PASS

    def test_nextjs_applied_twice_with_overwrite(self, engine: SpikeEngine, workspace: Path) -> None:
        params = {"app_name": "demo", "port": "4000"}

        first = engine.apply("nextjs-minimal", params, "overwrite", workspace)
        snapshot = {p: p.read_bytes() for p in sorted(workspace.rglob("*")) if p.is_file()}
        second = engine.apply("nextjs-minimal", params, "overwrite", workspace)

        assert first.success and second.success
        assert json.loads((workspace / "package.json").read_text())["name"] == "demo"
        assert '"demo"' in (workspace / "package.json").read_text()
        assert second.by_status(FileStatus.OVERWRITTEN) == tuple(o.path for o in first.files)
        assert len(second.files) == 5
        assert second.conflicts == ()
        assert {p: p.read_bytes() for p in sorted(workspace.rglob("*")) if p.is_file()} == snapshot

    def test_auto_select_and_layer_patches(self, engine: SpikeEngine, workspace: Path) -> None:
        engine.apply("express-minimal", target_root=workspace)

        selection = engine.auto_select("add jwt auth to my express api", ["js"])
        assert isinstance(selection, AutoSelection)

        result = engine.apply(selection.id, target_root=workspace)
        assert result.success
        package = json.loads((workspace / "package.json").read_text())
        assert "jsonwebtoken" in package["dependencies"]

    def test_generated_spike_round_trip(self, engine: SpikeEngine, workspace: Path) -> None:
        rendered = engine.preview("gen-stripe-webhook-secure-ts")
        result = engine.apply("gen-stripe-webhook-secure-ts", strategy="overwrite", target_root=workspace)

        assert result.success
        for rendered_file in rendered.files:
            assert (workspace / rendered_file.path).read_text() == rendered_file.content

    def test_errors_surface_before_disk_access(self, engine: SpikeEngine, workspace: Path) -> None:
        with pytest.raises(NotFoundError):
            engine.apply("nope", target_root=workspace)
        with pytest.raises(ValidationError) as exc_info:
            engine.apply("nextjs-minimal", {}, target_root=workspace)
        assert exc_info.value.code is ErrorCode.PARAM_MISSING
        with pytest.raises(ValidationError) as exc_info:
            engine.apply("nextjs-minimal", {"app_name": "demo"}, "sideways", workspace)
        assert exc_info.value.code is ErrorCode.STRATEGY_INVALID
        with pytest.raises(PatchTargetMissingError):
            engine.apply("jwt-auth-express", target_root=workspace)
        assert list(workspace.iterdir()) == []

    def test_custom_spec_dirs(self, spec_dir: Path, workspace: Path) -> None:
        engine = SpikeEngine.from_config(store=StaticSpecStore.from_config([str(spec_dir)]))

        result = engine.apply("custom-greeter", {"greeting": "hi"}, target_root=workspace)

        assert result.success
        assert (workspace / "src/hi.js").read_text() == "console.log('hi ada');\nconsole.log('hi grace');\n"
        assert "Custom greeter@2.0.0" in engine.explain("custom-greeter")


class TestListGenerated:
    def test_axis_values_are_case_insensitive(self, engine: SpikeEngine) -> None:
        listing = engine.list_generated(["Stripe"], ["webhook"], limit=10)

        assert len(listing.ids) == 10
        assert listing.truncated
        assert all(i.startswith("gen-stripe-webhook-") for i in listing.ids)

    def test_full_subspace(self, engine: SpikeEngine) -> None:
        listing = engine.list_generated(["stripe"], ["webhook"], ["secure"], limit=100)
        assert len(listing.ids) == len(LANGUAGES)
        assert not listing.truncated

    def test_pack_narrowing(self, engine: SpikeEngine) -> None:
        listing = engine.list_generated(libraries=["stripe"], pack="payments", limit=100)

        assert len(listing.ids) == 18
        assert not listing.truncated
        assert {i.rsplit("-", 1)[1] for i in listing.ids} == {"ts", "js"}

    def test_pack_excludes_caller_values(self, engine: SpikeEngine) -> None:
        assert engine.list_generated(libraries=["redis"], pack="payments").ids == ()

    def test_unknown_pack(self, engine: SpikeEngine) -> None:
        listing = engine.list_generated(pack="no-such-pack")
        assert listing.ids == ()
        assert not listing.truncated

    def test_scan_ceiling(self) -> None:
        engine = SpikeEngine.from_config(SpikeforgeConfig(catalog=CatalogConfig(generated_scan_limit=20)))

        listing = engine.list_generated(limit=100)

        assert len(listing.ids) == 20
        assert listing.scanned == 20
        assert listing.truncated

    def test_list_packs(self, engine: SpikeEngine) -> None:
        assert "payments" in [p.name for p in engine.list_packs()]


class TestStats:
    def test_keys(self, engine: SpikeEngine) -> None:
        engine.preview("gen-redis-cache-basic-ts")
        engine.preview("gen-redis-cache-basic-ts")

        stats = engine.stats()

        assert stats["static_spikes"] == 6
        assert stats["axes_version"] == AXES_VERSION
        assert stats["axes"]["language"] == len(LANGUAGES)
        assert stats["cache"]["hits"] >= 1
        assert stats["limits"]["list_limit"] == 200


class TestProcessEngine:
    def test_singleton(self) -> None:
        first = get_engine()
        assert get_engine() is first

        reset_engine()

        assert get_engine() is not first

    def test_reads_project_config(self, tmp_path: Path) -> None:
        (tmp_path / ".spikeforge").mkdir()
        (tmp_path / ".spikeforge" / "config.yaml").write_text("catalog:\n  list_limit: 7\n")

        assert get_engine().catalog.list_limit == 7
