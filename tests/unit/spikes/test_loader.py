"""Tests for spike document loading and the static store."""

import logging
from pathlib import Path

import pytest

from spikeforge.foundation.errors import ErrorCode, SpecParseError
from spikeforge.spikes.loader import SpikeLoader, iter_spec_files
from spikeforge.spikes.store import BUILTIN_DIR, StaticSpecStore
from spikeforge.spikes.types import ParamType, PatchOperation

BUILTIN_IDS = (
    "docker-node",
    "express-minimal",
    "fastapi-minimal",
    "github-actions-ci",
    "jwt-auth-express",
    "nextjs-minimal",
)


class TestSpikeLoader:
    """Document parsing."""

    def test_load_custom_document(self, spec_dir: Path) -> None:
        spec = SpikeLoader().load(spec_dir / "custom-greeter.yaml")

        assert spec.id == "custom-greeter"
        assert spec.version == "2.0.0"
        assert spec.stack == ("node", "js")
        assert spec.param("greeting").required
        assert spec.param("names").type is ParamType.LIST
        assert spec.param("names").default == ("ada", "grace")
        assert spec.source.endswith("custom-greeter.yaml")
        assert not spec.generated

    def test_json_document(self, tmp_path: Path) -> None:
        path = tmp_path / "tiny.json"
        path.write_text('{"id": "tiny", "files": [{"path": "a.txt", "template": "hi"}]}')

        spec = SpikeLoader().load(path)

        assert spec.name == "tiny"
        assert spec.files[0].template == "hi"

    def test_param_shorthand_and_content_alias(self) -> None:
        spec = SpikeLoader().load_string(
            "id: s\nparams: [who]\nfiles:\n  - path: a.txt\n    content: 'hi {{who}}'\n"
        )
        assert spec.param_names == ("who",)
        assert spec.files[0].template == "hi {{who}}"

    def test_inline_structured_patch_becomes_json(self) -> None:
        spec = SpikeLoader().load_string(
            "id: s\npatches:\n  - path: package.json\n    op: merge\n    content:\n      scripts: {dev: next}\n"
        )
        patch = spec.patches[0]
        assert patch.operation is PatchOperation.MERGE
        assert '"dev": "next"' in patch.content

    @pytest.mark.parametrize(
        ("document", "fragment"),
        [
            ("name: no id\n", "missing 'id'"),
            ("id: s\nparams: [{name: '1bad'}]\n", "invalid parameter name"),
            ("id: s\nparams: [a, a]\n", "declared more than once"),
            ("id: s\nparams: [{name: a, type: colour}]\n", "unknown type"),
            ("id: s\nparams: [{name: a, type: enum}]\n", "declares no options"),
            ("id: s\nparams: [{name: a, pattern: '('}]\n", "invalid pattern"),
            ("id: s\nfiles: [{path: a.txt}]\n", "has no template"),
            ("id: s\npatches: [{path: a, op: explode, content: x}]\n", "unknown op"),
            ("id: s\npatches: [{path: a, op: replace, search: x}]\n", "needs 'search' and 'replace'"),
            ("id: s\nfiles: [{path: a.txt, template: '{{nope}}'}]\n", "undeclared parameter"),
            ("id: s\nfiles: [{path: a.txt, template: '{{#if x}}'}]\n", "unclosed"),
            ("id: s\nparams: [{name: a, min: low}]\n", "must be a number"),
        ],
    )
    def test_invalid_documents(self, document: str, fragment: str) -> None:
        with pytest.raises(SpecParseError) as exc_info:
            SpikeLoader().load_string(document)
        assert fragment in exc_info.value.context["detail"]

    def test_unparseable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("id: [unclosed\n")

        with pytest.raises(SpecParseError) as exc_info:
            SpikeLoader().load(path)
        assert exc_info.value.code is ErrorCode.SPEC_PARSE_ERROR

    def test_non_mapping_document(self) -> None:
        with pytest.raises(SpecParseError):
            SpikeLoader().load_string("- just\n- a list\n")

    def test_round_trip_through_to_dict(self, store: StaticSpecStore) -> None:
        spec = store.get("jwt-auth-express")
        again = SpikeLoader().parse(spec.to_dict(), source=spec.source)
        assert again == spec

    def test_iter_spec_files_filters_suffixes(self, tmp_path: Path) -> None:
        for name in ("b.yaml", "a.json", "notes.md", "c.yml"):
            (tmp_path / name).write_text("id: x\n")
        assert [p.name for p in iter_spec_files(tmp_path)] == ["a.json", "b.yaml", "c.yml"]
        assert iter_spec_files(tmp_path / "missing") == []


class TestStaticSpecStore:
    """Directory loading, skipping and shadowing."""

    def test_builtin_spikes(self, store: StaticSpecStore) -> None:
        assert store.ids == BUILTIN_IDS
        assert list(store) == list(BUILTIN_IDS)
        assert "nextjs-minimal" in store

    def test_every_builtin_loads(self) -> None:
        loader = SpikeLoader()
        for path in iter_spec_files(BUILTIN_DIR):
            assert loader.load(path).id == path.stem

    def test_extra_directory(self, spec_dir: Path) -> None:
        store = StaticSpecStore.from_config([str(spec_dir)])
        assert "custom-greeter" in store
        assert len(store) == len(BUILTIN_IDS) + 1

    def test_without_builtin(self, spec_dir: Path) -> None:
        store = StaticSpecStore.from_config([str(spec_dir)], include_builtin=False)
        assert store.ids == ("custom-greeter",)

    def test_broken_document_is_skipped(self, spec_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
        (spec_dir / "broken.yaml").write_text("id: broken\nfiles: [{path: a}]\n")

        with caplog.at_level(logging.WARNING, logger="spikeforge.spikes.store"):
            store = StaticSpecStore.load([spec_dir])

        assert store.ids == ("custom-greeter",)
        assert "Skipping spike document" in caplog.text

    def test_first_definition_wins(self, spec_dir: Path, tmp_path: Path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        (other / "greeter.yaml").write_text(
            "id: custom-greeter\nname: Impostor\nfiles: [{path: b.txt, template: x}]\n"
        )

        store = StaticSpecStore.load([spec_dir, other])

        assert store.get("custom-greeter").name == "Custom greeter"

    def test_missing_directory_is_ignored(self, tmp_path: Path) -> None:
        assert len(StaticSpecStore.load([tmp_path / "nowhere"])) == 0

    def test_store_is_read_only(self, store: StaticSpecStore) -> None:
        with pytest.raises(TypeError):
            store.specs["x"] = store.get("docker-node")  # type: ignore[index]
