"""Tests for parameter resolution and rendering."""

import pytest

from spikeforge.foundation.errors import ErrorCode, TemplateError, ValidationError
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.loader import SpikeLoader
from spikeforge.spikes.renderer import (
    coerce,
    normalize_output_path,
    render,
    resolve_params,
)
from spikeforge.spikes.types import Param, ParamType, PatchOperation


def _spec(document: str):
    return SpikeLoader().load_string(document)


class TestResolveParams:
    """Caller value, then default, then a required-parameter error."""

    def test_defaults_fill_in(self, catalog: SpikeCatalog) -> None:
        resolved = resolve_params(catalog.require("express-minimal"), {})
        assert resolved == {"app_name": "express-app", "port": 3000}

    def test_caller_value_wins(self, catalog: SpikeCatalog) -> None:
        resolved = resolve_params(catalog.require("nextjs-minimal"), {"app_name": "demo", "port": "4000"})
        assert resolved == {"app_name": "demo", "port": 4000}

    def test_missing_required(self, catalog: SpikeCatalog) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_params(catalog.require("nextjs-minimal"), {})
        assert exc_info.value.code is ErrorCode.PARAM_MISSING
        assert exc_info.value.context["param"] == "app_name"

    def test_unknown_param_rejected(self, catalog: SpikeCatalog) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_params(catalog.require("express-minimal"), {"colour": "red"})
        assert exc_info.value.code is ErrorCode.PARAM_UNKNOWN

    def test_all_violations_collected(self, catalog: SpikeCatalog) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_params(catalog.require("nextjs-minimal"), {"port": 70000, "extra": 1})
        violations = exc_info.value.context["violations"]
        assert {v["param"] for v in violations} == {"extra", "app_name", "port"}

    def test_optional_without_default_resolves_to_none(self) -> None:
        spec = _spec("id: s\nparams: [note]\nfiles: [{path: a.txt, template: '{{#if note}}x{{/if}}'}]\n")
        assert resolve_params(spec) == {"note": None}
        assert render(spec).files[0].content == ""

    @pytest.mark.parametrize(
        ("params", "rule"),
        [
            ({"app_name": "Bad Name"}, "pattern"),
            ({"app_name": "x" * 215}, "max"),
            ({"app_name": "ok", "port": 0}, "min"),
            ({"app_name": "ok", "port": "eighty"}, "type"),
        ],
    )
    def test_constraint_rules(self, catalog: SpikeCatalog, params: dict, rule: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_params(catalog.require("nextjs-minimal"), params)
        assert exc_info.value.code is ErrorCode.PARAM_INVALID
        assert exc_info.value.context["rule"] == rule

    def test_enum_options(self, catalog: SpikeCatalog) -> None:
        with pytest.raises(ValidationError) as exc_info:
            resolve_params(catalog.require("jwt-auth-express"), {"algorithm": "RS256"})
        assert exc_info.value.context["rule"] == "options"


class TestCoerce:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, True), ("yes", True), ("off", False), (0, False), ("1", True), ("", False)],
    )
    def test_boolean(self, raw: object, expected: bool) -> None:
        assert coerce(Param("b", type=ParamType.BOOLEAN), raw) is expected

    def test_boolean_rejects_noise(self) -> None:
        with pytest.raises(ValueError):
            coerce(Param("b", type=ParamType.BOOLEAN), "maybe")

    def test_number(self) -> None:
        param = Param("n", type=ParamType.NUMBER)
        assert coerce(param, "42") == 42
        assert coerce(param, " 2.5 ") == 2.5
        for bad in (True, "nan", "inf", "x"):
            with pytest.raises(ValueError):
                coerce(param, bad)

    def test_list_from_string_and_sequence(self) -> None:
        param = Param("l", type=ParamType.LIST)
        assert coerce(param, "a, b,,c ") == ("a", "b", "c")
        assert coerce(param, [18, " 20 "]) == ("18", "20")

    def test_string_rejects_containers(self) -> None:
        with pytest.raises(ValueError):
            coerce(Param("s"), {"a": 1})
        assert coerce(Param("s"), 7) == "7"


class TestRender:
    """Output files and patches."""

    def test_nextjs_minimal(self, catalog: SpikeCatalog) -> None:
        rendered = render(catalog.require("nextjs-minimal"), {"app_name": "demo", "port": "4000"})

        assert rendered.paths == (
            "package.json",
            "app/layout.tsx",
            "app/page.tsx",
            "app/api/health/route.ts",
            "tsconfig.json",
        )
        package = rendered.file("package.json").content
        assert '"name": "demo"' in package
        assert "next dev -p 4000" in package
        assert rendered.params == {"app_name": "demo", "port": 4000}

    def test_patches_are_rendered(self, catalog: SpikeCatalog) -> None:
        rendered = render(catalog.require("jwt-auth-express"), {"secret_env": "AUTH_KEY"})

        assert [p.operation for p in rendered.patches] == [PatchOperation.MERGE, PatchOperation.REPLACE]
        assert "process.env.AUTH_KEY" in rendered.file("src/auth/jwt.js").content
        replace = rendered.patches[1]
        assert replace.search == "app.use(express.json());"
        assert "install(app)" in replace.replace

    def test_each_in_custom_spike(self, spec_dir) -> None:
        spec = SpikeLoader().load(spec_dir / "custom-greeter.yaml")
        rendered = render(spec, {"greeting": "hello", "names": "ada, linus"})

        assert rendered.paths == ("src/hello.js",)
        assert rendered.files[0].content == "console.log('hello ada');\nconsole.log('hello linus');\n"

    def test_github_actions_matrix(self, catalog: SpikeCatalog) -> None:
        content = render(catalog.require("github-actions-ci"), {"node_versions": "18,20,22"}).files[0].content
        assert '"18", "20", "22"' in content
        assert "${{ matrix.node }}" in content

    def test_render_is_deterministic(self, catalog: SpikeCatalog) -> None:
        spec = catalog.require("fastapi-minimal")
        first = render(spec, {"enable_cors": "true"})
        second = render(spec, {"enable_cors": True})
        assert first == second
        assert first.digest() == second.digest()

    def test_duplicate_output_path(self) -> None:
        spec = _spec(
            "id: s\nparams: [a, b]\nfiles:\n"
            "  - {path: '{{a}}.txt', template: x}\n"
            "  - {path: '{{b}}.txt', template: y}\n"
        )
        with pytest.raises(ValidationError) as exc_info:
            render(spec, {"a": "same", "b": "same"})
        assert exc_info.value.code is ErrorCode.DUPLICATE_OUTPUT_PATH

    def test_unsafe_rendered_path(self) -> None:
        spec = _spec("id: s\nparams: [dir]\nfiles: [{path: '{{dir}}/x.txt', template: x}]\n")
        with pytest.raises(ValidationError) as exc_info:
            render(spec, {"dir": "../.."})
        assert exc_info.value.code is ErrorCode.UNSAFE_OUTPUT_PATH

    def test_each_over_scalar_param_fails(self) -> None:
        spec = _spec("id: s\nparams: [xs]\nfiles: [{path: a.txt, template: '{{#each xs}}{{/each}}'}]\n")
        with pytest.raises(TemplateError):
            render(spec, {"xs": "not-a-list-type"})

    def test_to_dict_without_content(self, catalog: SpikeCatalog) -> None:
        data = render(catalog.require("docker-node")).to_dict(include_content=False)
        assert all("content" not in f and f["size"] > 0 for f in data["files"])


class TestNormalizeOutputPath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("a/./b.txt", "a/b.txt"), ("a\\b.txt", "a/b.txt"), ("a/../b.txt", "b.txt"), (" x ", "x")],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_output_path("s", raw) == expected

    @pytest.mark.parametrize("raw", ["/etc/passwd", "C:/x", "..", "../x", "a/../../x", "", ".", "a\x00b"])
    def test_rejects(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            normalize_output_path("s", raw)
