"""Text helpers, schema generation, the variant registry and the CLI."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from tidycodec.ast import (
    EXPRESSIONS,
    STAGES,
    ArgKind,
    ArgSpec,
    MalformedEncodingError,
    Pipeline,
    Program,
    RegistryError,
    VariantRegistry,
    ast_summary,
    canonical_json,
    decode_any,
    dumps,
    encoded_form_schema,
    loads,
    node_depth,
    node_size,
    render_expression,
    stable_hash,
)
from tidycodec.ast.expr import ARITHMETIC, Binary, Column, Constant, Ternary, Unary
from tidycodec.ast.stage import TRANSFORM, Filter, Histogram, Join, Read, Sort
from tidycodec.runner import main


def _condition() -> Ternary:
    return Ternary(
        "ifElse",
        Unary("not", Constant(True)),
        Binary("power", Constant(1), Constant(2)),
        Constant(0),
    )


def _program() -> Program:
    return Program.of(
        Pipeline.of("first", Read("a.csv"), Filter(_condition())),
        Pipeline.of("second", Join("first", "id", "other", "id"), Sort(["id"], False)),
    )


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


class TestCodec:
    def test_dumps_loads_round_trip(self):
        program = _program()
        assert loads(dumps(program)) == program

    def test_loads_dispatches_on_kind(self):
        assert loads('["@nullary", "column", "x"]') == Column("x")
        assert loads('["@transform", "read", "x.csv"]') == Read("x.csv")
        assert loads('["@pipeline", "p"]') == Pipeline("p")
        assert loads('["@program"]') == Program()

    def test_loads_rejects_invalid_json(self):
        with pytest.raises(MalformedEncodingError) as info:
            loads("[not json")
        assert info.value.code == "not_array"

    def test_decode_any_unknown_kind(self):
        with pytest.raises(MalformedEncodingError) as info:
            decode_any(["@whoops", "whoops"])
        assert info.value.code == "unknown_kind"
        with pytest.raises(MalformedEncodingError):
            decode_any([])

    def test_datetime_survives_text(self):
        stamp = pd.Timestamp("1983-12-02 07:55:19.123456789")
        assert loads(dumps(Constant(stamp))) == Constant(stamp)

    def test_canonical_json_is_compact(self):
        text = canonical_json(Histogram("age", 17))
        assert text == '["@plot","histogram","age",17]'

    def test_stable_hash(self):
        digest = stable_hash(_program())
        assert len(digest) == 16
        assert digest == stable_hash(loads(dumps(_program())))
        assert digest != stable_hash(Program.of(*reversed(_program().pipelines)))

    def test_render_expression(self):
        assert render_expression(_condition()) == (
            "ifElse(not(constant(true)), power(constant(1), constant(2)), constant(0))"
        )
        assert render_expression(Column("red")) == "column(red)"
        assert render_expression(Constant("a")) == 'constant("a")'

    def test_size_and_depth(self):
        assert node_size(_condition()) == 7
        assert node_depth(_condition()) == 3
        assert node_depth(Constant(1)) == 1

    def test_summary(self):
        assert ast_summary(_condition()).endswith("[nodes=7, depth=3]")
        summary = ast_summary(_program())
        assert summary.splitlines()[0] == "program [pipelines=2]"
        assert "second: join(\"first\", \"id\", \"other\", \"id\") | sort([id], false)" in summary


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestSchema:
    def test_covers_every_variant(self):
        schema = encoded_form_schema()
        defs = schema["$defs"]
        assert len(defs["expression"]["oneOf"]) == len(EXPRESSIONS) == 35
        assert len(defs["stage"]["oneOf"]) == len(STAGES) == 23
        assert set(defs) == {"expression", "stage", "pipeline", "program"}

    def test_sort_entry(self):
        stages = encoded_form_schema()["$defs"]["stage"]["oneOf"]
        sort = next(item for item in stages if item["prefixItems"][1] == {"const": "sort"})
        assert sort["minItems"] == 3
        assert sort["maxItems"] == 4
        assert sort["prefixItems"][0] == {"const": "@transform"}
        assert sort["prefixItems"][3] == {"type": "boolean"}

    def test_expression_slots_reference_expression(self):
        stages = encoded_form_schema()["$defs"]["stage"]["oneOf"]
        filter_ = next(item for item in stages if item["prefixItems"][1] == {"const": "filter"})
        assert filter_["prefixItems"][2] == {"$ref": "#/$defs/expression"}

    def test_is_json_serializable(self):
        json.dumps(encoded_form_schema())


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def _registry(self) -> VariantRegistry:
        return VariantRegistry("demo", ["@one", "@two"])

    def test_register_and_decode(self):
        registry = self._registry()
        registry.register("@one", "pair", [ArgSpec("a", ArgKind.TEXT)], lambda a: ("pair", a))
        assert registry.decode(["@one", "pair", "x"]) == ("pair", "x")
        assert registry.names("@one") == ["pair"]
        assert registry.names("@two") == []

    def test_duplicate_registration(self):
        registry = self._registry()
        registry.register("@one", "pair", [], tuple)
        with pytest.raises(RegistryError):
            registry.register("@one", "pair", [], tuple)

    def test_name_is_unique_across_kinds(self):
        registry = self._registry()
        registry.register("@one", "pair", [], tuple)
        with pytest.raises(RegistryError):
            registry.register("@two", "pair", [], tuple)
        assert len(registry) == 1
        assert registry.find("pair").kind == "@one"

    def test_unknown_kind(self):
        with pytest.raises(RegistryError):
            self._registry().register("@three", "pair", [], tuple)

    def test_optional_arguments_must_trail(self):
        args = [ArgSpec("a", ArgKind.TEXT, optional=True), ArgSpec("b", ArgKind.TEXT)]
        with pytest.raises(RegistryError):
            self._registry().register("@one", "pair", args, tuple)

    def test_expression_slots_need_a_bound_registry(self):
        with pytest.raises(RegistryError):
            self._registry().register("@one", "wrap", [ArgSpec("x", ArgKind.EXPR)], tuple)

    def test_sealed(self):
        registry = self._registry()
        registry.seal()
        with pytest.raises(RegistryError):
            registry.register("@one", "pair", [], tuple)

    def test_builtin_registries_are_sealed(self):
        assert EXPRESSIONS.sealed
        assert STAGES.sealed
        with pytest.raises(RegistryError):
            EXPRESSIONS.register(ARITHMETIC, "xor", [], tuple)

    def test_lookup(self):
        spec = STAGES.get(TRANSFORM, "sort")
        assert (spec.min_arity, spec.max_arity) == (1, 2)
        assert "power" in EXPRESSIONS.names(ARITHMETIC)
        assert EXPRESSIONS.find("power").kind == "@arithmetic"
        with pytest.raises(KeyError):
            STAGES.get(TRANSFORM, "power")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestRunner:
    def test_canonical(self, tmp_path, capsys):
        source = tmp_path / "program.json"
        source.write_text(json.dumps(_program().to_json(), indent=2), encoding="utf-8")
        assert main([str(source), "--canonical"]) == 0
        assert capsys.readouterr().out.strip() == canonical_json(_program())

    def test_summary_is_default(self, tmp_path, capsys):
        source = tmp_path / "program.json"
        source.write_text(dumps(_program()), encoding="utf-8")
        assert main([str(source)]) == 0
        assert capsys.readouterr().out.startswith("program [pipelines=2]")

    def test_malformed_input(self, tmp_path, capsys):
        source = tmp_path / "bad.json"
        source.write_text('["@program", ["@pipeline", "p", ["@whoops"]]]', encoding="utf-8")
        assert main([str(source)]) == 1
        assert "unknown_kind at root[1][2]" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "absent.json")]) == 1
        assert "error: cannot read" in capsys.readouterr().err

    def test_undecodable_file(self, tmp_path, capsys):
        source = tmp_path / "latin1.json"
        source.write_bytes(b"[\"@program\", \"\xff\"]")
        assert main([str(source)]) == 1
        assert "error: cannot read" in capsys.readouterr().err

    def test_max_depth_option(self, tmp_path, capsys):
        source = tmp_path / "program.json"
        source.write_text(dumps(_program()), encoding="utf-8")
        assert main([str(source), "--max-depth", "3"]) == 1
        assert "max_depth" in capsys.readouterr().err

    def test_schema(self, capsys):
        assert main(["--schema"]) == 0
        schema = json.loads(capsys.readouterr().out)
        assert schema["title"] == "TidyBlocksEncodedForm"
