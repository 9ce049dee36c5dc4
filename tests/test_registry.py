"""Tests for the capability registry and its table parsing rules."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from chart_translator.errors import CapabilityTableError, IncompleteCapabilityTable, UnknownGrammar
from chart_translator.ir import BindingRole, ChartKind
from chart_translator.registry import DEFAULT_REGISTRY, CapabilityRegistry, parse_table
from chart_translator.styles import MANDATORY_KEYS, StyleKey

pytestmark = pytest.mark.unit


def _minimal_payload(grammar: str = "mini") -> dict[str, Any]:
    return {
        "grammar": grammar,
        "description": "Smallest complete table.",
        "defaults": {
            "styles": {
                "title": {"write": "scalar", "param": "title"},
                "xLabel": {"write": "scalar", "param": "x_title"},
                "yLabel": {"write": "scalar", "param": "y_title"},
            }
        },
        "kinds": {kind.value: {"select": {"write": "fixed", "params": {"mark": kind.value}}} for kind in ChartKind},
    }


def test_default_registry_ships_both_grammars() -> None:
    """Register the imperative and layered grammars at import time."""

    assert DEFAULT_REGISTRY.grammars == ("imperative", "layered")
    with pytest.raises(UnknownGrammar) as excinfo:
        DEFAULT_REGISTRY.table("vega")
    assert excinfo.value.known == ("imperative", "layered")


@pytest.mark.parametrize("grammar", ["imperative", "layered"])
@pytest.mark.parametrize("kind", list(ChartKind))
def test_every_grammar_and_kind_defines_mandatory_keys(grammar: str, kind: ChartKind) -> None:
    """title, xLabel and yLabel have an entry for every (grammar, kind)."""

    for key in MANDATORY_KEYS:
        entry = DEFAULT_REGISTRY.lookup(grammar, kind, key)
        assert entry is not None
        assert entry.target_param("label") != ()


def test_color_duality_is_encoded_per_kind() -> None:
    """Imperative `col` fills bars but strokes points; layered keeps fill and colour apart."""

    bar_fill = DEFAULT_REGISTRY.lookup("imperative", ChartKind.bar, StyleKey.fill_color)
    scatter_fill = DEFAULT_REGISTRY.lookup("imperative", ChartKind.scatter, StyleKey.fill_color)
    scatter_outline = DEFAULT_REGISTRY.lookup("imperative", ChartKind.scatter, StyleKey.outline_color)
    layered_outline = DEFAULT_REGISTRY.lookup("layered", ChartKind.bar, StyleKey.outline_color)
    assert bar_fill is not None and scatter_fill is not None
    assert scatter_outline is not None and layered_outline is not None

    assert bar_fill.target_param("red") == (("col", "red"),)
    assert scatter_fill.target_param("red") == (("bg", "red"),)
    assert scatter_outline.target_param("black") == (("col", "black"),)
    assert layered_outline.target_param("black") == (("geom.colour", "black"),)
    assert DEFAULT_REGISTRY.lookup("imperative", ChartKind.line, StyleKey.fill_color) is None


def test_cropping_modes_differ_between_grammars() -> None:
    """Axis limits crop visually in one grammar and destructively in the other."""

    assert DEFAULT_REGISTRY.cropping_modes(ChartKind.bar, StyleKey.axis_limit_x) == {
        "imperative": "visual",
        "layered": "destructive",
    }
    assert DEFAULT_REGISTRY.cropping_modes(ChartKind.pie, StyleKey.axis_limit_y) == {}


def test_role_entries_distinguish_column_and_literal_writers() -> None:
    """Imperative lines take a literal outline colour but cannot map one from a column."""

    imperative = DEFAULT_REGISTRY.lookup_role("imperative", ChartKind.line, BindingRole.outline)
    layered = DEFAULT_REGISTRY.lookup_role("layered", ChartKind.line, BindingRole.outline)
    assert imperative is not None and layered is not None

    assert imperative.column_writer is None
    assert imperative.literal_writer is not None
    assert imperative.literal_writer("red") == (("col", "red"),)
    assert layered.column_writer is not None
    assert DEFAULT_REGISTRY.lookup_role("imperative", ChartKind.bar, BindingRole.size) is None


@pytest.mark.parametrize(("kind", "target"), [(ChartKind.bar, "height"), (ChartKind.boxplot, "formula")])
def test_consumed_roles_name_the_parameter_that_carries_them(kind: ChartKind, target: str) -> None:
    """Imperative group columns write nothing themselves and record where they land."""

    entry = DEFAULT_REGISTRY.lookup_role("imperative", kind, BindingRole.group)
    assert entry is not None

    assert entry.consumed_into == target
    assert entry.column_writer is not None
    assert entry.column_writer("Region", None) == ()  # type: ignore[arg-type]


def test_facets_are_disallowed_for_pie_and_imperative_scatter() -> None:
    """Encode which kinds each grammar can facet."""

    assert DEFAULT_REGISTRY.chart_entry("imperative", ChartKind.scatter).facet is None
    assert DEFAULT_REGISTRY.chart_entry("layered", ChartKind.scatter).facet is not None
    assert DEFAULT_REGISTRY.chart_entry("imperative", ChartKind.pie).facet is None
    assert DEFAULT_REGISTRY.chart_entry("layered", ChartKind.pie).facet is None


def test_coverage_reports_gaps_and_structural_rewrites() -> None:
    """Summarize unsupported keys, structural rewrites and facet support per kind."""

    report = DEFAULT_REGISTRY.coverage()

    imperative_bar = report["imperative"]["kinds"]["bar"]
    assert imperative_bar["required_roles"] == ["x"]
    assert imperative_bar["unsupported_style_keys"] == ["opacity", "themeTone"]
    assert imperative_bar["structural"] == ["groupLayout"]
    assert imperative_bar["facet"] is True

    assert report["imperative"]["kinds"]["histogram"]["structural"] == ["fill"]
    assert report["imperative"]["kinds"]["line"]["structural"] == ["group"]
    assert report["imperative"]["kinds"]["scatter"]["facet"] is False

    for kind in ChartKind:
        assert report["layered"]["kinds"][kind.value]["unsupported_style_keys"] == []
    assert report["layered"]["kinds"]["pie"]["facet"] is False


def test_parse_table_builds_a_minimal_registry() -> None:
    """A table with a selector per kind and the mandatory keys is complete."""

    registry = CapabilityRegistry([parse_table(_minimal_payload())])

    assert registry.grammars == ("mini",)
    assert registry.table("mini").description == "Smallest complete table."
    entry = registry.lookup("mini", ChartKind.line, StyleKey.title)
    assert entry is not None
    assert entry.target_param("Trend") == (("title", "Trend"),)
    assert registry.chart_entry("mini", ChartKind.pie).selector is not None


def test_missing_mandatory_key_fails_registry_construction() -> None:
    """A null row removes a default; removing yLabel makes the table incomplete."""

    payload = _minimal_payload()
    payload["kinds"]["pie"]["styles"] = {"yLabel": None}

    with pytest.raises(IncompleteCapabilityTable) as excinfo:
        CapabilityRegistry([parse_table(payload)])
    assert excinfo.value.grammar == "mini"
    assert excinfo.value.kind == "pie"
    assert excinfo.value.missing == ("yLabel",)


def test_missing_chart_kind_fails_registry_construction() -> None:
    """Every table must define every chart kind."""

    payload = _minimal_payload()
    del payload["kinds"]["scatter"]

    with pytest.raises(CapabilityTableError, match="scatter"):
        CapabilityRegistry([parse_table(payload)])


def test_registry_rejects_duplicate_and_empty_table_sets() -> None:
    """A grammar registers once, and a registry needs at least one grammar."""

    table = parse_table(_minimal_payload())
    with pytest.raises(CapabilityTableError, match="Duplicate"):
        CapabilityRegistry([table, table])
    with pytest.raises(CapabilityTableError):
        CapabilityRegistry([])


@pytest.mark.parametrize(
    ("path", "row"),
    [
        (("styles", "title"), {"write": "shout", "param": "title"}),
        (("styles", "title"), {"write": "scalar"}),
        (("styles", "title"), {"param": "title"}),
        (("styles", "colour"), {"write": "scalar", "param": "col"}),
        (("styles", "axisLimitX"), {"write": "pair", "param": "xlim", "cropping": "partial"}),
        (("roles", "colour"), {"column": {"write": "column", "param": "c"}}),
        (("roles", "x"), {"note": "no writers"}),
        (("roles", "x"), {"column": "aes.x"}),
        (("select",), None),
    ],
)
def test_parse_table_rejects_malformed_rows(path: tuple[str, ...], row: Any) -> None:
    """Unknown writers, keys or roles and bad writer options fail at load time."""

    payload = copy.deepcopy(_minimal_payload())
    target = payload["kinds"]["bar"]
    if len(path) == 1:
        target[path[0]] = row
    else:
        target.setdefault(path[0], {})[path[1]] = row

    with pytest.raises(CapabilityTableError):
        parse_table(payload)


@pytest.mark.parametrize(
    "payload",
    [
        {"kinds": {}},
        {"grammar": "", "kinds": {}},
        {"grammar": "mini", "kinds": []},
        {"grammar": "mini", "kinds": {"donut": {}}},
    ],
)
def test_parse_table_rejects_malformed_headers(payload: dict[str, Any]) -> None:
    """Require a grammar id and a mapping of known chart kinds."""

    with pytest.raises(CapabilityTableError):
        parse_table(payload)
