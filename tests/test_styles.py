"""Tests for semantic style keys and style value validation."""

from __future__ import annotations

from typing import Any

import pytest

from chart_translator.errors import InvalidStyleValue, UnknownStyleKey
from chart_translator.ir import ChartSpec
from chart_translator.schema import SchemaModel
from chart_translator.styles import UNSET, StyleKey, normalize_style_value, parse_style_key

pytestmark = pytest.mark.unit


def _histogram(schema: SchemaModel) -> ChartSpec:
    spec = ChartSpec.create("histogram", schema)
    spec.bind("x", "Income")
    return spec


def test_parse_style_key_accepts_semantic_names() -> None:
    """Resolve semantic names (not Python member names) to StyleKeys."""

    assert parse_style_key("fillColor") is StyleKey.fill_color
    assert parse_style_key(StyleKey.axis_limit_x) is StyleKey.axis_limit_x
    with pytest.raises(UnknownStyleKey) as excinfo:
        parse_style_key("fill_color")
    assert excinfo.value.key == "fill_color"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("opacity", 1.5),
        ("opacity", True),
        ("fillColor", 12),
        ("fillColor", "#12345"),
        ("pointShape", "star"),
        ("lineStyle", "wavy"),
        ("binCount", 2.5),
        ("binWidth", 0),
        ("legendVisible", "yes"),
        ("axisLimitX", (10, 0)),
        ("axisLimitY", (0, "100")),
        ("axisLimitY", (0, 1, 2)),
        ("axisLimitX", (float("nan"), 1)),
        ("axisLimitY", (0, float("inf"))),
        ("lineWidth", float("nan")),
        ("opacity", float("nan")),
        ("binWidth", float("inf")),
        ("groupLayout", "overlap"),
        ("themeTone", "neon"),
        ("title", None),
    ],
)
def test_set_style_rejects_invalid_values(survey_schema: SchemaModel, key: str, value: Any) -> None:
    """Reject values that do not match the key's expected shape at construction time."""

    spec = _histogram(survey_schema)
    with pytest.raises(InvalidStyleValue) as excinfo:
        spec.set_style(key, value)
    assert excinfo.value.key == key
    assert spec.style_value(key) is UNSET


def test_set_style_rejects_unknown_keys(survey_schema: SchemaModel) -> None:
    """Reject style keys outside the closed set."""

    spec = _histogram(survey_schema)
    with pytest.raises(UnknownStyleKey):
        spec.set_style("gridLines", True)


def test_axis_limits_are_normalized_to_tuples() -> None:
    """Store ordered pairs as tuples regardless of the input sequence type."""

    assert normalize_style_value(StyleKey.axis_limit_x, [0, 5]) == (0, 5)
    assert normalize_style_value(StyleKey.fill_color, " skyblue ") == "skyblue"


def test_bin_width_and_bin_count_are_mutually_exclusive(survey_schema: SchemaModel) -> None:
    """Setting one binning key clears the other."""

    spec = _histogram(survey_schema)
    spec.set_style("binWidth", 5)
    spec.set_style("binCount", 20)

    assert spec.style_value("binWidth") is UNSET
    assert spec.style_value("binCount") == 20

    spec.set_style("binWidth", 2.5)
    assert spec.style_value("binCount") is UNSET
    assert dict(spec.style) == {StyleKey.bin_width: 2.5}


def test_unset_clears_a_style_key(survey_schema: SchemaModel) -> None:
    """UNSET removes a key; clearing an absent key is a no-op."""

    spec = _histogram(survey_schema)
    spec.set_style("title", "Income")
    spec.set_style("title", UNSET)
    spec.clear_style("opacity")

    assert spec.style == ()
    assert not UNSET
    assert repr(UNSET) == "UNSET"


def test_style_is_reported_in_canonical_order(survey_schema: SchemaModel) -> None:
    """Report style keys in canonical order regardless of insertion order."""

    spec = _histogram(survey_schema)
    spec.set_style("binCount", 30)
    spec.set_style("fillColor", "grey")
    spec.set_style("title", "Income")

    assert [key for key, _ in spec.style] == [StyleKey.title, StyleKey.fill_color, StyleKey.bin_count]
