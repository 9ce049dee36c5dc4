"""Named parameter writers referenced by the capability tables.

Each capability table row names a writer (`write: scalar`) plus its options
(`param: main`). Writers are pure: they map a semantic value to zero or more
`(param, value)` pairs and never touch shared state. Writers are grouped by
the slot they fill in a table row:

- style writers: `(value) -> pairs`
- rewriters: `(value, spec) -> Rewrite` (structural style rewrites)
- column writers: `(column_name, spec) -> pairs` (column bindings)
- selector writers: `(spec) -> pairs` (chart-type selection)
- facet writers: `(column_name, spec) -> pairs`
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal

from .errors import CapabilityTableError

if TYPE_CHECKING:
    from .ir import ChartSpec

logger = logging.getLogger(__name__)

Pairs = tuple[tuple[str, Any], ...]
ParamWriter = Callable[[Any], Pairs]
ColumnWriter = Callable[[str, "ChartSpec"], Pairs]
SelectorWriter = Callable[["ChartSpec"], Pairs]
WriterFamily = Literal["style", "rewrite", "column", "selector", "facet"]


@dataclass(frozen=True, slots=True)
class Rewrite:
    """Outcome of a structural style rewrite.

    Args:
        fragments: Parameters to merge into the output document (may be empty).
        explanation: Plain-language description of how the option was realized.
    """

    fragments: Pairs
    explanation: str


Rewriter = Callable[[Any, "ChartSpec"], Rewrite]

DEFAULT_GROUP_ROLES: Final[tuple[str, ...]] = ("group", "fill")


def grouping_column(spec: ChartSpec, roles: Sequence[str], *, exclude: str | None = None) -> str | None:
    """Return the first column bound to one of `roles` that differs from `exclude`."""

    for role in roles:
        name = spec.column_for(role)
        if name is not None and name != exclude:
            return name
    return None


# Style writers


def scalar(*, param: str) -> ParamWriter:
    def write(value: Any) -> Pairs:
        return ((param, value),)

    return write


def pair(*, param: str) -> ParamWriter:
    def write(value: Any) -> Pairs:
        lower, upper = value
        return ((param, (lower, upper)),)

    return write


def nested(*, param: str, field: str) -> ParamWriter:
    def write(value: Any) -> Pairs:
        return ((param, {field: value}),)

    return write


def mapped(*, param: str, values: Mapping[Any, Any]) -> ParamWriter:
    """Translate a closed vocabulary through a lookup table."""

    table = dict(values)

    def write(value: Any) -> Pairs:
        if value not in table:
            logger.debug("No %r mapping for value %r; writing nothing.", param, value)
            return ()
        return ((param, table[value]),)

    return write


def template(*, param: str, pattern: str) -> ParamWriter:
    def write(value: Any) -> Pairs:
        return ((param, pattern.format(value=value)),)

    return write


def legend_position(*, param: str, hidden: str = "none", shown: str = "right") -> ParamWriter:
    def write(value: Any) -> Pairs:
        return ((param, shown if value else hidden),)

    return write


def no_params() -> ParamWriter:
    """Writer for options the grammar cannot express."""

    def write(value: Any) -> Pairs:
        return ()

    return write


# Structural style rewrites


def grouped_bars(
    *,
    param: str = "beside",
    scale_param: str = "height.scale",
    by: Sequence[str] = DEFAULT_GROUP_ROLES,
) -> Rewriter:
    """Realize a group layout as a grouped height matrix drawn in one call.

    The grouping column is resolved the same way `counted_or_labels` and
    `grouped_vector` resolve `by`, so the explanation always names the column
    the height parameter is split by.
    """

    def rewrite(value: Any, spec: ChartSpec) -> Rewrite:
        group = grouping_column(spec, by, exclude=spec.column_for("x"))
        if group is None:
            return Rewrite(
                fragments=(),
                explanation=f"groupLayout {value!r} has no effect without a grouping column bound.",
            )
        if value == "dodge":
            return Rewrite(
                fragments=((param, True),),
                explanation=f"groupLayout 'dodge' drawn as side-by-side bars per level of {group!r} ({param}=TRUE).",
            )
        if value == "stack":
            return Rewrite(
                fragments=((param, False),),
                explanation=f"groupLayout 'stack' drawn as stacked segments per level of {group!r} ({param}=FALSE).",
            )
        return Rewrite(
            fragments=((param, False), (scale_param, "proportion")),
            explanation=(
                f"groupLayout 'fill' drawn as stacked segments of per-category proportions of {group!r}; "
                "counts are converted to proportions before drawing."
            ),
        )

    return rewrite


# Column writers


def column(*, param: str) -> ColumnWriter:
    """Map a column by name (layered aesthetic mappings)."""

    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, name),)

    return write


def vector(*, param: str) -> ColumnWriter:
    """Pass the column's values as a vector argument."""

    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, {"column": name}),)

    return write


def counted_or_labels(*, param: str, labels_param: str, by: Sequence[str] = ()) -> ColumnWriter:
    """Categories become labels when values are bound, otherwise counted heights.

    Counted heights are split by the first column bound to a role in `by`.
    """

    def write(name: str, spec: ChartSpec) -> Pairs:
        if spec.has_role("y"):
            return ((labels_param, {"column": name}),)
        height: dict[str, Any] = {"column": name, "stat": "count"}
        group = grouping_column(spec, by, exclude=name)
        if group is not None:
            height["by"] = group
        return ((param, height),)

    return write


def grouped_vector(*, param: str, by: Sequence[str] = ()) -> ColumnWriter:
    """Pass the column's values as a vector, split by a grouping column when one is bound."""

    def write(name: str, spec: ChartSpec) -> Pairs:
        values: dict[str, Any] = {"column": name}
        group = grouping_column(spec, by, exclude=spec.column_for("x"))
        if group is not None:
            values["by"] = group
        return ((param, values),)

    return write


def formula(*, param: str, rhs: str) -> ColumnWriter:
    """Combine this column with another role's column into `lhs ~ rhs`."""

    def write(name: str, spec: ChartSpec) -> Pairs:
        other = spec.column_for(rhs)
        if other is None:
            return ((param, {"column": name}),)
        return ((param, f"{name} ~ {other}"),)

    return write


def consumed(*, into: str) -> ColumnWriter:
    """For roles folded into another role's parameter.

    Writes nothing itself; the engine checks that `into` actually carries the
    column and reports the binding as dropped when it does not.
    """

    def write(name: str, spec: ChartSpec) -> Pairs:
        logger.debug("Column %r expected in the %r parameter.", name, into)
        return ()

    return write


def mentions_column(value: Any, name: str) -> bool:
    """Return True when a written parameter value refers to column `name`."""

    if isinstance(value, Mapping):
        return any(mentions_column(item, name) for item in value.values())
    if isinstance(value, (tuple, list)):
        return any(mentions_column(item, name) for item in value)
    if isinstance(value, str):
        return value == name or name in (side.strip() for side in value.split("~"))
    return False


def palette(*, param: str) -> ColumnWriter:
    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, {"palette_by": name}),)

    return write


def factor_codes(*, param: str) -> ColumnWriter:
    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, {"column": name, "codes": "factor"}),)

    return write


def overlay(*, param: str = "layers", call: str, color_param: str | None = None) -> ColumnWriter:
    """Split a single call into one overlaid draw call per level of the column."""

    def write(name: str, spec: ChartSpec) -> Pairs:
        layer: dict[str, Any] = {"call": call, "split_by": name, "add": True}
        if color_param is not None:
            layer[color_param] = {"palette_by": name}
        return ((param, (layer,)),)

    return write


# Selector writers


def fixed(*, params: Mapping[str, Any]) -> SelectorWriter:
    frozen = tuple(params.items())

    def write(spec: ChartSpec) -> Pairs:
        return frozen

    return write


def bar_geom(*, param: str, counted: str, valued: str) -> SelectorWriter:
    """Counted bars when only categories are bound, valued bars when y is bound."""

    def write(spec: ChartSpec) -> Pairs:
        return ((param, valued if spec.has_role("y") else counted),)

    return write


# Facet writers


def facet_wrap(*, param: str) -> ColumnWriter:
    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, f"~{name}"),)

    return write


def panel_grid(*, param: str = "panels", layout: str = "mfrow") -> ColumnWriter:
    def write(name: str, spec: ChartSpec) -> Pairs:
        return ((param, {"split_by": name, "layout": layout}),)

    return write


WRITERS: Final[dict[WriterFamily, dict[str, Callable[..., Any]]]] = {
    "style": {
        "scalar": scalar,
        "pair": pair,
        "nested": nested,
        "mapped": mapped,
        "template": template,
        "legend_position": legend_position,
        "none": no_params,
    },
    "rewrite": {
        "grouped_bars": grouped_bars,
    },
    "column": {
        "column": column,
        "vector": vector,
        "counted_or_labels": counted_or_labels,
        "grouped_vector": grouped_vector,
        "formula": formula,
        "consumed": consumed,
        "palette": palette,
        "factor_codes": factor_codes,
        "overlay": overlay,
    },
    "selector": {
        "fixed": fixed,
        "bar_geom": bar_geom,
    },
    "facet": {
        "facet_wrap": facet_wrap,
        "panel_grid": panel_grid,
    },
}


def build_writer(family: WriterFamily, name: str, options: Mapping[str, Any], *, where: str) -> Callable[..., Any]:
    """Instantiate a named writer from a table row.

    Args:
        family: Writer slot the row fills.
        name: Writer name from the row's `write` field.
        options: Remaining row options passed to the writer factory.
        where: Row location used in error messages.

    Raises:
        CapabilityTableError: When the writer is unknown or its options are invalid.
    """

    factory = WRITERS[family].get(name)
    if factory is None:
        raise CapabilityTableError(f"{where}: unknown {family} writer {name!r}; known: {sorted(WRITERS[family])}.")
    try:
        return factory(**options)
    except TypeError as exc:
        raise CapabilityTableError(f"{where}: invalid options for writer {name!r}: {exc}") from None
