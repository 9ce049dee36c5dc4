"""Capability registry: what each grammar can express, and how.

The registry is a static, data-driven table loaded from one YAML file per
grammar (`tables/<grammar>.yml`). Each row names a writer from `writers.py`
plus its options, so adding a grammar means adding a table rather than
branching code. The registry is read-only after construction and
`DEFAULT_REGISTRY` is built once at import time, before any translation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final, Literal, cast

import yaml

from .errors import CapabilityTableError, IncompleteCapabilityTable, UnknownGrammar
from .ir import BindingRole, ChartKind
from .settings import load_settings
from .styles import MANDATORY_KEYS, StyleKey
from .writers import ColumnWriter, ParamWriter, Rewriter, SelectorWriter, WriterFamily, build_writer, no_params

logger = logging.getLogger(__name__)

CroppingMode = Literal["visual", "destructive"]

_CROPPING_MODES: Final[frozenset[str]] = frozenset({"visual", "destructive"})
_RESERVED_ROW_KEYS: Final[frozenset[str]] = frozenset({"write", "rewrite", "structural", "note", "cropping"})


@dataclass(frozen=True, slots=True)
class CapabilityEntry:
    """One style row of a grammar's capability table.

    Args:
        grammar: Grammar id the row belongs to.
        chart_kind: Chart kind the row applies to.
        semantic_key: Semantic StyleKey the row translates.
        target_param: Writer producing concrete parameters; an empty result
            means the key has no effect in this grammar.
        requires_structural_rewrite: When True, `rewrite` is applied instead of
            `target_param` and the change is explained in a diagnostic.
        rewrite: Structural rewriter used when `requires_structural_rewrite`.
        cropping: For axis limits, whether out-of-range data is dropped before
            aggregation ("destructive") or only hidden from view ("visual").
        note: Explanation surfaced when the row writes nothing.
    """

    grammar: str
    chart_kind: ChartKind
    semantic_key: StyleKey
    target_param: ParamWriter
    requires_structural_rewrite: bool = False
    rewrite: Rewriter | None = None
    cropping: CroppingMode | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True)
class RoleEntry:
    """How a binding role maps onto a grammar's parameters.

    Args:
        column_writer: Writer for column bindings, or None when the grammar
            cannot map this role from a column.
        literal_writer: Writer for literal bindings, or None when unsupported.
        requires_structural_rewrite: Whether a column binding restructures the
            output (e.g. overlay layers) and must be explained.
        note: Explanation template; may reference `{column}`.
        consumed_into: Parameter expected to carry a consumed column (the
            `consumed` writer writes nothing itself).
    """

    grammar: str
    chart_kind: ChartKind
    role: BindingRole
    column_writer: ColumnWriter | None
    literal_writer: ParamWriter | None
    requires_structural_rewrite: bool = False
    note: str | None = None
    consumed_into: str | None = None


@dataclass(frozen=True, slots=True)
class FacetEntry:
    """The grammar's faceting construct for one chart kind."""

    grammar: str
    chart_kind: ChartKind
    writer: ColumnWriter
    requires_structural_rewrite: bool = False
    note: str | None = None


@dataclass(frozen=True, slots=True)
class ChartEntry:
    """Chart-type selection and grammar-specific binding requirements.

    Args:
        selector: Writer for the grammar's mandatory chart-type parameters.
        required_roles: Roles that must be bound.
        conditional_requirements: `(required, when)` pairs: `required` must be
            bound whenever `when` is bound.
        facet: Faceting construct, or None when the grammar disallows faceting
            this kind.
        requires_structural_rewrite: Whether the selector restructures the chart.
        note: Explanation for structural selectors.
    """

    grammar: str
    chart_kind: ChartKind
    selector: SelectorWriter
    required_roles: tuple[BindingRole, ...] = ()
    conditional_requirements: tuple[tuple[BindingRole, BindingRole], ...] = ()
    facet: FacetEntry | None = None
    requires_structural_rewrite: bool = False
    note: str | None = None


@dataclass(frozen=True, slots=True)
class GrammarTable:
    """All rows for one grammar."""

    grammar: str
    description: str
    charts: Mapping[ChartKind, ChartEntry]
    roles: Mapping[tuple[ChartKind, BindingRole], RoleEntry]
    styles: Mapping[tuple[ChartKind, StyleKey], CapabilityEntry]


class CapabilityRegistry:
    """Read-only lookup over one or more grammar tables."""

    def __init__(self, tables: Iterable[GrammarTable]) -> None:
        """Initialize the registry, enforcing table completeness.

        Raises:
            CapabilityTableError: When a grammar is registered twice or omits a chart kind.
            IncompleteCapabilityTable: When a grammar/kind pair lacks title, xLabel or yLabel.
        """

        registered: dict[str, GrammarTable] = {}
        for table in tables:
            if table.grammar in registered:
                raise CapabilityTableError(f"Duplicate capability table for grammar {table.grammar!r}.")
            _check_complete(table)
            registered[table.grammar] = table
        if not registered:
            raise CapabilityTableError("A capability registry needs at least one grammar table.")
        self._tables: Mapping[str, GrammarTable] = MappingProxyType(registered)

    @property
    def grammars(self) -> tuple[str, ...]:
        return tuple(sorted(self._tables))

    def table(self, grammar: str) -> GrammarTable:
        """Return the table for `grammar`.

        Raises:
            UnknownGrammar: When no table is registered for `grammar`.
        """

        table = self._tables.get(str(grammar))
        if table is None:
            raise UnknownGrammar(grammar=str(grammar), known=self.grammars)
        return table

    def chart_entry(self, grammar: str, kind: ChartKind) -> ChartEntry:
        return self.table(grammar).charts[kind]

    def lookup(self, grammar: str, kind: ChartKind, key: StyleKey) -> CapabilityEntry | None:
        """Return the style row for `(grammar, kind, key)`, or None when absent."""

        return self.table(grammar).styles.get((kind, key))

    def lookup_role(self, grammar: str, kind: ChartKind, role: BindingRole) -> RoleEntry | None:
        return self.table(grammar).roles.get((kind, role))

    def cropping_modes(self, kind: ChartKind, key: StyleKey) -> dict[str, CroppingMode]:
        """Return each grammar's cropping mode for an axis-limit key on `kind`."""

        modes: dict[str, CroppingMode] = {}
        for grammar in self.grammars:
            entry = self._tables[grammar].styles.get((kind, key))
            if entry is not None and entry.cropping is not None:
                modes[grammar] = entry.cropping
        return modes

    def coverage(self) -> dict[str, Any]:
        """Summarize which kinds, roles, style keys and facets each grammar supports."""

        report: dict[str, Any] = {}
        for grammar in self.grammars:
            table = self._tables[grammar]
            kinds: dict[str, Any] = {}
            for kind in ChartKind:
                chart = table.charts[kind]
                style_entries = [table.styles[(kind, key)] for key in StyleKey if (kind, key) in table.styles]
                role_entries = [table.roles[(kind, role)] for role in BindingRole if (kind, role) in table.roles]
                kinds[kind.value] = {
                    "required_roles": [role.value for role in chart.required_roles],
                    "roles": [entry.role.value for entry in role_entries],
                    "style_keys": [entry.semantic_key.value for entry in style_entries],
                    "unsupported_style_keys": [
                        entry.semantic_key.value
                        for entry in style_entries
                        if not entry.requires_structural_rewrite
                        and entry.target_param(_SAMPLE_VALUES[entry.semantic_key]) == ()
                    ],
                    "structural": sorted(
                        [entry.semantic_key.value for entry in style_entries if entry.requires_structural_rewrite]
                        + [entry.role.value for entry in role_entries if entry.requires_structural_rewrite]
                    ),
                    "facet": chart.facet is not None,
                }
            report[grammar] = {"description": table.description, "kinds": kinds}
        return report


# Representative valid values used when probing writers for coverage reports.
_SAMPLE_VALUES: Final[dict[StyleKey, Any]] = {
    StyleKey.title: "title",
    StyleKey.x_label: "x",
    StyleKey.y_label: "y",
    StyleKey.fill_color: "grey",
    StyleKey.outline_color: "black",
    StyleKey.opacity: 0.5,
    StyleKey.point_shape: "circle",
    StyleKey.line_width: 1,
    StyleKey.line_style: "dashed",
    StyleKey.bin_width: 1,
    StyleKey.bin_count: 10,
    StyleKey.group_layout: "dodge",
    StyleKey.theme_tone: "minimal",
    StyleKey.legend_visible: False,
    StyleKey.axis_limit_x: (0, 1),
    StyleKey.axis_limit_y: (0, 1),
    StyleKey.flip_axes: True,
}


def _check_complete(table: GrammarTable) -> None:
    for kind in ChartKind:
        if kind not in table.charts:
            raise CapabilityTableError(f"Capability table {table.grammar!r} does not define chart kind {kind.value!r}.")
        missing = tuple(key.value for key in MANDATORY_KEYS if (kind, key) not in table.styles)
        if missing:
            raise IncompleteCapabilityTable(grammar=table.grammar, kind=kind.value, missing=missing)


def parse_table(payload: Mapping[str, Any], *, source: str = "<memory>") -> GrammarTable:
    """Build a GrammarTable from a decoded YAML payload.

    Args:
        payload: Mapping with `grammar`, optional `description`, optional
            `defaults.styles` and a `kinds` mapping.
        source: Where the payload came from, used in error messages.

    Raises:
        CapabilityTableError: When the payload is malformed.
    """

    grammar = payload.get("grammar")
    if not isinstance(grammar, str) or not grammar.strip():
        raise CapabilityTableError(f"{source}: 'grammar' must be a non-empty string.")
    kinds_raw = payload.get("kinds")
    if not isinstance(kinds_raw, Mapping):
        raise CapabilityTableError(f"{source}: 'kinds' must be a mapping.")
    defaults = _mapping(payload.get("defaults"), where=f"{source}: defaults")
    default_styles = _mapping(defaults.get("styles"), where=f"{source}: defaults.styles")

    charts: dict[ChartKind, ChartEntry] = {}
    roles: dict[tuple[ChartKind, BindingRole], RoleEntry] = {}
    styles: dict[tuple[ChartKind, StyleKey], CapabilityEntry] = {}

    for kind_name, kind_raw in kinds_raw.items():
        kind = _parse_enum(ChartKind, kind_name, where=f"{source}: kinds")
        where = f"{source}: kinds.{kind.value}"
        kind_raw = _mapping(kind_raw, where=where)

        for role_name, role_raw in _mapping(kind_raw.get("roles"), where=f"{where}.roles").items():
            role = _parse_enum(BindingRole, role_name, where=f"{where}.roles")
            roles[(kind, role)] = _parse_role(grammar, kind, role, role_raw, where=f"{where}.roles.{role.value}")

        merged = {**default_styles, **_mapping(kind_raw.get("styles"), where=f"{where}.styles")}
        for key_name, row in merged.items():
            key = _parse_enum(StyleKey, key_name, where=f"{where}.styles")
            if row is None:
                continue
            styles[(kind, key)] = _parse_style(grammar, kind, key, row, where=f"{where}.styles.{key.value}")

        charts[kind] = _parse_chart(grammar, kind, kind_raw, where=where)

    description = str(payload.get("description") or "")
    logger.debug("Parsed capability table %r from %s (%d style rows).", grammar, source, len(styles))
    return GrammarTable(
        grammar=grammar,
        description=description,
        charts=MappingProxyType(charts),
        roles=MappingProxyType(roles),
        styles=MappingProxyType(styles),
    )


def load_table(path: Path) -> GrammarTable:
    """Load one grammar table from a YAML file."""

    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, Mapping):
        raise CapabilityTableError(f"{path}: expected a mapping at the top level.")
    return parse_table(payload, source=str(path))


def load_registry(tables_dir: Path | None = None) -> CapabilityRegistry:
    """Load every `*.yml` table in `tables_dir` (default: configured tables dir)."""

    directory = tables_dir if tables_dir is not None else load_settings().tables_dir
    paths = sorted(directory.glob("*.yml"))
    if not paths:
        raise CapabilityTableError(f"No capability tables found in {directory}.")
    registry = CapabilityRegistry(load_table(path) for path in paths)
    logger.info("Loaded capability registry for grammars %s from %s.", list(registry.grammars), directory)
    return registry


def _parse_chart(grammar: str, kind: ChartKind, raw: Mapping[str, Any], *, where: str) -> ChartEntry:
    select = _mapping(raw.get("select"), where=f"{where}.select")
    if not select:
        raise CapabilityTableError(f"{where}: 'select' is required.")
    selector = _build("selector", select, where=f"{where}.select")

    required = tuple(
        _parse_enum(BindingRole, name, where=f"{where}.requires") for name in (raw.get("requires") or ())
    )
    conditional = tuple(
        (
            _parse_enum(BindingRole, needed, where=f"{where}.requires_when"),
            _parse_enum(BindingRole, when, where=f"{where}.requires_when"),
        )
        for needed, when in _mapping(raw.get("requires_when"), where=f"{where}.requires_when").items()
    )

    facet: FacetEntry | None = None
    facet_raw = raw.get("facet")
    if facet_raw is not None:
        facet_row = _mapping(facet_raw, where=f"{where}.facet")
        facet = FacetEntry(
            grammar=grammar,
            chart_kind=kind,
            writer=_build("facet", facet_row, where=f"{where}.facet"),
            requires_structural_rewrite=bool(facet_row.get("structural", False)),
            note=facet_row.get("note"),
        )

    return ChartEntry(
        grammar=grammar,
        chart_kind=kind,
        selector=selector,
        required_roles=required,
        conditional_requirements=conditional,
        facet=facet,
        requires_structural_rewrite=bool(select.get("structural", False)),
        note=select.get("note"),
    )


def _parse_role(grammar: str, kind: ChartKind, role: BindingRole, raw: Any, *, where: str) -> RoleEntry:
    row = _mapping(raw, where=where)
    column_row = row.get("column")
    consumed_into = None
    if isinstance(column_row, Mapping) and column_row.get("write") == "consumed":
        consumed_into = column_row.get("into")
    literal_row = row.get("literal")
    if column_row is None and literal_row is None:
        raise CapabilityTableError(f"{where}: a role row needs a 'column' or 'literal' writer.")
    return RoleEntry(
        grammar=grammar,
        chart_kind=kind,
        role=role,
        column_writer=(
            _build("column", _mapping(column_row, where=f"{where}.column"), where=f"{where}.column")
            if column_row is not None
            else None
        ),
        literal_writer=(
            _build("style", _mapping(literal_row, where=f"{where}.literal"), where=f"{where}.literal")
            if literal_row is not None
            else None
        ),
        requires_structural_rewrite=bool(row.get("structural", False)),
        note=row.get("note"),
        consumed_into=consumed_into,
    )


def _parse_style(grammar: str, kind: ChartKind, key: StyleKey, raw: Any, *, where: str) -> CapabilityEntry:
    row = _mapping(raw, where=where)
    cropping = row.get("cropping")
    if cropping is not None and cropping not in _CROPPING_MODES:
        raise CapabilityTableError(f"{where}: cropping must be one of {sorted(_CROPPING_MODES)}, got {cropping!r}.")

    if "rewrite" in row:
        return CapabilityEntry(
            grammar=grammar,
            chart_kind=kind,
            semantic_key=key,
            target_param=no_params(),
            requires_structural_rewrite=True,
            rewrite=cast(Rewriter, _build("rewrite", row, where=where, name_field="rewrite")),
            cropping=cropping,
            note=row.get("note"),
        )

    return CapabilityEntry(
        grammar=grammar,
        chart_kind=kind,
        semantic_key=key,
        target_param=_build("style", row, where=where),
        cropping=cropping,
        note=row.get("note"),
    )


def _build(family: WriterFamily, row: Mapping[str, Any], *, where: str, name_field: str = "write") -> Any:
    name = row.get(name_field)
    if not isinstance(name, str):
        raise CapabilityTableError(f"{where}: {name_field!r} must name a writer.")
    options = {k: v for k, v in row.items() if k not in _RESERVED_ROW_KEYS}
    return build_writer(family, name, options, where=where)


def _mapping(value: Any, *, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise CapabilityTableError(f"{where}: expected a mapping, got {type(value).__name__}.")
    return value


def _parse_enum(enum_type: Any, value: Any, *, where: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        allowed = [member.value for member in enum_type]
        raise CapabilityTableError(
            f"{where}: unknown {enum_type.__name__} {value!r}; expected one of {allowed}."
        ) from None


DEFAULT_REGISTRY: Final[CapabilityRegistry] = load_registry()
