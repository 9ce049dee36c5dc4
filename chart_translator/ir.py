"""Grammar-neutral chart intermediate representation (ChartSpec).

A ChartSpec is built incrementally and validated at every step: an invalid
role, column type or style value fails at construction time, never during
translation. The chart kind is fixed when the spec is created because every
other field's validity depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final

from .diagnostics import Diagnostic, DiagnosticCode, DiagnosticsReporter
from .errors import ConstructionError, DuplicateRole, TypeMismatch, UnsupportedRole
from .schema import Column, ColumnRef, ColumnType, SchemaModel
from .settings import load_settings
from .styles import (
    EXCLUSIVE_KEYS,
    LITERAL_ROLE_SPECS,
    UNSET,
    StyleKey,
    normalize_style_value,
    parse_style_key,
)


class ChartKind(StrEnum):
    """Supported chart kinds."""

    bar = "bar"
    pie = "pie"
    histogram = "histogram"
    boxplot = "boxplot"
    line = "line"
    scatter = "scatter"


class BindingRole(StrEnum):
    """Closed set of data-binding roles, in canonical processing order."""

    x = "x"
    y = "y"
    group = "group"
    fill = "fill"
    outline = "outline"
    size = "size"
    shape = "shape"
    facet = "facet"


@dataclass(frozen=True, slots=True)
class LiteralValue:
    """A constant binding source (e.g. a fixed colour or size)."""

    value: Any


BindingSource = ColumnRef | LiteralValue


@dataclass(frozen=True, slots=True)
class Binding:
    """A role bound to a column or a literal."""

    role: BindingRole
    source: BindingSource

    @property
    def is_column(self) -> bool:
        return isinstance(self.source, ColumnRef)


_DISCRETE: Final[frozenset[ColumnType]] = frozenset({ColumnType.categorical, ColumnType.logical})
_CONTINUOUS: Final[frozenset[ColumnType]] = frozenset({ColumnType.numeric, ColumnType.temporal})
_NUMERIC: Final[frozenset[ColumnType]] = frozenset({ColumnType.numeric})
_ANY: Final[frozenset[ColumnType]] = frozenset(ColumnType)

# Roles each kind recognizes, mapped to the column types the role accepts.
KIND_ROLES: Final[dict[ChartKind, dict[BindingRole, frozenset[ColumnType]]]] = {
    ChartKind.bar: {
        BindingRole.x: _DISCRETE,
        BindingRole.y: _NUMERIC,
        BindingRole.group: _DISCRETE,
        BindingRole.fill: _DISCRETE,
        BindingRole.facet: _ANY,
    },
    ChartKind.pie: {
        BindingRole.x: _DISCRETE,
        BindingRole.y: _NUMERIC,
        BindingRole.fill: _DISCRETE,
        BindingRole.facet: _ANY,
    },
    ChartKind.histogram: {
        BindingRole.x: _CONTINUOUS,
        BindingRole.fill: _DISCRETE,
        BindingRole.facet: _ANY,
    },
    ChartKind.boxplot: {
        BindingRole.y: _NUMERIC,
        BindingRole.group: _DISCRETE,
        BindingRole.fill: _DISCRETE,
        BindingRole.facet: _ANY,
    },
    ChartKind.line: {
        BindingRole.x: _CONTINUOUS,
        BindingRole.y: _CONTINUOUS,
        BindingRole.group: _DISCRETE,
        BindingRole.outline: _DISCRETE,
        BindingRole.facet: _ANY,
    },
    ChartKind.scatter: {
        BindingRole.x: _CONTINUOUS,
        BindingRole.y: _CONTINUOUS,
        BindingRole.group: _DISCRETE,
        BindingRole.size: _NUMERIC,
        BindingRole.shape: _DISCRETE,
        BindingRole.facet: _ANY,
    },
}

# Roles that only make sense bound to a column.
COLUMN_ONLY_ROLES: Final[frozenset[BindingRole]] = frozenset(
    {BindingRole.x, BindingRole.y, BindingRole.group, BindingRole.facet}
)


def _facet_limit(explicit: int | None) -> int:
    """Resolve the facet cardinality limit, reading settings only when none is given.

    Raises:
        ConstructionError: When the limit is below one or the settings are malformed.
    """

    if explicit is None:
        try:
            return load_settings().facet_cardinality_limit
        except ValueError as exc:
            raise ConstructionError(f"Invalid translator settings: {exc}") from exc
    if isinstance(explicit, bool) or not isinstance(explicit, int) or explicit < 1:
        raise ConstructionError(f"facet_cardinality_limit must be a positive integer, got {explicit!r}.")
    return explicit


def _check_literal(role: BindingRole, literal: LiteralValue) -> LiteralValue:
    """Validate a literal against the value shape its role accepts and return it normalized."""

    spec = LITERAL_ROLE_SPECS.get(role.value)
    if spec is None:
        raise TypeMismatch(role=role.value, column=None, actual="literal", expected=("column",))
    try:
        value = spec.normalize(literal.value)
    except ValueError:
        raise TypeMismatch(
            role=role.value, column=None, actual=f"literal {literal.value!r}", expected=(spec.expected,)
        ) from None
    return LiteralValue(value)


class ChartSpec:
    """Grammar-neutral chart description scoped to one kind and one schema."""

    def __init__(
        self,
        kind: ChartKind | str,
        schema: SchemaModel,
        *,
        facet_cardinality_limit: int | None = None,
    ) -> None:
        try:
            self._kind = ChartKind(kind)
        except ValueError:
            raise ConstructionError(f"Unknown chart kind: {kind!r}.") from None
        self._schema = schema
        self._bindings: dict[BindingRole, Binding] = {}
        self._style: dict[StyleKey, Any] = {}
        self._facet: ColumnRef | None = None
        self._facet_limit = _facet_limit(facet_cardinality_limit)
        self._reporter = DiagnosticsReporter()

    @classmethod
    def create(
        cls,
        kind: ChartKind | str,
        schema: SchemaModel,
        *,
        facet_cardinality_limit: int | None = None,
    ) -> "ChartSpec":
        """Return an empty spec for `kind` bound to `schema`."""

        return cls(kind, schema, facet_cardinality_limit=facet_cardinality_limit)

    @property
    def kind(self) -> ChartKind:
        return self._kind

    @property
    def schema(self) -> SchemaModel:
        return self._schema

    def accepted_roles(self) -> tuple[BindingRole, ...]:
        """Return the roles this spec's kind recognizes, in canonical order."""

        return tuple(role for role in BindingRole if role in KIND_ROLES[self._kind])

    def bind(self, role: BindingRole | str, source: ColumnRef | LiteralValue | str) -> Binding:
        """Bind a role to a column (by ColumnRef or name) or a LiteralValue.

        Binding the facet role is equivalent to `set_facet`.

        Raises:
            UnsupportedRole: When the kind does not recognize `role`.
            DuplicateRole: When `role` is already bound.
            UnknownColumn: When the referenced column is not in the schema.
            TypeMismatch: When the column type is incompatible with `role`, or a literal
                does not match the value shape the role accepts (colour, size or shape).
        """

        role = self._check_role(role)
        if isinstance(source, str):
            source = ColumnRef(source)

        if role is BindingRole.facet:
            if not isinstance(source, ColumnRef):
                raise TypeMismatch(role=role.value, column=None, actual="literal", expected=("column",))
            self.set_facet(source)
            return Binding(role=role, source=source)

        if role in self._bindings:
            raise DuplicateRole(role=role.value)

        if isinstance(source, LiteralValue):
            if role in COLUMN_ONLY_ROLES:
                raise TypeMismatch(role=role.value, column=None, actual="literal", expected=("column",))
            source = _check_literal(role, source)
        else:
            self._check_column_type(role, self._schema.resolve(source))

        binding = Binding(role=role, source=source)
        self._bindings[role] = binding
        return binding

    def set_facet(self, ref: ColumnRef | str) -> None:
        """Facet the chart by a column.

        Faceting by a numeric column with unknown or high cardinality records a
        FacetCardinality warning on the spec instead of failing.

        Raises:
            UnsupportedRole: When the kind does not accept faceting.
            DuplicateRole: When a facet variable is already set.
            UnknownColumn: When the column is not in the schema.
        """

        self._check_role(BindingRole.facet)
        if isinstance(ref, str):
            ref = ColumnRef(ref)
        if self._facet is not None:
            raise DuplicateRole(role=BindingRole.facet.value)

        column = self._schema.resolve(ref)
        if column.type is ColumnType.numeric and (
            column.cardinality is None or column.cardinality > self._facet_limit
        ):
            known = "unknown" if column.cardinality is None else str(column.cardinality)
            self._reporter.warning(
                DiagnosticCode.facet_cardinality,
                f"Faceting by numeric column {column.name!r} (cardinality {known}, limit {self._facet_limit}) "
                "may produce one panel per distinct value; prefer a categorical or binned column.",
                key=BindingRole.facet.value,
            )
        self._facet = ref

    def set_style(self, key: StyleKey | str, value: Any) -> None:
        """Set (or with UNSET, clear) a semantic style option.

        Setting binWidth clears binCount and vice versa.

        Raises:
            UnknownStyleKey: When `key` is outside the closed set.
            InvalidStyleValue: When `value` does not match the key's expected shape.
        """

        style_key = parse_style_key(key)
        if value is UNSET:
            self._style.pop(style_key, None)
            return

        normalized = normalize_style_value(style_key, value)
        exclusive = EXCLUSIVE_KEYS.get(style_key)
        if exclusive is not None:
            self._style.pop(exclusive, None)
        self._style[style_key] = normalized

    def clear_style(self, key: StyleKey | str) -> None:
        self.set_style(key, UNSET)

    @property
    def bindings(self) -> tuple[Binding, ...]:
        """Bindings in canonical role order (facet excluded)."""

        return tuple(self._bindings[role] for role in BindingRole if role in self._bindings)

    def binding(self, role: BindingRole | str) -> Binding | None:
        return self._bindings.get(BindingRole(role))

    def column_for(self, role: BindingRole | str) -> str | None:
        """Return the bound column name for `role`, or None for literals and unbound roles."""

        binding = self.binding(role)
        if binding is None or not isinstance(binding.source, ColumnRef):
            return None
        return binding.source.name

    def has_role(self, role: BindingRole | str) -> bool:
        role = BindingRole(role)
        if role is BindingRole.facet:
            return self._facet is not None
        return role in self._bindings

    @property
    def style(self) -> tuple[tuple[StyleKey, Any], ...]:
        """Set style options in canonical key order."""

        return tuple((key, self._style[key]) for key in StyleKey if key in self._style)

    def style_value(self, key: StyleKey | str) -> Any:
        """Return the value for `key`, or UNSET."""

        return self._style.get(parse_style_key(key), UNSET)

    @property
    def facet_variable(self) -> ColumnRef | None:
        return self._facet

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        """Soft warnings recorded while building the spec."""

        return self._reporter.diagnostics

    def _check_role(self, role: BindingRole | str) -> BindingRole:
        try:
            parsed = BindingRole(role)
        except ValueError:
            raise UnsupportedRole(kind=self._kind.value, role=str(role)) from None
        if parsed not in KIND_ROLES[self._kind]:
            raise UnsupportedRole(kind=self._kind.value, role=parsed.value)
        return parsed

    def _check_column_type(self, role: BindingRole, column: Column) -> None:
        allowed = KIND_ROLES[self._kind][role]
        if column.type not in allowed:
            raise TypeMismatch(
                role=role.value,
                column=column.name,
                actual=column.type.value,
                expected=tuple(t.value for t in ColumnType if t in allowed),
            )

    def __repr__(self) -> str:
        roles = ", ".join(f"{b.role.value}={b.source!r}" for b in self.bindings)
        return f"ChartSpec(kind={self._kind.value!r}, bindings=[{roles}], facet={self._facet!r})"
