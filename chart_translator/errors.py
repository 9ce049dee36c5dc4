"""Typed errors raised while building chart specs and translating them.

Construction errors fail fast while a SchemaModel or ChartSpec is being built.
Translation errors fail a single `translate` call. Capability table errors
abort registry construction. Non-fatal findings are never raised; they are
reported as diagnostics on the TranslationResult instead.
"""

from __future__ import annotations

from typing import Any


class ChartTranslatorError(ValueError):
    """Base class for every error raised by the translator."""


class ConstructionError(ChartTranslatorError):
    """Raised while building a SchemaModel or ChartSpec."""


class TranslationError(ChartTranslatorError):
    """Raised when a ChartSpec cannot be translated for a grammar."""


class CapabilityTableError(ChartTranslatorError):
    """Raised when a capability table is malformed."""


class DuplicateColumn(ConstructionError):
    """Raised when a column name is defined twice in one schema."""

    def __init__(self, *, name: str) -> None:
        super().__init__(f"Column {name!r} is already defined in the schema.")
        self.name = name


class UnknownColumn(ConstructionError):
    """Raised when a column reference does not resolve against the schema."""

    def __init__(self, *, name: str) -> None:
        super().__init__(f"Column {name!r} is not defined in the schema.")
        self.name = name


class InvalidColumn(ConstructionError):
    """Raised when a column definition is malformed."""


class UnsupportedRole(ConstructionError):
    """Raised when a binding role is not recognized by the chart kind."""

    def __init__(self, *, kind: str, role: str) -> None:
        super().__init__(f"Chart kind {kind!r} does not accept the {role!r} role.")
        self.kind = kind
        self.role = role


class TypeMismatch(ConstructionError):
    """Raised when a bound source is incompatible with the role's type class."""

    def __init__(self, *, role: str, column: str | None, actual: str, expected: tuple[str, ...]) -> None:
        target = f"column {column!r}" if column is not None else "source"
        super().__init__(
            f"Role {role!r} cannot bind {target} of type {actual!r}; expected one of {list(expected)}."
        )
        self.role = role
        self.column = column
        self.actual = actual
        self.expected = expected


class DuplicateRole(ConstructionError):
    """Raised when a role is bound twice on the same spec."""

    def __init__(self, *, role: str) -> None:
        super().__init__(f"Role {role!r} is already bound on this chart spec.")
        self.role = role


class UnknownStyleKey(ConstructionError):
    """Raised when a style key is outside the closed set of semantic keys."""

    def __init__(self, *, key: str) -> None:
        super().__init__(f"Unknown style key: {key!r}.")
        self.key = key


class InvalidStyleValue(ConstructionError):
    """Raised when a style value does not match the key's expected shape."""

    def __init__(self, *, key: str, value: Any, expected: str) -> None:
        super().__init__(f"Invalid value for style key {key!r}: {value!r} (expected {expected}).")
        self.key = key
        self.value = value
        self.expected = expected


class UnknownGrammar(TranslationError):
    """Raised when no capability table is registered for a grammar id."""

    def __init__(self, *, grammar: str, known: tuple[str, ...]) -> None:
        super().__init__(f"Unknown grammar {grammar!r}; registered grammars: {list(known)}.")
        self.grammar = grammar
        self.known = known


class MissingRequiredBinding(TranslationError):
    """Raised when a grammar requires a role the spec does not bind."""

    def __init__(self, *, grammar: str, kind: str, role: str, because: str | None = None) -> None:
        reason = f" when {because!r} is bound" if because else ""
        super().__init__(f"Grammar {grammar!r} requires the {role!r} role for {kind!r} charts{reason}.")
        self.grammar = grammar
        self.kind = kind
        self.role = role
        self.because = because


class RoleNotSupportedByGrammar(TranslationError):
    """Raised when a bound role has no mapping in the target grammar."""

    def __init__(self, *, grammar: str, kind: str, role: str, source: str) -> None:
        super().__init__(
            f"Grammar {grammar!r} cannot express a {source} {role!r} binding on {kind!r} charts."
        )
        self.grammar = grammar
        self.kind = kind
        self.role = role
        self.source = source


class FacetNotSupportedByKind(TranslationError):
    """Raised when the grammar disallows faceting for the chart kind."""

    def __init__(self, *, grammar: str, kind: str) -> None:
        super().__init__(f"Grammar {grammar!r} does not support faceting {kind!r} charts.")
        self.grammar = grammar
        self.kind = kind


class ConflictingParameter(TranslationError):
    """Raised in strict mode when two semantic keys write one parameter differently."""

    def __init__(self, *, param: str, first_key: str, second_key: str, first: Any, second: Any) -> None:
        super().__init__(
            f"Parameter {param!r} written as {first!r} by {first_key!r} and as {second!r} by {second_key!r}."
        )
        self.param = param
        self.first_key = first_key
        self.second_key = second_key
        self.first = first
        self.second = second


class StrictModeViolation(TranslationError):
    """Raised by `TranslationResult.raise_for_warnings` when warnings exist."""

    def __init__(self, *, codes: tuple[str, ...]) -> None:
        super().__init__(f"Translation produced warning diagnostics: {list(codes)}.")
        self.codes = codes


class IncompleteCapabilityTable(CapabilityTableError):
    """Raised when a grammar/kind pair omits a mandatory semantic key."""

    def __init__(self, *, grammar: str, kind: str, missing: tuple[str, ...]) -> None:
        super().__init__(
            f"Capability table for grammar {grammar!r}, kind {kind!r} is missing mandatory keys: {list(missing)}."
        )
        self.grammar = grammar
        self.kind = kind
        self.missing = missing
