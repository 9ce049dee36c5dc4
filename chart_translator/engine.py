"""Translator engine: compile a ChartSpec into one grammar's parameter document.

Translation is a single pure fold over the spec in canonical order (chart
kind, bindings, style keys, facet). Every step consults the capability
registry and either merges concrete parameters into the output document or
records a diagnostic. Identical inputs always produce identical results.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .diagnostics import Diagnostic, DiagnosticCode, DiagnosticsReporter, Severity
from .errors import (
    ConflictingParameter,
    FacetNotSupportedByKind,
    MissingRequiredBinding,
    RoleNotSupportedByGrammar,
    StrictModeViolation,
)
from .ir import Binding, ChartKind, ChartSpec
from .registry import DEFAULT_REGISTRY, CapabilityEntry, CapabilityRegistry, ChartEntry
from .schema import ColumnRef
from .writers import Pairs, mentions_column

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Concrete parameter document for one grammar, plus diagnostics.

    Args:
        grammar: Grammar id the spec was translated for.
        kind: Chart kind of the translated spec.
        parameters: Read-only mapping of parameter name to value, in canonical
            processing order.
        diagnostics: Findings recorded during translation, in the order raised.
    """

    grammar: str
    kind: ChartKind
    parameters: Mapping[str, Any]
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity is Severity.warning)

    def codes(self) -> tuple[str, ...]:
        """Return diagnostic codes in order, for compact assertions and logging."""

        return tuple(d.code.value for d in self.diagnostics)

    def raise_for_warnings(self) -> None:
        """Raise when any warning-severity diagnostic was recorded.

        Raises:
            StrictModeViolation: When `warnings` is non-empty.
        """

        if self.warnings:
            raise StrictModeViolation(codes=tuple(d.code.value for d in self.warnings))


def translate(
    spec: ChartSpec,
    grammar: str,
    *,
    registry: CapabilityRegistry | None = None,
    strict: bool = False,
) -> TranslationResult:
    """Translate a ChartSpec into `grammar`'s concrete parameter document.

    Args:
        spec: Validated, grammar-neutral chart spec.
        grammar: Target grammar id (e.g. "imperative", "layered").
        registry: Capability registry to consult; defaults to DEFAULT_REGISTRY.
        strict: When True, conflicting parameter writes raise instead of being
            resolved in favour of the later key.

    Returns:
        A fresh TranslationResult.

    Raises:
        UnknownGrammar: When `grammar` has no capability table.
        MissingRequiredBinding: When the grammar requires a role the spec lacks.
        RoleNotSupportedByGrammar: When a bound role has no mapping in the grammar.
        FacetNotSupportedByKind: When the spec is faceted but the grammar
            disallows faceting this chart kind.
        ConflictingParameter: In strict mode, when two keys write one parameter differently.
    """

    registry = registry if registry is not None else DEFAULT_REGISTRY
    chart = registry.chart_entry(grammar, spec.kind)
    logger.debug("Translating %r for grammar %r.", spec, grammar)

    _check_required_roles(spec, chart)
    run = _Translation(spec=spec, grammar=chart.grammar, registry=registry, strict=strict)
    run.select(chart)
    run.bindings()
    run.styles()
    run.facet(chart)
    result = run.result()

    logger.debug(
        "Translated %s chart for %r: %d parameters, %d diagnostics.",
        spec.kind.value,
        grammar,
        len(result.parameters),
        len(result.diagnostics),
    )
    return result


def _check_required_roles(spec: ChartSpec, chart: ChartEntry) -> None:
    for role in chart.required_roles:
        if not spec.has_role(role):
            raise MissingRequiredBinding(grammar=chart.grammar, kind=spec.kind.value, role=role.value)
    for needed, when in chart.conditional_requirements:
        if spec.has_role(when) and not spec.has_role(needed):
            raise MissingRequiredBinding(
                grammar=chart.grammar,
                kind=spec.kind.value,
                role=needed.value,
                because=when.value,
            )


class _Translation:
    """Mutable state for a single translate() call; never shared."""

    def __init__(self, *, spec: ChartSpec, grammar: str, registry: CapabilityRegistry, strict: bool) -> None:
        self._spec = spec
        self._grammar = grammar
        self._registry = registry
        self._strict = strict
        self._params: dict[str, Any] = {}
        self._writers: dict[str, str] = {}
        self._consumed: list[tuple[str, str, str]] = []
        self._reporter = DiagnosticsReporter()

    def select(self, chart: ChartEntry) -> None:
        self._merge(chart.selector(self._spec), source="kind")
        if chart.requires_structural_rewrite:
            self._reporter.info(
                DiagnosticCode.explained,
                chart.note or f"{self._spec.kind.value!r} charts are restructured in grammar {self._grammar!r}.",
                key="kind",
            )

    def bindings(self) -> None:
        for binding in self._spec.bindings:
            self._bind(binding)
        for role, name, into in self._consumed:
            if mentions_column(self._params.get(into), name):
                logger.debug("Column %r for role %r carried by %r.", name, role, into)
                continue
            self._reporter.warning(
                DiagnosticCode.unsupported,
                f"Column {name!r} bound to role {role!r} is not written by grammar {self._grammar!r}: "
                f"the {into!r} parameter does not carry it.",
                key=role,
            )

    def _bind(self, binding: Binding) -> None:
        kind = self._spec.kind
        entry = self._registry.lookup_role(self._grammar, kind, binding.role)
        role = binding.role.value

        if isinstance(binding.source, ColumnRef):
            if entry is None or entry.column_writer is None:
                raise RoleNotSupportedByGrammar(grammar=self._grammar, kind=kind.value, role=role, source="column")
            name = binding.source.name
            pairs = entry.column_writer(name, self._spec)
            if not pairs and entry.consumed_into is not None:
                self._consumed.append((role, name, entry.consumed_into))
            self._merge(pairs, source=role)
            if entry.requires_structural_rewrite:
                note = entry.note or "Binding {column!r} restructures the output."
                self._reporter.info(DiagnosticCode.explained, note.format(column=name), key=role)
            return

        if entry is None or entry.literal_writer is None:
            raise RoleNotSupportedByGrammar(grammar=self._grammar, kind=kind.value, role=role, source="literal")
        pairs = entry.literal_writer(binding.source.value)
        if not pairs:
            self._reporter.warning(
                DiagnosticCode.unsupported,
                f"Literal {binding.source.value!r} for role {role!r} has no equivalent in grammar {self._grammar!r}.",
                key=role,
            )
            return
        self._merge(pairs, source=role)

    def styles(self) -> None:
        for key, value in self._spec.style:
            entry = self._registry.lookup(self._grammar, self._spec.kind, key)
            if entry is None:
                self._reporter.warning(
                    DiagnosticCode.unknown_to_grammar,
                    f"Style key {key.value!r} has no equivalent for {self._spec.kind.value!r} charts "
                    f"in grammar {self._grammar!r}; skipped.",
                    key=key.value,
                )
                continue
            self._style(entry, value)
            if entry.cropping is not None:
                self._check_cropping(entry)

    def _style(self, entry: CapabilityEntry, value: Any) -> None:
        key = entry.semantic_key.value
        if entry.requires_structural_rewrite and entry.rewrite is not None:
            rewrite = entry.rewrite(value, self._spec)
            self._merge(rewrite.fragments, source=key)
            self._reporter.info(DiagnosticCode.explained, rewrite.explanation, key=key)
            return

        pairs = entry.target_param(value)
        if not pairs:
            logger.debug("Style key %r ignored by grammar %r.", key, self._grammar)
            self._reporter.warning(
                DiagnosticCode.unsupported,
                entry.note or f"Style key {key!r} has no effect in grammar {self._grammar!r}.",
                key=key,
            )
            return
        self._merge(pairs, source=key)

    def _check_cropping(self, entry: CapabilityEntry) -> None:
        modes = self._registry.cropping_modes(self._spec.kind, entry.semantic_key)
        if len(set(modes.values())) < 2:
            return
        others = ", ".join(f"{grammar}: {mode}" for grammar, mode in modes.items() if grammar != self._grammar)
        if entry.cropping == "destructive":
            behaviour = "data outside the range is dropped before any aggregation"
        else:
            behaviour = "statistics use the full data and only the view is cropped"
        self._reporter.warning(
            DiagnosticCode.cropping_semantics,
            f"{entry.semantic_key.value} is {entry.cropping} in grammar {self._grammar!r} ({behaviour}); "
            f"other grammars differ ({others}).",
            key=entry.semantic_key.value,
        )

    def facet(self, chart: ChartEntry) -> None:
        facet = self._spec.facet_variable
        if facet is not None:
            if chart.facet is None:
                raise FacetNotSupportedByKind(grammar=self._grammar, kind=self._spec.kind.value)
            self._merge(chart.facet.writer(facet.name, self._spec), source="facet")
            if chart.facet.requires_structural_rewrite:
                note = chart.facet.note or "Faceting by {column!r} restructures the output."
                self._reporter.info(DiagnosticCode.explained, note.format(column=facet.name), key="facet")
        self._reporter.extend(self._spec.diagnostics)

    def _merge(self, pairs: Pairs, *, source: str) -> None:
        for param, value in pairs:
            if param in self._params:
                previous = self._params[param]
                if previous == value:
                    continue
                first = self._writers[param]
                if self._strict:
                    raise ConflictingParameter(
                        param=param, first_key=first, second_key=source, first=previous, second=value
                    )
                self._reporter.warning(
                    DiagnosticCode.conflict,
                    f"Parameter {param!r} set to {previous!r} by {first!r} is overridden with {value!r} by {source!r}.",
                    key=param,
                )
            self._params[param] = value
            self._writers[param] = source

    def result(self) -> TranslationResult:
        return TranslationResult(
            grammar=self._grammar,
            kind=self._spec.kind,
            parameters=MappingProxyType(dict(self._params)),
            diagnostics=self._reporter.diagnostics,
        )


__all__ = ["TranslationResult", "translate"]
