"""Diagnostics collected while building and translating chart specs.

Diagnostics are advisory: they never change the translated parameters and
they never fail a translation. Callers that want strict behaviour can treat
warning-severity diagnostics as failures themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class Severity(StrEnum):
    """Diagnostic severity."""

    info = "info"
    warning = "warning"


class DiagnosticCode(StrEnum):
    """Stable diagnostic codes used for programmatic matching."""

    unknown_to_grammar = "UnknownToGrammar"
    unsupported = "Unsupported"
    explained = "Explained"
    conflict = "Conflict"
    facet_cardinality = "FacetCardinality"
    cropping_semantics = "CroppingSemantics"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single translation finding.

    Args:
        severity: Info or Warning.
        code: Stable DiagnosticCode.
        message: Plain-language explanation.
        key: Semantic key, role or parameter the finding refers to, if any.
    """

    severity: Severity
    code: DiagnosticCode
    message: str
    key: str | None = None


class DiagnosticsReporter:
    """Append-only collector for diagnostics produced during one operation."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def info(self, code: DiagnosticCode, message: str, *, key: str | None = None) -> Diagnostic:
        return self.add(Diagnostic(severity=Severity.info, code=code, message=message, key=key))

    def warning(self, code: DiagnosticCode, message: str, *, key: str | None = None) -> Diagnostic:
        return self.add(Diagnostic(severity=Severity.warning, code=code, message=message, key=key))

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        """Record a diagnostic and mirror it to the module logger."""

        level = logging.INFO if diagnostic.severity is Severity.warning else logging.DEBUG
        logger.log(level, "%s [%s] %s", diagnostic.code.value, diagnostic.key or "-", diagnostic.message)
        self._items.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: tuple[Diagnostic, ...]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)
