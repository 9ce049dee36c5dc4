"""Grammar-neutral chart specification translator.

Build a SchemaModel, describe a chart once as a ChartSpec, then translate it
into the concrete parameter document of any registered grammar. This package
never renders, reads data files or computes statistics; it only maps intent
onto each grammar's vocabulary and reports what could not be expressed.
"""

from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .engine import TranslationResult, translate
from .ir import BindingRole, ChartKind, ChartSpec, LiteralValue
from .registry import DEFAULT_REGISTRY, CapabilityRegistry, load_registry
from .schema import Column, ColumnRef, ColumnType, SchemaModel
from .styles import UNSET, StyleKey

__all__ = [
    "DEFAULT_REGISTRY",
    "UNSET",
    "BindingRole",
    "CapabilityRegistry",
    "ChartKind",
    "ChartSpec",
    "Column",
    "ColumnRef",
    "ColumnType",
    "Diagnostic",
    "DiagnosticCode",
    "LiteralValue",
    "SchemaModel",
    "Severity",
    "StyleKey",
    "TranslationResult",
    "load_registry",
    "translate",
]
