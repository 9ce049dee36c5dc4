"""Snapshot encoding/decoding helpers for schemas, chart specs and translation results."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, cast

from .engine import TranslationResult
from .errors import InvalidColumn
from .ir import ChartSpec, LiteralValue
from .schema import ColumnRef, SchemaModel


def encode_schema(schema: SchemaModel) -> dict[str, Any]:
    """Encode a SchemaModel into a JSON-serializable dictionary."""

    return {
        "columns": [
            {"name": column.name, "type": column.type.value, "cardinality": column.cardinality}
            for column in schema.columns
        ]
    }


def decode_schema(payload: Mapping[str, Any]) -> SchemaModel:
    """Decode a SchemaModel from a payload produced by `encode_schema`.

    Raises:
        ConstructionError: When a column entry is missing, malformed or duplicated.
    """

    columns_raw = payload.get("columns")
    if not isinstance(columns_raw, list):
        raise InvalidColumn("Schema payload must contain a 'columns' list.")
    schema = SchemaModel()
    for raw in columns_raw:
        if not isinstance(raw, Mapping):
            raise InvalidColumn(f"Column entry must be a mapping, got {raw!r}.")
        schema.define_column(
            cast(str, raw.get("name")),
            cast(str, raw.get("type")),
            cardinality=_parse_int(raw.get("cardinality")),
        )
    return schema


def encode_chart_spec(spec: ChartSpec) -> dict[str, Any]:
    """Encode a ChartSpec into a JSON-serializable dictionary.

    Args:
        spec: ChartSpec to encode. Its schema is not included; encode it
            separately with `encode_schema`.

    Returns:
        Dict payload with bindings and style in canonical order.
    """

    bindings: list[dict[str, Any]] = []
    for binding in spec.bindings:
        if isinstance(binding.source, ColumnRef):
            bindings.append({"role": binding.role.value, "column": binding.source.name})
        else:
            bindings.append({"role": binding.role.value, "literal": _jsonable(binding.source.value)})
    facet = spec.facet_variable
    return {
        "kind": spec.kind.value,
        "bindings": bindings,
        "style": {key.value: _jsonable(value) for key, value in spec.style},
        "facet": facet.name if facet is not None else None,
    }


def decode_chart_spec(
    payload: Mapping[str, Any],
    schema: SchemaModel,
    *,
    facet_cardinality_limit: int | None = None,
) -> ChartSpec:
    """Rebuild a ChartSpec by replaying the payload through the spec's operations.

    Every binding and style value is re-validated, so a payload that was
    edited by hand fails the same way direct construction would.

    Raises:
        ConstructionError: When the payload describes an invalid spec.
    """

    spec = ChartSpec.create(
        cast(str, payload.get("kind")),
        schema,
        facet_cardinality_limit=facet_cardinality_limit,
    )
    for raw in payload.get("bindings") or ():
        role = cast(str, raw.get("role"))
        if "literal" in raw:
            spec.bind(role, LiteralValue(raw["literal"]))
        else:
            spec.bind(role, ColumnRef(cast(str, raw.get("column"))))
    facet = payload.get("facet")
    if facet:
        spec.set_facet(ColumnRef(str(facet)))
    for key, value in cast(Mapping[str, Any], payload.get("style") or {}).items():
        spec.set_style(key, value)
    return spec


def encode_translation_result(result: TranslationResult) -> dict[str, Any]:
    """Encode a TranslationResult into a JSON-serializable dictionary.

    Tuples become lists and read-only mappings become plain dicts; parameter
    order is preserved.
    """

    return {
        "grammar": result.grammar,
        "kind": result.kind.value,
        "parameters": _jsonable(result.parameters),
        "diagnostics": [
            {
                "severity": diagnostic.severity.value,
                "code": diagnostic.code.value,
                "message": diagnostic.message,
                "key": diagnostic.key,
            }
            for diagnostic in result.diagnostics
        ],
    }


def dumps_translation_result(result: TranslationResult) -> str:
    """Return a stable JSON string for a TranslationResult (snapshot tests, logs)."""

    return json.dumps(encode_translation_result(result), indent=2, sort_keys=True)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    return value


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing for snapshot payloads."""

    if value is None or value == "":
        return None
    try:
        return int(str(value))
    except ValueError:
        raise InvalidColumn(f"Column cardinality must be an integer, got {value!r}.") from None
