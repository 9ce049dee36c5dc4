"""Pytest configuration shared across the chart translator tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

import pytest

from chart_translator import ColumnType, SchemaModel


@pytest.fixture
def survey_schema() -> SchemaModel:
    """Return a small survey-style schema covering every column type."""

    schema = SchemaModel()
    schema.define_column("Occupation", ColumnType.categorical, cardinality=6)
    schema.define_column("Region", ColumnType.categorical, cardinality=4)
    schema.define_column("Employed", ColumnType.logical, cardinality=2)
    schema.define_column("Income", ColumnType.numeric)
    schema.define_column("Age", ColumnType.numeric, cardinality=60)
    schema.define_column("Household", ColumnType.numeric, cardinality=5)
    schema.define_column("Surveyed", ColumnType.temporal)
    return schema


SPEED_MARKERS: Final[tuple[str, ...]] = ("unit", "integration")


def _speed_markers(item: pytest.Item) -> list[str]:
    return [name for name in SPEED_MARKERS if item.get_closest_marker(name) is not None]


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Fail collection unless every test carries exactly one speed marker.

    `unit` tests touch nothing outside the process; `integration` tests may
    read the environment or the filesystem.
    """

    offenders: list[str] = []
    for item in items:
        markers = _speed_markers(item)
        if len(markers) != 1:
            offenders.append(f"- {item.nodeid}: {', '.join(markers) or 'no speed marker'}")
    if offenders:
        raise pytest.UsageError(
            f"Mark every test with exactly one of {', '.join(SPEED_MARKERS)}:\n" + "\n".join(offenders)
        )
