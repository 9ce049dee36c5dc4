"""Schema model describing the columns a chart can bind.

The translator never sees data values. A SchemaModel only records column
names, declared types and an optional distinct-value hint supplied by the
data-loading collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Iterator

from .errors import DuplicateColumn, InvalidColumn, UnknownColumn


class ColumnType(StrEnum):
    """Declared type of a dataset column."""

    categorical = "categorical"
    numeric = "numeric"
    temporal = "temporal"
    logical = "logical"


@dataclass(frozen=True, slots=True)
class Column:
    """A single typed column.

    Args:
        name: Column name as it appears in the dataset.
        type: Declared ColumnType.
        cardinality: Optional count of distinct values, when the caller knows it.
    """

    name: str
    type: ColumnType
    cardinality: int | None = None


@dataclass(frozen=True, slots=True)
class ColumnRef:
    """Reference to a column by name."""

    name: str


class SchemaModel:
    """Ordered set of uniquely named columns."""

    def __init__(self) -> None:
        self._columns: dict[str, Column] = {}

    @classmethod
    def from_columns(cls, columns: Iterable[tuple[str, ColumnType | str]]) -> "SchemaModel":
        """Build a schema from `(name, type)` pairs, in order."""

        schema = cls()
        for name, column_type in columns:
            schema.define_column(name, column_type)
        return schema

    def define_column(
        self,
        name: str,
        type: ColumnType | str,
        *,
        cardinality: int | None = None,
    ) -> Column:
        """Add a column to the schema.

        Args:
            name: Unique, non-empty column name.
            type: ColumnType (or its string value).
            cardinality: Optional distinct-value hint; must be non-negative.

        Returns:
            The created Column.

        Raises:
            DuplicateColumn: When `name` is already defined.
            InvalidColumn: When the name, type or cardinality is malformed.
        """

        if not isinstance(name, str) or not name.strip():
            raise InvalidColumn(f"Column name must be a non-empty string, got {name!r}.")
        if name in self._columns:
            raise DuplicateColumn(name=name)
        try:
            column_type = ColumnType(type)
        except ValueError:
            raise InvalidColumn(f"Column {name!r} has unsupported type {type!r}.") from None
        if cardinality is not None and (isinstance(cardinality, bool) or cardinality < 0):
            raise InvalidColumn(f"Column {name!r} cardinality must be a non-negative int, got {cardinality!r}.")

        column = Column(name=name, type=column_type, cardinality=cardinality)
        self._columns[name] = column
        return column

    def resolve(self, ref: ColumnRef | str) -> Column:
        """Return the Column a reference points at.

        Raises:
            UnknownColumn: When the referenced column is absent.
        """

        name = ref.name if isinstance(ref, ColumnRef) else ref
        column = self._columns.get(name)
        if column is None:
            raise UnknownColumn(name=name)
        return column

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(self._columns.values())

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._columns.keys())

    def __contains__(self, name: object) -> bool:
        if isinstance(name, ColumnRef):
            name = name.name
        return name in self._columns

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        inner = ", ".join(f"{c.name}: {c.type.value}" for c in self._columns.values())
        return f"SchemaModel({{{inner}}})"
