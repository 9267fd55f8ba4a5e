# src/dbsweep/sql/tabular.py
"""
TabularResult: a small, string-typed, column-addressable result set.

Listing queries come back from different drivers with different native
types. The dispatcher only ever needs *names* (databases, locations), so we
normalize every value into its canonical string form once, up front, and
keep the rows in a polars frame with an all-Utf8 schema.

  - header:  column names in source order (case-insensitive lookup, unique)
  - rows:    one value per header column; SQL NULL stays None
  - filter:  keep()/remove() by full-string regex on one column; relative
             row order is always preserved

A row that cannot be converted is dropped (and logged at DEBUG); it never
fails the whole result.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import polars as pl

from dbsweep.errors import TabularResultError, UnknownColumnError
from dbsweep.logging import get_logger
from dbsweep.sql.types import Column, ColumnType, resolve_column_type, to_canonical_string

_logger = get_logger(__name__)

_FETCH_BATCH = 1000


def _iter_cursor(cursor: Any, batch: int = _FETCH_BATCH) -> Iterator[Sequence[Any]]:
    fetchmany = getattr(cursor, "fetchmany", None)
    if fetchmany is None:
        yield from cursor.fetchall()
        return
    while True:
        chunk = fetchmany(batch)
        if not chunk:
            return
        yield from chunk


class TabularResult:
    """In-memory, string-typed result set built once from a typed source."""

    def __init__(self, header: Sequence[str], frame: pl.DataFrame, dropped: int = 0):
        self._header: List[str] = list(header)
        self._df = frame
        self.dropped_rows = dropped

    # ------------------------------ Constructors ------------------------------

    @classmethod
    def build(
        cls,
        columns: Sequence[Column],
        rows: Iterable[Sequence[Any]],
        logger=None,
    ) -> "TabularResult":
        """
        Build from column metadata and an iterable of native rows.

        Column order is fixed here from `columns` and never changes.
        """
        log = logger or _logger
        header = [c.name for c in columns]

        seen: Dict[str, str] = {}
        for name in header:
            key = name.lower()
            if key in seen:
                raise TabularResultError(
                    f"Duplicate column name '{name}' (conflicts with '{seen[key]}')"
                )
            seen[key] = name

        types = [c.type for c in columns]
        width = len(header)
        records: List[List[Optional[str]]] = []
        dropped = 0

        for n, row in enumerate(rows):
            try:
                if len(row) != width:
                    raise ValueError(f"expected {width} fields, got {len(row)}")
                records.append([to_canonical_string(v, t) for v, t in zip(row, types)])
            except (ValueError, TypeError, ArithmeticError) as e:
                dropped += 1
                log.debug("Dropping row %d: %s", n, e)

        schema = [(name, pl.Utf8) for name in header]
        if records:
            frame = pl.DataFrame(records, schema=schema, orient="row")
        else:
            frame = pl.DataFrame(schema=schema)

        return cls(header, frame, dropped)

    @classmethod
    def from_cursor(cls, cursor: Any, logger=None) -> "TabularResult":
        """
        Build from an executed DB-API cursor (psycopg, duckdb, ...).

        Raises:
            TabularResultError: the cursor has no result set or cannot be read.
        """
        log = logger or _logger
        description = getattr(cursor, "description", None)
        if not description:
            raise TabularResultError("Statement did not produce a result set")

        columns = [Column(name=d[0], type=resolve_column_type(d[1])) for d in description]
        try:
            return cls.build(columns, _iter_cursor(cursor), logger=log)
        except TabularResultError:
            raise
        except Exception as e:
            log.error("Unable to read result set: %s", e)
            raise TabularResultError(f"Unable to read result set: {e}") from e

    @classmethod
    def from_records(cls, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> "TabularResult":
        """Convenience constructor: every column typed OTHER (inferred per value)."""
        return cls.build([Column(h, ColumnType.OTHER) for h in header], rows)

    # -------------------------------- Lookup ----------------------------------

    @property
    def header(self) -> List[str]:
        return list(self._header)

    def index_of(self, name: str) -> int:
        """Case-insensitive column index; raises UnknownColumnError."""
        target = name.lower()
        for i, h in enumerate(self._header):
            if h.lower() == target:
                return i
        raise UnknownColumnError(name, self._header)

    def get_column(self, name: str) -> List[Optional[str]]:
        """All values of one column, in row order."""
        return self._df.to_series(self.index_of(name)).to_list()

    def get_columns(self, names: Sequence[str]) -> Dict[str, List[Optional[str]]]:
        """Batched get_column(); keys are the names as requested."""
        indexes = [self.index_of(n) for n in names]
        return {n: self._df.to_series(i).to_list() for n, i in zip(names, indexes)}

    def get_field(self, column: str, row_index: int) -> Optional[str]:
        if row_index < 0 or row_index >= self.count:
            raise IndexError(f"Row {row_index} out of range (0..{self.count - 1})")
        return self._df.to_series(self.index_of(column))[row_index]

    @property
    def count(self) -> int:
        return self._df.height

    def get_count(self) -> int:
        return self.count

    def __len__(self) -> int:
        return self.count

    def rows(self) -> List[Dict[str, Optional[str]]]:
        """Rows as dicts keyed by header name."""
        return self._df.to_dicts()

    def to_polars(self) -> pl.DataFrame:
        return self._df.clone()

    # ------------------------------- Filtering --------------------------------

    def _column_name(self, column_index: int) -> str:
        if column_index < 0 or column_index >= len(self._header):
            raise TabularResultError(
                f"Column index {column_index} out of range for header {self._header}"
            )
        return self._header[column_index]

    def _matches(self, pattern: str, column_index: int) -> pl.Series:
        name = self._column_name(column_index)
        try:
            rx = re.compile(pattern)
        except re.error as e:
            raise TabularResultError(f"Invalid pattern '{pattern}': {e}") from e
        # NULL never matches
        return pl.Series(
            name,
            [v is not None and rx.fullmatch(v) is not None for v in self._df.get_column(name)],
            dtype=pl.Boolean,
        )

    def keep(self, pattern: str, column_index: int) -> None:
        """Retain only rows whose value fully matches `pattern`."""
        self._df = self._df.filter(self._matches(pattern, column_index))

    def remove(self, pattern: str, column_index: int) -> None:
        """Discard rows whose value fully matches `pattern`."""
        self._df = self._df.filter(~self._matches(pattern, column_index))

    # --------------------------------- Debug ----------------------------------

    def __str__(self) -> str:
        lines = ["HEADER", str(self._header), "RECORDS"]
        lines.extend(str(list(r)) for r in self._df.iter_rows())
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"TabularResult(header={self._header!r}, rows={self.count})"
