# src/dbsweep/sql/types.py
"""
Declared column types and their canonical string conversions.

DB-API drivers report column types in `cursor.description[i][1]` in
driver-specific ways:

  - psycopg:  integer type OIDs (23 = int4, 1043 = varchar, ...)
  - duckdb:   type names ("BIGINT", "VARCHAR", "DATE", "NUMBER", ...)

`resolve_column_type()` normalizes both into a small `ColumnType` enum.
Anything unrecognized becomes OTHER and is converted by the Python type
of the value itself.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional


class ColumnType(str, Enum):
    INTEGRAL = "integral"
    FLOATING = "floating"
    DECIMAL = "decimal"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Column:
    """One column of result metadata: name + declared type."""

    name: str
    type: ColumnType = ColumnType.OTHER


# PostgreSQL type OIDs (pg_type.oid) as reported by psycopg
_PG_OIDS: Dict[int, ColumnType] = {
    16: ColumnType.BOOLEAN,
    20: ColumnType.INTEGRAL,   # int8
    21: ColumnType.INTEGRAL,   # int2
    23: ColumnType.INTEGRAL,   # int4
    26: ColumnType.INTEGRAL,   # oid
    700: ColumnType.FLOATING,  # float4
    701: ColumnType.FLOATING,  # float8
    1700: ColumnType.DECIMAL,  # numeric
    18: ColumnType.TEXT,       # char
    19: ColumnType.TEXT,       # name
    25: ColumnType.TEXT,       # text
    1042: ColumnType.TEXT,     # bpchar
    1043: ColumnType.TEXT,     # varchar
    1082: ColumnType.DATE,
    1083: ColumnType.TIME,
    1266: ColumnType.TIME,     # timetz
    1114: ColumnType.TIMESTAMP,
    1184: ColumnType.TIMESTAMP,  # timestamptz
}

# Type names (DuckDB, generic SQL). Matched on the leading word, upper-cased.
_TYPE_NAMES: Dict[str, ColumnType] = {
    "TINYINT": ColumnType.INTEGRAL,
    "SMALLINT": ColumnType.INTEGRAL,
    "INTEGER": ColumnType.INTEGRAL,
    "INT": ColumnType.INTEGRAL,
    "BIGINT": ColumnType.INTEGRAL,
    "HUGEINT": ColumnType.INTEGRAL,
    "UTINYINT": ColumnType.INTEGRAL,
    "USMALLINT": ColumnType.INTEGRAL,
    "UINTEGER": ColumnType.INTEGRAL,
    "UBIGINT": ColumnType.INTEGRAL,
    "FLOAT": ColumnType.FLOATING,
    "REAL": ColumnType.FLOATING,
    "DOUBLE": ColumnType.FLOATING,
    "DECIMAL": ColumnType.DECIMAL,
    "NUMERIC": ColumnType.DECIMAL,
    "CHAR": ColumnType.TEXT,
    "VARCHAR": ColumnType.TEXT,
    "TEXT": ColumnType.TEXT,
    "STRING": ColumnType.TEXT,
    "BOOLEAN": ColumnType.BOOLEAN,
    "BOOL": ColumnType.BOOLEAN,
    "DATE": ColumnType.DATE,
    "TIME": ColumnType.TIME,
    "TIMESTAMP": ColumnType.TIMESTAMP,
    "DATETIME": ColumnType.TIMESTAMP,
    "TIMESTAMPTZ": ColumnType.TIMESTAMP,
}


def resolve_column_type(type_code: Any) -> ColumnType:
    """Map a driver-reported type code onto a ColumnType (OTHER if unknown)."""
    if type_code is None:
        return ColumnType.OTHER
    if isinstance(type_code, ColumnType):
        return type_code
    if isinstance(type_code, bool):
        return ColumnType.OTHER
    if isinstance(type_code, int):
        return _PG_OIDS.get(type_code, ColumnType.OTHER)

    # duckdb may hand back DuckDBPyType objects; their str() is the type name
    name = str(type_code).strip().upper()
    if not name:
        return ColumnType.OTHER
    head = name.replace("(", " ").split()[0]
    return _TYPE_NAMES.get(head, ColumnType.OTHER)


# ------------------------------ Converters ------------------------------------


def _to_integral(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return str(int(value.strip()))
    return str(int(value))


def _to_floating(value: Any) -> str:
    return repr(float(value))


def _to_decimal(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float):
        # repr() keeps the shortest round-trip digits
        return str(Decimal(repr(value)))
    return str(Decimal(str(value).strip()))


def _to_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _to_boolean(value: Any) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "t", "1", "yes", "y"):
            return "true"
        if lowered in ("false", "f", "0", "no", "n"):
            return "false"
        raise ValueError(f"not a boolean: {value!r}")
    return "true" if bool(value) else "false"


def _to_date(value: Any) -> str:
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return dt.date.fromisoformat(str(value)).isoformat()


def _to_time(value: Any) -> str:
    if isinstance(value, dt.time):
        return value.isoformat()
    return dt.time.fromisoformat(str(value)).isoformat()


def _to_timestamp(value: Any) -> str:
    if isinstance(value, dt.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day).isoformat(sep=" ")
    return dt.datetime.fromisoformat(str(value)).isoformat(sep=" ")


def _infer(value: Any) -> str:
    if isinstance(value, bool):
        return _to_boolean(value)
    if isinstance(value, int):
        return _to_integral(value)
    if isinstance(value, float):
        return _to_floating(value)
    if isinstance(value, Decimal):
        return _to_decimal(value)
    if isinstance(value, dt.datetime):
        return _to_timestamp(value)
    if isinstance(value, dt.date):
        return _to_date(value)
    if isinstance(value, dt.time):
        return _to_time(value)
    return _to_text(value)


CONVERTERS: Dict[ColumnType, Callable[[Any], str]] = {
    ColumnType.INTEGRAL: _to_integral,
    ColumnType.FLOATING: _to_floating,
    ColumnType.DECIMAL: _to_decimal,
    ColumnType.TEXT: _to_text,
    ColumnType.BOOLEAN: _to_boolean,
    ColumnType.DATE: _to_date,
    ColumnType.TIME: _to_time,
    ColumnType.TIMESTAMP: _to_timestamp,
    ColumnType.OTHER: _infer,
}


def to_canonical_string(value: Any, column_type: ColumnType) -> Optional[str]:
    """
    Convert a native value into its canonical string form.

    NULL stays None. Raises ValueError/TypeError (and friends) when the value
    does not fit the declared type; callers decide what to do with the row.
    """
    if value is None:
        return None
    return CONVERTERS[column_type](value)
