# tests/test_tabular.py
"""Tests for TabularResult construction, lookup and filtering."""

import datetime as dt
from decimal import Decimal

import duckdb
import polars as pl
import pytest

from dbsweep.errors import TabularResultError, UnknownColumnError
from dbsweep.sql.tabular import TabularResult
from dbsweep.sql.types import Column, ColumnType


def _names(*names):
    return TabularResult.from_records(["name"], [[n] for n in names])


# ---------------------------------------------------------------------------
# build
# ---------------------------------------------------------------------------


class TestBuild:
    """Tests for TabularResult.build."""

    def test_header_follows_metadata_order(self):
        cols = [Column("b", ColumnType.TEXT), Column("a", ColumnType.INTEGRAL), Column("c", ColumnType.TEXT)]
        result = TabularResult.build(cols, [["x", 1, "y"]])

        assert result.header == ["b", "a", "c"]
        assert result.to_polars().columns == ["b", "a", "c"]

    def test_values_become_canonical_strings(self):
        cols = [
            Column("i", ColumnType.INTEGRAL),
            Column("f", ColumnType.FLOATING),
            Column("d", ColumnType.DECIMAL),
            Column("b", ColumnType.BOOLEAN),
            Column("day", ColumnType.DATE),
            Column("ts", ColumnType.TIMESTAMP),
        ]
        row = [42, 0.1, Decimal("12.3400"), True, dt.date(2024, 1, 31), dt.datetime(2024, 1, 31, 8, 5, 9)]
        result = TabularResult.build(cols, [row])

        assert result.rows() == [
            {
                "i": "42",
                "f": "0.1",
                "d": "12.3400",
                "b": "true",
                "day": "2024-01-31",
                "ts": "2024-01-31 08:05:09",
            }
        ]

    def test_null_is_kept_as_none(self):
        result = TabularResult.build([Column("name", ColumnType.TEXT)], [["a"], [None]])

        assert result.count == 2
        assert result.get_column("name") == ["a", None]

    def test_unconvertible_row_is_dropped(self):
        cols = [Column("name", ColumnType.TEXT), Column("n", ColumnType.INTEGRAL)]
        result = TabularResult.build(cols, [["a", 1], ["b", "not-a-number"], ["c", 3]])

        assert result.count == 2
        assert result.get_column("name") == ["a", "c"]
        assert result.dropped_rows == 1

    def test_short_row_is_dropped(self):
        cols = [Column("name"), Column("owner")]
        result = TabularResult.build(cols, [["a", "x"], ["b"]])

        assert result.get_column("name") == ["a"]

    def test_duplicate_column_names_rejected(self):
        with pytest.raises(TabularResultError, match="Duplicate column"):
            TabularResult.build([Column("Name"), Column("NAME")], [])

    def test_empty_result_keeps_header(self):
        result = TabularResult.build([Column("name", ColumnType.TEXT)], [])

        assert result.count == 0
        assert result.header == ["name"]
        assert result.get_column("name") == []


class TestFromCursor:
    """Tests for building from a live DB-API cursor."""

    def test_duckdb_cursor(self):
        con = duckdb.connect()
        try:
            cur = con.cursor()
            cur.execute("SELECT 1 AS id, 'db1' AS name, DATE '2024-02-01' AS created UNION ALL SELECT 2, NULL, NULL")
            result = TabularResult.from_cursor(cur)
        finally:
            con.close()

        assert result.header == ["id", "name", "created"]
        assert sorted(result.get_column("id")) == ["1", "2"]
        assert set(result.get_column("created")) == {"2024-02-01", None}

    def test_cursor_without_result_set(self):
        class _NoResult:
            description = None

        with pytest.raises(TabularResultError):
            TabularResult.from_cursor(_NoResult())

    def test_unreadable_cursor_raises_once(self):
        class _Broken:
            description = [("name", "VARCHAR")]

            def fetchmany(self, n):
                raise RuntimeError("connection reset")

        with pytest.raises(TabularResultError, match="connection reset"):
            TabularResult.from_cursor(_Broken())


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    """Tests for column and field lookup."""

    def test_get_column_is_case_insensitive(self):
        result = TabularResult.from_records(["Name"], [["db1"], ["db2"]])

        assert result.get_column("name") == ["db1", "db2"]
        assert result.get_column("NAME") == ["db1", "db2"]
        assert result.index_of("nAmE") == 0

    def test_unknown_column(self):
        result = _names("db1")

        with pytest.raises(UnknownColumnError) as exc:
            result.get_column("owner")
        assert isinstance(exc.value, KeyError)
        assert "owner" in str(exc.value)

    def test_get_columns_keyed_by_requested_name(self):
        result = TabularResult.from_records(["Name", "Owner"], [["db1", "alice"]])

        assert result.get_columns(["name", "OWNER"]) == {"name": ["db1"], "OWNER": ["alice"]}

    def test_get_field(self):
        result = TabularResult.from_records(["name", "owner"], [["db1", "alice"], ["db2", "bob"]])

        assert result.get_field("owner", 1) == "bob"
        with pytest.raises(IndexError):
            result.get_field("owner", 2)

    def test_count(self):
        result = _names("a", "b", "c")

        assert result.count == 3
        assert result.get_count() == 3
        assert len(result) == 3

    def test_to_polars_is_a_copy(self):
        result = _names("a", "b")
        df = result.to_polars()
        df = df.with_columns(pl.lit("z").alias("name"))

        assert result.get_column("name") == ["a", "b"]

    def test_str_dump(self):
        text = str(_names("a"))

        assert text.startswith("HEADER\n['name']\nRECORDS\n")
        assert "['a']" in text


# ---------------------------------------------------------------------------
# keep / remove
# ---------------------------------------------------------------------------


class TestFiltering:
    """Tests for keep/remove regex filtering."""

    def test_keep_full_match(self):
        result = _names("db1", "db2", "db3", "db12")
        result.keep("db[12]", 0)

        assert result.get_column("name") == ["db1", "db2"]

    def test_remove_full_match(self):
        result = _names("db1", "db2", "db3", "db12")
        result.remove("db[12]", 0)

        assert result.get_column("name") == ["db3", "db12"]

    def test_keep_then_remove_same_pattern_is_empty(self):
        result = _names("sales", "hr", "sales_eu", "ops")
        result.keep("sales.*", 0)
        result.remove("sales.*", 0)

        assert result.count == 0

    def test_order_preserved(self):
        result = _names("z1", "a1", "m2", "b1")
        result.keep(".*1", 0)

        assert result.get_column("name") == ["z1", "a1", "b1"]

    def test_null_never_matches(self):
        kept = TabularResult.build([Column("name", ColumnType.TEXT)], [["a"], [None]])
        kept.keep(".*", 0)
        removed = TabularResult.build([Column("name", ColumnType.TEXT)], [["a"], [None]])
        removed.remove(".*", 0)

        assert kept.get_column("name") == ["a"]
        assert removed.get_column("name") == [None]

    def test_alternation_is_anchored_as_a_whole(self):
        result = _names("abc", "xbc", "ab")
        result.keep("ab|xbc", 0)

        assert result.get_column("name") == ["xbc", "ab"]

    def test_filter_on_second_column(self):
        result = TabularResult.from_records(["name", "owner"], [["db1", "alice"], ["db2", "bob"]])
        result.keep("bob", 1)

        assert result.get_column("name") == ["db2"]

    def test_column_index_out_of_range(self):
        with pytest.raises(TabularResultError):
            _names("a").keep("a", 3)

    def test_invalid_pattern(self):
        with pytest.raises(TabularResultError):
            _names("a").keep("(", 0)

    def test_lookahead_pattern(self):
        result = _names("db1", "db2", "db3")
        result.keep("(?!db3).*", 0)

        assert result.get_column("name") == ["db1", "db2"]

    def test_backreference_pattern(self):
        result = _names("aa", "ab", "bb")
        result.remove(r"(\w)\1", 0)

        assert result.get_column("name") == ["ab"]
