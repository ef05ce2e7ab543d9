"""
Tests for table declaration schemas.

Tests TableColumn, ColumnSpec, column(), TableDefinition and MarkerMatch.

Reference: brokerbook/schemas/tables.py
"""
import pytest
from pydantic import ValidationError

from brokerbook.schemas.tables import (
    CellType,
    ColumnSpec,
    MarkerMatch,
    TableColumn,
    TableDefinition,
    column,
    )


def _noop_mapper(row, report):
    return None


# ============================================================================
# TABLE COLUMN
# ============================================================================

class TestTableColumn:
    """Test header phrase candidates."""

    def test_of_normalizes_words(self):
        """TS-001: Words are lower-cased and whitespace-collapsed."""
        col = TableColumn.of("Комиссия  Брокера", "ДАТА")
        assert col.candidates == (("комиссия брокера", "дата"),)

    def test_of_multiline_word(self):
        """TS-002: Line breaks inside a word become single spaces."""
        col = TableColumn.of("Дата и\nвремя")
        assert col.candidates == (("дата и время",),)

    def test_any_of_keeps_priority_order(self):
        """TS-003: Candidates of alternative columns concatenate in order."""
        col = TableColumn.any_of(TableColumn.of("кол-во"), TableColumn.of("количество"))
        assert col.candidates == (("кол-во",), ("количество",))

    def test_empty_word_rejected(self):
        """TS-004: Empty words never match anything and are rejected."""
        with pytest.raises(ValidationError, match="non-empty words"):
            TableColumn.of("цена", "  ")

    def test_no_candidates_rejected(self):
        with pytest.raises(ValidationError):
            TableColumn(candidates=())

    def test_frozen(self):
        col = TableColumn.of("цена")
        with pytest.raises(ValidationError):
            col.candidates = (("сумма",),)


# ============================================================================
# COLUMN SPEC
# ============================================================================

class TestColumnSpec:
    """Test the column() shorthand and ColumnSpec."""

    def test_column_from_words(self):
        """TS-010: Words form a single candidate."""
        spec = column("QUOTE", "цена", "пункты", cell_type=CellType.DECIMAL)
        assert spec.name == "QUOTE"
        assert spec.column.candidates == (("цена", "пункты"),)
        assert spec.cell_type is CellType.DECIMAL
        assert spec.required is True

    def test_column_from_alternatives(self):
        """TS-011: TableColumn arguments are alternatives."""
        spec = column("COUNT", TableColumn.of("кол-во"), TableColumn.of("количество"), required=False)
        assert spec.column.candidates == (("кол-во",), ("количество",))
        assert spec.required is False

    def test_default_cell_type_is_text(self):
        assert column("NAME", "наименование").cell_type is CellType.TEXT

    def test_hashable(self):
        """TS-012: Specs are dictionary keys of header mappings."""
        spec = column("NAME", "наименование")
        assert {spec: 1}[spec] == 1

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ColumnSpec(name="", column=TableColumn.of("x"))


# ============================================================================
# TABLE DEFINITION
# ============================================================================

class TestTableDefinition:
    """Test table declarations."""

    def test_defaults(self):
        """TS-020: One header row, one row per record, exact marker, first sheet."""
        table = TableDefinition(name="Сделки", columns=(column("A", "a"),), row_mapper=_noop_mapper)
        assert table.end_marker == ""
        assert table.header_rows == 1
        assert table.rows_per_record == 1
        assert table.marker_match is MarkerMatch.EQUALS
        assert table.marker_is_header is False
        assert table.sheet_name is None
        assert table.distinct is False

    def test_duplicate_column_names_rejected(self):
        """TS-021: Column names are unique within a table."""
        with pytest.raises(ValidationError, match="duplicate columns"):
            TableDefinition(
                name="Сделки",
                columns=(column("A", "a"), column("A", "b")),
                row_mapper=_noop_mapper
                )

    def test_zero_header_rows_rejected(self):
        with pytest.raises(ValidationError):
            TableDefinition(name="Сделки", columns=(column("A", "a"),), row_mapper=_noop_mapper, header_rows=0)

    def test_no_columns_rejected(self):
        with pytest.raises(ValidationError):
            TableDefinition(name="Сделки", columns=(), row_mapper=_noop_mapper)

    def test_normalized_markers(self):
        table = TableDefinition(
            name="Исполнение  контрактов", end_marker="ИТОГО",
            columns=(column("A", "a"),), row_mapper=_noop_mapper
            )
        assert table.normalized_name == "исполнение контрактов"
        assert table.normalized_end_marker == "итого"

    def test_required_columns(self):
        a = column("A", "a")
        b = column("B", "b", required=False)
        table = TableDefinition(name="T", columns=(a, b), row_mapper=_noop_mapper)
        assert table.required_columns == (a,)


# ============================================================================
# MARKER MATCH
# ============================================================================

class TestMarkerMatch:
    """Test marker comparison policies."""

    def test_equals(self):
        assert MarkerMatch.EQUALS.matches("итого", "итого")
        assert not MarkerMatch.EQUALS.matches("итого по счету", "итого")

    def test_prefix(self):
        assert MarkerMatch.PREFIX.matches("договор № 123", "договор")
        assert not MarkerMatch.PREFIX.matches("номер договора", "договор")

    def test_contains(self):
        assert MarkerMatch.CONTAINS.matches("номер договора", "договор")

    def test_empty_never_matches(self):
        assert not MarkerMatch.CONTAINS.matches("", "итого")
        assert not MarkerMatch.CONTAINS.matches("итого", "")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
