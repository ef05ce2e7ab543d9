"""
Tests for table region location.

The terminal behavior (no end condition before the sheet ends) is asserted
explicitly: the table runs to the last row.

Reference: brokerbook/services/table_locator.py
"""
import pytest

from brokerbook.schemas.tables import MarkerMatch, TableDefinition, column
from brokerbook.services.errors import TableNotLocatableError
from brokerbook.services.table_locator import TableRegion, find_table_end, locate_table, locate_table_strict
from brokerbook.services.workbook import Sheet

A = column("A", "a")
B = column("B", "b")


def _table(**kwargs) -> TableDefinition:
    fields = dict(name="Сделки", end_marker="Итого", columns=(A, B), row_mapper=lambda row, report: None)
    fields.update(kwargs)
    return TableDefinition(**fields)


def _locate(rows, definition, blank_columns=(0, 1)) -> TableRegion:
    sheet = Sheet("s", rows)
    return find_table_end(locate_table(sheet, definition), definition, blank_columns)


# ============================================================================
# START MARKER
# ============================================================================

class TestLocate:
    """TL-001..: start marker and header region."""

    def test_span_between_markers(self):
        """TL-001: marker r0, end r1, one header row -> data (r0 + 2, r1)."""
        rows = [["Отчет"], ["Сделки"], ["A", "B"], [1, 2], [3, 4], ["Итого"], ["подпись"]]
        region = _locate(rows, _table())
        assert region.marker_row == 1
        assert region.header_start == 2
        assert region.data_span == (3, 5)
        assert region.data_row_count == 2

    def test_multi_row_header_offset(self):
        rows = [["Сделки"], ["A", "A"], ["a1", "B"], [1, 2], ["Итого"]]
        region = _locate(rows, _table(header_rows=2))
        assert region.data_span == (3, 4)

    def test_absent_table(self):
        """TL-002: A missing marker is the absent state, not an error."""
        region = _locate([["Отчет"], ["A", "B"], [1, 2]], _table())
        assert region.is_absent
        assert region.data_row_count == 0

    def test_missing_sheet_is_absent(self):
        assert locate_table(None, _table()).is_absent

    def test_strict_raises(self):
        with pytest.raises(TableNotLocatableError) as exc_info:
            locate_table_strict(Sheet("s", [["Отчет"]]), _table())
        assert exc_info.value.table_name == "Сделки"

    def test_marker_is_header(self):
        rows = [["A", "B"], [1, 2], [3, 4]]
        definition = _table(name="A", end_marker="", marker_is_header=True)
        region = _locate(rows, definition)
        assert region.header_start == region.marker_row == 0
        assert region.data_span == (1, 3)

    def test_marker_match_policy(self):
        rows = [["Сделки за период"], ["A", "B"], [1, 2], ["Итого"]]
        assert _locate(rows, _table()).is_absent
        region = _locate(rows, _table(marker_match=MarkerMatch.PREFIX))
        assert region.data_span == (2, 3)

    def test_start_row(self):
        rows = [["Сделки"], ["A", "B"], [1, 2], ["Итого"], ["Сделки"], ["A", "B"], [5, 6], [7, 8], ["Итого"]]
        region = locate_table(Sheet("s", rows), _table(), start_row=1)
        assert region.marker_row == 4


# ============================================================================
# END CONDITION
# ============================================================================

class TestTableEnd:
    """TL-010..: end marker, blank rows, sheet end."""

    def test_runs_to_last_row_without_end_condition(self):
        """TL-010: No end marker and no blank row: the table ends with the sheet."""
        rows = [["Сделки"], ["A", "B"], [1, 2], [3, 4], [5, 6]]
        region = _locate(rows, _table())
        assert region.data_span == (2, 5)

    def test_blank_row_ends_table_before_end_marker(self):
        """TL-011: Trailing blank rows before the footer end the table."""
        rows = [["Сделки"], ["A", "B"], [1, 2], [None, None, "примечание"], [3, 4], ["Итого"]]
        region = _locate(rows, _table())
        assert region.data_span == (2, 3)

    def test_blank_row_checked_on_required_columns_only(self):
        rows = [["Сделки"], ["A", "B", "C"], [1, 2, None], [3, 4, None], []]
        region = _locate(rows, _table(end_marker=""), blank_columns=[0])
        assert region.data_span == (2, 4)

    def test_empty_blank_columns_checks_whole_row(self):
        rows = [["Сделки"], ["A", "B"], [None, 2], [None, None]]
        region = _locate(rows, _table(end_marker=""), blank_columns=[])
        assert region.data_span == (2, 3)

    def test_first_data_row_blank(self):
        """TL-012: A blank first data row gives an empty table."""
        rows = [["Сделки"], ["A", "B"], [], [1, 2], ["Итого"]]
        region = _locate(rows, _table())
        assert region.data_row_count == 0

    def test_end_marker_exact_match(self):
        rows = [["Сделки"], ["A", "B"], ["Итого по разделу", 1], [3, 4], ["ИТОГО"]]
        region = _locate(rows, _table())
        assert region.data_span == (2, 4)

    def test_blank_rows_inside_row_group(self):
        """TL-013: Blank checks happen only where a record starts."""
        rows = [["Сделки"], ["A", "B"], [1, 2], [None, None], [3, 4], ["x", None], [], [9, 9]]
        region = _locate(rows, _table(end_marker="", rows_per_record=2))
        assert region.data_span == (2, 6)

    def test_absent_region_unchanged(self):
        region = TableRegion.absent()
        assert find_table_end(region, _table()) is region


class TestTableRegion:
    """Region value object."""

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            TableRegion(Sheet("s", [[1]]), 0, 1, 1, data_end=1)

    def test_with_end(self):
        region = TableRegion(Sheet("s", [[1]]), 0, 1, 1)
        assert region.data_span == (2, 2)
        assert region.with_end(5).data_span == (2, 5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
