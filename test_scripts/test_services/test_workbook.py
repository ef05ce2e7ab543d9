"""
Tests for the in-memory spreadsheet model.

Covers grid padding, marker search, blank detection, value lookup next to
labels, and loading real .xlsx files with merged ranges.
"""
import pytest

from brokerbook.schemas.tables import MarkerMatch
from brokerbook.services.workbook import Sheet, Workbook
from statement_samples import write_xlsx


@pytest.fixture
def sheet() -> Sheet:
    return Sheet("Отчет", [
        ["ПАО «Промсвязьбанк»"],
        ["Договор № ", None, "12345/67"],
        [],
        ["Исполнение  контрактов"],
        ["Итого", None, 4.0],
        ])


# ============================================================================
# GRID
# ============================================================================

class TestGrid:
    """Cell access on a ragged row list."""

    def test_rows_padded_to_width(self, sheet):
        assert sheet.width == 3
        assert sheet.row_count == 5
        assert sheet.cell(0, 2) is None

    def test_cell_outside_grid_is_none(self, sheet):
        assert sheet.cell(-1, 0) is None
        assert sheet.cell(100, 0) is None
        assert sheet.cell(0, 100) is None

    def test_cell_text(self, sheet):
        assert sheet.cell_text(4, 2) == "4"
        assert sheet.cell_text(2, 0) == ""

    def test_row_texts_normalized(self, sheet):
        assert sheet.row_texts(3)[0] == "исполнение контрактов"
        assert sheet.row_texts(99) == []

    def test_is_blank(self, sheet):
        assert sheet.is_blank(2)
        assert not sheet.is_blank(4)
        assert sheet.is_blank(4, columns=[1])


# ============================================================================
# SEARCH
# ============================================================================

class TestSearch:
    """Marker and label lookups."""

    def test_find_row_equals(self, sheet):
        assert sheet.find_row("Исполнение контрактов") == 3

    def test_find_row_not_found(self, sheet):
        assert sheet.find_row("Сделки") is None

    def test_find_row_respects_start_and_end(self, sheet):
        assert sheet.find_row("итого", start=4) == 4
        assert sheet.find_row("итого", end=4) is None

    def test_find_row_prefix(self, sheet):
        assert sheet.find_row("исполнение", match=MarkerMatch.PREFIX) == 3

    def test_find_value_right_of(self, sheet):
        assert sheet.find_value_right_of("договор") == "12345/67"

    def test_find_value_right_of_missing(self, sheet):
        assert sheet.find_value_right_of("счет") is None

    def test_find_value_below(self):
        sheet = Sheet("Сделки", [["Номер договора", "Операция"], [None, "Покупка"], ["40R1234", "Продажа"]])
        assert sheet.find_value_below("Номер договора") == "40R1234"

    def test_contains_text_limited_rows(self, sheet):
        assert sheet.contains_text("промсвязьбанк", max_rows=1)
        assert not sheet.contains_text("итого", max_rows=3)


# ============================================================================
# WORKBOOK
# ============================================================================

class TestWorkbook:
    """Workbook construction and loading."""

    def test_requires_a_sheet(self):
        with pytest.raises(ValueError):
            Workbook([])

    def test_from_rows(self):
        workbook = Workbook.from_rows({"A": [[1]], "B": [[2]]})
        assert workbook.sheet_names == ["A", "B"]
        assert workbook.first_sheet.name == "A"
        assert workbook.get_sheet(None).name == "A"
        assert workbook.get_sheet("B").cell(0, 0) == 2
        assert workbook.get_sheet("C") is None

    def test_contains_text_any_sheet(self):
        workbook = Workbook.from_rows({"A": [["x"]], "B": [["БАНК УРАЛСИБ"]]})
        assert workbook.contains_text("уралсиб")

    def test_load_xlsx(self, tmp_path):
        path = write_xlsx(tmp_path / "report.xlsx", {"Отчет": [["Дата", "Сумма"], ["15.03.2021", 1000.5]]})
        workbook = Workbook.load(path)
        assert workbook.path == path
        sheet = workbook.first_sheet
        assert sheet.name == "Отчет"
        assert sheet.cell(1, 1) == 1000.5

    def test_load_keeps_blank_rows(self, tmp_path):
        path = write_xlsx(tmp_path / "report.xlsx", {"Отчет": [["a"], [], ["b"]]})
        sheet = Workbook.load(path).first_sheet
        assert sheet.row_count == 3
        assert sheet.is_blank(1)
        assert sheet.cell(2, 0) == "b"

    def test_merged_ranges_expanded(self, tmp_path):
        """Every cell of a merged range reads the range's value."""
        path = write_xlsx(
            tmp_path / "report.xlsx",
            {"Отчет": [["Валюта", None, "Остаток"], ["Наименование", "Код валюты", None]]},
            merged={"Отчет": ["A1:B1", "C1:C2"]}
            )
        sheet = Workbook.load(path).first_sheet
        assert sheet.cell(0, 0) == "Валюта"
        assert sheet.cell(0, 1) == "Валюта"
        assert sheet.cell(1, 2) == "Остаток"
        assert sheet.cell(1, 1) == "Код валюты"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
