"""
Sample statements for tests.

Builders return plain row lists (for Workbook.from_rows) laid out the way
each broker prints its report; write_xlsx() saves rows as a real .xlsx with
openpyxl, optionally merging ranges.
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import Workbook as XlsxWorkbook

from brokerbook.services.workbook import Workbook

# =============================================================================
# PSB
# =============================================================================

PSB_PORTFOLIO = "12345/67"

PSB_HEADER = [
    "Дата и время", "Номер сделки", "Вид контракта", "Контракт", "Покупка/Продажа",
    "Кол-во", "Цена, пункты", "Сумма", "Комиссия торговой системы", "Комиссия брокера",
    ]


def psb_expiration_row(
    direction: str = "Покупка",
    count: Any = 5,
    contract_type: str = "Фьючерс",
    value: Any = 1000,
    quote: Any = 200,
    market_commission: Any = 1.5,
    broker_commission: Any = 2.5,
    trade_id: Any = 1234567,
    contract: str = "Si-3.21",
    timestamp: Any = "15.03.2021 18:45:00",
    ) -> List[Any]:
    return [timestamp, trade_id, contract_type, contract, direction, count, quote, value,
            market_commission, broker_commission]


def psb_rows(data_rows: Iterable[Sequence[Any]], with_total: bool = True) -> List[List[Any]]:
    """PSB report: title block, expiration table, "Итого" footer."""
    rows: List[List[Any]] = [
        ["ПАО «Промсвязьбанк»"],
        ["Отчет брокера за период с 01.03.2021 по 31.03.2021"],
        ["Договор", PSB_PORTFOLIO],
        [],
        ["Исполнение контрактов"],
        list(PSB_HEADER),
        ]
    rows.extend(list(r) for r in data_rows)
    if with_total:
        rows.append(["Итого", None, None, None, None, None, None, None, 4.0, 0])
    return rows


def psb_workbook(data_rows: Iterable[Sequence[Any]], with_total: bool = True) -> Workbook:
    return Workbook.from_rows({"Отчет": psb_rows(data_rows, with_total)})


# =============================================================================
# SBERBANK TRANSACTION EXPORT
# =============================================================================

SBER_PORTFOLIO = "40R1234"

SBER_HEADER = [
    "Номер договора", "Номер сделки", "Дата заключения", "Дата расчетов", "Торговая площадка",
    "Операция", "Краткое наименование", "Код финансового инструмента", "Тип финансового инструмента",
    "Количество", "Цена", "Объем сделки", "НКД", "Валюта", "Комиссия торговой системы", "Комиссия банка",
    ]


def sber_trade_row(
    trade_id: str,
    operation: str,
    name: str,
    code: str,
    security_type: str,
    count: Any,
    value: Any,
    accrued_interest: Any = 0,
    market_commission: Any = 1.0,
    broker_commission: Any = 2.0,
    timestamp: str = "01.02.2021 10:00:00",
    currency: str = "RUB",
    ) -> List[Any]:
    return [SBER_PORTFOLIO, trade_id, timestamp, "03.02.2021", "ПАО Московская Биржа",
            operation, name, code, security_type, count, 0, value, accrued_interest, currency,
            market_commission, broker_commission]


SBER_TRADES = [
    sber_trade_row("T1", "Покупка", "Сбербанк", "SBER", "Акция", 10, 2505),
    sber_trade_row("T2", "Продажа", "Сбербанк", "SBER", "Акция", 5, 1300, market_commission=0.5,
                   broker_commission=1.0, timestamp="02.02.2021 11:00:00"),
    sber_trade_row("T3", "Покупка", "ОФЗ 26238", "SU26238RMFS4", "Облигация", 2, 2000,
                   accrued_interest=15.5, market_commission=0.1, broker_commission=0.2),
    ]


def sber_rows(trades: Optional[Iterable[Sequence[Any]]] = None) -> List[List[Any]]:
    rows = [list(SBER_HEADER)]
    rows.extend(list(t) for t in (SBER_TRADES if trades is None else trades))
    return rows


def sber_workbook(trades: Optional[Iterable[Sequence[Any]]] = None) -> Workbook:
    return Workbook.from_rows({"Сделки": sber_rows(trades)})


# =============================================================================
# URALSIB
# =============================================================================

URALSIB_PORTFOLIO = "123456"


def uralsib_rows() -> List[List[Any]]:
    """Uralsib report: cash table with a two-row header, ended by a blank row."""
    return [
        ["ПАО «БАНК УРАЛСИБ»"],
        ["Договор", 123456],
        [],
        ["ПОЗИЦИЯ ПО ДЕНЕЖНЫМ СРЕДСТВАМ"],
        ["Валюта", "Валюта", "Входящий остаток", "Исходящий остаток"],
        ["Наименование", "Код валюты", None, None],
        ["Российский рубль", "RUR", "1 000,00", "12 345,67 RUR"],
        ["Доллар США", "USD", 0, "100,50"],
        [],
        ["ИТОГО ПО ДЕНЕЖНЫМ СРЕДСТВАМ", None, None, "12 446,17"],
        ]


def uralsib_workbook() -> Workbook:
    return Workbook.from_rows({"Отчет": uralsib_rows()})


# =============================================================================
# XLSX FILES
# =============================================================================

def write_xlsx(
    path: Path,
    sheets: Dict[str, Sequence[Sequence[Any]]],
    merged: Optional[Dict[str, Sequence[str]]] = None
    ) -> Path:
    """
    Save rows as an .xlsx file.

    Args:
        path: Target file
        sheets: {sheet name: rows}
        merged: {sheet name: ["A5:B5", ...]} ranges to merge; only the top-left
            cell of a merged range keeps its value, as in real exports
    """
    book = XlsxWorkbook()
    book.remove(book.active)
    for name, rows in sheets.items():
        sheet = book.create_sheet(title=name)
        for row in rows:
            sheet.append(list(row) if row else [None])
        for cell_range in (merged or {}).get(name, ()):
            sheet.merge_cells(cell_range)
    book.save(path)
    return path
