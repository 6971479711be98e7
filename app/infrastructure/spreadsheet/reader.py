"""
Excel reader: first sheet of an .xlsx (openpyxl) or .xls (xlrd) upload.

Rows come back as lists of normalised cell values:
  - strings stripped, empty strings -> None
  - integral floats -> int (phone numbers and codes typed as numbers)
  - dates/datetimes unchanged
"""
import io
import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


class SpreadsheetError(ValueError):
    """File is not a readable .xlsx/.xls workbook"""
    pass


def normalize_cell(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_blank(row: list) -> bool:
    return all(v is None for v in row)


def _read_xlsx(content: bytes) -> list[list[Any]]:
    from openpyxl import load_workbook

    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        return [[normalize_cell(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_xls(content: bytes) -> list[list[Any]]:
    import xlrd

    book = xlrd.open_workbook(file_contents=content)
    sheet = book.sheet_by_index(0)
    rows = []
    for r in range(sheet.nrows):
        row = []
        for c in range(sheet.ncols):
            cell = sheet.cell(r, c)
            if cell.ctype == xlrd.XL_CELL_DATE:
                row.append(datetime(*xlrd.xldate_as_tuple(cell.value, book.datemode)))
            elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                row.append(None)
            else:
                row.append(normalize_cell(cell.value))
        rows.append(row)
    return rows


def read_rows(filename: str, content: bytes) -> list[list[Any]]:
    """
    All non-blank rows of the first sheet, header row included.

    Raises:
        SpreadsheetError: unsupported extension or unreadable file
    """
    name = (filename or "").lower()
    try:
        if name.endswith(".xlsx"):
            rows = _read_xlsx(content)
        elif name.endswith(".xls"):
            rows = _read_xls(content)
        else:
            raise SpreadsheetError("Загрузите файл Excel (.xlsx или .xls)")
    except SpreadsheetError:
        raise
    except Exception:
        logger.exception("Failed to read spreadsheet %s", filename)
        raise SpreadsheetError("Не удалось прочитать файл Excel")

    return [row for row in rows if not _is_blank(row)]


def split_header(rows: list[list[Any]]) -> tuple[list[Any], list[list[Any]]]:
    """(header, data rows). Empty sheet -> ([], [])"""
    if not rows:
        return [], []
    return rows[0], rows[1:]


def rows_as_records(rows: list[list[Any]]) -> list[dict[str, Any]]:
    """Data rows keyed by header text; columns without a header are dropped"""
    header, data = split_header(rows)
    keys = [str(h).strip() if h is not None else None for h in header]
    records = []
    for row in data:
        record = {}
        for idx, key in enumerate(keys):
            if key and idx < len(row):
                record[key] = row[idx]
        records.append(record)
    return records
