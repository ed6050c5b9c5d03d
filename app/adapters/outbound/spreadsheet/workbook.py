"""Spreadsheet encoding and decoding (.xlsx via openpyxl, .csv via the csv module)."""

import csv
import io
import zipfile
from datetime import date, datetime
from typing import Any, Iterable, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"


class SpreadsheetError(Exception):
    """Raised when an uploaded file cannot be read as a workbook."""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.strftime("%d/%m/%Y")
    return str(value).strip()


def read_first_sheet(content: bytes) -> list[list[str]]:
    """
    Read every row of the first worksheet as text cells.

    Args:
        content: Raw .xlsx bytes

    Returns:
        Rows in sheet order, header included; empty cells become ""

    Raises:
        SpreadsheetError: If the bytes are not a readable workbook
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise SpreadsheetError("Uploaded file is not a valid .xlsx workbook") from e

    try:
        sheet = workbook.worksheets[0]
        return [[_cell_text(value) for value in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def write_xlsx(
    sheet_name: str,
    records: Iterable[dict[str, Any]],
    columns: Optional[list[str]] = None,
) -> bytes:
    """
    Write records to a single-sheet workbook.

    Args:
        sheet_name: Worksheet title
        records: Rows keyed by column header
        columns: Header order (defaults to the first record's keys)

    Returns:
        .xlsx bytes
    """
    records = list(records)
    if columns is None:
        columns = list(records[0].keys()) if records else []

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    sheet.append(columns)
    for record in records:
        sheet.append([record.get(column, "") for column in columns])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def write_csv(records: Iterable[dict[str, Any]], columns: list[str]) -> bytes:
    """
    Write records as UTF-8 CSV with a header row.

    Args:
        records: Rows keyed by column header
        columns: Header order

    Returns:
        CSV bytes
    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for record in records:
        writer.writerow(record)
    return output.getvalue().encode("utf-8")
