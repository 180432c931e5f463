"""Functions for reading and writing cue sheets stored as workbooks."""

from __future__ import annotations

import csv
import logging
import os
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .csvfile import CsvFile, CsvParser
from .issues import IssueAcceptor
from .utils import cell_text

__all__ = [
    "WORKBOOK_SUFFIXES",
    "create_cue_sheet",
    "load_cue_sheet",
    "load_workbook_file",
    "save_workbook",
    "write_csv_sheet",
]

logger = logging.getLogger(__name__)

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")
CUE_SHEET_TITLE = "CUES"


def _write_headers(sheet, headers: Iterable[str]) -> None:
    for col, header in enumerate(headers, start=1):
        sheet.cell(row=1, column=col, value=header)


def create_cue_sheet(headers: Iterable[str]) -> Workbook:
    """Return a workbook holding one blank cue sheet with ``headers``."""

    wb = Workbook()
    sheet = wb.active
    sheet.title = CUE_SHEET_TITLE
    _write_headers(sheet, headers)
    return wb


def save_workbook(workbook: Workbook, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)


def write_csv_sheet(headers: Iterable[str], path: str | Path) -> None:
    """Write a blank comma separated cue sheet with ``headers``."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        csv.writer(fh).writerow(list(headers))


def load_workbook_file(
    path: str | os.PathLike[str], issues: IssueAcceptor, sheet: Optional[str] = None
) -> Optional[CsvFile]:
    """Read a workbook sheet into a :class:`CsvFile`.

    The first sheet is used unless ``sheet`` names another one. Row numbers
    are the spreadsheet's own row numbers.
    """

    path = Path(path)
    try:
        wb = load_workbook(path, data_only=True)
    except FileNotFoundError:
        issues.fatal("FILE_NOT_READABLE", f"File not found: {path}", line=-1, cause=str(path))
        return None
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        issues.fatal("FILE_NOT_READABLE", f"Unable to read workbook {path}: {exc}", line=-1, cause=str(path))
        return None

    try:
        if sheet is not None and sheet not in wb.sheetnames:
            issues.fatal("MISSING_SHEET", f"Sheet {sheet!r} not found in {path.name}", line=-1, cause=sheet)
            return None
        ws = wb[sheet] if sheet is not None else wb.worksheets[0]
        title = ws.title
        records = _sheet_records(ws)
    finally:
        wb.close()

    if not records:
        issues.fatal("EMPTY_FILE", "The sheet is empty", line=-1)
        return None

    header_fields, _ = records[0]
    headers = [header.strip() for header in header_fields]
    if not any(headers):
        issues.fatal("EMPTY_HEADER_ROW", "The header row is empty", line=1)
        return None

    width = len(headers)
    while width and not headers[width - 1]:
        width -= 1
    headers = headers[:width]
    rows = [(fields[:width], line) for fields, line in records[1:]]
    csv_file = CsvFile.from_records(headers, rows)
    logger.debug("Read %d rows from sheet %r of %s", len(csv_file.rows), title, path)
    return csv_file


def _sheet_records(ws) -> List[Tuple[List[str], int]]:
    records: List[Tuple[List[str], int]] = []
    for line, values in enumerate(ws.iter_rows(min_row=1, min_col=1, values_only=True), start=1):
        fields = [cell_text(value) for value in values]
        if not any(field.strip() for field in fields):
            if not records and line == 1:
                records.append((fields, line))
            continue
        records.append((fields, line))
    return records


def load_cue_sheet(
    path: str | os.PathLike[str], issues: IssueAcceptor, sheet: Optional[str] = None
) -> Optional[CsvFile]:
    """Load a cue sheet, choosing the reader from the file suffix."""

    if Path(path).suffix.lower() in WORKBOOK_SUFFIXES:
        return load_workbook_file(path, issues, sheet=sheet)
    return CsvParser().parse_file(path, issues)
