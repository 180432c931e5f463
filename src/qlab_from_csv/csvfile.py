"""Comma separated cue sheet parser."""

from __future__ import annotations

import csv
import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .issues import IssueAcceptor

__all__ = ["CsvFile", "CsvParser", "CsvRow", "parse_csv"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvRow:
    """A data row with the 1-based line number it started on."""

    fields: Tuple[str, ...]
    line: int

    def get(self, index: Optional[int]) -> str:
        """Return the field at ``index`` or an empty string for short rows."""

        if index is None or index < 0 or index >= len(self.fields):
            return ""
        return self.fields[index]

    @property
    def is_blank(self) -> bool:
        return all(not field.strip() for field in self.fields)


@dataclass(frozen=True, slots=True)
class CsvFile:
    """Parsed cue sheet: header names and data rows, immutable."""

    headers: Tuple[str, ...]
    rows: Tuple[CsvRow, ...]

    @classmethod
    def from_records(cls, headers: Iterable[str], rows: Iterable[Tuple[Sequence[str], int]]) -> "CsvFile":
        return cls(
            headers=tuple(headers),
            rows=tuple(CsvRow(fields=tuple(fields), line=line) for fields, line in rows),
        )

    def column_index(self, name: Optional[str]) -> Optional[int]:
        """Index of the first header called ``name``; ``None`` when absent."""

        if name is None:
            return None
        try:
            return self.headers.index(name)
        except ValueError:
            return None

    def has_column(self, name: Optional[str]) -> bool:
        return self.column_index(name) is not None

    def cell(self, row: CsvRow, name: Optional[str]) -> str:
        return row.get(self.column_index(name))

    def column_map(self) -> Dict[str, int]:
        mapping: Dict[str, int] = {}
        for index, header in enumerate(self.headers):
            mapping.setdefault(header, index)
        return mapping

    def __len__(self) -> int:
        return len(self.rows)


class CsvParser:
    """Reads delimited text into a :class:`CsvFile`.

    Problems are recorded on the supplied :class:`IssueAcceptor`. Whole-file
    problems are FATAL and yield ``None``; row-level inconsistencies are
    recorded as warnings and parsing carries on.
    """

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    def parse_file(self, path: str | os.PathLike[str], issues: IssueAcceptor) -> Optional[CsvFile]:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except FileNotFoundError:
            issues.fatal("FILE_NOT_READABLE", f"File not found: {path}", line=-1, cause=str(path))
            return None
        except (OSError, UnicodeDecodeError) as exc:
            issues.fatal("FILE_NOT_READABLE", f"Unable to read {path}: {exc}", line=-1, cause=str(path))
            return None
        logger.debug("Read %d characters from %s", len(text), path)
        return self.parse_text(text, issues)

    def parse_text(self, text: str, issues: IssueAcceptor) -> Optional[CsvFile]:
        if text.startswith("\ufeff"):
            text = text[1:]
        if not text.strip():
            issues.fatal("EMPTY_FILE", "The file is empty", line=-1)
            return None

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter)
        records: List[Tuple[List[str], int]] = []
        next_line = 1
        try:
            for fields in reader:
                records.append((fields, next_line))
                next_line = reader.line_num + 1
        except csv.Error as exc:
            issues.fatal("FILE_NOT_READABLE", f"Malformed delimited text: {exc}", line=reader.line_num)
            return None

        header_fields, _ = records[0]
        headers = [header.strip() for header in header_fields]
        if not any(headers):
            issues.fatal("EMPTY_HEADER_ROW", "The header row is empty", line=1)
            return None

        seen: set[str] = set()
        for header in headers:
            if header and header in seen:
                issues.warn(
                    "DUPLICATE_HEADER_COLUMN",
                    "Column name is repeated; only the first column is used",
                    line=1,
                    cause=header,
                )
            seen.add(header)

        rows: List[Tuple[List[str], int]] = []
        for fields, line in records[1:]:
            if not fields:
                continue
            if len(fields) != len(headers):
                issues.warn(
                    "INCONSISTENT_COLUMN_COUNT",
                    f"Expected {len(headers)} fields but found {len(fields)}",
                    line=line,
                )
            rows.append((fields, line))

        csv_file = CsvFile.from_records(headers, rows)
        logger.debug("Parsed %d rows with %d header columns", len(csv_file.rows), len(csv_file.headers))
        return csv_file


def parse_csv(source: str | os.PathLike[str], issues: IssueAcceptor) -> Optional[CsvFile]:
    """Parse ``source`` with the default comma parser.

    Path objects are read from disk; plain strings are parsed as CSV text.
    """

    parser = CsvParser()
    if isinstance(source, os.PathLike):
        return parser.parse_file(source, issues)
    return parser.parse_text(source, issues)
