"""Compiles the rows of a cue sheet into cues using a :class:`CueTemplate`."""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Optional

from .csvfile import CsvFile, CsvRow
from .issues import IssueAcceptor
from .models import Cue, GroupCue
from .template import CueTemplate
from .utils import string_or_none

__all__ = ["RowParser"]

logger = logging.getLogger(__name__)


class RowParser:
    """Turns each row of a :class:`CsvFile` into at most one top-level cue.

    Rows are processed in file order. A row whose cells produce no cues is
    skipped. Otherwise the produced cues are wrapped in a :class:`GroupCue`
    numbered after the id column, unless the template allows bare cues and
    the row has a single producing column that yielded a single cue.
    """

    def __init__(self, template: CueTemplate, pre_wait: Optional[float] = None) -> None:
        self.template = template
        self.pre_wait = template.pre_wait if pre_wait is None else pre_wait
        if self.pre_wait < 0:
            raise ValueError(f"pre_wait must be >= 0, got {self.pre_wait!r}")

    def load(self, csv_file: CsvFile, issues: IssueAcceptor) -> List[Cue]:
        template = self.template
        if not csv_file.has_column(template.id_column):
            issues.fatal(
                "MISSING_HEADER_COLUMN",
                f"Missing ID column: {template.id_column}",
                line=1,
                cause=template.id_column,
            )
            return []

        columns = csv_file.column_map()
        producers = [(name, columns[name], parser) for name, parser in template.parsers.items() if name in columns]
        if not producers:
            logger.warning("None of the template columns %s are present in the sheet", template.producer_columns)

        cues: List[Cue] = []
        seen_numbers: Dict[str, int] = {}
        for row in csv_file.rows:
            cue = self._load_row(csv_file, row, producers, issues)
            if cue is None:
                continue
            self._check_cue_number(cue, row, seen_numbers, issues)
            cues.append(cue)

        logger.debug("Compiled %d cues from %d rows", len(cues), len(csv_file.rows))
        return cues

    def _load_row(self, csv_file: CsvFile, row: CsvRow, producers, issues: IssueAcceptor) -> Optional[Cue]:
        template = self.template
        row_cues: List[Cue] = []
        producing_columns = 0
        for name, index, parser in producers:
            tokens = template.tokenize(row.get(index))
            if not tokens:
                continue
            try:
                produced = list(parser(tokens, self.pre_wait, issues, row.line))
            except Exception as exc:  # noqa: BLE001 - parsers are pluggable
                logger.exception("Cue parser for column %r failed on line %d", name, row.line)
                issues.error("CUE_PARSER_FAILED", f"{type(exc).__name__}: {exc}", line=row.line, cause=name)
                continue
            if produced:
                producing_columns += 1
                row_cues.extend(produced)

        if not row_cues:
            return None

        cue_number = string_or_none(csv_file.cell(row, template.id_column))
        comment = string_or_none(csv_file.cell(row, template.comment_column))
        page = string_or_none(csv_file.cell(row, template.page_column))

        if not template.wrap_single_producer_rows and producing_columns == 1 and len(row_cues) == 1:
            bare = row_cues[0]
            changes = {"cue_number": cue_number}
            if comment is not None:
                changes["comment"] = comment
            return dataclasses.replace(bare, **changes)

        return GroupCue(
            cue_number=cue_number,
            comment=comment,
            page=page,
            children=row_cues,
            pre_wait=0.0,
        )

    @staticmethod
    def _check_cue_number(cue: Cue, row: CsvRow, seen: Dict[str, int], issues: IssueAcceptor) -> None:
        number = cue.cue_number
        if number is None:
            issues.warn("MISSING_CUE_NUMBER", "The row produces cues but has no cue number", line=row.line)
            return
        if number in seen:
            issues.warn(
                "DUPLICATE_CUE_NUMBER",
                f"Cue number already used on line {seen[number]}",
                line=row.line,
                cause=number,
            )
            return
        seen[number] = row.line
