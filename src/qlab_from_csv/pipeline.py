"""Full conversion from a cue sheet file to a list of cues."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .augment import apply_log
from .config import ConversionConfig
from .csvfile import CsvFile, parse_csv
from .issues import Issue, IssueAcceptor, IssueSeverity, summarize_issues
from .models import Cue, count_cues, cue_to_dict
from .rowparser import RowParser
from .templates import select_template
from .utils import dump_json
from .workbook import load_cue_sheet

__all__ = ["ConversionResult", "compile_cues", "convert", "convert_text", "write_report"]

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of one conversion attempt.

    ``csv_issues`` covers reading the sheet; ``cue_issues`` covers building
    the template, compiling rows and adding log cues. ``cues`` is empty
    whenever either stage had a fatal issue.
    """

    cues: List[Cue] = field(default_factory=list)
    csv_file: Optional[CsvFile] = None
    csv_issues: IssueAcceptor = field(default_factory=IssueAcceptor)
    cue_issues: IssueAcceptor = field(default_factory=IssueAcceptor)

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return self.csv_issues.issues + self.cue_issues.issues

    @property
    def has_fatal_errors(self) -> bool:
        return self.csv_issues.has_fatal_errors or self.cue_issues.has_fatal_errors

    @property
    def is_valid(self) -> bool:
        return bool(self.cues) and not self.has_fatal_errors

    def count(self, severity: IssueSeverity) -> int:
        return self.csv_issues.count(severity) + self.cue_issues.count(severity)


def compile_cues(csv_file: CsvFile, config: ConversionConfig, issues: IssueAcceptor) -> List[Cue]:
    """Template selection, row compilation and log augmentation.

    Each stage runs only while ``issues`` holds no fatal issue.
    """

    if config.pre_wait is not None and config.pre_wait < 0:
        issues.fatal("INVALID_PRE_WAIT", f"Pre-wait must be 0 or more, got {config.pre_wait}", line=-1)
        return []

    template = select_template(config.template, csv_file.headers, config.patch, issues)
    if template is None or issues.has_fatal_errors:
        return []

    cues = RowParser(template, pre_wait=config.pre_wait).load(csv_file, issues)
    if issues.has_fatal_errors:
        return []

    cues = apply_log(cues, config.log_file)
    if issues.has_fatal_errors:
        return []
    return cues


def _finish(result: ConversionResult, config: ConversionConfig) -> ConversionResult:
    if result.csv_issues.has_fatal_errors:
        result.csv_file = None
        return result
    if result.csv_file is None:
        result.csv_issues.fatal("UNKNOWN", "Unknown error whilst parsing CSV file", line=-1)
        return result

    logger.info(
        "%d rows plus header row, %d header columns",
        len(result.csv_file.rows),
        len(result.csv_file.headers),
    )
    result.cues = compile_cues(result.csv_file, config, result.cue_issues)
    logger.info("Parsed %d cues (%d including children)", len(result.cues), count_cues(result.cues))
    return result


def convert(source: str | os.PathLike[str], config: ConversionConfig | None = None) -> ConversionResult:
    """Convert the cue sheet at ``source`` (CSV or workbook) into cues."""

    config = config or ConversionConfig()
    result = ConversionResult()
    result.csv_file = load_cue_sheet(source, result.csv_issues, sheet=config.sheet)
    return _finish(result, config)


def convert_text(text: str, config: ConversionConfig | None = None) -> ConversionResult:
    """Convert CSV ``text`` into cues."""

    config = config or ConversionConfig()
    result = ConversionResult()
    result.csv_file = parse_csv(text, result.csv_issues)
    return _finish(result, config)


def build_report(result: ConversionResult, source: str | None = None) -> Dict[str, Any]:
    return {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        "source": source,
        "valid": result.is_valid,
        "cues": [cue_to_dict(cue) for cue in result.cues],
        "issues": [issue.to_dict() for issue in result.issues],
        "summary": summarize_issues(result.issues),
    }


def write_report(result: ConversionResult, path: str | Path, source: str | None = None) -> Path:
    """Write the cues and issues of ``result`` as a JSON report."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    dump_json(path, build_report(result, source))
    return path
