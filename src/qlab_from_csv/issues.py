"""Structured diagnostics collected while converting a cue sheet."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

__all__ = [
    "Issue",
    "IssueAcceptor",
    "IssueSeverity",
    "summarize_issues",
]

logger = logging.getLogger(__name__)


class IssueSeverity(Enum):
    """Severity of an issue, from informational to conversion-breaking."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @property
    def log_level(self) -> int:
        return _SEVERITY_LOG_LEVELS[self]


_SEVERITY_RANKS = {
    IssueSeverity.INFO: 0,
    IssueSeverity.WARN: 1,
    IssueSeverity.ERROR: 2,
    IssueSeverity.FATAL: 3,
}
_SEVERITY_LOG_LEVELS = {
    IssueSeverity.INFO: logging.INFO,
    IssueSeverity.WARN: logging.WARNING,
    IssueSeverity.ERROR: logging.ERROR,
    IssueSeverity.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True, slots=True)
class Issue:
    """A single problem found in the input, with its source line when known."""

    severity: IssueSeverity
    code: str
    details: str
    line: Optional[int] = None
    cause: Optional[str] = None

    @property
    def is_whole_file(self) -> bool:
        return self.line is None or self.line < 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "line": None if self.is_whole_file else self.line,
            "cause": self.cause,
            "code": self.code,
            "details": self.details,
        }

    def __str__(self) -> str:
        location = "file" if self.is_whole_file else f"line {self.line}"
        text = f"[{self.severity.value}] {location}: {self.code} - {self.details}"
        if self.cause is not None:
            text += f" ({self.cause})"
        return text


class IssueAcceptor:
    """Append-only collection of issues for one parse or build attempt.

    A fresh acceptor is created for each attempt; nothing is ever removed
    from it. Each accepted issue is also written to the module logger.
    """

    def __init__(self) -> None:
        self._issues: List[Issue] = []

    def add(
        self,
        severity: IssueSeverity,
        code: str,
        details: str,
        line: Optional[int] = None,
        cause: Optional[str] = None,
    ) -> Issue:
        issue = Issue(severity=severity, code=code, details=details, line=line, cause=cause)
        self._issues.append(issue)
        logger.log(severity.log_level, "%s", issue)
        return issue

    def info(self, code: str, details: str, line: Optional[int] = None, cause: Optional[str] = None) -> Issue:
        return self.add(IssueSeverity.INFO, code, details, line, cause)

    def warn(self, code: str, details: str, line: Optional[int] = None, cause: Optional[str] = None) -> Issue:
        return self.add(IssueSeverity.WARN, code, details, line, cause)

    def error(self, code: str, details: str, line: Optional[int] = None, cause: Optional[str] = None) -> Issue:
        return self.add(IssueSeverity.ERROR, code, details, line, cause)

    def fatal(self, code: str, details: str, line: Optional[int] = None, cause: Optional[str] = None) -> Issue:
        return self.add(IssueSeverity.FATAL, code, details, line, cause)

    def extend(self, issues: Iterable[Issue]) -> None:
        for issue in issues:
            self._issues.append(issue)

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return tuple(self._issues)

    @property
    def has_fatal_errors(self) -> bool:
        return any(issue.severity is IssueSeverity.FATAL for issue in self._issues)

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self._issues if issue.severity is severity)

    def codes(self) -> List[str]:
        return [issue.code for issue in self._issues]

    def __iter__(self) -> Iterator[Issue]:
        return iter(tuple(self._issues))

    def __len__(self) -> int:
        return len(self._issues)

    def __repr__(self) -> str:
        return f"IssueAcceptor({len(self._issues)} issues, fatal={self.has_fatal_errors})"


IssueSummary = Dict[str, Any]


ISSUE_HINTS: Dict[str, str] = {
    "FILE_NOT_READABLE": "Check that the file exists and is saved as UTF-8 text.",
    "EMPTY_FILE": "The file has no content. Export the cue sheet again.",
    "EMPTY_HEADER_ROW": "The first line must name the columns, e.g. QLab,Page,Comment,LX.",
    "MISSING_SHEET": "The requested sheet does not exist in the workbook.",
    "INCONSISTENT_COLUMN_COUNT": "A row has a different number of fields from the header. Look for stray commas.",
    "DUPLICATE_HEADER_COLUMN": "Two columns share a name. Only the first one is read.",
    "MISSING_HEADER_COLUMN": "The cue number column (QLab) is required.",
    "UNKNOWN_TEMPLATE": "Choose one of the available templates.",
    "UNKNOWN_COLUMN_NAME": "The column is not understood by the template and is ignored.",
    "INVALID_DCA_COLUMN_NAME": "DCA/VCA columns must end with a group number from 1, e.g. 'DCA 3'.",
    "MISSING_PARAMETERS": "A cell is missing required values.",
    "EXTRA_PARAMETERS": "A cell has more values than expected. The extra values are ignored.",
    "INVALID_PARAMETER": "A prefixed value (L<n> or P<n>) is not a whole number.",
    "INVALID_CHANNEL": "Channel numbers must be whole numbers.",
    "INVALID_DCA_CHANNELS": "Channels assigned to a DCA must be whole numbers joined with '+'.",
    "CUE_PARSER_FAILED": "A column parser failed on this row. The row's cell is ignored.",
    "DUPLICATE_CUE_NUMBER": "Cue numbers should be unique within a sheet.",
    "MISSING_CUE_NUMBER": "The row produces cues but has no cue number.",
    "INVALID_PRE_WAIT": "Pre-wait is a number of seconds, 0 or more.",
}
_DEFAULT_HINT = "See the issue details for this line."


def hint_for(code: str) -> str:
    """Return the remediation hint for an issue code."""

    return ISSUE_HINTS.get(code, _DEFAULT_HINT)


def summarize_issues(issues: Iterable[Issue]) -> List[IssueSummary]:
    """Aggregate issue counts per code and attach a hint for each code."""

    summary: Dict[str, Dict[str, Any]] = {}

    for issue in issues:
        data = summary.setdefault(
            issue.code,
            {
                "code": issue.code,
                "severity": issue.severity,
                "count": 0,
                "hint": hint_for(issue.code),
                "lines": set(),
            },
        )
        data["count"] += 1
        if issue.severity.rank > data["severity"].rank:
            data["severity"] = issue.severity
        if not issue.is_whole_file:
            data["lines"].add(issue.line)

    ordered: List[IssueSummary] = []
    for data in summary.values():
        ordered.append(
            {
                "code": data["code"],
                "severity": data["severity"].value,
                "count": data["count"],
                "hint": data["hint"],
                "lines": sorted(data["lines"]),
            }
        )

    ordered.sort(key=lambda item: item["count"], reverse=True)
    return ordered
