"""Column templates mapping cue sheet columns to cue parsers."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence

from .issues import IssueAcceptor
from .models import Cue

__all__ = ["CueParser", "CueTemplate"]


CueParser = Callable[[Sequence[str], float, IssueAcceptor, int], List[Cue]]
"""``(tokens, pre_wait, issues, line) -> cues`` for one non-empty cell."""


@dataclass(frozen=True, slots=True)
class CueTemplate:
    """Describes how the columns of a cue sheet turn into cues.

    ``parsers`` is copied into a read-only mapping when the template is
    created. ``wrap_single_producer_rows`` decides whether a row with a single
    producing column yielding a single cue is wrapped in a group cue
    (``True``) or returned as that bare cue (``False``).
    """

    name: str
    id_column: str
    parsers: Mapping[str, CueParser] = field(default_factory=dict)
    page_column: Optional[str] = None
    comment_column: Optional[str] = None
    token_separator: Optional[str] = None
    pre_wait: float = 0.0
    wrap_single_producer_rows: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "parsers", MappingProxyType(dict(self.parsers)))

    @property
    def producer_columns(self) -> List[str]:
        return list(self.parsers)

    @property
    def headers(self) -> List[str]:
        """Column names of a blank cue sheet for this template."""

        columns = [self.id_column]
        for column in (self.page_column, self.comment_column):
            if column is not None:
                columns.append(column)
        columns.extend(self.parsers)
        return columns

    def tokenize(self, cell: str) -> List[str]:
        """Split a cell into its non-empty tokens."""

        if self.token_separator is None:
            return cell.split()
        return [token.strip() for token in cell.split(self.token_separator) if token.strip()]
