"""Mixer template built from the column names of a cue sheet.

Besides the ``QLab``/``Comment``/``Page`` columns, a sheet can hold a
``Mute`` column (``<channel>``) and any number of ``DCA<n>``/``VCA<n>``
columns. A DCA cell is either ``*`` to disable the DCA, or
``<name> <channel>+<channel>...`` to name it and assign channels to it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ..issues import IssueAcceptor
from ..models import AssignChannelToDcaCue, Colour, Cue, DcaGroupCue, SetChannelMixOnCue, SetDcaColourCue, SetDcaNameCue
from ..template import CueParser, CueTemplate
from ..utils import parse_int

__all__ = ["build_x32_template", "dca_parser", "mute_parser"]

logger = logging.getLogger(__name__)

ID_COLUMN = "QLab"
COMMENT_COLUMN = "Comment"
PAGE_COLUMN = "Page"
MUTE_COLUMN = "Mute"
DCA_PREFIXES = ("VCA", "DCA")
INACTIVE_MARKER = "*"
CHANNEL_SEPARATOR = "+"


def build_x32_template(column_names: Sequence[str], patch: int, issues: IssueAcceptor) -> Optional[CueTemplate]:
    """Build a template for the columns present in a sheet.

    Returns ``None`` only when the id column is missing. Columns that cannot
    be understood are reported and left out of the template.
    """

    remaining = list(column_names)
    if ID_COLUMN not in remaining:
        issues.fatal("MISSING_HEADER_COLUMN", f"Missing ID column: {ID_COLUMN}", line=1, cause=ID_COLUMN)
        return None
    remaining.remove(ID_COLUMN)

    comment_column = _take(remaining, COMMENT_COLUMN)
    page_column = _take(remaining, PAGE_COLUMN)

    parsers: Dict[str, CueParser] = {}
    for column_name in remaining:
        if not column_name or column_name in parsers:
            continue
        parser = _build_cue_parser(patch, column_name, issues)
        if parser is not None:
            parsers[column_name] = parser

    logger.debug("Mixer template for patch %d with columns %s", patch, list(parsers))
    return CueTemplate(
        name="x32",
        id_column=ID_COLUMN,
        page_column=page_column,
        comment_column=comment_column,
        parsers=parsers,
        wrap_single_producer_rows=True,
    )


def _take(columns: List[str], name: str) -> Optional[str]:
    if name in columns:
        columns.remove(name)
        return name
    return None


def _build_cue_parser(patch: int, column_name: str, issues: IssueAcceptor) -> Optional[CueParser]:
    if column_name == MUTE_COLUMN:
        return mute_parser(patch)

    if column_name.startswith(DCA_PREFIXES):
        dca = parse_int(column_name[3:])
        if dca is None or dca < 1:
            issues.error(
                "INVALID_DCA_COLUMN_NAME",
                "Unable to parse a DCA number of 1 or more from column name",
                line=1,
                cause=column_name,
            )
            return None
        return dca_parser(patch, dca)

    issues.warn("UNKNOWN_COLUMN_NAME", "Unable to create CueParser for column.", line=1, cause=column_name)
    return None


def mute_parser(patch: int) -> CueParser:
    """Cell holds a channel to unassign from every DCA and mute."""

    def parse(tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int) -> List[Cue]:
        if len(tokens) < 1:
            issues.error("MISSING_PARAMETERS", "The channel number to mute/unassign is missing", line=line)
            return []
        if len(tokens) > 1:
            issues.warn("EXTRA_PARAMETERS", "Only the channel number was expected", line=line, cause=str(list(tokens)))

        channel = parse_int(tokens[0])
        if channel is None:
            issues.error("INVALID_CHANNEL", "The channel must be an integer value", line=line, cause=tokens[0])
            return []

        cues: List[Cue] = [
            AssignChannelToDcaCue(patch=patch, channel=channel, dca=None, pre_wait=pre_wait),
            SetChannelMixOnCue(patch=patch, channel=channel, on=False, pre_wait=pre_wait),
        ]
        return [DcaGroupCue(dca=0, comment=f"Mute channel {channel}", children=cues)]

    return parse


def dca_parser(patch: int, dca: int) -> CueParser:
    """Cell holds ``*`` or ``<name> <channels>`` for DCA ``dca``."""

    def parse(tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int) -> List[Cue]:
        if len(tokens) < 1:
            issues.error("MISSING_PARAMETERS", "The DCA name is missing", line=line)
            return []
        if tokens[0] == INACTIVE_MARKER:
            return _parse_inactive_dca(patch, dca, tokens, pre_wait, issues, line)
        return _parse_active_dca(patch, dca, tokens, pre_wait, issues, line)

    return parse


def _parse_inactive_dca(
    patch: int, dca: int, tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int
) -> List[Cue]:
    if len(tokens) > 1:
        issues.warn("EXTRA_PARAMETERS", "Only the DCA name was expected", line=line, cause=str(list(tokens)))
    cues: List[Cue] = [
        SetDcaNameCue(patch=patch, dca=dca, name="", pre_wait=pre_wait),
        SetDcaColourCue(patch=patch, dca=dca, colour=Colour.OFF, pre_wait=pre_wait),
    ]
    return [DcaGroupCue(dca=dca, comment="Disable", children=cues)]


def _parse_active_dca(
    patch: int, dca: int, tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int
) -> List[Cue]:
    if len(tokens) < 2:
        issues.error("MISSING_PARAMETERS", "The DCA name and channel numbers are missing", line=line)
        return []
    if len(tokens) > 2:
        issues.warn(
            "EXTRA_PARAMETERS",
            "Only the DCA name and channel numbers were expected",
            line=line,
            cause=str(list(tokens)),
        )

    name = tokens[0]
    channels: List[int] = []
    for chunk in tokens[1].split(CHANNEL_SEPARATOR):
        channel = parse_int(chunk)
        if channel is None:
            issues.error("INVALID_DCA_CHANNELS", "Channel numbers must be integers", line=line, cause=chunk)
            continue
        channels.append(channel)

    cues: List[Cue] = [
        SetDcaNameCue(patch=patch, dca=dca, name=name, pre_wait=pre_wait),
        SetDcaColourCue(patch=patch, dca=dca, colour=Colour.WHITE, pre_wait=pre_wait),
    ]
    for channel in channels:
        cues.append(AssignChannelToDcaCue(patch=patch, channel=channel, dca=dca, pre_wait=pre_wait))
        cues.append(SetChannelMixOnCue(patch=patch, channel=channel, on=True, pre_wait=pre_wait))
    return [DcaGroupCue(dca=dca, comment=f'Enable as "{name}"', children=cues)]
