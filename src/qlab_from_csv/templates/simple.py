"""Generic template: lighting console go cues plus sound and video starts."""

from __future__ import annotations

from typing import List, Sequence

from ..issues import IssueAcceptor
from ..models import Cue, LxGoCue, StartCue
from ..template import CueParser, CueTemplate
from ..utils import strip_prefix_int

ID_COLUMN = "QLab"
PAGE_COLUMN = "Page"
COMMENT_COLUMN = "Comment"
LX_COLUMN = "LX"
SOUND_COLUMN = "Sound"
VIDEO_COLUMN = "Video"


def _prefixed_int(token: str, prefix: str, issues: IssueAcceptor, line: int) -> int | None:
    value = strip_prefix_int(token, prefix)
    if value is None:
        issues.warn(
            "INVALID_PARAMETER",
            f"Expected a whole number after '{prefix}'; the value is ignored",
            line=line,
            cause=token,
        )
    return value


def parse_lx(tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int) -> List[Cue]:
    """``<lx cue> [L<cue list>] [P<patch>]``."""

    cue = LxGoCue(lx_number=tokens[0], pre_wait=pre_wait)
    index = 1
    if index < len(tokens) and tokens[index].startswith("L"):
        cue.lx_cue_list = _prefixed_int(tokens[index], "L", issues, line)
        index += 1
    if index < len(tokens) and tokens[index].startswith("P"):
        cue.patch = _prefixed_int(tokens[index], "P", issues, line)
        index += 1
    if index < len(tokens):
        issues.warn(
            "EXTRA_PARAMETERS",
            "Only the LX cue number, an optional L<cue list> and P<patch> were expected",
            line=line,
            cause=" ".join(tokens[index:]),
        )
    return [cue]


def _start_parser(prefix: str) -> CueParser:
    def parse(tokens: Sequence[str], pre_wait: float, issues: IssueAcceptor, line: int) -> List[Cue]:
        if len(tokens) > 1:
            issues.warn(
                "EXTRA_PARAMETERS",
                "Only the cue number to start was expected",
                line=line,
                cause=" ".join(tokens[1:]),
            )
        return [StartCue(target_number=prefix + tokens[0], pre_wait=pre_wait)]

    return parse


def build_simple_template() -> CueTemplate:
    return CueTemplate(
        name="simple",
        id_column=ID_COLUMN,
        page_column=PAGE_COLUMN,
        comment_column=COMMENT_COLUMN,
        parsers={
            LX_COLUMN: parse_lx,
            SOUND_COLUMN: _start_parser("S"),
            VIDEO_COLUMN: _start_parser("V"),
        },
        wrap_single_producer_rows=False,
    )
