"""Post-processing passes applied to compiled cues."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .models import Cue, GroupCue, LogScriptCue

__all__ = ["apply_log"]

logger = logging.getLogger(__name__)


def apply_log(cues: Sequence[Cue], log_file: str) -> List[Cue]:
    """Append a :class:`LogScriptCue` to every top-level :class:`GroupCue`.

    Bare top-level cues are returned unchanged. The groups are modified in
    place, so applying the pass twice appends a second log cue to each group.
    An empty ``log_file`` returns the cues untouched.
    """

    if not log_file:
        return list(cues)

    logged = 0
    for cue in cues:
        if isinstance(cue, GroupCue):
            cue.children.append(LogScriptCue(log_id=cue.cue_number or "", log_file=log_file, pre_wait=0.0))
            logged += 1
    logger.debug("Added log cues to %d of %d cues (%s)", logged, len(cues), log_file)
    return list(cues)
