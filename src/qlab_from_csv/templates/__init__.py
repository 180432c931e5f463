"""Template factories and selection by name."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

from ..issues import IssueAcceptor
from ..template import CueTemplate
from .simple import build_simple_template
from .x32 import build_x32_template

__all__ = ["TEMPLATE_NAMES", "build_simple_template", "build_x32_template", "select_template"]


TemplateFactory = Callable[[Sequence[str], int, IssueAcceptor], Optional[CueTemplate]]

_FACTORIES: Dict[str, TemplateFactory] = {
    "simple": lambda headers, patch, issues: build_simple_template(),
    "x32": build_x32_template,
}

TEMPLATE_NAMES = tuple(_FACTORIES)


def select_template(
    name: str, headers: Sequence[str], patch: int, issues: IssueAcceptor
) -> Optional[CueTemplate]:
    """Build the template called ``name`` for a sheet with ``headers``."""

    factory = _FACTORIES.get(name.lower())
    if factory is None:
        issues.fatal(
            "UNKNOWN_TEMPLATE",
            f"Unknown template {name!r}; expected one of {', '.join(TEMPLATE_NAMES)}",
            line=-1,
            cause=name,
        )
        return None
    return factory(headers, patch, issues)
