"""Shared utility helpers for the qlab_from_csv package."""

from __future__ import annotations

import json
import os
import re
from typing import Any, Optional

_INT_PATTERN = re.compile(r"\s*([+-]?\d+)\s*")


def parse_int(value: str | None) -> Optional[int]:
    """Parse a whole number, returning ``None`` when ``value`` is not one.

    Surrounding whitespace is ignored; signs are accepted.
    """

    if value is None:
        return None
    match = _INT_PATTERN.fullmatch(value)
    if not match:
        return None
    return int(match.group(1))


def strip_prefix_int(token: str, prefix: str) -> Optional[int]:
    """Parse the integer following ``prefix`` in ``token`` (``"L2"`` -> 2)."""

    if not token.startswith(prefix):
        return None
    return parse_int(token[len(prefix):])


def string_or_none(value: Any) -> Optional[str]:
    """Return the stripped text of ``value`` or ``None`` when it is blank."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def cell_text(value: Any) -> str:
    """Render a spreadsheet cell value as the text a CSV export would hold."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def dump_json(path: str | os.PathLike[str], data: Any) -> None:
    """Write a JSON document to ``path`` with UTF-8 encoding."""

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, ensure_ascii=False, indent=2)
