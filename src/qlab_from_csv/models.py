"""Cue data models produced from cue sheet rows.

The set of cue variants is closed: :data:`Cue` is the union of the dataclasses
below and :func:`describe` / :func:`cue_name` render each variant explicitly.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

__all__ = [
    "AssignChannelToDcaCue",
    "Colour",
    "Cue",
    "DcaGroupCue",
    "GroupCue",
    "LogScriptCue",
    "LxGoCue",
    "SetChannelMixOnCue",
    "SetDcaColourCue",
    "SetDcaNameCue",
    "StartCue",
    "count_cues",
    "cue_name",
    "cue_to_dict",
    "describe",
    "sort_cues",
    "walk",
]


class Colour(Enum):
    """Scribble strip colours understood by the mixer, with their wire values."""

    OFF = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    WHITE = 7


def _check_pre_wait(pre_wait: float) -> None:
    if pre_wait < 0:
        raise ValueError(f"pre_wait must be >= 0, got {pre_wait!r}")


@dataclass(slots=True)
class GroupCue:
    """A row of the cue sheet: an addressable cue with ordered children."""

    children: List["Cue"] = field(default_factory=list)
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    page: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    def __lt__(self, other: "GroupCue") -> bool:
        if not isinstance(other, GroupCue):
            return NotImplemented
        return (self.cue_number or "") < (other.cue_number or "")


@dataclass(slots=True)
class DcaGroupCue:
    """Mixer group cue holding the changes applied to one DCA."""

    dca: int
    children: List["Cue"] = field(default_factory=list)
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)


@dataclass(slots=True)
class StartCue:
    """Starts another cue in the workspace, e.g. ``S12`` or ``V3``."""

    target_number: str
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)


@dataclass(slots=True)
class LxGoCue:
    """Fires a cue on the lighting console."""

    lx_number: str
    lx_cue_list: Optional[int] = None
    patch: Optional[int] = None
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)


@dataclass(slots=True)
class LogScriptCue:
    """Appends ``<timestamp>,<log_id>`` to a log file when fired."""

    log_id: str
    log_file: str
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    @property
    def shell_command(self) -> str:
        line = f'"$(date +%Y-%m-%dT%H:%M:%S),{self.log_id}"'
        return f"echo {line} >> {shlex.quote(self.log_file)}"

    @property
    def script_source(self) -> str:
        """AppleScript body for a script cue running :attr:`shell_command`."""

        escaped = self.shell_command.replace("\\", "\\\\").replace('"', '\\"')
        return f'do shell script "{escaped}"'


# Mixer cues. ``patch`` selects which physical mixer the cue is sent to.


@dataclass(slots=True)
class SetChannelMixOnCue:
    patch: int
    channel: int
    on: bool
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    def osc_message(self) -> Tuple[str, Tuple[Any, ...]]:
        return f"/ch/{self.channel:02d}/mix/on", (1 if self.on else 0,)


@dataclass(slots=True)
class AssignChannelToDcaCue:
    """Assigns a channel to a single DCA, or to none when ``dca`` is ``None``."""

    patch: int
    channel: int
    dca: Optional[int]
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    def osc_message(self) -> Tuple[str, Tuple[Any, ...]]:
        # The mixer stores DCA membership as a bitmask, DCA 1 being bit 0.
        mask = 0 if self.dca is None else 1 << (self.dca - 1)
        return f"/ch/{self.channel:02d}/grp/dca", (mask,)


@dataclass(slots=True)
class SetDcaNameCue:
    patch: int
    dca: int
    name: str
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    def osc_message(self) -> Tuple[str, Tuple[Any, ...]]:
        return f"/dca/{self.dca}/config/name", (self.name,)


@dataclass(slots=True)
class SetDcaColourCue:
    patch: int
    dca: int
    colour: Colour
    cue_number: Optional[str] = None
    comment: Optional[str] = None
    pre_wait: float = 0.0

    def __post_init__(self) -> None:
        _check_pre_wait(self.pre_wait)

    @property
    def description(self) -> str:
        return describe(self)

    @property
    def cue_name(self) -> str:
        return cue_name(self)

    def osc_message(self) -> Tuple[str, Tuple[Any, ...]]:
        return f"/dca/{self.dca}/config/color", (self.colour.value,)


Cue = Union[
    GroupCue,
    DcaGroupCue,
    StartCue,
    LxGoCue,
    LogScriptCue,
    SetChannelMixOnCue,
    AssignChannelToDcaCue,
    SetDcaNameCue,
    SetDcaColourCue,
]

GROUP_TYPES: Tuple[type, ...] = (GroupCue, DcaGroupCue)


def _children_description(children: Iterable[Cue]) -> str:
    return ",".join(describe(child) for child in children)


def _describe_group(cue: GroupCue) -> str:
    return f"{cue.cue_number or '#'}<{_children_description(cue.children)}>"


def _name_group(cue: GroupCue) -> str:
    name = ""
    if cue.comment:
        name += f"{cue.comment} "
    if cue.page:
        name += f"(pg{cue.page}) "
    return name + f"({_children_description(cue.children)})"


def _describe_lx(cue: LxGoCue) -> str:
    return f"LX{cue.lx_number}"


def _name_lx(cue: LxGoCue) -> str:
    name = f"LX {cue.lx_number}"
    if cue.lx_cue_list is not None:
        name += f" (list {cue.lx_cue_list})"
    if cue.patch is not None:
        name += f" (patch {cue.patch})"
    return name


def _describe_mix_on(cue: SetChannelMixOnCue) -> str:
    return f"Ch{cue.channel}{'On' if cue.on else 'Off'}"


def _name_mix_on(cue: SetChannelMixOnCue) -> str:
    return f"Channel {cue.channel} {'on' if cue.on else 'off'} (patch {cue.patch})"


def _describe_assign(cue: AssignChannelToDcaCue) -> str:
    target = "-" if cue.dca is None else f"DCA{cue.dca}"
    return f"Ch{cue.channel}=>{target}"


def _name_assign(cue: AssignChannelToDcaCue) -> str:
    if cue.dca is None:
        return f"Unassign channel {cue.channel} from all DCAs (patch {cue.patch})"
    return f"Assign channel {cue.channel} to DCA {cue.dca} (patch {cue.patch})"


_DESCRIBERS: Dict[type, Callable[[Any], str]] = {
    GroupCue: _describe_group,
    DcaGroupCue: lambda cue: f"DCA{cue.dca}",
    StartCue: lambda cue: cue.target_number,
    LxGoCue: _describe_lx,
    LogScriptCue: lambda cue: "Log",
    SetChannelMixOnCue: _describe_mix_on,
    AssignChannelToDcaCue: _describe_assign,
    SetDcaNameCue: lambda cue: f'DCA{cue.dca}:"{cue.name}"',
    SetDcaColourCue: lambda cue: f"DCA{cue.dca}:{cue.colour.name}",
}

_NAMERS: Dict[type, Callable[[Any], str]] = {
    GroupCue: _name_group,
    DcaGroupCue: lambda cue: f"DCA{cue.dca} => {cue.comment or ''}",
    StartCue: lambda cue: f"Start {cue.target_number}",
    LxGoCue: _name_lx,
    LogScriptCue: lambda cue: f"Log {cue.log_id}",
    SetChannelMixOnCue: _name_mix_on,
    AssignChannelToDcaCue: _name_assign,
    SetDcaNameCue: lambda cue: f'Name DCA {cue.dca} "{cue.name}" (patch {cue.patch})',
    SetDcaColourCue: lambda cue: f"Colour DCA {cue.dca} {cue.colour.name} (patch {cue.patch})",
}


def describe(cue: Cue) -> str:
    """Short description, as shown inside a parent group's description."""

    try:
        return _DESCRIBERS[type(cue)](cue)
    except KeyError:
        raise TypeError(f"Not a cue: {cue!r}") from None


def cue_name(cue: Cue) -> str:
    """Display name given to the cue in the show-control workspace."""

    try:
        return _NAMERS[type(cue)](cue)
    except KeyError:
        raise TypeError(f"Not a cue: {cue!r}") from None


def walk(cues: Iterable[Cue]) -> Iterator[Cue]:
    """Traverse cues depth-first, yielding each group before its children."""

    for cue in cues:
        yield cue
        if isinstance(cue, GROUP_TYPES):
            yield from walk(cue.children)


def count_cues(cues: Iterable[Cue]) -> int:
    return sum(1 for _ in walk(cues))


def sort_cues(cues: Iterable[Cue]) -> List[Cue]:
    """Return cues ordered by cue number, absent numbers sorting first."""

    return sorted(cues, key=lambda cue: cue.cue_number or "")


def cue_to_dict(cue: Cue) -> Dict[str, Any]:
    """Convert a cue tree into JSON-ready dictionaries."""

    data: Dict[str, Any] = {"type": type(cue).__name__, "name": cue_name(cue)}
    for item in fields(cue):
        value = getattr(cue, item.name)
        if item.name == "children":
            value = [cue_to_dict(child) for child in value]
        elif isinstance(value, Colour):
            value = value.name
        data[item.name] = value
    if hasattr(cue, "osc_message"):
        address, arguments = cue.osc_message()
        data["osc"] = {"address": address, "arguments": list(arguments)}
    return data
