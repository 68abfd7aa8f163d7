"""
Protocol Codec - Arguments for and replies from the backing process

Navigation replies are single lines of the form ``<id>|<line>`` and
selector output is ``<id>\\t<line>``. Both are split on the first
delimiter only since the command text may contain either character.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


REPLY_DELIMITER = "|"
SELECTION_DELIMITER = "\t"

DIRECTIONS = (-1, 1)


@dataclass(frozen=True)
class NavigationRequest:
    """A single ``move`` call sent to the backing process."""
    direction: int
    session: str = ""
    cursor: str = ""
    prefix: Optional[str] = None
    extra_args: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Entry:
    """A well-formed navigation reply."""
    entry_id: str
    line: str


@dataclass(frozen=True)
class Malformed:
    """A navigation reply without a delimiter."""
    raw: str


Reply = Union[Entry, Malformed]


@dataclass(frozen=True)
class SearchSelection:
    """The record picked in the selector."""
    entry_id: str
    line: str


def _strip_newline(raw: str) -> str:
    # Only the terminator; the command itself may end in whitespace
    if raw.endswith("\r\n"):
        return raw[:-2]
    if raw.endswith("\n"):
        return raw[:-1]
    return raw


def encode_move(request: NavigationRequest) -> List[str]:
    """
    Build the argument vector for a ``move`` call.

    Args:
        request: The navigation request

    Returns:
        Arguments for the backing process, flags before ``--`` and the
        signed direction and cursor after it
    """
    if request.direction not in DIRECTIONS:
        raise ValueError(f"Invalid direction: {request.direction!r}")

    args = ["move", "--with-id", "--session"]
    if request.prefix is not None:
        args.append(f"--prefix={request.prefix}")
    args.extend(request.extra_args)
    args.extend(["--", str(request.direction), request.cursor])
    return args


def decode_reply(raw: str) -> Reply:
    """Decode a ``move`` reply. An empty entry id is kept as is."""
    text = _strip_newline(raw)
    entry_id, sep, line = text.partition(REPLY_DELIMITER)
    if not sep:
        return Malformed(raw)
    return Entry(entry_id=entry_id, line=line)


def decode_selection(raw: str) -> Optional[SearchSelection]:
    """Decode selector output. Returns None when nothing was selected."""
    text = _strip_newline(raw).rstrip("\0")
    if not text:
        return None
    entry_id, sep, line = text.partition(SELECTION_DELIMITER)
    if not sep:
        return SearchSelection(entry_id="", line=text)
    return SearchSelection(entry_id=entry_id, line=line)
