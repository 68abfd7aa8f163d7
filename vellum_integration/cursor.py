"""
Cursor - Arrow-key navigation through the remote history
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .codec import Malformed, NavigationRequest, decode_reply
from .context import ShellContext

logger = logging.getLogger(__name__)


class Direction(IntEnum):
    """Signed step relayed to the backing process."""
    PREVIOUS = -1
    NEXT = 1


@dataclass(frozen=True)
class Idle:
    """No navigation in progress; the next step starts from the newest entry."""


@dataclass(frozen=True)
class Navigating:
    entry_id: str


CursorState = Union[Idle, Navigating]


def cursor_state(context: ShellContext) -> CursorState:
    if context.navigating:
        return Navigating(context.cursor)
    return Idle()


@dataclass(frozen=True)
class NavigationOutcome:
    """
    What the adapter should do with its edit buffer.

    ``buffer`` is the replacement text, or None to leave the buffer alone.
    ``bypass`` asks the adapter to move within the buffer instead.
    """
    buffer: Optional[str] = None
    bypass: bool = False

    @property
    def changed(self) -> bool:
        return self.buffer is not None


class Navigator:
    """
    Cursor state machine.

    The first step of a sequence carries the buffer text as a prefix
    filter; later steps carry the last shown entry id instead, so the
    list stays stable while the user scrolls and edits.
    """

    def __init__(self, backend):
        self.backend = backend

    def build_request(self, context: ShellContext, direction: int, buffer: str) -> NavigationRequest:
        """Request for one step from the current state."""
        state = cursor_state(context)
        extra = tuple(context.config.move_args)
        if isinstance(state, Idle):
            return NavigationRequest(
                direction=int(direction),
                session=context.session.token,
                cursor="",
                prefix=buffer,
                extra_args=extra,
            )
        return NavigationRequest(
            direction=int(direction),
            session=context.session.token,
            cursor=state.entry_id,
            extra_args=extra,
        )

    def navigate(
        self,
        context: ShellContext,
        direction: int,
        buffer: str,
        probe: Optional[str] = None,
    ) -> NavigationOutcome:
        """
        Take one step older (-1) or newer (+1).

        Args:
            context: Shell context holding the cursor
            direction: -1 or 1
            buffer: Current edit buffer text
            probe: Text checked for embedded newlines (defaults to buffer)

        Returns:
            NavigationOutcome for the adapter to apply
        """
        if "\n" in (buffer if probe is None else probe):
            return NavigationOutcome(bypass=True)

        request = self.build_request(context, direction, buffer)
        result = self.backend.move(request, context.session)
        if not result.success:
            return NavigationOutcome()

        reply = decode_reply(result.stdout)
        if isinstance(reply, Malformed):
            logger.debug("ignoring malformed move reply: %r", reply.raw)
            return NavigationOutcome()

        context.cursor = reply.entry_id
        return NavigationOutcome(buffer=reply.line)
