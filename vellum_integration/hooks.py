"""
Hooks - Shell lifecycle callbacks
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

from .context import ShellContext

logger = logging.getLogger(__name__)


class HookEvent(Enum):
    """Points in the shell's command cycle."""
    PREEXEC = "preexec"  # after a line is accepted, before it runs
    PRECMD = "precmd"    # before each prompt is drawn


@dataclass
class Hook:
    name: str
    event: HookEvent
    callback: Callable


class HookRegistry:
    """
    Ordered registry of named callbacks per event.

    Callers decide whether to register; the registry itself never
    deduplicates.
    """

    def __init__(self):
        self._hooks: Dict[HookEvent, List[Hook]] = {event: [] for event in HookEvent}

    def register(self, name: str, event: HookEvent, callback: Callable) -> Hook:
        hook = Hook(name=name, event=event, callback=callback)
        self._hooks[event].append(hook)
        return hook

    def hooks(self, event: HookEvent) -> List[Hook]:
        return list(self._hooks[event])

    def names(self, event: HookEvent) -> List[str]:
        return [hook.name for hook in self._hooks[event]]

    def fire(self, event: HookEvent, *args) -> None:
        """Run every hook for ``event`` in registration order."""
        for hook in self._hooks[event]:
            try:
                hook.callback(*args)
            except Exception:
                logger.exception("hook %s failed", hook.name)


class CommandCaptureHook:
    """Forwards each executed command line to the backing store."""

    name = "vellum-capture"
    event = HookEvent.PREEXEC

    def __init__(self, context: ShellContext, backend):
        self.context = context
        self.backend = backend

    def __call__(self, command: str) -> None:
        # Best effort: the result is never surfaced to the prompt
        self.backend.store(command, self.context.session)


class PromptResetHook:
    """Returns the cursor to Idle before every prompt."""

    name = "vellum-reset"
    event = HookEvent.PRECMD

    def __init__(self, context: ShellContext):
        self.context = context

    def __call__(self) -> None:
        self.context.cursor = ""
