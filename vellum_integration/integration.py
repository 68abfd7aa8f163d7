"""
Integration - The four operations every shell adapter maps onto
"""

from typing import Optional

from .context import ShellContext
from .cursor import Navigator, NavigationOutcome
from .hooks import CommandCaptureHook, HookRegistry, PromptResetHook
from .search import SearchBridge, SearchOutcome


class ShellIntegration:
    """
    Capture, reset, navigate and search for one shell.

    All state lives in ``context``; adapters only translate their native
    key bindings and hook points into these calls.
    """

    def __init__(
        self,
        context: ShellContext,
        backend,
        navigator: Optional[Navigator] = None,
        search_bridge: Optional[SearchBridge] = None,
    ):
        self.context = context
        self.backend = backend
        self.navigator = navigator or Navigator(backend)
        self.search_bridge = search_bridge or SearchBridge(backend)
        self.capture_hook = CommandCaptureHook(context, backend)
        self.reset_hook = PromptResetHook(context)
        self._installed = False

    def install(self, registry: HookRegistry) -> bool:
        """Register the capture and reset hooks once. Returns False if already done."""
        if self._installed:
            return False
        registry.register(self.capture_hook.name, self.capture_hook.event, self.capture_hook)
        registry.register(self.reset_hook.name, self.reset_hook.event, self.reset_hook)
        self._installed = True
        return True

    def capture(self, command: str) -> None:
        self.capture_hook(command)

    def reset(self) -> None:
        self.reset_hook()

    def navigate(self, direction: int, buffer: str, probe: Optional[str] = None) -> NavigationOutcome:
        return self.navigator.navigate(self.context, direction, buffer, probe)

    def search(self, buffer: str) -> SearchOutcome:
        return self.search_bridge.search(self.context, buffer)
