"""
vellum shell integration

Captures every command a shell runs, navigates the synchronized history
with the arrow keys and searches it with fzf, delegating storage to the
vellum binary.
"""

import logging

__version__ = "1.0.0"

from .backend import Backend, BackendResult
from .codec import Entry, Malformed, NavigationRequest, SearchSelection
from .config import VellumConfig, load_config
from .context import Session, ShellContext
from .cursor import Direction, Navigator, NavigationOutcome
from .hooks import HookEvent, HookRegistry
from .integration import ShellIntegration
from .search import SearchBridge, SearchOutcome
from .session import SessionManager, MissingDependencyError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Backend",
    "BackendResult",
    "Direction",
    "Entry",
    "HookEvent",
    "HookRegistry",
    "Malformed",
    "MissingDependencyError",
    "NavigationOutcome",
    "NavigationRequest",
    "Navigator",
    "SearchBridge",
    "SearchOutcome",
    "SearchSelection",
    "Session",
    "SessionManager",
    "ShellContext",
    "ShellIntegration",
    "VellumConfig",
    "load_config",
]
