"""
Shell Context - Per-shell session and navigation state
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .config import VellumConfig


SESSION_VAR = "VELLUM_SESSION"
SESSION_START_VAR = "VELLUM_SESSION_START"


@dataclass(frozen=True)
class Session:
    """One interactive shell instance, as known to the backing process."""
    token: str
    start: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> Optional["Session"]:
        """Session already exported into the environment, if any."""
        token = environ.get(SESSION_VAR)
        if not token:
            return None
        return cls(token=token, start=environ.get(SESSION_START_VAR) or None)

    def to_env(self) -> Dict[str, str]:
        env = {SESSION_VAR: self.token}
        if self.start:
            env[SESSION_START_VAR] = self.start
        return env


@dataclass
class ShellContext:
    """
    Everything one shell needs between hook and widget invocations.

    Built once at startup and handed to every handler. ``cursor`` is the
    entry id currently shown in the edit buffer; empty means no navigation
    is in progress.
    """
    session: Session
    config: VellumConfig = field(default_factory=VellumConfig)
    cursor: str = ""
    last_selected_id: Optional[str] = None

    @property
    def navigating(self) -> bool:
        return self.cursor != ""
