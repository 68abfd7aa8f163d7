"""
Backend - Subprocess bridge to the vellum binary
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, List, Mapping

from .codec import NavigationRequest, encode_move
from .context import Session

logger = logging.getLogger(__name__)


@dataclass
class BackendResult:
    """Result of a call to the backing process."""
    args: List[str]
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def first_line(self) -> str:
        """First line of stdout, without its terminator."""
        return self.stdout.split("\n", 1)[0].rstrip("\r")


class Backend:
    """
    Runs the backing process and captures its output.

    Every call blocks until the process exits. Calls never raise for
    process failures; a binary that cannot be launched yields a result
    with exit code -1 and empty stdout.

    Usage:
        backend = Backend("vellum")
        token = backend.init_session()
        backend.store("git status", Session(token))
    """

    def __init__(
        self,
        binary: str = "vellum",
        env: Optional[Mapping[str, str]] = None,
        editor: Optional[str] = None,
    ):
        self.binary = binary
        self.env = env
        self.editor = editor

    def _environment(self, session: Optional[Session]) -> dict:
        exec_env = dict(os.environ if self.env is None else self.env)
        if session is not None:
            exec_env.update(session.to_env())
        if self.editor:
            exec_env["VELLUM_EDITOR"] = self.editor
        return exec_env

    def run(
        self,
        args: List[str],
        session: Optional[Session] = None,
        capture: bool = True,
    ) -> BackendResult:
        """
        Execute the backing process with the given arguments.

        Args:
            args: Arguments after the binary name
            session: Session exported to the child, if any
            capture: Capture stdout (False discards it)

        Returns:
            BackendResult with captured output
        """
        argv = [self.binary] + list(args)
        start_time = time.time()

        try:
            result = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                env=self._environment(session),
            )
            duration_ms = int((time.time() - start_time) * 1000)

            backend_result = BackendResult(
                args=argv,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                exit_code=result.returncode,
                duration_ms=duration_ms,
            )

        except OSError as e:
            duration_ms = int((time.time() - start_time) * 1000)
            backend_result = BackendResult(
                args=argv,
                stdout="",
                stderr=str(e),
                exit_code=-1,
                duration_ms=duration_ms,
            )

        if not backend_result.success:
            logger.debug(
                "%s exited %d after %dms: %s",
                args[0] if args else self.binary,
                backend_result.exit_code,
                backend_result.duration_ms,
                backend_result.stderr.strip(),
            )
        return backend_result

    def init_session(self) -> Optional[str]:
        """Request a fresh session token."""
        result = self.run(["init", "session"])
        token = result.first_line.strip()
        return token if result.success and token else None

    def init_timestamp(self) -> Optional[str]:
        """Request a session start timestamp."""
        result = self.run(["init", "timestamp"])
        stamp = result.first_line.strip()
        return stamp if result.success and stamp else None

    def store(self, command: str, session: Optional[Session] = None) -> BackendResult:
        """Store one command line, exactly as typed."""
        return self.run(["store", "--", command], session=session, capture=False)

    def move(self, request: NavigationRequest, session: Optional[Session] = None) -> BackendResult:
        """Ask for the entry next to ``request.cursor``."""
        if session is None and request.session:
            session = Session(token=request.session)
        return self.run(encode_move(request), session=session)

    def history(self, extra_args: Optional[List[str]] = None,
                session: Optional[Session] = None) -> BackendResult:
        """List history as NUL-delimited selector records."""
        return self.run(["history", "--fzf"] + list(extra_args or []), session=session)
