"""
Session Lifecycle - One-time setup of an interactive shell
"""

import logging
import shlex
import shutil
import sys
from typing import MutableMapping, Optional

from .config import VellumConfig
from .context import Session, ShellContext
from .hooks import HookRegistry
from .integration import ShellIntegration
from .search import SearchBridge

logger = logging.getLogger(__name__)

SETUP_SENTINEL = "__VELLUM_SETUP"
KEY_VAR = "VELLUM_KEY"


class MissingDependencyError(RuntimeError):
    """A prerequisite program is not installed."""


def check_dependencies(config: VellumConfig, path: Optional[str] = None) -> None:
    """Raise MissingDependencyError unless the selector can be found."""
    parts = shlex.split(config.selector)
    if not parts or shutil.which(parts[0], path=path) is None:
        raise MissingDependencyError(
            "fzf is required! see https://github.com/junegunn/fzf"
        )


class SessionManager:
    """
    Establishes the session and wires the integration into a shell.

    ``environ`` is the shell's environment; the session is exported into
    it and the setup sentinel is recorded there.
    """

    def __init__(self, backend, environ: MutableMapping[str, str]):
        self.backend = backend
        self.environ = environ

    @property
    def initialized(self) -> bool:
        return bool(self.environ.get(SETUP_SENTINEL))

    def establish(self) -> Session:
        """Reuse the exported session or request a new one, then export it."""
        session = Session.from_env(self.environ)
        if session is None:
            token = self.backend.init_session()
            if token is None:
                logger.warning("backing process returned no session id")
            session = Session(token=token or "", start=self.backend.init_timestamp())
        self.environ.update(session.to_env())
        if KEY_VAR not in self.environ:
            logger.debug("%s is not set; the backing process will refuse to run", KEY_VAR)
        return session

    def initialize(
        self,
        config: VellumConfig,
        registry: HookRegistry,
        interactive: bool = True,
    ) -> Optional[ShellIntegration]:
        """
        Set up the integration for this shell.

        Returns:
            The integration, or None when a dependency is missing, the
            shell is not interactive, or setup already happened
        """
        try:
            check_dependencies(config, self.environ.get("PATH"))
        except MissingDependencyError as e:
            print(str(e), file=sys.stderr)
            return None

        if self.initialized or not interactive:
            return None
        self.environ[SETUP_SENTINEL] = "1"

        context = ShellContext(session=self.establish(), config=config)
        integration = ShellIntegration(
            context,
            self.backend,
            search_bridge=SearchBridge(self.backend, self.environ),
        )
        integration.install(registry)
        logger.info("session %s ready", context.session.token)
        return integration
