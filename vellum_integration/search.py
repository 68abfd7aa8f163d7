"""
Search Bridge - Full-text history search through fzf
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Mapping

from .codec import decode_selection
from .config import VellumConfig
from .context import ShellContext

logger = logging.getLogger(__name__)

# Options fzf's own Ctrl-R widget passes for shell history
HISTORY_OPTIONS = (
    "-n2..,.. --scheme=history --bind=ctrl-r:toggle-sort "
    "--wrap-sign '\t↳ ' --highlight-line"
)

CANCELLED = 130
NOT_FOUND = 127


@dataclass(frozen=True)
class SearchOutcome:
    """Replacement buffer (None when unchanged) and the selector's exit status."""
    buffer: Optional[str] = None
    exit_code: int = 0

    @property
    def changed(self) -> bool:
        return self.buffer is not None


def selector_defaults(config: VellumConfig, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Build FZF_DEFAULT_OPTS the way fzf's key bindings do.

    Base options first, then the options file, then the user's
    FZF_DEFAULT_OPTS, then the history-specific options.
    """
    env = os.environ if environ is None else environ
    parts = [f"--height {config.selector_height} --min-height 20+ --bind=ctrl-z:ignore"]

    opts_file = env.get("FZF_DEFAULT_OPTS_FILE")
    if opts_file:
        try:
            parts.append(Path(opts_file).read_text().strip())
        except OSError as e:
            logger.debug("cannot read %s: %s", opts_file, e)

    if env.get("FZF_DEFAULT_OPTS"):
        parts.append(env["FZF_DEFAULT_OPTS"])

    parts.append(HISTORY_OPTIONS)
    if config.selector_options:
        parts.append(config.selector_options)
    parts.append("+m --read0")
    return " ".join(p for p in parts if p)


class SearchBridge:
    """
    Pipes the history listing into the selector and reads back the pick.

    Usage:
        bridge = SearchBridge(backend)
        outcome = bridge.search(context, "git")
        if outcome.changed:
            buffer = outcome.buffer
    """

    def __init__(self, backend, environ: Optional[Mapping[str, str]] = None):
        self.backend = backend
        self.environ = environ

    def _selector_env(self, config: VellumConfig) -> dict:
        env = dict(os.environ if self.environ is None else self.environ)
        env["FZF_DEFAULT_OPTS"] = selector_defaults(config, env)
        env["FZF_DEFAULT_OPTS_FILE"] = ""
        return env

    def run_selector(self, config: VellumConfig, records: str, query: str):
        """
        Run the selector over ``records``.

        Returns:
            (stdout, exit_code); interrupt and a missing selector both
            come back as empty output with a non-zero status
        """
        argv = shlex.split(config.selector) + [f"--query={query}"]
        try:
            result = subprocess.run(
                argv,
                input=records,
                stdout=subprocess.PIPE,
                text=True,
                env=self._selector_env(config),
            )
        except FileNotFoundError:
            logger.debug("selector %s not found", argv[0])
            return "", NOT_FOUND
        except KeyboardInterrupt:
            return "", CANCELLED
        return result.stdout or "", result.returncode

    def search(self, context: ShellContext, buffer: str) -> SearchOutcome:
        """
        Let the user pick a history entry, starting from ``buffer`` as query.

        The cursor is never touched; the picked id goes to
        ``context.last_selected_id``.
        """
        listing = self.backend.history(context.config.search_args(), context.session)
        if not listing.success and not listing.stdout:
            return SearchOutcome(exit_code=listing.exit_code)

        output, exit_code = self.run_selector(context.config, listing.stdout, buffer)
        selection = decode_selection(output)
        if selection is None:
            return SearchOutcome(exit_code=exit_code)

        context.last_selected_id = selection.entry_id
        return SearchOutcome(buffer=selection.line, exit_code=exit_code)
