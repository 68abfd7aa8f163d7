#!/usr/bin/env python3
"""
vellum repl - A small interactive shell with vellum history built in

Runs each accepted line through /bin/sh and drives the integration
in-process: the hook registry fires ``precmd`` before each prompt and
``preexec`` for each command, Up/Down walk the synchronized history and
Ctrl-R opens fzf.

Usage:
    # As a command
    vellum-repl

    # As a module
    from vellum_repl import VellumShell
    with VellumShell() as shell:
        shell.execute("git status")
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional, MutableMapping

import yaml
from prompt_toolkit import PromptSession
from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.document import Document
from prompt_toolkit.key_binding import KeyBindings

from vellum_integration.backend import Backend
from vellum_integration.config import VellumConfig, load_config
from vellum_integration.cursor import Direction
from vellum_integration.hooks import HookEvent, HookRegistry
from vellum_integration.integration import ShellIntegration
from vellum_integration.logs import setup_logging
from vellum_integration.session import SETUP_SENTINEL, SessionManager


def _replace_buffer(buffer, text: str):
    buffer.document = Document(text, cursor_position=len(text))


def bind_keys(integration: ShellIntegration) -> KeyBindings:
    """
    Map prompt_toolkit keys onto the integration.

    Up/Down probe the text before/after the cursor for newlines so a
    multi-line buffer keeps plain line movement.
    """
    kb = KeyBindings()

    @kb.add("up")
    def _previous(event):
        buffer = event.current_buffer
        outcome = integration.navigate(
            Direction.PREVIOUS, buffer.text, buffer.document.text_before_cursor
        )
        if outcome.bypass:
            buffer.cursor_up(count=event.arg)
        elif outcome.changed:
            _replace_buffer(buffer, outcome.buffer)

    @kb.add("down")
    def _next(event):
        buffer = event.current_buffer
        outcome = integration.navigate(
            Direction.NEXT, buffer.text, buffer.document.text_after_cursor
        )
        if outcome.bypass:
            buffer.cursor_down(count=event.arg)
        elif outcome.changed:
            _replace_buffer(buffer, outcome.buffer)

    @kb.add("c-r")
    def _search(event):
        buffer = event.current_buffer

        def pick():
            outcome = integration.search(buffer.text)
            if outcome.changed:
                _replace_buffer(buffer, outcome.buffer)

        # fzf needs the terminal to itself
        run_in_terminal(pick)

    return kb


class VellumShell:
    """
    Interactive shell wired to the vellum integration.

    If setup is skipped (missing fzf, already initialized, not a tty) the
    shell still works, just without synchronized history.
    """

    def __init__(
        self,
        config: Optional[VellumConfig] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        backend: Optional[Backend] = None,
        interactive: Optional[bool] = None,
    ):
        """
        Initialize a shell.

        Args:
            config: Optional VellumConfig (loads from file/env if not provided)
            environ: Shell environment (a copy of os.environ by default)
            backend: Backend for the vellum binary
            interactive: Override tty detection
        """
        self.environ = dict(os.environ) if environ is None else environ
        self.config = config or load_config(environ=self.environ)
        self.backend = backend or Backend(
            self.config.binary,
            env=self.environ,
            editor=self.config.resolved_editor(self.environ),
        )
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

        self.registry = HookRegistry()
        self.integration: Optional[ShellIntegration] = None
        self.cwd = Path.cwd()
        self.last_exit = 0
        self.running = False

    def start(self) -> bool:
        """Set up the integration. Returns True when it is active."""
        manager = SessionManager(self.backend, self.environ)
        integration = manager.initialize(self.config, self.registry, self.interactive)
        if integration is not None:
            self.integration = integration
        self.running = True
        return self.integration is not None

    def stop(self):
        self.running = False

    def child_env(self) -> dict:
        """Environment for commands; the setup flag stays with this shell."""
        return {k: v for k, v in self.environ.items() if k != SETUP_SENTINEL}

    def _change_directory(self, target: str) -> int:
        path = Path(os.path.expanduser(target or self.environ.get("HOME", "~")))
        if not path.is_absolute():
            path = self.cwd / path
        if not path.is_dir():
            print(f"cd: no such directory: {target}", file=sys.stderr)
            return 1
        self.environ["OLDPWD"] = str(self.cwd)
        self.cwd = path.resolve()
        self.environ["PWD"] = str(self.cwd)
        return 0

    def execute(self, command: str) -> int:
        """
        Run one accepted line, firing ``preexec`` first.

        Returns:
            Exit status of the command
        """
        if not command.strip():
            return self.last_exit

        self.registry.fire(HookEvent.PREEXEC, command)

        words = command.split()
        if words[0] == "exit":
            self.stop()
            self.last_exit = int(words[1]) if len(words) > 1 and words[1].isdigit() else self.last_exit
            return self.last_exit
        if words[0] == "cd" and len(words) <= 2:
            self.last_exit = self._change_directory(words[1] if len(words) > 1 else "")
            return self.last_exit

        try:
            result = subprocess.run(command, shell=True, cwd=str(self.cwd), env=self.child_env())
            self.last_exit = result.returncode
        except KeyboardInterrupt:
            self.last_exit = 130
        return self.last_exit

    def prompt_text(self) -> str:
        home = Path.home()
        cwd = str(self.cwd)
        if self.cwd == home or home in self.cwd.parents:
            cwd = "~" + cwd[len(str(home)):]
        marker = "$" if self.last_exit == 0 else f"[{self.last_exit}]$"
        return f"{cwd} {marker} "

    def run(self):
        """Main prompt loop."""
        if not self.running:
            self.start()

        key_bindings = bind_keys(self.integration) if self.integration else None
        session = PromptSession(key_bindings=key_bindings)

        while self.running:
            self.registry.fire(HookEvent.PRECMD)
            try:
                line = session.prompt(self.prompt_text())
            except KeyboardInterrupt:
                continue
            except EOFError:
                break
            self.execute(line)

        return self.last_exit

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="vellum repl - interactive shell with synchronized history",
    )
    parser.add_argument(
        "--config", "-c",
        help="Config file (default: $VELLUM_SHELL_CONFIG or ~/.config/vellum/shell.yaml)"
    )
    args = parser.parse_args(argv)

    environ = dict(os.environ)
    try:
        config = load_config(args.config, environ)
    except (OSError, ValueError, yaml.YAMLError) as e:
        parser.error(f"cannot load config: {e}")

    setup_logging(config)
    shell = VellumShell(config=config, environ=environ)
    sys.exit(shell.run())


if __name__ == "__main__":
    main()
