#!/usr/bin/env python3
"""
vellum hook - Bridge between interactive shells and the vellum binary

Shell scripts generated by ``vellum-hook init <shell>`` call back into
this program from their hooks and key bindings. Every call is a
separate process, so the cursor travels through a shell variable and
results come back as statements for the shell to ``eval``.

Usage:
    # In ~/.zshrc (bash and fish work the same way)
    eval "$(vellum-hook init zsh)"

    # What the widgets run
    vellum-hook capture -- "git status"
    vellum-hook navigate --shell zsh --cursor "$__VELLUM_LINE" -- -1 "$LBUFFER"
    vellum-hook search --shell zsh -- "$LBUFFER"

Design:
    Steady-state subcommands never fail loudly. A broken backend or a
    malformed reply produces no statements, which leaves the buffer as
    it was.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import yaml

from vellum_integration import __version__
from vellum_integration.backend import Backend
from vellum_integration.config import (
    DEFAULT_CONFIG_YAML,
    VellumConfig,
    default_config_path,
    load_config,
)
from vellum_integration.context import Session, ShellContext
from vellum_integration.dialects import DIALECTS, get_dialect
from vellum_integration.integration import ShellIntegration
from vellum_integration.logs import setup_logging
from vellum_integration.session import MissingDependencyError, SessionManager, check_dependencies

logger = logging.getLogger("vellum_integration.hook")

# Subcommands bound to hooks and keys; these must never abort on a bad config
STEADY_STATE = ("capture", "navigate", "search")


def make_backend(config: VellumConfig) -> Backend:
    return Backend(config.binary, editor=config.resolved_editor())


def make_context(config: VellumConfig, cursor: str = "") -> ShellContext:
    """Context rebuilt from the environment and the cursor the shell passed back."""
    session = Session.from_env(os.environ) or Session(token="")
    return ShellContext(session=session, config=config, cursor=cursor)


def show_init(args, config):
    """Print the integration script for a shell."""
    dialect = get_dialect(args.shell)
    sys.stdout.write(dialect.render_init(args.program))


def start_session(args, config):
    """
    Establish the session for a new interactive shell.

    Prints export statements; exits 1 with a one-line diagnostic when a
    dependency is missing so the script registers nothing.
    """
    dialect = get_dialect(args.shell)
    try:
        check_dependencies(config)
    except MissingDependencyError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    manager = SessionManager(make_backend(config), dict(os.environ))
    session = manager.establish()
    print(dialect.session_statements(session))


def capture_command(args, config):
    """Store an executed command. Always succeeds from the shell's view."""
    integration = ShellIntegration(make_context(config), make_backend(config))
    integration.capture(args.command_text)


def navigate(args, config):
    """Take one step through the history and print the resulting statements."""
    dialect = get_dialect(args.shell)
    context = make_context(config, cursor=args.cursor)
    integration = ShellIntegration(context, make_backend(config))

    outcome = integration.navigate(args.direction, args.buffer, args.probe)
    statements = dialect.navigation_statements(outcome, context.cursor, args.direction)
    if statements:
        print(statements)


def search(args, config):
    """Run the selector and print the resulting statements."""
    dialect = get_dialect(args.shell)
    integration = ShellIntegration(make_context(config), make_backend(config))

    outcome = integration.search(args.buffer)
    statements = dialect.search_statements(outcome)
    if statements:
        print(statements)
    sys.exit(outcome.exit_code)


def show_config(args, config):
    """Print the effective configuration."""
    sys.stdout.write(yaml.dump(config.to_dict(), default_flow_style=False))


def init_config(args, config):
    """Write a default configuration file."""
    config_path = Path(args.config) if args.config else default_config_path()

    if config_path.exists() and not args.force:
        print(f"Config already exists: {config_path}")
        print("Use --force to overwrite")
        sys.exit(1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_YAML)
    print(f"Created: {config_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vellum-hook",
        description="vellum hook - shell integration for vellum history",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config", "-c",
        help="Config file (default: $VELLUM_SHELL_CONFIG or ~/.config/vellum/shell.yaml)"
    )

    subparsers = parser.add_subparsers(dest="action", help="Action")
    shells = sorted(DIALECTS)

    # init command
    init_parser = subparsers.add_parser("init", help="Print the integration script for a shell")
    init_parser.add_argument("shell", choices=shells, help="Shell dialect")
    init_parser.add_argument("--program", default="vellum-hook", help="Name the script calls back")
    init_parser.set_defaults(func=show_init)

    # session command
    session_parser = subparsers.add_parser("session", help="Start a session and print exports")
    session_parser.add_argument("--shell", choices=shells, required=True, help="Shell dialect")
    session_parser.set_defaults(func=start_session)

    # capture command
    capture_parser = subparsers.add_parser("capture", help="Store an executed command")
    capture_parser.add_argument("command_text", help="Command line as typed")
    capture_parser.set_defaults(func=capture_command)

    # navigate command
    navigate_parser = subparsers.add_parser("navigate", help="Move through history")
    navigate_parser.add_argument("--shell", choices=shells, required=True, help="Shell dialect")
    navigate_parser.add_argument("--cursor", default="", help="Entry id currently shown")
    navigate_parser.add_argument("--probe", default=None, help="Text checked for newlines")
    navigate_parser.add_argument("direction", type=int, choices=[-1, 1], help="-1 older, 1 newer")
    navigate_parser.add_argument("buffer", nargs="?", default="", help="Current buffer text")
    navigate_parser.set_defaults(func=navigate)

    # search command
    search_parser = subparsers.add_parser("search", help="Search history with the selector")
    search_parser.add_argument("--shell", choices=shells, required=True, help="Shell dialect")
    search_parser.add_argument("buffer", nargs="?", default="", help="Initial query")
    search_parser.set_defaults(func=search)

    # config command
    config_parser = subparsers.add_parser("config", help="Show or create the config file")
    config_sub = config_parser.add_subparsers(dest="config_action", help="Config action")
    show_parser = config_sub.add_parser("show", help="Print the effective config")
    show_parser.set_defaults(func=show_config)
    create_parser = config_sub.add_parser("init", help="Write a default config file")
    create_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing config")
    create_parser.set_defaults(func=init_config)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "func", None) is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        if args.action not in STEADY_STATE and args.func is not init_config:
            parser.error(f"cannot load config: {e}")
        config = VellumConfig.from_env()

    setup_logging(config)
    logger.debug("%s: %s", args.action, vars(args))
    args.func(args, config)


if __name__ == "__main__":
    main()
