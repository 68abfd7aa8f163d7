"""
Configuration - Shell integration configuration management
"""

import os
import json
import shlex
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Mapping


CONFIG_ENV = "VELLUM_SHELL_CONFIG"
CONFIG_FILENAME = "shell.yaml"


def _section(data: dict, key: str) -> dict:
    """A nested config section; an empty one (``selector:``) means defaults."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _arg_list(value, key: str) -> List[str]:
    """Argument list given as a YAML list or as one shell-quoted string."""
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if not isinstance(value, list):
        raise ValueError(f"Config key '{key}' must be a list or a string, got {type(value).__name__}")
    return [str(a) for a in value]


@dataclass
class VellumConfig:
    """
    Configuration for the vellum shell integration.

    Can be loaded from:
    - YAML file (shell.yaml)
    - JSON file (shell.json)
    - Environment variables (VELLUM_*, FZF_*)
    - Programmatic defaults
    """

    # Backing process
    binary: str = "vellum"

    # Selector settings
    selector: str = "fzf"
    selector_options: str = ""
    selector_height: str = "40%"

    # Extra arguments relayed to the backing process
    history_args: List[str] = field(default_factory=list)
    session_only: bool = False
    move_args: List[str] = field(default_factory=list)

    # Used by the backing process's edit/delete commands
    editor: Optional[str] = None

    # Logging settings
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    @classmethod
    def from_file(cls, path: str) -> "VellumConfig":
        """Load configuration from YAML or JSON file."""
        path = Path(path)

        if not path.exists():
            return cls()

        content = path.read_text()

        if path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        elif path.suffix == '.json':
            data = json.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "VellumConfig":
        """
        Create config from dictionary.

        Raises:
            ValueError: A section or argument list has the wrong shape
        """
        if not isinstance(data, dict):
            raise ValueError("Config must be a mapping of sections")

        # Flatten nested structure
        flat = {}

        if 'backend' in data:
            backend = _section(data, 'backend')
            flat['binary'] = backend.get('binary', 'vellum')

        if 'selector' in data:
            selector = _section(data, 'selector')
            flat['selector'] = selector.get('command', 'fzf')
            flat['selector_options'] = selector.get('options', '') or ''
            flat['selector_height'] = str(selector.get('height', '40%'))

        if 'history' in data:
            history = _section(data, 'history')
            flat['history_args'] = _arg_list(history.get('args'), 'history.args')
            flat['session_only'] = bool(history.get('session_only', False))

        if 'move' in data:
            flat['move_args'] = _arg_list(_section(data, 'move').get('args'), 'move.args')

        if 'editor' in data:
            flat['editor'] = data['editor']

        if 'logging' in data:
            logging_section = _section(data, 'logging')
            flat['log_level'] = logging_section.get('level', 'WARNING')
            flat['log_file'] = logging_section.get('file')

        return cls(**flat)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VellumConfig":
        """Load configuration from environment variables."""
        return cls().with_env(environ)

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "VellumConfig":
        """
        Apply environment overrides on top of this config.

        Argument lists (VELLUM_HISTORY_ARGS, VELLUM_MOVE_ARGS) are split
        with shell quoting rules since arrays cannot be exported.
        """
        env = os.environ if environ is None else environ

        if 'VELLUM_BIN' in env:
            self.binary = env['VELLUM_BIN']
        if 'VELLUM_SELECTOR' in env:
            self.selector = env['VELLUM_SELECTOR']
        if 'FZF_CTRL_R_OPTS' in env:
            self.selector_options = env['FZF_CTRL_R_OPTS']
        if env.get('FZF_TMUX_HEIGHT'):
            self.selector_height = env['FZF_TMUX_HEIGHT']
        if 'VELLUM_HISTORY_ARGS' in env:
            self.history_args = shlex.split(env['VELLUM_HISTORY_ARGS'])
        if 'VELLUM_MOVE_ARGS' in env:
            self.move_args = shlex.split(env['VELLUM_MOVE_ARGS'])
        if env.get('VELLUM_EDITOR'):
            self.editor = env['VELLUM_EDITOR']
        if env.get('VELLUM_SHELL_LOG_LEVEL'):
            self.log_level = env['VELLUM_SHELL_LOG_LEVEL']
        if env.get('VELLUM_SHELL_LOG'):
            self.log_file = env['VELLUM_SHELL_LOG']

        return self

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            'backend': {
                'binary': self.binary,
            },
            'selector': {
                'command': self.selector,
                'options': self.selector_options,
                'height': self.selector_height,
            },
            'history': {
                'args': list(self.history_args),
                'session_only': self.session_only,
            },
            'move': {
                'args': list(self.move_args),
            },
            'editor': self.editor,
            'logging': {
                'level': self.log_level,
                'file': self.log_file,
            },
        }

    def search_args(self) -> List[str]:
        """Extra arguments for the history listing used by search."""
        args = list(self.history_args)
        if self.session_only and '--session' not in args:
            args.append('--session')
        return args

    def resolved_editor(self, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Editor for the backing process: VELLUM_EDITOR, then EDITOR."""
        if self.editor:
            return self.editor
        env = os.environ if environ is None else environ
        for name in ('VELLUM_EDITOR', 'EDITOR'):
            if env.get(name):
                return env[name]
        return None


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Path of the config file, honouring VELLUM_SHELL_CONFIG and XDG_CONFIG_HOME."""
    env = os.environ if environ is None else environ
    if env.get(CONFIG_ENV):
        return Path(env[CONFIG_ENV])
    base = env.get('XDG_CONFIG_HOME') or str(Path.home() / '.config')
    return Path(base) / 'vellum' / CONFIG_FILENAME


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> VellumConfig:
    """
    Load the effective configuration.

    File values come first, environment variables override them.
    A missing file yields the defaults.
    """
    config_path = Path(path) if path else default_config_path(environ)
    config = VellumConfig.from_file(str(config_path))
    return config.with_env(environ)


# Default config file template
DEFAULT_CONFIG_YAML = """# vellum shell integration configuration

backend:
  binary: "vellum"

selector:
  command: "fzf"
  options: ""
  height: "40%"

history:
  args: []
  session_only: false

move:
  args: []

editor: null

logging:
  level: "WARNING"
  file: null
"""
