"""
Logging - File-only diagnostics for the integration
"""

import logging
from pathlib import Path

from .config import VellumConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(process)d] %(message)s"


def setup_logging(config: VellumConfig) -> None:
    """
    Attach a file handler when a log file is configured.

    Nothing is ever written to the terminal: the prompt must stay clean
    even when the backing process misbehaves.
    """
    root = logging.getLogger("vellum_integration")
    root.setLevel(getattr(logging, str(config.log_level).upper(), logging.WARNING))

    if not config.log_file:
        return

    path = Path(config.log_file).expanduser()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.resolve():
            return

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
