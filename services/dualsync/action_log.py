"""
Operational log files for the control service.

Two append-only, timestamped files sit next to the normal stderr logging:

  action log  every INFO+ record from the ``dualsync`` logger tree
               (intents received, commands issued, outcomes)
  error log   WARNING+ records only (transport failures, rejected intents)

They are observational only; nothing reads them back.
"""

import logging
import os

LOG_FORMAT = "[%(asctime)s] %(message)s"
ROOT_LOGGER = "dualsync"

_installed: dict[str, logging.FileHandler] = {}


def _file_handler(path: str, level: int) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def install(action_path: str, error_path: str) -> logging.Logger:
    """Attach the action and error log files to the ``dualsync`` logger.

    Calling again with the same paths does nothing.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.INFO)
    for path, level in ((action_path, logging.INFO), (error_path, logging.WARNING)):
        key = os.path.abspath(path)
        if key in _installed:
            continue
        handler = _file_handler(path, level)
        root.addHandler(handler)
        _installed[key] = handler
    return root


def uninstall() -> None:
    """Detach and close every file handler added by install()."""
    root = logging.getLogger(ROOT_LOGGER)
    for handler in _installed.values():
        root.removeHandler(handler)
        handler.close()
    _installed.clear()
