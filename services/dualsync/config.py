"""
Configuration for the DualSync control service.

One JSON file describes an installation: where the master and slave VLC
web interfaces live, where the control service keeps its files, and the
sync policy.  The first file found wins:

  1. /etc/dualsync/config.json    (installed service)
  2. config.json                   (working directory)
  3. <repo>/config/default.json    (shipped defaults)

The VLC web password is not part of the file.  It comes from the
VLC_PASSWORD environment variable so the JSON can be shared freely.

    from dualsync.config import cfg

    master_url = cfg("master", "url", default="http://10.10.10.2:8080")
    tolerance  = cfg("sync", "drift_tolerance", default=0.5)
    delays     = cfg("delays")  # whole section
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None
_source: str | None = None

_SEARCH_PATHS = [
    "/etc/dualsync/config.json",
    "config.json",
    os.path.join(os.path.dirname(__file__), "..", "..", "config", "default.json"),
]

PASSWORD_ENV = "VLC_PASSWORD"


def _validate(config: dict, path: str) -> None:
    """Log the settings that will be replaced by built-in values."""
    for role in ("master", "slave"):
        section = config.get(role) or {}
        if not section.get("url"):
            logger.warning("Config %s: missing %s.url, using built-in default", path, role)
    sync = config.get("sync") or {}
    for key in ("drift_tolerance", "lead_compensation"):
        value = sync.get(key)
        if value is not None and (not isinstance(value, (int, float)) or value < 0):
            logger.warning("Config %s: sync.%s should be a non-negative number, got %r",
                           path, key, value)
    attempts = sync.get("status_attempts")
    if attempts is not None and (not isinstance(attempts, int) or attempts < 1):
        logger.warning("Config %s: sync.status_attempts should be >= 1, got %r", path, attempts)


def _read(path: str) -> dict | None:
    """Parsed contents of *path*, or None when it is absent or unusable."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.error("Config %s: top level must be an object", path)
        return None
    return data


def load_config() -> dict:
    """The installation's config, read once and then cached."""
    global _config, _source
    if _config is not None:
        return _config

    for path in _SEARCH_PATHS:
        data = _read(path)
        if data is None:
            continue
        logger.info("Config loaded from %s", path)
        _validate(data, path)
        _config, _source = data, path
        return _config

    logger.warning("No config.json found, using empty config")
    _config, _source = {}, None
    return _config


def config_source() -> str | None:
    """Path the current config came from (None when running on built-ins)."""
    load_config()
    return _source


def cfg(section: str, key: str | None = None, *, default=None):
    """Look up ``section`` or ``section.key``; *default* when either is missing.

    cfg("delays")                       -> the delays dict
    cfg("slave", "url")                 -> slave VLC base URL
    cfg("sync", "status_attempts", default=3)
    """
    val = load_config().get(section)
    if key is None:
        return default if val is None else val
    if not isinstance(val, dict):
        return default
    return val.get(key, default)


def reload_config() -> dict:
    """Drop the cached config and read the search paths again."""
    global _config
    _config = None
    return load_config()


def vlc_password() -> str:
    """Return the shared VLC HTTP password, or "" when it is not set."""
    return os.environ.get(PASSWORD_ENV, "")
