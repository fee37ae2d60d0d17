"""Client configuration.

Values come from, in increasing priority: the defaults below, an optional
YAML file (``rtlink.yaml`` in the working directory, or the path in
``RTLINK_CONFIG``), and ``RTLINK_*`` environment variables.

Example ``rtlink.yaml``::

    local_socket_path: /run/rtlink/api.sock
    ping_interval: 15
    ping_timeout: 45
    fail_pending_on_close: true
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from rtlink.shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "rtlink.yaml"
DEFAULT_LOCAL_SOCKET_PATH = "/tmp/rtlink/api.sock"


@dataclass(frozen=True)
class ClientConfig:
    local_socket_path: str = DEFAULT_LOCAL_SOCKET_PATH
    ping_interval: Optional[float] = 15.0
    ping_timeout: Optional[float] = 45.0
    open_timeout: Optional[float] = 10.0
    log_level: Optional[str] = None
    fail_pending_on_close: bool = False


_ENV_VARS = {
    "local_socket_path": "RTLINK_LOCAL_SOCKET",
    "ping_interval": "RTLINK_PING_INTERVAL",
    "ping_timeout": "RTLINK_PING_TIMEOUT",
    "open_timeout": "RTLINK_OPEN_TIMEOUT",
    "log_level": "RTLINK_LOG_LEVEL",
    "fail_pending_on_close": "RTLINK_FAIL_PENDING_ON_CLOSE",
}

_FLOAT_KEYS = {"ping_interval", "ping_timeout", "open_timeout"}


def _config_path(path: Optional[Union[str, Path]]) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.getenv("RTLINK_CONFIG", DEFAULT_CONFIG_FILE))


def _coerce(key: str, value: Any) -> Any:
    """Normalise one raw value (from YAML or the environment) for key."""
    if key in _FLOAT_KEYS:
        if value is None or (isinstance(value, str) and value.lower() in ("", "none", "off")):
            return None
        if isinstance(value, bool):
            raise ValueError(f"{key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be a number, got {value!r}")
    if key == "fail_pending_on_close":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("1", "true", "yes", "on"):
            return True
        if isinstance(value, str) and value.lower() in ("0", "false", "no", "off", ""):
            return False
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {value!r}")
    return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at top level")
    known = {f.name for f in fields(ClientConfig)}
    result = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        result[key] = _coerce(key, value)
    return result


def load_config(path: Optional[Union[str, Path]] = None) -> ClientConfig:
    """Build a ClientConfig from defaults, the YAML file and the environment.

    An explicit ``path`` that does not exist is an error; the default file
    is optional.
    """
    config = ClientConfig()
    config_path = _config_path(path)
    if config_path.exists():
        config = replace(config, **_read_yaml(config_path))
        logger.debug("Loaded config from %s", config_path)
    elif path is not None:
        raise FileNotFoundError(f"config file not found: {config_path}")

    overrides = {}
    for key, env_var in _ENV_VARS.items():
        raw = os.getenv(env_var)
        if raw is not None:
            overrides[key] = _coerce(key, raw)
    return replace(config, **overrides) if overrides else config
