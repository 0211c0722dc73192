from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("couchmodel.config.yaml")

BASE_CONNECTION_DEFAULTS: Dict[str, Any] = {
    "url": "http://localhost:5984",
    "database": None,
    "timeout_seconds": 20,
    "user_agent": "couchmodel/0.3",
    "username": None,
    "password": None,
}

ALLOWED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load couchmodel configuration from YAML file.

    Args:
        path: Optional path to the config file. Defaults to couchmodel.config.yaml

    Returns:
        Dictionary with configuration

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    couchdb = config.get("couchdb")
    if couchdb is not None and not isinstance(couchdb, dict):
        raise ValueError("Config 'couchdb' must be a dictionary if provided")

    log_level = config.get("log_level")
    if log_level is not None and str(log_level).upper() not in ALLOWED_LOG_LEVELS:
        raise ValueError(f"Config 'log_level' must be one of {', '.join(ALLOWED_LOG_LEVELS)}")

    return config


def get_connection_settings(config: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """
    Resolve the `couchdb` section with built-in fallbacks.

    Args:
        config: Optional config dict. If None, loads from default path.

    Returns:
        Connection settings dict with every default key present
    """
    if config is None:
        config = load_config()

    settings = deepcopy(BASE_CONNECTION_DEFAULTS)
    settings.update(config.get("couchdb") or {})

    settings["url"] = str(settings["url"]).rstrip("/")
    timeout = settings.get("timeout_seconds")
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("Config 'couchdb.timeout_seconds' must be a positive number")

    # Credentials are only meaningful as a pair
    if bool(settings.get("username")) != bool(settings.get("password")):
        raise ValueError("Config 'couchdb' must set both username and password, or neither")

    return settings
