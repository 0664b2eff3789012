"""Configuration validation functions for the gateway bridge.

Configuration names the downstream application to serve and how logging
(and, for local runs, the development server) is set up.
"""

import logging
from typing import Any, Dict, Tuple

import yaml

logger = logging.getLogger(__name__)

APP_TYPES = ("wsgi", "native")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_SERVER_CONFIG = {
    "host": "localhost",
    "port": 8000,
    "stage": "",
}


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


def validate_app_path(app_path: Any) -> None:
    """Validate a ``module:attribute`` application path.

    Raises:
        ConfigurationError: If the path is malformed
    """
    if not isinstance(app_path, str) or not app_path.strip():
        raise ConfigurationError(
            "Configuration Error: 'app' must be a non-empty string of the form "
            "'package.module:attribute'"
        )

    module_name, sep, attribute = app_path.partition(":")
    if not sep or not module_name.strip() or not attribute.strip():
        raise ConfigurationError(
            f"Configuration Error: Invalid app path '{app_path}'\n\n"
            "Expected 'package.module:attribute', for example "
            "'examples.hello_app:app'."
        )


def validate_config_structure(config: Dict[str, Any]) -> None:
    """Validate basic configuration structure.

    Args:
        config: Parsed configuration dictionary

    Raises:
        ConfigurationError: If structure is invalid
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a YAML dictionary")

    if "app" not in config:
        raise ConfigurationError(
            "Configuration missing 'app' entry. "
            "See config.yaml template for required structure."
        )

    validate_app_path(config["app"])

    app_type = config.get("app_type", "wsgi")
    if app_type not in APP_TYPES:
        raise ConfigurationError(
            f"'app_type' must be one of {', '.join(APP_TYPES)}, got '{app_type}'"
        )

    for section in ("logging", "server"):
        if section in config and not isinstance(config[section], dict):
            raise ConfigurationError(f"'{section}' section must be a dictionary")

    level = config.get("logging", {}).get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ConfigurationError(
            f"'logging.level' must be one of {', '.join(LOG_LEVELS)}, got '{level}'"
        )

    port = config.get("server", {}).get("port", DEFAULT_SERVER_CONFIG["port"])
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise ConfigurationError(f"'server.port' must be a TCP port number, got '{port}'")


def load_and_validate_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config.yaml file

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If validation fails
        FileNotFoundError: If config file doesn't exist
    """
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            "Create config.yaml based on the template in the repository."
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config is None:
        raise ConfigurationError(f"Configuration file {config_path} is empty")

    validate_config_structure(config)

    logger.info(f"Configuration validated: serving '{config['app']}'")

    return config


def get_app_config(config: Dict[str, Any]) -> Tuple[str, str]:
    """Get the downstream application path and type.

    Returns:
        Tuple of (app_path, app_type)
    """
    return config["app"], config.get("app_type", "wsgi")


def get_logging_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get logging settings with defaults applied."""
    logging_config = config.get("logging") or {}
    return {
        "level": str(logging_config.get("level", "INFO")).upper(),
        "pretty": bool(logging_config.get("pretty", False)),
    }


def get_server_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get local development server settings with defaults applied."""
    server_config = dict(DEFAULT_SERVER_CONFIG)
    server_config.update(config.get("server") or {})
    # Stage is a path prefix such as "/dev"
    stage = (server_config.get("stage") or "").strip("/")
    server_config["stage"] = f"/{stage}" if stage else ""
    return server_config
