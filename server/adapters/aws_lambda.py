"""AWS Lambda adapter for the gateway bridge.

This adapter receives API Gateway (REST, proxy integration) events, runs
them through the EventProxy, and returns the proxy integration result.
"""

import json
import logging
import os
from typing import Any, Dict, Optional, Protocol

from core.logging_utils import configure_json_logging
from core.validators import (
    ConfigurationError,
    get_app_config,
    get_logging_config,
    load_and_validate_config,
    validate_config_structure,
)
from server.app_loader import load_app
from server.event_proxy import EventProxy

CONFIG_ENV_VAR = "GATEWAY_BRIDGE_CONFIG"
CONFIG_PATH = "config.yaml"


class LambdaContext(Protocol):
    """Protocol for AWS Lambda context object.

    This defines the expected interface for Lambda context objects,
    which provide runtime information about the Lambda execution environment.
    """

    aws_request_id: str
    function_name: Optional[str]
    memory_limit_in_mb: Optional[int]


logger = logging.getLogger(__name__)

# Module-level state for Lambda warm starts
_proxy: Optional[EventProxy] = None
_config: Optional[Dict[str, Any]] = None


def _load_config() -> Dict[str, Any]:
    """Load configuration from environment or config.yaml.

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If the configuration is invalid
        FileNotFoundError: If no configuration source exists
    """
    global _config

    if _config is not None:
        return _config

    # Deployment tooling passes the config as JSON
    config_json = os.environ.get(CONFIG_ENV_VAR)
    if config_json:
        try:
            config = json.loads(config_json)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config from environment: {e}")
            raise ConfigurationError(f"Invalid JSON in {CONFIG_ENV_VAR}: {e}") from e
        validate_config_structure(config)
        _config = config
        logger.info("Loaded configuration from environment variable")
        return _config

    # Fall back to config.yaml (packaged with the function or local testing)
    try:
        _config = load_and_validate_config(CONFIG_PATH)
    except FileNotFoundError:
        logger.error(
            f"No configuration found. Set {CONFIG_ENV_VAR} environment variable "
            f"or ensure {CONFIG_PATH} exists."
        )
        raise
    logger.info(f"Loaded configuration from {CONFIG_PATH}")
    return _config


def get_proxy() -> EventProxy:
    """Get or create the event proxy instance.

    Uses lazy initialization to support Lambda warm starts.

    Returns:
        EventProxy instance
    """
    global _proxy

    if _proxy is None:
        config = _load_config()
        logging_config = get_logging_config(config)
        configure_json_logging(level=logging_config["level"], pretty=logging_config["pretty"])

        app_path, app_type = get_app_config(config)
        _proxy = EventProxy(load_app(app_path, app_type))
        logger.info("Created new EventProxy instance", extra={"app": app_path})

    return _proxy


def lambda_handler(event: Dict[str, Any], context: Optional[LambdaContext]) -> Dict[str, Any]:
    """AWS Lambda handler function.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        Proxy integration result with statusCode, headers, isBase64Encoded
        and body

    Raises:
        Exception: Any failure is logged and re-raised so Lambda reports
            the invocation as failed
    """
    request_id = context.aws_request_id if context else "unknown"

    try:
        logger.info(
            "Lambda invocation started",
            extra={
                "request_id": request_id,
                "function_name": getattr(context, "function_name", None),
                "memory_limit": getattr(context, "memory_limit_in_mb", None),
            },
        )

        response = get_proxy().handle(event, request_id=request_id)

        logger.info(
            "Lambda invocation completed",
            extra={"request_id": request_id, "status_code": response.status},
        )

        return response.to_proxy_result()

    except Exception as e:
        logger.error(
            f"Lambda invocation failed: {e}",
            extra={"request_id": request_id, "error_type": type(e).__name__},
        )
        raise
