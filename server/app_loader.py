"""Downstream application loading.

Resolves the configured ``module:attribute`` path to a callable and wraps
it so the event proxy can call it with a canonical request environment.
"""

import importlib
import logging

from core.interfaces import RequestHandler
from core.validators import ConfigurationError, validate_app_path
from server.wsgi_adapter import WSGIAdapter

logger = logging.getLogger(__name__)


def load_app(app_path: str, app_type: str = "wsgi") -> RequestHandler:
    """Import and wrap the downstream application.

    Args:
        app_path: Application location, e.g. "examples.hello_app:app"
        app_type: "wsgi" for PEP 3333 applications, "native" for callables
                  that already return (headers, status, body chunks)

    Returns:
        Request handler callable

    Raises:
        ConfigurationError: If the application cannot be resolved
    """
    validate_app_path(app_path)
    module_name, _, attribute = app_path.partition(":")

    try:
        module = importlib.import_module(module_name.strip())
    except ImportError as e:
        raise ConfigurationError(f"Failed to import application module '{module_name}': {e}") from e

    app = module
    for part in attribute.strip().split("."):
        try:
            app = getattr(app, part)
        except AttributeError:
            raise ConfigurationError(
                f"Application module '{module_name}' has no attribute '{attribute}'"
            )

    if not callable(app):
        raise ConfigurationError(f"Application '{app_path}' is not callable")

    if app_type == "wsgi":
        handler = WSGIAdapter(app)
    elif app_type == "native":
        handler = app
    else:
        raise ConfigurationError(f"Unknown app_type '{app_type}'")

    logger.info(f"Loaded {app_type} application '{app_path}'")
    return handler
