"""Request translation: gateway event -> canonical request environment."""

import base64
import binascii
import io
import logging
import sys
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote_plus

from core.interfaces import (
    CAPABILITY_FLAGS,
    CONTENT_LENGTH,
    CONTENT_TYPE,
    ERRORS,
    HTTP_PREFIX,
    INPUT,
    PATH_INFO,
    QUERY_STRING,
    REQUEST_METHOD,
    SCRIPT_NAME,
    SERVER_NAME,
    SERVER_PORT,
    URL_SCHEME,
    WSGI_VERSION,
    GatewayEvent,
    RequestEnvironment,
)

logger = logging.getLogger(__name__)

# Header name -> canonical key, copied only when the header is present
_HEADER_FIELDS = (
    ("HOST", SERVER_NAME),
    ("X-Forwarded-Port", SERVER_PORT),
    ("Content-Type", CONTENT_TYPE),
    ("Content-Length", CONTENT_LENGTH),
    ("X-Forwarded-Proto", URL_SCHEME),
)


class DecodeError(ValueError):
    """Raised when a body flagged as base64 cannot be decoded."""

    pass


def translate_request(
    event: Union[GatewayEvent, Mapping[str, Any]]
) -> RequestEnvironment:
    """Translate a gateway event into a canonical request environment.

    Args:
        event: GatewayEvent, or the raw event mapping from the invocation

    Returns:
        Freshly built RequestEnvironment

    Raises:
        DecodeError: If the event is flagged base64 but the body is not
        pydantic.ValidationError: If a raw event mapping is malformed
    """
    event = GatewayEvent.coerce(event)

    environ = RequestEnvironment()
    environ[REQUEST_METHOD] = event.httpMethod
    environ[PATH_INFO] = event.path
    environ[SCRIPT_NAME] = script_name(event)
    environ[QUERY_STRING] = build_query(event.multiValueQueryStringParameters)

    for header_name, key in _HEADER_FIELDS:
        value = event.header(header_name)
        if value is not None:
            environ[key] = value

    environ["wsgi.version"] = WSGI_VERSION
    environ[INPUT] = io.BytesIO(decode_body(event))
    environ[ERRORS] = sys.stderr
    environ.update(CAPABILITY_FLAGS)
    environ.update(http_headers(event))

    logger.debug(
        "Translated gateway event",
        extra={"http_method": event.httpMethod, "request_path": event.path},
    )
    return environ


def script_name(event: GatewayEvent) -> str:
    """Derive the script name by chomping the event path off the context path.

    Only a true suffix is removed; otherwise the context path is returned
    unchanged. A missing context path gives an empty script name.
    """
    context_path = event.requestContext.path if event.requestContext else None
    if context_path is None:
        return ""
    if event.path and context_path.endswith(event.path):
        return context_path[: -len(event.path)]
    return context_path


def build_query(params: Optional[Mapping[str, List[Optional[str]]]]) -> str:
    """Flatten multi-value query parameters into a query string.

    Pairs keep key insertion order and per-key value order. Keys and values
    are form-encoded. A None value is emitted as a bare key.

    Example:
        >>> build_query({"a": ["x", "y"], "b": ["http://example.com"]})
        'a=x&a=y&b=http%3A%2F%2Fexample.com'
    """
    if not params:
        return ""

    pairs = []
    for key, values in params.items():
        encoded_key = quote_plus(key, safe="")
        for value in values or ():
            if value is None:
                pairs.append(encoded_key)
            else:
                pairs.append(f"{encoded_key}={quote_plus(value, safe='')}")
    return "&".join(pairs)


def decode_body(event: GatewayEvent) -> bytes:
    """Get the raw request body bytes for an event.

    Raises:
        DecodeError: If ``isBase64Encoded`` is set and the body is not base64
    """
    body = event.body or ""
    if not event.isBase64Encoded:
        return body.encode("utf-8")

    # Line-wrapped encoders insert whitespace; anything else must be alphabet
    compact = "".join(body.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64-encoded body: {e}") from e


def http_headers(event: GatewayEvent) -> Dict[str, str]:
    """Copy every header under an ``HTTP_`` key, casing preserved."""
    return {
        f"{HTTP_PREFIX}{key}": value for key, value in (event.headers or {}).items()
    }
