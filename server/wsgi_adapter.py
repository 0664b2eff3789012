"""WSGI adapter for the gateway bridge.

Lets an ordinary PEP 3333 application (Flask, Django, bare WSGI callables)
act as the downstream handler behind the event proxy.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.interfaces import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    HTTP_PREFIX,
    SERVER_NAME,
    SERVER_PORT,
    URL_SCHEME,
    HandlerOutput,
    RequestEnvironment,
)

logger = logging.getLogger(__name__)

WSGIApplication = Callable[[Dict[str, Any], Callable[..., Any]], Any]

# Carried as CONTENT_TYPE / CONTENT_LENGTH instead of HTTP_ keys
_CONTENT_HEADERS = {
    "HTTP_CONTENT_TYPE": CONTENT_TYPE,
    "HTTP_CONTENT_LENGTH": CONTENT_LENGTH,
}


def to_wsgi_environ(environ: RequestEnvironment) -> Dict[str, Any]:
    """Derive a PEP 3333 environ from a canonical request environment.

    Header keys are upper-cased with dashes turned into underscores, and the
    CGI variables WSGI servers must always provide get defaults. Content
    headers sent in any casing end up in CONTENT_TYPE / CONTENT_LENGTH, and
    SERVER_NAME falls back to the Host header before 'localhost'.

    Args:
        environ: Canonical request environment

    Returns:
        New WSGI environ dictionary
    """
    wsgi_environ: Dict[str, Any] = {}
    content_headers: Dict[str, Any] = {}
    for key, value in environ.items():
        if key.startswith(HTTP_PREFIX):
            key = HTTP_PREFIX + key[len(HTTP_PREFIX):].upper().replace("-", "_")
            if key in _CONTENT_HEADERS:
                content_headers.setdefault(_CONTENT_HEADERS[key], value)
                continue
        wsgi_environ[key] = value

    for key, value in content_headers.items():
        if wsgi_environ.get(key) is None:
            wsgi_environ[key] = value

    scheme = wsgi_environ.get(URL_SCHEME) or "https"
    wsgi_environ[URL_SCHEME] = scheme
    if wsgi_environ.get(SERVER_NAME) is None:
        host = wsgi_environ.get("HTTP_HOST")
        wsgi_environ[SERVER_NAME] = _host_name(host) if host else "localhost"
    wsgi_environ.setdefault(SERVER_PORT, "443" if scheme == "https" else "80")
    wsgi_environ[SERVER_PORT] = str(wsgi_environ[SERVER_PORT])
    wsgi_environ.setdefault("SERVER_PROTOCOL", "HTTP/1.1")
    wsgi_environ.setdefault("SCRIPT_NAME", "")
    wsgi_environ.setdefault("QUERY_STRING", "")

    # PEP 3333: CONTENT_TYPE / CONTENT_LENGTH may be absent, never None
    for key in (CONTENT_TYPE, CONTENT_LENGTH):
        if wsgi_environ.get(key) is None:
            wsgi_environ.pop(key, None)

    return wsgi_environ


class WSGIAdapter:
    """Downstream handler that runs a WSGI application.

    The application's status line, headers, and body iterable are collected
    into the (headers, status, body chunks) shape the event proxy expects.
    """

    def __init__(self, app: WSGIApplication) -> None:
        """Initialize the adapter.

        Args:
            app: WSGI application callable
        """
        self.app = app

    def __call__(self, environ: RequestEnvironment) -> HandlerOutput:
        state: Dict[str, Any] = {"status": None, "headers": []}
        chunks: List[bytes] = []

        def write(data: bytes) -> None:
            if state["status"] is None:
                raise AssertionError("write() called before start_response()")
            chunks.append(data)

        def start_response(
            status: str,
            response_headers: List[Tuple[str, str]],
            exc_info: Optional[Tuple[Any, Any, Any]] = None,
        ) -> Callable[[bytes], None]:
            if exc_info:
                if state["status"] is not None and chunks:
                    raise exc_info[1].with_traceback(exc_info[2])
            elif state["status"] is not None:
                raise AssertionError("start_response() called twice without exc_info")
            state["status"] = status
            state["headers"] = list(response_headers)
            return write

        result = self.app(to_wsgi_environ(environ), start_response)
        try:
            for chunk in result:
                if chunk:
                    chunks.append(chunk)
        finally:
            if hasattr(result, "close"):
                result.close()

        if state["status"] is None:
            raise RuntimeError("WSGI application did not call start_response()")

        status_code = parse_status(state["status"])
        headers = merge_headers(state["headers"])

        logger.debug(
            "WSGI application responded",
            extra={"response_status": status_code, "chunk_count": len(chunks)},
        )

        return headers, status_code, chunks


def parse_status(status: str) -> int:
    """Parse the numeric code from a WSGI status line such as '200 OK'."""
    try:
        return int(status.split(" ", 1)[0])
    except ValueError:
        raise ValueError(f"Invalid WSGI status line: {status!r}")


def merge_headers(response_headers: List[Tuple[str, str]]) -> Dict[str, str]:
    """Collapse a WSGI header list into a mapping.

    Repeated header names are joined with ', ' in order of appearance.
    """
    merged: Dict[str, str] = {}
    for name, value in response_headers:
        if name in merged:
            merged[name] = f"{merged[name]}, {value}"
        else:
            merged[name] = value
    return merged


def _host_name(host: str) -> str:
    """Strip a trailing ':port' from a Host header value."""
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        return name
    return host
