# local_server.py
"""Run the gateway bridge locally for testing (no Lambda needed).

Every HTTP request is turned into an API Gateway proxy event and handled by
the same EventProxy the Lambda adapter uses.
"""

import asyncio
import base64
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to Python path so we can import from core and server
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from aiohttp import web

from core.interfaces import GatewayResponse
from core.logging_utils import configure_json_logging
from core.validators import (
    get_app_config,
    get_logging_config,
    get_server_config,
    load_and_validate_config,
)
from server.app_loader import load_app
from server.event_proxy import EventProxy

logger = logging.getLogger(__name__)

# Managed by aiohttp from the body it is given
_HOP_HEADERS = ("content-length", "transfer-encoding")


async def event_from_request(request: web.Request, stage: str = "") -> Dict[str, Any]:
    """Build an API Gateway proxy event from an aiohttp request.

    Args:
        request: Incoming aiohttp request
        stage: Stage prefix (e.g. "/dev") that the gateway would strip

    Returns:
        Gateway event dictionary
    """
    full_path = request.path
    path = full_path
    if stage and (full_path == stage or full_path.startswith(stage + "/")):
        path = full_path[len(stage):] or "/"

    headers = dict(request.headers.items())
    headers.setdefault("X-Forwarded-Proto", request.scheme)
    host = request.host or ""
    if ":" in host:
        headers.setdefault("X-Forwarded-Port", host.rsplit(":", 1)[1])

    query: Dict[str, List[str]] = {}
    for key, value in request.query.items():
        query.setdefault(key, []).append(value)

    raw_body = await request.read()
    body: Optional[str] = None
    is_base64 = False
    if raw_body:
        try:
            body = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            body = base64.b64encode(raw_body).decode("ascii")
            is_base64 = True

    return {
        "httpMethod": request.method,
        "path": path,
        "headers": headers,
        "multiValueQueryStringParameters": query or None,
        "requestContext": {"path": full_path, "stage": stage.strip("/") or None},
        "body": body,
        "isBase64Encoded": is_base64,
    }


def response_from_gateway(response: GatewayResponse) -> web.Response:
    """Turn a gateway response back into an aiohttp response."""
    if response.isBase64Encoded:
        body = base64.b64decode(response.body)
    else:
        body = response.body.encode("utf-8")

    headers = {
        name: value
        for name, value in response.headers.items()
        if name.lower() not in _HOP_HEADERS
    }
    return web.Response(body=body, status=response.status, headers=headers)


def make_app(proxy: EventProxy, stage: str = "") -> web.Application:
    """Create the aiohttp application that forwards everything to ``proxy``."""

    async def handle_request(request: web.Request) -> web.Response:
        event = await event_from_request(request, stage=stage)
        loop = asyncio.get_running_loop()
        try:
            # Handlers are synchronous; keep them off the event loop
            response = await loop.run_in_executor(None, proxy.handle, event)
        except Exception as e:
            # Lambda would report an invocation error; API Gateway answers 502
            logger.error(f"Error processing request: {e}")
            return web.json_response({"message": "Internal server error"}, status=502)
        return response_from_gateway(response)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle_request)
    return app


async def start_server(config_path: str = "config.yaml") -> None:
    """Start local HTTP server."""
    config = load_and_validate_config(config_path)

    # Pretty-print JSON for better local readability
    logging_config = get_logging_config(config)
    configure_json_logging(level=logging_config["level"], pretty=True)

    app_path, app_type = get_app_config(config)
    server_config = get_server_config(config)
    proxy = EventProxy(load_app(app_path, app_type))

    runner = web.AppRunner(make_app(proxy, stage=server_config["stage"]))
    await runner.setup()
    site = web.TCPSite(runner, server_config["host"], server_config["port"])
    await site.start()

    url = f"http://{server_config['host']}:{server_config['port']}{server_config['stage']}/"
    print("\n" + "=" * 50)
    print("Local gateway bridge running!")
    print("=" * 50)
    print(f"Serving: {app_path} ({app_type})")
    print(f"URL: {url}")
    print("\nPress Ctrl+C to stop")
    print("=" * 50 + "\n")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


if __name__ == "__main__":
    try:
        asyncio.run(start_server(sys.argv[1] if len(sys.argv) > 1 else "config.yaml"))
    except KeyboardInterrupt:
        print("\nShutting down...")
