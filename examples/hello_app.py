"""Minimal WSGI application for trying the bridge locally.

Echoes the request line as JSON, and serves a tiny PNG at /pixel.png so the
base64 response path can be exercised.
"""

import base64
import json

# 1x1 transparent PNG
PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def app(environ, start_response):
    if environ.get("PATH_INFO") == "/pixel.png":
        start_response("200 OK", [("Content-Type", "image/png")])
        return [PIXEL]

    length = int(environ.get("CONTENT_LENGTH") or 0)
    payload = {
        "method": environ["REQUEST_METHOD"],
        "script_name": environ.get("SCRIPT_NAME", ""),
        "path": environ.get("PATH_INFO", ""),
        "query": environ.get("QUERY_STRING", ""),
        "body": environ["wsgi.input"].read(length).decode("utf-8", "replace") if length else "",
    }
    start_response("200 OK", [("Content-Type", "application/json")])
    return [json.dumps(payload).encode("utf-8")]
