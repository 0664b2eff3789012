"""Response translation: handler output -> gateway response.

The only decision made here is whether the body travels as text or as
base64. Status and headers are passed through untouched.
"""

import base64
import logging
from typing import Iterable, Mapping, Optional

from core.interfaces import BINARY_CONTENT_TYPES, BodyChunk, GatewayResponse

logger = logging.getLogger(__name__)


def translate_response(
    headers: Mapping[str, str], status: int, body_chunks: Iterable[BodyChunk]
) -> GatewayResponse:
    """Build a gateway response from a handler's output.

    Args:
        headers: Response headers, passed through verbatim
        status: HTTP status code, passed through verbatim
        body_chunks: Body chunks, drained once in order

    Returns:
        GatewayResponse with a text or base64 body
    """
    content = join_chunks(body_chunks)

    if is_binary(headers, content):
        body = base64.b64encode(content).decode("ascii")
        encoded = True
    else:
        body = content.decode("utf-8")
        encoded = False

    logger.debug(
        "Translated handler output",
        extra={
            "response_status": status,
            "body_bytes": len(content),
            "is_base64_encoded": encoded,
        },
    )

    return GatewayResponse(
        status=status,
        headers=dict(headers),
        isBase64Encoded=encoded,
        body=body,
    )


def join_chunks(body_chunks: Iterable[BodyChunk]) -> bytes:
    """Concatenate body chunks; text chunks are UTF-8 encoded."""
    buffer = bytearray()
    for chunk in body_chunks:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        buffer.extend(chunk)
    return bytes(buffer)


def is_binary(headers: Mapping[str, str], content: bytes) -> bool:
    """Decide whether a response body must be base64-encoded.

    A known binary Content-Type wins outright; otherwise the content is
    binary when it is not valid UTF-8.
    """
    if _content_type(headers) in BINARY_CONTENT_TYPES:
        return True
    return not is_valid_utf8(content)


def is_valid_utf8(content: bytes) -> bool:
    """Check whether ``content`` decodes as UTF-8."""
    try:
        content.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _content_type(headers: Mapping[str, str]) -> Optional[str]:
    # Header names are case-insensitive
    for name, value in headers.items():
        if name.lower() == "content-type":
            return value
    return None
