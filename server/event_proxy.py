"""Event proxy for the gateway bridge.

Sequences the request translator, the downstream handler, and the response
translator for one gateway event at a time. Any cloud entry point (the AWS
Lambda adapter, the local development server) goes through this class.
"""

import logging
import time
from typing import Any, Mapping, Optional, Union

from core.interfaces import GatewayEvent, GatewayResponse, RequestHandler
from core.logging_utils import format_request_log, format_response_log
from core.request_translator import translate_request
from core.response_translator import translate_response

logger = logging.getLogger(__name__)


class EventProxy:
    """Runs a downstream handler against gateway events.

    The proxy keeps no per-request state, so a single instance can serve
    every invocation of a warm Lambda container.
    """

    def __init__(self, app: RequestHandler) -> None:
        """Initialize the proxy.

        Args:
            app: Downstream handler called with the canonical environment
        """
        self.app = app

    def handle(
        self,
        event: Union[GatewayEvent, Mapping[str, Any]],
        request_id: Optional[str] = None,
    ) -> GatewayResponse:
        """Handle one gateway event.

        Args:
            event: Gateway event (model or raw mapping)
            request_id: Optional request ID for logging/tracing

        Returns:
            Gateway response built from the handler's output

        Raises:
            DecodeError: If the event body is flagged base64 but is not
            Exception: Whatever the downstream handler raises
        """
        start_time = time.perf_counter()
        request_id = request_id or "unknown"

        try:
            event = GatewayEvent.coerce(event)
            environ = translate_request(event)
            logger.info(
                "Incoming gateway event",
                extra=format_request_log(
                    request_id=request_id,
                    http_method=event.httpMethod,
                    request_path=event.path,
                    headers=event.headers,
                    body_bytes=environ.input.getbuffer().nbytes,
                    is_base64_encoded=event.isBase64Encoded,
                ),
            )

            headers, status, body_chunks = self.app(environ)
            response = translate_response(headers, status, body_chunks)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Error handling gateway event {request_id}: {e}",
                extra={
                    "request_id": request_id,
                    "error_type": type(e).__name__,
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Gateway response produced",
            extra=format_response_log(
                request_id=request_id,
                status_code=response.status,
                headers=response.headers,
                body_bytes=len(response.body),
                is_base64_encoded=response.isBase64Encoded,
                duration_ms=duration_ms,
            ),
        )
        return response
