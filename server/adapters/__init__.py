"""Cloud provider adapters for the gateway bridge.

This package contains adapters that receive cloud-specific invocations
(e.g., AWS Lambda proxy events) and hand them to the EventProxy.

Each adapter handles:
- Invocation entry point and warm-start reuse of the proxy
- Cloud-specific context extraction (request IDs, function names, etc.)
- Rendering the gateway response in the shape the platform expects
"""

from .aws_lambda import lambda_handler

__all__ = ["lambda_handler"]
