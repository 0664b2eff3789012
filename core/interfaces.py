"""Core interfaces and data models for the gateway bridge.

This module defines the gateway event and response models, the canonical
request environment handed to downstream handlers, and the handler
contract itself. The constants here are process-wide and never mutated.
"""

from typing import IO, Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Content types whose bodies are always base64-encoded in gateway responses
BINARY_CONTENT_TYPES = frozenset(
    {
        "application/octet-stream",
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)

WSGI_VERSION = (1, 0)

# Canonical environment keys
REQUEST_METHOD = "REQUEST_METHOD"
PATH_INFO = "PATH_INFO"
SCRIPT_NAME = "SCRIPT_NAME"
QUERY_STRING = "QUERY_STRING"
SERVER_NAME = "SERVER_NAME"
SERVER_PORT = "SERVER_PORT"
CONTENT_TYPE = "CONTENT_TYPE"
CONTENT_LENGTH = "CONTENT_LENGTH"
URL_SCHEME = "wsgi.url_scheme"
INPUT = "wsgi.input"
ERRORS = "wsgi.errors"
HTTP_PREFIX = "HTTP_"

# Fixed capability flags advertised to every downstream handler
CAPABILITY_FLAGS: Mapping[str, bool] = {
    "wsgi.multiprocess": False,
    "wsgi.multithread": True,
    "wsgi.run_once": False,
    "gateway.hijack": False,
}


class RequestContext(BaseModel):
    """The subset of the gateway request context used for translation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: Optional[str] = Field(
        None, description="Original request path, including any stage prefix"
    )


class GatewayEvent(BaseModel):
    """Inbound HTTP request as delivered by API Gateway (REST, v1 proxy).

    Field names follow the gateway's wire format so events can be validated
    straight from the invocation payload. Keys the bridge does not use are
    ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    httpMethod: str = Field(..., description="HTTP method, e.g. GET")
    path: str = Field(..., description="Request path with the stage prefix stripped")
    headers: Optional[Dict[str, str]] = Field(None, description="Single-value headers")
    requestContext: Optional[RequestContext] = None
    multiValueQueryStringParameters: Optional[Dict[str, List[Optional[str]]]] = None
    body: Optional[str] = None
    isBase64Encoded: bool = False

    @classmethod
    def coerce(cls, event: Union["GatewayEvent", Mapping[str, Any]]) -> "GatewayEvent":
        """Return ``event`` as a GatewayEvent, validating raw mappings."""
        if isinstance(event, cls):
            return event
        return cls.model_validate(event)

    def header(self, name: str) -> Optional[str]:
        """Get a header value by its exact key."""
        return (self.headers or {}).get(name)


class GatewayResponse(BaseModel):
    """Gateway response produced from a downstream handler's output.

    When ``isBase64Encoded`` is true ``body`` holds base64 of the response
    content, otherwise it holds the content itself as UTF-8 text.
    """

    status: int = Field(..., description="HTTP status code")
    headers: Dict[str, str] = Field(default_factory=dict)
    isBase64Encoded: bool = False
    body: str = ""

    def to_proxy_result(self) -> Dict[str, Any]:
        """Render the Lambda proxy integration result shape."""
        return {
            "statusCode": self.status,
            "headers": dict(self.headers),
            "isBase64Encoded": self.isBase64Encoded,
            "body": self.body,
        }


class RequestEnvironment(dict):
    """Canonical request environment.

    A flat, ordered mapping from canonical field name to value, with named
    accessors for the fields downstream handlers commonly need. Optional
    fields that were absent in the event are left out of the mapping and
    their accessors return None.
    """

    @property
    def method(self) -> Optional[str]:
        return self.get(REQUEST_METHOD)

    @property
    def path(self) -> Optional[str]:
        return self.get(PATH_INFO)

    @property
    def script_name(self) -> str:
        return self.get(SCRIPT_NAME, "")

    @property
    def query_string(self) -> str:
        return self.get(QUERY_STRING, "")

    @property
    def server_name(self) -> Optional[str]:
        return self.get(SERVER_NAME)

    @property
    def server_port(self) -> Optional[str]:
        return self.get(SERVER_PORT)

    @property
    def content_type(self) -> Optional[str]:
        return self.get(CONTENT_TYPE)

    @property
    def content_length(self) -> Optional[str]:
        return self.get(CONTENT_LENGTH)

    @property
    def url_scheme(self) -> Optional[str]:
        return self.get(URL_SCHEME)

    @property
    def input(self) -> Optional[IO[bytes]]:
        return self.get(INPUT)

    @property
    def errors(self) -> Optional[IO[str]]:
        return self.get(ERRORS)

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers with the ``HTTP_`` prefix removed."""
        return {
            key[len(HTTP_PREFIX):]: value
            for key, value in self.items()
            if key.startswith(HTTP_PREFIX)
        }


BodyChunk = Union[bytes, str]
HandlerOutput = Tuple[Mapping[str, str], int, Iterable[BodyChunk]]


class RequestHandler(Protocol):
    """Downstream handler contract.

    Called exactly once per event with the canonical environment; returns
    (headers, status, body chunks).
    """

    def __call__(self, environ: RequestEnvironment) -> HandlerOutput:
        ...
