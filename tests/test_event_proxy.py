"""Tests for the EventProxy orchestration."""

import base64
import logging
from unittest.mock import MagicMock

import pytest

from core.interfaces import GatewayResponse, RequestEnvironment
from core.request_translator import DecodeError
from server.event_proxy import EventProxy


@pytest.fixture
def event():
    return {
        "httpMethod": "GET",
        "path": "/items",
        "headers": {"HOST": "example.com", "Authorization": "Bearer secret"},
        "requestContext": {"path": "/prod/items"},
        "multiValueQueryStringParameters": {"page": ["2"]},
        "body": None,
        "isBase64Encoded": False,
    }


class TestHandle:
    """Test EventProxy.handle sequencing."""

    def test_calls_handler_once_with_translated_environment(self, event):
        """Test that the handler receives the canonical environment."""
        app = MagicMock(return_value=({"Content-Type": "text/plain"}, 200, [b"ok"]))
        proxy = EventProxy(app)

        proxy.handle(event)

        app.assert_called_once()
        environ = app.call_args[0][0]
        assert isinstance(environ, RequestEnvironment)
        assert environ["REQUEST_METHOD"] == "GET"
        assert environ["PATH_INFO"] == "/items"
        assert environ["SCRIPT_NAME"] == "/prod"
        assert environ["QUERY_STRING"] == "page=2"

    def test_returns_translated_response(self, event):
        """Test that the handler output is translated to a gateway response."""
        app = MagicMock(return_value=({"Content-Type": "text/plain"}, 201, ["cre", "ated"]))
        response = EventProxy(app).handle(event)

        assert isinstance(response, GatewayResponse)
        assert response.status == 201
        assert response.headers == {"Content-Type": "text/plain"}
        assert response.isBase64Encoded is False
        assert response.body == "created"

    def test_binary_handler_output(self, event):
        """Test that binary output is base64-encoded end to end."""
        app = MagicMock(return_value=({"Content-Type": "image/png"}, 200, [b"\x89PNG"]))
        response = EventProxy(app).handle(event)

        assert response.isBase64Encoded is True
        assert base64.b64decode(response.body) == b"\x89PNG"

    def test_handler_can_read_request_body(self, event):
        """Test that the handler sees the decoded body."""
        event["body"] = base64.b64encode(b"\xff\x01binary").decode("ascii")
        event["isBase64Encoded"] = True

        def app(environ):
            return {}, 200, [environ.input.read()]

        response = EventProxy(app).handle(event)
        assert base64.b64decode(response.body) == b"\xff\x01binary"

    def test_decode_error_propagates_without_calling_handler(self, event):
        """Test that an undecodable body surfaces as a failure."""
        event["body"] = "%%%"
        event["isBase64Encoded"] = True
        app = MagicMock()

        with pytest.raises(DecodeError):
            EventProxy(app).handle(event)

        app.assert_not_called()

    def test_handler_exception_propagates(self, event):
        """Test that handler failures are not converted to responses."""
        app = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            EventProxy(app).handle(event)

    def test_failure_is_logged(self, event, caplog):
        """Test that failures are logged with the request ID."""
        app = MagicMock(side_effect=RuntimeError("boom"))

        with caplog.at_level(logging.ERROR, logger="server.event_proxy"):
            with pytest.raises(RuntimeError):
                EventProxy(app).handle(event, request_id="req-1")

        record = caplog.records[-1]
        assert record.request_id == "req-1"
        assert record.error_type == "RuntimeError"
        assert record.exc_info is not None

    def test_request_log_redacts_credentials(self, event, caplog):
        """Test that sensitive headers never reach the logs."""
        app = MagicMock(return_value=({}, 200, []))

        with caplog.at_level(logging.INFO, logger="server.event_proxy"):
            EventProxy(app).handle(event, request_id="req-2")

        request_record = caplog.records[0]
        assert request_record.request_headers["Authorization"] == "[REDACTED]"
        assert request_record.request_headers["HOST"] == "example.com"
        response_record = caplog.records[-1]
        assert response_record.response_status == 200
        assert response_record.request_id == "req-2"

    @pytest.mark.parametrize(
        "body,is_base64,size",
        [
            (base64.b64encode(b"\xff\x01binary").decode("ascii"), True, 8),
            ("héllo", False, 6),
        ],
    )
    def test_request_log_counts_decoded_bytes(self, event, caplog, body, is_base64, size):
        """Test that the logged request body size is the decoded byte count."""
        event["body"] = body
        event["isBase64Encoded"] = is_base64
        app = MagicMock(return_value=({}, 200, []))

        with caplog.at_level(logging.INFO, logger="server.event_proxy"):
            EventProxy(app).handle(event)

        request_record = caplog.records[0]
        assert request_record.request_body_bytes == size
        assert request_record.request_base64_encoded is is_base64

    def test_proxy_is_reusable(self, event):
        """Test that one proxy serves independent events."""
        app = MagicMock(side_effect=lambda environ: ({}, 200, [environ.path]))
        proxy = EventProxy(app)

        first = proxy.handle(event)
        second = proxy.handle({**event, "path": "/other"})

        assert first.body == "/items"
        assert second.body == "/other"
        assert app.call_count == 2
