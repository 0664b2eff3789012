"""Comprehensive tests for AWS Lambda adapter.

These tests verify the Lambda entry point, warm-start reuse of the proxy,
configuration loading, and error propagation.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

import server.adapters.aws_lambda as aws_lambda
from core.interfaces import GatewayResponse
from core.request_translator import DecodeError
from core.validators import ConfigurationError
from server.adapters.aws_lambda import get_proxy, lambda_handler


class MockLambdaContext:
    """Mock Lambda context object."""

    def __init__(self, request_id="test-request-id-123"):
        self.aws_request_id = request_id
        self.function_name = "test-function"
        self.memory_limit_in_mb = 512


@pytest.fixture(autouse=True)
def reset_state():
    """Reset module-level warm-start state between tests."""
    aws_lambda._proxy = None
    aws_lambda._config = None
    yield
    aws_lambda._proxy = None
    aws_lambda._config = None


@pytest.fixture
def api_gateway_event():
    return {
        "resource": "/{proxy+}",
        "httpMethod": "GET",
        "path": "/hello",
        "headers": {"Host": "abc.execute-api.us-east-1.amazonaws.com"},
        "multiValueQueryStringParameters": None,
        "requestContext": {"path": "/prod/hello", "stage": "prod"},
        "body": None,
        "isBase64Encoded": False,
    }


class TestLambdaHandler:
    """Test lambda_handler function."""

    def test_returns_proxy_integration_result(self, api_gateway_event):
        """Test that the gateway response is rendered for Lambda."""
        context = MockLambdaContext()

        with patch("server.adapters.aws_lambda.get_proxy") as mock_get_proxy:
            mock_proxy = MagicMock()
            mock_proxy.handle.return_value = GatewayResponse(
                status=200,
                headers={"Content-Type": "text/plain"},
                isBase64Encoded=False,
                body="hi",
            )
            mock_get_proxy.return_value = mock_proxy

            response = lambda_handler(api_gateway_event, context)

        assert response == {
            "statusCode": 200,
            "headers": {"Content-Type": "text/plain"},
            "isBase64Encoded": False,
            "body": "hi",
        }
        mock_proxy.handle.assert_called_once_with(
            api_gateway_event, request_id="test-request-id-123"
        )

    def test_handles_missing_context(self, api_gateway_event):
        """Test that handler works without context."""
        with patch("server.adapters.aws_lambda.get_proxy") as mock_get_proxy:
            mock_proxy = MagicMock()
            mock_proxy.handle.return_value = GatewayResponse(status=204)
            mock_get_proxy.return_value = mock_proxy

            response = lambda_handler(api_gateway_event, None)

        assert response["statusCode"] == 204
        assert mock_proxy.handle.call_args[1]["request_id"] == "unknown"

    def test_reraises_handler_errors(self, api_gateway_event):
        """Test that failures become invocation errors, not responses."""
        with patch("server.adapters.aws_lambda.get_proxy") as mock_get_proxy:
            mock_get_proxy.return_value.handle.side_effect = RuntimeError("Handler error")

            with pytest.raises(RuntimeError, match="Handler error"):
                lambda_handler(api_gateway_event, MockLambdaContext())

    def test_reraises_decode_errors(self, api_gateway_event):
        """Test that an undecodable body fails the invocation."""
        api_gateway_event["body"] = "***"
        api_gateway_event["isBase64Encoded"] = True
        app = MagicMock()

        with patch("server.adapters.aws_lambda.get_proxy") as mock_get_proxy:
            mock_get_proxy.return_value = aws_lambda.EventProxy(app)

            with pytest.raises(DecodeError):
                lambda_handler(api_gateway_event, MockLambdaContext())

        app.assert_not_called()

    def test_end_to_end_with_native_app(self, api_gateway_event):
        """Test a full invocation through a real EventProxy."""

        def app(environ):
            return {"Content-Type": "text/plain"}, 200, [environ.script_name, environ.path]

        with patch("server.adapters.aws_lambda.get_proxy") as mock_get_proxy:
            mock_get_proxy.return_value = aws_lambda.EventProxy(app)
            response = lambda_handler(api_gateway_event, MockLambdaContext())

        assert response["statusCode"] == 200
        assert response["body"] == "/prod/hello"
        assert response["isBase64Encoded"] is False


class TestGetProxy:
    """Test get_proxy function."""

    def test_creates_instance_once(self, monkeypatch):
        """Test that get_proxy builds the proxy once and reuses it."""
        monkeypatch.setenv(
            "GATEWAY_BRIDGE_CONFIG",
            json.dumps({"app": "examples.hello_app:app", "app_type": "wsgi"}),
        )

        with patch("server.adapters.aws_lambda.configure_json_logging") as mock_logging:
            proxy1 = get_proxy()
            proxy2 = get_proxy()

        assert proxy1 is proxy2
        mock_logging.assert_called_once_with(level="INFO", pretty=False)

    def test_reuses_existing_instance(self):
        """Test that get_proxy returns an existing instance untouched."""
        existing_proxy = MagicMock()
        aws_lambda._proxy = existing_proxy

        assert get_proxy() is existing_proxy

    def test_serves_configured_wsgi_app(self, monkeypatch):
        """Test that the configured WSGI app answers requests."""
        monkeypatch.setenv(
            "GATEWAY_BRIDGE_CONFIG", json.dumps({"app": "examples.hello_app:app"})
        )

        with patch("server.adapters.aws_lambda.configure_json_logging"):
            response = lambda_handler(
                {"httpMethod": "GET", "path": "/pixel.png"}, MockLambdaContext()
            )

        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == "image/png"
        assert response["isBase64Encoded"] is True


class TestLoadConfig:
    """Test configuration loading for Lambda."""

    def test_loads_from_environment(self, monkeypatch):
        monkeypatch.setenv(
            "GATEWAY_BRIDGE_CONFIG",
            json.dumps({"app": "examples.hello_app:app", "logging": {"level": "DEBUG"}}),
        )
        config = aws_lambda._load_config()
        assert config["app"] == "examples.hello_app:app"
        assert aws_lambda._load_config() is config

    def test_invalid_json_in_environment(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_BRIDGE_CONFIG", "{not json")
        with pytest.raises(ConfigurationError):
            aws_lambda._load_config()

    def test_invalid_structure_in_environment(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_BRIDGE_CONFIG", json.dumps({"logging": {}}))
        with pytest.raises(ConfigurationError):
            aws_lambda._load_config()

    def test_falls_back_to_config_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GATEWAY_BRIDGE_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yaml").write_text("app: examples.hello_app:app\n")

        config = aws_lambda._load_config()
        assert config["app"] == "examples.hello_app:app"

    def test_missing_config_raises(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GATEWAY_BRIDGE_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError):
            aws_lambda._load_config()
