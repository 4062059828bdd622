"""Unit tests for core.middleware module.

Tests ASGI middleware:
- SecurityHeadersMiddleware adds security headers to HTTP responses
- SecurityHeadersMiddleware relaxes CSP for the docs pages
- RequestContextMiddleware adds request id / duration headers
- RequestContextMiddleware emits one canonical log line per request
"""

from unittest.mock import MagicMock, patch

import pytest

from core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from core.wide_event import set_wide_event_fields


async def _noop_receive():
    return {"type": "http.request", "body": b""}


def _app_with_status(status: int):
    async def app(scope, receive, send):
        set_wide_event_fields(user_id="user_42")
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b"OK"})

    return app


async def _run(middleware, path: str = "/api/habits") -> list[dict]:
    sent: list[dict] = []

    async def mock_send(message):
        sent.append(message)

    scope = {
        "type": "http",
        "path": path,
        "method": "GET",
        "client": ("10.0.0.1", 5000),
    }
    await middleware(scope, _noop_receive, mock_send)
    return sent


@pytest.mark.unit
class TestSecurityHeadersMiddleware:
    async def test_adds_security_headers(self):
        sent = await _run(SecurityHeadersMiddleware(_app_with_status(200)))

        header_names = {h[0] for h in sent[0]["headers"]}
        assert b"x-content-type-options" in header_names
        assert b"x-frame-options" in header_names
        assert b"referrer-policy" in header_names
        assert b"content-security-policy" in header_names
        assert b"strict-transport-security" in header_names

    async def test_docs_have_no_csp(self):
        sent = await _run(SecurityHeadersMiddleware(_app_with_status(200)), "/docs")

        header_names = {h[0] for h in sent[0]["headers"]}
        assert b"content-security-policy" not in header_names
        assert b"x-frame-options" in header_names

    async def test_skips_non_http_scopes(self):
        called = False

        async def inner_app(scope, receive, send):
            nonlocal called
            called = True

        middleware = SecurityHeadersMiddleware(inner_app)
        await middleware({"type": "lifespan"}, _noop_receive, MagicMock())
        assert called


@pytest.mark.unit
class TestRequestContextMiddleware:
    async def test_adds_request_headers(self):
        sent = await _run(RequestContextMiddleware(_app_with_status(200)))

        headers = dict(sent[0]["headers"])
        assert b"x-request-id" in headers
        assert b"x-request-duration-ms" in headers

    async def test_logs_completed_request_with_wide_event(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(201)))

        mock_logger.info.assert_called_once()
        args, fields = mock_logger.info.call_args
        assert args == ("request.completed",)
        assert fields["http_status_code"] == 201
        assert fields["http_method"] == "GET"
        assert fields["http_client_ip"] == "10.0.0.1"
        assert fields["user_id"] == "user_42"
        assert fields["outcome"] == "success"

    async def test_healthy_probe_is_not_logged(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(200)), "/health")

        mock_logger.info.assert_not_called()

    async def test_failing_probe_is_logged(self):
        with patch("core.middleware.logger") as mock_logger:
            await _run(RequestContextMiddleware(_app_with_status(503)), "/ready")

        _, fields = mock_logger.info.call_args
        assert fields["outcome"] == "error"

    async def test_exception_is_logged_and_reraised(self):
        async def broken_app(scope, receive, send):
            raise RuntimeError("boom")

        with patch("core.middleware.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await _run(RequestContextMiddleware(broken_app))

        _, fields = mock_logger.error.call_args
        assert fields["exception_type"] == "RuntimeError"
        assert fields["outcome"] == "exception"
