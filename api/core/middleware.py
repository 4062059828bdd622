"""ASGI middleware: security headers and per-request canonical log line."""

from __future__ import annotations

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import get_logger
from core.wide_event import clear_wide_event, get_wide_event, init_wide_event

logger = get_logger("habits.request")

SERVICE_NAME = "habit-tracker-api"

SLOW_REQUEST_MS = 1000


class SecurityHeadersMiddleware:
    """Adds security headers to every HTTP response.

    The API only serves JSON, so the CSP forbids everything.
    """

    SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"referrer-policy", b"no-referrer"),
        (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'"),
        (b"strict-transport-security", b"max-age=31536000; includeSubDomains"),
    ]

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Swagger UI needs scripts from its CDN
        is_docs = scope.get("path", "") in ("/docs", "/redoc")

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                if is_docs:
                    headers.extend(
                        h
                        for h in self.SECURITY_HEADERS
                        if h[0] != b"content-security-policy"
                    )
                else:
                    headers.extend(self.SECURITY_HEADERS)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)


class RequestContextMiddleware:
    """Creates the wide event for each request and emits it at the end.

    - One ``request.completed`` line per request
    - Adds x-request-id and x-request-duration-ms response headers
    - Health probes are only logged when they fail or are slow
    """

    QUIET_PATHS = frozenset({"/health", "/ready"})

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        path = scope.get("path", "")
        client = scope.get("client")
        request_id = str(uuid.uuid4())

        init_wide_event(
            service_name=SERVICE_NAME,
            request_id=request_id,
            http_method=scope.get("method", "UNKNOWN"),
            http_path=path,
            http_client_ip=client[0] if client else "unknown",
        )

        response_status: int | None = None

        def _route_path() -> str:
            route = scope.get("route")
            return getattr(route, "path", None) or path

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers

            elif message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                duration_ms = (time.perf_counter() - start_time) * 1000

                event = get_wide_event()
                event["http_route"] = _route_path()
                event["http_status_code"] = response_status
                event["duration_ms"] = round(duration_ms, 2)
                event["outcome"] = (
                    "success" if response_status and response_status < 400 else "error"
                )

                should_emit = (
                    path not in self.QUIET_PATHS
                    or response_status is None
                    or response_status >= 400
                    or duration_ms > SLOW_REQUEST_MS
                )
                if should_emit:
                    logger.info("request.completed", **event)

                clear_wide_event()

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            event = get_wide_event()
            event["http_route"] = _route_path()
            event["duration_ms"] = round(duration_ms, 2)
            event["outcome"] = "exception"
            event["exception_type"] = type(exc).__name__
            logger.error("request.completed", **event)
            clear_wide_event()
            raise
