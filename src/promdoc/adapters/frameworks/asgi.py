"""Plain ASGI application for Prometheus remote write and remote read.

Serves the endpoints without a web framework, so the server only needs an
ASGI runner such as uvicorn. FastAPI users can mount the router from
promdoc.adapters.frameworks.fastapi instead.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from typing import Any

from promdoc.adapters.frameworks.auth import AuthPolicy
from promdoc.adapters.frameworks.handlers import (
    HEALTH_PATH,
    READ_PATH,
    TEXT_CONTENT_TYPE,
    WRITE_PATH,
    HandlerResponse,
    RemoteStorageHandlers,
)
from promdoc.core.logs import get_logger, log_exception
from promdoc.core.service import RemoteStorageService

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

LifespanHook = Callable[[], Awaitable[None]]

access_logger = get_logger("access")


class ClientDisconnected(Exception):
    """The client went away before the request body was fully received."""


def _get_header(scope: Scope, header_name: str) -> str | None:
    """Return a request header value (case-insensitive), or None."""
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return value.decode("latin-1")
    return None


def _extract_request_id(scope: Scope, header_name: str = "X-Request-ID") -> str:
    """Extract the request ID header, generating a UUID when it is absent."""
    return _get_header(scope, header_name) or str(uuid.uuid4())


def _get_log_level_for_status(status_code: int) -> int:
    """Map an HTTP status code to a logging level.

    - 2xx, 3xx and anything unexpected -> INFO
    - 4xx -> WARNING
    - 5xx -> ERROR
    """
    if 400 <= status_code < 500:
        return logging.WARNING
    if 500 <= status_code < 600:
        return logging.ERROR
    return logging.INFO


async def _read_body(receive: Receive) -> bytes:
    """Collect the full request body from http.request messages."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            raise ClientDisconnected()
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


async def _send_response(
    send: Send,
    status: int,
    content_type: str,
    body: bytes | str,
    headers: Sequence[tuple[str, str]] = (),
) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body; strings are UTF-8 encoded.
        headers: Additional response headers.
    """
    raw_headers = [(b"content-type", content_type.encode())]
    raw_headers.extend((name.lower().encode(), value.encode()) for name, value in headers)
    await send({"type": "http.response.start", "status": status, "headers": raw_headers})
    if isinstance(body, str):
        body = body.encode()
    await send({"type": "http.response.body", "body": body})


async def _send_handler_response(send: Send, response: HandlerResponse) -> None:
    await _send_response(
        send, response.status, response.content_type, response.body, response.headers
    )


async def _handle_lifespan(
    receive: Receive,
    send: Send,
    on_startup: Sequence[LifespanHook],
    on_shutdown: Sequence[LifespanHook],
) -> None:
    """Run startup and shutdown hooks for the ASGI lifespan protocol."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            try:
                for hook in on_startup:
                    await hook()
            except Exception as e:
                log_exception("Startup failed")
                await send({"type": "lifespan.startup.failed", "message": str(e)})
                return
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            try:
                for hook in on_shutdown:
                    await hook()
            except Exception as e:
                log_exception("Shutdown failed")
                await send({"type": "lifespan.shutdown.failed", "message": str(e)})
                return
            await send({"type": "lifespan.shutdown.complete"})
            return


class AccessLogMiddleware:
    """ASGI middleware logging one line per HTTP request.

    Logs method, path, status, duration and request ID at a level chosen
    from the status class. An exception raised before the response started
    is logged and turned into a 500 response.
    """

    def __init__(
        self,
        app: ASGIApp,
        request_id_header: str = "X-Request-ID",
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            request_id_header: Header to read the request ID from.
            logger: Logger for access lines. Defaults to `promdoc.access`.
        """
        self.app = app
        self.request_id_header = request_id_header
        self.logger = logger or access_logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_id = _extract_request_id(scope, self.request_id_header)
        captured: dict[str, Any] = {"status": None, "body_size": 0}

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            elif message["type"] == "http.response.body":
                captured["body_size"] += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, wrapped_send)
        except Exception:
            log_exception(
                f"Unhandled error for {scope['method']} {scope['path']}",
                request_id=request_id,
            )
            if captured["status"] is None:
                await _send_response(
                    wrapped_send, 500, TEXT_CONTENT_TYPE, "Internal Server Error"
                )

        status = captured["status"] or 0
        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.log(
            _get_log_level_for_status(status),
            "%s %s %d %dB %.2fms",
            scope["method"],
            scope["path"],
            status,
            captured["body_size"],
            duration_ms,
            extra={"request_id": request_id},
        )


def create_asgi_app(
    service: RemoteStorageService,
    auth: AuthPolicy | None = None,
    on_startup: Sequence[LifespanHook] = (),
    on_shutdown: Sequence[LifespanHook] = (),
    access_log: bool = True,
) -> ASGIApp:
    """Create an ASGI app serving the remote-storage endpoints.

    Routes:
        GET  /_health      store liveness
        POST /api/v1/write remote write
        POST /api/v1/read  remote read

    Args:
        service: Service executing writes and reads.
        auth: Authentication policy applied to write and read. None disables it.
        on_startup: Hooks awaited on lifespan startup.
        on_shutdown: Hooks awaited on lifespan shutdown.
        access_log: Wrap the app in AccessLogMiddleware.

    Returns:
        ASGI application callable.
    """
    handlers = RemoteStorageHandlers(service, auth)
    routes = {
        HEALTH_PATH: "GET",
        WRITE_PATH: "POST",
        READ_PATH: "POST",
    }

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send, on_startup, on_shutdown)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]
        method = routes.get(path)
        if method is None:
            await _send_response(send, 404, TEXT_CONTENT_TYPE, "Not Found")
            return
        if scope["method"] != method:
            await _send_response(
                send, 405, TEXT_CONTENT_TYPE, "Method Not Allowed", [("Allow", method)]
            )
            return

        if path == HEALTH_PATH:
            await _send_handler_response(send, await handlers.health())
            return

        try:
            body = await _read_body(receive)
        except ClientDisconnected:
            return
        authorization = _get_header(scope, "Authorization")
        if path == WRITE_PATH:
            response = await handlers.write(body, authorization)
        else:
            response = await handlers.read(body, authorization)
        await _send_handler_response(send, response)

    if access_log:
        return AccessLogMiddleware(app)
    return app
