"""FastAPI adapter for the remote-storage endpoints."""

from fastapi import APIRouter, Header, Request, Response

from promdoc.adapters.frameworks.auth import AuthPolicy
from promdoc.adapters.frameworks.handlers import (
    HEALTH_PATH,
    READ_PATH,
    WRITE_PATH,
    HandlerResponse,
    RemoteStorageHandlers,
)
from promdoc.core.service import RemoteStorageService


def _to_response(response: HandlerResponse) -> Response:
    return Response(
        content=response.body,
        status_code=response.status,
        media_type=response.content_type,
        headers=dict(response.headers),
    )


def create_remote_storage_router(
    service: RemoteStorageService,
    auth: AuthPolicy | None = None,
) -> APIRouter:
    """Create a FastAPI router with the remote write, read and health endpoints.

    Args:
        service: Service executing writes and reads.
        auth: Authentication policy. None disables authentication.

    Returns:
        APIRouter with /api/v1/write, /api/v1/read and /_health configured.
    """
    router = APIRouter()
    handlers = RemoteStorageHandlers(service, auth)

    @router.get(HEALTH_PATH)
    async def health() -> Response:
        """Report store liveness."""
        return _to_response(await handlers.health())

    @router.post(WRITE_PATH)
    async def write(
        request: Request,
        authorization: str | None = Header(default=None),
    ) -> Response:
        """Accept a snappy-compressed protobuf remote-write request."""
        body = await request.body()
        return _to_response(await handlers.write(body, authorization))

    @router.post(READ_PATH)
    async def read(
        request: Request,
        authorization: str | None = Header(default=None),
    ) -> Response:
        """Answer a snappy-compressed protobuf remote-read request."""
        body = await request.body()
        return _to_response(await handlers.read(body, authorization))

    return router
