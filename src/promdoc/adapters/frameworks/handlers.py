"""Framework-agnostic request handlers for the remote-storage endpoints.

The ASGI app and the FastAPI router both delegate here, so decoding,
authentication and error-to-status mapping live in one place.
"""

import logging
from dataclasses import dataclass

from promdoc.adapters.frameworks.auth import AuthDisabled, AuthPolicy
from promdoc.core.encoding.remote import (
    CONTENT_ENCODING,
    CONTENT_TYPE,
    decode_read_request,
    decode_write_request,
    encode_read_response,
)
from promdoc.core.errors import (
    AuthError,
    DecodeError,
    InvalidMatcherError,
    PromdocError,
)
from promdoc.core.logs import log_exception
from promdoc.core.service import RemoteStorageService

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

WRITE_PATH = "/api/v1/write"
READ_PATH = "/api/v1/read"
HEALTH_PATH = "/_health"


@dataclass(frozen=True)
class HandlerResponse:
    """Response produced by a handler, independent of the web framework."""

    status: int
    body: bytes = b""
    content_type: str = TEXT_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()


def status_for_error(error: Exception) -> int:
    """Map an error to its HTTP status code.

    Decode and invalid-matcher errors are the caller's fault (400), auth
    errors are 401, everything else (unsupported matchers, store failures,
    unexpected exceptions) is a server error.
    """
    if isinstance(error, AuthError):
        return 401
    if isinstance(error, (DecodeError, InvalidMatcherError)):
        return 400
    return 500


def _error_response(error: Exception, endpoint: str) -> HandlerResponse:
    status = status_for_error(error)
    if status >= 500:
        log_exception(f"Error handling {endpoint}", endpoint=endpoint)
    else:
        logger.warning("Rejected %s request: %s", endpoint, error)
    if isinstance(error, PromdocError):
        message = str(error)
    else:
        message = "Internal Server Error"
    return HandlerResponse(status=status, body=message.encode())


class RemoteStorageHandlers:
    """Remote write, remote read and health handlers over one service."""

    def __init__(
        self,
        service: RemoteStorageService,
        auth: AuthPolicy | None = None,
    ) -> None:
        """Initialize the handlers.

        Args:
            service: Service executing writes and reads.
            auth: Authentication policy. None means AuthDisabled.
        """
        self.service = service
        self.auth = auth if auth is not None else AuthDisabled()

    async def write(self, body: bytes, authorization: str | None) -> HandlerResponse:
        """Handle a remote-write request. Returns 204 with no body on success."""
        try:
            self.auth.authorize(authorization)
            timeseries = decode_write_request(body)
            await self.service.write(timeseries)
        except Exception as e:
            return _error_response(e, WRITE_PATH)
        return HandlerResponse(status=204)

    async def read(self, body: bytes, authorization: str | None) -> HandlerResponse:
        """Handle a remote-read request with a snappy-compressed protobuf reply."""
        try:
            self.auth.authorize(authorization)
            queries = decode_read_request(body)
            results = await self.service.read(queries)
            payload = encode_read_response(results)
        except Exception as e:
            return _error_response(e, READ_PATH)
        return HandlerResponse(
            status=200,
            body=payload,
            content_type=CONTENT_TYPE,
            headers=(("Content-Encoding", CONTENT_ENCODING),),
        )

    async def health(self) -> HandlerResponse:
        """Ping the store: 200 when reachable, 500 otherwise."""
        try:
            await self.service.storage.ping()
        except Exception:
            log_exception("Health check failed", endpoint=HEALTH_PATH)
            return HandlerResponse(status=500)
        return HandlerResponse(status=200)
