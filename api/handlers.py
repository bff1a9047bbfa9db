"""FastAPI route handlers."""

import asyncio

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import ClientDisconnect

from core.config import Config
from core.exceptions import BodyReadError, ProxyError, RequestTooLarge
from core.request_types import InboundEnvelope
from ui.log_utils import write_incoming_log


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, refusing anything larger than limit."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise RequestTooLarge(f"declared body size {declared} exceeds {limit}")

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise RequestTooLarge(f"body exceeds {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def read_envelope(request: Request, config: Config) -> InboundEnvelope:
    """Capture method, raw path/query, headers and body of the inbound request."""
    try:
        body = await asyncio.wait_for(
            _read_body(request, config.proxy.max_body_size),
            timeout=config.timeouts.read,
        )
    except TimeoutError as e:
        raise BodyReadError(f"timed out reading body after {config.timeouts.read}s") from e
    except ClientDisconnect as e:
        raise BodyReadError("client disconnected while sending body") from e

    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")

    return InboundEnvelope(
        method=request.method,
        path=path,
        query=query,
        headers=[(k.decode("latin-1"), v.decode("latin-1")) for k, v in request.headers.raw],
        body=body,
    )


async def _wait_for_disconnect(request: Request) -> None:
    """Return once the client has closed the connection."""
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def handle_proxy(request: Request, config: Config) -> StreamingResponse:
    """Handle any inbound request by verifying and forwarding it."""
    envelope = await read_envelope(request, config)
    if config.proxy.debug:
        write_incoming_log(envelope.method, envelope.path, dict(envelope.headers), envelope.body)

    pipeline = request.app.state.pipeline
    return await pipeline.handle(envelope, disconnected=lambda: _wait_for_disconnect(request))


async def handle_proxy_error(request: Request, exc: ProxyError) -> Response:
    """Convert a pipeline error into its boundary response."""
    logger = request.app.state.logger
    logger.log_rejected(
        request.method,
        request.url.path,
        exc.status_code,
        f"{type(exc).__name__}: {exc}",
        stage=exc.stage,
    )
    if exc.public_message is None:
        return Response(status_code=exc.status_code)
    return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)
