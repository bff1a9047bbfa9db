"""HTTP proxying utilities for upstream requests."""

import asyncio
import socket
from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.exceptions import ProxyError, RelayStreamError, UpstreamUnreachableError
from core.protocols import RequestLogger
from core.request_types import OutboundRequest

# Message framing is re-derived by the server for the relayed body
FRAMING_HEADERS = frozenset({"transfer-encoding"})

DisconnectWaiter = Callable[[], Awaitable[None]]


def keepalive_socket_options(keepalive: float) -> list[tuple[int, int, int]]:
    """Socket options enabling TCP keep-alive probes on upstream connections."""
    options = [(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)]
    seconds = max(1, int(keepalive))
    if hasattr(socket, "TCP_KEEPIDLE"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
    if hasattr(socket, "TCP_KEEPINTVL"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
    return options


class UpstreamClient:
    """Send prepared requests upstream and stream the response back."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: RequestLogger,
        *,
        timeout: float,
        write_timeout: float,
    ) -> None:
        self._client = client
        self._logger = logger
        self._timeout = timeout
        self._write_timeout = write_timeout

    async def forward(
        self,
        outbound: OutboundRequest,
        disconnected: DisconnectWaiter | None = None,
    ) -> StreamingResponse:
        """Execute a single upstream attempt and relay status, headers and body."""
        try:
            request = self._client.build_request(
                outbound.method,
                outbound.url,
                headers=outbound.headers,
                content=outbound.content,
            )
        except httpx.InvalidURL as e:
            raise ProxyError(f"failed to create request for {outbound.url}: {e}") from e

        response = await self._send(request, disconnected)

        relay = StreamingResponse(
            self._relay_body(response, outbound.url),
            status_code=response.status_code,
            background=BackgroundTask(self._cleanup_streaming, response),
        )
        for name, value in response.headers.multi_items():
            if name.lower() in FRAMING_HEADERS:
                continue
            relay.headers.append(name, value)
        return relay

    async def _send(
        self,
        request: httpx.Request,
        disconnected: DisconnectWaiter | None,
    ) -> httpx.Response:
        """Send request, giving up on timeout or when the caller goes away."""
        target = str(request.url)
        send_task = asyncio.ensure_future(self._client.send(request, stream=True))
        waiters: set[asyncio.Future] = {send_task}
        watch_task = None
        if disconnected is not None:
            watch_task = asyncio.ensure_future(disconnected())
            waiters.add(watch_task)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self._timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if watch_task is not None:
                watch_task.cancel()
            if not send_task.done():
                send_task.cancel()

        if send_task not in done:
            if watch_task is not None and watch_task in done:
                raise UpstreamUnreachableError("inbound request cancelled", target=target)
            raise UpstreamUnreachableError(f"upstream timeout after {self._timeout}s", target=target)

        try:
            return send_task.result()
        except httpx.TimeoutException as e:
            raise UpstreamUnreachableError(f"upstream timeout: {e!r}", target=target) from e
        except httpx.RequestError as e:
            raise UpstreamUnreachableError(f"upstream connection error: {e!r}", target=target) from e

    async def _relay_body(self, response: httpx.Response, target: str) -> AsyncIterator[bytes]:
        """Stream the raw upstream body, bounded by the write deadline."""
        if response.is_stream_consumed:
            # Transport handed back an already-read body
            try:
                if response.content:
                    yield response.content
            finally:
                await response.aclose()
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._write_timeout
        chunks = response.aiter_raw()
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise TimeoutError(f"write deadline of {self._write_timeout}s exceeded")
                try:
                    chunk = await asyncio.wait_for(anext(chunks), remaining)
                except StopAsyncIteration:
                    return
                yield chunk
        except (httpx.HTTPError, TimeoutError) as e:
            self._logger.log_error(target, 500, f"Response body copy error: {e!r}")
            raise RelayStreamError(f"response body copy error: {e!r}") from e
        finally:
            await response.aclose()

    async def _cleanup_streaming(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()
