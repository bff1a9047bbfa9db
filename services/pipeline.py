"""Verification and forwarding orchestration for proxy requests."""

import time

from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import KeySource, RequestLogger
from core.request_types import InboundEnvelope, OutboundRequest
from core.sanitize import PayloadSanitizer
from core.signature import SignatureVerifier
from services.upstream import DisconnectWaiter, UpstreamClient


class ForwardPipeline:
    """Verify signed requests and forward them to the upstream.

    Stages run in a fixed order: load key, sanitize body, verify signature,
    build the outbound request, forward and relay. Each stage raises its own
    ``ProxyError`` subclass and nothing after a failing stage runs.
    """

    def __init__(
        self,
        config: Config,
        logger: RequestLogger,
        key_source: KeySource,
        sanitizer: PayloadSanitizer,
        verifier: SignatureVerifier,
        header_builder: HeaderBuilder,
        upstream: UpstreamClient,
    ) -> None:
        self._origin = config.upstream.origin
        self._logger = logger
        self._keys = key_source
        self._sanitizer = sanitizer
        self._verifier = verifier
        self._headers = header_builder
        self._upstream = upstream

    def target_url(self, path: str, query: str) -> str:
        """Upstream URL for an inbound path and raw query string."""
        url = self._origin + path
        if query:
            url += "?" + query
        return url

    def prepare(self, envelope: InboundEnvelope) -> OutboundRequest:
        """Run key loading, sanitization and verification; build the outbound request."""
        public_key = self._keys.load()
        payload = self._sanitizer.sanitize(envelope.body)
        self._verifier.verify(public_key, payload.secval, payload.sec)

        return OutboundRequest(
            method=envelope.method,
            url=self.target_url(envelope.path, envelope.query),
            headers=self._headers.build_upstream_headers(envelope.headers),
            content=payload.content,
        )

    async def handle(
        self,
        envelope: InboundEnvelope,
        disconnected: DisconnectWaiter | None = None,
    ) -> StreamingResponse:
        """Verify, forward and relay a single request."""
        # Key file reads and RSA verification block; keep them off the event loop
        outbound = await run_in_threadpool(self.prepare, envelope)

        started = time.monotonic()
        response = await self._upstream.forward(outbound, disconnected)
        self._logger.log_forwarded(
            envelope.method,
            envelope.path,
            response.status_code,
            elapsed=time.monotonic() - started,
        )
        return response
