"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy, handle_proxy_error
from core.config import Config
from core.exceptions import ProxyError
from core.headers import HeaderBuilder
from core.keys import CachingKeyLoader, KeyLoader
from core.protocols import KeySource, RequestLogger
from core.sanitize import PayloadSanitizer
from core.signature import SignatureVerifier
from services.pipeline import ForwardPipeline
from services.upstream import UpstreamClient, keepalive_socket_options

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_key_source(config: Config) -> KeySource:
    """Per-request key loader, or a rotation-aware cache when enabled."""
    if config.key.cache:
        return CachingKeyLoader(config.key.public_key_path)
    return KeyLoader(config.key.public_key_path)


def build_upstream_client(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the pooled client used for every upstream call."""
    limits = httpx.Limits(
        max_connections=config.pool.max_connections,
        max_keepalive_connections=config.pool.max_keepalive_connections,
        keepalive_expiry=config.pool.keepalive_expiry,
    )
    if transport is None:
        transport = httpx.AsyncHTTPTransport(
            limits=limits,
            socket_options=keepalive_socket_options(config.timeouts.keepalive),
        )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.timeouts.upstream, connect=config.timeouts.connect),
        follow_redirects=False,
    )


def create_app(
    config: Config,
    logger: RequestLogger,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    key_source: KeySource | None = None,
    verifier: SignatureVerifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        upstream_client = build_upstream_client(config, transport)
        app.state.logger = logger
        app.state.pipeline = ForwardPipeline(
            config=config,
            logger=logger,
            key_source=key_source or build_key_source(config),
            sanitizer=PayloadSanitizer(),
            verifier=verifier or SignatureVerifier(),
            header_builder=HeaderBuilder(),
            upstream=UpstreamClient(
                upstream_client,
                logger,
                timeout=config.timeouts.upstream,
                write_timeout=config.timeouts.write,
            ),
        )
        try:
            yield
        finally:
            await upstream_client.aclose()

    # Every path belongs to the upstream, so no docs or schema routes
    app = FastAPI(
        title="Signature Gate Proxy",
        version="1.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_exception_handler(ProxyError, handle_proxy_error)

    @app.api_route("/{path:path}", methods=PROXY_METHODS)
    async def proxy(request: Request):
        return await handle_proxy(request, config)

    return app
