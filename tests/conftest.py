"""Shared fixtures: throwaway RSA keys, a fake upstream and a test client."""

import base64
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config, KeySettings, UpstreamSettings

UPSTREAM_ORIGIN = "http://upstream.test"


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key_pem(private_key) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def key_file(tmp_path, public_key_pem) -> Path:
    path = tmp_path / "public_key.pem"
    path.write_bytes(public_key_pem)
    return path


@pytest.fixture
def sign(private_key) -> Callable[[str], str]:
    """Sign a value the way clients do: base64(RSA-PKCS1v15(SHA-256(value)))."""
    def _sign(value: str, key: rsa.RSAPrivateKey | None = None) -> str:
        signer = key or private_key
        signature = signer.sign(value.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode("ascii")
    return _sign


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self) -> None:
        self.forwarded: list[tuple[str, str, int]] = []
        self.rejected: list[dict[str, Any]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forwarded(self, method: str, path: str, status: int, *, elapsed: float) -> None:
        self.forwarded.append((method, path, status))

    def log_rejected(self, method: str, path: str, status: int, reason: str, *, stage: str) -> None:
        self.rejected.append(
            {"method": method, "path": path, "status": status, "reason": reason, "stage": stage}
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))


class FakeUpstream:
    """MockTransport handler recording every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"ok": True}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def config(key_file) -> Config:
    return Config(
        upstream=UpstreamSettings(base_url=UPSTREAM_ORIGIN),
        key=KeySettings(public_key_path=key_file),
    )


@pytest.fixture
def make_client(config, logger, upstream):
    """Build a TestClient; keyword arguments go to create_app."""
    clients: list[TestClient] = []

    def _make(**kwargs) -> TestClient:
        kwargs.setdefault("transport", httpx.MockTransport(upstream))
        app = create_app(kwargs.pop("config", config), logger, **kwargs)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
