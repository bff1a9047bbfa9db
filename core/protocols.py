"""Shared protocol definitions."""

from typing import Protocol

from cryptography.hazmat.primitives.asymmetric import rsa


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard or console)."""

    def log_forwarded(
        self,
        method: str,
        path: str,
        status: int,
        *,
        elapsed: float,
    ) -> None: ...
    def log_rejected(
        self,
        method: str,
        path: str,
        status: int,
        reason: str,
        *,
        stage: str,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...


class KeySource(Protocol):
    """Anything that can produce the current verification key."""

    def load(self) -> rsa.RSAPublicKey: ...
