"""Shared request data types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InboundEnvelope:
    """Inbound request as received, before any verification."""

    method: str
    path: str
    query: str
    headers: list[tuple[str, str]]
    body: bytes


@dataclass(frozen=True)
class SanitizedPayload:
    """Request body with the signature fields taken out."""

    content: bytes
    sec: str
    secval: str


@dataclass(frozen=True)
class OutboundRequest:
    """Prepared data for the upstream request."""

    method: str
    url: str
    headers: list[tuple[str, str]]
    content: bytes
