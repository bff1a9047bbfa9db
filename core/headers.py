"""Header construction for upstream requests."""

from collections.abc import Iterable

FORWARDABLE_PREFIX = "x-"


def is_forwardable_header(name: str) -> bool:
    """Only custom ``x-`` headers are forwarded upstream."""
    return name.lower().startswith(FORWARDABLE_PREFIX)


class HeaderBuilder:
    """Build upstream headers from the inbound request."""

    def build_upstream_headers(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Keep allow-listed headers, preserving order and repeated names."""
        return [(name, value) for name, value in headers if is_forwardable_header(name)]
