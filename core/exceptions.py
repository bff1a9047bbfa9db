"""Custom exception hierarchy for the signature gate proxy.

Every error maps to exactly one boundary response. ``public_message`` is what
the caller sees; the exception text itself is internal and only logged.
"""


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        status_code: HTTP status returned to the caller
        public_message: Response body message (None for an empty body)
        stage: Pipeline stage that raised the error
    """

    status_code: int = 500
    public_message: str | None = "Internal proxy error"
    stage: str = "proxy"


class KeyLoadError(ProxyError):
    """Verification key could not be loaded."""

    status_code = 500
    public_message = "Public key error"
    stage = "key"


class KeySourceError(KeyLoadError):
    """Key file could not be read."""


class KeyFormatError(KeyLoadError):
    """Key is not a usable PEM public key block."""


class KeyParseError(KeyLoadError):
    """PEM payload is not a parseable DER public key."""


class KeyTypeError(KeyLoadError):
    """Key parsed but is not an RSA key."""


class BodyReadError(ProxyError):
    """Inbound request body could not be read."""

    status_code = 500
    public_message = "Error reading request body"
    stage = "receive"


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""

    status_code = 413
    public_message = "Request body too large"
    stage = "receive"


class EnvelopeError(ProxyError):
    """Request body failed sanitization."""

    status_code = 400
    stage = "sanitize"


class BodyParseError(EnvelopeError):
    """Request body is not a JSON object."""

    public_message = "Invalid JSON"


class FieldTypeError(EnvelopeError):
    """``sec`` or ``secval`` is missing or not a string."""

    public_message = "sec and secval must be strings"


class EmptyCredentialsError(EnvelopeError):
    """``sec`` or ``secval`` is an empty string.

    Reported as not-found with an empty body rather than as a bad request.
    """

    status_code = 404
    public_message = None


class SignatureError(ProxyError):
    """Signature did not verify.

    All subclasses share one public message so callers cannot tell them apart.
    """

    status_code = 401
    public_message = "Signature verification failed"
    stage = "verify"


class SignatureEncodingError(SignatureError):
    """Signature is not valid standard base64."""


class SignatureInvalidError(SignatureError):
    """Signature does not match the signed value under the loaded key."""


class UpstreamError(ProxyError):
    """Raised when the upstream cannot be used.

    Attributes:
        target: Upstream URL the request was addressed to (optional)
    """

    status_code = 502
    public_message = "Failed to reach target server"
    stage = "forward"

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


class UpstreamUnreachableError(UpstreamError):
    """DNS, connect or timeout failure, or the inbound request went away."""


class RelayStreamError(Exception):
    """Streaming the upstream body to the caller failed after headers were sent.

    Not a ``ProxyError``: the status line is already on the wire, so there is
    no error response to send. The exception escapes to the server, which
    aborts the connection and the caller sees a truncated transfer.
    """

    status_code = 500
    public_message = "Response transfer failed"
    stage = "relay"
