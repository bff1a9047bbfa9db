"""RSA public key loading from PEM files."""

import re
from pathlib import Path
from threading import Lock

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from core.exceptions import KeyFormatError, KeyParseError, KeySourceError, KeyTypeError

ACCEPTED_PEM_TYPES = ("PUBLIC KEY", "RSA PUBLIC KEY")

_PEM_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN (?P<type>[^-\r\n]+)-----(?P<body>.*?)-----END (?P=type)-----",
    re.DOTALL,
)


def find_pem_block(data: bytes) -> tuple[str, bytes]:
    """Return the label of the first PEM block in data and the block re-armored as PUBLIC KEY."""
    match = _PEM_BLOCK_PATTERN.search(data)
    if match is None:
        raise KeyFormatError("invalid PEM block")

    body = match.group("body")
    # Payload is always read as SubjectPublicKeyInfo, whatever the label says
    armored = b"-----BEGIN PUBLIC KEY-----" + body + b"-----END PUBLIC KEY-----\n"
    return match.group("type").decode("latin-1"), armored


def parse_public_key(data: bytes) -> rsa.RSAPublicKey:
    """Parse a PEM encoded RSA public key."""
    block_type, armored = find_pem_block(data.strip())
    if block_type not in ACCEPTED_PEM_TYPES:
        raise KeyFormatError(f"unexpected PEM block type: {block_type}")

    try:
        public_key = serialization.load_pem_public_key(armored)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"failed to parse public key: {e}") from e

    if not isinstance(public_key, rsa.RSAPublicKey):
        raise KeyTypeError("key is not an RSA public key")

    numbers = public_key.public_numbers()
    if numbers.n <= 0 or numbers.e == 0:
        raise KeyFormatError("invalid RSA public key")

    return public_key


def load_public_key(path: Path) -> rsa.RSAPublicKey:
    """Read and parse the RSA public key stored at path."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise KeySourceError(f"failed to read public key file: {e}") from e
    return parse_public_key(data)


class KeyLoader:
    """Load the verification key fresh on every call."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> rsa.RSAPublicKey:
        return load_public_key(self.path)


class CachingKeyLoader(KeyLoader):
    """Keep the parsed key until the key file changes on disk.

    The file is stat'ed on every call; a different mtime or size triggers a
    reload, so a rotated key is picked up without a restart.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self._lock = Lock()
        self._stamp: tuple[int, int] | None = None
        self._key: rsa.RSAPublicKey | None = None

    def load(self) -> rsa.RSAPublicKey:
        try:
            stat = self.path.stat()
        except OSError as e:
            raise KeySourceError(f"failed to read public key file: {e}") from e
        stamp = (stat.st_mtime_ns, stat.st_size)

        with self._lock:
            if self._key is not None and self._stamp == stamp:
                return self._key
            key = load_public_key(self.path)
            self._key = key
            self._stamp = stamp
            return key
