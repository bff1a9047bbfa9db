"""RSA PKCS#1 v1.5 / SHA-256 signature verification."""

import base64
import binascii
import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from core.exceptions import SignatureEncodingError, SignatureInvalidError


def verify_signature(
    public_key: rsa.RSAPublicKey,
    signed_value: str,
    signature_b64: str,
) -> None:
    """Verify a base64 signature over the SHA-256 digest of signed_value.

    Args:
        public_key: RSA key the signature must verify under.
        signed_value: Value the client signed, hashed as UTF-8.
        signature_b64: Standard (padded) base64 encoding of the signature.

    Raises:
        SignatureEncodingError: signature_b64 is not valid base64.
        SignatureInvalidError: the signature does not match.
    """
    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureEncodingError(f"invalid base64 signature: {e}") from e

    digest = hashlib.sha256(signed_value.encode("utf-8")).digest()
    try:
        public_key.verify(
            signature,
            digest,
            padding.PKCS1v15(),
            Prehashed(hashes.SHA256()),
        )
    except (InvalidSignature, ValueError) as e:
        raise SignatureInvalidError(f"signature verification failed: {e!r}") from e


class SignatureVerifier:
    """Verify request signatures."""

    def verify(
        self,
        public_key: rsa.RSAPublicKey,
        signed_value: str,
        signature_b64: str,
    ) -> None:
        verify_signature(public_key, signed_value, signature_b64)
