"""
HMAC signing over the two hash functions this package needs.

SHA-1 drives TOTP (RFC 6238 default), SHA-256 signs compact tokens (HS256).
The set is closed: anything else is rejected before it reaches ``hmac``.
"""
import hashlib
import hmac
from enum import Enum
from typing import Union


class UnsupportedAlgorithmError(ValueError):
    """Raised for hash or token algorithms outside the supported set."""


class HashAlgorithm(str, Enum):
    """Hash functions available for HMAC."""
    SHA1 = "sha1"
    SHA256 = "sha256"

    @property
    def digest_size(self) -> int:
        return _DIGESTS[self]().digest_size


_DIGESTS = {
    HashAlgorithm.SHA1: hashlib.sha1,
    HashAlgorithm.SHA256: hashlib.sha256,
}


def _coerce(algorithm: Union[HashAlgorithm, str]) -> HashAlgorithm:
    try:
        return HashAlgorithm(algorithm.lower() if isinstance(algorithm, str) else algorithm)
    except ValueError:
        raise UnsupportedAlgorithmError(f"Unsupported HMAC algorithm: {algorithm!r}") from None


def sign(algorithm: Union[HashAlgorithm, str], key: bytes, message: bytes) -> bytes:
    """
    Compute HMAC(key, message) with the given hash.

    Returns:
        20 bytes for SHA1, 32 bytes for SHA256.

    Raises:
        UnsupportedAlgorithmError: If algorithm is not SHA1 or SHA256.
    """
    return hmac.new(key, message, _DIGESTS[_coerce(algorithm)]).digest()


def verify(key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Check an HMAC-SHA256 signature in constant time.

    A signature of the wrong length simply fails.
    """
    expected = sign(HashAlgorithm.SHA256, key, message)
    return hmac.compare_digest(expected, bytes(signature))
