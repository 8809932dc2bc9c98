"""
Encoding and MAC primitives for acsecure.

This package provides:
- Base32 decoding for TOTP secrets (lenient or strict)
- Unpadded URL-safe Base64 for token framing
- HMAC-SHA1 / HMAC-SHA256 signing and verification
"""
from . import base32, base64url, hmac_engine
from .base32 import MalformedSecretError
from .base64url import Base64UrlError
from .hmac_engine import HashAlgorithm, UnsupportedAlgorithmError

__all__ = [
    "base32",
    "base64url",
    "hmac_engine",
    "HashAlgorithm",
    "MalformedSecretError",
    "Base64UrlError",
    "UnsupportedAlgorithmError",
]
