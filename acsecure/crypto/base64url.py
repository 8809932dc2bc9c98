"""
Unpadded URL-safe Base64, the framing used by compact tokens.
"""
import base64
import binascii
import re

_URLSAFE = re.compile(r"[A-Za-z0-9_-]*")


class Base64UrlError(ValueError):
    """Raised when text is not valid unpadded URL-safe Base64."""


def encode(data: bytes) -> str:
    """Encode bytes with ``-``/``_`` substitutions and no ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str, canonical: bool = False) -> bytes:
    """
    Decode unpadded URL-safe Base64.

    Args:
        text: Encoded text without padding.
        canonical: Also require that the unused low bits of the last
            character are zero, i.e. ``encode(decode(text)) == text``.
            Signature comparison relies on this so that two different
            strings never decode to the same bytes.

    Raises:
        Base64UrlError: On characters outside the URL-safe alphabet, an
            impossible length, or (when canonical) a non-canonical encoding.
    """
    if not _URLSAFE.fullmatch(text):
        raise Base64UrlError("Text contains characters outside the URL-safe Base64 alphabet")
    if len(text) % 4 == 1:
        raise Base64UrlError(f"Invalid Base64 length ({len(text)} characters)")

    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except binascii.Error as e:
        raise Base64UrlError(str(e)) from e

    if canonical and encode(data) != text:
        raise Base64UrlError("Non-canonical Base64 encoding")
    return data
