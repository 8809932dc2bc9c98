"""
RFC 4648 Base32 codec for TOTP secrets.

Decoding is lenient by default: trailing padding is stripped, the rest is
uppercased and every character outside ``A-Z2-7`` is dropped. Whatever bits
survive are packed into bytes and an incomplete trailing group (0-4 bits)
is discarded, so decoding never fails.

Strict mode rejects what lenient mode silently repairs.

Usage:
    from acsecure.crypto import base32

    base32.decode("JBSWY3DPEHPK3PXP")          # b'Hello!\\xde\\xad\\xbe\\xef'
    base32.decode("jbsw y3dp", strict=True)    # raises MalformedSecretError
"""
import base64
import re

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_TRAILING_PADDING = re.compile(r"=+$")
_NON_ALPHABET = re.compile(r"[^A-Z2-7]")

# Character counts (mod 8) that no encoder can produce
_IMPOSSIBLE_REMAINDERS = {1, 3, 6}


class MalformedSecretError(ValueError):
    """Raised in strict mode when a Base32 secret is not well formed."""


def normalize(text: str) -> str:
    """Strip trailing padding, uppercase, and drop non-alphabet characters."""
    return _NON_ALPHABET.sub("", _TRAILING_PADDING.sub("", text).upper())


def decode(text: str, strict: bool = False) -> bytes:
    """
    Decode a Base32 string into raw bytes.

    Args:
        text: Base32 text, padded or not, any case.
        strict: Raise instead of silently discarding malformed input.

    Returns:
        Decoded bytes. In lenient mode this may be empty or meaningless
        for garbage input.

    Raises:
        MalformedSecretError: In strict mode, if the input is empty, holds
            characters outside the alphabet, or has an impossible length.
    """
    candidate = _TRAILING_PADDING.sub("", text).upper()
    clean = _NON_ALPHABET.sub("", candidate)

    if strict:
        if clean != candidate:
            raise MalformedSecretError("Base32 secret contains characters outside A-Z2-7")
        if not clean:
            raise MalformedSecretError("Base32 secret is empty")
        if len(clean) % 8 in _IMPOSSIBLE_REMAINDERS:
            raise MalformedSecretError(
                f"Base32 secret has an invalid length ({len(clean)} characters)"
            )

    out = bytearray()
    buffer = 0
    bits = 0
    for char in clean:
        buffer = (buffer << 5) | ALPHABET.index(char)
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
    # Leftover bits (fewer than 8) are dropped
    return bytes(out)


def encode(data: bytes, padding: bool = False) -> str:
    """
    Encode bytes as Base32.

    The otpauth scheme expects unpadded secrets, so padding is off unless
    asked for.
    """
    encoded = base64.b32encode(data).decode("ascii")
    return encoded if padding else encoded.rstrip("=")
