"""
Time-based One-Time Passwords (RFC 6238) over HMAC-SHA1.

Every function takes the instant explicitly as milliseconds since the Unix
epoch. Nothing here reads a clock, so codes are reproducible for a fixed
instant and callers decide how often to refresh.

Usage:
    from acsecure.auth.totp import TotpGenerator

    totp = TotpGenerator("JBSWY3DPEHPK3PXP")
    code = totp.generate(at_ms)                  # e.g. "282760"
    ttl = totp.remaining_seconds(at_ms)          # 1..30
"""
import logging
import struct
import unicodedata
from hmac import compare_digest

from ..crypto import base32, hmac_engine
from ..crypto.hmac_engine import HashAlgorithm

logger = logging.getLogger(__name__)

DEFAULT_STEP_SECONDS = 30
DEFAULT_DIGITS = 6
MAX_DIGITS = 9


def _check_params(at_ms: int, step_seconds: int, digits: int = DEFAULT_DIGITS) -> None:
    if at_ms < 0:
        raise ValueError("time must not be before the Unix epoch")
    if step_seconds < 1:
        raise ValueError("step_seconds must be a positive integer")
    if not 1 <= digits <= MAX_DIGITS:
        raise ValueError(f"digits must be between 1 and {MAX_DIGITS}")


def time_step(at_ms: int, step_seconds: int = DEFAULT_STEP_SECONDS) -> int:
    """Return the counter for the window containing ``at_ms``."""
    _check_params(at_ms, step_seconds)
    return int(at_ms) // 1000 // step_seconds


def remaining_seconds(at_ms: int, step_seconds: int = DEFAULT_STEP_SECONDS) -> int:
    """Seconds until the window containing ``at_ms`` closes (1..step_seconds)."""
    _check_params(at_ms, step_seconds)
    return step_seconds - (int(at_ms) // 1000) % step_seconds


def dynamic_truncate(digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    The low nibble of the last byte picks a 4-byte window; its top bit is
    cleared so the result is a non-negative 31-bit integer.
    """
    offset = digest[-1] & 0x0F
    return struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF


def hotp(key: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """HOTP value for a raw key and counter, zero-padded to ``digits``."""
    digest = hmac_engine.sign(HashAlgorithm.SHA1, key, struct.pack(">Q", counter))
    return str(dynamic_truncate(digest) % 10 ** digits).zfill(digits)


def generate(
    secret_b32: str,
    at_ms: int,
    step_seconds: int = DEFAULT_STEP_SECONDS,
    digits: int = DEFAULT_DIGITS,
    strict: bool = False,
) -> str:
    """
    Generate the TOTP code for the window containing ``at_ms``.

    Args:
        secret_b32: Base32 shared secret.
        at_ms: Milliseconds since the Unix epoch.
        step_seconds: Window length.
        digits: Code length (1-9).
        strict: Reject malformed secrets instead of decoding what is left.

    Returns:
        Zero-padded decimal code.
    """
    _check_params(at_ms, step_seconds, digits)
    key = base32.decode(secret_b32, strict=strict)
    return hotp(key, time_step(at_ms, step_seconds), digits)


def _normalize_code(code: str) -> str:
    return "".join(unicodedata.normalize("NFKC", str(code)).split())


def verify_code(
    secret_b32: str,
    code: str,
    at_ms: int,
    step_seconds: int = DEFAULT_STEP_SECONDS,
    digits: int = DEFAULT_DIGITS,
    window: int = 0,
    strict: bool = False,
) -> bool:
    """
    Check a user-entered code against the window containing ``at_ms``.

    Args:
        window: Number of neighbouring windows accepted on each side, for
            clock skew between the authenticator and this process.

    Returns:
        True if the code matches any accepted window.
    """
    if window < 0:
        raise ValueError("window must not be negative")
    _check_params(at_ms, step_seconds, digits)

    entered = _normalize_code(code)
    if len(entered) != digits or not entered.isdigit():
        return False

    key = base32.decode(secret_b32, strict=strict)
    counter = time_step(at_ms, step_seconds)
    matched = False
    # No early exit: every candidate window is compared
    for candidate in range(max(0, counter - window), counter + window + 1):
        if compare_digest(entered.encode("utf-8"), hotp(key, candidate, digits).encode("utf-8")):
            matched = True
    return matched


class TotpGenerator:
    """
    TOTP generator bound to one secret and parameter set.

    The secret is decoded once, on construction.
    """

    def __init__(
        self,
        secret_b32: str,
        step_seconds: int = DEFAULT_STEP_SECONDS,
        digits: int = DEFAULT_DIGITS,
        strict: bool = False,
    ) -> None:
        _check_params(0, step_seconds, digits)
        self.secret_b32 = secret_b32
        self.step_seconds = step_seconds
        self.digits = digits
        self.strict = strict
        self._key = base32.decode(secret_b32, strict=strict)
        if not self._key:
            logger.warning("TOTP secret decodes to an empty key; codes will be meaningless")

    def generate(self, at_ms: int) -> str:
        """Code for the window containing ``at_ms``."""
        return hotp(self._key, time_step(at_ms, self.step_seconds), self.digits)

    def remaining_seconds(self, at_ms: int) -> int:
        """Seconds left in the window containing ``at_ms``."""
        return remaining_seconds(at_ms, self.step_seconds)

    def time_step(self, at_ms: int) -> int:
        return time_step(at_ms, self.step_seconds)

    def verify(self, code: str, at_ms: int, window: int = 0) -> bool:
        """Check a user-entered code; see :func:`verify_code`."""
        return verify_code(
            self.secret_b32,
            code,
            at_ms,
            step_seconds=self.step_seconds,
            digits=self.digits,
            window=window,
            strict=self.strict,
        )
