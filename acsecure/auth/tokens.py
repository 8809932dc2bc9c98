"""
Compact HS256 tokens (JWT wire format).

A token is ``header.payload.signature``: the first two segments are
URL-safe Base64 of compact JSON, the third is URL-safe Base64 of
HMAC-SHA256 over ``header + "." + payload``. Verification only proves the
bytes were signed with the secret and are unaltered; it never looks at
claims such as ``exp`` or ``aud``.

Usage:
    from acsecure.auth.tokens import issue_token, verify_token, VerificationResult

    token = issue_token({"sub": "user@example.com"}, "signing-secret")
    assert verify_token(token, "signing-secret") is VerificationResult.VALID
"""
import json
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Tuple, Union

from ..crypto import base64url, hmac_engine
from ..crypto.base64url import Base64UrlError
from ..crypto.hmac_engine import HashAlgorithm, UnsupportedAlgorithmError

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHM = "HS256"
DEFAULT_TOKEN_TYPE = "JWT"

Secret = Union[str, bytes]


class TokenFormatError(ValueError):
    """Raised when a token cannot be split or decoded."""


class VerificationResult(str, Enum):
    """Outcome of checking a token signature."""
    VALID = "valid"
    INVALID_FORMAT = "invalid_format"
    SIGNATURE_MISMATCH = "signature_mismatch"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"

    @property
    def is_valid(self) -> bool:
        return self is VerificationResult.VALID


@dataclass(frozen=True)
class DecodedToken:
    """Unverified view of a token, for display."""
    header: Dict[str, Any]
    payload: Dict[str, Any]
    signature: str


def _key_bytes(secret: Secret) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)


def canonical_json(value: Any) -> bytes:
    """Compact, order-preserving JSON bytes (matches ``JSON.stringify``)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def new_token_id() -> str:
    """Random UUID v4 for the ``jti`` claim."""
    return str(uuid.uuid4())


def _split(token: str) -> Tuple[str, str, str]:
    if not token.isascii():
        raise TokenFormatError("Token contains non-ASCII characters")
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise TokenFormatError(f"Token must have 3 non-empty segments, got {len(parts)}")
    return parts[0], parts[1], parts[2]


def _decode_json_segment(segment: str) -> Dict[str, Any]:
    try:
        value = json.loads(base64url.decode(segment).decode("utf-8"))
    except (Base64UrlError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TokenFormatError(f"Segment is not Base64Url-encoded JSON: {e}") from e
    if not isinstance(value, dict):
        raise TokenFormatError("Segment does not hold a JSON object")
    return value


def issue_token(
    claims: Mapping[str, Any],
    secret: Secret,
    algorithm: str = SUPPORTED_ALGORITHM,
    token_type: str = DEFAULT_TOKEN_TYPE,
) -> str:
    """
    Build and sign a compact token.

    Args:
        claims: Claim set; key order is kept in the payload.
        secret: Signing secret (text is UTF-8 encoded).
        algorithm: Must be ``"HS256"``.
        token_type: Value of the ``typ`` header.

    Returns:
        ``header.payload.signature`` with no padding characters.

    Raises:
        UnsupportedAlgorithmError: For any algorithm other than HS256.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        raise UnsupportedAlgorithmError(f"Unsupported token algorithm: {algorithm!r}")

    header_segment = base64url.encode(canonical_json({"alg": algorithm, "typ": token_type}))
    payload_segment = base64url.encode(canonical_json(dict(claims)))
    signing_input = f"{header_segment}.{payload_segment}"

    signature = hmac_engine.sign(HashAlgorithm.SHA256, _key_bytes(secret), signing_input.encode("ascii"))
    return f"{signing_input}.{base64url.encode(signature)}"


def verify_token(token: str, secret: Secret, check_algorithm: bool = False) -> VerificationResult:
    """
    Check that a token was signed with ``secret`` and not altered.

    Args:
        token: Compact token.
        secret: Signing secret.
        check_algorithm: Decode the header first and reject any ``alg``
            other than HS256 before comparing signatures.

    Returns:
        A VerificationResult; this function does not raise for bad tokens.
    """
    try:
        header_segment, payload_segment, signature_segment = _split(token)
    except TokenFormatError:
        return VerificationResult.INVALID_FORMAT

    if check_algorithm:
        try:
            header = _decode_json_segment(header_segment)
        except TokenFormatError:
            return VerificationResult.INVALID_FORMAT
        if header.get("alg") != SUPPORTED_ALGORITHM:
            logger.debug(f"Rejected token with alg={header.get('alg')!r}")
            return VerificationResult.UNSUPPORTED_ALGORITHM

    try:
        signature = base64url.decode(signature_segment, canonical=True)
    except Base64UrlError:
        return VerificationResult.INVALID_FORMAT

    signing_input = f"{header_segment}.{payload_segment}".encode("utf-8")
    if hmac_engine.verify(_key_bytes(secret), signing_input, signature):
        return VerificationResult.VALID
    return VerificationResult.SIGNATURE_MISMATCH


def decode_token(token: str) -> DecodedToken:
    """
    Decode header and payload without checking the signature.

    Raises:
        TokenFormatError: If the token is not three segments of
            Base64Url-encoded JSON objects.
    """
    header_segment, payload_segment, signature_segment = _split(token)
    return DecodedToken(
        header=_decode_json_segment(header_segment),
        payload=_decode_json_segment(payload_segment),
        signature=signature_segment,
    )


class TokenIssuer:
    """Issues HS256 tokens with a fixed signing secret."""

    def __init__(self, secret: Secret, token_type: str = DEFAULT_TOKEN_TYPE):
        self._secret = _key_bytes(secret)
        self.algorithm = SUPPORTED_ALGORITHM
        self.token_type = token_type

    def issue(self, claims: Mapping[str, Any]) -> str:
        return issue_token(claims, self._secret, self.algorithm, self.token_type)


class TokenVerifier:
    """Verifies token signatures against a fixed signing secret."""

    def __init__(self, secret: Secret, check_algorithm: bool = False):
        self._secret = _key_bytes(secret)
        self.check_algorithm = check_algorithm

    def verify(self, token: str) -> VerificationResult:
        return verify_token(token, self._secret, check_algorithm=self.check_algorithm)
