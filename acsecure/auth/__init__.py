"""
Authentication building blocks for acsecure.

This package provides:
- TOTP generation and checking (RFC 6238)
- HS256 compact token issue, verification and decoding
- Access-token claim sets
- MFA enrollment material (provisioning URI, QR code)
"""
from .totp import TotpGenerator, remaining_seconds, verify_code
from .totp import generate as generate_totp
from .tokens import (
    DecodedToken,
    TokenFormatError,
    TokenIssuer,
    TokenVerifier,
    VerificationResult,
    decode_token,
    issue_token,
    new_token_id,
    verify_token,
)
from .claims import build_access_claims
from .mfa import (
    generate_totp_secret,
    get_totp_provisioning_uri,
    generate_qr_code_base64,
    setup_mfa,
)

__all__ = [
    "TotpGenerator",
    "generate_totp",
    "remaining_seconds",
    "verify_code",
    "DecodedToken",
    "TokenFormatError",
    "TokenIssuer",
    "TokenVerifier",
    "VerificationResult",
    "decode_token",
    "issue_token",
    "new_token_id",
    "verify_token",
    "build_access_claims",
    "generate_totp_secret",
    "get_totp_provisioning_uri",
    "generate_qr_code_base64",
    "setup_mfa",
]
