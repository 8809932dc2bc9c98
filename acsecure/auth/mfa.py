"""
Multi-Factor Authentication (MFA) enrollment utilities for acsecure.

Builds what an authenticator app needs to start producing codes for a
shared secret: the secret itself, an ``otpauth://`` provisioning URI and
a scannable QR code. Code generation and checking live in ``totp``.
"""
import base64
import io
import logging
from typing import Optional, Tuple

import pyotp
import qrcode

from . import totp
from ..crypto import base32

logger = logging.getLogger(__name__)

DEFAULT_ISSUER = "AccessControlSecure"


def generate_totp_secret(length: int = 32) -> str:
    """
    Generate a new TOTP secret for MFA enrollment.

    Args:
        length: Base32 characters (32 = 160 bits, the minimum pyotp accepts).

    Returns:
        Unpadded Base32-encoded secret.
    """
    return pyotp.random_base32(length=length)


def get_totp_provisioning_uri(
    secret: str,
    email: str,
    issuer: str = DEFAULT_ISSUER,
    step_seconds: int = totp.DEFAULT_STEP_SECONDS,
    digits: int = totp.DEFAULT_DIGITS,
) -> str:
    """
    Generate a provisioning URI for TOTP apps.

    The secret is written in normalized form (uppercase, no spaces or
    padding) and non-default period and digits are included, so the app
    produces the same codes as ``totp.generate``.

    Args:
        secret: Base32-encoded TOTP secret.
        email: Account label shown in the authenticator app.
        issuer: Application name shown in the authenticator app.

    Returns:
        otpauth:// URI string.
    """
    otp = pyotp.TOTP(base32.normalize(secret), digits=digits, interval=step_seconds)
    return otp.provisioning_uri(name=email, issuer_name=issuer)


def generate_qr_code(uri: str) -> bytes:
    """
    Generate a QR code image for the provisioning URI.

    Args:
        uri: otpauth:// provisioning URI.

    Returns:
        PNG image bytes.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_code_base64(uri: str) -> str:
    """
    Generate a base64-encoded QR code for embedding in HTML.

    Returns:
        ``data:image/png;base64,...`` URI.
    """
    b64 = base64.b64encode(generate_qr_code(uri)).decode("utf-8")
    return f"data:image/png;base64,{b64}"


def setup_mfa(
    email: str,
    issuer: str = DEFAULT_ISSUER,
    secret: Optional[str] = None,
    step_seconds: int = totp.DEFAULT_STEP_SECONDS,
    digits: int = totp.DEFAULT_DIGITS,
) -> Tuple[str, str, str]:
    """
    Complete MFA setup: secret, URI, and QR code.

    Args:
        email: Account label.
        issuer: Application name.
        secret: Existing Base32 secret to enroll; a new one when None.

    Returns:
        Tuple of (secret, provisioning_uri, qr_code_base64).
    """
    secret = base32.normalize(secret) if secret else generate_totp_secret()
    uri = get_totp_provisioning_uri(secret, email, issuer, step_seconds=step_seconds, digits=digits)
    qr_base64 = generate_qr_code_base64(uri)
    logger.debug(f"MFA enrollment material built for {email}")

    return secret, uri, qr_base64
