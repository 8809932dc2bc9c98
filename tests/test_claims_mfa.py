"""
Tests for access claims and MFA enrollment material.
"""
import base64
import uuid
from urllib.parse import parse_qs, urlparse

import pyotp
import pytest

from acsecure.auth import totp
from acsecure.auth.claims import build_access_claims
from acsecure.auth.mfa import (
    generate_qr_code,
    generate_qr_code_base64,
    generate_totp_secret,
    get_totp_provisioning_uri,
    setup_mfa,
)
from acsecure.crypto import base32


# ============================================
# Claim Set Tests
# ============================================

class TestAccessClaims:
    """Test access-token claim sets."""

    def test_key_order_and_values(self):
        """Test claims come out in the issued order with computed expiry."""
        claims = build_access_claims(
            subject="user@example.com",
            issued_at=1_700_000_000,
            issuer="https://idp.example.com",
            audience="https://app.example.com",
            name="Demo User",
            roles=["User", "PAM-Viewer"],
            groups=["iam-lab"],
            token_id="fixed-id",
        )
        assert list(claims) == [
            "iss", "aud", "sub", "name", "roles", "groups", "amr", "scope", "iat", "exp", "jti",
        ]
        assert claims["exp"] == 1_700_000_900
        assert claims["amr"] == ["pwd", "mfa"]
        assert claims["scope"] == "openid profile email"
        assert claims["jti"] == "fixed-id"

    def test_name_omitted_and_fresh_jti(self):
        """Test optional name is left out and jti defaults to a UUID v4."""
        claims = build_access_claims("u@example.com", 10, "iss", "aud", ttl_seconds=60)
        assert "name" not in claims
        assert claims["exp"] == 70
        assert uuid.UUID(claims["jti"]).version == 4

    def test_invalid_ttl(self):
        """Test non-positive lifetimes raise."""
        with pytest.raises(ValueError):
            build_access_claims("u@example.com", 10, "iss", "aud", ttl_seconds=0)


# ============================================
# MFA Enrollment Tests
# ============================================

class TestEnrollment:
    """Test secret, URI and QR generation."""

    def test_generated_secret(self):
        """Test new secrets are 32 strict Base32 characters (160 bits)."""
        secret = generate_totp_secret()
        assert len(secret) == 32
        assert len(base32.decode(secret, strict=True)) == 20
        assert generate_totp_secret() != secret

    def test_provisioning_uri(self, demo_secret):
        """Test the otpauth URI carries label, secret and issuer."""
        uri = get_totp_provisioning_uri(demo_secret, "user@example.com", issuer="AccessControlSecure")
        parsed = urlparse(uri)
        query = parse_qs(parsed.query)

        assert parsed.scheme == "otpauth"
        assert parsed.netloc == "totp"
        assert parsed.path == "/AccessControlSecure:user%40example.com"
        assert query["secret"] == [demo_secret]
        assert query["issuer"] == ["AccessControlSecure"]
        assert "digits" not in query and "period" not in query

    def test_uri_non_default_parameters(self, demo_secret):
        """Test non-default digits and period are written into the URI."""
        uri = get_totp_provisioning_uri(demo_secret, "user@example.com", step_seconds=60, digits=8)
        query = parse_qs(urlparse(uri).query)
        assert query["digits"] == ["8"]
        assert query["period"] == ["60"]

    def test_uri_codes_match_generator(self, demo_secret):
        """Test an app provisioned from the URI produces our codes."""
        uri = get_totp_provisioning_uri(demo_secret, "user@example.com")
        app_totp = pyotp.parse_uri(uri)
        seconds = 1_700_000_000
        assert app_totp.generate_otp(seconds // 30) == totp.generate(demo_secret, seconds * 1000)

    def test_uri_normalizes_lenient_secret(self, demo_secret):
        """Test a spaced, lowercase secret is written in canonical form."""
        lenient = "jbsw y3dp ehpk 3pxp"
        uri = get_totp_provisioning_uri(lenient, "user@example.com")

        assert parse_qs(urlparse(uri).query)["secret"] == [demo_secret]
        app_totp = pyotp.parse_uri(uri)
        seconds = 1_700_000_000
        assert app_totp.at(seconds) == totp.generate(lenient, seconds * 1000)

    def test_setup_mfa_normalizes_secret(self, demo_secret):
        """Test setup returns the secret the URI carries."""
        secret, uri, _ = setup_mfa("user@example.com", secret="jbsw-y3dp-ehpk-3pxp==")
        assert secret == demo_secret
        assert f"secret={demo_secret}&" in uri or uri.endswith(f"secret={demo_secret}")

    def test_qr_code_png(self):
        """Test the QR code is a PNG image."""
        png = generate_qr_code("otpauth://totp/Test:user?secret=JBSWY3DPEHPK3PXP")
        assert png.startswith(b"\x89PNG\r\n\x1a\n")

    def test_qr_code_data_uri(self):
        """Test the data URI wraps the PNG bytes."""
        uri = "otpauth://totp/Test:user?secret=JBSWY3DPEHPK3PXP"
        data_uri = generate_qr_code_base64(uri)
        prefix = "data:image/png;base64,"
        assert data_uri.startswith(prefix)
        assert base64.b64decode(data_uri[len(prefix):]) == generate_qr_code(uri)

    def test_setup_mfa(self, demo_secret):
        """Test setup returns the given secret with matching URI and QR code."""
        secret, uri, qr = setup_mfa("user@example.com", secret=demo_secret)
        assert secret == demo_secret
        assert f"secret={demo_secret}" in uri
        assert qr.startswith("data:image/png;base64,")

    def test_setup_mfa_new_secret(self):
        """Test setup generates a secret when none is given."""
        secret, uri, _ = setup_mfa("user@example.com")
        assert f"secret={secret}" in uri
