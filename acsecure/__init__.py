"""
acsecure - TOTP and HS256 compact-token primitives with an MFA login API.

Subpackages:
- crypto: Base32, URL-safe Base64, HMAC
- auth: TOTP, tokens, claims, MFA enrollment
- api: FastAPI application
"""
__version__ = "0.1.0"
