"""
Pydantic Models for the acsecure API.

Request and response models for all API endpoints.
"""
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, EmailStr, Field, ConfigDict

from ..auth.tokens import VerificationResult


# ============================================
# Login / MFA Models
# ============================================

class CredentialsRequest(BaseModel):
    """
    First login step.

    Password must be at least 8 characters.
    """
    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=8, description="Password (minimum 8 characters)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "securepassword123"
            }
        }
    )


class LoginChallengeResponse(BaseModel):
    """Credentials accepted; a TOTP code is required to finish the login."""
    login_id: str
    mfa_required: bool = True
    provisioning_uri: str
    qr_code_base64: str
    period: int = Field(..., description="TOTP window length in seconds")
    remaining_seconds: int = Field(..., description="Seconds left in the current window")
    expires_in: int = Field(..., description="Seconds until this pending login expires")


class CurrentCodeResponse(BaseModel):
    """Current TOTP code (demo mode only)."""
    code: str
    remaining_seconds: int


class MFAVerifyRequest(BaseModel):
    """Second login step: the code from the authenticator app."""
    login_id: str = Field(..., min_length=1)
    totp_code: str = Field(..., min_length=1, max_length=16)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "login_id": "3f2c0a6e-1b9d-4c57-8f0e-2d6b7a1c9e44",
                "totp_code": "123456"
            }
        }
    )


class TokenResponse(BaseModel):
    """Signed access token with its decoded contents."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    header: Dict[str, Any]
    payload: Dict[str, Any]


# ============================================
# Token Models
# ============================================

class TokenRequest(BaseModel):
    """A compact token to verify or decode."""
    token: str = Field(..., min_length=1)


class TokenVerifyResponse(BaseModel):
    """Signature check outcome."""
    result: VerificationResult
    valid: bool


class TokenDecodeResponse(BaseModel):
    """Unverified token contents."""
    header: Dict[str, Any]
    payload: Dict[str, Any]
    signature: str


# ============================================
# Health / Error Models
# ============================================

class HealthStatus(BaseModel):
    """Health check response."""
    status: str
    version: str
    services: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Error response body."""
    error: str
    detail: Optional[str] = None
    code: Optional[str] = None
