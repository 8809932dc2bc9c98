"""
Authentication Endpoints.

Credentials, then a TOTP code, then a signed access token.
"""
import uuid
import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import (
    CredentialsRequest,
    LoginChallengeResponse,
    CurrentCodeResponse,
    MFAVerifyRequest,
    TokenResponse,
    ErrorResponse,
)
from ..deps import (
    MfaAttemptLimiter,
    PendingLoginStore,
    get_app_settings,
    get_clock,
    get_mfa_attempt_limiter,
    get_pending_login_store,
    get_token_issuer,
    get_totp_generator,
)
from ...auth.claims import build_access_claims
from ...auth.mfa import setup_mfa
from ...auth.tokens import TokenIssuer, decode_token
from ...auth.totp import TotpGenerator
from ...config import Settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


def _drop_login(login_id: str, store: PendingLoginStore, limiter: MfaAttemptLimiter) -> None:
    store.pop(login_id)
    limiter.reset(login_id)


@router.post(
    "/login",
    response_model=LoginChallengeResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid email or password too short"},
    },
)
async def login(
    credentials: CredentialsRequest,
    settings: Settings = Depends(get_app_settings),
    totp: TotpGenerator = Depends(get_totp_generator),
    store: PendingLoginStore = Depends(get_pending_login_store),
    clock: Callable[[], int] = Depends(get_clock),
):
    """
    Accept credentials and start the MFA step.

    Returns the enrollment material for the configured TOTP secret and a
    login id to present with the code.
    """
    email = credentials.email.strip()
    login_id = str(uuid.uuid4())
    store.put(login_id, email)

    _, uri, qr_base64 = setup_mfa(
        email,
        issuer=settings.mfa_issuer_name,
        secret=settings.totp_secret,
        step_seconds=settings.totp_step_seconds,
        digits=settings.totp_digits,
    )

    logger.info(f"Credentials accepted, MFA pending: {email}")

    return LoginChallengeResponse(
        login_id=login_id,
        provisioning_uri=uri,
        qr_code_base64=qr_base64,
        period=settings.totp_step_seconds,
        remaining_seconds=totp.remaining_seconds(clock()),
        expires_in=store.ttl_seconds,
    )


@router.get(
    "/mfa/code",
    response_model=CurrentCodeResponse,
    responses={404: {"model": ErrorResponse, "description": "Disabled or unknown login"}},
)
async def current_code(
    login_id: str = Query(..., min_length=1),
    settings: Settings = Depends(get_app_settings),
    totp: TotpGenerator = Depends(get_totp_generator),
    store: PendingLoginStore = Depends(get_pending_login_store),
    clock: Callable[[], int] = Depends(get_clock),
):
    """
    Current TOTP code and countdown, standing in for an authenticator app.

    Only available when EXPOSE_CURRENT_CODE is enabled.
    """
    if not settings.expose_current_code or store.get(login_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    now_ms = clock()
    return CurrentCodeResponse(
        code=totp.generate(now_ms),
        remaining_seconds=totp.remaining_seconds(now_ms),
    )


@router.post(
    "/mfa/verify",
    response_model=TokenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown or expired login"},
        401: {"model": ErrorResponse, "description": "Invalid code"},
        429: {"model": ErrorResponse, "description": "Too many invalid codes for this login"},
    },
)
async def verify_mfa(
    verification: MFAVerifyRequest,
    settings: Settings = Depends(get_app_settings),
    totp: TotpGenerator = Depends(get_totp_generator),
    issuer: TokenIssuer = Depends(get_token_issuer),
    store: PendingLoginStore = Depends(get_pending_login_store),
    limiter: MfaAttemptLimiter = Depends(get_mfa_attempt_limiter),
    clock: Callable[[], int] = Depends(get_clock),
):
    """
    Check the TOTP code and issue an HS256 access token.

    A wrong code keeps the pending login so the user can retry with the
    next code. After MAX_MFA_ATTEMPTS wrong codes the pending login is
    dropped and credentials must be submitted again.
    """
    email = store.get(verification.login_id)
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No pending login found. Please submit credentials first.",
        )

    if limiter.is_locked(verification.login_id):
        _drop_login(verification.login_id, store, limiter)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many invalid codes. Please submit credentials again.",
        )

    now_ms = clock()
    if not totp.verify(verification.totp_code, now_ms, window=settings.totp_window):
        failures = limiter.record_failure(verification.login_id)
        logger.info(f"Invalid MFA code for {email} ({failures}/{limiter.max_attempts})")
        if failures >= limiter.max_attempts:
            _drop_login(verification.login_id, store, limiter)
            logger.warning(f"Pending login dropped after {failures} invalid codes: {email}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many invalid codes. Please submit credentials again.",
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid code. Try again on the next {settings.totp_step_seconds}s window.",
        )

    _drop_login(verification.login_id, store, limiter)

    claims = build_access_claims(
        subject=email,
        issued_at=now_ms // 1000,
        issuer=settings.token_issuer,
        audience=settings.token_audience,
        ttl_seconds=settings.token_ttl_seconds,
        name=settings.token_display_name,
        roles=settings.token_roles,
        groups=settings.token_groups,
    )
    token = issuer.issue(claims)
    decoded = decode_token(token)

    logger.info(f"Access token issued for {email} (jti={claims['jti']})")

    return TokenResponse(
        access_token=token,
        expires_in=settings.token_ttl_seconds,
        header=decoded.header,
        payload=decoded.payload,
    )
