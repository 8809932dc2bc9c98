"""
Token Endpoints.

Signature verification and unverified decoding of compact tokens.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import TokenRequest, TokenVerifyResponse, TokenDecodeResponse, ErrorResponse
from ..deps import get_token_verifier
from ...auth.tokens import TokenFormatError, TokenVerifier, decode_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tokens", tags=["Tokens"])


@router.post("/verify", response_model=TokenVerifyResponse)
async def verify(
    request: TokenRequest,
    verifier: TokenVerifier = Depends(get_token_verifier),
):
    """
    Check that a token was signed with the configured secret.

    Claims (expiry, audience, issuer) are not evaluated.
    """
    result = verifier.verify(request.token.strip())
    if not result.is_valid:
        logger.info(f"Token verification failed: {result.value}")
    return TokenVerifyResponse(result=result, valid=result.is_valid)


@router.post(
    "/decode",
    response_model=TokenDecodeResponse,
    responses={400: {"model": ErrorResponse, "description": "Malformed token"}},
)
async def decode(request: TokenRequest):
    """Decode header and payload without checking the signature."""
    try:
        decoded = decode_token(request.token.strip())
    except TokenFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TokenDecodeResponse(
        header=decoded.header,
        payload=decoded.payload,
        signature=decoded.signature,
    )
