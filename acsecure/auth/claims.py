"""
Claim set for access tokens issued after a completed MFA login.
"""
from typing import Any, Dict, Optional, Sequence

from .tokens import new_token_id

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_SCOPE = "openid profile email"
DEFAULT_AMR = ("pwd", "mfa")


def build_access_claims(
    subject: str,
    issued_at: int,
    issuer: str,
    audience: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    name: Optional[str] = None,
    roles: Sequence[str] = (),
    groups: Sequence[str] = (),
    amr: Sequence[str] = DEFAULT_AMR,
    scope: str = DEFAULT_SCOPE,
    token_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the ordered claim set for an access token.

    Args:
        subject: Authenticated identity (the login email).
        issued_at: Issue time in whole seconds since the epoch.
        issuer: ``iss`` claim.
        audience: ``aud`` claim.
        ttl_seconds: Lifetime; ``exp = iat + ttl_seconds``.
        name: Display name, omitted when None.
        roles: Role names.
        groups: Group names.
        amr: Authentication methods used.
        scope: Space-separated scopes.
        token_id: ``jti``; a fresh UUID v4 when None.

    Returns:
        Dict with keys in the order iss, aud, sub, name, roles, groups,
        amr, scope, iat, exp, jti.
    """
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")

    claims: Dict[str, Any] = {
        "iss": issuer,
        "aud": audience,
        "sub": subject,
    }
    if name is not None:
        claims["name"] = name
    claims["roles"] = list(roles)
    claims["groups"] = list(groups)
    claims["amr"] = list(amr)
    claims["scope"] = scope
    claims["iat"] = int(issued_at)
    claims["exp"] = int(issued_at) + ttl_seconds
    claims["jti"] = token_id or new_token_id()
    return claims
