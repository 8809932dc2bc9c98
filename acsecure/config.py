"""
Runtime settings for acsecure, read from the environment.

Usage:
    from acsecure.config import get_settings

    settings = get_settings()
    settings.totp_step_seconds   # 30
"""
import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from .crypto import base32
from .utils.secrets import get_jwt_secret, get_totp_secret, is_development, mask_secret

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration."""
    totp_secret: str
    jwt_secret: str
    app_env: str = "production"
    token_issuer: str = "https://idp.example.com"
    token_audience: str = "https://app.example.com"
    token_ttl_seconds: int = 900
    token_display_name: Optional[str] = None
    token_roles: Tuple[str, ...] = ("User",)
    token_groups: Tuple[str, ...] = ()
    totp_step_seconds: int = 30
    totp_digits: int = 6
    totp_window: int = 0
    totp_strict_secret: bool = False
    mfa_issuer_name: str = "AccessControlSecure"
    expose_current_code: bool = False
    pending_login_ttl_seconds: int = 600
    max_mfa_attempts: int = 5
    redis_url: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Settings(app_env={self.app_env!r}, totp_secret={mask_secret(self.totp_secret)!r}, "
            f"jwt_secret={mask_secret(self.jwt_secret)!r}, token_issuer={self.token_issuer!r})"
        )


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    Raises:
        ValueError: If a required secret is missing, or the TOTP secret is
            malformed while TOTP_STRICT_SECRET is enabled.
    """
    development = is_development()
    totp_strict = _env_bool("TOTP_STRICT_SECRET", False)
    totp_secret = get_totp_secret()
    if totp_strict:
        base32.decode(totp_secret, strict=True)

    settings = Settings(
        totp_secret=totp_secret,
        jwt_secret=get_jwt_secret(),
        app_env="development" if development else os.getenv("APP_ENV", "production"),
        token_issuer=os.getenv("TOKEN_ISSUER", "https://idp.example.com"),
        token_audience=os.getenv("TOKEN_AUDIENCE", "https://app.example.com"),
        token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", "900")),
        token_display_name=os.getenv("TOKEN_DISPLAY_NAME") or None,
        token_roles=_env_list("TOKEN_ROLES", ("User",)),
        token_groups=_env_list("TOKEN_GROUPS", ()),
        totp_step_seconds=int(os.getenv("TOTP_STEP_SECONDS", "30")),
        totp_digits=int(os.getenv("TOTP_DIGITS", "6")),
        totp_window=int(os.getenv("TOTP_WINDOW", "0")),
        totp_strict_secret=totp_strict,
        mfa_issuer_name=os.getenv("MFA_ISSUER_NAME", "AccessControlSecure"),
        expose_current_code=_env_bool("EXPOSE_CURRENT_CODE", development),
        pending_login_ttl_seconds=int(os.getenv("PENDING_LOGIN_TTL_SECONDS", "600")),
        max_mfa_attempts=int(os.getenv("MAX_MFA_ATTEMPTS", "5")),
        redis_url=os.getenv("REDIS_URL") or None,
    )
    logger.info(f"Settings loaded: {settings!r}")
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return load_settings()
