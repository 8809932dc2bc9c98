"""
Secrets management utilities for acsecure.

Supports multiple secret sources:
1. {NAME}_FILE environment variable pointing at a file (Docker/K8s secrets)
2. {NAME} environment variable (development)
3. /run/secrets/{name} (Docker secrets default path)

Usage:
    from acsecure.utils.secrets import get_secret

    jwt_secret = get_secret("JWT_SECRET")
"""
import os
import logging
from typing import Optional
from functools import lru_cache

logger = logging.getLogger(__name__)

# Demo values for local development only
DEMO_TOTP_SECRET = "JBSWY3DPEHPK3PXP"
DEMO_JWT_SECRET = "access-control-secure-demo-secret"

SECRETS_DIR = "/run/secrets"


def _read_secret_file(path: str) -> Optional[str]:
    try:
        with open(path, "r") as f:
            return f.read().strip()
    except OSError as e:
        logger.warning(f"Failed to read secret file {path}: {e}")
        return None


@lru_cache(maxsize=32)
def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get a secret value from various sources.

    Priority:
    1. {NAME}_FILE environment variable (path to file containing secret)
    2. {NAME} environment variable (direct value)
    3. /run/secrets/{name.lower()} file
    4. Default value

    Args:
        name: Secret name (e.g., "JWT_SECRET")
        default: Default value if secret not found

    Returns:
        Secret value or default
    """
    file_path = os.environ.get(f"{name}_FILE")
    if file_path and os.path.isfile(file_path):
        secret = _read_secret_file(file_path)
        if secret is not None:
            logger.debug(f"Loaded secret {name} from file")
            return secret

    env_value = os.environ.get(name)
    if env_value:
        logger.debug(f"Loaded secret {name} from environment")
        return env_value

    docker_secret_path = os.path.join(SECRETS_DIR, name.lower())
    if os.path.isfile(docker_secret_path):
        secret = _read_secret_file(docker_secret_path)
        if secret is not None:
            logger.debug(f"Loaded secret {name} from Docker secrets")
            return secret

    if default is None:
        logger.warning(f"Secret {name} not found, no default provided")
    return default


def get_required_secret(name: str) -> str:
    """
    Get a required secret, raising an error if not found.

    Raises:
        ValueError: If secret not found
    """
    value = get_secret(name)
    if value is None:
        raise ValueError(
            f"Required secret '{name}' not found. "
            f"Set {name} or {name}_FILE environment variable."
        )
    return value


def is_development() -> bool:
    return os.getenv("APP_ENV", "production").lower() == "development"


def get_totp_secret() -> str:
    """Get the Base32 TOTP secret (demo secret in development)."""
    if is_development():
        return get_secret("TOTP_SECRET", DEMO_TOTP_SECRET)
    return get_required_secret("TOTP_SECRET")


def get_jwt_secret() -> str:
    """Get the HS256 token signing secret (demo secret in development)."""
    if is_development():
        return get_secret("JWT_SECRET", DEMO_JWT_SECRET)
    return get_required_secret("JWT_SECRET")


def mask_secret(secret: str, visible_chars: int = 4) -> str:
    """
    Mask a secret for safe logging.

    Returns:
        Masked string like "abc...xyz"
    """
    if not secret or len(secret) <= visible_chars * 2:
        return "***"
    return f"{secret[:visible_chars]}...{secret[-visible_chars:]}"
