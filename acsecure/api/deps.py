"""
FastAPI Dependencies for the acsecure API.

Provides:
- Settings and clock
- TOTP generator and token issuer/verifier bound to configured secrets
- Pending login storage and MFA attempt limiting (Redis-backed with in-memory fallback)
"""
import time
import logging
from typing import Callable, Dict, Optional, Tuple

import redis
from fastapi import Depends

from ..auth.tokens import TokenIssuer, TokenVerifier
from ..auth.totp import TotpGenerator
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


# ============================================
# Settings and Clock
# ============================================

def get_app_settings() -> Settings:
    """Get process settings."""
    return get_settings()


def system_clock_ms() -> int:
    """Wall clock in milliseconds since the epoch."""
    return int(time.time() * 1000)


def get_clock() -> Clock:
    """Time source for TOTP windows and token timestamps."""
    return system_clock_ms


# ============================================
# Crypto Dependencies
# ============================================

def get_totp_generator(settings: Settings = Depends(get_app_settings)) -> TotpGenerator:
    return TotpGenerator(
        settings.totp_secret,
        step_seconds=settings.totp_step_seconds,
        digits=settings.totp_digits,
        strict=settings.totp_strict_secret,
    )


def get_token_issuer(settings: Settings = Depends(get_app_settings)) -> TokenIssuer:
    return TokenIssuer(settings.jwt_secret)


def get_token_verifier(settings: Settings = Depends(get_app_settings)) -> TokenVerifier:
    return TokenVerifier(settings.jwt_secret, check_algorithm=True)


# ============================================
# Redis Client
# ============================================

_redis_client: Optional[redis.Redis] = None


def get_redis_client(settings: Optional[Settings] = None) -> Optional[redis.Redis]:
    """
    Get Redis client singleton.

    Returns None if REDIS_URL is not configured or Redis is unavailable.
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = settings or get_settings()
    if not settings.redis_url:
        return None

    try:
        _redis_client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        _redis_client.ping()
        logger.info("Redis connected for pending login storage")
        return _redis_client
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. Pending logins will use in-memory fallback.")
        _redis_client = None
        return None


# ============================================
# Pending Login Storage (Redis-backed)
# ============================================

class PendingLoginStore:
    """
    Logins that passed the credentials step and wait for a TOTP code.

    Entries expire after ``ttl_seconds``. Uses Redis when a client is
    given, falling back to process memory on Redis errors.
    """

    KEY_PREFIX = "acsecure:pending_login:"

    def __init__(self, redis_client: Optional[redis.Redis] = None, ttl_seconds: int = 600):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        # In-memory fallback storage: login_id -> (email, expires_at)
        self._memory_store: Dict[str, Tuple[str, float]] = {}

    def put(self, login_id: str, email: str) -> None:
        """Store a pending login."""
        if self.redis is not None:
            try:
                self.redis.setex(f"{self.KEY_PREFIX}{login_id}", self.ttl_seconds, email)
                return
            except redis.RedisError as e:
                logger.warning(f"Redis error storing pending login: {e}")

        now = time.time()
        self._sweep_expired(now)
        self._memory_store[login_id] = (email, now + self.ttl_seconds)

    def _sweep_expired(self, now: float) -> None:
        """Drop expired in-memory entries."""
        expired = [key for key, (_, expires_at) in self._memory_store.items() if now >= expires_at]
        for key in expired:
            del self._memory_store[key]

    def get(self, login_id: str) -> Optional[str]:
        """
        Look up a pending login without consuming it.

        Returns:
            The email of the pending login, or None if unknown/expired.
        """
        if self.redis is not None:
            try:
                return self.redis.get(f"{self.KEY_PREFIX}{login_id}")
            except redis.RedisError as e:
                logger.warning(f"Redis error retrieving pending login: {e}")

        entry = self._memory_store.get(login_id)
        if entry is None:
            return None
        email, expires_at = entry
        if time.time() >= expires_at:
            del self._memory_store[login_id]
            return None
        return email

    def pop(self, login_id: str) -> Optional[str]:
        """Retrieve and delete a pending login."""
        email = self.get(login_id)

        if self.redis is not None:
            try:
                self.redis.delete(f"{self.KEY_PREFIX}{login_id}")
            except redis.RedisError as e:
                logger.warning(f"Redis error clearing pending login: {e}")

        self._memory_store.pop(login_id, None)
        return email


_pending_login_store: Optional[PendingLoginStore] = None


def get_pending_login_store() -> PendingLoginStore:
    """Get singleton pending login store (Redis-backed if available)."""
    global _pending_login_store
    if _pending_login_store is None:
        settings = get_settings()
        _pending_login_store = PendingLoginStore(
            get_redis_client(settings),
            ttl_seconds=settings.pending_login_ttl_seconds,
        )
    return _pending_login_store


# ============================================
# MFA Attempt Limiting (Redis-backed with in-memory fallback)
# ============================================

class MfaAttemptLimiter:
    """
    Counts wrong TOTP codes per pending login.

    Uses Redis INCR with TTL when a client is given, falling back to
    process memory on Redis errors. Counters expire together with the
    pending login they belong to.
    """

    KEY_PREFIX = "acsecure:mfa_attempts:"

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        max_attempts: int = 5,
        window_seconds: int = 600,
    ):
        self.redis = redis_client
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        # In-memory fallback storage: login_id -> (count, expires_at)
        self._memory_store: Dict[str, Tuple[int, float]] = {}

    def _memory_count(self, login_id: str, now: float) -> int:
        entry = self._memory_store.get(login_id)
        if entry is None or now >= entry[1]:
            return 0
        return entry[0]

    def failures(self, login_id: str) -> int:
        """Wrong codes recorded for a login."""
        if self.redis is not None:
            try:
                count = self.redis.get(f"{self.KEY_PREFIX}{login_id}")
                return int(count) if count else 0
            except redis.RedisError as e:
                logger.warning(f"Redis error in MFA attempt check: {e}")

        return self._memory_count(login_id, time.time())

    def record_failure(self, login_id: str) -> int:
        """
        Record a wrong code.

        Returns:
            Number of wrong codes for this login, including this one.
        """
        if self.redis is not None:
            try:
                full_key = f"{self.KEY_PREFIX}{login_id}"
                pipe = self.redis.pipeline()
                pipe.incr(full_key)
                pipe.expire(full_key, self.window_seconds)
                results = pipe.execute()
                return results[0]
            except redis.RedisError as e:
                logger.warning(f"Redis error in MFA attempt increment: {e}")

        now = time.time()
        expired = [key for key, (_, expires_at) in self._memory_store.items() if now >= expires_at]
        for key in expired:
            del self._memory_store[key]

        count = self._memory_count(login_id, now) + 1
        self._memory_store[login_id] = (count, now + self.window_seconds)
        return count

    def is_locked(self, login_id: str) -> bool:
        return self.failures(login_id) >= self.max_attempts

    def reset(self, login_id: str) -> None:
        """Forget the counter for a finished login."""
        if self.redis is not None:
            try:
                self.redis.delete(f"{self.KEY_PREFIX}{login_id}")
            except redis.RedisError as e:
                logger.warning(f"Redis error clearing MFA attempts: {e}")

        self._memory_store.pop(login_id, None)


_mfa_attempt_limiter: Optional[MfaAttemptLimiter] = None


def get_mfa_attempt_limiter() -> MfaAttemptLimiter:
    """Get singleton MFA attempt limiter (Redis-backed if available)."""
    global _mfa_attempt_limiter
    if _mfa_attempt_limiter is None:
        settings = get_settings()
        _mfa_attempt_limiter = MfaAttemptLimiter(
            get_redis_client(settings),
            max_attempts=settings.max_mfa_attempts,
            window_seconds=settings.pending_login_ttl_seconds,
        )
    return _mfa_attempt_limiter
