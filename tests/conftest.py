"""
Pytest configuration and shared fixtures for acsecure tests.

This module provides common test fixtures for:
- Reference secrets and fixed instants
- Mock Redis client
- API client with settings, clock, storage and attempt limit overrides
"""
import pytest
from fastapi.testclient import TestClient

from acsecure.api.main import app
from acsecure.api.deps import (
    MfaAttemptLimiter,
    PendingLoginStore,
    get_app_settings,
    get_clock,
    get_mfa_attempt_limiter,
    get_pending_login_store,
)
from acsecure.config import Settings
from acsecure.utils.secrets import get_secret


# ============================================
# Reference Values
# ============================================

# ASCII "12345678901234567890", the RFC 4226 / RFC 6238 SHA-1 test key
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"

# "Hello!" + 0xDEADBEEF
DEMO_SECRET_B32 = "JBSWY3DPEHPK3PXP"

# 1111111109 s: RFC 6238 vector time, 1 second before its window closes
FIXED_MS = 1111111109 * 1000

SIGNING_SECRET = "test-signing-secret"


@pytest.fixture
def rfc_secret():
    return RFC_SECRET_B32


@pytest.fixture
def demo_secret():
    return DEMO_SECRET_B32


@pytest.fixture
def signing_secret():
    return SIGNING_SECRET


@pytest.fixture
def sample_claims():
    """Claim set shaped like an issued access token."""
    return {
        "iss": "https://idp.example.com",
        "aud": "https://app.example.com",
        "sub": "user@example.com",
        "name": "Test User",
        "roles": ["User", "PAM-Viewer"],
        "groups": ["iam-lab", "security"],
        "amr": ["pwd", "mfa"],
        "scope": "openid profile email",
        "iat": 1700000000,
        "exp": 1700000900,
        "jti": "0b9f6c1e-5d2a-4f7e-9c3b-8a1d2e4f6a7b",
    }


# ============================================
# Environment Fixtures
# ============================================

@pytest.fixture
def clean_secrets(monkeypatch):
    """Remove secret-related environment and clear the secret cache."""
    for name in ("APP_ENV", "TOTP_SECRET", "TOTP_SECRET_FILE", "JWT_SECRET", "JWT_SECRET_FILE",
                 "TOTP_STRICT_SECRET", "EXPOSE_CURRENT_CODE", "REDIS_URL",
                 "TOKEN_DISPLAY_NAME", "TOKEN_ROLES", "TOKEN_GROUPS", "MAX_MFA_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    get_secret.cache_clear()
    yield monkeypatch
    get_secret.cache_clear()


@pytest.fixture
def mock_redis_client():
    """
    Mock Redis client for pending login storage.
    Implements setex/get/delete and pipelined incr/expire with an
    in-memory store.
    """
    class MockPipeline:
        def __init__(self, client):
            self.client = client
            self.commands = []

        def incr(self, key):
            self.commands.append(("incr", key))

        def expire(self, key, seconds):
            self.commands.append(("expire", key, seconds))

        def execute(self):
            results = []
            for command in self.commands:
                if command[0] == "incr":
                    value = int(self.client.store.get(command[1], 0)) + 1
                    self.client.store[command[1]] = str(value)
                    results.append(value)
                else:
                    self.client.expiry[command[1]] = command[2]
                    results.append(True)
            self.commands = []
            return results

    class MockRedisClient:
        def __init__(self):
            self.store = {}
            self.expiry = {}

        def get(self, key):
            return self.store.get(key)

        def setex(self, key, seconds, value):
            self.store[key] = value
            self.expiry[key] = seconds
            return True

        def delete(self, key):
            self.store.pop(key, None)
            self.expiry.pop(key, None)
            return 1

        def pipeline(self):
            return MockPipeline(self)

        def ping(self):
            return True

    return MockRedisClient()


# ============================================
# API Fixtures
# ============================================

@pytest.fixture
def settings():
    return Settings(
        totp_secret=RFC_SECRET_B32,
        jwt_secret=SIGNING_SECRET,
        app_env="development",
        expose_current_code=True,
    )


@pytest.fixture
def pending_store():
    return PendingLoginStore(ttl_seconds=600)


@pytest.fixture
def attempt_limiter():
    return MfaAttemptLimiter(max_attempts=3, window_seconds=600)


@pytest.fixture
def client(settings, pending_store, attempt_limiter):
    """Test client with fixed settings, a frozen clock and fresh stores."""
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_MS)
    app.dependency_overrides[get_pending_login_store] = lambda: pending_store
    app.dependency_overrides[get_mfa_attempt_limiter] = lambda: attempt_limiter

    yield TestClient(app)

    app.dependency_overrides.clear()
