"""
acsecure REST API.

FastAPI application wrapping the TOTP and token primitives.
"""
from .main import app, create_app

__all__ = ["app", "create_app"]
