"""
Shared utilities for acsecure.

This package provides:
- Secrets management
"""
from .secrets import get_secret, get_required_secret, mask_secret

__all__ = ["get_secret", "get_required_secret", "mask_secret"]
