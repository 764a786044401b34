"""
Fake Auth Service.

Author: LocalFire Team
Date: 2026-10-19
"""

from .exceptions import AuthError, NoCurrentUserError
from .fake_auth import FakeAuth

__all__ = ["FakeAuth", "AuthError", "NoCurrentUserError"]
