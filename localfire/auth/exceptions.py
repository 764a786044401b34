"""
Auth Exceptions.

Author: LocalFire Team
Date: 2026-10-19
"""


class AuthError(Exception):
    """Base exception for fake auth errors.

    Attributes:
        message: Error message
        error_code: Status code of the emulated service
    """

    def __init__(self, message: str, error_code: str = "auth/internal-error"):
        """Initialize auth error.

        Args:
            message: Error message
            error_code: Status code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class NoCurrentUserError(AuthError):
    """Operation needs a signed-in user and none is configured."""

    def __init__(self, message: str = "No user is signed in"):
        super().__init__(message, "auth/no-current-user")
