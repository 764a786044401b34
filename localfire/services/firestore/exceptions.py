"""
Firestore Exceptions.

Custom exception classes for the fake document store, carrying the
status codes the real service reports.

Author: LocalFire Team
Date: 2026-10-19
"""

from typing import Any


class FirestoreError(Exception):
    """Base exception for document store errors.

    Attributes:
        message: Error message
        error_code: Status code of the emulated service
    """

    def __init__(self, message: str, error_code: str = "internal"):
        """Initialize document store error.

        Args:
            message: Error message
            error_code: Status code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class PathError(FirestoreError):
    """Malformed path, or a path of the wrong parity for the requested reference."""

    def __init__(self, message: str, path: str = ""):
        """Initialize path error.

        Args:
            message: Error message
            path: Offending path
        """
        super().__init__(message, "invalid-argument")
        self.path = path


class InvalidFilterError(FirestoreError):
    """Filter rejected at ``where()`` time."""

    def __init__(self, message: str, field_path: str = "", op: str = "", value: Any = None):
        """Initialize invalid filter error.

        Args:
            message: Error message
            field_path: Filtered field
            op: Filter operator
            value: Comparison value
        """
        super().__init__(message, "invalid-argument")
        self.field_path = field_path
        self.op = op
        self.value = value


class InvalidArgumentError(FirestoreError):
    """Bad argument to a builder or write operation."""

    def __init__(self, message: str):
        super().__init__(message, "invalid-argument")


class DocumentNotFoundError(FirestoreError):
    """Document not found error."""

    def __init__(self, message: str, path: str = ""):
        """Initialize document not found error.

        Args:
            message: Error message
            path: Document path
        """
        super().__init__(message, "not-found")
        self.path = path


class DocumentAlreadyExistsError(FirestoreError):
    """Document already exists error."""

    def __init__(self, message: str, path: str = ""):
        """Initialize document already exists error.

        Args:
            message: Error message
            path: Document path
        """
        super().__init__(message, "already-exists")
        self.path = path
