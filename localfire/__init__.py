"""
LocalFire: in-memory Firebase emulation for tests

Seedable fakes of the document store and the auth service that record
every call in an injectable operation log.
"""

__version__ = "0.1.0"

from .auth import FakeAuth
from .core.context import MockContext
from .core.operation_log import OperationLog
from .firebase import firebase_stub
from .services.firestore import FieldPath, FieldValue, Firestore, Timestamp

__all__ = [
    "Firestore",
    "FakeAuth",
    "MockContext",
    "OperationLog",
    "firebase_stub",
    "FieldValue",
    "FieldPath",
    "Timestamp",
    "__version__",
]
