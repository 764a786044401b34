"""
Fake Firestore Service.

In-memory, seedable emulation of the hierarchical document database:
collections of documents with nested subcollections, queries, batches and
transactions, all recorded in an injectable operation log.

Author: LocalFire Team
Date: 2026-10-19
"""

from .backend import FirestoreBackend
from .batch import WriteBatch
from .client import Firestore
from .deferred import Deferred
from .exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    FirestoreError,
    InvalidArgumentError,
    InvalidFilterError,
    PathError,
)
from .field_value import FieldValue
from .models import DocumentChange, SnapshotMetadata, WriteResult
from .path import FieldPath, Path
from .query import Query
from .references import (
    AdminDocumentReference,
    ClientDocumentReference,
    CollectionReference,
    DocumentReference,
)
from .snapshot import DocumentSnapshot, QuerySnapshot
from .timestamp import Timestamp
from .transaction import Transaction

__all__ = [
    "Firestore",
    "FirestoreBackend",
    "WriteBatch",
    "Deferred",
    "FirestoreError",
    "PathError",
    "InvalidFilterError",
    "InvalidArgumentError",
    "DocumentNotFoundError",
    "DocumentAlreadyExistsError",
    "FieldValue",
    "DocumentChange",
    "SnapshotMetadata",
    "WriteResult",
    "FieldPath",
    "Path",
    "Query",
    "CollectionReference",
    "DocumentReference",
    "ClientDocumentReference",
    "AdminDocumentReference",
    "DocumentSnapshot",
    "QuerySnapshot",
    "Timestamp",
    "Transaction",
]
