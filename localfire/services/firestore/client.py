"""
Firestore root handle.

Entry point of the fake document store: builds references, runs
collection-group queries, batches and transactions, and exposes the value
types as class attributes the way the real client libraries do.

Example:
    >>> db = Firestore({"characters": [{"id": "homer", "name": "Homer"}]})
    >>> snapshot = await db.doc("characters/homer").get()
    >>> snapshot.get("name")
    'Homer'

Author: LocalFire Team
Date: 2026-10-19
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar, Union

from ...core.config_manager import StoreOptions
from ...core.operation_log import OperationLog
from .backend import FirestoreBackend
from .batch import WriteBatch
from .deferred import Deferred
from .exceptions import PathError
from .field_value import FieldValue
from .path import FieldPath, Path
from .query import Query
from .references import AdminDocumentReference, ClientDocumentReference, CollectionReference, DocumentReference
from .snapshot import DocumentSnapshot
from .timestamp import Timestamp
from .transaction import Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Firestore:
    """Fake document store.

    Attributes:
        admin: Whether references come from the admin flavour
            (``AdminDocumentReference``, which has ``list_collections``)
    """

    Timestamp = Timestamp
    FieldValue = FieldValue
    FieldPath = FieldPath
    Query = Query
    CollectionReference = CollectionReference
    DocumentReference = DocumentReference
    Transaction = Transaction
    WriteBatch = WriteBatch

    def __init__(
        self,
        database: Optional[Mapping[str, Any]] = None,
        options: Union[StoreOptions, Mapping[str, Any], None] = None,
        *,
        log: Optional[OperationLog] = None,
        admin: bool = False,
    ):
        """Initialize store.

        Args:
            database: Seed database ``{collection: [record, ...]}``
            options: ``StoreOptions`` or a mapping of them (camelCase accepted)
            log: Operation log to record into (a fresh one when omitted)
            admin: Hand out admin-flavoured document references
        """
        if options is not None and not isinstance(options, StoreOptions):
            options = StoreOptions.model_validate(dict(options))
        self.admin = admin
        self._backend = FirestoreBackend(database, options, log)
        self._document_class = AdminDocumentReference if admin else ClientDocumentReference

    @classmethod
    def from_context(cls, context: Any, admin: bool = False) -> "Firestore":
        """Build a store from a ``MockContext``, sharing its operation log."""
        return cls(context.database, context.options, log=context.log, admin=admin)

    @property
    def log(self) -> OperationLog:
        return self._backend.log

    @property
    def options(self) -> StoreOptions:
        return self._backend.options

    def _record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self._backend.log.record(name, *args, **kwargs)

    def _document_reference(self, path: Path, converter: Any = None) -> DocumentReference:
        return self._document_class(self, path, converter=converter)

    def _collection_reference(self, path: Path, converter: Any = None) -> CollectionReference:
        return CollectionReference(self, path, converter=converter)

    # References

    def collection(self, collection_path: str) -> CollectionReference:
        """Reference to the collection at a slash path.

        Raises:
            PathError: If the path is empty or ends at a document
        """
        self._record("collection", collection_path)
        return self._collection_reference(Path.from_string(collection_path))

    def doc(self, document_path: str) -> DocumentReference:
        """Reference to the document at a slash path.

        Raises:
            PathError: If the path is empty or ends at a collection
        """
        self._record("doc", document_path)
        return self._document_reference(Path.from_string(document_path))

    document = doc

    def collection_group(self, collection_id: str) -> Query:
        """Query over every collection named ``collection_id``, at any depth."""
        self._record("collection_group", collection_id)
        if not isinstance(collection_id, str) or not collection_id or "/" in collection_id:
            raise PathError(
                f"Collection group id must be a non-empty id without '/': {collection_id!r}",
                path=str(collection_id),
            )
        return Query(self, None, collection_id, all_descendants=True)

    def list_collections(self) -> Deferred[List[CollectionReference]]:
        """References to the root collections."""
        return Deferred.call(self._list_collections)

    def _list_collections(self) -> List[CollectionReference]:
        self._record("list_collections")
        return [self._collection_reference(Path([name])) for name in self._backend.list_collection_ids()]

    # Reads and writes

    def get_all(self, *refs_or_options: Any) -> Deferred[List[DocumentSnapshot]]:
        """Snapshots of several documents in argument order; read options are skipped."""
        return Deferred.call(self._get_all, *refs_or_options)

    def _get_all(self, *refs_or_options: Any) -> List[DocumentSnapshot]:
        self._record("get_all", *refs_or_options)
        return [ref._read() for ref in refs_or_options if isinstance(ref, DocumentReference)]

    def recursive_delete(self, ref: Union[DocumentReference, CollectionReference]) -> Deferred[None]:
        """Delete a document or collection and everything nested below it."""
        return Deferred.call(self._recursive_delete, ref)

    def _recursive_delete(self, ref: Union[DocumentReference, CollectionReference]) -> None:
        self._record("recursive_delete", ref)
        self._backend.recursive_delete(ref._path)

    def batch(self) -> WriteBatch:
        self._record("batch")
        return WriteBatch(self)

    def transaction(self) -> Transaction:
        return Transaction(self)

    async def run_transaction(
        self, callback: Callable[[Transaction], Union[T, Awaitable[T]]]
    ) -> T:
        """Run ``callback`` once with a fresh transaction.

        The callback may be a plain function or a coroutine function. Its
        return value (awaited if needed) is the result. There is no retry.
        """
        self._record("run_transaction", callback)
        result = callback(Transaction(self))
        if inspect.isawaitable(result):
            result = await result
        return result

    # Settings

    def settings(self, *args: Any, **kwargs: Any) -> None:
        self._record("settings", *args, **kwargs)

    def use_emulator(self, host: str, port: int) -> None:
        self._record("use_emulator", host, port)
        logger.debug("Ignoring emulator address %s:%s", host, port)

    def __repr__(self) -> str:
        return f"Firestore(admin={self.admin}, options={self.options!r})"
