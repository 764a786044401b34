"""
Collection and document references.

References are cheap handles bound to a path. They hold no data: every
call resolves against the store's current tree.

Two document reference classes exist because the client and admin
libraries differ: only ``AdminDocumentReference`` can list its
subcollections.

Author: LocalFire Team
Date: 2026-10-19
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from .deferred import Deferred
from .exceptions import PathError
from .models import WriteResult
from .path import Path
from .query import Query
from .snapshot import DocumentSnapshot, build_document_snapshot

logger = logging.getLogger(__name__)


class CollectionReference(Query):
    """Reference to a collection; also a query over its documents."""

    def __init__(self, firestore: Any, path: Path, converter: Any = None):
        """Initialize collection reference.

        Args:
            firestore: Owning ``Firestore`` handle
            path: Collection path (odd number of segments)
            converter: Optional converter carried to document references

        Raises:
            PathError: If ``path`` does not address a collection
        """
        if not path.is_collection:
            raise PathError(f"Not a collection path: {path!r}", path=str(path))
        super().__init__(firestore, path, path.id, converter=converter)
        self._path = path

    @property
    def id(self) -> str:
        return self._path.id

    @property
    def path(self) -> str:
        return self._path.relative_name

    @property
    def parent(self) -> Optional["DocumentReference"]:
        """Owning document, or None for a root collection."""
        if len(self._path) == 1:
            return None
        return self.firestore._document_reference(self._path.parent())

    def doc(self, document_path: Optional[str] = None) -> "DocumentReference":
        """Reference to a document in this collection.

        Args:
            document_path: Document id, or a relative path ending at a
                document; a fresh id when omitted

        Raises:
            PathError: If the resulting path does not address a document
        """
        if document_path is None:
            self._record("doc")
            path = self._path.child([self._backend.generate_id(self._path)])
        else:
            self._record("doc", document_path)
            path = self._path.child(document_path)
        if not path.is_document:
            raise PathError(f"Not a document path: {path}", path=str(path))
        return self.firestore._document_reference(path, converter=self.converter)

    document = doc

    def add(self, data: Dict[str, Any]) -> Deferred["DocumentReference"]:
        """Write ``data`` under a generated id and resolve to the new reference."""
        return Deferred.call(self._add, data)

    def _add(self, data: Dict[str, Any]) -> "DocumentReference":
        self._record("add", data)
        ref = self.firestore._document_reference(
            self._path.child([self._backend.generate_id(self._path)]), converter=self.converter
        )
        self._backend.set_document(ref._path, ref._to_firestore(data))
        return ref

    def list_documents(self) -> Deferred[List["DocumentReference"]]:
        """References to every document, missing ones that own subcollections included."""
        return Deferred.call(self._list_documents)

    def _list_documents(self) -> List["DocumentReference"]:
        self._record("list_documents")
        return [
            self.firestore._document_reference(path, converter=self.converter)
            for path in self._backend.list_document_paths(self._path)
        ]

    def is_equal(self, other: Any) -> bool:
        return (
            isinstance(other, CollectionReference)
            and other.firestore is self.firestore
            and other._path == self._path
        )

    def __repr__(self) -> str:
        return f"CollectionReference({self.path!r})"


class DocumentReference:
    """Reference to a single document.

    Attributes:
        firestore: Owning ``Firestore`` handle
        converter: Optional object with ``to_firestore``/``from_firestore``
    """

    def __init__(self, firestore: Any, path: Path, converter: Any = None):
        """Initialize document reference.

        Raises:
            PathError: If ``path`` does not address a document
        """
        if not path.is_document:
            raise PathError(f"Not a document path: {path!r}", path=str(path))
        self.firestore = firestore
        self.converter = converter
        self._path = path

    @property
    def _backend(self) -> Any:
        return self.firestore._backend

    def _record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self._backend.log.record(name, *args, **kwargs)

    @property
    def id(self) -> str:
        return self._path.id

    @property
    def path(self) -> str:
        return self._path.relative_name

    @property
    def parent(self) -> CollectionReference:
        return self.firestore._collection_reference(self._path.parent(), converter=self.converter)

    def collection(self, collection_path: str) -> CollectionReference:
        """Reference to a subcollection.

        Raises:
            PathError: If the resulting path does not address a collection
        """
        self._record("collection", collection_path)
        path = self._path.child(collection_path)
        if not path.is_collection:
            raise PathError(f"Not a collection path: {path}", path=str(path))
        return self.firestore._collection_reference(path)

    # Reads

    def get(self) -> Deferred[DocumentSnapshot]:
        return Deferred.call(self._get)

    def _get(self) -> DocumentSnapshot:
        self._record("get")
        return self._read()

    def _read(self) -> DocumentSnapshot:
        """Snapshot of the current state, without recording a ``get``."""
        backend = self._backend
        return build_document_snapshot(
            self,
            backend.get_document(self._path),
            backend.now(),
            include_id=backend.options.include_ids_in_data,
        )

    def on_snapshot(self, *args: Any) -> Callable[[], None]:
        """Deliver one snapshot on the next event loop iteration.

        Accepts ``(callback)``, ``(callback, error_callback)`` or
        ``(options, callback[, error_callback])``. Must be called while an
        event loop is running.

        Returns:
            Unsubscribe callable; cancels the delivery if it has not run yet
        """
        self._record("on_snapshot", *args)
        callbacks = list(args[1:] if args and not callable(args[0]) else args)
        if not callbacks:
            raise TypeError("on_snapshot() requires a callback")
        callback = callbacks[0]
        error_callback = callbacks[1] if len(callbacks) > 1 else None

        handle = asyncio.get_running_loop().call_soon(self._deliver, callback, error_callback)
        return handle.cancel

    def _deliver(self, callback: Callable[[DocumentSnapshot], Any], error_callback: Optional[Callable]) -> None:
        try:
            snapshot = self._read()
        except Exception as exc:
            if error_callback is None:
                raise
            error_callback(exc)
            return
        callback(snapshot)

    # Writes

    def set(self, data: Dict[str, Any], merge: bool = False) -> Deferred[WriteResult]:
        """Replace the document, or shallow-merge into it with ``merge=True``."""
        return Deferred.call(self._set, data, merge)

    def _set(self, data: Dict[str, Any], merge: bool) -> WriteResult:
        if merge:
            self._record("set", data, merge=True)
        else:
            self._record("set", data)
        return self._backend.set_document(self._path, self._to_firestore(data), merge=merge)

    def update(self, data: Dict[str, Any]) -> Deferred[WriteResult]:
        """Update named fields; keys may be dotted field paths.

        Rejects with ``DocumentNotFoundError`` when the document is missing.
        """
        return Deferred.call(self._update, data)

    def _update(self, data: Dict[str, Any]) -> WriteResult:
        self._record("update", data)
        return self._backend.update_document(self._path, data)

    def create(self, data: Dict[str, Any]) -> Deferred[WriteResult]:
        """Write a new document; rejects with ``DocumentAlreadyExistsError`` if it exists."""
        return Deferred.call(self._create, data)

    def _create(self, data: Dict[str, Any]) -> WriteResult:
        self._record("create", data)
        return self._backend.create_document(self._path, self._to_firestore(data))

    def delete(self) -> Deferred[WriteResult]:
        return Deferred.call(self._delete)

    def _delete(self) -> WriteResult:
        self._record("delete")
        return self._backend.delete_document(self._path)

    def _to_firestore(self, data: Any) -> Any:
        if self.converter is None:
            return data
        return self.converter.to_firestore(data)

    def with_converter(self, converter: Any) -> "DocumentReference":
        self._record("with_converter", converter)
        return type(self)(self.firestore, self._path, converter=converter)

    def is_equal(self, other: Any) -> bool:
        return (
            isinstance(other, DocumentReference)
            and other.firestore is self.firestore
            and other._path == self._path
        )

    # Query methods the service only offers on queries

    def order_by(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("order_by() is not available on a document reference; use a Query")

    def limit(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("limit() is not available on a document reference; use a Query")

    def offset(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("offset() is not available on a document reference; use a Query")

    def start_at(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("start_at() is not available on a document reference; use a Query")

    def start_after(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("start_after() is not available on a document reference; use a Query")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


class ClientDocumentReference(DocumentReference):
    """Document reference handed out by the client library facade."""


class AdminDocumentReference(DocumentReference):
    """Document reference handed out by the admin library facade."""

    def list_collections(self) -> Deferred[List[CollectionReference]]:
        """References to the subcollections present under this document."""
        return Deferred.call(self._list_collections)

    def _list_collections(self) -> List[CollectionReference]:
        self._record("list_collections")
        return [
            self.firestore._collection_reference(self._path.child([name]))
            for name in self._backend.list_collection_ids(self._path)
        ]

