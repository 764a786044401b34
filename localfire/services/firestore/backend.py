"""
Firestore Backend.

Owner of the in-memory document tree. Every read and write performed by
references, queries, batches and transactions goes through this class.

Writes only touch the tree when the store was built with ``mutable``;
otherwise they are validated (including the existence checks of
``create`` and ``update``), logged and acknowledged without changing
state, so each read sees the seed data.

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...core.config_manager import StoreOptions
from ...core.operation_log import OperationLog
from .exceptions import DocumentAlreadyExistsError, DocumentNotFoundError, InvalidArgumentError
from .field_value import apply_field_update, resolve_sentinels
from .models import (
    CollectionNode,
    DocumentNode,
    WriteResult,
    build_tree,
    copy_containers,
    find_collection,
    find_document,
    walk_collections,
)
from .path import FieldPath, Path, to_field_segments
from .timestamp import Timestamp

logger = logging.getLogger(__name__)


class FirestoreBackend:
    """In-memory document tree plus the write path.

    Attributes:
        options: Store construction options
        log: Operation log shared with the facades
        _root: Root node; its collections are the root collections
    """

    def __init__(
        self,
        database: Optional[Mapping[str, Any]] = None,
        options: Optional[StoreOptions] = None,
        log: Optional[OperationLog] = None,
    ) -> None:
        """Initialize backend.

        Args:
            database: Seed database, copied so the caller's mapping is never mutated
            options: Store options (defaults: immutable, filters recorded only)
            log: Operation log (a fresh one when omitted)
        """
        self.options = options or StoreOptions()
        self.log = log if log is not None else OperationLog()
        self._root = build_tree(database, Timestamp.now())

    def now(self) -> Timestamp:
        """Store clock.

        A value programmed on the ``timestamp_now`` log entry replaces the
        real clock, which lets tests pin write and read times.
        """
        override = self.log.record("timestamp_now")
        if override is not None:
            return override
        return Timestamp.now()

    # Reads

    def get_document(self, path: Path) -> Optional[DocumentNode]:
        return find_document(self._root, path)

    def get_collection(self, path: Path) -> Optional[CollectionNode]:
        return find_collection(self._root, path)

    def list_documents(self, collection_path: Path) -> List[Tuple[Path, DocumentNode]]:
        """Existing documents of one collection, in insertion order."""
        collection = self.get_collection(collection_path)
        if collection is None:
            return []
        return [(collection_path.child([doc.id]), doc) for doc in collection.existing()]

    def list_document_paths(self, collection_path: Path) -> List[Path]:
        """Every document position in a collection, missing ones with subcollections included."""
        collection = self.get_collection(collection_path)
        if collection is None:
            return []
        return [collection_path.child([doc_id]) for doc_id in collection.documents]

    def collection_group(self, collection_id: str) -> List[Tuple[Path, DocumentNode]]:
        """Existing documents of every collection named ``collection_id``.

        Collections are visited depth-first, parents before their
        descendants, so the union keeps a stable order.
        """
        results: List[Tuple[Path, DocumentNode]] = []
        for segments, collection in walk_collections(self._root):
            if segments[-1] != collection_id:
                continue
            collection_path = Path(segments)
            results.extend((collection_path.child([doc.id]), doc) for doc in collection.existing())
        logger.debug("Collection group %r matched %d documents", collection_id, len(results))
        return results

    def list_collection_ids(self, document_path: Optional[Path] = None) -> List[str]:
        """Subcollection names of a document, or root collection names."""
        node = self._root if document_path is None else self.get_document(document_path)
        if node is None:
            return []
        return list(node.collections)

    def generate_id(self, collection_path: Path) -> str:
        collection = self.get_collection(collection_path)
        if collection is None:
            return CollectionNode(collection_path.id or "").generate_id()
        return collection.generate_id()

    # Writes

    def set_document(self, path: Path, data: Mapping[str, Any], merge: bool = False) -> WriteResult:
        """Replace a document, or shallow-merge into it.

        Sentinels are resolved against the stored values. A ``delete``
        sentinel removes the field when merging and is simply dropped when
        replacing.

        Args:
            path: Document path
            data: Field mapping
            merge: Keep stored fields that ``data`` does not name

        Returns:
            WriteResult stamped with the store clock

        Raises:
            InvalidArgumentError: If ``data`` is not a mapping
        """
        _check_data(data)
        now = self.now()
        if not self.options.mutable:
            return WriteResult(update_time=now)

        node = find_document(self._root, path, create=True)
        resolved, deleted = resolve_sentinels(dict(data), node.fields, now)
        if merge and node.exists:
            fields = dict(node.fields)
            for key in deleted:
                fields.pop(key, None)
            fields.update(resolved)
        else:
            fields = resolved
        self._commit(node, fields, now)
        logger.debug("Set %s (merge=%s)", path, merge)
        return WriteResult(update_time=now)

    def create_document(self, path: Path, data: Mapping[str, Any]) -> WriteResult:
        """Write a document that must not exist yet.

        Raises:
            DocumentAlreadyExistsError: If the document exists
            InvalidArgumentError: If ``data`` is not a mapping
        """
        _check_data(data)
        existing = self.get_document(path)
        if existing is not None and existing.exists:
            raise DocumentAlreadyExistsError(f"Document already exists: {path}", path=str(path))
        now = self.now()
        if not self.options.mutable:
            return WriteResult(update_time=now)

        node = find_document(self._root, path, create=True)
        resolved, _ = resolve_sentinels(dict(data), None, now)
        self._commit(node, resolved, now)
        logger.debug("Created %s", path)
        return WriteResult(update_time=now)

    def update_document(self, path: Path, data: Mapping[str, Any]) -> WriteResult:
        """Update fields of an existing document.

        Keys are field paths, so ``{"address.city": "x"}`` changes one
        nested field and leaves its siblings alone.

        Raises:
            DocumentNotFoundError: If the document does not exist
            InvalidArgumentError: If ``data`` is not a mapping
        """
        _check_data(data, field_paths=True)
        node = self.get_document(path)
        if node is None or not node.exists:
            raise DocumentNotFoundError(f"No document to update: {path}", path=str(path))
        now = self.now()
        if not self.options.mutable:
            return WriteResult(update_time=now)

        fields = copy_containers(node.fields)
        for key, value in data.items():
            apply_field_update(fields, to_field_segments(key), value, now)
        self._commit(node, fields, now)
        logger.debug("Updated %s fields %s", path, list(data))
        return WriteResult(update_time=now)

    def delete_document(self, path: Path) -> WriteResult:
        """Delete a document; its subcollections stay reachable."""
        now = self.now()
        if not self.options.mutable:
            return WriteResult(update_time=now)

        node = self.get_document(path)
        if node is not None:
            node.fields = None
            node.create_time = None
            node.update_time = None
            self._prune_document(path)
        logger.debug("Deleted %s", path)
        return WriteResult(update_time=now)

    def recursive_delete(self, path: Path) -> int:
        """Remove a document or collection together with everything below it.

        Returns:
            Number of existing documents removed
        """
        if not self.options.mutable:
            return 0

        parent_path = path.parent()
        if path.is_document:
            collection = self.get_collection(parent_path)
            node = collection.documents.pop(path.id, None) if collection is not None else None
        else:
            holder = self._root if len(path) == 1 else self.get_document(parent_path)
            node = holder.collections.pop(path.id, None) if holder is not None else None

        removed = _count_documents(node)
        if path.is_document:
            self._prune_collection(parent_path)
        elif len(parent_path):
            self._prune_document(parent_path)
        logger.debug("Recursively deleted %s (%d documents)", path, removed)
        return removed

    def _commit(self, node: DocumentNode, fields: Dict[str, Any], now: Timestamp) -> None:
        if node.create_time is None:
            node.create_time = now
        node.fields = fields
        node.update_time = now

    def _prune_document(self, path: Path) -> None:
        """Drop a missing document that no longer owns subcollections."""
        node = self.get_document(path)
        if node is None or node.exists or node.collections:
            return
        self.get_collection(path.parent()).documents.pop(path.id, None)
        self._prune_collection(path.parent())

    def _prune_collection(self, path: Path) -> None:
        """Drop an empty collection, then its holder if that is now bare."""
        collection = self.get_collection(path)
        if collection is None or collection.documents:
            return
        holder_path = path.parent()
        if not len(holder_path):
            self._root.collections.pop(path.id, None)
            return
        self.get_document(holder_path).collections.pop(path.id, None)
        self._prune_document(holder_path)


def _check_data(data: Any, field_paths: bool = False) -> None:
    if not isinstance(data, Mapping):
        raise InvalidArgumentError(f"Document data must be a mapping, got {type(data).__name__}")
    for key in data:
        if field_paths and isinstance(key, FieldPath):
            continue
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError(f"Invalid field name: {key!r}")


def _count_documents(node: Any) -> int:
    if node is None:
        return 0
    if isinstance(node, CollectionNode):
        return sum(_count_documents(doc) for doc in node.documents.values())
    return int(node.exists) + sum(_count_documents(child) for child in node.collections.values())
