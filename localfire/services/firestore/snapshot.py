"""
Document and query snapshots.

Snapshots are point-in-time copies of stored records. Mutating the data
returned by a snapshot never touches the store, and later writes never
change a snapshot already handed out.

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .models import ID_KEY, DocumentChange, DocumentNode, SnapshotMetadata, copy_containers, normalize_value
from .path import FieldPath, to_field_segments
from .timestamp import Timestamp

logger = logging.getLogger(__name__)


class DocumentSnapshot:
    """Snapshot of a single document.

    Attributes:
        ref: Reference the snapshot was read from
        create_time: When the document was created (None if missing)
        update_time: When the document was last written (None if missing)
        read_time: When the snapshot was taken
        metadata: Snapshot provenance
    """

    def __init__(
        self,
        ref: Any,
        fields: Optional[Dict[str, Any]],
        read_time: Timestamp,
        create_time: Optional[Timestamp] = None,
        update_time: Optional[Timestamp] = None,
        include_id: bool = False,
    ):
        self.ref = ref
        self._fields = fields
        self._include_id = include_id
        self.read_time = read_time
        self.create_time = create_time
        self.update_time = update_time
        self.metadata = SnapshotMetadata()

    @property
    def id(self) -> str:
        return self.ref.id

    @property
    def reference(self) -> Any:
        return self.ref

    @property
    def exists(self) -> bool:
        return self._fields is not None

    def data(self) -> Optional[Dict[str, Any]]:
        """Stored fields, or None when the document does not exist.

        ``{seconds, nanoseconds}`` mappings and ``datetime`` values come back
        as ``Timestamp``. The id is only included when the store was built
        with ``include_ids_in_data``.
        """
        if self._fields is None:
            return None
        data = normalize_value(copy_containers(self._fields))
        if self._include_id:
            data = {ID_KEY: self.id, **data}
        return data

    to_dict = data

    def get(self, field_path: Union[str, FieldPath]) -> Any:
        """Value at a dotted field path, or None if absent."""
        if self._fields is None:
            return None
        current: Any = self._fields
        for segment in to_field_segments(field_path):
            if not isinstance(current, dict) or segment not in current:
                return None
            current = current[segment]
        return normalize_value(copy_containers(current))

    def to_object(self) -> Any:
        """Data passed through the reference's converter, if it has one."""
        converter = getattr(self.ref, "converter", None)
        if converter is None:
            return self.data()
        if not self.exists:
            return None
        return converter.from_firestore(self)

    def __repr__(self) -> str:
        return f"DocumentSnapshot({self.ref.path!r}, exists={self.exists})"


class QuerySnapshot:
    """Ordered result of a query."""

    def __init__(self, query: Any, docs: List[DocumentSnapshot], read_time: Timestamp):
        self.query = query
        self.docs = docs
        self.read_time = read_time
        self.metadata = SnapshotMetadata()

    @property
    def size(self) -> int:
        return len(self.docs)

    @property
    def empty(self) -> bool:
        return not self.docs

    def for_each(self, callback: Callable[[DocumentSnapshot], Any]) -> None:
        for doc in self.docs:
            callback(doc)

    def doc_changes(self) -> List[DocumentChange]:
        # Every snapshot is a first delivery, so every document is "added"
        return [
            DocumentChange(type="added", document=doc, old_index=-1, new_index=index)
            for index, doc in enumerate(self.docs)
        ]

    def __iter__(self) -> Iterator[DocumentSnapshot]:
        return iter(self.docs)

    def __len__(self) -> int:
        return len(self.docs)

    def __repr__(self) -> str:
        return f"QuerySnapshot(size={self.size})"


def build_document_snapshot(
    ref: Any,
    node: Optional[DocumentNode],
    read_time: Timestamp,
    include_id: bool = False,
    fields: Optional[Dict[str, Any]] = None,
) -> DocumentSnapshot:
    """Snapshot for ``ref`` from the node found at its path.

    Args:
        ref: Document reference
        node: Node at the reference's path (None when nothing is there)
        read_time: Snapshot time
        include_id: Add the id to ``data()``
        fields: Replacement fields (a projection); defaults to the node's

    Returns:
        DocumentSnapshot, with ``exists`` False for a missing document
    """
    if node is None or not node.exists:
        return DocumentSnapshot(ref, None, read_time, include_id=include_id)
    return DocumentSnapshot(
        ref,
        copy_containers(node.fields if fields is None else fields),
        read_time,
        create_time=node.create_time,
        update_time=node.update_time,
        include_id=include_id,
    )


def build_query_snapshot(query: Any, docs: List[DocumentSnapshot], read_time: Timestamp) -> QuerySnapshot:
    logger.debug("%r returned %d documents", query, len(docs))
    return QuerySnapshot(query, docs, read_time)
