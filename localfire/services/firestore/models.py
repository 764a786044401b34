"""
Document Store Models.

Tagged record tree holding the store's data, seed parsing, and the small
result types handed back by write operations.

The tree alternates ``CollectionNode`` and ``DocumentNode`` levels. A
document whose ``fields`` is ``None`` does not exist; it is kept only
because it owns subcollections (a deleted parent, or an ancestor implied
by a deeper seeded path).

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .path import Path
from .timestamp import Timestamp

logger = logging.getLogger(__name__)

SUBCOLLECTIONS_KEY = "_collections"
ID_KEY = "id"

_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_AUTO_ID_LENGTH = 20


@dataclass
class DocumentNode:
    """A document position in the tree.

    Attributes:
        id: Document id
        fields: Stored field mapping, or None when the document does not exist
        collections: Subcollections by name
        create_time: When the document was first written
        update_time: When the document was last written
    """

    id: str
    fields: Optional[Dict[str, Any]] = None
    collections: Dict[str, "CollectionNode"] = field(default_factory=dict)
    create_time: Optional[Timestamp] = None
    update_time: Optional[Timestamp] = None

    @property
    def exists(self) -> bool:
        return self.fields is not None

    def collection(self, name: str, create: bool = False) -> Optional["CollectionNode"]:
        node = self.collections.get(name)
        if node is None and create:
            node = CollectionNode(name)
            self.collections[name] = node
        return node


@dataclass
class CollectionNode:
    """A collection position in the tree; documents keep insertion order."""

    name: str
    documents: Dict[str, DocumentNode] = field(default_factory=dict)

    def document(self, doc_id: str, create: bool = False) -> Optional[DocumentNode]:
        node = self.documents.get(doc_id)
        if node is None and create:
            node = DocumentNode(doc_id)
            self.documents[doc_id] = node
        return node

    def existing(self) -> List[DocumentNode]:
        """Documents that exist, in insertion order."""
        return [doc for doc in self.documents.values() if doc.exists]

    def generate_id(self) -> str:
        """Auto id that no current sibling uses."""
        while True:
            candidate = generate_document_id()
            if candidate not in self.documents:
                return candidate


@dataclass
class WriteResult:
    """Result of a single write."""

    update_time: Timestamp


@dataclass
class SnapshotMetadata:
    """Snapshot provenance; always server data in this emulation."""

    has_pending_writes: bool = False
    from_cache: bool = False


@dataclass
class DocumentChange:
    """One entry of ``QuerySnapshot.doc_changes()``."""

    type: str
    document: Any
    old_index: int
    new_index: int


def generate_document_id() -> str:
    """20-character alphanumeric id, the shape the service uses for auto ids."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(_AUTO_ID_LENGTH))


def build_tree(database: Optional[Mapping[str, Any]], now: Timestamp) -> DocumentNode:
    """Build the in-memory tree from a seed database.

    The seed is deep-copied so stores built from the same seed never share
    mutable state.

    Args:
        database: ``{collection_path: [record, ...]}``; records may carry
            ``_collections`` with the same shape, recursively
        now: Create/update time stamped on seeded documents

    Returns:
        Root node (a document with no fields whose collections are the
        root collections)
    """
    root = DocumentNode(id="")
    if not database:
        return root

    seed = copy_containers(dict(database))
    count = 0
    for collection_path, records in seed.items():
        path = Path.from_string(collection_path)
        if not path.is_collection:
            logger.warning("Ignoring seed entry %r: not a collection path", collection_path)
            continue
        collection = _descend(root, path.segments, create=True)
        count += _seed_collection(collection, records, now)

    logger.info("Seeded %d documents across %d root entries", count, len(seed))
    return root


def _seed_collection(collection: "CollectionNode", records: Any, now: Timestamp) -> int:
    if not isinstance(records, list):
        logger.warning("Ignoring seed collection %r: expected a list of records", collection.name)
        return 0

    count = 0
    for record in records:
        if not isinstance(record, dict):
            logger.warning("Ignoring non-mapping record in collection %r", collection.name)
            continue
        fields = dict(record)
        doc_id = fields.pop(ID_KEY, None)
        if doc_id is None or doc_id == "":
            doc_id = collection.generate_id()
        subcollections = fields.pop(SUBCOLLECTIONS_KEY, None) or {}

        node = collection.document(str(doc_id), create=True)
        node.fields = fields
        node.create_time = now
        node.update_time = now
        count += 1

        if not isinstance(subcollections, dict):
            logger.warning("Ignoring %s of %r: expected a mapping", SUBCOLLECTIONS_KEY, doc_id)
            continue
        for name, sub_records in subcollections.items():
            if not isinstance(sub_records, list):
                logger.warning(
                    "Ignoring subcollection %r of %r: expected a list of records", name, doc_id
                )
                continue
            count += _seed_collection(node.collection(name, create=True), sub_records, now)
    return count


def _descend(root: DocumentNode, segments: Tuple[str, ...], create: bool) -> Any:
    """Walk alternating collection/document segments from the root."""
    node: Any = root
    for index, segment in enumerate(segments):
        if node is None:
            return None
        if index % 2 == 0:
            node = node.collection(segment, create=create)
        else:
            node = node.document(segment, create=create)
    return node


def find_collection(root: DocumentNode, path: Path, create: bool = False) -> Optional[CollectionNode]:
    return _descend(root, path.segments, create)


def find_document(root: DocumentNode, path: Path, create: bool = False) -> Optional[DocumentNode]:
    return _descend(root, path.segments, create)


def walk_collections(
    node: DocumentNode, prefix: Tuple[str, ...] = ()
) -> Iterator[Tuple[Tuple[str, ...], CollectionNode]]:
    """Depth-first walk over every collection below ``node``.

    Yields:
        ``(collection_path_segments, collection)`` pairs, parents before
        their descendants
    """
    for name, collection in node.collections.items():
        collection_path = prefix + (name,)
        yield collection_path, collection
        for doc_id, document in collection.documents.items():
            yield from walk_collections(document, collection_path + (doc_id,))


def normalize_value(value: Any) -> Any:
    """Read-side normalization: ``datetime`` and ``{seconds, nanoseconds}`` become ``Timestamp``."""
    if isinstance(value, Timestamp):
        return value
    if isinstance(value, datetime):
        return Timestamp.from_date(value)
    if isinstance(value, dict):
        if _is_timestamp_mapping(value):
            return Timestamp(value["seconds"], value["nanoseconds"])
        return {key: normalize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [normalize_value(item) for item in value]
    return value


def _is_timestamp_mapping(value: Dict[str, Any]) -> bool:
    return (
        set(value) == {"seconds", "nanoseconds"}
        and all(isinstance(value[key], int) and not isinstance(value[key], bool) for key in value)
        and 0 <= value["nanoseconds"] < 1_000_000_000
    )


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality with timestamp normalization.

    Booleans never equal numbers, arrays compare in order.
    """
    left = normalize_value(left)
    right = normalize_value(right)

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return False
    if hasattr(left, "is_equal"):
        return bool(left.is_equal(right))
    return left == right


def copy_containers(value: Any) -> Any:
    """Copy nested lists and mappings; leaf values (references included) are shared."""
    if isinstance(value, dict):
        return {key: copy_containers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [copy_containers(item) for item in value]
    return value
