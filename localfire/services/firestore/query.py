"""
Query builder and executor.

Builders record their call in the operation log and mutate the query in
place, returning the same instance so chained calls keep identity. With
``simulate_query_filters`` off (the default) filters, ordering, offset and
limit are only recorded and every document of the target comes back;
projection is always applied.

Author: LocalFire Team
Date: 2026-10-19
"""

import asyncio
import copy
import logging
from typing import Any, AsyncIterator, Callable, List, Optional, Tuple, Union

from .deferred import Deferred
from .exceptions import InvalidArgumentError
from .filters import FieldFilter, filter_records, project, resolve_field, sort_records
from .models import DocumentNode
from .path import FieldPath, Path, to_field_segments
from .snapshot import DocumentSnapshot, QuerySnapshot, build_document_snapshot, build_query_snapshot

logger = logging.getLogger(__name__)

_Record = Tuple[Path, DocumentNode]


class Query:
    """Query against one collection, or against a collection group.

    Attributes:
        firestore: Owning ``Firestore`` handle
        converter: Optional object with ``to_firestore``/``from_firestore``
    """

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"

    def __init__(
        self,
        firestore: Any,
        collection_path: Optional[Path],
        collection_id: str,
        all_descendants: bool = False,
        converter: Any = None,
    ):
        """Initialize query.

        Args:
            firestore: Owning ``Firestore`` handle
            collection_path: Target collection (None for a collection group)
            collection_id: Collection name the query targets
            all_descendants: Match every collection named ``collection_id``
            converter: Optional converter carried to produced references
        """
        self.firestore = firestore
        self.converter = converter
        self._collection_path = collection_path
        self._collection_id = collection_id
        self._all_descendants = all_descendants
        self._filters: List[FieldFilter] = []
        self._orders: List[Tuple[Tuple[str, ...], bool]] = []
        self._limit: Optional[int] = None
        self._offset: int = 0
        self._projection: Optional[List[Tuple[str, ...]]] = None
        self._cursors: List[Tuple[str, Tuple[Any, ...]]] = []

    @property
    def _backend(self) -> Any:
        return self.firestore._backend

    def _record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self._backend.log.record(name, *args, **kwargs)

    # Builders

    def where(self, field_path: Union[str, FieldPath], op: str, value: Any) -> "Query":
        """Add a filter.

        Raises:
            InvalidFilterError: Unknown operator, or ``None`` with an
                ordering or membership operator
        """
        self._record("where", field_path, op, value)
        self._filters.append(FieldFilter.create(field_path, op, value))
        return self

    def order_by(self, field_path: Union[str, FieldPath], direction: Optional[str] = None) -> "Query":
        """Add a sort key; documents lacking the field drop out of the result."""
        if direction is None:
            self._record("order_by", field_path)
        else:
            self._record("order_by", field_path, direction)
        self._orders.append((to_field_segments(field_path), _is_descending(direction)))
        return self

    def limit(self, count: int) -> "Query":
        self._record("limit", count)
        self._limit = _check_count("limit", count)
        return self

    def offset(self, count: int) -> "Query":
        self._record("offset", count)
        self._offset = _check_count("offset", count)
        return self

    def start_at(self, *values: Any) -> "Query":
        self._record("start_at", *values)
        self._cursors.append(("start_at", values))
        return self

    def start_after(self, *values: Any) -> "Query":
        self._record("start_after", *values)
        self._cursors.append(("start_after", values))
        return self

    def end_at(self, *values: Any) -> "Query":
        self._record("end_at", *values)
        self._cursors.append(("end_at", values))
        return self

    def end_before(self, *values: Any) -> "Query":
        self._record("end_before", *values)
        self._cursors.append(("end_before", values))
        return self

    def select(self, *field_paths: Union[str, FieldPath]) -> "Query":
        """Project results onto ``field_paths``; no paths yields empty data."""
        self._record("select", *field_paths)
        self._projection = [to_field_segments(field_path) for field_path in field_paths]
        return self

    def with_converter(self, converter: Any) -> "Query":
        """Copy of this query whose references carry ``converter``."""
        self._record("with_converter", converter)
        clone = copy.copy(self)
        clone._filters = list(self._filters)
        clone._orders = list(self._orders)
        clone._cursors = list(self._cursors)
        clone.converter = converter
        return clone

    # Execution

    def get(self) -> Deferred[QuerySnapshot]:
        return Deferred.call(self._get)

    def _get(self) -> QuerySnapshot:
        self._record("get")
        return self._execute()

    def count(self) -> Deferred[int]:
        """Number of documents the query matches."""
        return Deferred.call(self._count)

    def _count(self) -> int:
        self._record("count")
        return self._execute().size

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        snapshot = await self.get()
        for doc in snapshot.docs:
            yield doc

    def on_snapshot(
        self,
        callback: Callable[[QuerySnapshot], Any],
        error_callback: Optional[Callable[[BaseException], Any]] = None,
    ) -> Callable[[], None]:
        """Deliver one snapshot on the next event loop iteration.

        Must be called while an event loop is running. The snapshot is
        taken at delivery time, so writes issued right after registering
        are visible to the callback.

        Returns:
            Unsubscribe callable; cancels the delivery if it has not run yet
        """
        if error_callback is None:
            self._record("query_on_snapshot", callback)
        else:
            self._record("query_on_snapshot", callback, error_callback)
        handle = asyncio.get_running_loop().call_soon(self._deliver, callback, error_callback)

        def unsubscribe() -> None:
            self._record("query_on_snapshot_unsubscribe")
            handle.cancel()

        return unsubscribe

    def _deliver(
        self,
        callback: Callable[[QuerySnapshot], Any],
        error_callback: Optional[Callable[[BaseException], Any]],
    ) -> None:
        try:
            snapshot = self._execute()
        except Exception as exc:
            if error_callback is None:
                raise
            error_callback(exc)
            return
        callback(snapshot)

    def _execute(self) -> QuerySnapshot:
        backend = self._backend
        read_time = backend.now()
        records = self._records()

        if backend.options.simulate_query_filters:
            records = filter_records(records, self._filters, lambda record: (record[1].id, record[1].fields))
            if self._orders:
                records = sort_records(
                    records,
                    self._orders,
                    lambda record, segments: resolve_field(record[1].id, record[1].fields, segments),
                )
            if self._offset:
                records = records[self._offset:]
            if self._limit is not None:
                records = records[:self._limit]
        elif self._filters or self._orders or self._limit is not None or self._offset:
            logger.debug("Query filters recorded but not applied (simulate_query_filters is off)")

        include_id = backend.options.include_ids_in_data
        docs = [
            build_document_snapshot(
                self.firestore._document_reference(path, converter=self.converter),
                node,
                read_time,
                include_id=include_id,
                fields=project(node.fields, self._projection) if self._projection is not None else None,
            )
            for path, node in records
        ]
        return build_query_snapshot(self, docs, read_time)

    def _records(self) -> List[_Record]:
        if self._all_descendants:
            return self._backend.collection_group(self._collection_id)
        return self._backend.list_documents(self._collection_path)

    def __repr__(self) -> str:
        if self._all_descendants:
            return f"Query(collection_group={self._collection_id!r})"
        return f"Query({self._collection_path})"


def _is_descending(direction: Optional[str]) -> bool:
    if direction is None:
        return False
    normalized = str(direction).upper()
    if normalized in ("ASCENDING", "ASC"):
        return False
    if normalized in ("DESCENDING", "DESC"):
        return True
    raise InvalidArgumentError(f"Invalid order direction: {direction!r}")


def _check_count(name: str, count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise InvalidArgumentError(f"{name} must be a non-negative integer, got {count!r}")
    return count
