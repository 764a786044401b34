"""
Write batches.

Writes are queued when added and applied in order on ``commit()``. A
failing write rejects the commit; writes applied before it stay applied.
"""

import logging
from functools import partial
from typing import Any, Callable, Dict, List

from .deferred import Deferred
from .models import WriteResult

logger = logging.getLogger(__name__)


class WriteBatch:
    """Ordered group of writes committed together."""

    def __init__(self, firestore: Any):
        self.firestore = firestore
        self._writes: List[Callable[[], Deferred[WriteResult]]] = []

    def _record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self.firestore._backend.log.record(name, *args, **kwargs)

    def set(self, ref: Any, data: Dict[str, Any], merge: bool = False) -> "WriteBatch":
        if merge:
            self._record("batch_set", ref, data, merge=True)
        else:
            self._record("batch_set", ref, data)
        self._writes.append(partial(ref.set, data, merge=merge))
        return self

    def update(self, ref: Any, data: Dict[str, Any]) -> "WriteBatch":
        self._record("batch_update", ref, data)
        self._writes.append(partial(ref.update, data))
        return self

    def delete(self, ref: Any) -> "WriteBatch":
        self._record("batch_delete", ref)
        self._writes.append(ref.delete)
        return self

    def create(self, ref: Any, data: Dict[str, Any]) -> "WriteBatch":
        self._record("batch_create", ref, data)
        self._writes.append(partial(ref.create, data))
        return self

    def commit(self) -> Deferred[List[WriteResult]]:
        """Apply the queued writes in order.

        Resolves to one ``WriteResult`` per write.
        """
        return Deferred.call(self._commit)

    def _commit(self) -> List[WriteResult]:
        self._record("batch_commit")
        writes, self._writes = self._writes, []
        results = [write().result() for write in writes]
        logger.debug("Committed batch of %d writes", len(results))
        return results

    def __len__(self) -> int:
        return len(self._writes)
