"""
Transactions.

A transaction is an API-compatible envelope over the store: reads see the
current tree and writes apply immediately. There is no isolation and no
retry, since a single event loop leaves nothing to conflict with.

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
from typing import Any, Dict, List, Union

from .deferred import Deferred
from .query import Query
from .references import DocumentReference
from .snapshot import DocumentSnapshot, QuerySnapshot

logger = logging.getLogger(__name__)


class Transaction:
    """Transaction handle passed to ``Firestore.run_transaction`` callbacks.

    Write methods return the transaction so calls can be chained. A write
    that fails raises at the call site rather than at commit.
    """

    def __init__(self, firestore: Any):
        self.firestore = firestore

    def _record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self.firestore._backend.log.record(name, *args, **kwargs)

    def get(self, ref_or_query: Union[DocumentReference, Query]) -> Deferred[Union[DocumentSnapshot, QuerySnapshot]]:
        """Read a document or run a query.

        Only ``get_transaction`` is recorded; the reference's own ``get``
        is bypassed.
        """
        return Deferred.call(self._get, ref_or_query)

    def _get(self, ref_or_query: Union[DocumentReference, Query]) -> Union[DocumentSnapshot, QuerySnapshot]:
        self._record("get_transaction", ref_or_query)
        if isinstance(ref_or_query, Query):
            return ref_or_query._execute()
        return ref_or_query._read()

    def get_all(self, *refs_or_options: Any) -> Deferred[List[DocumentSnapshot]]:
        """Read several documents in argument order.

        Arguments that are not document references (read options) are
        skipped.
        """
        return Deferred.call(self._get_all, *refs_or_options)

    def _get_all(self, *refs_or_options: Any) -> List[DocumentSnapshot]:
        self._record("get_all", *refs_or_options)
        self._record("get_all_transaction", *refs_or_options)
        refs = [ref for ref in refs_or_options if isinstance(ref, DocumentReference)]
        return [ref.get().result() for ref in refs]

    def set(self, ref: DocumentReference, data: Dict[str, Any], merge: bool = False) -> "Transaction":
        if merge:
            self._record("set_transaction", ref, data, merge=True)
        else:
            self._record("set_transaction", ref, data)
        ref.set(data, merge=merge).result()
        return self

    def update(self, ref: DocumentReference, data: Dict[str, Any]) -> "Transaction":
        self._record("update_transaction", ref, data)
        ref.update(data).result()
        return self

    def delete(self, ref: DocumentReference) -> "Transaction":
        self._record("delete_transaction", ref)
        ref.delete().result()
        return self

    def create(self, ref: DocumentReference, data: Dict[str, Any]) -> "Transaction":
        self._record("create_transaction", ref, data)
        ref.create(data).result()
        return self
