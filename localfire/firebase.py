"""
Firebase namespace stubs.

``firebase_stub(context)`` returns an object shaped like the ``firebase``
(client) or ``firebase_admin`` namespace, wired to one ``MockContext``:
``auth()`` and ``firestore()`` build facades that share the context's
operation log, so a test can patch the namespace in and then assert on
every call the code under test made.

Example:
    >>> context = MockContext(database={"users": [{"id": "abc", "first": "Bob"}]})
    >>> firebase = firebase_stub(context)
    >>> firebase.initialize_app({"projectId": "demo"})
    >>> db = firebase.firestore()
    >>> context.log["initialize_app"].assert_called_once()
"""

import logging
from types import SimpleNamespace
from typing import Any

from .auth.fake_auth import FakeAuth
from .core.context import MockContext
from .services.firestore.client import Firestore

logger = logging.getLogger(__name__)


def firebase_stub(context: MockContext, admin: bool = False) -> SimpleNamespace:
    """Build a firebase namespace bound to ``context``.

    Args:
        context: Seed, options, current user and operation log
        admin: Mimic the admin SDK (document references gain
            ``list_collections``)

    Returns:
        Namespace with ``initialize_app``, ``credential.cert``, ``auth``
        and ``firestore``; ``firestore`` also carries the value and
        reference classes, e.g. ``firestore.Timestamp``
    """
    log = context.log

    def initialize_app(*args: Any, **kwargs: Any) -> Any:
        return log.record("initialize_app", *args, **kwargs)

    def cert(*args: Any, **kwargs: Any) -> Any:
        return log.record("cert", *args, **kwargs)

    def auth(*args: Any) -> FakeAuth:
        return FakeAuth.from_context(context)

    def firestore(*args: Any) -> Firestore:
        return Firestore.from_context(context, admin=admin)

    for name in (
        "Query",
        "CollectionReference",
        "DocumentReference",
        "FieldValue",
        "Timestamp",
        "Transaction",
        "FieldPath",
    ):
        setattr(firestore, name, getattr(Firestore, name))
    # firebase_admin spells the factory firestore.client()
    firestore.client = firestore

    logger.debug("Built %s firebase stub", "admin" if admin else "client")
    return SimpleNamespace(
        initialize_app=initialize_app,
        credential=SimpleNamespace(cert=cert),
        auth=auth,
        firestore=firestore,
    )
