"""
Fake Auth Service.

Auth facade that shares the store's operation log. Every method records
its call; a ``return_value`` programmed on the log entry replaces the
default result, and a programmed ``side_effect`` exception rejects the
returned ``Deferred``.

Example:
    >>> auth = FakeAuth({"uid": "homer", "email": "homer@example.com"}, log=log)
    >>> log["verify_id_token"].return_value = {"uid": "bart"}
    >>> await auth.verify_id_token("token")
    {'uid': 'bart'}

Author: LocalFire Team
Date: 2026-10-19
"""

import copy
import logging
from typing import Any, Callable, Dict, Optional

from ..core.operation_log import OperationLog
from ..services.firestore.deferred import Deferred
from .exceptions import NoCurrentUserError

logger = logging.getLogger(__name__)


class FakeAuth:
    """Fake authentication facade.

    Attributes:
        log: Operation log calls are recorded into
    """

    def __init__(self, current_user: Optional[Dict[str, Any]] = None, log: Optional[OperationLog] = None):
        """Initialize fake auth.

        Args:
            current_user: User record (``uid`` plus arbitrary fields) returned
                for sign-in and token verification
            log: Operation log (a fresh one when omitted)
        """
        self._current_user: Dict[str, Any] = copy.deepcopy(current_user) if current_user else {}
        self.log = log if log is not None else OperationLog()

    @classmethod
    def from_context(cls, context: Any) -> "FakeAuth":
        return cls(context.current_user, log=context.log)

    def _call(self, name: str, default: Callable[[], Any], *args: Any, **kwargs: Any) -> Deferred[Any]:
        """Record ``name`` and settle with the programmed result or ``default()``."""
        def run() -> Any:
            programmed = self.log.record(name, *args, **kwargs)
            return default() if programmed is None else programmed

        return Deferred.call(run)

    @property
    def current_user(self) -> Dict[str, Any]:
        """``{"uid": ..., "data": {...}}`` view of the configured user."""
        data = {key: value for key, value in self._current_user.items() if key != "uid"}
        return {"uid": self._current_user.get("uid"), "data": data}

    def create_user_with_email_and_password(self, email: str, password: str) -> Deferred[Dict[str, Any]]:
        return self._call(
            "create_user_with_email_and_password", self._credential, email, password
        )

    def sign_in_with_email_and_password(self, email: str, password: str) -> Deferred[Dict[str, Any]]:
        return self._call("sign_in_with_email_and_password", self._credential, email, password)

    def sign_out(self) -> Deferred[None]:
        return self._call("sign_out", lambda: None)

    def send_password_reset_email(self, email: str, *args: Any) -> Deferred[None]:
        return self._call("send_password_reset_email", lambda: None, email, *args)

    def send_email_verification(self) -> Deferred[None]:
        """Verification mail for the current user.

        Rejects with ``NoCurrentUserError`` when no user is configured.
        """
        def run() -> None:
            self.log.record("send_email_verification")
            if not self._current_user:
                raise NoCurrentUserError()

        return Deferred.call(run)

    def delete_user(self, uid: str) -> Deferred[None]:
        return self._call("delete_user", lambda: None, uid)

    def verify_id_token(self, id_token: str, *args: Any) -> Deferred[Dict[str, Any]]:
        """Decoded token; the configured user unless the log programs another."""
        return self._call("verify_id_token", lambda: copy.deepcopy(self._current_user), id_token, *args)

    def get_user(self, uid: str) -> Deferred[Dict[str, Any]]:
        return self._call("get_user", dict, uid)

    def create_custom_token(self, uid: str, claims: Optional[Dict[str, Any]] = None) -> Deferred[str]:
        if claims is None:
            return self._call("create_custom_token", str, uid)
        return self._call("create_custom_token", str, uid, claims)

    def set_custom_user_claims(self, uid: str, claims: Optional[Dict[str, Any]]) -> Deferred[Dict[str, Any]]:
        return self._call("set_custom_user_claims", dict, uid, claims)

    def use_emulator(self, url: str, *args: Any) -> None:
        self.log.record("use_emulator", url, *args)
        logger.debug("Ignoring auth emulator address %s", url)

    def _credential(self) -> Dict[str, Any]:
        return {"user": copy.deepcopy(self._current_user)}
