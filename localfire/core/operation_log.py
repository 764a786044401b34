"""
Operation log.

Every public operation of the fake store and the fake auth facade is
recorded here so tests can assert "operation X was invoked with Y".
Each operation name maps to a ``unittest.mock.Mock``; tests use the
regular mock assertions on it and may program ``return_value`` or
``side_effect`` to inject results or failures.

A log is passed explicitly to every component that records into it, so
two stores built from two contexts never share call history.
"""

import logging
from typing import Any, Dict, Iterator, List
from unittest.mock import Mock, call

logger = logging.getLogger(__name__)


class OperationLog:
    """Named call recorder backed by ``unittest.mock.Mock``.

    Example:
        >>> log = OperationLog()
        >>> log.record("where", "type", "==", "mammal")
        >>> log["where"].assert_called_once_with("type", "==", "mammal")
        >>> log["verify_id_token"].side_effect = RuntimeError("revoked")
    """

    def __init__(self) -> None:
        self._operations: Dict[str, Mock] = {}

    def __getitem__(self, name: str) -> Mock:
        """Return the mock for ``name``, creating it on first access."""
        operation = self._operations.get(name)
        if operation is None:
            operation = Mock(name=name, return_value=None)
            self._operations[name] = operation
        return operation

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._operations))

    def record(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Record a call to ``name``.

        Returns:
            Whatever the programmed mock returns (``None`` unless a test set
            ``return_value`` or ``side_effect``).

        Raises:
            Exception: Whatever a programmed ``side_effect`` raises.
        """
        logger.debug("%s%r", name, args)
        return self[name](*args, **kwargs)

    def call_count(self, name: str) -> int:
        """Number of recorded calls to ``name`` (0 if never called)."""
        if name not in self._operations:
            return 0
        return self._operations[name].call_count

    def calls(self, name: str) -> List[Any]:
        """Recorded ``call`` objects for ``name``, oldest first."""
        if name not in self._operations:
            return []
        return list(self._operations[name].call_args_list)

    def called_with(self, name: str, *args: Any, **kwargs: Any) -> bool:
        """Whether any recorded call to ``name`` used exactly these arguments."""
        return call(*args, **kwargs) in self.calls(name)

    def reset(self, *names: str) -> None:
        """Forget recorded calls and programmed behaviour.

        Args:
            *names: Operations to reset; all operations when omitted.
        """
        targets = names or tuple(self._operations)
        for name in targets:
            operation = self._operations.get(name)
            if operation is not None:
                operation.reset_mock(return_value=True, side_effect=True)
                operation.return_value = None
