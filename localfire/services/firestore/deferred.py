"""
Settled awaitable results.

Store operations apply their effects before returning, then hand back a
``Deferred`` that is already resolved or rejected. Awaiting it yields the
value or raises the error; callers that never await still observe the
effect.
"""

import logging
from typing import Any, Callable, Generator, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deferred(Generic[T]):
    """Already-settled awaitable.

    Example:
        >>> snapshot = await ref.get()
        >>> ref.set({"name": "ant"})  # applied even without await
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[BaseException] = None):
        self._value = value
        self._error = error

    @classmethod
    def resolved(cls, value: T) -> "Deferred[T]":
        return cls(value=value)

    @classmethod
    def rejected(cls, error: BaseException) -> "Deferred[Any]":
        logger.debug("Rejecting deferred result: %r", error)
        return cls(error=error)

    @classmethod
    def call(cls, func: Callable[..., T], *args: Any, **kwargs: Any) -> "Deferred[T]":
        """Run ``func`` now and settle with its outcome.

        Exceptions raised by ``func`` reject the result instead of
        propagating, matching how a failed request surfaces on await.
        """
        try:
            return cls.resolved(func(*args, **kwargs))
        except Exception as exc:
            return cls.rejected(exc)

    @property
    def rejected_with(self) -> Optional[BaseException]:
        return self._error

    def result(self) -> T:
        """Synchronous access: the value, or raise the error."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def __await__(self) -> Generator[Any, None, T]:
        return self.result()
        yield  # pragma: no cover

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Deferred(rejected={self._error!r})"
        return f"Deferred(resolved={self._value!r})"
