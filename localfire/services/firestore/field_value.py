"""
FieldValue sentinels.

Write-side markers that are resolved against the value already stored at
the same field when a write is applied.

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from .models import copy_containers, values_equal
from .timestamp import Timestamp

logger = logging.getLogger(__name__)

ARRAY_UNION = "arrayUnion"
ARRAY_REMOVE = "arrayRemove"
INCREMENT = "increment"
SERVER_TIMESTAMP = "serverTimestamp"
DELETE = "delete"


class FieldValue:
    """Sentinel value.

    Attributes:
        type: One of ``arrayUnion``, ``arrayRemove``, ``increment``,
            ``serverTimestamp``, ``delete``
        value: Operand (elements for array operations, amount for increment)
    """

    def __init__(self, type: str, value: Any = None):
        self.type = type
        self.value = value

    @classmethod
    def array_union(cls, elements: Any = None) -> "FieldValue":
        return cls(ARRAY_UNION, _as_list(elements))

    @classmethod
    def array_remove(cls, elements: Any = None) -> "FieldValue":
        return cls(ARRAY_REMOVE, _as_list(elements))

    @classmethod
    def increment(cls, amount: Any = 1) -> "FieldValue":
        return cls(INCREMENT, amount)

    @classmethod
    def server_timestamp(cls) -> "FieldValue":
        return cls(SERVER_TIMESTAMP)

    @classmethod
    def delete(cls) -> "FieldValue":
        return cls(DELETE)

    @property
    def is_delete(self) -> bool:
        return self.type == DELETE

    def is_equal(self, other: Any) -> bool:
        return (
            isinstance(other, FieldValue)
            and self.type == other.type
            and values_equal(self.value, other.value)
        )

    def transform(self, existing: Any, now: Timestamp) -> Any:
        """Value this sentinel produces over ``existing``.

        Args:
            existing: Currently stored value (None when absent)
            now: Store clock, used by ``serverTimestamp``

        Returns:
            Resolved value

        Raises:
            ValueError: For ``delete``, which has no value
        """
        if self.type == INCREMENT:
            if _is_number(existing):
                return existing + self.value
            return self.value
        if self.type == ARRAY_UNION:
            result = list(existing) if isinstance(existing, list) else []
            for element in self.value:
                if not any(values_equal(element, current) for current in result):
                    result.append(copy_containers(element))
            return result
        if self.type == ARRAY_REMOVE:
            if not isinstance(existing, list):
                return []
            return [
                current for current in existing
                if not any(values_equal(current, element) for element in self.value)
            ]
        if self.type == SERVER_TIMESTAMP:
            return now
        raise ValueError(f"FieldValue.{self.type}() does not produce a value")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldValue):
            return NotImplemented
        return self.is_equal(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FieldValue({self.type!r}, {self.value!r})"


def _as_list(elements: Any) -> List[Any]:
    if elements is None:
        return []
    if isinstance(elements, (list, tuple)):
        return list(elements)
    return [elements]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_sentinels(
    data: Dict[str, Any],
    existing: Optional[Dict[str, Any]],
    now: Timestamp,
) -> Tuple[Dict[str, Any], Set[str]]:
    """Resolve every sentinel in ``data`` against ``existing``.

    Nested mappings are resolved against the nested existing mapping at the
    same key. Plain values are deep-copied so the stored record never
    aliases caller data.

    Args:
        data: Write payload
        existing: Stored fields at the same level (None when absent)
        now: Store clock

    Returns:
        ``(resolved, deleted_keys)``: the payload without ``delete``
        sentinels, and the keys those sentinels named
    """
    existing = existing or {}
    resolved: Dict[str, Any] = {}
    deleted: Set[str] = set()

    for key, value in data.items():
        if isinstance(value, FieldValue):
            if value.is_delete:
                deleted.add(key)
                continue
            resolved[key] = value.transform(existing.get(key), now)
        elif isinstance(value, dict):
            nested_existing = existing.get(key)
            nested, _ = resolve_sentinels(
                value, nested_existing if isinstance(nested_existing, dict) else None, now
            )
            resolved[key] = nested
        else:
            resolved[key] = copy_containers(value)
    return resolved, deleted


def apply_field_update(
    fields: Dict[str, Any], segments: Tuple[str, ...], value: Any, now: Timestamp
) -> None:
    """Set (or delete) the nested field at ``segments`` in place.

    Intermediate mappings are created; a non-mapping intermediate is
    replaced by a mapping.
    """
    target = fields
    for segment in segments[:-1]:
        child = target.get(segment)
        if not isinstance(child, dict):
            child = {}
            target[segment] = child
        target = child

    leaf = segments[-1]
    if isinstance(value, FieldValue):
        if value.is_delete:
            target.pop(leaf, None)
        else:
            target[leaf] = value.transform(target.get(leaf), now)
    elif isinstance(value, dict):
        existing = target.get(leaf)
        resolved, _ = resolve_sentinels(value, existing if isinstance(existing, dict) else None, now)
        target[leaf] = resolved
    else:
        target[leaf] = copy_containers(value)
