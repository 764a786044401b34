"""
Filter Evaluator.

Validates ``where()`` predicates and evaluates them against stored
records, resolves dotted field paths, materialises projections and
provides the total value ordering used by ``order_by``.

Evaluation rules:
- A field absent from the record matches no operator, ``!=`` included.
- A stored ``None`` is a value: it matches ``== None`` and ``!= x``.
- Range operators only compare values of the same orderable kind
  (numbers, strings, timestamps); mixed kinds never match.
- ``datetime`` and ``{seconds, nanoseconds}`` values compare as
  ``Timestamp``.

Example:
    >>> predicate = FieldFilter.create("legCount", ">=", 4)
    >>> predicate.matches("ant", {"legCount": 6})
    True

Author: LocalFire Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from .exceptions import InvalidFilterError
from .models import ID_KEY, copy_containers, normalize_value, values_equal
from .path import FieldPath, Path, to_field_segments
from .timestamp import Timestamp

logger = logging.getLogger(__name__)

EQUAL = "=="
NOT_EQUAL = "!="
LESS_THAN = "<"
LESS_THAN_OR_EQUAL = "<="
GREATER_THAN = ">"
GREATER_THAN_OR_EQUAL = ">="
ARRAY_CONTAINS = "array-contains"
ARRAY_CONTAINS_ANY = "array-contains-any"
IN = "in"
NOT_IN = "not-in"

RANGE_OPERATORS = frozenset({LESS_THAN, LESS_THAN_OR_EQUAL, GREATER_THAN, GREATER_THAN_OR_EQUAL})
LIST_OPERATORS = frozenset({ARRAY_CONTAINS_ANY, IN, NOT_IN})
NULL_REJECTING_OPERATORS = RANGE_OPERATORS | LIST_OPERATORS | {ARRAY_CONTAINS}
OPERATORS = NULL_REJECTING_OPERATORS | {EQUAL, NOT_EQUAL}

DOCUMENT_ID_SEGMENTS = FieldPath.document_id().segments

# Cross-kind ordering ranks
_NULL, _BOOL, _NUMBER, _TIMESTAMP, _STRING, _REFERENCE, _LIST, _MAP = range(8)


class _Missing:
    """Marker for a field path that resolves to nothing."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass(frozen=True)
class FieldFilter:
    """A validated ``(field, op, value)`` predicate."""

    segments: Tuple[str, ...]
    op: str
    value: Any

    @classmethod
    def create(cls, field_path: Union[str, FieldPath], op: str, value: Any) -> "FieldFilter":
        """Validate and build a filter.

        Raises:
            InvalidFilterError: Unknown operator, ``None`` with an ordering or
                membership operator, or a non-list operand where a list is
                required
        """
        segments = to_field_segments(field_path)
        field_name = ".".join(segments)

        if op not in OPERATORS:
            raise InvalidFilterError(
                f"Invalid query operator {op!r} on field {field_name!r}",
                field_path=field_name, op=op, value=value,
            )
        if value is None and op in NULL_REJECTING_OPERATORS:
            raise InvalidFilterError(
                f"Invalid query: null is not a valid operand for {op!r} on field {field_name!r}",
                field_path=field_name, op=op, value=value,
            )
        if op in LIST_OPERATORS and not isinstance(value, (list, tuple)):
            raise InvalidFilterError(
                f"Invalid query: {op!r} on field {field_name!r} requires a list operand",
                field_path=field_name, op=op, value=value,
            )
        if op in LIST_OPERATORS:
            value = list(value)
        return cls(segments, op, value)

    @property
    def field_path(self) -> str:
        return ".".join(self.segments)

    def matches(self, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Evaluate the predicate against one record."""
        actual = resolve_field(doc_id, fields, self.segments)
        if actual is MISSING:
            return False
        operand = _operand(self.value, self.segments)

        if self.op == EQUAL:
            return values_equal(actual, operand)
        if self.op == NOT_EQUAL:
            return not values_equal(actual, operand)
        if self.op in RANGE_OPERATORS:
            return _range_matches(self.op, actual, operand)
        if self.op == ARRAY_CONTAINS:
            return isinstance(actual, list) and any(values_equal(item, operand) for item in actual)
        if self.op == ARRAY_CONTAINS_ANY:
            return isinstance(actual, list) and any(
                values_equal(item, candidate) for item in actual for candidate in operand
            )
        if self.op == IN:
            return any(values_equal(actual, candidate) for candidate in operand)
        if self.op == NOT_IN:
            return not any(values_equal(actual, candidate) for candidate in operand)
        return False


def _operand(value: Any, segments: Tuple[str, ...]) -> Any:
    # Document-id filters accept references as well as ids
    if segments == DOCUMENT_ID_SEGMENTS:
        if isinstance(value, list):
            return [_reference_id(item) for item in value]
        return _reference_id(value)
    return value


def _reference_id(value: Any) -> Any:
    return value.id if _is_reference(value) else value


def _range_matches(op: str, actual: Any, operand: Any) -> bool:
    actual = normalize_value(actual)
    operand = normalize_value(operand)
    kind = _kind(actual)
    if kind not in (_NUMBER, _STRING, _TIMESTAMP) or kind != _kind(operand):
        return False
    if op == LESS_THAN:
        return actual < operand
    if op == LESS_THAN_OR_EQUAL:
        return actual <= operand
    if op == GREATER_THAN:
        return actual > operand
    return actual >= operand


def resolve_field(doc_id: str, fields: Dict[str, Any], segments: Sequence[str]) -> Any:
    """Value at ``segments`` in ``fields``, or ``MISSING``.

    Walking through a non-mapping or a missing key yields ``MISSING``. The
    document-id field path resolves to ``doc_id``, and so does ``id`` unless
    the record stores a field of that name.
    """
    segments = tuple(segments)
    if segments == DOCUMENT_ID_SEGMENTS:
        return doc_id
    if segments == (ID_KEY,) and ID_KEY not in fields:
        return doc_id
    current: Any = fields
    for segment in segments:
        if not isinstance(current, dict) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def project(fields: Dict[str, Any], field_paths: Sequence[Tuple[str, ...]]) -> Dict[str, Any]:
    """Copy only the selected field paths.

    Intermediate mappings are materialised: the first missing segment on the
    way to a leaf becomes ``{}`` and that path stops there. A missing leaf is
    left out.
    """
    result: Dict[str, Any] = {}
    for segments in field_paths:
        source: Any = fields
        target = result
        for index, segment in enumerate(segments):
            is_leaf = index == len(segments) - 1
            if not isinstance(source, dict) or segment not in source:
                if not is_leaf:
                    target.setdefault(segment, {})
                break
            if is_leaf:
                target[segment] = copy_containers(source[segment])
                break
            source = source[segment]
            nested = target.get(segment)
            if not isinstance(nested, dict):
                nested = {}
                target[segment] = nested
            target = nested
    return result


def _is_reference(value: Any) -> bool:
    return hasattr(value, "path") and hasattr(value, "firestore") and hasattr(value, "id")


def _kind(value: Any) -> int:
    if value is None:
        return _NULL
    if isinstance(value, bool):
        return _BOOL
    if isinstance(value, (int, float)):
        return _NUMBER
    if isinstance(value, Timestamp):
        return _TIMESTAMP
    if isinstance(value, str):
        return _STRING
    if _is_reference(value):
        return _REFERENCE
    if isinstance(value, list):
        return _LIST
    return _MAP


def compare_values(left: Any, right: Any) -> int:
    """Total order over stored values: kind first, then value.

    Kind order is null < bool < number < timestamp < string < reference <
    list < map.

    Returns:
        -1, 0 or 1
    """
    left = normalize_value(left)
    right = normalize_value(right)
    left_kind, right_kind = _kind(left), _kind(right)
    if left_kind != right_kind:
        return -1 if left_kind < right_kind else 1

    if left_kind == _NULL:
        return 0
    if left_kind == _REFERENCE:
        return Path.from_string(left.path).compare_to(Path.from_string(right.path))
    if left_kind == _LIST:
        for left_item, right_item in zip(left, right):
            result = compare_values(left_item, right_item)
            if result:
                return result
        return _compare_scalars(len(left), len(right))
    if left_kind == _MAP:
        for left_key, right_key in zip(sorted(left), sorted(right)):
            result = _compare_scalars(left_key, right_key) or compare_values(left[left_key], right[right_key])
            if result:
                return result
        return _compare_scalars(len(left), len(right))
    return _compare_scalars(left, right)


def _compare_scalars(left: Any, right: Any) -> int:
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def sort_records(
    records: List[Any],
    order_keys: Sequence[Tuple[Tuple[str, ...], bool]],
    resolve: Callable[[Any, Tuple[str, ...]], Any],
) -> List[Any]:
    """Stable multi-key sort.

    Args:
        records: Items to sort
        order_keys: ``(segments, descending)`` pairs, most significant first
        resolve: Returns an item's value at ``segments`` (``MISSING`` if absent)

    Returns:
        New sorted list without the items that lack any ordered field
    """
    ordered = [
        record for record in records
        if all(resolve(record, segments) is not MISSING for segments, _ in order_keys)
    ]
    for segments, descending in reversed(order_keys):
        ordered.sort(
            key=cmp_to_key(lambda a, b, s=segments: compare_values(resolve(a, s), resolve(b, s))),
            reverse=descending,
        )
    return ordered


def filter_records(
    records: List[Any],
    filters: Sequence[FieldFilter],
    resolve_fields: Callable[[Any], Tuple[str, Dict[str, Any]]],
) -> List[Any]:
    """Keep the records every filter accepts.

    Args:
        records: Items to filter
        filters: Conjunction of predicates
        resolve_fields: Returns ``(doc_id, fields)`` for an item
    """
    if not filters:
        return list(records)
    kept = []
    for record in records:
        doc_id, fields = resolve_fields(record)
        if all(predicate.matches(doc_id, fields) for predicate in filters):
            kept.append(record)
    logger.debug("Filters %s kept %d of %d records", [f.field_path for f in filters], len(kept), len(records))
    return kept
