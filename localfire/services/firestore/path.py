"""
Resource and field paths.

``Path`` addresses a collection (odd segment count) or a document (even
segment count) from the database root. ``FieldPath`` addresses a field
inside a document.

Author: LocalFire Team
Date: 2026-10-19
"""

from functools import total_ordering
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from .exceptions import PathError


@total_ordering
class Path:
    """Slash-delimited resource path.

    Example:
        >>> Path.from_string("animals/ant/foodSchedule").is_collection
        True
        >>> Path(["abc", "def"]).compare_to(Path(["abc", "def", "ghi"]))
        -1
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[str]):
        """Initialize path.

        Args:
            segments: Path segments

        Raises:
            PathError: If a segment is empty or not a string
        """
        self._segments: Tuple[str, ...] = tuple(segments)
        for segment in self._segments:
            if not isinstance(segment, str) or not segment:
                raise PathError(
                    f"Invalid path segment {segment!r} in {'/'.join(map(str, self._segments))!r}",
                    path="/".join(map(str, self._segments)),
                )

    @classmethod
    def from_string(cls, path: str) -> "Path":
        """Parse a slash-delimited path.

        Raises:
            PathError: If the path is empty or has empty segments
                (leading, trailing or doubled slashes)
        """
        if not isinstance(path, str) or not path:
            raise PathError(f"Path must be a non-empty string: {path!r}", path=str(path))
        segments = path.split("/")
        if any(not segment for segment in segments):
            raise PathError(f"Path contains an empty segment: {path!r}", path=path)
        return cls(segments)

    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments

    @property
    def id(self) -> Optional[str]:
        """Last segment, or None for the root path."""
        return self._segments[-1] if self._segments else None

    @property
    def is_document(self) -> bool:
        return bool(self._segments) and len(self._segments) % 2 == 0

    @property
    def is_collection(self) -> bool:
        return len(self._segments) % 2 == 1

    @property
    def relative_name(self) -> str:
        return "/".join(self._segments)

    def parent(self) -> Optional["Path"]:
        if not self._segments:
            return None
        return Path(self._segments[:-1])

    def child(self, relative: Union[str, Sequence[str]]) -> "Path":
        """Append one segment or a relative slash path."""
        extra = Path.from_string(relative).segments if isinstance(relative, str) else tuple(relative)
        return Path(self._segments + tuple(extra))

    def compare_to(self, other: "Path") -> int:
        """Segment-wise comparison; a strict prefix sorts first.

        Returns:
            -1, 0 or 1
        """
        for mine, theirs in zip(self._segments, other._segments):
            if mine < theirs:
                return -1
            if mine > theirs:
                return 1
        if len(self._segments) < len(other._segments):
            return -1
        if len(self._segments) > len(other._segments):
            return 1
        return 0

    def is_equal(self, other: object) -> bool:
        return isinstance(other, Path) and self._segments == other._segments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self.is_equal(other)

    def __lt__(self, other: "Path") -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __str__(self) -> str:
        return self.relative_name

    def __repr__(self) -> str:
        return f"Path({self.relative_name!r})"


class FieldPath:
    """Path to a field inside a document.

    ``FieldPath("appearance", "color")`` is equivalent to the dotted string
    ``"appearance.color"``. ``FieldPath.document_id()`` addresses the
    document id rather than a stored field.
    """

    _DOCUMENT_ID: Optional["FieldPath"] = None

    def __init__(self, *segments: str):
        if not segments:
            raise PathError("FieldPath requires at least one segment")
        for segment in segments:
            if not isinstance(segment, str) or not segment:
                raise PathError(f"Invalid field path segment: {segment!r}")
        self._segments: Tuple[str, ...] = tuple(segments)

    @classmethod
    def from_dotted(cls, dotted: str) -> "FieldPath":
        if not isinstance(dotted, str) or not dotted:
            raise PathError(f"Field path must be a non-empty string: {dotted!r}")
        return cls(*dotted.split("."))

    @classmethod
    def document_id(cls) -> "FieldPath":
        """Sentinel field path for the document id (always the same instance)."""
        if cls._DOCUMENT_ID is None:
            cls._DOCUMENT_ID = cls("__name__")
        return cls._DOCUMENT_ID

    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments

    @property
    def is_document_id(self) -> bool:
        return self._segments == ("__name__",)

    def is_equal(self, other: object) -> bool:
        return isinstance(other, FieldPath) and self._segments == other._segments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldPath):
            return NotImplemented
        return self.is_equal(other)

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        return ".".join(self._segments)

    def __repr__(self) -> str:
        return f"FieldPath{self._segments!r}"


def to_field_segments(field_path: Union[str, FieldPath]) -> Tuple[str, ...]:
    """Normalize a dotted string or ``FieldPath`` into segments."""
    if isinstance(field_path, FieldPath):
        return field_path.segments
    return FieldPath.from_dotted(field_path).segments
