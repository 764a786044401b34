"""
Unit tests for FieldValue sentinels.
"""

import pytest

from localfire.services.firestore.field_value import (
    FieldValue,
    apply_field_update,
    resolve_sentinels,
)
from localfire.services.firestore.timestamp import Timestamp

NOW = Timestamp(1700000000, 0)


class TestFieldValue:
    """Tests for sentinel construction and comparison."""

    def test_types(self):
        """Test the sentinel type names."""
        assert FieldValue.array_union(["a"]).type == "arrayUnion"
        assert FieldValue.array_remove(["a"]).type == "arrayRemove"
        assert FieldValue.increment(2).type == "increment"
        assert FieldValue.server_timestamp().type == "serverTimestamp"
        assert FieldValue.delete().type == "delete"

    def test_single_element_becomes_list(self):
        """Test that a bare element is wrapped."""
        assert FieldValue.array_union("a").value == ["a"]
        assert FieldValue.array_remove().value == []

    def test_is_equal(self):
        """Test equality by type and operand."""
        assert FieldValue.increment(1).is_equal(FieldValue.increment(1))
        assert not FieldValue.increment(1).is_equal(FieldValue.increment(2))
        assert not FieldValue.increment(1).is_equal(FieldValue.array_union([1]))
        assert FieldValue.delete() == FieldValue.delete()

    def test_unhashable(self):
        """Test that sentinels cannot be hashed."""
        with pytest.raises(TypeError):
            hash(FieldValue.delete())


class TestTransform:
    """Tests for resolving a sentinel against a stored value."""

    def test_increment(self):
        """Test increment over a number and over nothing."""
        assert FieldValue.increment(2).transform(5, NOW) == 7
        assert FieldValue.increment(1.5).transform(None, NOW) == 1.5
        assert FieldValue.increment(1).transform("five", NOW) == 1

    def test_array_union(self):
        """Test that union appends only missing elements."""
        result = FieldValue.array_union(["leaf", "bread", "nut"]).transform(["leaf", "bread"], NOW)

        assert result == ["leaf", "bread", "nut"]
        assert FieldValue.array_union([0]).transform(None, NOW) == [0]

    def test_array_union_keeps_bool_and_number_apart(self):
        """Test that False is not considered equal to 0."""
        assert FieldValue.array_union([False]).transform([0], NOW) == [0, False]

    def test_array_remove(self):
        """Test that remove drops every equal element."""
        assert FieldValue.array_remove(["leaf"]).transform(["leaf", "nut", "leaf"], NOW) == ["nut"]
        assert FieldValue.array_remove(["leaf"]).transform("leaf", NOW) == []

    def test_server_timestamp(self):
        """Test that the store clock is used."""
        assert FieldValue.server_timestamp().transform(None, NOW) == NOW

    def test_delete_has_no_value(self):
        """Test that delete cannot be transformed."""
        with pytest.raises(ValueError):
            FieldValue.delete().transform(1, NOW)


class TestResolveSentinels:
    """Tests for resolving a whole write payload."""

    def test_resolve_nested(self):
        """Test sentinels inside nested mappings."""
        data = {
            "visits": FieldValue.increment(1),
            "stats": {"eaten": FieldValue.array_union([3])},
            "name": "ant",
            "gone": FieldValue.delete(),
        }
        existing = {"visits": 4, "stats": {"eaten": [1, 2]}}

        resolved, deleted = resolve_sentinels(data, existing, NOW)

        assert resolved == {"visits": 5, "stats": {"eaten": [1, 2, 3]}, "name": "ant"}
        assert deleted == {"gone"}

    def test_payload_is_copied(self):
        """Test that resolved lists do not alias the caller's lists."""
        food = ["leaf"]

        resolved, _ = resolve_sentinels({"food": food}, None, NOW)
        food.append("nut")

        assert resolved["food"] == ["leaf"]


class TestApplyFieldUpdate:
    """Tests for dotted-path updates."""

    def test_nested_set_keeps_siblings(self):
        """Test that a nested update leaves siblings alone."""
        fields = {"address": {"street": "742 Evergreen Terrace", "city": "Springfield"}}

        apply_field_update(fields, ("address", "street"), "744 Evergreen Terrace", NOW)

        assert fields == {"address": {"street": "744 Evergreen Terrace", "city": "Springfield"}}

    def test_creates_intermediates(self):
        """Test that missing or non-mapping intermediates become mappings."""
        fields = {"address": "unknown"}

        apply_field_update(fields, ("address", "geo", "lat"), 1.5, NOW)

        assert fields == {"address": {"geo": {"lat": 1.5}}}

    def test_sentinels(self):
        """Test increment and delete at a nested leaf."""
        fields = {"stats": {"visits": 1, "old": True}}

        apply_field_update(fields, ("stats", "visits"), FieldValue.increment(2), NOW)
        apply_field_update(fields, ("stats", "old"), FieldValue.delete(), NOW)

        assert fields == {"stats": {"visits": 3}}
