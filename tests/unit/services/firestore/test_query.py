"""
Unit tests for the query engine.

Runs against the animals seed with query simulation enabled.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from localfire.services.firestore import (
    CollectionReference,
    DocumentReference,
    Firestore,
    InvalidArgumentError,
    InvalidFilterError,
    PathError,
    Query,
)


class TestQueryBasics:
    """Tests for reads through queries."""

    @pytest.mark.asyncio
    async def test_single_document(self, animals_db):
        """Test reading one document through a collection."""
        monkey = await animals_db.collection("animals").doc("monkey").get()

        assert monkey.exists
        assert animals_db.log.called_with("collection", "animals")
        assert animals_db.log.called_with("doc", "monkey")
        assert animals_db.log.call_count("get") == 1

    @pytest.mark.asyncio
    async def test_null_values(self, animals_db):
        """Test matching a stored None."""
        result = await animals_db.collection("animals").where("legCount", "==", None).get()

        assert [doc.id for doc in result.docs] == ["worm"]

    @pytest.mark.asyncio
    async def test_false_values(self, animals_db):
        """Test matching a stored False."""
        result = await animals_db.collection("animals").where("food", "==", False).get()

        assert [doc.id for doc in result.docs] == ["pogo-stick"]

    @pytest.mark.asyncio
    async def test_nested_values(self, animals_db):
        """Test filtering on a dotted field path."""
        result = await animals_db.collection("animals").where("appearance.color", "==", "brown").get()

        assert [doc.id for doc in result.docs] == ["cow"]

    @pytest.mark.asyncio
    async def test_date_equality(self, animals_db):
        """Test comparing stored Timestamps with a datetime."""
        date = datetime.fromtimestamp(1628939129, tz=timezone.utc)

        result = await animals_db.collection("animals").where("createdAt", "==", date).get()

        assert [doc.id for doc in result.docs] == ["elephant"]

    @pytest.mark.asyncio
    async def test_date_greater_than(self, animals_db):
        """Test a range filter over dates keeps insertion order."""
        date = datetime.fromtimestamp(1628939129, tz=timezone.utc)

        result = await animals_db.collection("animals").where("createdAt", ">", date).get()

        assert [doc.id for doc in result.docs] == ["chicken", "ant"]

    @pytest.mark.asyncio
    async def test_multiple_documents(self, animals_db):
        """Test a filter returning several documents."""
        animals = await animals_db.collection("animals").where("type", "==", "mammal").get()

        assert animals.size == 2
        assert len(animals) == 2
        assert not animals.empty
        seen = []
        animals.for_each(lambda doc: seen.append(doc.exists))
        assert seen == [True, True]
        animals_db.log["where"].assert_called_once_with("type", "==", "mammal")

    @pytest.mark.asyncio
    async def test_subcollection_filter(self, animals_db):
        """Test filtering a subcollection."""
        schedule = await (
            animals_db.collection("animals").doc("ant").collection("foodSchedule")
            .where("interval", "==", "daily").get()
        )

        assert schedule.size == 1
        assert animals_db.log.called_with("collection", "foodSchedule")

    @pytest.mark.asyncio
    async def test_subcollection_comparison(self, animals_db):
        """Test a range filter in a subcollection and the produced references."""
        schedule = await (
            animals_db.collection("animals").doc("chicken").collection("foodSchedule")
            .where("interval", "<=", "hourly").get()
        )

        doc = schedule.docs[0]
        assert schedule.size == 1
        assert isinstance(doc.ref, DocumentReference)
        assert doc.id == "leaf"
        assert doc.data()["interval"] == "hourly"
        assert doc.ref.path == "animals/chicken/foodSchedule/leaf"

    @pytest.mark.asyncio
    async def test_where_on_id(self, animals_db):
        """Test that the id field matches the document id."""
        result = await animals_db.collection("animals").where("id", "==", "cow").get()

        assert [doc.id for doc in result.docs] == ["cow"]
        assert "id" not in result.docs[0].data()


class TestProjection:
    """Tests for select()."""

    @pytest.mark.asyncio
    async def test_select_nested(self, animals_db):
        """Test selecting one nested field."""
        result = await animals_db.collection("animals").where("id", "==", "cow").select("appearance.color").get()

        cow = result.docs[0]
        assert cow.data() == {"appearance": {"color": "brown"}}
        assert cow.get("appearance") == {"color": "brown"}
        assert cow.get("appearance.color") == "brown"

    @pytest.mark.asyncio
    async def test_select_missing_nested(self, animals_db):
        """Test that a missing intermediate becomes an empty mapping."""
        result = await (
            animals_db.collection("animals").where("id", "==", "cow").select("size.height.shoulder").get()
        )

        assert result.docs[0].data()["size"] == {}

    @pytest.mark.asyncio
    async def test_select_many(self, animals_db):
        """Test selecting several nested fields."""
        result = await (
            animals_db.collection("animals").where("id", "==", "cow")
            .select("appearance.color", "appearance.size").get()
        )

        assert result.docs[0].data()["appearance"] == {"color": "brown", "size": "large"}

    @pytest.mark.asyncio
    async def test_select_nothing(self, animals_db):
        """Test that an empty projection yields empty data."""
        result = await animals_db.collection("foodSchedule").select().get()

        assert [doc.data() for doc in result.docs] == [{}, {}]
        animals_db.log["select"].assert_called_once_with()


class TestCollectionGroup:
    """Tests for collection-group queries."""

    @pytest.mark.asyncio
    async def test_union_across_depths(self, animals_db):
        """Test that every collection of the name is included with its true path."""
        result = await animals_db.collection_group("foodSchedule").get()

        assert result.size == 8
        assert sorted(doc.ref.path for doc in result.docs) == sorted([
            "nested/collections/have/lots/of/applications/foodSchedule/layer4_a",
            "nested/collections/have/lots/of/applications/foodSchedule/layer4_b",
            "animals/ant/foodSchedule/leaf",
            "animals/ant/foodSchedule/peanut",
            "animals/chicken/foodSchedule/leaf",
            "animals/chicken/foodSchedule/nut",
            "foodSchedule/ants",
            "foodSchedule/cows",
        ])
        animals_db.log["collection_group"].assert_called_once_with("foodSchedule")
        assert animals_db.log.call_count("get") == 1

    @pytest.mark.asyncio
    async def test_filtered_group(self, animals_db):
        """Test filtering after the union."""
        result = await animals_db.collection_group("foodSchedule").where("interval", "==", "daily").get()

        assert sorted(doc.ref.path for doc in result.docs) == [
            "animals/ant/foodSchedule/leaf",
            "foodSchedule/ants",
            "nested/collections/have/lots/of/applications/foodSchedule/layer4_a",
        ]

    @pytest.mark.parametrize("collection_id", ["", "animals/ant"])
    def test_invalid_group_id(self, animals_db, collection_id):
        """Test that group ids must be plain names."""
        with pytest.raises(PathError) as exc_info:
            animals_db.collection_group(collection_id)
        assert exc_info.value.error_code == "invalid-argument"


class TestBuilders:
    """Tests for builder identity and validation."""

    def test_builders_return_same_instance(self, animals_db):
        """Test that builders mutate and return the same query."""
        ref = animals_db.collection("animals")
        other = animals_db.collection("elsewise")

        for result in (
            ref.where("type", "==", "mammal"),
            ref.limit(1),
            ref.order_by("type"),
            ref.start_after(None),
            ref.start_at(None),
            ref.end_at("z"),
            ref.end_before("z"),
            ref.offset(0),
            ref.select("name"),
        ):
            assert result is ref
            assert result is not other
            assert isinstance(result, Query)

    @pytest.mark.parametrize(
        "op", ["<", "<=", ">", ">=", "array-contains", "array-contains-any", "in", "not-in"]
    )
    def test_where_none_raises(self, animals_db, op):
        """Test that None is rejected synchronously."""
        with pytest.raises(InvalidFilterError):
            animals_db.collection("animals").where("legCount", op, None)

    def test_where_equality_none_allowed(self, animals_db):
        """Test that == None and != None are accepted."""
        animals_db.collection("animals").where("legCount", "==", None)
        animals_db.collection("animals").where("legCount", "!=", None)

    def test_order_by_records_arguments(self, animals_db):
        """Test that order_by records exactly what was passed."""
        query = animals_db.collection("animals")

        query.order_by("name")
        query.order_by("legCount", Query.DESCENDING)

        assert animals_db.log.calls("order_by")[0].args == ("name",)
        assert animals_db.log.calls("order_by")[1].args == ("legCount", "DESCENDING")

    def test_invalid_direction(self, animals_db):
        """Test that an unknown direction is rejected."""
        with pytest.raises(InvalidArgumentError):
            animals_db.collection("animals").order_by("name", "sideways")

    @pytest.mark.parametrize("count", [-1, 1.5, True, "2"])
    def test_invalid_limit(self, animals_db, count):
        """Test that limit and offset need a non-negative integer."""
        with pytest.raises(InvalidArgumentError):
            animals_db.collection("animals").limit(count)
        with pytest.raises(InvalidArgumentError):
            animals_db.collection("animals").offset(count)

    def test_programmed_builder_failure(self, animals_db):
        """Test that a side effect on a builder raises at the call."""
        animals_db.log["where"].side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            animals_db.collection("animals").where("type", "==", "mammal")


class TestOrderLimitOffset:
    """Tests for ordering, limit and offset."""

    @pytest.mark.asyncio
    async def test_order_ascending_excludes_missing(self, animals_db):
        """Test ascending order; documents without the field drop out."""
        result = await animals_db.collection("animals").order_by("legCount").get()

        assert [doc.id for doc in result.docs] == ["worm", "monkey", "chicken", "elephant", "ant"]

    @pytest.mark.asyncio
    async def test_order_descending_multi_key(self, animals_db):
        """Test descending order with a tie broken by a second key."""
        result = await (
            animals_db.collection("animals").where("type", "in", ["mammal", "bird"])
            .order_by("legCount", "desc").order_by("name").get()
        )

        assert [doc.id for doc in result.docs] == ["elephant", "chicken", "monkey"]

    @pytest.mark.asyncio
    async def test_offset_then_limit(self, animals_db):
        """Test that offset applies before limit."""
        result = await animals_db.collection("animals").order_by("name").offset(1).limit(2).get()

        assert [doc.id for doc in result.docs] == ["chicken", "cow"]
        animals_db.log["offset"].assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_offset_past_end(self, animals_db):
        """Test an offset beyond the results."""
        result = await animals_db.collection("animals").where("type", "==", "mammal").offset(2).get()

        assert result.empty

    @pytest.mark.asyncio
    async def test_cursors_are_recorded_only(self, animals_db):
        """Test that cursor builders do not change results."""
        query = animals_db.collection("foodSchedule").order_by("interval").start_after("daily")

        result = await query.get()

        assert result.size == 2
        animals_db.log["start_after"].assert_called_once_with("daily")

    @pytest.mark.asyncio
    async def test_count(self, animals_db):
        """Test the count aggregate."""
        count = await animals_db.collection("animals").where("type", "==", "mammal").count()

        assert count == 2
        assert animals_db.log.call_count("count") == 1

    @pytest.mark.asyncio
    async def test_stream(self, animals_db):
        """Test streaming document snapshots."""
        ids = [doc.id async for doc in animals_db.collection("foodSchedule").stream()]

        assert ids == ["ants", "cows"]


class TestOperatorCounts:
    """Tests for operator results over the seed."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("op,value,count", [
        ("==", 2, 2), ("==", 7, 0), ("!=", 7, 5), ("!=", 4, 4),
        (">", 1, 4), (">", 6, 0), (">=", 6, 1), ("<", 2, 0), ("<", 6, 3),
        ("<=", 2, 2), ("<=", 6, 4), ("in", [6, 2], 3), ("not-in", [6, 2], 2),
        ("not-in", [4], 4), ("not-in", [7], 5),
    ])
    async def test_number_values(self, animals_db, op, value, count):
        """Test number comparisons, with None and missing values present."""
        result = await animals_db.collection("animals").where("legCount", op, value).get()

        assert result.size == count

    @pytest.mark.asyncio
    @pytest.mark.parametrize("op,value,count", [
        ("==", 0, 1), (">", -1, 4), (">", 0, 3), ("<", 2, 2), ("<=", 2, 3),
        ("in", [2, 0], 2), ("not-in", [2, 0], 2),
    ])
    async def test_number_values_with_zero(self, animals_db, op, value, count):
        """Test that zero behaves as an ordinary number."""
        result = await animals_db.collection("animals").where("foodCount", op, value).get()

        assert result.size == count

    @pytest.mark.asyncio
    @pytest.mark.parametrize("op,value,count", [
        ("==", "mammal", 2), ("!=", "bird", 3), (">", "insect", 2), (">=", "insect", 3),
        ("<", "mammal", 2), ("<=", "bird", 1), ("in", ["a", "bird", "mammal"], 3),
        ("not-in", ["a", "bird", "mammal"], 1),
    ])
    async def test_string_values(self, animals_db, op, value, count):
        """Test string comparisons."""
        result = await animals_db.collection("animals").where("type", op, value).get()

        assert result.size == count

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,op,value,count", [
        ("food", "==", ["banana", "mango"], 1),
        ("food", "==", ["mango", "banana"], 0),
        ("food", "!=", ["banana", "peanut"], 4),
        ("food", "array-contains", "banana", 2),
        ("food", "array-contains", "bread", 1),
        ("food", "array-contains-any", ["banana", "mango", "peanut"], 2),
        ("foodEaten", "array-contains", 0, 1),
        ("foodEaten", "array-contains", 500, 2),
        ("foodEaten", "array-contains-any", [0, 11, 500], 2),
    ])
    async def test_array_values(self, animals_db, field, op, value, count):
        """Test array operators, including zero elements."""
        result = await animals_db.collection("animals").where(field, op, value).get()

        assert result.size == count


class TestUnsimulated:
    """Tests for the default mode where filters are only recorded."""

    @pytest.mark.asyncio
    async def test_filters_not_applied(self, animals_seed):
        """Test that every document comes back when simulation is off."""
        db = Firestore(animals_seed)

        result = await db.collection("animals").where("type", "==", "mammal").limit(1).get()

        assert result.size == 7
        db.log["where"].assert_called_once_with("type", "==", "mammal")
        db.log["limit"].assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_projection_still_applied(self, animals_seed):
        """Test that select applies regardless of simulation."""
        db = Firestore(animals_seed)

        result = await db.collection("foodSchedule").select("interval").get()

        assert result.docs[0].data() == {"interval": "daily"}


class TestConverter:
    """Tests for with_converter on queries."""

    @pytest.mark.asyncio
    async def test_query_converter(self, animals_db):
        """Test that results carry the converter."""
        class Converter:
            def to_firestore(self, value):
                return value

            def from_firestore(self, snapshot):
                return ("schedule", snapshot.get("interval"))

        converter = Converter()
        collection = animals_db.collection("foodSchedule")

        converted = collection.with_converter(converter)
        result = await converted.get()

        assert isinstance(converted, CollectionReference)
        assert converted is not collection
        assert collection.converter is None
        assert [doc.to_object() for doc in result.docs] == [("schedule", "daily"), ("schedule", "twice daily")]
        animals_db.log["with_converter"].assert_called_once_with(converter)


class TestQueryOnSnapshot:
    """Tests for query listeners."""

    @pytest.mark.asyncio
    async def test_delivers_once(self, animals_db):
        """Test one asynchronous delivery with document changes."""
        received = []
        query = animals_db.collection("animals").where("type", "==", "mammal")

        unsubscribe = query.on_snapshot(received.append)
        assert received == []
        await asyncio.sleep(0)

        assert len(received) == 1
        snapshot = received[0]
        assert [change.type for change in snapshot.doc_changes()] == ["added", "added"]
        assert [change.new_index for change in snapshot.doc_changes()] == [0, 1]
        assert animals_db.log.call_count("query_on_snapshot") == 1
        assert animals_db.log.call_count("on_snapshot") == 0

        unsubscribe()
        assert animals_db.log.call_count("query_on_snapshot_unsubscribe") == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_before_delivery(self, animals_db):
        """Test that unsubscribing first cancels the delivery."""
        received = []

        unsubscribe = animals_db.collection("animals").on_snapshot(received.append)
        unsubscribe()
        await asyncio.sleep(0)

        assert received == []

    @pytest.mark.asyncio
    async def test_error_callback(self, animals_db):
        """Test that a failing read reaches the error callback."""
        received, errors = [], []
        animals_db.log["timestamp_now"].side_effect = RuntimeError("clock broke")

        animals_db.collection("animals").on_snapshot(received.append, errors.append)
        await asyncio.sleep(0)

        assert received == []
        assert str(errors[0]) == "clock broke"
