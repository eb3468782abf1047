"""
Tests for the blocking generic repository against an in-memory MongoDB.

Covers:
- Identifier assignment on insert
- Pagination totals, ordering and out-of-range pages
- Lookups by filter, projection and identifier
- Updates, replacement and deletion
"""

import math
import types
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo.errors import ServerSelectionTimeoutError

from mongorepo.models.query import Field, Projection
from mongorepo.models.update import Update, UpdateOptions
from mongorepo.repositories.generic_repo import MongoRepository
from tests.conftest import Gadget, Person


class PersonName(BaseModel):
    name: str


def seed(repo, count):
    people = [Person(name=f"person-{i}", age=i) for i in range(count)]
    repo.insert_many(reversed(people))
    return people


class TestConstruction:
    """Test collection binding and connection checks."""

    def test_collection_from_entity_mapping(self, people_repo):
        assert people_repo.collection_name == "people"
        assert people_repo.collection.name == "people"

    def test_collection_falls_back_to_type_name(self, settings, mongo_client):
        repo = MongoRepository(settings, Gadget, client=mongo_client)
        assert repo.collection_name == "Gadget"

    def test_explicit_collection_override(self, settings, mongo_client):
        repo = MongoRepository(settings, Person, collection_name="staff", client=mongo_client)
        assert repo.collection_name == "staff"

    def test_pings_when_verification_enabled(self, settings):
        client = MagicMock()
        MongoRepository(settings.model_copy(update={"verify_connection": True}), Person, client=client)
        client.admin.command.assert_called_once_with("ping")

    def test_connection_failure_propagates(self, settings):
        client = MagicMock()
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        with pytest.raises(ServerSelectionTimeoutError):
            MongoRepository(settings.model_copy(update={"verify_connection": True}), Person, client=client)


class TestInsertAndRead:
    """Test inserts and bulk reads."""

    def test_insert_assigns_unique_ids(self, people_repo):
        people = [Person(name=f"p{i}") for i in range(10)]
        for person in people[:5]:
            people_repo.insert_one(person)
        people_repo.insert_many(people[5:])

        ids = [person.id for person in people]
        assert all(ids)
        assert len(set(ids)) == 10
        assert all(ObjectId.is_valid(value) for value in ids)
        assert people_repo.collection.count_documents({}) == 10

    def test_insert_keeps_preset_id(self, people_repo):
        preset = str(ObjectId())
        people_repo.insert_one(Person(id=preset, name="fixed"))
        assert people_repo.find_by_id(preset).name == "fixed"

    def test_read_all_returns_entities(self, people_repo):
        seed(people_repo, 3)
        people = people_repo.read_all()
        assert len(people) == 3
        assert all(isinstance(person, Person) for person in people)
        assert all(person.id for person in people)

    def test_iter_all_is_lazy(self, people_repo):
        seed(people_repo, 2)
        result = people_repo.iter_all()
        assert isinstance(result, types.GeneratorType)
        assert {person.name for person in result} == {"person-0", "person-1"}


class TestPagination:
    """Test server-side pagination."""

    @pytest.mark.parametrize("count,page_size", [(5, 2), (6, 3), (1, 4), (7, 1)])
    def test_pages_cover_sorted_collection_once(self, people_repo, count, page_size):
        seed(people_repo, count)
        expected_pages = math.ceil(count / page_size)

        collected = []
        for page_index in range(expected_pages):
            page = people_repo.paginate(page_index, page_size, "age")
            assert page.total_pages == expected_pages
            assert len(page.items) <= page_size
            collected.extend(page.items)

        assert [person.age for person in collected] == list(range(count))

    def test_out_of_range_page_is_empty(self, people_repo):
        seed(people_repo, 5)
        total_pages, items = people_repo.paginate(5, 2, "age")
        assert total_pages == 3
        assert items == []

    def test_empty_collection_has_no_pages(self, people_repo):
        page = people_repo.paginate(0, 10, "age")
        assert page.total_pages == 0
        assert page.items == []

    def test_pagination_with_filter(self, people_repo):
        seed(people_repo, 6)
        page = people_repo.paginate(0, 2, "age", Field("age").gte(2))
        assert page.total_pages == 2
        assert [person.age for person in page.items] == [2, 3]


class TestLookups:
    """Test filtered reads and single-document lookups."""

    def test_filter_by(self, people_repo):
        seed(people_repo, 5)
        result = people_repo.filter_by(Field("age").gt(1) & Field("age").lt(4))
        assert sorted(person.age for person in result) == [2, 3]

    def test_filter_by_raw_query(self, people_repo):
        seed(people_repo, 5)
        result = list(people_repo.filter_by({"age": {"$in": [0, 4]}}))
        assert sorted(person.age for person in result) == [0, 4]

    def test_filter_by_with_model_projection(self, people_repo):
        seed(people_repo, 2)
        names = list(people_repo.filter_by(Field("age").eq(1), PersonName))
        assert names == [PersonName(name="person-1")]

    def test_filter_by_with_field_projection(self, people_repo):
        seed(people_repo, 1)
        documents = list(people_repo.filter_by(None, Projection(include=("name",))))
        assert documents[0]["name"] == "person-0"
        assert "age" not in documents[0]

    def test_find_one(self, people_repo):
        seed(people_repo, 3)
        person = people_repo.find_one(Field("name").eq("person-2"))
        assert person.age == 2

    def test_find_one_missing_returns_none(self, people_repo):
        assert people_repo.find_one(Field("name").eq("nobody")) is None

    def test_find_one_with_projection(self, people_repo):
        seed(people_repo, 1)
        assert people_repo.find_one(Field("age").eq(0), PersonName).name == "person-0"

    def test_find_by_id(self, people_repo):
        person = Person(name="ann", age=30)
        people_repo.insert_one(person)
        found = people_repo.find_by_id(person.id)
        assert found.id == person.id
        assert found.name == "ann"

    def test_find_by_unknown_id_returns_none(self, people_repo):
        assert people_repo.find_by_id(str(ObjectId())) is None

    def test_find_by_malformed_id_raises(self, people_repo):
        with pytest.raises(InvalidId):
            people_repo.find_by_id("not-an-object-id")


class TestWrites:
    """Test updates, replacement and deletion."""

    def test_update_one(self, people_repo):
        person = Person(name="ann", age=30)
        people_repo.insert_one(person)
        people_repo.update_one(Field("id").eq(person.id), Update().inc("age", 1).push("tags", "vip"))

        updated = people_repo.find_by_id(person.id)
        assert updated.age == 31
        assert updated.tags == ["vip"]

    def test_update_one_with_upsert(self, people_repo):
        people_repo.update_one(
            {"name": "zed"},
            Update().set("age", 9),
            UpdateOptions(upsert=True),
        )
        assert people_repo.find_one(Field("name").eq("zed")).age == 9

    def test_update_many(self, people_repo):
        seed(people_repo, 4)
        people_repo.update_many(Field("age").gte(2), {"$set": {"tags": ["senior"]}})
        seniors = list(people_repo.filter_by({"tags": "senior"}))
        assert sorted(person.age for person in seniors) == [2, 3]

    def test_replace_one_returns_previous(self, people_repo):
        person = Person(name="ann", age=30)
        people_repo.insert_one(person)

        replacement = Person(id=person.id, name="anne", age=31)
        previous = people_repo.replace_one(replacement)

        assert previous.name == "ann"
        assert people_repo.find_by_id(person.id).name == "anne"

    def test_replace_after_delete_returns_none(self, people_repo):
        person = Person(name="ann")
        people_repo.insert_one(person)
        people_repo.delete_by_id(person.id)
        assert people_repo.replace_one(person) is None
        assert people_repo.find_by_id(person.id) is None

    def test_delete_by_id_twice(self, people_repo):
        person = Person(name="ann")
        people_repo.insert_one(person)

        assert people_repo.delete_by_id(person.id).name == "ann"
        assert people_repo.delete_by_id(person.id) is None

    def test_find_one_and_delete(self, people_repo):
        seed(people_repo, 2)
        removed = people_repo.find_one_and_delete(Field("age").eq(1))
        assert removed.name == "person-1"
        assert people_repo.find_one(Field("age").eq(1)) is None

    def test_delete_one_and_many(self, people_repo):
        seed(people_repo, 5)
        people_repo.delete_one(Field("age").eq(0))
        assert people_repo.collection.count_documents({}) == 4

        people_repo.delete_many(~Field("age").lt(3))
        assert sorted(person.age for person in people_repo.read_all()) == [1, 2]

    def test_insert_many_empty_batch_is_noop(self, people_repo):
        people_repo.insert_many([])
        assert people_repo.collection.count_documents({}) == 0


class TestTimestamps:
    """Test that creation timestamps keep their time zone through the store."""

    def test_created_at_read_back_as_utc(self, people_repo):
        person = Person(name="ann")
        people_repo.insert_one(person)

        found = people_repo.find_by_id(person.id)

        assert found.created_at.tzinfo is not None
        assert found.created_at.utcoffset().total_seconds() == 0
        assert abs((found.created_at - person.created_at).total_seconds()) < 0.01


class TestDuplicateSortKeys:
    """Test pagination when many documents share the sort key."""

    def test_pages_cover_each_document_once(self, people_repo):
        people = [Person(name=f"person-{i}", age=i // 3) for i in range(8)]
        people_repo.insert_many(people)

        first = people_repo.paginate(0, 3, "age")
        collected = list(first.items)
        for page_index in range(1, first.total_pages):
            collected.extend(people_repo.paginate(page_index, 3, "age").items)

        ids = [person.id for person in collected]
        assert first.total_pages == 3
        assert len(ids) == 8
        assert set(ids) == {person.id for person in people}
        assert [(person.age, ObjectId(person.id)) for person in collected] == sorted(
            (person.age, ObjectId(person.id)) for person in collected
        )


class TestOwnedClient:
    """Test closing of clients the repository opened itself."""

    def test_failed_ping_closes_created_client(self, settings, monkeypatch):
        client = MagicMock()
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        monkeypatch.setattr(
            "mongorepo.repositories.generic_repo.create_client", MagicMock(return_value=client)
        )

        with pytest.raises(ServerSelectionTimeoutError):
            MongoRepository(settings.model_copy(update={"verify_connection": True}), Person)

        client.close.assert_called_once()

    def test_failed_ping_leaves_injected_client_open(self, settings):
        client = MagicMock()
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(ServerSelectionTimeoutError):
            MongoRepository(settings.model_copy(update={"verify_connection": True}), Person, client=client)

        client.close.assert_not_called()
