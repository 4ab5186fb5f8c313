"""Tests for record collections."""

import pytest

from mock_orm import Collection, Schema


@pytest.fixture
def schema():
    schema = Schema.parse("author\nphoto")
    schema.db.load_data({
        "authors": [
            {"id": 1, "name": "Link"},
            {"id": 2, "name": "Zelda"},
            {"id": 3, "name": "Epona"},
        ],
    })
    return schema


class TestCollection:
    """Tests for the Collection class."""

    def test_sequence_protocol(self, schema):
        """Test length, iteration, indexing and membership."""
        authors = schema.all("author")

        assert len(authors) == 3
        assert authors.length == 3
        assert authors[0].name == "Link"
        assert [a.name for a in authors] == ["Link", "Zelda", "Epona"]
        assert schema.find("author", 2) in authors

    def test_slice_returns_collection(self, schema):
        """Test slicing returns a collection of the same type."""
        tail = schema.all("author")[1:]

        assert isinstance(tail, Collection)
        assert tail.ids == [2, 3]

    def test_map_and_filter(self, schema):
        """Test mapping and filtering members."""
        authors = schema.all("author")

        short = authors.filter(lambda a: len(a.name) == 5)

        assert short.map(lambda a: a.name) == ["Zelda", "Epona"]
        assert authors.ids == [1, 2, 3]

    def test_sort(self, schema):
        """Test sorting by key and by id."""
        authors = schema.all("author")

        assert authors.sort(key=lambda a: a.name).ids == [3, 1, 2]
        assert authors.sort(reverse=True).ids == [3, 2, 1]

    def test_merge(self, schema):
        """Test merging appends the other collection's members."""
        first = schema.find("author", [1])
        second = schema.find("author", [3])

        merged = first.merge(second)

        assert merged is first
        assert merged.ids == [1, 3]

    def test_merge_rejects_other_types(self, schema):
        """Test merging a collection of another type raises."""
        with pytest.raises(ValueError):
            schema.all("author").merge(Collection("photo"))

    def test_homogeneous(self, schema):
        """Test a collection rejects records of another type."""
        photo = schema.new("photo", title="Hyrule")

        with pytest.raises(ValueError):
            Collection("author", [photo])

    def test_bulk_update(self, schema):
        """Test updating every member."""
        schema.all("author").update(rank=1)

        assert [row["rank"] for row in schema.db["authors"].all()] == [1, 1, 1]

    def test_bulk_destroy(self, schema):
        """Test destroying every member."""
        schema.find("author", [1, 2]).destroy()

        assert schema.all("author").ids == [3]

    def test_bulk_save(self, schema):
        """Test saving every member."""
        drafts = Collection("author", [schema.new("author", name="Navi"), schema.new("author", name="Tael")])

        drafts.save()

        assert drafts.ids == [4, 5]

    def test_reload(self, schema):
        """Test reloading every member from the store."""
        authors = schema.all("author")
        schema.db["authors"].update(1, {"name": "Young Link"})

        assert authors.reload()[0].name == "Young Link"

    def test_equality(self, schema):
        """Test collections compare by type and members."""
        assert schema.all("author") == schema.find("author", [1, 2, 3])
        assert schema.all("author") != schema.find("author", [1])
