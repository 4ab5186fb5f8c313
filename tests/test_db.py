"""Tests for the flat record store."""

import pytest

from mock_orm.db import Db, DbTable


class TestDbTable:
    """Tests for the DbTable class."""

    def test_insert_assigns_incrementing_ids(self):
        """Test that rows without ids get 1, 2, 3..."""
        table = DbTable("authors")

        first = table.insert({"name": "Link"})
        second = table.insert({"name": "Zelda"})

        assert first == {"id": 1, "name": "Link"}
        assert second["id"] == 2
        assert table.count == 2

    def test_insert_list(self):
        """Test inserting several rows at once."""
        table = DbTable("authors")

        rows = table.insert([{"name": "Link"}, {"name": "Zelda"}])

        assert [r["id"] for r in rows] == [1, 2]

    def test_explicit_id_advances_counter(self):
        """Test that an explicit id is kept and later ids continue after it."""
        table = DbTable("authors")
        table.insert({"id": 5, "name": "Link"})

        row = table.insert({"name": "Zelda"})

        assert row["id"] == 6

    def test_rows_are_copies(self):
        """Test that mutating a returned row does not touch the store."""
        table = DbTable("authors")
        row = table.insert({"name": "Link"})

        row["name"] = "Ganon"
        table.find(1)["name"] = "Ganon"

        assert table.find(1)["name"] == "Link"

    def test_find_missing_returns_none(self):
        """Test finding a missing id returns None."""
        table = DbTable("authors")
        table.insert({"name": "Link"})

        assert table.find(99) is None

    def test_find_accepts_numeric_strings(self):
        """Test that ids coming from URLs match integer ids."""
        table = DbTable("authors")
        table.insert({"name": "Link"})

        assert table.find("1")["name"] == "Link"

    def test_find_by_ids_uses_store_order(self):
        """Test that id-list lookups return store order and skip missing ids."""
        table = DbTable("authors")
        table.insert([{"name": "Link"}, {"name": "Zelda"}, {"name": "Epona"}])

        rows = table.find([3, 99, 1])

        assert [r["name"] for r in rows] == ["Link", "Epona"]

    def test_where(self):
        """Test filtering rows by equality on every key."""
        table = DbTable("posts")
        table.insert([
            {"title": "Lorem", "author_id": 1},
            {"title": "Ipsum", "author_id": 2},
            {"title": "Dolor", "author_id": 1},
        ])

        rows = table.where({"author_id": 1})

        assert [r["title"] for r in rows] == ["Lorem", "Dolor"]

    def test_update_by_id(self):
        """Test patching one row by id."""
        table = DbTable("authors")
        table.insert({"name": "Link"})

        row = table.update(1, {"name": "Young Link"})

        assert row["name"] == "Young Link"
        assert table.find(1)["name"] == "Young Link"

    def test_update_missing_returns_none(self):
        """Test patching a missing id returns None."""
        table = DbTable("authors")

        assert table.update(1, {"name": "Link"}) is None

    def test_update_cannot_change_id(self):
        """Test a patch never changes a row's id."""
        table = DbTable("authors")
        table.insert({"name": "Link"})

        table.update(1, {"id": 7})

        assert table.find(1) is not None
        assert table.find(7) is None

    def test_update_all_and_by_query(self):
        """Test patching every row and the rows matching a query."""
        table = DbTable("posts")
        table.insert([{"title": "a", "author_id": 1}, {"title": "b", "author_id": 2}])

        table.update({"published": False})
        table.update({"author_id": 2}, {"published": True})

        assert [r["published"] for r in table.all()] == [False, True]

    def test_remove(self):
        """Test removing by id, by query, and everything."""
        table = DbTable("posts")
        table.insert([
            {"title": "a", "author_id": 1},
            {"title": "b", "author_id": 2},
            {"title": "c", "author_id": 2},
        ])

        table.remove(1)
        assert [r["title"] for r in table.all()] == ["b", "c"]

        table.remove({"title": "b"})
        assert [r["title"] for r in table.all()] == ["c"]

        table.remove()
        assert len(table) == 0

    def test_remove_missing_is_silent(self):
        """Test removing a missing id is not an error."""
        table = DbTable("posts")

        table.remove(42)

        assert table.all() == []

    def test_first_or_create(self):
        """Test first_or_create returns a match or inserts a new row."""
        table = DbTable("authors")
        table.insert({"name": "Link"})

        existing = table.first_or_create({"name": "Link"})
        created = table.first_or_create({"name": "Zelda"}, {"age": 17})

        assert existing["id"] == 1
        assert created == {"id": 2, "name": "Zelda", "age": 17}


class TestDb:
    """Tests for the Db class."""

    def test_tables_created_on_demand(self):
        """Test tables are created on first access."""
        db = Db()

        table = db["authors"]

        assert isinstance(table, DbTable)
        assert "authors" in db
        assert db.get_table("authors") is table

    def test_load_and_dump(self):
        """Test loading table data and dumping it back."""
        db = Db()
        db.load_data({"authors": [{"id": 1, "name": "Link"}], "photos": [{"title": "Hyrule"}]})

        assert db.dump() == {
            "authors": [{"id": 1, "name": "Link"}],
            "photos": [{"id": 1, "title": "Hyrule"}],
        }

    def test_initial_data(self):
        """Test a store created with initial data."""
        db = Db({"authors": [{"name": "Link"}]})

        assert db["authors"].find(1) == {"id": 1, "name": "Link"}

    def test_empty_data_restarts_ids(self):
        """Test emptying the store restarts id assignment."""
        db = Db({"authors": [{"name": "Link"}, {"name": "Zelda"}]})

        db.empty_data()

        assert db["authors"].all() == []
        assert db["authors"].insert({"name": "Epona"})["id"] == 1
        assert db.table_names() == ["authors"]
