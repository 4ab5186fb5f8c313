"""Tests for the Schema class and record lifecycle."""

import pytest

from mock_orm import Record, Schema, belongs_to, has_many
from mock_orm.db import Db
from mock_orm.errors import SchemaError, UnknownTypeError

MODELS = """
author { posts: has_many }
post { author: belongs_to }
photo
"""


@pytest.fixture
def schema():
    return Schema.parse(MODELS)


class TestSchemaConstruction:
    """Tests for the ways a schema can be built."""

    def test_parse(self, schema):
        """Test creating a schema from model declarations."""
        assert schema.list_types() == ["author", "post", "photo"]
        assert isinstance(schema.db, Db)
        assert set(schema.db.table_names()) == {"authors", "posts", "photos"}

    def test_from_models(self):
        """Test creating a schema from a Python mapping."""
        schema = Schema.from_models({
            "author": {"posts": has_many()},
            "post": {"author": belongs_to()},
            "photo": None,
        })

        assert schema.associations_for("post")["author"].foreign_key == "author_id"

    def test_load_from_file(self, tmp_path):
        """Test loading model declarations from a file."""
        path = tmp_path / "models.txt"
        path.write_text(MODELS)

        schema = Schema.load(path)

        assert schema.has_type("photo")

    def test_shares_given_db(self):
        """Test a schema reads rows already in the store it is given."""
        db = Db({"photos": [{"title": "Amazing"}]})

        schema = Schema.parse("photo", db)

        assert schema.all("photo")[0].title == "Amazing"

    def test_invalid_models(self):
        """Test invalid declarations raise SchemaError."""
        with pytest.raises(SchemaError):
            Schema.from_models({"author": {"posts": has_many()}})

    def test_context_manager_empties_data(self):
        """Test leaving the context empties every table."""
        with Schema.parse(MODELS) as schema:
            schema.create("author", name="Link")
            db = schema.db

        assert db["authors"].all() == []


class TestTypeNames:
    """Tests for type name lookups."""

    def test_model_type_for(self, schema):
        """Test resolving singular, plural and dashed names to a type."""
        assert schema.model_type_for("author") == "author"
        assert schema.model_type_for("authors") == "author"
        assert schema.model_type_for("Photos") == "photo"

    def test_unknown_type(self, schema):
        """Test an unknown type name raises UnknownTypeError."""
        with pytest.raises(UnknownTypeError):
            schema.model_type_for("videos")
        with pytest.raises(KeyError):
            schema.all("video")

    def test_table_name(self, schema):
        """Test tables are named by the plural type."""
        assert schema.table_name("author") == "authors"


class TestFactory:
    """Tests for creating and finding records."""

    def test_new_is_unsaved(self, schema):
        """Test new builds an unsaved record."""
        author = schema.new("author", name="Link")

        assert isinstance(author, Record)
        assert author.is_new()
        assert author.id is None
        assert schema.db["authors"].all() == []

    def test_create_is_saved(self, schema):
        """Test create saves the record."""
        author = schema.create("author", {"name": "Link"})

        assert author.is_saved()
        assert author.id == 1
        assert schema.db["authors"].find(1) == {"id": 1, "name": "Link"}

    def test_find(self, schema):
        """Test finding a record by id."""
        schema.create("author", name="Link")

        assert schema.find("author", 1).name == "Link"
        assert schema.find("author", "1").name == "Link"
        assert schema.find("author", 99) is None

    def test_find_many(self, schema):
        """Test finding records by a list of ids."""
        for name in ("Link", "Zelda", "Epona"):
            schema.create("author", name=name)

        authors = schema.find("author", [3, 1])

        assert authors.map(lambda a: a.name) == ["Link", "Epona"]

    def test_where_and_first(self, schema):
        """Test filtering records and taking the first."""
        schema.create("author", name="Link", hero=True)
        schema.create("author", name="Ganon", hero=False)

        assert schema.where("author", {"hero": False}).map(lambda a: a.name) == ["Ganon"]
        assert schema.first("author").name == "Link"
        assert schema.first("photo") is None

    def test_model_manager(self, schema):
        """Test operations bound to one type."""
        authors = schema["authors"]

        link = authors.create(name="Link")
        draft = authors.new(name="Zelda")

        assert authors.find(link.id) == link
        assert draft.is_new()
        assert authors.all().ids == [link.id]
        assert authors.where({"name": "Link"}).ids == [link.id]
        assert authors.first() == link


class TestRecord:
    """Tests for record attributes and lifecycle."""

    def test_attribute_access(self, schema):
        """Test reading attributes by name and as a dict."""
        post = schema.create("post", title="Lorem")

        assert post.title == "Lorem"
        assert post.type == "post"
        assert post.attrs == {"id": 1, "title": "Lorem", "author_id": None}

    def test_unknown_attribute(self, schema):
        """Test reading an unknown attribute raises AttributeError."""
        post = schema.create("post", title="Lorem")

        with pytest.raises(AttributeError):
            post.body

    def test_saved_records_write_through(self, schema):
        """Test attribute writes on a saved record reach the store."""
        post = schema.create("post", title="Lorem")

        post.title = "Ipsum"

        assert schema.db["posts"].find(post.id)["title"] == "Ipsum"

    def test_saved_records_read_through(self, schema):
        """Test a saved record reads store changes."""
        post = schema.create("post", title="Lorem")
        other = schema.find("post", post.id)

        other.title = "Ipsum"

        assert post.title == "Ipsum"

    def test_update(self, schema):
        """Test update sets attributes and saves."""
        post = schema.create("post", title="Lorem")

        post.update("title", "Ipsum")
        post.update(published=True)

        assert schema.db["posts"].find(post.id) == {
            "id": post.id,
            "title": "Ipsum",
            "author_id": None,
            "published": True,
        }

    def test_update_new_record_saves_it(self, schema):
        """Test update on a new record saves it."""
        post = schema.new("post", title="Lorem")

        post.update(title="Ipsum")

        assert post.is_saved()

    def test_explicit_id_on_new_record(self, schema):
        """Test a new record keeps an explicit id on save."""
        post = schema.new("post", id=10, title="Lorem")

        assert post.is_new()
        post.save()

        assert post.id == 10
        assert schema.find("post", 10).title == "Lorem"

    def test_destroy(self, schema):
        """Test destroying a record removes its row."""
        post = schema.create("post", title="Lorem")

        post.destroy()

        assert schema.find("post", post.id) is None
        assert post.is_destroyed()
        assert not post.is_saved()
        assert post.title == "Lorem"

    def test_is_destroyed_only_after_destroy(self, schema):
        """Test new and live records do not report themselves destroyed."""
        draft = schema.new("post", title="Lorem")
        assert not draft.is_destroyed()

        draft.save()
        assert not draft.is_destroyed()

        schema.db["posts"].remove(draft.id)
        assert draft.is_destroyed()

    def test_reload(self, schema):
        """Test reloading a record from the store."""
        post = schema.create("post", title="Lorem")
        schema.db["posts"].update(post.id, {"title": "Ipsum"})

        assert post.reload().title == "Ipsum"

    def test_equality(self, schema):
        """Test records compare by type and id once saved."""
        post = schema.create("post", title="Lorem")

        assert schema.find("post", post.id) == post
        assert schema.new("post") != schema.new("post")
        assert schema.create("photo") != schema.create("post")

    def test_repr(self, schema):
        """Test the record repr."""
        assert repr(schema.new("post")) == "Record('post', new)"
        assert repr(schema.create("post")) == "Record('post', 1)"
