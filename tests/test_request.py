"""Tests for request descriptors."""

from mock_orm.request import Request, parse_query_string


class TestParseQueryString:
    def test_bracketed_lists(self):
        """Test key[] parameters fold into lists."""
        assert parse_query_string("ids[]=1&ids[]=3") == {"ids": ["1", "3"]}

    def test_scalars_and_repeats(self):
        """Test single keys stay scalars and repeated keys become lists."""
        assert parse_query_string("foo=bar&tag=a&tag=b") == {"foo": "bar", "tag": ["a", "b"]}

    def test_empty(self):
        """Test an empty query string."""
        assert parse_query_string("") == {}


class TestRequest:
    """Tests for the Request class."""

    def test_from_url(self):
        """Test building a request from a URL with a query string."""
        request = Request.from_url("/authors?ids[]=1&ids[]=3")

        assert request.path == "/authors"
        assert request.query_params == {"ids": ["1", "3"]}
        assert request.ids == ["1", "3"]
        assert request.id is None

    def test_collection_segment(self):
        """Test inferring the collection segment from the path."""
        assert Request.from_url("/authors").collection_segment == "authors"
        assert Request.from_url("/api/authors?foo=bar").collection_segment == "authors"
        assert Request.from_url("/authors/2", {"id": 2}).collection_segment == "authors"
        assert Request.from_url("/people/abc", {"id": "abc"}).collection_segment == "people"
        assert Request.from_url("/").collection_segment is None

    def test_single_id_query_param(self):
        """Test a scalar ids parameter reads as a one-item list."""
        request = Request(url="/authors", query_params={"ids": 4})

        assert request.ids == [4]

    def test_defaults(self):
        """Test a request without parameters."""
        request = Request(url="/authors")

        assert request.params == {}
        assert request.ids is None
