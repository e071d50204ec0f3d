"""
Unit Tests for the Google Books Client
======================================
HTTP traffic is served by httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from app.book_catalog.google_books_client import (
    GoogleBooksClient,
    validate_google_book_id,
    volume_to_catalog_book,
)
from app.core.exceptions import CatalogUnavailable, ResourceNotFound, ValidationError
from app.models.book_models import DEFAULT_AUTHOR

BASE_URL = "https://books.test/volumes"

DUNE_VOLUME = {
    "id": "B1exgKOjY1sC",
    "volumeInfo": {
        "title": "Dune",
        "authors": ["Frank Herbert"],
        "description": "Desert planet.",
        "categories": ["Fiction", "Fiction"],
        "imageLinks": {"smallThumbnail": "http://img/s", "thumbnail": "http://img/t"},
    },
}


def make_client(handler, api_key=None) -> GoogleBooksClient:
    return GoogleBooksClient(
        BASE_URL, api_key=api_key, max_results=5, transport=httpx.MockTransport(handler)
    )


class TestVolumeMapping:
    """Test volume_to_catalog_book and id validation."""

    def test_full_volume(self):
        """Test the fields kept from a volume resource."""
        book = volume_to_catalog_book(DUNE_VOLUME)

        assert book.google_book_id == "B1exgKOjY1sC"
        assert book.title == "Dune"
        assert book.author == "Frank Herbert"
        assert book.thumbnail == "http://img/t"
        assert book.tags == ["Fiction"]

    def test_sparse_volume(self):
        """Test missing authors and images fall back to defaults."""
        book = volume_to_catalog_book(
            {"id": "x1", "volumeInfo": {"title": "Anon", "authors": ["A", "B"], "imageLinks": {}}}
        )
        bare = volume_to_catalog_book({"id": "x2"})

        assert book.author == "A, B"
        assert book.thumbnail is None
        assert bare.title == "Untitled"
        assert bare.author == DEFAULT_AUTHOR

    @pytest.mark.parametrize("google_book_id", ["", "  ", None, "null", "undefined", "None", "a/b"])
    def test_invalid_ids(self, google_book_id):
        """Test blank, placeholder and malformed ids are rejected."""
        with pytest.raises(ValidationError, match="Invalid Google Book ID"):
            validate_google_book_id(google_book_id)

    def test_valid_id_is_stripped(self):
        assert validate_google_book_id(" B1exgKOjY1sC ") == "B1exgKOjY1sC"


class TestSearchBooks:
    """Test search_books."""

    async def test_search_sends_query_and_cap(self):
        """Test query parameters and the mapped results."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"items": [DUNE_VOLUME]})

        books = await make_client(handler, api_key="k-123").search_books(" dune ")

        assert seen == {"q": "dune", "maxResults": "5", "key": "k-123"}
        assert [book.title for book in books] == ["Dune"]

    async def test_search_without_results(self):
        """Test a response without items yields an empty list."""
        books = await make_client(lambda request: httpx.Response(200, json={})).search_books("zzz")

        assert books == []

    async def test_blank_query(self):
        """Test blank queries never reach the catalog."""
        with pytest.raises(ValidationError):
            await make_client(lambda request: httpx.Response(200, json={})).search_books("  ")

    async def test_upstream_error(self):
        """Test a non-200 answer surfaces as CatalogUnavailable."""
        client = make_client(lambda request: httpx.Response(503))

        with pytest.raises(CatalogUnavailable):
            await client.search_books("dune")

    async def test_transport_error(self):
        """Test connection failures surface as CatalogUnavailable."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CatalogUnavailable):
            await make_client(handler).search_books("dune")

    async def test_non_json_body(self):
        """Test an HTML page served with 200 surfaces as CatalogUnavailable."""
        client = make_client(
            lambda request: httpx.Response(200, text="<html>maintenance</html>")
        )

        with pytest.raises(CatalogUnavailable):
            await client.search_books("dune")


class TestGetBook:
    """Test get_book."""

    async def test_get_book(self):
        """Test a single volume lookup."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/volumes/B1exgKOjY1sC"
            return httpx.Response(200, json=DUNE_VOLUME)

        book = await make_client(handler).get_book("B1exgKOjY1sC")

        assert book.title == "Dune"

    @pytest.mark.parametrize("status_code", [400, 404])
    async def test_unknown_volume(self, status_code):
        """Test catalog 400/404 answers mean not found."""
        client = make_client(lambda request: httpx.Response(status_code))

        with pytest.raises(ResourceNotFound):
            await client.get_book("missing1")

    async def test_mismatched_id(self):
        """Test a volume with another id is treated as not found."""
        client = make_client(lambda request: httpx.Response(200, json=DUNE_VOLUME))

        with pytest.raises(ResourceNotFound):
            await client.get_book("somethingElse")

    async def test_server_error(self):
        """Test 5xx answers surface as CatalogUnavailable."""
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(CatalogUnavailable):
            await client.get_book("B1exgKOjY1sC")

    @pytest.mark.parametrize("body", ["not json", "[1, 2]"])
    async def test_unreadable_body(self, body):
        """Test a 200 answer that is not a JSON object surfaces as CatalogUnavailable."""
        client = make_client(lambda request: httpx.Response(200, text=body))

        with pytest.raises(CatalogUnavailable):
            await client.get_book("B1exgKOjY1sC")
