"""
API Tests for Book and Wishlist Endpoints
=========================================
Full application with a real database; the Google Books catalog is served by
httpx.MockTransport through a dependency override.

Test Coverage:
- Public catalog search and lookup
- Catalog imports and conflicts
- Manual books, updates and read counters
- Removal and reactivation
- Wishlist management and moving entries into the collection
"""

import httpx
import pytest

from app.book_catalog.google_books_client import GoogleBooksClient, get_google_books_client


DUNE_ID = "B1exgKOjY1sC"

VOLUMES = {
    DUNE_ID: {
        "id": DUNE_ID,
        "volumeInfo": {
            "title": "Dune",
            "authors": ["Frank Herbert"],
            "categories": ["Fiction"],
            "imageLinks": {"thumbnail": "http://img/dune"},
        },
    },
}


def catalog_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/volumes":
        return httpx.Response(200, json={"items": list(VOLUMES.values())})
    volume = VOLUMES.get(request.url.path.rsplit("/", 1)[-1])
    if volume is None:
        return httpx.Response(404)
    return httpx.Response(200, json=volume)


# ============================================================================
# TEST SETUP
# ============================================================================


@pytest.fixture
def catalog(client):
    """Replace the Google Books client for the running app."""
    fake = GoogleBooksClient(
        "https://books.test/volumes", transport=httpx.MockTransport(catalog_handler)
    )
    client.app.dependency_overrides[get_google_books_client] = lambda: fake
    return fake


@pytest.fixture
def reader(account_factory):
    _, headers = account_factory("reader")
    return headers


# ============================================================================
# CATALOG
# ============================================================================


class TestCatalogEndpoints:
    """Public Google Books proxy routes."""

    def test_search_without_token(self, client, catalog):
        """Test catalog search is public."""
        response = client.get("/books/search-google?query=dune")

        assert response.status_code == 200
        assert response.json()[0]["googleBookId"] == DUNE_ID
        assert response.json()[0]["author"] == "Frank Herbert"

    def test_lookup_without_token(self, client, catalog):
        response = client.get(f"/books/google-api/{DUNE_ID}")

        assert response.status_code == 200
        assert response.json()["title"] == "Dune"

    def test_lookup_unknown_volume(self, client, catalog):
        response = client.get("/books/google-api/missing1")

        assert response.status_code == 404
        assert response.json()["errorCode"] == "resource_not_found"

    def test_catalog_outage(self, client):
        """Test upstream failures answer 502."""
        broken = GoogleBooksClient(
            "https://books.test/volumes",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        client.app.dependency_overrides[get_google_books_client] = lambda: broken

        response = client.get("/books/search-google?query=dune")

        assert response.status_code == 502
        assert response.json()["errorCode"] == "catalog_unavailable"


# ============================================================================
# COLLECTION
# ============================================================================


class TestCollectionEndpoints:
    """The signed-in user's books."""

    def test_import_from_catalog(self, client, catalog, reader):
        """Test importing a volume and reading it back by catalog id."""
        # Act
        created = client.post(f"/books/google/{DUNE_ID}", headers=reader)
        by_google_id = client.get(f"/books/google/{DUNE_ID}", headers=reader)
        listing = client.get("/books", headers=reader)

        # Assert
        assert created.status_code == 201
        assert created.json()["thumbnail"] == "http://img/dune"
        assert by_google_id.json()["id"] == created.json()["id"]
        assert [book["title"] for book in listing.json()] == ["Dune"]

    def test_duplicate_import_conflicts(self, client, catalog, reader):
        client.post(f"/books/google/{DUNE_ID}", headers=reader)

        response = client.post(f"/books/google/{DUNE_ID}", headers=reader)

        assert response.status_code == 409
        assert response.json()["errorCode"] == "book_already_exists"

    def test_remove_and_reactivate(self, client, catalog, reader):
        """Test the full remove, status, conflict and reactivate cycle."""
        # Arrange
        book = client.post(f"/books/google/{DUNE_ID}", headers=reader).json()
        client.put(f"/books/{book['id']}/increment-read", headers=reader)

        # Act
        removed = client.delete(f"/books/{book['id']}", headers=reader)
        status = client.get(f"/books/status/{DUNE_ID}", headers=reader)
        reimport = client.post(f"/books/google/{DUNE_ID}", headers=reader)
        restored = client.put(
            f"/books/activate/{DUNE_ID}?keepProgress=false", headers=reader
        )

        # Assert
        assert removed.json() == {"message": "Book removed from your collection."}
        assert status.json() == {
            "googleBookId": DUNE_ID,
            "existsActive": False,
            "existsInactive": True,
        }
        assert reimport.status_code == 409
        assert reimport.json()["errorCode"] == "book_previously_deleted"
        assert restored.status_code == 200
        assert restored.json()["isActive"] is True
        assert restored.json()["readCount"] == 0

    def test_manual_book_and_counters(self, client, reader):
        """Test a manual book through update and both counters."""
        book = client.post(
            "/books", json={"title": "Emma", "tags": ["classic"]}, headers=reader
        ).json()

        updated = client.put(
            f"/books/{book['id']}", json={"author": "Jane Austen"}, headers=reader
        )
        incremented = client.put(f"/books/{book['id']}/increment-read", headers=reader)
        decremented = client.put(f"/books/{book['id']}/decrement-read", headers=reader)
        below_zero = client.put(f"/books/{book['id']}/decrement-read", headers=reader)

        assert updated.json()["author"] == "Jane Austen"
        assert updated.json()["tags"] == ["classic"]
        assert incremented.json()["readCount"] == 1
        assert incremented.json()["finishedAt"] is not None
        assert decremented.json()["readCount"] == 0
        assert below_zero.status_code == 400

    def test_books_are_private(self, client, reader, account_factory):
        """Test another user's book reads as not found."""
        book = client.post("/books", json={"title": "Emma"}, headers=reader).json()
        _, other = account_factory("neighbour")

        assert client.get(f"/books/{book['id']}", headers=other).status_code == 404
        assert client.get("/books", headers=other).json() == []

    def test_blank_title_rejected(self, client, reader):
        response = client.post("/books", json={"title": "   "}, headers=reader)

        assert response.status_code == 400
        assert response.json()["errorCode"] == "validation_error"


# ============================================================================
# WISHLIST
# ============================================================================


class TestWishlistEndpoints:
    """The signed-in user's wishlist."""

    def test_wishlist_lifecycle(self, client, reader):
        """Test add, update, list and delete."""
        entry = client.post("/wishlist-books", json={"title": "Emma"}, headers=reader)
        updated = client.put(
            f"/wishlist-books/{entry.json()['id']}",
            json={"tags": ["someday"]},
            headers=reader,
        )
        listing = client.get("/wishlist-books", headers=reader)
        removed = client.delete(f"/wishlist-books/{entry.json()['id']}", headers=reader)

        assert entry.status_code == 201
        assert updated.json()["tags"] == ["someday"]
        assert [item["title"] for item in listing.json()] == ["Emma"]
        assert removed.json() == {"message": "Book removed from your wishlist."}
        assert client.get("/wishlist-books", headers=reader).json() == []

    def test_move_catalog_entry_to_books(self, client, catalog, reader):
        """Test a wishlisted volume moves into the collection."""
        entry = client.post(f"/wishlist-books/google/{DUNE_ID}", headers=reader).json()

        moved = client.post(f"/wishlist-books/{entry['id']}/move-to-books", headers=reader)

        assert moved.status_code == 201
        assert moved.json()["googleBookId"] == DUNE_ID
        assert client.get("/wishlist-books", headers=reader).json() == []
        assert len(client.get("/books", headers=reader).json()) == 1

    def test_owned_volume_cannot_be_wishlisted(self, client, catalog, reader):
        client.post(f"/books/google/{DUNE_ID}", headers=reader)

        response = client.post(f"/wishlist-books/google/{DUNE_ID}", headers=reader)

        assert response.status_code == 409
