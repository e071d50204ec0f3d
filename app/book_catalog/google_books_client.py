"""
Google Books Client
-------------------
Async HTTP client for the Google Books volumes API.

- search_books: full-text search, capped at settings.google_books_max_results
- get_book: lookup of a single volume by its Google id

No retries and no caching: a failed call surfaces immediately as
CatalogUnavailable.
"""

import re
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from app.core.config_manager import settings
from app.core.exceptions import CatalogUnavailable, ResourceNotFound, ValidationError
from app.models.book_models import DEFAULT_AUTHOR, CatalogBook


GOOGLE_BOOK_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
PLACEHOLDER_IDS = {"null", "undefined", "none"}


def validate_google_book_id(google_book_id: Optional[str]) -> str:
    """Return the stripped id, or raise ValidationError for blank and placeholder ids."""
    candidate = (google_book_id or "").strip()
    if (
        not candidate
        or candidate.lower() in PLACEHOLDER_IDS
        or not GOOGLE_BOOK_ID_PATTERN.match(candidate)
    ):
        raise ValidationError("Invalid Google Book ID")
    return candidate


def volume_to_catalog_book(volume: Dict[str, Any]) -> CatalogBook:
    """Flatten a Google Books volume resource."""
    info = volume.get("volumeInfo") or {}
    authors = [author for author in info.get("authors") or [] if author]
    image_links = info.get("imageLinks") or {}

    return CatalogBook(
        google_book_id=volume["id"],
        title=info.get("title") or "Untitled",
        author=", ".join(authors) or DEFAULT_AUTHOR,
        description=info.get("description"),
        thumbnail=image_links.get("thumbnail") or image_links.get("smallThumbnail"),
        tags=list(dict.fromkeys(info.get("categories") or [])),
    )


class GoogleBooksClient:
    """
    Thin client over the volumes endpoint.

    Args:
        base_url: Volumes endpoint, e.g. https://www.googleapis.com/books/v1/volumes
        api_key: Optional API key sent as the ``key`` query parameter
        timeout_seconds: Per-request timeout
        max_results: Search result cap
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        max_results: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.max_results = max_results
        self._transport = transport

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params = dict(extra)
        if self._api_key:
            params["key"] = self._api_key
        return params

    async def _get(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                return await client.get(url, params=params)
        except httpx.HTTPError as error:
            logger.warning(f"Google Books request failed: {type(error).__name__}")
            raise CatalogUnavailable() from None

    @staticmethod
    def _json_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            logger.warning("Google Books returned a body that is not JSON")
            raise CatalogUnavailable() from None
        if not isinstance(body, dict):
            logger.warning("Google Books returned an unexpected JSON document")
            raise CatalogUnavailable()
        return body

    async def search_books(self, query: str) -> List[CatalogBook]:
        """
        Search the catalog.

        Raises:
            ValidationError: If the query is blank
            CatalogUnavailable: On transport errors, non-2xx responses or
                unreadable bodies
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query cannot be empty")

        response = await self._get(
            self.base_url, self._params(q=query, maxResults=self.max_results)
        )
        if response.status_code != 200:
            logger.warning(f"Google Books search returned HTTP {response.status_code}")
            raise CatalogUnavailable()

        items = self._json_body(response).get("items") or []
        books = [volume_to_catalog_book(item) for item in items if item.get("id")]
        logger.debug(f"Google Books search '{query}' returned {len(books)} result(s)")
        return books

    async def get_book(self, google_book_id: str) -> CatalogBook:
        """
        Fetch one volume by id.

        Raises:
            ValidationError: If the id is blank or a placeholder such as "null"
            ResourceNotFound: If the catalog has no such volume
            CatalogUnavailable: On transport errors, server-side failures or
                unreadable bodies
        """
        google_book_id = validate_google_book_id(google_book_id)

        response = await self._get(f"{self.base_url}/{google_book_id}", self._params())
        if response.status_code in (400, 404):
            raise ResourceNotFound(f"Book not found with Google ID: {google_book_id}")
        if response.status_code != 200:
            logger.warning(
                f"Google Books lookup {google_book_id} returned HTTP {response.status_code}"
            )
            raise CatalogUnavailable()

        volume = self._json_body(response)
        if volume.get("id") != google_book_id:
            raise ResourceNotFound(f"Book not found with Google ID: {google_book_id}")
        return volume_to_catalog_book(volume)


@lru_cache(maxsize=1)
def get_google_books_client() -> GoogleBooksClient:
    """Process-wide client built from settings; also used as a FastAPI dependency."""
    api_key = (
        settings.google_books_api_key.get_secret_value()
        if settings.google_books_api_key
        else None
    )
    return GoogleBooksClient(
        base_url=settings.google_books_base_url,
        api_key=api_key,
        timeout_seconds=settings.google_books_timeout_seconds,
        max_results=settings.google_books_max_results,
    )
