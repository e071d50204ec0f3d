"""
Book Collection Endpoints
-------------------------
The signed-in user's book collection, plus public search and lookup against
the Google Books catalog.

Access is enforced by the route table: reading needs READ_BOOK, adding needs
ADD_BOOK, edits (including read counters and reactivation) need EDIT_BOOK,
removal needs DELETE_BOOK.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from app.auth.dependencies import get_current_principal
from app.auth.principal import Principal
from app.book_catalog.google_books_client import GoogleBooksClient, get_google_books_client
from app.models.book_models import (
    BookCreateRequest,
    BookResponse,
    BookStatusResponse,
    BookUpdateRequest,
    CatalogBook,
)
from app.models.response_models import MessageResponse
from app.psql_db_services.books_service import BooksService


# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(prefix="/books", tags=["Books"])


def get_books_service() -> BooksService:
    return BooksService()


# ============================================================================
# CATALOG ENDPOINTS (PUBLIC)
# ============================================================================


@router.get(
    "/search-google",
    response_model=List[CatalogBook],
    summary="Search the Google Books catalog",
)
async def search_google_books(
    query: str = Query(..., min_length=1),
    catalog: GoogleBooksClient = Depends(get_google_books_client),
):
    return await catalog.search_books(query)


@router.get(
    "/google-api/{google_book_id}",
    response_model=CatalogBook,
    summary="Look up a Google Books volume",
)
async def get_google_book(
    google_book_id: str,
    catalog: GoogleBooksClient = Depends(get_google_books_client),
):
    return await catalog.get_book(google_book_id)


# ============================================================================
# READ ENDPOINTS
# ============================================================================


@router.get("", response_model=List[BookResponse], summary="List my active books")
async def list_books(
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.list_active_books(principal.user_id)


@router.get(
    "/status/{google_book_id}",
    response_model=BookStatusResponse,
    summary="Whether a catalog book is in my collection",
)
async def get_book_status(
    google_book_id: str,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.get_book_status(principal.user_id, google_book_id)


@router.get(
    "/google/{google_book_id}",
    response_model=BookResponse,
    summary="Get my copy of a catalog book",
)
async def get_book_by_google_id(
    google_book_id: str,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.get_book_by_google_id(principal.user_id, google_book_id)


@router.get("/{book_id}", response_model=BookResponse, summary="Get a book")
async def get_book(
    book_id: int,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.get_book(principal.user_id, book_id)


# ============================================================================
# CREATE ENDPOINTS
# ============================================================================


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book manually",
)
async def add_book(
    request: BookCreateRequest,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.add_book(principal.user_id, request)


@router.post(
    "/google/{google_book_id}",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book from the Google Books catalog",
    description="Returns 409 if the book is already in the collection or was removed from it.",
)
async def add_book_from_google(
    google_book_id: str,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
    catalog: GoogleBooksClient = Depends(get_google_books_client),
):
    catalog_book = await catalog.get_book(google_book_id)
    logger.info(f"{principal.username} importing {google_book_id}")
    return await books_service.add_from_catalog(principal.user_id, catalog_book)


# ============================================================================
# UPDATE ENDPOINTS
# ============================================================================


@router.put(
    "/activate/{google_book_id}",
    response_model=BookResponse,
    summary="Reactivate a removed book",
)
async def activate_book(
    google_book_id: str,
    keep_progress: bool = Query(default=True, alias="keepProgress"),
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.activate_book(
        principal.user_id, google_book_id, keep_progress=keep_progress
    )


@router.put("/{book_id}/increment-read", response_model=BookResponse)
async def increment_read_count(
    book_id: int,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.increment_read_count(principal.user_id, book_id)


@router.put("/{book_id}/decrement-read", response_model=BookResponse)
async def decrement_read_count(
    book_id: int,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.decrement_read_count(principal.user_id, book_id)


@router.put("/{book_id}", response_model=BookResponse, summary="Update a book")
async def update_book(
    book_id: int,
    request: BookUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    return await books_service.update_book(principal.user_id, book_id, request)


# ============================================================================
# DELETE ENDPOINTS
# ============================================================================


@router.delete("/{book_id}", response_model=MessageResponse, summary="Remove a book")
async def delete_book(
    book_id: int,
    principal: Principal = Depends(get_current_principal),
    books_service: BooksService = Depends(get_books_service),
):
    await books_service.delete_book(principal.user_id, book_id)
    return MessageResponse(message="Book removed from your collection.")
