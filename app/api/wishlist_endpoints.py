"""
Wishlist Endpoints
------------------
Books the signed-in user wants to read, and moving them into the collection.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.auth.dependencies import get_current_principal
from app.auth.principal import Principal
from app.book_catalog.google_books_client import GoogleBooksClient, get_google_books_client
from app.models.book_models import (
    BookCreateRequest,
    BookResponse,
    BookUpdateRequest,
    WishlistBookResponse,
)
from app.models.response_models import MessageResponse
from app.psql_db_services.wishlist_service import WishlistService


router = APIRouter(prefix="/wishlist-books", tags=["Wishlist"])


def get_wishlist_service() -> WishlistService:
    return WishlistService()


@router.get("", response_model=List[WishlistBookResponse], summary="List my wishlist")
async def list_wishlist(
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    return await wishlist_service.list_wishlist(principal.user_id)


@router.post(
    "",
    response_model=WishlistBookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book to my wishlist manually",
)
async def add_to_wishlist(
    request: BookCreateRequest,
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    return await wishlist_service.add_book(principal.user_id, request)


@router.post(
    "/google/{google_book_id}",
    response_model=WishlistBookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a Google Books volume to my wishlist",
)
async def add_to_wishlist_from_google(
    google_book_id: str,
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
    catalog: GoogleBooksClient = Depends(get_google_books_client),
):
    catalog_book = await catalog.get_book(google_book_id)
    return await wishlist_service.add_from_catalog(principal.user_id, catalog_book)


@router.post(
    "/{wishlist_book_id}/move-to-books",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Move a wishlist book into my collection",
)
async def move_to_books(
    wishlist_book_id: int,
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    return await wishlist_service.move_to_books(principal.user_id, wishlist_book_id)


@router.put("/{wishlist_book_id}", response_model=WishlistBookResponse)
async def update_wishlist_book(
    wishlist_book_id: int,
    request: BookUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    return await wishlist_service.update_book(principal.user_id, wishlist_book_id, request)


@router.delete("/{wishlist_book_id}", response_model=MessageResponse)
async def delete_wishlist_book(
    wishlist_book_id: int,
    principal: Principal = Depends(get_current_principal),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    await wishlist_service.delete_book(principal.user_id, wishlist_book_id)
    return MessageResponse(message="Book removed from your wishlist.")
