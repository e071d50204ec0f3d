"""
CRUD Operations for Wishlists
-----------------------------
Books a user wants but does not own yet. A wishlist entry can be moved into
the collection, which copies it into books and removes it from the wishlist
in one transaction.
"""

from typing import Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database_connection import DatabaseManager
from app.core.exceptions import BookAlreadyExists, ResourceNotFound, ValidationError
from app.models.book_models import (
    DEFAULT_AUTHOR,
    BookCreateRequest,
    BookResponse,
    BookUpdateRequest,
    CatalogBook,
    WishlistBookResponse,
)
from app.psql_db_services.base_service import BaseDatabaseService
from app.psql_db_services.books_service import BooksService


WISHLIST_COLUMNS = "id, google_book_id, title, author, description, thumbnail, added_at"


class WishlistService(BaseDatabaseService):
    """Owner-scoped operations on wishlist_books and its tags."""

    def __init__(
        self,
        database_manager: Optional[DatabaseManager] = None,
        books_service: Optional[BooksService] = None,
    ):
        super().__init__(database_manager)
        self.books_service = books_service or BooksService(database_manager)

    async def list_wishlist(self, user_id: int) -> List[WishlistBookResponse]:
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    f"SELECT {WISHLIST_COLUMNS} FROM wishlist_books "
                    "WHERE user_id = :user_id ORDER BY id"
                ),
                {"user_id": user_id},
            )
            return await self._with_tags(session, result.mappings().all())

    async def add_book(
        self, user_id: int, request: BookCreateRequest
    ) -> WishlistBookResponse:
        """Add a manually entered book to the wishlist."""
        if not request.title.strip():
            raise ValidationError("Title is required")

        async with self.get_session() as session:
            entry = await self._insert(
                session,
                user_id,
                {
                    "google_book_id": request.google_book_id,
                    "title": request.title,
                    "author": (request.author or "").strip() or DEFAULT_AUTHOR,
                    "description": request.description,
                    "thumbnail": request.thumbnail,
                },
                request.tags,
            )
        self.log_operation("CREATE", entry.id, additional_context=f"user={user_id}")
        return entry

    async def add_from_catalog(
        self, user_id: int, catalog_book: CatalogBook
    ) -> WishlistBookResponse:
        """
        Add a catalog volume to the wishlist.

        Raises:
            BookAlreadyExists: The volume is already wishlisted or in the collection
        """
        async with self.get_session() as session:
            for table_name in ("wishlist_books", "books"):
                result = await session.execute(
                    text(
                        f"SELECT 1 FROM {table_name} WHERE user_id = :user_id "
                        "AND google_book_id = :google_book_id LIMIT 1"
                    ),
                    {"user_id": user_id, "google_book_id": catalog_book.google_book_id},
                )
                if result.first() is not None:
                    raise BookAlreadyExists(
                        "This book is already in your wishlist or collection"
                    )

            entry = await self._insert(
                session,
                user_id,
                {
                    "google_book_id": catalog_book.google_book_id,
                    "title": catalog_book.title,
                    "author": catalog_book.author or DEFAULT_AUTHOR,
                    "description": catalog_book.description,
                    "thumbnail": catalog_book.thumbnail,
                },
                catalog_book.tags,
            )
        self.log_operation(
            "IMPORT", entry.id, additional_context=f"google_book_id={catalog_book.google_book_id}"
        )
        return entry

    async def update_book(
        self, user_id: int, wishlist_book_id: int, request: BookUpdateRequest
    ) -> WishlistBookResponse:
        fields = request.model_dump(exclude_unset=True, exclude={"tags", "finished_at"})
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError("Title is required")

        async with self.get_session() as session:
            await self._require_entry(session, user_id, wishlist_book_id)
            if fields:
                sql_query, params = self.build_dynamic_update_query(
                    "wishlist_books",
                    fields,
                    "id = :id AND user_id = :user_id",
                    {"id": wishlist_book_id, "user_id": user_id},
                )
                await session.execute(text(sql_query), params)
            if request.tags is not None:
                await self._replace_tags(session, wishlist_book_id, request.tags)
            entry = await self._require_entry(session, user_id, wishlist_book_id)

        self.log_operation("UPDATE", wishlist_book_id)
        return entry

    async def delete_book(self, user_id: int, wishlist_book_id: int) -> None:
        async with self.get_session() as session:
            await self._require_entry(session, user_id, wishlist_book_id)
            await self._delete_entry(session, wishlist_book_id)
        self.log_operation("DELETE", wishlist_book_id)

    async def move_to_books(self, user_id: int, wishlist_book_id: int) -> BookResponse:
        """
        Move a wishlist entry into the collection.

        Raises:
            ResourceNotFound: If the entry does not exist
            BookAlreadyExists: If the same catalog volume is already in the collection
        """
        async with self.get_session() as session:
            entry = await self._require_entry(session, user_id, wishlist_book_id)

            if entry.google_book_id:
                result = await session.execute(
                    text(
                        "SELECT 1 FROM books WHERE user_id = :user_id "
                        "AND google_book_id = :google_book_id LIMIT 1"
                    ),
                    {"user_id": user_id, "google_book_id": entry.google_book_id},
                )
                if result.first() is not None:
                    raise BookAlreadyExists()

            book = await self.books_service.insert_book(
                session,
                user_id,
                {
                    "google_book_id": entry.google_book_id,
                    "title": entry.title,
                    "author": entry.author,
                    "description": entry.description,
                    "thumbnail": entry.thumbnail,
                },
                entry.tags,
            )
            await self._delete_entry(session, wishlist_book_id)

        self.log_operation(
            "MOVE_TO_BOOKS", wishlist_book_id, additional_context=f"book_id={book.id}"
        )
        return book

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    async def _insert(
        self, session: AsyncSession, user_id: int, fields: Dict, tags: List[str]
    ) -> WishlistBookResponse:
        result = await session.execute(
            text(
                """
                INSERT INTO wishlist_books (
                    user_id, google_book_id, title, author, description, thumbnail
                )
                VALUES (
                    :user_id, :google_book_id, :title, :author, :description, :thumbnail
                )
                RETURNING id
                """
            ),
            {"user_id": user_id, **fields},
        )
        entry_id = result.scalar_one()
        await self._replace_tags(session, entry_id, tags)
        return await self._require_entry(session, user_id, entry_id)

    async def _delete_entry(self, session: AsyncSession, wishlist_book_id: int) -> None:
        await session.execute(
            text("DELETE FROM wishlist_book_tags WHERE wishlist_book_id = :id"),
            {"id": wishlist_book_id},
        )
        await session.execute(
            text("DELETE FROM wishlist_books WHERE id = :id"), {"id": wishlist_book_id}
        )

    async def _require_entry(
        self, session: AsyncSession, user_id: int, wishlist_book_id: int
    ) -> WishlistBookResponse:
        result = await session.execute(
            text(
                f"SELECT {WISHLIST_COLUMNS} FROM wishlist_books "
                "WHERE id = :id AND user_id = :user_id"
            ),
            {"id": wishlist_book_id, "user_id": user_id},
        )
        entries = await self._with_tags(session, result.mappings().all())
        if not entries:
            raise ResourceNotFound(f"Wishlist book not found with id: {wishlist_book_id}")
        return entries[0]

    async def _replace_tags(
        self, session: AsyncSession, wishlist_book_id: int, tags: List[str]
    ) -> None:
        await session.execute(
            text("DELETE FROM wishlist_book_tags WHERE wishlist_book_id = :id"),
            {"id": wishlist_book_id},
        )
        for tag in dict.fromkeys(tags):
            await session.execute(
                text(
                    "INSERT INTO wishlist_book_tags (wishlist_book_id, tag) "
                    "VALUES (:id, :tag)"
                ),
                {"id": wishlist_book_id, "tag": tag},
            )

    async def _with_tags(self, session: AsyncSession, rows) -> List[WishlistBookResponse]:
        rows = [dict(row) for row in rows]
        if not rows:
            return []

        result = await session.execute(
            text(
                "SELECT wishlist_book_id, tag FROM wishlist_book_tags "
                "WHERE wishlist_book_id IN :ids ORDER BY tag"
            ).bindparams(bindparam("ids", expanding=True)),
            {"ids": [row["id"] for row in rows]},
        )
        tags: Dict[int, List[str]] = {}
        for tag_row in result.mappings().all():
            tags.setdefault(tag_row["wishlist_book_id"], []).append(tag_row["tag"])

        return [WishlistBookResponse(**row, tags=tags.get(row["id"], [])) for row in rows]
