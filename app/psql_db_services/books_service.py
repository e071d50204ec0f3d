"""
CRUD Operations for Book Collections
------------------------------------
Database service for the books a user owns. Every operation is scoped to the
owning user id; a book belonging to someone else is reported as not found.

Removing a book is a soft delete (is_active = false) so it can be reactivated
later, optionally keeping its reading progress.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.database_connection import DatabaseManager
from app.core.exceptions import (
    BookAlreadyExists,
    BookPreviouslyDeleted,
    ResourceNotFound,
    ValidationError,
)
from app.models.book_models import (
    DEFAULT_AUTHOR,
    BookCreateRequest,
    BookResponse,
    BookStatusResponse,
    BookUpdateRequest,
    CatalogBook,
)
from app.psql_db_services.base_service import BaseDatabaseService


BOOK_COLUMNS = """
    id, google_book_id, title, author, description, thumbnail,
    read_count, is_active, added_at, finished_at
"""

DEMO_LIBRARY_SIZE = 5


class BooksService(BaseDatabaseService):
    """Owner-scoped operations on the books table and its tags."""

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        super().__init__(database_manager)

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def list_active_books(self, user_id: int) -> List[BookResponse]:
        """Active books of a user, oldest first."""
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    f"SELECT {BOOK_COLUMNS} FROM books "
                    "WHERE user_id = :user_id AND is_active = :active ORDER BY id"
                ),
                {"user_id": user_id, "active": True},
            )
            return await self._with_tags(session, result.mappings().all())

    async def get_book(self, user_id: int, book_id: int) -> BookResponse:
        async with self.get_session() as session:
            return await self._require_book(session, user_id, book_id)

    async def get_book_by_google_id(
        self, user_id: int, google_book_id: str
    ) -> BookResponse:
        """Active book imported from ``google_book_id``."""
        async with self.get_session() as session:
            book = await self._find_by_google_id(
                session, user_id, google_book_id, active=True
            )
        if book is None:
            raise ResourceNotFound(f"Book not found with Google ID: {google_book_id}")
        return book

    async def get_book_status(
        self, user_id: int, google_book_id: str
    ) -> BookStatusResponse:
        """Whether the user holds an active and/or a removed copy of a catalog book."""
        async with self.get_session() as session:
            active = await self._find_by_google_id(session, user_id, google_book_id, active=True)
            inactive = await self._find_by_google_id(
                session, user_id, google_book_id, active=False
            )
        return BookStatusResponse(
            google_book_id=google_book_id,
            exists_active=active is not None,
            exists_inactive=inactive is not None,
        )

    # ========================================================================
    # CREATE OPERATIONS
    # ========================================================================

    async def add_book(self, user_id: int, request: BookCreateRequest) -> BookResponse:
        """Add a manually entered book."""
        async with self.get_session() as session:
            book = await self.insert_book(
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
        self.log_operation("CREATE", book.id, additional_context=f"user={user_id}")
        return book

    async def add_from_catalog(self, user_id: int, catalog_book: CatalogBook) -> BookResponse:
        """
        Import a catalog volume into the collection.

        Raises:
            BookAlreadyExists: An active copy is already in the collection
            BookPreviouslyDeleted: A removed copy exists and should be reactivated instead
        """
        async with self.get_session() as session:
            if await self._find_by_google_id(
                session, user_id, catalog_book.google_book_id, active=True
            ):
                raise BookAlreadyExists()
            if await self._find_by_google_id(
                session, user_id, catalog_book.google_book_id, active=False
            ):
                raise BookPreviouslyDeleted()

            book = await self.insert_book(
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
            "IMPORT", book.id, additional_context=f"google_book_id={catalog_book.google_book_id}"
        )
        return book

    async def insert_book(
        self,
        session: AsyncSession,
        user_id: int,
        fields: Dict[str, Any],
        tags: List[str],
    ) -> BookResponse:
        """Insert a book inside an existing session so callers can compose transactions."""
        params = {"user_id": user_id, "read_count": 0, "is_active": True, **fields}
        result = await session.execute(
            text(
                """
                INSERT INTO books (
                    user_id, google_book_id, title, author, description,
                    thumbnail, read_count, is_active
                )
                VALUES (
                    :user_id, :google_book_id, :title, :author, :description,
                    :thumbnail, :read_count, :is_active
                )
                RETURNING id
                """
            ),
            params,
        )
        book_id = result.scalar_one()
        await self._replace_tags(session, book_id, tags)
        return await self._require_book(session, user_id, book_id)

    # ========================================================================
    # UPDATE OPERATIONS
    # ========================================================================

    async def update_book(
        self, user_id: int, book_id: int, request: BookUpdateRequest
    ) -> BookResponse:
        fields = request.model_dump(exclude_unset=True, exclude={"tags"})
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError("Title is required")

        async with self.get_session() as session:
            await self._require_book(session, user_id, book_id)
            if fields:
                sql_query, params = self.build_dynamic_update_query(
                    "books",
                    fields,
                    "id = :id AND user_id = :user_id",
                    {"id": book_id, "user_id": user_id},
                )
                await session.execute(self.prepare_statement(sql_query, params), params)
            if request.tags is not None:
                await self._replace_tags(session, book_id, request.tags)
            book = await self._require_book(session, user_id, book_id)

        self.log_operation("UPDATE", book_id)
        return book

    async def delete_book(self, user_id: int, book_id: int) -> None:
        """Soft delete: the book is hidden but can be reactivated."""
        await self._set_fields(user_id, book_id, "is_active = :active", {"active": False})
        self.log_operation("SOFT_DELETE", book_id)

    async def activate_book(
        self, user_id: int, google_book_id: str, keep_progress: bool = True
    ) -> BookResponse:
        """
        Reactivate a removed catalog book.

        Args:
            keep_progress: When False the read count and finish date are cleared
        """
        async with self.get_session() as session:
            book = await self._find_by_google_id(
                session, user_id, google_book_id, active=False
            )
            if book is None:
                raise ResourceNotFound(
                    f"No removed book found with Google ID: {google_book_id}"
                )

            assignments = "is_active = :active"
            if not keep_progress:
                assignments += ", read_count = 0, finished_at = NULL"
            await session.execute(
                text(
                    f"UPDATE books SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                    "WHERE id = :id"
                ),
                {"active": True, "id": book.id},
            )
            book = await self._require_book(session, user_id, book.id)

        self.log_operation(
            "ACTIVATE", book.id, additional_context=f"keep_progress={keep_progress}"
        )
        return book

    async def increment_read_count(self, user_id: int, book_id: int) -> BookResponse:
        """Record one more completed read and stamp the finish date."""
        return await self._set_fields(
            user_id,
            book_id,
            "read_count = read_count + 1, finished_at = CURRENT_TIMESTAMP",
            {},
        )

    async def decrement_read_count(self, user_id: int, book_id: int) -> BookResponse:
        async with self.get_session() as session:
            book = await self._require_book(session, user_id, book_id)
            if book.read_count <= 0:
                raise ValidationError("Cannot decrement read count below zero")

            assignments = "read_count = read_count - 1"
            if book.read_count == 1:
                assignments += ", finished_at = NULL"
            await session.execute(
                text(
                    f"UPDATE books SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                    "WHERE id = :id"
                ),
                {"id": book_id},
            )
            return await self._require_book(session, user_id, book_id)

    # ========================================================================
    # DEMO ACCOUNT
    # ========================================================================

    async def reset_demo_library(self, user_id: int) -> int:
        """
        Restore the shared demo account's library to its base books.

        Reactivates up to five removed books, then deletes every book beyond
        the five oldest.

        Returns:
            Number of books deleted
        """
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    "SELECT id FROM books WHERE user_id = :user_id AND is_active = :active "
                    "ORDER BY id LIMIT :limit"
                ),
                {"user_id": user_id, "active": False, "limit": DEMO_LIBRARY_SIZE},
            )
            reactivate_ids = [row[0] for row in result.all()]
            if reactivate_ids:
                await session.execute(
                    text("UPDATE books SET is_active = :active WHERE id IN :ids").bindparams(
                        bindparam("ids", expanding=True)
                    ),
                    {"active": True, "ids": reactivate_ids},
                )

            result = await session.execute(
                text("SELECT id FROM books WHERE user_id = :user_id ORDER BY id"),
                {"user_id": user_id},
            )
            surplus_ids = [row[0] for row in result.all()][DEMO_LIBRARY_SIZE:]
            if surplus_ids:
                await session.execute(
                    text("DELETE FROM book_tags WHERE book_id IN :ids").bindparams(
                        bindparam("ids", expanding=True)
                    ),
                    {"ids": surplus_ids},
                )
                await session.execute(
                    text("DELETE FROM books WHERE id IN :ids").bindparams(
                        bindparam("ids", expanding=True)
                    ),
                    {"ids": surplus_ids},
                )

        logger.info(
            f"Demo library reset: {len(reactivate_ids)} reactivated, "
            f"{len(surplus_ids)} deleted"
        )
        return len(surplus_ids)

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    async def _set_fields(
        self, user_id: int, book_id: int, assignments: str, params: Dict[str, Any]
    ) -> BookResponse:
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    f"UPDATE books SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                    "WHERE id = :id AND user_id = :user_id"
                ),
                {**params, "id": book_id, "user_id": user_id},
            )
            if result.rowcount == 0:
                raise ResourceNotFound(f"Book not found with id: {book_id}")
            return await self._require_book(session, user_id, book_id)

    async def _require_book(
        self, session: AsyncSession, user_id: int, book_id: int
    ) -> BookResponse:
        result = await session.execute(
            text(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = :id AND user_id = :user_id"),
            {"id": book_id, "user_id": user_id},
        )
        books = await self._with_tags(session, result.mappings().all())
        if not books:
            raise ResourceNotFound(f"Book not found with id: {book_id}")
        return books[0]

    async def _find_by_google_id(
        self, session: AsyncSession, user_id: int, google_book_id: str, active: bool
    ) -> Optional[BookResponse]:
        result = await session.execute(
            text(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE user_id = :user_id "
                "AND google_book_id = :google_book_id AND is_active = :active "
                "ORDER BY id LIMIT 1"
            ),
            {"user_id": user_id, "google_book_id": google_book_id, "active": active},
        )
        books = await self._with_tags(session, result.mappings().all())
        return books[0] if books else None

    async def _replace_tags(
        self, session: AsyncSession, book_id: int, tags: List[str]
    ) -> None:
        await session.execute(
            text("DELETE FROM book_tags WHERE book_id = :book_id"), {"book_id": book_id}
        )
        for tag in dict.fromkeys(tags):
            await session.execute(
                text("INSERT INTO book_tags (book_id, tag) VALUES (:book_id, :tag)"),
                {"book_id": book_id, "tag": tag},
            )

    async def _with_tags(self, session: AsyncSession, rows) -> List[BookResponse]:
        rows = [dict(row) for row in rows]
        if not rows:
            return []

        result = await session.execute(
            text(
                "SELECT book_id, tag FROM book_tags WHERE book_id IN :ids ORDER BY tag"
            ).bindparams(bindparam("ids", expanding=True)),
            {"ids": [row["id"] for row in rows]},
        )
        tags: Dict[int, List[str]] = {}
        for tag_row in result.mappings().all():
            tags.setdefault(tag_row["book_id"], []).append(tag_row["tag"])

        return [BookResponse(**row, tags=tags.get(row["id"], [])) for row in rows]
