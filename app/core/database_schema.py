"""
Database Schema
---------------
Table definitions for the TomeVault relational store, declared once with
SQLAlchemy Core metadata. Services query these tables with raw SQL; the
metadata is only used to create them at startup.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
    func,
    true,
)
from sqlalchemy.ext.asyncio import AsyncEngine
from loguru import logger


metadata = MetaData()


# ============================================================================
# IDENTITY TABLES
# ============================================================================

users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(120), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("first_name", String(50)),
    Column("last_name", String(50)),
    Column("address", String(255)),
    Column("birth_date", Date),
    Column("enabled", Boolean, nullable=False, server_default=true()),
    Column("account_non_expired", Boolean, nullable=False, server_default=true()),
    Column("account_non_locked", Boolean, nullable=False, server_default=true()),
    Column(
        "credentials_non_expired", Boolean, nullable=False, server_default=true()
    ),
    Column("deleted", Boolean, nullable=False, server_default=false()),
    Column("deleted_at", DateTime),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
)

roles_table = Table(
    "roles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(30), nullable=False, unique=True),
)

permissions_table = Table(
    "permissions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(30), nullable=False, unique=True),
)

role_permissions_table = Table(
    "role_permissions",
    metadata,
    Column(
        "role_id",
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

user_roles_table = Table(
    "user_roles",
    metadata,
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "role_id",
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

# One row per role catalog version whose grants have been applied.
catalog_versions_table = Table(
    "catalog_versions",
    metadata,
    Column("version", Integer, primary_key=True, autoincrement=False),
    Column("applied_at", DateTime, nullable=False, server_default=func.now()),
)


# ============================================================================
# LIBRARY TABLES
# ============================================================================

books_table = Table(
    "books",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("google_book_id", String(64), index=True),
    Column("title", String(255), nullable=False),
    Column("author", String(255)),
    Column("description", Text),
    Column("thumbnail", String(512)),
    Column("read_count", Integer, nullable=False, server_default="0"),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("added_at", DateTime, nullable=False, server_default=func.now()),
    Column("finished_at", DateTime),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
)

book_tags_table = Table(
    "book_tags",
    metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("tag", String(80), primary_key=True),
)

wishlist_books_table = Table(
    "wishlist_books",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("google_book_id", String(64), index=True),
    Column("title", String(255), nullable=False),
    Column("author", String(255)),
    Column("description", Text),
    Column("thumbnail", String(512)),
    Column("added_at", DateTime, nullable=False, server_default=func.now()),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
)

wishlist_book_tags_table = Table(
    "wishlist_book_tags",
    metadata,
    Column(
        "wishlist_book_id",
        Integer,
        ForeignKey("wishlist_books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("tag", String(80), primary_key=True),
)


async def create_schema(engine: AsyncEngine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)
    logger.info(f"Database schema ready ({len(metadata.tables)} tables)")
