"""
Database Services Package
-------------------------
Database services for the TomeVault API.

This package provides:
- Base service class with session management and shared utilities
- User service (identity records and role assignments)
- Roles service (catalog seeding and role management)
- Books and wishlist services (owner-scoped library data)
"""

from app.psql_db_services.base_service import BaseDatabaseService
from app.psql_db_services.users_service import UsersService
from app.psql_db_services.roles_service import RolesService
from app.psql_db_services.books_service import BooksService
from app.psql_db_services.wishlist_service import WishlistService

__all__ = [
    "BaseDatabaseService",
    "UsersService",
    "RolesService",
    "BooksService",
    "WishlistService",
]
