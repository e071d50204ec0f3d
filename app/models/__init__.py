"""
Models Package
--------------
Pydantic models for database records and API payloads.

- users_models: user records with their role/permission graph
- book_models: collection books, wishlist books and catalog volumes
- request_models / response_models: user and admin API payloads
"""

from app.models.base_models import CamelModel
from app.models.users_models import Role, User

__all__ = ["CamelModel", "Role", "User"]
