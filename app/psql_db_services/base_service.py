"""
Base Database Service
--------------------
Base class for all database services with shared session management,
error handling and utilities.

This base class provides:
- SQLAlchemy session management
- Typed parameter binding that works on both PostgreSQL and SQLite
- Consistent error handling and logging
- Validation helpers
"""

from datetime import date, datetime
from typing import Optional, List, Dict, Any, Tuple, AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import Date, DateTime, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause
from loguru import logger

from app.core.database_connection import DatabaseManager
from app.core.exceptions import ValidationError


class BaseDatabaseService:
    """
    Base class for all database service classes.

    Provides shared functionality for database operations including:
    - SQLAlchemy session management
    - Transaction handling with commit/rollback
    - Error handling and logging
    - Common validation utilities
    """

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        """
        Initialize the database service with a database manager.

        Args:
            database_manager: Optional DatabaseManager instance. If not provided,
                            uses the singleton instance.
        """
        self.database_manager = database_manager or DatabaseManager()
        self._service_name = self.__class__.__name__

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy session with automatic commit/rollback.

        Yields:
            AsyncSession: SQLAlchemy session

        Example:
            async with self.get_session() as session:
                result = await session.execute(text("SELECT * FROM users"))
                users = result.mappings().all()
        """
        async with self.database_manager.get_session() as session:
            yield session

    def prepare_statement(
        self, sql_query: str, query_parameters: Optional[Dict[str, Any]] = None
    ) -> TextClause:
        """
        Build a text() statement, typing date and datetime parameters.

        Raw text() binds are untyped, which leaves date handling to the driver.
        Typing them lets SQLAlchemy convert the values for SQLite and pass them
        through natively for asyncpg.
        """
        statement = text(sql_query)
        typed_parameters = []
        for name, value in (query_parameters or {}).items():
            if isinstance(value, datetime):
                typed_parameters.append(bindparam(name, type_=DateTime()))
            elif isinstance(value, date):
                typed_parameters.append(bindparam(name, type_=Date()))
        if typed_parameters:
            statement = statement.bindparams(*typed_parameters)
        return statement

    # ========================================================================
    # VALIDATION UTILITIES
    # ========================================================================

    def validate_string_not_empty(
        self, string_value: str, parameter_name: str = "string"
    ) -> None:
        """
        Validate that a string is not None or empty.

        Raises:
            ValidationError: If string is None, empty or only whitespace
        """
        if not string_value or not isinstance(string_value, str):
            raise ValidationError(f"{parameter_name} must be a non-empty string")
        if not string_value.strip():
            raise ValidationError(f"{parameter_name} cannot be only whitespace")

    def validate_pagination_parameters(
        self, limit: int, offset: int, max_limit: int = 1000
    ) -> None:
        """
        Validate pagination parameters for queries.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip
            max_limit: Maximum allowed limit value (default: 1000)

        Raises:
            ValidationError: If pagination parameters are invalid
        """
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}")
        if limit > max_limit:
            raise ValidationError(f"limit cannot exceed {max_limit}, got {limit}")
        if offset < 0:
            raise ValidationError(f"offset must be non-negative, got {offset}")

    # ========================================================================
    # UTILITY METHODS
    # ========================================================================

    def build_dynamic_update_query(
        self,
        table_name: str,
        update_fields: Dict[str, Any],
        where_clause: str,
        where_parameters: Dict[str, Any],
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Build a dynamic UPDATE query with only the fields that need updating.

        Args:
            table_name: Name of the table to update
            update_fields: Dictionary of column names and their new values
            where_clause: WHERE clause (e.g., "id = :id")
            where_parameters: Parameters for the WHERE clause as dictionary

        Returns:
            Tuple of (query_string, parameters_dict)

        Example:
            query, params = self.build_dynamic_update_query(
                "users",
                {"email": "new@email.com"},
                "id = :id",
                {"id": user_id}
            )
        """
        if not update_fields:
            raise ValueError("update_fields cannot be empty")

        # Always include updated_at timestamp
        set_clauses = ["updated_at = CURRENT_TIMESTAMP"]
        parameters = {}

        for field_name, field_value in update_fields.items():
            param_name = f"set_{field_name}"
            set_clauses.append(f"{field_name} = :{param_name}")
            parameters[param_name] = field_value

        parameters.update(where_parameters)

        sql_query = f"""
            UPDATE {table_name}
            SET {", ".join(set_clauses)}
            WHERE {where_clause}
            RETURNING *
        """

        return sql_query, parameters

    def log_operation(
        self,
        operation_type: str,
        entity_identifier: Any,
        success: bool = True,
        additional_context: Optional[str] = None,
    ) -> None:
        """
        Log database operations for monitoring and debugging.

        Args:
            operation_type: Type of operation (e.g., "CREATE", "UPDATE", "DELETE")
            entity_identifier: Identifier of the entity being operated on
            success: Whether the operation was successful
            additional_context: Optional additional context information
        """
        log_level = "info" if success else "error"
        status = "succeeded" if success else "failed"

        message = (
            f"{self._service_name}: {operation_type} operation {status} "
            f"for entity: {entity_identifier}"
        )

        if additional_context:
            message += f" - {additional_context}"

        getattr(logger, log_level)(message)
