"""
Database Module
===============

Async relational database client (asyncpg + SQLAlchemy).

Usage:
    from shared.database import postgres_session

    async with postgres_session() as session:
        result = await session.execute(select(WarrantyRecordRow))
        ...
"""

from shared.database.postgres import (
    Base,
    PostgresClient,
    postgres_session,
)


__all__ = [
    "Base",
    "PostgresClient",
    "postgres_session",
]
