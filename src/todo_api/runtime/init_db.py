"""Database initialization script."""

from src.todo_api.core.services.database.db_manage import DbManageService
from src.todo_api.core.services.database.db_session import DbSessionService


def init_db() -> None:
    """Create all database tables."""
    database_service = DbSessionService()
    try:
        DbManageService(database_service.engine).create_all()
    finally:
        database_service.dispose()


if __name__ == "__main__":
    init_db()
