"""Schema management for the application database."""

from loguru import logger
from sqlalchemy import Engine
from sqlmodel import SQLModel


class DbManageService:
    def __init__(self, engine: Engine):
        self._engine = engine

    def create_all(self) -> None:
        """Create all database tables."""
        # Register the tables with the metadata
        from src.todo_api.entities.core.identity import IdentityTable  # noqa: F401
        from src.todo_api.entities.service.task import TaskTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

