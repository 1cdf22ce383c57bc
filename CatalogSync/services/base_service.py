"""
Base service abstraction for consistent database session management.

Key features:
- Centralized session context manager
- Standardized transaction management (commit on success, rollback on error)
- Proper session cleanup
"""

import logging
from contextlib import contextmanager
from abc import ABC

from sqlalchemy.engine import Engine
from sqlmodel import Session

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Base service class providing centralized session management.

    Usage:
        class CatalogStoreService(BaseService):
            def count(self):
                with self.get_session() as session:
                    return repository.count(session)
    """

    def __init__(self, engine: Engine):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.engine = engine

    @contextmanager
    def get_session(self):
        """
        Context manager for synchronous database session management.

        Provides:
        - Automatic session creation and cleanup
        - Transaction management with auto-commit on success
        - Automatic rollback on exceptions
        """
        session = Session(self.engine, expire_on_commit=False)
        try:
            self.logger.debug("Database session created")
            yield session
            session.commit()
            self.logger.debug("Database session committed successfully")
        except Exception as e:
            session.rollback()
            self.logger.error(f"Database session rolled back due to error: {e}")
            raise
        finally:
            session.close()
            self.logger.debug("Database session closed")
