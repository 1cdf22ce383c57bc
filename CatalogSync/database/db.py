from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Register table models with SQLModel metadata
from CatalogSync.models.catalog_models import CatalogEntryModel  # noqa: F401


def build_engine(database_url: str) -> Engine:
    """Create the engine for the Catalog Store."""
    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same in-memory DB
            return create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        echo=False,
        pool_size=20,
        max_overflow=30,
        pool_timeout=30,
        pool_recycle=3600,
    )


# Create tables if they don't exist
def create_db_and_tables(engine: Engine):
    SQLModel.metadata.create_all(engine)
