from contextlib import asynccontextmanager
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from CatalogSync import __version__
from CatalogSync.database.db import create_db_and_tables
from CatalogSync.dependencies import CatalogServices, build_catalog_services
from CatalogSync.handlers.exception_handlers import register_exception_handlers
from CatalogSync.routers import admin_routes, catalog_routes
from CatalogSync.utils.config import CatalogSyncSettings

logger = logging.getLogger(__name__)


def configure_logging():
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(services: CatalogServices = None, start_scheduler: bool = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built components (tests pass their own); built from the
            environment when omitted
        start_scheduler: Override CATALOG_SYNC_ENABLED
    """
    if services is None:
        services = build_catalog_services(CatalogSyncSettings.from_env(load_dotenv_file=False))

    settings = services.settings
    run_scheduler = settings.sync_enabled if start_scheduler is None else start_scheduler

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up...")
        create_db_and_tables(services.engine)

        if run_scheduler:
            await services.scheduler.start()
        else:
            logger.info("Catalog sync scheduler disabled")

        logger.info("Startup complete!")
        yield

        logger.info("Shutting down...")
        if run_scheduler:
            await services.scheduler.stop()
        await services.fetcher.close()
        services.engine.dispose()
        logger.info("Shutdown complete!")

    app = FastAPI(
        title="CatalogSync API",
        description="Supplier catalogue synchronization and local-first parts search",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.catalog = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=bool(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(catalog_routes.router)
    app.include_router(admin_routes.router)

    return app


if __name__ == "__main__":
    configure_logging()
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
