import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.api.routes import entries
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Fail fast on invalid rules
    load_rules(settings.rules_path)
    logger.info("Rules loaded from %s", settings.rules_path)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    logger.info("Database ready at %s (%d migrations applied)", settings.db_path, len(applied))

    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Section Entries API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(entries.router, prefix="/api/entries", tags=["Entries"])

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        return {"status": "ok"}

    return app


app = create_app()
