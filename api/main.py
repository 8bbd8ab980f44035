"""
Expense Claims Portal — FastAPI application.

Startup sequence:
  1. Load .env
  2. Open the database handle and create tables
  3. Mount the uploads directory and include API routers
Shutdown disposes the database engine.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.routes import claims as claims_router
from api.routes import documents as documents_router
from db.database import Database
from services.file_store import UPLOADS_URL_PREFIX, FileStore

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    database: Optional[Database] = None,
    file_store: Optional[FileStore] = None,
) -> FastAPI:
    database = database or Database()
    file_store = file_store or FileStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Claims portal startup: opening database …")
        database.open()
        database.init_db()
        logger.info("Claims portal startup: uploads in %s", file_store.root)
        logger.info("Claims portal startup: ready.")
        yield
        database.close()
        logger.info("Claims portal shutdown complete.")

    app = FastAPI(
        title="Expense Claims Portal",
        description="Employee expense claim submission and HR approval.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.file_store = file_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=CORS_ORIGINS != ["*"],
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=86400,
    )

    # -----------------------------------------------------------------------
    # Health endpoint
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["meta"])
    def health(request: Request) -> dict:
        """Liveness check. Reports the database backend and uploads directory."""
        db: Database = request.app.state.database
        return {
            "status": "ok",
            "database": db.engine.dialect.name if db.engine is not None else None,
            "uploads_dir": str(request.app.state.file_store.root),
        }

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(claims_router.router)
    app.include_router(documents_router.router)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=str(file_store.root)), name="uploads")

    return app


app = create_app()
