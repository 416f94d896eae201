"""
main.py
-------
FastAPI application for the maintenance core.

Two subsystems share one database:
  - /tickets  submission + background classification pipeline
  - /invites  tenant ↔ property ↔ landlord relationship workflow

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 4           # production (no --reload)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from upkeep.api.routes import invites, tickets
from upkeep.core.config import settings
from upkeep.core.errors import register_error_handlers
from upkeep.core.logging import configure_logging, get_logger
from upkeep.db.session import engine
from upkeep.services.classifier_service import classifier_service
from upkeep.services.mlflow_service import setup_mlflow

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging()
    setup_mlflow()
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        classifier_model="mock" if classifier_service.is_mock else settings.CLASSIFIER_MODEL,
    )
    yield
    logger.info("Shutting down, disposing DB engine")
    await engine.dispose()


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Maintenance ticket classification and tenant/landlord "
            "relationship workflow for the property maintenance platform."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(tickets.router)
    app.include_router(invites.router)
    register_error_handlers(app)

    @app.get("/health", tags=["Health"], summary="Service health check")
    async def health() -> dict:
        return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV}

    return app


app = create_application()
