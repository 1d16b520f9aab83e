"""FastAPI application setup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kursplan import __version__
from kursplan.api.dependencies import close_store, init_store
from kursplan.api.models import APIResponse
from kursplan.api.routes import availability, bulk, planning
from kursplan.config import PlannerConfig, config_from_env
from kursplan.logging import setup_logging
from kursplan.store import (
    AvailabilityLockedError,
    BusinessRuleError,
    EntityNotFoundError,
    ExamDateLockedError,
    PersistenceError,
    PlannerError,
    SnapshotSchemaError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Starlette has renamed its 422 constant between releases
UNPROCESSABLE = 422


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    config: PlannerConfig = app.state.config or config_from_env()
    db_path = app.state.db_path or config.database.path
    init_store(db_path, config)

    yield
    # Shutdown
    close_store()


def create_app(db_path: str | None = None, config: PlannerConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite file for the snapshot repository; overrides the config.
        config: Planner configuration. Read from the environment at startup
            when omitted.
    """
    app = FastAPI(
        title="Kursplan API",
        description="REST API for course planning",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.db_path = db_path
    app.state.config = config

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(_request: Request, exc: EntityNotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(AvailabilityLockedError)
    async def availability_locked_handler(
        _request: Request, exc: AvailabilityLockedError
    ) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ExamDateLockedError)
    async def exam_date_locked_handler(
        _request: Request, exc: ExamDateLockedError
    ) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(UNPROCESSABLE, str(exc))

    @app.exception_handler(BusinessRuleError)
    async def business_rule_handler(_request: Request, exc: BusinessRuleError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(SnapshotSchemaError)
    async def snapshot_schema_handler(
        _request: Request, exc: SnapshotSchemaError
    ) -> JSONResponse:
        return _error_response(UNPROCESSABLE, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        _request: Request, _exc: PersistenceError
    ) -> JSONResponse:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not save planning data"
        )

    @app.exception_handler(PlannerError)
    async def planner_error_handler(_request: Request, _exc: PlannerError) -> JSONResponse:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    # Include routers
    app.include_router(bulk.router, prefix="/api/v1")
    app.include_router(planning.router, prefix="/api/v1")
    app.include_router(availability.router, prefix="/api/v1")

    return app


def main() -> None:
    """Serve the API with uvicorn, configured from the environment."""
    config = config_from_env()
    setup_logging(config.logging)
    uvicorn.run(create_app(config=config), host="127.0.0.1", port=8000)


# Default app instance
app = create_app()
