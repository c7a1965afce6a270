"""FastAPI application exposing the academic records API."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from .config import CORS_ORIGIN, DATABASE_URL, SEED_DEV_DATA
from .db import create_session_factory, init_db
from .db.fixtures import seed_dev_data
from .errors import RegistrarError, UnauthorizedError
from .routers import courses, enrollments, schedules, students, teachers

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def _registrar_error_handler(_: Request, exc: RegistrarError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def create_app(session_factory: sessionmaker[Session] | None = None) -> FastAPI:
    """Build the application around an injected store handle."""

    app = FastAPI(title="Registrar Service", version="0.1.0")
    app.state.session_factory = session_factory or create_session_factory(DATABASE_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(RegistrarError, _registrar_error_handler)

    app.include_router(courses.router)
    app.include_router(schedules.router)
    app.include_router(enrollments.router)
    app.include_router(teachers.router)
    app.include_router(students.router)

    @app.on_event("startup")
    def startup_event() -> None:  # pragma: no cover - exercised indirectly
        factory = app.state.session_factory
        init_db(factory.kw["bind"])
        if SEED_DEV_DATA:
            seed_dev_data(factory)
            LOGGER.info("Seeded development data")

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


__all__ = ["app", "create_app"]
