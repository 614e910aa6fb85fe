"""
SkillSync FastAPI application.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillsync.api.routes import health, progress, questions
from skillsync.core.services import PracticeServices
from skillsync.shared.config import settings
from skillsync.shared.exceptions import (
    OracleError,
    OracleTimeoutError,
    QuestionNotFoundError,
    QuotaExceededError,
)
from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

ERROR_STATUS = (
    (QuestionNotFoundError, 404),
    (QuotaExceededError, 429),
    (OracleTimeoutError, 504),
    (OracleError, 500),
)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": str(exc)})
    return handler


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{field}: {errors[0].get('msg', 'invalid value')}" if field else errors[0].get("msg", message)
    return JSONResponse(status_code=422, content={"error": message})


def create_app(services: Optional[PracticeServices] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        services: Pre-built services (tests); built from settings at startup otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting SkillSync API")

        app.state.services = services or PracticeServices.from_settings()
        health.set_start_time(time.time())

        logger.info(
            "SkillSync API ready",
            extra={
                "subjects_processed": app.state.services.repository.subject_count(),
                "progress_backend": app.state.services.progress_store.name,
            },
        )
        yield

        await app.state.services.tutor.aclose()
        logger.info("SkillSync API stopped")

    app = FastAPI(
        title="SkillSync",
        description="Practice question bank with an AI tutor for finance, law and biomed students",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, status_code in ERROR_STATUS:
        app.add_exception_handler(exc_class, _error_handler(status_code))
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health.router)
    for router in questions.routers:
        app.include_router(router)
    app.include_router(progress.router)

    return app


app = create_app()


def main():
    """CLI entry point for uvicorn."""
    import uvicorn

    uvicorn.run(
        "skillsync.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
