"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.router import get_api_router
from src.core.config import settings
from src.core.database import close_db
from src.core.exceptions import AppraisalError
from src.core.logging_config import setup_logging
from src.schemas.shared import ErrorResponse, StatusResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    yield
    await close_db()
    logger.info(f"{settings.PROJECT_NAME} stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS_LIST,
    allow_credentials=True,
    allow_methods=settings.CORS_METHODS_LIST,
    allow_headers=settings.CORS_HEADERS_LIST,
)


@app.exception_handler(AppraisalError)
async def appraisal_error_handler(request: Request, exc: AppraisalError) -> JSONResponse:
    """Render workflow errors with their stable code."""
    logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    body = ErrorResponse(
        error=exc.code.replace("_", " ").title(),
        detail=exc.message,
        code=exc.code,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.include_router(get_api_router(), prefix=settings.API_V1_STR)


@app.get("/health", response_model=StatusResponse, tags=["Health"])
async def health_check():
    """Service status."""
    return StatusResponse(
        status="ok",
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
