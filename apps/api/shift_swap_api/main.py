"""FastAPI application entry point."""

from pathlib import Path

# Project root is 4 levels up from this file
_project_root = Path(__file__).parent.parent.parent.parent

# Load environment variables from project root .env file
from dotenv import load_dotenv
load_dotenv(_project_root / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shift_swap_core.errors import SwapEngineError
from shift_swap_core.models import ErrorResponse
from shift_swap_engine.logging_config import configure_logging

from shift_swap_api.routers import swap_requests

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shift Swap API",
    description="Shift swap approval and schedule exchange",
    version="0.1.0",
)

# Mount routers
app.include_router(swap_requests.router)

# CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SwapEngineError)
async def swap_engine_error_handler(request: Request, exc: SwapEngineError) -> JSONResponse:
    """Return engine errors as JSON with their own status code."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    else:
        logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)

    body = ErrorResponse(
        code=exc.code,
        detail=exc.message,
        context={k: str(v) for k, v in exc.context.items()},
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Shift Swap API", "docs": "/docs"}
