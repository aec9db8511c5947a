# ---------------------------------------------------------
# backend/main.py
# Building inspection tracker - Backend
#
# Run: uvicorn backend.main:app --reload (from repo root)
#  or: inspection-backend
#
# - FastAPI + SQLAlchemy (SQLite in dev, PostgreSQL in prod)
# - /api/projects/* : paginated project summaries, search, export
# - /api/buildings/* : building record CRUD + bulk upload
# - /health          : liveness + database status
# ---------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend import config, db
from backend.routes_buildings import router as buildings_router
from backend.routes_projects import router as projects_router

config.configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Fails fast (RuntimeError) when DATABASE_URL is missing
    db.init_engine()
    logger.info("[CONFIG] Environment: %s", config.ENV)
    logger.info("[CONFIG] API base: %s", config.API_PREFIX)
    try:
        yield
    finally:
        db.dispose_engine()


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
app = FastAPI(title="Inspection Tracker Backend", version="0.1", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS if config.IS_PROD else ["*"],  # Restrict origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router)
app.include_router(buildings_router)


# ---------------------------------------------------------
# Error handlers: every failure renders as {"error": message}
# ---------------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    if errors and errors[0].get("loc", ())[:1] == ("body",):
        message = f"Request body must be a JSON object ({message})"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[API] Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "environment": config.ENV,
        "database": "connected" if db.is_connected() else "not connected",
    }


def run() -> None:
    """Console entry point: serve the API with uvicorn on HOST:PORT."""
    uvicorn.run("backend.main:app", host=config.HOST, port=config.PORT, reload=config.IS_DEV)
