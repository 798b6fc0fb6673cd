"""
Arena Tournament Management - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException
import uvicorn

from arena import __version__
from arena.core.config import settings
from arena.core.db import engine, Base
from arena.core.errors import AppError
from arena.api import (
    routes_admin,
    routes_brackets,
    routes_events,
    routes_notifications,
    routes_registrations,
    routes_seat_maps,
    routes_teams,
    routes_users,
    ws,
)
from arena.utils.responses import error_response

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

app = FastAPI(
    title="Arena Tournament Management",
    description="Backend for esports tournaments: seating, registrations, teams and brackets",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(message=exc.message, status_code=exc.status_code)

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(message=str(exc.detail), status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return error_response(message="; ".join(errors) or "Invalid request", status_code=400)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(message="Internal server error", status_code=500)

app.include_router(routes_events.router, tags=["events"])
app.include_router(routes_registrations.router, tags=["registrations"])
app.include_router(routes_teams.router, tags=["teams"])
app.include_router(routes_seat_maps.router, tags=["seat-maps"])
app.include_router(routes_brackets.router, tags=["brackets"])
app.include_router(routes_notifications.router, tags=["notifications"])
app.include_router(routes_users.router, tags=["users"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])

@app.get("/health")
async def health():
    """Liveness probe"""
    return {"status": "ok", "version": __version__}

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
