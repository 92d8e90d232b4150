"""FastAPI server for the AI Receptionist.

Run with:
    uvicorn receptionist.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from receptionist.api.routes import Services, router
from receptionist.config import CORS_ORIGINS, KV_DATABASE_URL, SERVER_HOST, SERVER_PORT
from receptionist.engine import create_conversation_engine
from receptionist.services.conversation_log import ConversationLog
from receptionist.services.kv_store import InMemoryKVStore, KVStore
from receptionist.services.notifications import NotificationComposer
from receptionist.services.record_store import RecordStore
from receptionist.services.sql_store import SQLAlchemyKVStore

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def build_services(store: KVStore) -> Services:
    """Wire the engine and the store-backed services around *store*."""
    return Services(
        engine=create_conversation_engine(),
        conversation_log=ConversationLog(store),
        record_store=RecordStore(store),
        notifier=NotificationComposer(store),
    )


def _build_store() -> KVStore:
    if KV_DATABASE_URL:
        return SQLAlchemyKVStore(KV_DATABASE_URL)
    logger.warning("KV_DATABASE_URL not set; records are kept in memory only")
    return InMemoryKVStore()


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: open the store and compile the engine once."""
    store = _build_store()
    application.state.services = build_services(store)
    logger.info("Receptionist services ready.")
    yield
    if isinstance(store, SQLAlchemyKVStore):
        store.dispose()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="AI Receptionist",
    description=(
        "Customer-message processing: intent classification, booking "
        "records, notifications and conversation history."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Error envelope: {"success": false, "error": ...} ─────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "[%s] Invalid request body: %s",
        getattr(request.state, "request_id", "?"), exc.errors(),
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "Invalid request"})


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "AI Receptionist",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting AI Receptionist API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "receptionist.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
