import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import HTTPException
import logging
from contextlib import asynccontextmanager
from sqlalchemy.orm.exc import StaleDataError

from app.core.culture import resolve_culture, set_current_culture, reset_current_culture
from app.database import engine, init_db
from app.config import settings
from app.database import SessionLocal
from app.logging import log_config
from app.services.layers_admin import LayersAdminService

from app import models  # noqa: F401  (registers the tables on Base.metadata)

# API Routes
from app.api import layers

logger = log_config.setup_logging(settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI):

    # Silence Uvicorn's default access logger to reduce noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Create the database folder and tables (Safe, idempotent)
    init_db(engine)

    # -- Seed default layers when necessary (Safe, idempotent)
    db = SessionLocal()
    try:
        LayersAdminService(db).initialize_defaults()
    finally:
        db.close()
    # --------------------------------------

    worker_pid = os.getpid()
    logger.info(f"Worker process PID:{worker_pid} startup (Log Level: {settings.log_level})")

    yield

    # --- SHUTDOWN ---
    logger.info(f"Worker {worker_pid} shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
    root_path=settings.clean_base_url,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_proxies)


@app.middleware("http")
async def request_culture(request: Request, call_next):
    """Widgets are filtered by the culture the client asks for"""
    culture = resolve_culture(request.headers.get("accept-language"))
    token = set_current_culture(culture)
    try:
        response = await call_next(request)
    finally:
        reset_current_culture(token)

    response.headers["Content-Language"] = culture
    return response


# Global exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers  # Keeps the 'WWW-Authenticate' header
    )

@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    """Another request saved the same document first"""
    logger.warning(f"Concurrent update rejected on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=409,
        content={"detail": "The document was modified by another request. Reload and try again."}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# --- ROUTER REGISTRATION ---
app.include_router(layers.router, prefix="/api/layers", tags=["layers"])

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "layers"}
