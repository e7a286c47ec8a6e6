"""
Main FastAPI application for the reader API.
Serves health, chapter access/unlock, currency, images, admin and metrics.
"""
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import AppError, InternalError, ValidationError
from app.core.logging import configure_logging
from app.api.routes import admin, auth, chapters, currency, health, images
from app.services.auth.rate_limit import get_client_ip
from app.utils.metrics import http_request_duration_seconds, router as metrics_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Manga Reader API",
    description="Chapter entitlements, unlocks, currency ledger and image storage",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = [settings.frontend_base_url, "http://localhost:5173", "http://127.0.0.1:5173"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    latency = time.perf_counter() - start
    response.headers[settings.request_id_header] = request_id
    http_request_duration_seconds.labels(method=request.method, status_code=str(response.status_code)).observe(latency)
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_ms": round(latency * 1000, 2),
            "client_ip": get_client_ip(request),
        },
    )
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "code": exc.code, "error": str(exc.__cause__ or exc)},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path, "error": type(exc).__name__})
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router)
app.include_router(chapters.router)
app.include_router(currency.router)
app.include_router(images.router)
app.include_router(admin.router)
app.include_router(metrics_router)
