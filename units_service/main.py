import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from .infrastructure.db import engine, Base
from .infrastructure import models  # noqa: F401  регистрирует таблицы в Base.metadata
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.ratelimit import limiter
from .interfaces.http.routers import units as units_router
from .domain.errors import ConcurrencyConflictError
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Units Service", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Добавляем middleware для правильной кодировки и метрик
@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


@app.exception_handler(ConcurrencyConflictError)
async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflictError):
    logger.error("unit_update_gave_up", unit_id=exc.unit_id, attempts=exc.attempts)
    return JSONResponse(status_code=503, content={"detail": "Unit is busy, please try again"})


@app.on_event("startup")
def on_startup():
    logger.info("Starting units service", version="0.1.0")
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(units_router.router)
