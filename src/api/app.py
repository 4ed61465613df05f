"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import cleanup_dependencies
from src.api.routes import chat, health
from src.config.settings import ensure_configured, get_settings
from src.observability.logging import setup_logging
from src.observability.tracing import force_flush, get_tracer, is_tracing_enabled

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    setup_logging()

    # Raises ConfigurationError, which aborts startup
    ensure_configured(settings)

    logger.info(
        "Chat watcher starting up",
        service=settings.effective_service_name,
        environment=settings.environment,
    )

    if settings.tracing_enabled:
        from src.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )

    yield

    logger.info("Chat watcher shutting down")
    await cleanup_dependencies()
    force_flush()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    openapi_tags = [
        {"name": "chat", "description": "Live chat ingestion trigger"},
        {"name": "health", "description": "Service health checks"},
    ]

    app = FastAPI(
        title="Chat Watcher",
        description="""
Incremental ingestion of YouTube live chat.

Each call to `/chat` polls the selected broadcasts, keeps messages newer
than the stored watermark from allow-listed channels, tags negative
sentiment and stores them.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # Request logging, correlation ID, and tracing middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()

        try:
            if is_tracing_enabled():
                tracer = get_tracer("chat-watcher.api")
                with tracer.start_as_current_span(
                    f"{request.method} {request.url.path}",
                    attributes={
                        "http.method": request.method,
                        "http.url": str(request.url),
                        "http.route": request.url.path,
                        "http.request_id": request_id,
                    },
                ) as span:
                    response = await call_next(request)
                    duration = time.perf_counter() - start_time
                    span.set_attribute("http.status_code", response.status_code)
                    span.set_attribute("http.duration_ms", round(duration * 1000, 2))
            else:
                response = await call_next(request)
                duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
            # Instances may be frozen as soon as the response is sent
            force_flush()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(chat.router, tags=["chat"])
    app.include_router(health.router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Chat Watcher",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
