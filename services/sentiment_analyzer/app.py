import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.sentiment_analyzer.factory import (
    HttpSentimentClientFactory,
    SentimentClientFactory,
)
from services.sentiment_analyzer.handler import SentimentAnalysisHandler, render_error
from services.sentiment_analyzer.metrics import (
    ACTIVE_REQUESTS,
    BACKEND_UP,
    REQUEST_COUNT,
    REQUEST_DURATION,
)
from services.sentiment_analyzer.routes import router
from services.sentiment_analyzer.settings import Settings, settings
from shared.logger import configure_logging, get_logger

logger = get_logger(__name__)


def get_endpoint_path(request: Request) -> str:
    """Extract a clean endpoint path for metrics"""
    path = request.url.path
    if path in ["/", "/sentiment", "/health", "/services/status"]:
        return path
    return "/other"


async def check_backend_health(
    client_factory: SentimentClientFactory,
) -> Dict[str, Any]:
    """Ask the sentiment backend whether it is up"""
    try:
        client = await client_factory.get_client()
        check_health = getattr(client, "check_health", None)
        if check_health is None:
            return {"service": "sentiment", "status": "unknown"}
        result = await check_health()
        BACKEND_UP.set(1)
        return {"service": "sentiment", "status": "healthy", "response": result}
    except Exception as e:
        BACKEND_UP.set(0)
        logger.warning("Sentiment backend health check failed", error=str(e))
        return {"service": "sentiment", "status": "unhealthy", "error": str(e)}


def create_app(
    client_factory: Optional[SentimentClientFactory] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application around the given sentiment client factory"""
    app_settings = app_settings or settings
    client_factory = client_factory or HttpSentimentClientFactory(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.log_level)
        logger.info("Starting Sentiment Analyzer", version=app_settings.version)

        yield

        logger.info("Shutting down Sentiment Analyzer")
        await client_factory.aclose()
        logger.info("Shutdown completed")

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.version,
        description="Scores a message with a sentiment service and renders it as HTML",
        lifespan=lifespan,
        debug=app_settings.debug,
    )
    app.state.client_factory = client_factory
    app.state.handler = SentimentAnalysisHandler(client_factory)

    app.include_router(router)

    # Middleware for request logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Bind a request id to the log context and log every request"""
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, endpoint=request.url.path
        )

        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None,
        )

        response = await call_next(request)

        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
        )
        response.headers["X-Request-ID"] = request_id
        return response

    # Middleware for metrics collection
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect Prometheus metrics for all requests"""
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        endpoint = get_endpoint_path(request)
        method = request.method
        start_time = time.time()

        try:
            response = await call_next(request)
            REQUEST_COUNT.labels(
                method=method, endpoint=endpoint, status_code=str(response.status_code)
            ).inc()
            return response
        except Exception:
            REQUEST_COUNT.labels(
                method=method, endpoint=endpoint, status_code="500"
            ).inc()
            raise
        finally:
            REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(
                time.time() - start_time
            )
            ACTIVE_REQUESTS.dec()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP exceptions as HTML pages"""
        logger.error(
            "HTTP exception occurred",
            status_code=exc.status_code,
            detail=exc.detail,
            url=str(request.url),
            method=request.method,
        )
        return render_error(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception occurred",
            error=str(exc),
            error_type=type(exc).__name__,
            url=str(request.url),
            method=request.method,
            exc_info=True,
        )
        return render_error("Internal server error", 500)

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "service": "sentiment-analyzer",
            "version": app_settings.version,
        }

    @app.get("/services/status")
    async def services_status():
        """Check status of the sentiment backend"""
        result = await check_backend_health(client_factory)
        # A backend without a health check is not probed, not degraded
        degraded = result["status"] == "unhealthy"
        return {
            "overall_status": "degraded" if degraded else "healthy",
            "services": {"sentiment": result},
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
