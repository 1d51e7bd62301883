import logging
import time
from datetime import datetime

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Config
from .core.errors import EnvelopeError, FailedCheckError
from .core.middleware import (
    envelope_error_handler,
    failed_check_handler,
    global_exception_handler,
    http_exception_handler,
    log_requests,
    request_validation_handler,
)
from .core.response import ResponseEnvelope, Status

logger = logging.getLogger(__name__)


def create_app(title: str = "API Envelope Service") -> FastAPI:
    """Build a FastAPI app whose every answer, errors included, is an envelope."""
    app = FastAPI(title=title)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _log_requests(request, call_next):
        return await log_requests(request, call_next)

    app.add_exception_handler(FailedCheckError, failed_check_handler)
    app.add_exception_handler(EnvelopeError, envelope_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health")
    async def health_check():
        """Report configuration health as an envelope."""
        health_start_time = time.time()

        try:
            Config.validate()
        except ValueError as e:
            logger.error(f"Health check failed: {str(e)}")
            return ResponseEnvelope.send(
                {"service": Config.SERVICE_NAME, "timestamp": datetime.now().isoformat()},
                Status.ERROR,
                [str(e)],
            )

        health_duration = time.time() - health_start_time
        return ResponseEnvelope.send({
            "service": Config.SERVICE_NAME,
            "environment": Config.ENVIRONMENT,
            "timestamp": datetime.now().isoformat(),
            "response_time_ms": round(health_duration * 1000, 2),
        })

    @app.get("/")
    async def root():
        """Return basic API information."""
        return ResponseEnvelope.send({
            "service": title,
            "version": "1.0",
            "endpoints": {
                "health": "/health",
            },
            "statuses": ResponseEnvelope.valid_statuses(),
            "timestamp": datetime.now().isoformat(),
        })

    return app


app = create_app()
