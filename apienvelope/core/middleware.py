import logging
import time
from typing import Callable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Config
from .errors import EnvelopeError, FailedCheckError
from .response import ResponseEnvelope, Status
from .validation import result_from_errors


logger = logging.getLogger(__name__)

HTTP_CODE_STATUS_MAP = {
    400: Status.INVALID,
    401: Status.UNAUTHORIZED,
    403: Status.FORBIDDEN,
    404: Status.NOT_FOUND,
    422: Status.INVALID,
}


def cors_allowed_origins() -> list[str]:
    return Config.allowed_origins()


def _request_id(request: Request) -> str:
    return f"{int(time.time() * 1000)}-{id(request)}"


def _with_cors(request: Request, response):
    origin = request.headers.get("origin")
    if origin and origin in cors_allowed_origins():
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


async def log_requests(request: Request, call_next: Callable):
    start_time = time.time()
    request_id = _request_id(request)

    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        # Only log slow requests (>1s) or errors
        if process_time > 1.0 or response.status_code >= 400:
            logger.info(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} - ERROR: {str(e)} - {process_time:.2f}s")
        raise


async def failed_check_handler(request: Request, exc: FailedCheckError):
    logger.info(f"Validation failed for {request.method} {request.url.path}: {exc.result!r}")
    envelope = ResponseEnvelope.from_check_result(exc.result)
    return _with_cors(request, envelope.to_response())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    envelope = ResponseEnvelope.from_check_result(result_from_errors(exc.errors()))
    return _with_cors(request, envelope.to_response())


async def envelope_error_handler(request: Request, exc: EnvelopeError):
    return _with_cors(request, exc.envelope.to_response())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    status = HTTP_CODE_STATUS_MAP.get(exc.status_code, Status.ERROR if exc.status_code >= 500 else Status.INVALID)
    messages = [exc.detail] if isinstance(exc.detail, str) else []
    envelope = ResponseEnvelope({}, status, messages)
    if not isinstance(exc.detail, str) and exc.detail is not None:
        envelope.set("detail", exc.detail)
    return _with_cors(request, envelope.to_response(headers=getattr(exc, "headers", None)))


async def global_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.error(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    envelope = ResponseEnvelope({"request_id": request_id}, Status.ERROR, ["Internal server error"])
    if Config.should_expose_errors():
        envelope.add_message(f"{type(exc).__name__}: {exc}")

    return _with_cors(request, envelope.to_response())
