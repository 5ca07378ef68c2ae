from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from textaudit.api.v1.router import router as v1_router
from textaudit.core.config import get_settings
from textaudit.core.errors import ConfigurationError, ExhaustedRetriesError, ValidationError
from textaudit.core.logging import configure_logging, get_logger
from textaudit.schemas.common import ErrorResponse, HealthResponse
from textaudit.services.engine import get_engine
from textaudit.utils.trace import get_trace_id, trace_context_middleware

settings = get_settings()
configure_logging()
logger = get_logger(__name__)


app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse)
app.middleware("http")(trace_context_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


def _error(status_code: int, detail: str) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail, trace_id=get_trace_id()).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    return _error(422, str(exc))


@app.exception_handler(ValidationError)
async def input_validation_handler(_: Request, exc: ValidationError):
    return _error(422, str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_handler(_: Request, exc: ConfigurationError):
    logger.error("engine_not_configured", error=str(exc), trace_id=get_trace_id())
    return _error(503, str(exc))


@app.exception_handler(ExhaustedRetriesError)
async def exhausted_retries_handler(_: Request, exc: ExhaustedRetriesError):
    logger.error(
        "engine_request_failed",
        error=str(exc),
        kinds=[attempt.error_kind for attempt in exc.attempts],
        trace_id=get_trace_id(),
    )
    return _error(502, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.exception("unhandled_exception", error=str(exc), trace_id=get_trace_id())
    return _error(500, "Internal server error")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    close = getattr(get_engine().backend, "aclose", None)
    if close is not None:
        await close()


@app.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok", model=settings.groq_model, credentials_configured=settings.has_api_key)


app.include_router(v1_router, prefix=settings.api_prefix)
