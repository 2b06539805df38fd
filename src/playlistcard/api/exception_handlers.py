"""Custom exception handlers for the FastAPI application.

This module registers global exception handlers that convert domain exceptions
and validation errors into HTTP responses with the right status codes.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from playlistcard.domain.exceptions import (
    AuthenticationError,
    BusinessRuleViolation,
    ComposerBusyError,
    ConfigurationError,
    DomainException,
    ExternalServiceError,
    InvalidStateException,
    RateLimitExceededError,
    RenderError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# Hey future me - Pydantic's exc.errors() can carry the raw body as bytes in 'input', and
# JSONResponse chokes on bytes. Walk the structure and decode them before responding.
def _sanitize_validation_errors(
    errors: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Sanitize validation errors by converting bytes to strings."""

    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError:
                return value.decode("latin-1")
        elif isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        elif isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        return value

    return [_sanitize_value(error) for error in errors]


def _domain_response(
    request: Request,
    exc: DomainException,
    status_code: int,
    level: int = logging.WARNING,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    logger.log(
        level,
        "%s at %s: %s",
        type(exc).__name__,
        request.url.path,
        exc.message,
        extra={"path": request.url.path, "error": exc.message},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message},
        headers=headers,
    )


# Hey future me, these are GLOBAL handlers: any route raising a domain exception ends up here
# instead of leaking as a 500 with a stack trace. Register them in create_app() before the
# first request. Starlette picks the handler of the closest class in the MRO, so the
# RenderError / DomainException fallbacks only catch what nothing more specific handles.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain exceptions and request validation errors.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle validation errors with 422 Unprocessable Entity."""
        return _domain_response(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY)

    @app.exception_handler(BusinessRuleViolation)
    async def business_rule_violation_handler(
        request: Request, exc: BusinessRuleViolation
    ) -> JSONResponse:
        """Handle business rule violations with 400 Bad Request."""
        return _domain_response(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(InvalidStateException)
    async def invalid_state_exception_handler(
        request: Request, exc: InvalidStateException
    ) -> JSONResponse:
        """Handle invalid state exceptions with 400 Bad Request."""
        return _domain_response(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(ComposerBusyError)
    async def composer_busy_handler(
        request: Request, exc: ComposerBusyError
    ) -> JSONResponse:
        """Handle a rejected concurrent export with 409 Conflict."""
        return _domain_response(request, exc, status.HTTP_409_CONFLICT)

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle authentication errors with 401 Unauthorized."""
        return _domain_response(
            request,
            exc,
            status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        return _domain_response(
            request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, level=logging.ERROR
        )

    # Listen, when Spotify gave us a real HTTP status we pass it through (a 400 from the
    # token endpoint stays a 400). No status = transport failure = 502.
    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle external service errors with the upstream status or 502 Bad Gateway."""
        status_code = (
            exc.http_status
            if exc.http_status is not None and exc.http_status >= 400
            else status.HTTP_502_BAD_GATEWAY
        )
        return _domain_response(request, exc, status_code, level=logging.ERROR)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        """Handle rate limit errors with 429 Too Many Requests."""
        headers = (
            {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
        )
        return _domain_response(
            request, exc, status.HTTP_429_TOO_MANY_REQUESTS, headers=headers
        )

    @app.exception_handler(RenderError)
    async def render_error_handler(request: Request, exc: RenderError) -> JSONResponse:
        """Handle render failures that escaped the composer with 502 Bad Gateway."""
        return _domain_response(
            request, exc, status.HTTP_502_BAD_GATEWAY, level=logging.ERROR
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Catch-all for domain exceptions without a dedicated handler: 400."""
        return _domain_response(request, exc, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors with 422 Unprocessable Entity."""
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
            extra={"path": request.url.path, "errors": sanitized_errors},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": sanitized_errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions with proper logging."""
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "HTTP error %d at %s: %s",
            exc.status_code,
            request.url.path,
            exc.detail,
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "detail": exc.detail,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )
