"""Application-level exception types and handlers."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Mapping

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, request_id_bound
from .schemas.system import ErrorResponse

logger = logging.getLogger(__name__)


class ApplicationError(Exception):
    """Base class for domain-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "application_error",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class UnauthorizedError(ApplicationError):
    """Raised when a protected operation is called without a valid identity."""

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message, code="unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)


class InvalidCredentialsError(ApplicationError):
    """Raised for any failed login, whatever the reason."""

    def __init__(self) -> None:
        super().__init__(
            "Invalid credentials.",
            code="invalid_credentials",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class NotFoundError(ApplicationError):
    """Resource is absent or not owned by the caller."""

    def __init__(
        self,
        message: str = "Resource not found.",
        *,
        code: str = "not_found",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ValidationError(ApplicationError):
    """Error representing business validation failures."""

    def __init__(
        self,
        message: str = "Validation failed.",
        *,
        code: str = "validation_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class WeakPasswordError(ValidationError):
    def __init__(self, min_length: int) -> None:
        super().__init__(
            f"Password must be at least {min_length} characters long.",
            code="weak_password",
            details={"min_length": min_length},
        )


class DuplicateUsernameError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Username is already taken.", code="duplicate_username")


class UsernameRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Username is required.", code="username_required")


class FileTooLargeError(ValidationError):
    def __init__(self, filename: str, max_bytes: int) -> None:
        super().__init__(
            "Uploaded file exceeds the maximum allowed size.",
            code="file_too_large",
            details={"filename": filename, "max_bytes": max_bytes},
        )


class FilesRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__("At least one file is required.", code="files_required")


class TooManyFilesError(ValidationError):
    def __init__(self, max_files: int) -> None:
        super().__init__(
            f"At most {max_files} files can be uploaded at once.",
            code="too_many_files",
            details={"max_files": max_files},
        )


class StoreFailureError(ApplicationError):
    """Persistence failure that is not recoverable within the request."""

    def __init__(self, message: str = "The operation could not be completed.") -> None:
        super().__init__(
            message,
            code="store_failure",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


_HTTP_STATUS_CODE_MAP: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "payload_too_large",
}


def _request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _merge_details_with_request(request: Request, details: Any | None) -> Any | None:
    request_id = _request_id_of(request)
    if not request_id:
        return details
    if details is None:
        return {"request_id": request_id}
    if isinstance(details, dict):
        return {**details, "request_id": request_id}
    return {"request_id": request_id, "detail": details}


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    payload = ErrorResponse(
        code=code,
        message=message,
        details=_merge_details_with_request(request, details),
    )
    response = JSONResponse(status_code=status_code, content=jsonable_encoder(payload))
    if headers:
        response.headers.update(headers)
    request_id = _request_id_of(request)
    if request_id:
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def _http_exception_message(status_code: int, detail: Any) -> tuple[str, Any | None]:
    if isinstance(detail, str):
        return detail, None
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Error"
    if detail is None:
        return phrase, None
    if isinstance(detail, list):
        return phrase, {"errors": detail}
    return phrase, detail


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the provided FastAPI app."""

    @app.exception_handler(ApplicationError)
    async def _handle_application_error(
        request: Request,
        exc: ApplicationError,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.info
            log(
                "Application error encountered",
                extra={"code": exc.code, "status_code": exc.status_code},
            )
            return _error_response(
                request,
                status_code=exc.status_code,
                code=exc.code,
                message=exc.message,
                details=exc.details,
            )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            errors = jsonable_encoder(exc.errors(), exclude={"input", "ctx", "url"})
            logger.info("Request validation failed", extra={"errors": errors})
            return _error_response(
                request,
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                code="validation_error",
                message="Request validation failed.",
                details={"errors": errors},
            )

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(
        request: Request,
        exc: IntegrityError,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            logger.error("Database integrity error encountered.", exc_info=exc)
            return _error_response(
                request,
                status_code=status.HTTP_409_CONFLICT,
                code="db_integrity_error",
                message="Database integrity violation.",
            )

    @app.exception_handler(SQLAlchemyError)
    async def _handle_store_error(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            logger.error("Database operation failed.", exc_info=exc)
            failure = StoreFailureError()
            return _error_response(
                request,
                status_code=failure.status_code,
                code=failure.code,
                message=failure.message,
            )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            code = _HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error")
            message, extra_details = _http_exception_message(exc.status_code, exc.detail)
            log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.info
            log(
                "HTTP exception raised",
                extra={"code": code, "status_code": exc.status_code, "path": str(request.url.path)},
            )
            return _error_response(
                request,
                status_code=exc.status_code,
                code=code,
                message=message,
                details=extra_details,
                headers=exc.headers or None,
            )

    @app.exception_handler(Exception)
    async def _handle_unhandled_exception(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        with request_id_bound(_request_id_of(request)):
            logger.exception("Unhandled application error.")
            return _error_response(
                request,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="server_error",
                message="Internal server error.",
            )


__all__ = [
    "ApplicationError",
    "DuplicateUsernameError",
    "FileTooLargeError",
    "FilesRequiredError",
    "InvalidCredentialsError",
    "NotFoundError",
    "StoreFailureError",
    "TooManyFilesError",
    "UnauthorizedError",
    "UsernameRequiredError",
    "ValidationError",
    "WeakPasswordError",
    "register_exception_handlers",
]
