from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from garage_api.core.request_context import request_id_ctx_var


class DomainError(HTTPException):
    """Base for the scheduling failure kinds.

    Every subclass pins an HTTP status and a stable ``code`` so clients can
    tell "no slot available" apart from "not allowed" without parsing text.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"
    default_detail: str = "Bad request"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class BadRequestError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_detail = "Bad request"


class InvalidStatusError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_status"
    default_detail = "Invalid status"


class InvalidServiceError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_service"
    default_detail = "Service not available in this garage"


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Not enough permissions"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Conflict"


class NoAvailabilityError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "no_availability"
    default_detail = "No repair bay available for this period"


def _error_payload(code: str, message: str, detail):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    code = exc.code if isinstance(exc, DomainError) else f"http_{exc.status_code}"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=code,
            message=str(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="validation_error",
            message="Request validation failed",
            detail=jsonable_encoder(exc.errors()),
        ),
    )
