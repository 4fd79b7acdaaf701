"""API exception types and handlers producing the standard error envelope."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from .schemas.base import ErrorResponse, StatusCode


class APIException(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(code=exc.status_code, msg=exc.message).model_dump(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse.create(
            code=StatusCode.BAD_REQUEST,
            msg="Request validation failed",
            data={"errors": [str(e.get("msg")) for e in exc.errors()]},
        ).model_dump(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse.create(
            code=StatusCode.INTERNAL_ERROR, msg="Internal server error"
        ).model_dump(),
    )
