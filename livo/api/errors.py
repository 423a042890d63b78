"""Exception handlers rendering domain and validation errors in the response envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from livo.core.errors import AuthenticationError, LivoError, StorageError
from livo.schemas.common import ApiResponse

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    error: str,
    data: object = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse[object](success=False, message=message, error=error, data=data)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(exclude_none=True)),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for LivoError, database failures and request validation failures."""

    @app.exception_handler(LivoError)
    async def handle_livo_error(request: Request, exc: LivoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.detail
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return error_response(exc.status_code, exc.message, exc.error_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            400,
            "Field validation errors",
            "ValidationError",
            data=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(500, StorageError.default_message, StorageError.error_code)
