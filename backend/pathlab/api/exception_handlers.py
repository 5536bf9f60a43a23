"""Error responses: every failure is answered as {"error": <message>}"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Đã xảy ra lỗi, vui lòng thử lại"
INVALID_PARAMETER_MESSAGE = "Tham số không hợp lệ"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def first_validation_message(exc: RequestValidationError) -> str:
    """Message of the first violation; custom validator messages lose pydantic's prefix"""
    errors = exc.errors()
    if not errors:
        return INVALID_PARAMETER_MESSAGE
    first = errors[0]
    if first.get("type") == "missing":
        field = first.get("loc", ["?"])[-1]
        return f"Thiếu trường bắt buộc: {field}"
    msg = str(first.get("msg") or INVALID_PARAMETER_MESSAGE)
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        msg = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
        return error_response(msg, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Bad path/query parameters are client errors (400); bad bodies are 422
        location = exc.errors()[0].get("loc", ("body",))[0] if exc.errors() else "body"
        status_code = 422 if location == "body" else 400
        return error_response(first_validation_message(exc), status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return error_response(GENERIC_ERROR_MESSAGE, 500)
