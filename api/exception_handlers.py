"""
Hotel API - Exception Handlers
==============================

Renders every error as a `{message, errors?}` JSON body.
"""

import traceback
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from exceptions import HotelError
from logging_config import get_logger

logger = get_logger(__name__)


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        # loc is ("body", "field", ...) / ("query", "name"); drop the source
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return errors


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HotelError)
    async def hotel_error_handler(request: Request, exc: HotelError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(content=exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(content={"message": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            content={"message": "The given data was invalid.", "errors": _field_errors(exc)},
            status_code=422,
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}:\n{traceback.format_exc()}")
        return JSONResponse(content={"message": "Server Error"}, status_code=500)
