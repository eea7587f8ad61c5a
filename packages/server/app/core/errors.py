"""
Exception handlers.

Store failures are logged with full detail and answered with a generic
body so driver messages and SQL never reach clients.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

log = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def error_body(code: str, message: str, status: int) -> dict:
    return {"error": {"code": code, "message": message, "status": status}}


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error(
        "db.error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, 500),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
