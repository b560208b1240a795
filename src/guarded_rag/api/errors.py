"""Translation of typed errors into ErrorResponse bodies."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from guarded_rag.exceptions import RAGEngineError
from guarded_rag.models.schemas import ErrorResponse
from guarded_rag.observability.logger import get_logger

logger = get_logger("api_errors")


async def rag_error_handler(request: Request, exc: RAGEngineError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_error",
        path=request.url.path,
        code=exc.code,
        status=exc.status_code,
        error=exc.message,
    )
    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = ErrorResponse(
        code="VALIDATION_ERROR",
        message="Request body is invalid",
        details={"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
    )
    return JSONResponse(status_code=400, content=body.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RAGEngineError, rag_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
