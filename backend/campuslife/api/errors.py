"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campuslife.api.request_id import get_request_id
from campuslife.domain.search.policy import SearchPolicyError
from campuslife.infra.query import InvalidValue, QueryError

logger = logging.getLogger(__name__)


def _error(request: Request, status_code: int, detail, **extra) -> JSONResponse:
    payload = {"detail": detail, **extra, "request_id": get_request_id(request)}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        return _error(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        return _error(request, 422, "validation_error", errors=exc.errors())

    @app.exception_handler(SearchPolicyError)
    async def search_exc_handler(request: Request, exc: SearchPolicyError):  # type: ignore[override]
        return _error(request, exc.status_code, exc.detail)

    @app.exception_handler(InvalidValue)
    async def invalid_value_handler(request: Request, exc: InvalidValue):  # type: ignore[override]
        return _error(request, 400, "invalid_value")

    @app.exception_handler(QueryError)
    async def query_exc_handler(request: Request, exc: QueryError):  # type: ignore[override]
        logger.warning("query.unavailable table=%s", exc.table)
        return _error(request, 503, "backend_unavailable")
