"""
Отображение ошибок Context Relay в HTTP ответы.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from context_relay.core.errors import ErrorKind, RelayError
from context_relay.models.schemas import ProcessResult

logger = logging.getLogger("context-relay.api.errors")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.OUT_OF_REGION: 422,
    ErrorKind.UPSTREAM_COMPLETION: 502,
    ErrorKind.UPSTREAM_DELIVERY: 502,
}


def status_for(kind: Optional[ErrorKind]) -> int:
    return STATUS_BY_KIND.get(kind, 500)


def process_result_response(result: ProcessResult) -> JSONResponse:
    status_code = 200 if result.success else status_for(result.error_kind)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    status_code = status_for(exc.kind)
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"success": False, "error": exc.to_dict()})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Ocorreu um erro interno no servidor"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
