"""
Exception -> HTTP response mapping.

NotFoundError -> 404, ConcurrencyError -> 409, every other
LedgerKernelError -> 400.  Request-shape errors from FastAPI become a 400
ValidationError so clients see a single error vocabulary.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from ledger_api.schemas import ClosingCheckResultOut
from ledger_kernel.exceptions import (
    ClosingChecksFailedError,
    ConcurrencyError,
    LedgerKernelError,
    NotFoundError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("api.errors")


def _error_body(exc: LedgerKernelError) -> dict:
    return {
        "success": False,
        "error": exc.user_message,
        "kind": exc.kind,
        "code": exc.code,
        "message": str(exc),
        "details": {to_camel(k): v for k, v in exc.to_details().items()},
    }


def _status_for(exc: LedgerKernelError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConcurrencyError):
        return 409
    return 400


async def handle_ledger_error(request: Request, exc: LedgerKernelError) -> JSONResponse:
    status = _status_for(exc)
    logger.warning(
        "request_rejected",
        extra={
            "path": request.url.path,
            "status_code": status,
            "error_code": exc.code,
            "detail": str(exc),
        },
    )
    return JSONResponse(status_code=status, content=jsonable_encoder(_error_body(exc)))


async def handle_closing_checks_failed(
    request: Request,
    exc: ClosingChecksFailedError,
) -> JSONResponse:
    body = _error_body(exc)
    body["failedChecks"] = [
        ClosingCheckResultOut.from_result(r).model_dump(by_alias=True, mode="json")
        for r in exc.failed_checks
    ]
    body["allChecks"] = [
        ClosingCheckResultOut.from_result(r).model_dump(by_alias=True, mode="json")
        for r in exc.results
    ]
    logger.warning(
        "request_rejected",
        extra={
            "path": request.url.path,
            "status_code": 400,
            "error_code": exc.code,
            "failed_checks": [r.check_id for r in exc.failed_checks],
        },
    )
    return JSONResponse(status_code=400, content=body)


async def handle_request_validation(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": ValidationError.user_message,
            "kind": ValidationError.kind,
            "code": ValidationError.code,
            "message": "Request body or parameters are invalid",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClosingChecksFailedError, handle_closing_checks_failed)
    app.add_exception_handler(LedgerKernelError, handle_ledger_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
