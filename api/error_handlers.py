"""Error handlers: map bad input and algod failures onto JSON error responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from smart_contracts.chain import ChainError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, code: str, message: str, http_status: int) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status

    def to_response(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


def chain_error_status(exc: ChainError) -> int:
    # algod rejecting a submitted group (failed assert, bad signature) is a client error
    if exc.status_code == status.HTTP_400_BAD_REQUEST:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_502_BAD_GATEWAY


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        logger.info(f"[API] {request.method} {request.url.path} -> {exc.code}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(ChainError)
    async def chain_error_handler(request: Request, exc: ChainError):
        logger.warning(f"[API] {request.method} {request.url.path} -> algod: {exc.message}")
        http_status = chain_error_status(exc)
        code = "TransactionRejected" if http_status == status.HTTP_400_BAD_REQUEST else "AlgodUnavailable"
        return JSONResponse(
            status_code=http_status,
            content={"error": {"code": code, "message": exc.message}},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[API] Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "ValidationError",
                    "message": "Invalid request data",
                    "details": [
                        {
                            "field": ".".join(str(loc) for loc in e["loc"]),
                            "message": e["msg"],
                        }
                        for e in exc.errors()
                    ],
                }
            },
        )
