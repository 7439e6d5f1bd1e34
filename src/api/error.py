"""API error handling

Use case errors travel as ClientError and are rendered as
{"error": {"code", "message", "reason"}}.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error

logger = logging.getLogger(__name__)

# Error code -> HTTP status; anything unlisted is a 400
STATUS_BY_CODE = {
    "CHARGE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CUSTOMER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_AMOUNT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_DUE_DATE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_DESCRIPTION": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_METADATA": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_DATE_RANGE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CUSTOMER_NOT_ELIGIBLE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "GATEWAY_CHARGE_ID_TAKEN": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CHARGE_NOT_UPDATABLE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CHARGE_CANNOT_BE_CANCELLED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CHARGE_NOT_REFUNDABLE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CHARGE_NOT_DELETABLE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CHARGE_CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,
    "GATEWAY_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "GATEWAY_REJECTED": status.HTTP_502_BAD_GATEWAY,
}


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or STATUS_BY_CODE.get(
            error.code, status.HTTP_400_BAD_REQUEST
        )


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} -> {exc.error.code}: {exc.error.reason}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error.model_dump(exclude_none=True)},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "reason": details,
            }
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
