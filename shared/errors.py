"""
Closed set of failure kinds raised by the service layer.

Routers never build error responses by hand: services raise one of the
MarketplaceError subclasses and the handlers registered in main.py turn the
kind into the HTTP status and the JSON error body.
"""
from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    OWNERSHIP = "ownership"
    BUSINESS_RULE = "business_rule"
    CONFLICT = "conflict"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.OWNERSHIP: status.HTTP_403_FORBIDDEN,
    ErrorKind.BUSINESS_RULE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class MarketplaceError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        body = {"success": False, "kind": self.kind.value, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class ValidationFailed(MarketplaceError):
    kind = ErrorKind.VALIDATION


class NotFound(MarketplaceError):
    kind = ErrorKind.NOT_FOUND


class OwnershipViolation(MarketplaceError):
    kind = ErrorKind.OWNERSHIP


class BusinessRuleViolation(MarketplaceError):
    kind = ErrorKind.BUSINESS_RULE


class InsufficientStock(BusinessRuleViolation):
    def __init__(self, product_name: str, product_id: int | None = None) -> None:
        super().__init__(f"Requested quantity of {product_name} is not available in stock")
        self.product_name = product_name
        self.product_id = product_id


class EmptyCart(BusinessRuleViolation):
    def __init__(self) -> None:
        super().__init__("Cart is empty")


class Conflict(MarketplaceError):
    kind = ErrorKind.CONFLICT


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        kind=exc.kind.value,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    body = ValidationFailed("Invalid data", errors=errors).to_dict()
    return JSONResponse(status_code=422, content=body)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Auth and role guards raise plain HTTPExceptions; keep the JSON shape uniform.
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    body = MarketplaceError("An unexpected error occurred").to_dict()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
