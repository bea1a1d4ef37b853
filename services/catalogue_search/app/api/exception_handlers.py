"""
Exception handlers for converting domain exceptions to catalogue error responses.

This module handles the conversion from domain exceptions (which contain technical details)
to presentation-layer responses: an HTTP status code and the catalogue error envelope
``{type: "urn:dx:cat:<Kind>", title, detail}``.
"""

import logging
from typing import Dict, Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.domain.exceptions import (
    CatalogueDomainException,
    MissingSearchTypeError,
    InvalidGeometryError,
    InvalidTemporalValueError,
    InvalidRelationshipError,
    InvalidSearchRequestError,
    ItemNotFoundError,
    LocationNotFoundError,
    EmbeddingUnavailableError,
    BackendUnavailableError,
    SearchTimeoutError,
)
from app.api.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

# exception class -> (HTTP status, urn kind, title)
_ERROR_TABLE = {
    MissingSearchTypeError: (400, "InvalidSyntax", "Missing search type"),
    InvalidGeometryError: (400, "InvalidGeoValue", "Invalid geometry"),
    InvalidTemporalValueError: (400, "InvalidTemporalValue", "Invalid temporal value"),
    InvalidRelationshipError: (400, "InvalidRelationshipValue", "Invalid relationship"),
    InvalidSearchRequestError: (400, "InvalidParamValue", "Invalid search request"),
    ItemNotFoundError: (404, "ItemNotFound", "Item not found"),
    LocationNotFoundError: (404, "ItemNotFound", "Location not found"),
    EmbeddingUnavailableError: (502, "BackendError", "Embedding service unavailable"),
    BackendUnavailableError: (500, "InternalServerError", "Search backend unavailable"),
    SearchTimeoutError: (504, "Timeout", "Search timed out"),
}

_DEFAULT_ERROR = (500, "InternalServerError", "Internal server error")


class ExceptionMessageHandler:
    """Handles conversion of domain exceptions to catalogue error responses."""

    @staticmethod
    def _lookup(exception: CatalogueDomainException):
        for exception_class in type(exception).__mro__:
            if exception_class in _ERROR_TABLE:
                return _ERROR_TABLE[exception_class]
        return _DEFAULT_ERROR

    @staticmethod
    def get_http_status_code(exception: CatalogueDomainException) -> int:
        """
        Get appropriate HTTP status code for domain exception.

        Args:
            exception: Domain exception from core layer

        Returns:
            HTTP status code
        """
        return ExceptionMessageHandler._lookup(exception)[0]

    @staticmethod
    def get_error_details(exception: CatalogueDomainException) -> Dict[str, Any]:
        """
        Extract technical details for logging/debugging.

        Args:
            exception: Domain exception from core layer

        Returns:
            Technical details for internal use
        """
        return {
            "error_code": exception.error_code,
            "details": exception.details,
            "cause": str(exception.cause) if exception.cause else None,
            "exception_type": type(exception).__name__
        }

    @staticmethod
    def create_error_response(exception: CatalogueDomainException) -> ErrorResponse:
        _, kind, title = ExceptionMessageHandler._lookup(exception)
        reason = exception.details.get("reason")
        detail = reason or ", ".join(f"{key}={value}" for key, value in exception.details.items()) or None
        return ErrorResponse(type=f"urn:dx:cat:{kind}", title=title, detail=detail)


async def handle_domain_exception(request: Request, exc: CatalogueDomainException) -> JSONResponse:
    status_code = ExceptionMessageHandler.get_http_status_code(exc)
    details = ExceptionMessageHandler.get_error_details(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {details}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {details}")
    body = ExceptionMessageHandler.create_error_response(exc)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogueDomainException, handle_domain_exception)
