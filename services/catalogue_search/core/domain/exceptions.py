"""
Domain exceptions for the catalogue search engine.

These exceptions describe why a request could not be decoded or executed.
They carry machine-readable codes and technical details only; HTTP status codes
and user-facing titles are decided by the presentation layer.
"""

from typing import Optional, Dict, Any


class CatalogueDomainException(Exception):
    """Base domain exception for catalogue search errors."""

    def __init__(self, error_code: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize domain exception.

        Args:
            error_code: Domain-specific error code (not user-facing)
            details: Technical details about the error
            cause: Original exception that caused this error
        """
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        super().__init__(error_code)


# --- 400-class: detected while decoding, never reach the backend ---

class MissingSearchTypeError(CatalogueDomainException):
    """Raised when a search request carries no recognizable criterion group."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(error_code="MISSING_SEARCH_TYPE", details=details)


class InvalidGeometryError(CatalogueDomainException):
    """Raised when a geo criterion has an unsupported shape, relation or malformed coordinates."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code="INVALID_GEOMETRY",
            details={"reason": reason, **(details or {})},
        )


class InvalidTemporalValueError(CatalogueDomainException):
    """Raised when a temporal criterion value is not an ISO-8601 instant."""

    def __init__(self, value: Any, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="INVALID_TEMPORAL_VALUE",
            details={"value": value, **(details or {})},
            cause=cause,
        )


class InvalidRelationshipError(CatalogueDomainException):
    """Raised when the requested relationship cannot be traversed from the anchor's type."""

    def __init__(self, anchor_type: Optional[str], relationship: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code="INVALID_RELATIONSHIP",
            details={"anchor_type": anchor_type, "relationship": relationship, **(details or {})},
        )


class InvalidSearchRequestError(CatalogueDomainException):
    """Raised for malformed criteria that are not geometry or temporal problems."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="INVALID_SEARCH_REQUEST",
            details={"reason": reason, **(details or {})},
            cause=cause,
        )


# --- 404-class ---

class ItemNotFoundError(CatalogueDomainException):
    """Raised when a looked-up item is missing or an NLP search yields nothing."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code="ITEM_NOT_FOUND",
            details={"reason": reason, **(details or {})},
        )


class LocationNotFoundError(CatalogueDomainException):
    """Raised when the geocoder cannot resolve a place name."""

    def __init__(self, place: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="LOCATION_NOT_FOUND",
            details={"place": place, **(details or {})},
            cause=cause,
        )


# --- 5xx-class: collaborator or backend failures ---

class EmbeddingUnavailableError(CatalogueDomainException):
    """Raised when the embedding service cannot be reached or returns garbage."""

    def __init__(self, embedding_error: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="EMBEDDING_UNAVAILABLE",
            details={"embedding_error": embedding_error, **(details or {})},
            cause=cause,
        )


class BackendUnavailableError(CatalogueDomainException):
    """Raised when the document-search backend fails."""

    def __init__(self, backend_error: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="BACKEND_UNAVAILABLE",
            details={"backend_error": backend_error, **(details or {})},
            cause=cause,
        )


class SearchTimeoutError(CatalogueDomainException):
    """Raised when a caller-supplied deadline expires before all branches complete."""

    def __init__(self, timeout: float, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(
            error_code="SEARCH_TIMEOUT",
            details={"timeout_seconds": timeout, **(details or {})},
            cause=cause,
        )
