#!/usr/bin/env python3
"""Translation of domain and client failures into HTTP errors."""

import logging

from fastapi import HTTPException

from ..clients.odata_client import (
    InvalidPayloadError,
    NotMetadataDocumentError,
    ODataClientError,
    SourceUnreachableError,
)
from ..models.models import ErrorDetail
from ..services.domain.metadata import StructuralError
from ..services.domain.query import InvalidServiceUrlError

logger = logging.getLogger(__name__)

UNREACHABLE = "unreachable"
NOT_METADATA = "not_metadata"
INVALID_PAYLOAD = "invalid_payload"
INVALID_REQUEST = "invalid_request"


def _http_error(status_code: int, error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorDetail(error=error, message=message).model_dump(),
    )


def to_http_exception(exc: Exception) -> HTTPException:
    """Map a fetch or parse failure to one of the user-visible categories."""
    if isinstance(exc, SourceUnreachableError):
        return _http_error(502, UNREACHABLE, str(exc))
    if isinstance(exc, (NotMetadataDocumentError, StructuralError)):
        return _http_error(422, NOT_METADATA, str(exc))
    if isinstance(exc, InvalidServiceUrlError):
        return _http_error(422, INVALID_REQUEST, str(exc))
    if isinstance(exc, InvalidPayloadError):
        return _http_error(502, INVALID_PAYLOAD, str(exc))
    if isinstance(exc, ODataClientError):
        return _http_error(502, UNREACHABLE, str(exc))

    logger.error(f"Unexpected error: {exc}")
    return HTTPException(status_code=500, detail=f"Internal error: {str(exc)}")
