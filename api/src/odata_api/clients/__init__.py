"""
Client Layer

This package contains low-level client wrappers for external services.
Clients handle communication with external systems but contain no business logic.

Modules:
- odata_client: async HTTP client for OData $metadata and query results
"""

from .odata_client import (
    InvalidPayloadError,
    NotMetadataDocumentError,
    ODataClient,
    ODataClientError,
    SourceUnreachableError,
)

__all__ = [
    'ODataClient',
    'ODataClientError',
    'SourceUnreachableError',
    'NotMetadataDocumentError',
    'InvalidPayloadError',
]
