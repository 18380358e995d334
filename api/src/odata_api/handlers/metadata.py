#!/usr/bin/env python3

import logging

from ..clients.odata_client import ODataClient, ODataClientError
from ..models.models import (
    DetectRequest,
    DetectResponse,
    MetadataUrlResponse,
    ParseMetadataRequest,
    SchemaResponse,
)
from ..services.domain.metadata import StructuralError, detect_metadata_version, parse_metadata
from ..services.domain.query import InvalidServiceUrlError, derive_metadata_url, service_root_from_metadata_url
from .errors import to_http_exception

logger = logging.getLogger(__name__)


async def handle_parse_metadata(request: ParseMetadataRequest, client: ODataClient) -> SchemaResponse:
    """Parse $metadata from inline content, or fetch it from a service URL.

    Inline content wins when both are given. A URL may point anywhere in the
    service; the $metadata URL is derived from it.
    """
    metadata_url = None
    service_root = None
    content = request.content

    if not content:
        try:
            metadata_url = derive_metadata_url(request.url)
        except InvalidServiceUrlError as e:
            logger.warning(f"Rejected service URL: {e}")
            raise to_http_exception(e) from e
        service_root = service_root_from_metadata_url(metadata_url)
        logger.info(f"Fetching $metadata from {metadata_url}", extra={"source_url": metadata_url})
        try:
            content = await client.fetch_metadata(metadata_url)
        except ODataClientError as e:
            raise to_http_exception(e) from e

    try:
        model = parse_metadata(content)
    except StructuralError as e:
        logger.warning(f"Rejected $metadata document: {e}")
        raise to_http_exception(e) from e

    return SchemaResponse.from_model(model, metadata_url=metadata_url, service_root=service_root)


def handle_detect(request: DetectRequest) -> DetectResponse:
    """Advisory check whether content is a $metadata document"""
    version = detect_metadata_version(request.content)
    return DetectResponse(is_metadata=version is not None, version=version)


def handle_metadata_url(url: str) -> MetadataUrlResponse:
    """Derive the $metadata URL and service root for any service URL"""
    try:
        metadata_url = derive_metadata_url(url)
    except InvalidServiceUrlError as e:
        raise to_http_exception(e) from e
    return MetadataUrlResponse(
        metadata_url=metadata_url,
        service_root=service_root_from_metadata_url(metadata_url),
    )
