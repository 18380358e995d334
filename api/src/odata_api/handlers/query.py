#!/usr/bin/env python3

import logging

from ..clients.odata_client import ODataClient, ODataClientError
from ..models.models import (
    CompileRequest,
    CompileResponse,
    ExecuteResponse,
    NormalizeRequest,
    NormalizeResponse,
)
from ..services.domain.query import (
    CompiledQuery,
    compile_query,
    extract_total_count,
    normalize_response,
    service_root_from_metadata_url,
)
from .errors import to_http_exception

logger = logging.getLogger(__name__)


def _compile(request: CompileRequest) -> CompiledQuery:
    service_root = service_root_from_metadata_url(request.metadata_url)
    return compile_query(
        service_root,
        request.selection,
        request.version,
        declared_properties=request.declared_properties,
    )


def handle_compile(request: CompileRequest) -> CompileResponse:
    """Compile a query selection into its request URL"""
    compiled = _compile(request)
    return CompileResponse(url=compiled.url, display_url=compiled.display_url)


async def handle_execute(request: CompileRequest, client: ODataClient) -> ExecuteResponse:
    """Compile, fetch and normalize a query.

    Returns rows in a uniform shape whatever envelope the service used.
    """
    compiled = _compile(request)
    logger.info(f"Executing query {compiled.display_url}", extra={"odata_version": request.version})

    try:
        decoded = await client.fetch_data(compiled.url)
    except ODataClientError as e:
        raise to_http_exception(e) from e

    return ExecuteResponse(
        url=compiled.url,
        display_url=compiled.display_url,
        format=decoded.format,
        used_fallback=decoded.used_fallback,
        rows=normalize_response(decoded.payload),
        total_count=extract_total_count(decoded.payload),
    )


def handle_normalize(request: NormalizeRequest) -> NormalizeResponse:
    """Normalize an already-fetched response payload"""
    return NormalizeResponse(
        rows=normalize_response(request.payload),
        total_count=extract_total_count(request.payload),
    )
