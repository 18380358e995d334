#!/usr/bin/env python3

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from .clients.odata_client import ODataClient
from .core.auth import verify_token
from .core.config import api_config
from .core.dependencies import get_odata_client
from .core.logging import setup_logging
from .models.models import (
    CompileRequest,
    CompileResponse,
    DetectRequest,
    DetectResponse,
    ExecuteResponse,
    MetadataUrlResponse,
    NormalizeRequest,
    NormalizeResponse,
    ParseMetadataRequest,
    SchemaResponse,
)

logger = logging.getLogger(__name__)

# Application start time for uptime calculation
_app_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger.info("Starting OData explorer API service")

    yield

    # Shutdown
    logger.info("Shutting down OData explorer API service")


app = FastAPI(
    title="OData Explorer API",
    description="API for exploring OData $metadata and building version-correct queries",
    version=api_config.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add version header middleware
@app.middleware("http")
async def add_version_header(request, call_next):
    """Add version information to response headers"""
    response = await call_next(request)
    response.headers["X-API-Version"] = api_config.APP_VERSION
    return response


@app.get("/healthz")
async def health_check():
    """Liveness probe - checks if application is alive and can serve requests"""
    current_time = time.time()
    return {
        "status": "healthy",
        "timestamp": current_time,
        "uptime": current_time - _app_start_time,
        "api_version": api_config.APP_VERSION,
    }


# Metadata Routes

@app.post("/api/metadata/parse", response_model=SchemaResponse)
async def parse_metadata_document(
    request: ParseMetadataRequest,
    token: str = Depends(verify_token),
    client: ODataClient = Depends(get_odata_client)
):
    """Parse an OData $metadata document into the schema model.

    Args:
        request: Inline $metadata content, or a service URL to fetch it from
        token: Authentication token
        client: OData HTTP client dependency
    """
    from .handlers.metadata import handle_parse_metadata
    return await handle_parse_metadata(request, client)


@app.post("/api/metadata/detect", response_model=DetectResponse)
async def detect_metadata_document(
    request: DetectRequest,
    token: str = Depends(verify_token)
):
    """Check whether content is an OData $metadata document"""
    from .handlers.metadata import handle_detect
    return handle_detect(request)


@app.get("/api/metadata/url", response_model=MetadataUrlResponse)
async def get_metadata_url(
    url: str = Query(..., min_length=1),
    token: str = Depends(verify_token)
):
    """Derive the $metadata URL and service root for a service or data URL"""
    from .handlers.metadata import handle_metadata_url
    return handle_metadata_url(url)


# Query Routes

@app.post("/api/query/compile", response_model=CompileResponse)
async def compile_query_url(
    request: CompileRequest,
    token: str = Depends(verify_token)
):
    """Compile a query selection into a version-correct request URL"""
    from .handlers.query import handle_compile
    return handle_compile(request)


@app.post("/api/query/execute", response_model=ExecuteResponse)
async def execute_query(
    request: CompileRequest,
    token: str = Depends(verify_token),
    client: ODataClient = Depends(get_odata_client)
):
    """Compile a query, fetch it from the service and normalize the rows.

    Args:
        request: Metadata URL, protocol version and query selection
        token: Authentication token
        client: OData HTTP client dependency
    """
    from .handlers.query import handle_execute
    return await handle_execute(request, client)


@app.post("/api/response/normalize", response_model=NormalizeResponse)
async def normalize_payload(
    request: NormalizeRequest,
    token: str = Depends(verify_token)
):
    """Normalize a response payload of any envelope dialect into rows"""
    from .handlers.query import handle_normalize
    return handle_normalize(request)
