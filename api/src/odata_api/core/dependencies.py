#!/usr/bin/env python3

from ..clients.odata_client import ODataClient
from .config import odata_client_config


def get_odata_client() -> ODataClient:
    """Get an OData client configured from the environment"""
    return ODataClient(
        timeout=odata_client_config.REQUEST_TIMEOUT,
        verify=odata_client_config.VERIFY_TLS,
        max_response_bytes=odata_client_config.MAX_RESPONSE_BYTES,
        user_agent=odata_client_config.USER_AGENT,
    )
