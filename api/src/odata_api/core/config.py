#!/usr/bin/env python3
"""
Configuration settings for the OData explorer API.

All values are read from environment variables when the config object is
created, so tests can patch the environment and build a fresh instance.
"""

import logging

from .env_utils import getenv_bool, getenv_clean, getenv_float, getenv_int, getenv_list

logger = logging.getLogger(__name__)

# Default token for development - CHANGE THIS IN PRODUCTION!
DEFAULT_DEV_TOKEN = "devtoken"


class ODataClientConfig:
    """Outbound HTTP settings for fetching $metadata documents and query results."""

    def __init__(self):
        # Seconds per request (connect + read)
        self.REQUEST_TIMEOUT = getenv_float("ODATA_REQUEST_TIMEOUT", 30.0)

        # Some on-premise services use self-signed certificates
        self.VERIFY_TLS = getenv_bool("ODATA_VERIFY_TLS", True)

        # Bodies are streamed and abandoned once they pass this many bytes
        self.MAX_RESPONSE_BYTES = getenv_int("ODATA_MAX_RESPONSE_BYTES", 20 * 1024 * 1024)

        self.USER_AGENT = getenv_clean("ODATA_USER_AGENT", "odata-explorer-api")


class ApiConfig:
    """HTTP API settings."""

    def __init__(self):
        self.API_TOKEN = getenv_clean("API_TOKEN", DEFAULT_DEV_TOKEN)
        self.CORS_ORIGINS = getenv_list("CORS_ORIGINS", ["http://localhost:3000"])
        self.APP_VERSION = getenv_clean("APP_VERSION", "unknown")
        self.LOG_LEVEL = (getenv_clean("LOG_LEVEL", "INFO") or "INFO").upper()
        self.LOG_FORMAT = (getenv_clean("LOG_FORMAT", "json") or "json").lower()

    @property
    def uses_default_token(self) -> bool:
        return self.API_TOKEN == DEFAULT_DEV_TOKEN


# Singleton instances
odata_client_config = ODataClientConfig()
api_config = ApiConfig()
