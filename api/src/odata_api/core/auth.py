#!/usr/bin/env python3

import hmac
import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import api_config

logger = logging.getLogger(__name__)
security = HTTPBearer()

_default_token_warned = False


def _warn_default_token_once():
    global _default_token_warned
    if not _default_token_warned:
        logger.warning("⚠️  Using default API_TOKEN='devtoken'. Set API_TOKEN environment variable for production!")
        _default_token_warned = True


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """Check the bearer token against API_TOKEN.

    Every /api route depends on this; /healthz does not.
    """
    if api_config.uses_default_token:
        _warn_default_token_once()

    if not hmac.compare_digest(credentials.credentials.encode(), api_config.API_TOKEN.encode()):
        logger.info("Rejected request with invalid bearer token")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return credentials.credentials
