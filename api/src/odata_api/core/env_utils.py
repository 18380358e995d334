#!/usr/bin/env python3
"""
Environment variable readers that tolerate CRLF line endings and stray
whitespace from .env files edited on different operating systems.
"""

import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def getenv_clean(key: str, default: str = None) -> Optional[str]:
    """Get an environment variable with whitespace and line endings removed.

    Args:
        key: Environment variable name
        default: Value returned when the variable is not set

    Returns:
        Cleaned value, or default if not set

    Example:
        >>> # .env file has: ODATA_REQUEST_TIMEOUT=45\r\n
        >>> getenv_clean("ODATA_REQUEST_TIMEOUT", "30")
        '45'
    """
    raw_value = os.getenv(key, default)
    if raw_value is None:
        return None

    cleaned = raw_value.strip()
    if raw_value != cleaned:
        logger.warning(
            f"Environment variable {key} had trailing whitespace/line endings: "
            f"raw={repr(raw_value)}, cleaned={repr(cleaned)}"
        )
    return cleaned


def getenv_bool(key: str, default: bool = False) -> bool:
    """Get an environment variable as boolean.

    "true"/"1"/"yes"/"on" are True, "false"/"0"/"no"/"off"/"" are False,
    anything else logs a warning and returns the default.
    """
    raw_value = getenv_clean(key, None)
    if raw_value is None:
        return default

    lowered = raw_value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off", ""):
        return False

    logger.warning(f"Environment variable {key} has unexpected boolean value: {repr(raw_value)}. Using default: {default}")
    return default


def getenv_int(key: str, default: int) -> int:
    """Get an environment variable as integer, falling back to default when invalid."""
    raw_value = getenv_clean(key, None)
    if raw_value is None:
        return default

    try:
        return int(raw_value)
    except ValueError:
        logger.warning(f"Environment variable {key} is not a valid integer: {repr(raw_value)}. Using default: {default}")
        return default


def getenv_float(key: str, default: float) -> float:
    """Get an environment variable as float, falling back to default when invalid."""
    raw_value = getenv_clean(key, None)
    if raw_value is None:
        return default

    try:
        return float(raw_value)
    except ValueError:
        logger.warning(f"Environment variable {key} is not a valid number: {repr(raw_value)}. Using default: {default}")
        return default


def getenv_list(key: str, default: list[str] = None, separator: str = ",") -> list[str]:
    """Get an environment variable as a list of cleaned, non-empty items.

    Example:
        >>> # .env file has: CORS_ORIGINS=http://localhost:3000,http://localhost:8080\r\n
        >>> getenv_list("CORS_ORIGINS", ["http://localhost:3000"])
        ['http://localhost:3000', 'http://localhost:8080']
    """
    if default is None:
        default = []

    raw_value = getenv_clean(key, None)
    if not raw_value:
        return default

    items = [item.strip() for item in raw_value.split(separator) if item.strip()]
    return items if items else default
