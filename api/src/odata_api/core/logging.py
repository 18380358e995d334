#!/usr/bin/env python3

import logging
import logging.config
from pythonjsonlogger import jsonlogger

from .config import api_config

JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s %(source_url)s %(odata_version)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ODataContextFilter(logging.Filter):
    """Give every record the OData context fields the JSON format names.

    Handlers and the client pass them through ``extra``; records from other
    libraries get empty values instead of a formatting error.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for field in ("source_url", "odata_version"):
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


def setup_logging():
    """Configure root, httpx and uvicorn loggers.

    JSON lines by default; LOG_FORMAT=text switches to a plain format for
    local debugging.
    """
    if api_config.LOG_FORMAT == "text":
        formatter = {"format": TEXT_FORMAT}
    else:
        formatter = {"()": jsonlogger.JsonFormatter, "format": JSON_FORMAT}

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "odata_context": {"()": ODataContextFilter}
        },
        "formatters": {
            "default": formatter
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["odata_context"],
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": api_config.LOG_LEVEL,
                "propagate": False
            },
            # One line per outbound request is too chatty at INFO
            "httpx": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            },
            "uvicorn": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)
