#!/usr/bin/env python3
"""Response normalization across OData JSON envelope dialects.

OData 4.x wraps collections as ``{"value": [...]}``; OData 2.0 verbose JSON
uses ``{"d": {"results": [...]}}``; OData 1.0 returns ``{"d": [...]}`` and
single entities come back as ``{"d": {...}}``. Services do not always answer
in the dialect their $metadata declares, so normalization looks only at the
shape of the payload.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

logger = logging.getLogger(__name__)

MODERN_WRAPPER = "value"
LEGACY_WRAPPER = "d"
LEGACY_RESULTS = "results"

PayloadFormat = Literal["json", "xml"]


class PayloadDecodeError(Exception):
    """Raised when response text is neither JSON nor XML."""
    pass


@dataclass(frozen=True)
class DecodedPayload:
    format: PayloadFormat
    payload: Any
    used_fallback: bool = False


def normalize_response(payload: Any) -> Any:
    """Extract the row collection from a response payload.

    Precedence:
      1. list under "value"                -> that list
      2. "d" object with a "results" list  -> that list
      3. "d" is a list                     -> that list
      4. "d" is an object                  -> that object (single entity)
      5. anything else                     -> payload unchanged
      6. None                              -> []
    """
    if payload is None:
        return []
    if not isinstance(payload, dict):
        return payload

    value = payload.get(MODERN_WRAPPER)
    if isinstance(value, list):
        return value

    envelope = payload.get(LEGACY_WRAPPER)
    if isinstance(envelope, dict):
        results = envelope.get(LEGACY_RESULTS)
        if isinstance(results, list):
            return results
        return envelope
    if isinstance(envelope, list):
        return envelope

    return payload


def _as_count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def extract_total_count(payload: Any) -> Optional[int]:
    """Total row count requested via $count / $inlinecount, if present."""
    if not isinstance(payload, dict):
        return None

    for key in ("@odata.count", "odata.count", "__count"):
        count = _as_count(payload.get(key))
        if count is not None:
            return count

    envelope = payload.get(LEGACY_WRAPPER)
    if isinstance(envelope, dict):
        return _as_count(envelope.get("__count"))
    return None


def _decode_json(text: str) -> Any:
    return json.loads(text)


def _decode_xml(text: str) -> str:
    # Validates well-formedness; Atom/XML bodies are handed back as text
    ET.fromstring(text)
    return text


def decode_payload(text: Optional[str], preferred: PayloadFormat = "json") -> DecodedPayload:
    """Decode response text, falling back to the alternate structured format.

    Raises:
        PayloadDecodeError: If the text parses as neither JSON nor XML
    """
    if text is None or not text.strip():
        return DecodedPayload(format=preferred, payload=None)

    decoders = {"json": _decode_json, "xml": _decode_xml}
    alternate: PayloadFormat = "xml" if preferred == "json" else "json"

    try:
        return DecodedPayload(format=preferred, payload=decoders[preferred](text))
    except (ValueError, ET.ParseError, DefusedXmlException) as e:
        logger.info(f"Response is not valid {preferred}, trying {alternate}: {e}")

    try:
        return DecodedPayload(format=alternate, payload=decoders[alternate](text), used_fallback=True)
    except (ValueError, ET.ParseError, DefusedXmlException) as e:
        raise PayloadDecodeError(f"Response is neither valid {preferred} nor {alternate}: {e}")
