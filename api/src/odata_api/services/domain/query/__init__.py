"""
OData Query Domain

Handles the request/response side of a query:
- Query URL compilation (version-correct count options)
- Metadata URL and service root derivation
- Response decoding and envelope normalization
"""

from .compiler import (
    CompiledQuery,
    InvalidServiceUrlError,
    QuerySelection,
    compile_query,
    derive_metadata_url,
    service_root_from_metadata_url,
)
from .normalizer import (
    DecodedPayload,
    PayloadDecodeError,
    decode_payload,
    extract_total_count,
    normalize_response,
)

__all__ = [
    # Compilation
    "CompiledQuery",
    "InvalidServiceUrlError",
    "QuerySelection",
    "compile_query",
    "derive_metadata_url",
    "service_root_from_metadata_url",
    # Normalization
    "DecodedPayload",
    "PayloadDecodeError",
    "decode_payload",
    "extract_total_count",
    "normalize_response",
]
