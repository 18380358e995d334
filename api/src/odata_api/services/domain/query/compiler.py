#!/usr/bin/env python3
"""Query URL compilation for OData services.

Builds the request URL for a query selection using the standard system query
options. The only version-dependent clause is the count request:
OData 4.x takes ``$count=true`` while 1.0-3.0 take ``$inlinecount=allpages``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional
from urllib.parse import unquote_plus, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field

from ..metadata.model import is_modern_version

logger = logging.getLogger(__name__)

METADATA_MARKER = "$metadata"
LEGACY_SERVICE_MARKER = ".svc"
INLINECOUNT_ALL_PAGES = "allpages"


class InvalidServiceUrlError(ValueError):
    """Raised when a service URL cannot be split into its components."""
    pass


class QuerySelection(BaseModel):
    """Query state for one entity set. Every field except the set is optional."""
    entity_set: str
    select: list[str] = Field(default_factory=list)     # order matters
    expand: list[str] = Field(default_factory=list)
    filter: Optional[str] = None                        # passed through unvalidated
    order_by: Optional[str] = None
    order_direction: Literal["asc", "desc"] = "asc"
    top: Optional[int] = None
    skip: Optional[int] = None
    count: bool = False


@dataclass(frozen=True)
class CompiledQuery:
    url: str            # percent-encoded, ready to fetch
    display_url: str    # decoded, for humans


def _unique(names: Iterable[str]) -> list[str]:
    seen = set()
    ordered = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


def build_query_params(
    selection: QuerySelection,
    version: Optional[str],
    declared_properties: Optional[Iterable[str]] = None,
) -> list[tuple[str, str]]:
    """Return the query options in canonical order."""
    params = []

    select = _unique(selection.select)
    declared = set(declared_properties) if declared_properties is not None else None
    if select and not (declared is not None and set(select) == declared):
        params.append(("$select", ",".join(select)))

    expand = _unique(selection.expand)
    if expand:
        params.append(("$expand", ",".join(expand)))

    if selection.filter:
        params.append(("$filter", selection.filter))

    if selection.order_by:
        params.append(("$orderby", f"{selection.order_by} {selection.order_direction}"))

    if selection.top is not None:
        params.append(("$top", str(selection.top)))

    if selection.skip is not None:
        params.append(("$skip", str(selection.skip)))

    if selection.count:
        if is_modern_version(version):
            params.append(("$count", "true"))
        else:
            params.append(("$inlinecount", INLINECOUNT_ALL_PAGES))

    return params


def decode_for_display(url: str) -> str:
    """Reverse form encoding for display, falling back to the encoded URL."""
    try:
        return unquote_plus(url, errors="strict")
    except UnicodeDecodeError as e:
        logger.debug(f"Could not decode URL for display: {e}")
        return url


def compile_query(
    service_root: str,
    selection: QuerySelection,
    version: Optional[str],
    declared_properties: Optional[Iterable[str]] = None,
) -> CompiledQuery:
    """Compile ``selection`` into a request URL against ``service_root``.

    Args:
        service_root: Service root URL (a trailing slash is ignored)
        selection: Query selection state
        version: Resolved protocol version of the service
        declared_properties: All properties of the set's entity type; a
            selection covering all of them is sent without $select

    Returns:
        CompiledQuery with the encoded URL and its display form
    """
    base = f"{(service_root or '').rstrip('/')}/{selection.entity_set}"
    query_string = urlencode(build_query_params(selection, version, declared_properties))
    url = f"{base}?{query_string}" if query_string else base
    return CompiledQuery(url=url, display_url=decode_for_display(url))


def derive_metadata_url(url: str) -> str:
    """Derive the $metadata URL for a service or data URL.

    'https://host/service.svc/Orders' -> 'https://host/service.svc/$metadata'
    'https://host/service/'           -> 'https://host/service/$metadata'

    Raises:
        InvalidServiceUrlError: If the URL is malformed (e.g. an unclosed
            IPv6 host bracket)
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError as e:
        raise InvalidServiceUrlError(f"Invalid service URL {url!r}: {e}") from e
    if parts.path.rstrip("/").endswith(METADATA_MARKER):
        return url

    path = parts.path
    marker_index = path.find(LEGACY_SERVICE_MARKER + "/")
    if marker_index == -1 and path.endswith(LEGACY_SERVICE_MARKER):
        marker_index = len(path) - len(LEGACY_SERVICE_MARKER)

    if marker_index != -1:
        path = f"{path[:marker_index + len(LEGACY_SERVICE_MARKER)]}/{METADATA_MARKER}"
    else:
        path = f"{path.rstrip('/')}/{METADATA_MARKER}"

    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def service_root_from_metadata_url(metadata_url: str) -> str:
    """Strip the $metadata segment (and any query) to get the service root."""
    root = metadata_url.split("?", 1)[0].rstrip("/")
    if root.endswith(METADATA_MARKER):
        root = root[: -len(METADATA_MARKER)]
    return root.rstrip("/")
