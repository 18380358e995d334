#!/usr/bin/env python3
"""
OData HTTP Client

A low-level async client for fetching $metadata documents and query results
from OData services. Contains no parsing or normalization logic beyond
classifying what came back; failures are reported as one of three categories
so callers can tell an unreachable service from a reachable one that served
something unusable.
"""

import logging
from typing import Optional

import httpx

from ..services.domain.metadata import detect_metadata_version
from ..services.domain.query import DecodedPayload, PayloadDecodeError, decode_payload

logger = logging.getLogger(__name__)

METADATA_ACCEPT = "application/xml"
DATA_ACCEPT = "application/json"


class ODataClientError(Exception):
    """Base class for OData fetch failures."""
    pass


class SourceUnreachableError(ODataClientError):
    """The service could not be reached or answered with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotMetadataDocumentError(ODataClientError):
    """The service answered, but not with an EDMX $metadata document."""
    pass


class InvalidPayloadError(ODataClientError):
    """The service answered, but the body is not valid structured data."""
    pass


class ODataClient:
    """Fetches $metadata and query results over HTTP.

    A new ``httpx.AsyncClient`` is opened per call; cancelling the awaiting
    task cancels the request.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        max_response_bytes: int = 20 * 1024 * 1024,
        user_agent: str = "odata-explorer-api",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.verify = verify
        self.max_response_bytes = max_response_bytes
        self.user_agent = user_agent
        self.transport = transport

    async def _get_text(self, url: str, accept: str) -> str:
        headers = {"Accept": accept, "User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url, headers=headers) as response:
                    if response.is_error:
                        logger.warning(f"HTTP {response.status_code} from {url}")
                        raise SourceUnreachableError(
                            f"HTTP {response.status_code}: {response.reason_phrase}",
                            status_code=response.status_code,
                        )
                    body = await self._read_limited(response, url)
                    encoding = response.encoding or "utf-8"
        except httpx.InvalidURL as e:
            logger.warning(f"Invalid URL {url!r}: {e}")
            raise SourceUnreachableError(f"Invalid URL {url!r}: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out fetching {url}: {e}")
            raise SourceUnreachableError(f"Timed out after {self.timeout}s fetching {url}") from e
        except httpx.RequestError as e:
            logger.warning(f"Failed to reach {url}: {e}")
            raise SourceUnreachableError(f"Could not reach {url}: {e}") from e

        return body.decode(encoding, errors="replace")

    async def _read_limited(self, response: httpx.Response, url: str) -> bytes:
        """Read the body, giving up as soon as it passes max_response_bytes."""
        too_large = f"Response from {url} exceeds the limit of {self.max_response_bytes} bytes"

        declared_length = response.headers.get("Content-Length", "")
        if declared_length.isdigit() and int(declared_length) > self.max_response_bytes:
            raise InvalidPayloadError(too_large)

        chunks = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > self.max_response_bytes:
                raise InvalidPayloadError(too_large)
            chunks.append(chunk)
        return b"".join(chunks)

    async def fetch_metadata(self, url: str) -> str:
        """Fetch a $metadata document and check that it looks like one.

        Raises:
            SourceUnreachableError: If the URL cannot be fetched
            NotMetadataDocumentError: If the body is not an EDMX document
        """
        content = await self._get_text(url, METADATA_ACCEPT)
        version = detect_metadata_version(content)
        if version is None:
            raise NotMetadataDocumentError(f"{url} did not return an OData $metadata document")

        logger.info(f"Fetched $metadata from {url}", extra={"source_url": url, "odata_version": version})
        return content

    async def fetch_data(self, url: str) -> DecodedPayload:
        """Fetch a query result and decode it, falling back from JSON to XML.

        Raises:
            SourceUnreachableError: If the URL cannot be fetched
            InvalidPayloadError: If the body is neither JSON nor XML
        """
        content = await self._get_text(url, DATA_ACCEPT)
        try:
            decoded = decode_payload(content, preferred="json")
        except PayloadDecodeError as e:
            raise InvalidPayloadError(str(e)) from e

        if decoded.used_fallback:
            logger.info(f"Response from {url} was {decoded.format}, not json", extra={"source_url": url})
        return decoded
