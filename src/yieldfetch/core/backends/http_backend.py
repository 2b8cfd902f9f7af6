"""
HTTP Backend implementation using httpx.

Provides async streaming downloads with:
- Persistent connection pooling
- Automatic redirect following
- Status/no-response error separation for retry classification

The body is written with blocking file calls from inside the stream
loop. Fetches run one at a time, so the event loop has nothing else to
serve meanwhile.
"""

from __future__ import annotations

import time
from pathlib import Path

import httpx

from ..logging import get_logger
from .base import (
    Backend,
    DownloadResult,
    DownloadSpec,
    TransferNoResponseError,
    TransferStatusError,
)

logger = get_logger(__name__)


DEFAULT_USER_AGENT = "yieldfetch (+https://home.treasury.gov)"

# Bytes per chunk written to disk
CHUNK_SIZE = 64 * 1024


class HttpBackend(Backend):
    """HTTP backend using httpx for async downloads."""

    def __init__(
        self,
        timeout: float = 60.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP backend.

        Args:
            timeout: Default request timeout in seconds
            user_agent: Custom user agent
            transport: Custom transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "http"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    async def download(self, request: DownloadSpec, target: Path) -> DownloadResult:
        """Stream ``request.url`` into ``target``.

        Args:
            request: Download specification
            target: File receiving the response body

        Returns:
            DownloadResult with byte count and timing
        """
        client = await self._ensure_client()
        timeout = httpx.Timeout(request.timeout) if request.timeout else httpx.USE_CLIENT_DEFAULT
        start = time.perf_counter()
        written = 0
        status_code: int | None = None

        try:
            async with client.stream("GET", request.url, timeout=timeout) as response:
                status_code = response.status_code
                if not response.is_success:
                    raise TransferStatusError(
                        f"HTTP {response.status_code} for {request.url}",
                        url=request.url,
                        status_code=response.status_code,
                    )

                with open(target, "wb") as f:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)

                final_url = str(response.url)

        except httpx.TransportError as e:
            if status_code is not None:
                # Response arrived, body transfer broke off
                raise TransferStatusError(
                    f"Transfer interrupted after HTTP {status_code} for {request.url}: {e!r}",
                    url=request.url,
                    status_code=status_code,
                    cause=e,
                ) from e
            # Connect failures and timeouts before any response
            raise TransferNoResponseError(
                f"No response for {request.url}: {e!r}",
                url=request.url,
                cause=e,
            ) from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("Downloaded %d bytes from %s in %.0fms", written, final_url, elapsed_ms)

        return DownloadResult(
            url=request.url,
            final_url=final_url,
            status_code=status_code,
            path=Path(target),
            bytes_written=written,
            elapsed_ms=elapsed_ms,
            year=request.year,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
