import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class BookHTTPClient:
    """Async HTTP client with connection pooling and retry on transport errors"""

    def __init__(
        self,
        timeout: float = 10.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Connection limits for a single app process
        limits = httpx.Limits(
            max_keepalive_connections=10,
            max_connections=20,
            keepalive_expiry=30.0
        )

        # Timeout configuration
        timeout_config = httpx.Timeout(
            timeout=timeout,
            connect=min(timeout, 10.0),
        )

        self.retries = max(1, retries)
        self.backoff = backoff
        self._client = httpx.AsyncClient(
            limits=limits,
            timeout=timeout_config,
            follow_redirects=True,
            transport=transport,
        )

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Async GET request over the pooled client"""
        return await self._client.get(url, **kwargs)

    async def get_with_retry(self, url: str, **kwargs) -> httpx.Response:
        """GET with exponential back-off; re-raises the last transport error"""
        for attempt in range(self.retries):
            try:
                return await self.get(url, **kwargs)
            except httpx.RequestError as e:
                if attempt < self.retries - 1:
                    wait_time = self.backoff * (2 ** attempt)
                    logger.warning(f"GET {url} failed ({e!r}), retrying in {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)
                    continue
                raise
        raise RuntimeError("unreachable")  # pragma: no cover

    async def close(self):
        """Close the underlying HTTP client"""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
