"""
Client factories: where the request handler gets its sentiment client from.

The handler only knows the SentimentClientFactory protocol. Production wires in
HttpSentimentClientFactory; tests wire in StaticSentimentClientFactory with a fake.
"""

import asyncio
from typing import Optional, Protocol

import httpx

from services.sentiment_analyzer.clients import HttpSentimentClient, SentimentClient
from services.sentiment_analyzer.exceptions import SentimentBackendUnavailable
from services.sentiment_analyzer.settings import Settings
from shared.logger import get_logger

logger = get_logger(__name__)


class SentimentClientFactory(Protocol):
    async def get_client(self) -> SentimentClient: ...

    async def aclose(self) -> None: ...


class HttpSentimentClientFactory:
    """Builds the HTTP sentiment client on first use and keeps it for the process"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[HttpSentimentClient] = None
        self._http_client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    def _build_http_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(
            connect=self.settings.connection_timeout,
            read=self.settings.read_timeout,
            write=10.0,
            pool=5.0,
        )
        limits = httpx.Limits(
            max_keepalive_connections=self.settings.connection_pool_size,
            max_connections=self.settings.connection_pool_size + 10,
        )
        return httpx.AsyncClient(timeout=timeout, limits=limits, follow_redirects=True)

    async def get_client(self) -> SentimentClient:
        if self._client is not None:
            return self._client

        async with self._lock:
            # Another request may have built it while we waited
            if self._client is None:
                try:
                    self._http_client = self._build_http_client()
                except Exception as e:
                    logger.error("Failed to create sentiment client", error=str(e))
                    raise SentimentBackendUnavailable(
                        "Could not create sentiment client",
                        url=self.settings.sentiment_service.url,
                    ) from e

                self._client = HttpSentimentClient(
                    self._http_client, self.settings.sentiment_service
                )
                logger.info(
                    "Sentiment client initialized",
                    url=self.settings.sentiment_service.url,
                )

        return self._client

    async def aclose(self) -> None:
        async with self._lock:
            if self._http_client is not None:
                await self._http_client.aclose()
                logger.info("Sentiment client closed")
            self._http_client = None
            self._client = None


class StaticSentimentClientFactory:
    """Always hands out the client it was built with"""

    def __init__(self, client: SentimentClient):
        self.client = client

    async def get_client(self) -> SentimentClient:
        return self.client

    async def aclose(self) -> None:
        return None
