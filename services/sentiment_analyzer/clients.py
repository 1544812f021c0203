import asyncio
import time
from typing import Any, Dict, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from services.sentiment_analyzer.exceptions import (
    SentimentBackendError,
    SentimentBackendTimeout,
    SentimentBackendUnavailable,
    SentimentClientError,
)
from services.sentiment_analyzer.metrics import (
    BACKEND_REQUEST_COUNT,
    BACKEND_REQUEST_DURATION,
)
from services.sentiment_analyzer.schemas import (
    BackendSentimentResponse,
    SentimentResult,
)
from services.sentiment_analyzer.settings import ServiceConfig
from shared.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class SentimentClient(Protocol):
    """Anything that can score the sentiment of a text"""

    async def analyze_sentiment(self, text: str) -> SentimentResult: ...


class HttpSentimentClient:
    """Sentiment client backed by a remote sentiment analysis service"""

    def __init__(self, http_client: httpx.AsyncClient, service_config: ServiceConfig):
        self.http_client = http_client
        self.service_config = service_config

    def _url(self, endpoint: str) -> str:
        return f"{self.service_config.url.rstrip('/')}/{endpoint.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        if self.service_config.api_key:
            return {"Authorization": f"Bearer {self.service_config.api_key}"}
        return {}

    async def analyze_sentiment(self, text: str) -> SentimentResult:
        """Score a text via POST /analyze"""
        result = await self._request("analyze", "POST", json_data={"text": text})

        try:
            reply = BackendSentimentResponse.model_validate(result)
        except ValidationError as e:
            logger.warning(
                "Sentiment service returned an unusable reply",
                url=self._url("analyze"),
                error=str(e),
            )
            raise SentimentBackendError(
                "Sentiment service returned an unusable reply", url=self._url("analyze")
            ) from e

        return reply.to_result()

    async def check_health(self) -> Dict[str, Any]:
        return await self._request("health", "GET")

    async def _request(
        self,
        endpoint: str,
        method: str = "GET",
        json_data: Dict | None = None,
    ) -> Any:
        """Make a request to the sentiment service with retry logic"""
        url = self._url(endpoint)
        config = self.service_config
        method = method.upper()
        if method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method: {method}")

        for attempt in range(config.max_retries + 1):
            start_time = time.time()
            try:
                if method == "GET":
                    response = await self.http_client.get(
                        url, headers=self._headers(), timeout=config.timeout
                    )
                else:
                    response = await self.http_client.post(
                        url,
                        json=json_data,
                        headers=self._headers(),
                        timeout=config.timeout,
                    )

                response.raise_for_status()
                payload = response.json()
                BACKEND_REQUEST_COUNT.labels(endpoint=endpoint, status="success").inc()
                return payload

            except httpx.TimeoutException:
                BACKEND_REQUEST_COUNT.labels(endpoint=endpoint, status="timeout").inc()
                logger.warning(
                    "Sentiment service request timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_attempts=config.max_retries + 1,
                )
                if attempt == config.max_retries:
                    raise SentimentBackendTimeout(
                        f"Sentiment service timeout: {url}", url=url
                    )

            except httpx.HTTPStatusError as e:
                BACKEND_REQUEST_COUNT.labels(endpoint=endpoint, status="error").inc()
                logger.warning(
                    "Sentiment service returned error status",
                    url=url,
                    status_code=e.response.status_code,
                    attempt=attempt + 1,
                )
                if attempt == config.max_retries:
                    raise SentimentBackendError(
                        f"Sentiment service error: {e.response.status_code}",
                        url=url,
                        backend_status=e.response.status_code,
                    ) from e

            except httpx.TransportError as e:
                BACKEND_REQUEST_COUNT.labels(
                    endpoint=endpoint, status="unavailable"
                ).inc()
                logger.error(
                    "Sentiment service request failed",
                    url=url,
                    error=str(e),
                    attempt=attempt + 1,
                )
                if attempt == config.max_retries:
                    raise SentimentBackendUnavailable(
                        f"Sentiment service unavailable: {url}", url=url
                    ) from e

            except ValueError as e:
                # Body was not JSON
                BACKEND_REQUEST_COUNT.labels(endpoint=endpoint, status="error").inc()
                raise SentimentBackendError(
                    "Sentiment service returned a non-JSON body", url=url
                ) from e

            finally:
                BACKEND_REQUEST_DURATION.labels(endpoint=endpoint).observe(
                    time.time() - start_time
                )

            # Wait before retry
            wait_time = config.retry_backoff * (2**attempt)
            await asyncio.sleep(wait_time)

        # Unreachable: the last attempt either returns or raises
        raise SentimentClientError(f"Sentiment service request failed: {url}", url=url)
