import asyncio
from typing import Any, Dict, Optional

import httpx

from daylight.core.exceptions import APIClientError, APITimeoutError
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Retried with backoff; other 4xx responses fail immediately.
RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}
MAX_RETRY_AFTER_SECONDS = 60


class BaseLLMClient:
    """HTTP transport for chat completion providers.

    Posts JSON with bearer auth and retries rate limits, server errors and
    timeouts with exponential backoff, honouring ``Retry-After`` when the
    provider sends one.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: int = 2
    ):
        """Initialize the transport.

        Args:
            api_key: Provider API key
            base_url: Full URL of the chat completions endpoint
            timeout: Request timeout in seconds
            max_retries: Total attempts per call
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.logger = LOGGER

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra or {})
        return headers

    async def call_api(
        self,
        endpoint: str = "",
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises:
            APIClientError: On a non-retryable status or when every attempt fails
            APITimeoutError: When the final attempt times out
        """
        url = f"{self.base_url}{endpoint}" if endpoint else self.base_url
        request_headers = self._headers(headers)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(1, self.max_retries + 1):
                last_attempt = attempt == self.max_retries
                try:
                    response = await client.request(
                        method.upper(),
                        url,
                        headers=request_headers,
                        json=payload if method.upper() != "GET" else None,
                        params=payload if method.upper() == "GET" else None,
                    )
                    response.raise_for_status()
                    return response.json()

                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    body = e.response.text[:500]
                    self.logger.warning(
                        f"LLM API returned {status_code} (attempt {attempt}/{self.max_retries})",
                        extra={"url": url, "error_body": body},
                    )
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise APIClientError(f"LLM API error {status_code}: {body}", e) from e
                    if last_attempt:
                        raise APIClientError(
                            f"LLM API error {status_code} after {self.max_retries} attempts", e
                        ) from e
                    await asyncio.sleep(self._backoff(attempt, e.response))

                except httpx.TimeoutException as e:
                    self.logger.warning(
                        f"LLM API timed out after {self.timeout}s (attempt {attempt}/{self.max_retries})",
                        extra={"url": url},
                    )
                    if last_attempt:
                        raise APITimeoutError(
                            f"LLM API timed out after {self.max_retries} attempts", e
                        ) from e
                    await asyncio.sleep(self._backoff(attempt))

                except (httpx.TransportError, ValueError) as e:
                    self.logger.warning(
                        f"LLM API request failed (attempt {attempt}/{self.max_retries}): {e}",
                        extra={"url": url},
                    )
                    if last_attempt:
                        raise APIClientError(f"LLM API request failed: {e}", e) from e
                    await asyncio.sleep(self._backoff(attempt))

        raise APIClientError(f"LLM API call to {url} did not complete")

    def _backoff(self, attempt: int, response: Optional[httpx.Response] = None) -> float:
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return min(float(retry_after), MAX_RETRY_AFTER_SECONDS)
        return self.retry_delay * (2 ** (attempt - 1))
