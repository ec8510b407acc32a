"""
Azure OpenAI chat completions client.

Single-turn only: the prompt is sent as one user message, no history.
Retries only on HTTP 429 while retries remain, with exponential backoff
(2s -> 4s -> 8s by default). Every other failure propagates immediately.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from chatclone.config import get_settings
from chatclone.errors import InvalidProviderResponse, ProviderError, RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3
DEFAULT_INITIAL_DELAY_MS = 2000


def _extract_reply(data: Any) -> str:
    """choices[0].message.content, or InvalidProviderResponse."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise InvalidProviderResponse() from e
    if not isinstance(content, str) or not content.strip():
        raise InvalidProviderResponse()
    return content


def _provider_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("message") or ""
    return ""


class CompletionClient:
    def __init__(
        self,
        endpoint: str,
        deployment: str,
        api_version: str,
        api_key: str,
        *,
        timeout: float = 60.0,
        retries: int = DEFAULT_RETRIES,
        initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._url = (
            f"{endpoint.rstrip('/')}/openai/deployments/{deployment}/chat/completions"
        )
        self._api_version = api_version
        self._api_key = api_key
        self._timeout = timeout
        self._retries = retries
        self._initial_delay_ms = initial_delay_ms
        self._transport = transport
        self._sleep = sleep

    async def _post(self, prompt_text: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(
                self._url,
                params={"api-version": self._api_version},
                json={"messages": [{"role": "user", "content": prompt_text}]},
                headers={"Content-Type": "application/json", "api-key": self._api_key},
            )

    async def complete(
        self,
        prompt_text: str,
        retries: int | None = None,
        initial_delay_ms: int | None = None,
    ) -> str:
        if retries is None:
            retries = self._retries
        delay_ms = self._initial_delay_ms if initial_delay_ms is None else initial_delay_ms
        while True:
            try:
                response = await self._post(prompt_text)
            except httpx.HTTPError as e:
                logger.error("Completion request failed: %s", e)
                raise ProviderError(f"Completion request failed: {e}") from e

            if response.status_code == 429 and retries > 0:
                logger.warning("Rate limited. Retrying in %s seconds...", delay_ms / 1000)
                await self._sleep(delay_ms / 1000)
                retries -= 1
                delay_ms *= 2
                continue

            if response.status_code == 429:
                logger.error("Rate limited and retries exhausted")
                raise RateLimitExceeded(provider_status=429)

            if response.is_error:
                detail = _provider_error_message(response)
                logger.error("Error %s: %s", response.status_code, detail)
                raise ProviderError(
                    f"Completion provider returned {response.status_code}",
                    provider_status=response.status_code,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise InvalidProviderResponse() from e
            return _extract_reply(data)


def get_completion_client() -> CompletionClient:
    settings = get_settings()
    return CompletionClient(
        settings.azure_openai_endpoint,
        settings.azure_openai_deployment,
        settings.azure_openai_api_version,
        settings.azure_openai_api_key,
        timeout=settings.completion_timeout_seconds,
        retries=settings.completion_max_retries,
        initial_delay_ms=settings.completion_initial_delay_ms,
    )
