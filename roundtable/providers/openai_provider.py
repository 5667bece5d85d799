"""OpenAI-compatible completion client (OpenRouter or OpenAI) using the openai SDK."""

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass

from openai import AsyncOpenAI

from roundtable.providers.base import CompletionClient, LLMClientError

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_API_KEY_ENVS = {
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
}


@dataclass
class ClientConfig:
    model: str
    provider: str = "openrouter"   # "openrouter" or "openai"
    api_key: str | None = None     # falls back to the provider's env var
    max_retries: int = 3
    retry_delay_sec: float = 2.0
    base_url: str | None = None
    app_url: str = "http://localhost:3000"
    app_title: str = "AI Expert Roundtable"


class OpenAIClient(CompletionClient):
    """Chat-completions client for one model on OpenRouter or OpenAI."""

    def __init__(self, config: ClientConfig) -> None:
        if config.provider not in _API_KEY_ENVS:
            raise LLMClientError(config.model, f"Unknown provider: {config.provider}")
        self._config = config
        env_name = _API_KEY_ENVS[config.provider]
        api_key = (config.api_key or os.environ.get(env_name, "")).strip()
        if not api_key:
            raise LLMClientError(
                config.model,
                f"API key not found for provider {config.provider}. Set {env_name} environment variable.",
            )
        base_url = config.base_url
        if base_url is None and config.provider == "openrouter":
            base_url = OPENROUTER_BASE_URL
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._headers: dict[str, str] | None = None
        if config.provider == "openrouter":
            self._headers = {"HTTP-Referer": config.app_url, "X-Title": config.app_title}

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def provider(self) -> str:
        return self._config.provider

    async def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 0.7) -> str:
        attempts = max(1, self._config.max_retries)
        for attempt in range(attempts):
            start = time.monotonic()
            try:
                response = await self._client.chat.completions.create(
                    model=self._config.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=max_tokens,
                    temperature=temperature,
                    extra_headers=self._headers,
                )
            except Exception as exc:
                if attempt < attempts - 1:
                    delay = self._config.retry_delay_sec * 2 ** attempt
                    logger.warning(
                        "%s call failed (attempt %d/%d), retrying in %.1fs: %s",
                        self._config.model, attempt + 1, attempts, delay, exc,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise LLMClientError(
                    self._config.model,
                    f"Failed to generate response after {attempts} attempts: {exc}",
                ) from exc

            logger.info("%s completion: %.2fs", self._config.model, time.monotonic() - start)
            choice = response.choices[0] if response.choices else None
            if not choice or not choice.message.content:
                return ""
            return choice.message.content.strip()

        raise LLMClientError(self._config.model, "Failed to generate response")

    async def generate_stream(
        self, prompt: str, max_tokens: int = 500, temperature: float = 0.7
    ) -> AsyncIterator[str]:
        start = time.monotonic()
        try:
            stream = await self._client.chat.completions.create(
                model=self._config.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
                stream=True,
                extra_headers=self._headers,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except Exception as exc:
            raise LLMClientError(self._config.model, f"Streaming failed: {exc}") from exc

        logger.info("%s stream: %.2fs", self._config.model, time.monotonic() - start)


def create_client(config: ClientConfig) -> CompletionClient:
    """Build a client, failing fast on missing credentials or unknown providers."""
    return OpenAIClient(config)
