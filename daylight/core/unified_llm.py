"""Unified LLM client factory.

Selects the chat completions provider (OpenAI or OpenRouter) from
configuration and exposes a single ``generate_content`` call.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from daylight.core.chat_client import ChatCompletionClient
from daylight.core.exceptions import ConfigurationError
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"


class UnifiedLLMClient:
    """Provider-agnostic wrapper around ``ChatCompletionClient``."""

    def __init__(
        self,
        provider: Union[str, LLMProvider],
        api_key: str,
        model: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        reasoning_effort: Optional[str] = None,
    ):
        self.provider = LLMProvider(provider)
        self.model = model
        self.client = ChatCompletionClient(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            reasoning_effort=reasoning_effort,
            nested_reasoning=self.provider == LLMProvider.OPENROUTER,
        )
        LOGGER.info(f"Initialized unified LLM with {self.provider.value} provider (model: {model})")

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
    ) -> str:
        return await self.client.generate_content(
            contents=contents,
            system_instruction=system_instruction,
            response_schema=response_schema,
            schema_name=schema_name,
        )


def create_llm_client_from_settings(
    provider: str,
    openai_api_key: str = "",
    openai_api_url: str = "https://api.openai.com/v1/chat/completions",
    openai_model: str = "gpt-5.2",
    openrouter_api_key: str = "",
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions",
    openrouter_model: str = "openai/gpt-5.2",
    timeout: int = 180,
    max_retries: int = 3,
    reasoning_effort: Optional[str] = None,
) -> UnifiedLLMClient:
    """Create a unified LLM client from configuration settings.

    Picks the API key, model, and URL that belong to the selected provider.

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    try:
        provider_enum = LLMProvider(provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported LLM provider: {provider}", e) from e

    if provider_enum == LLMProvider.OPENAI:
        api_key, base_url, model, env_name = (
            openai_api_key, openai_api_url, openai_model, "OPENAI_API_KEY"
        )
    else:
        api_key, base_url, model, env_name = (
            openrouter_api_key, openrouter_api_url, openrouter_model, "OPENROUTER_API_KEY"
        )

    if not api_key or not api_key.strip():
        raise ConfigurationError(
            f"API key required when provider='{provider_enum.value}'. "
            f"Please set {env_name} environment variable."
        )

    return UnifiedLLMClient(
        provider=provider_enum,
        api_key=api_key.strip(),
        model=model,
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
        reasoning_effort=reasoning_effort or None,
    )
