"""OpenAI-compatible chat completions client."""

from typing import Any, Dict, List, Optional

from daylight.core.base_llm_client import BaseLLMClient
from daylight.core.exceptions import APIClientError
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ChatCompletionClient:
    """Client for any endpoint that speaks the chat completions protocol.

    Used for both OpenAI and OpenRouter. Structured output is requested with
    ``response_format={"type": "json_schema", ...}`` so the provider enforces
    the schema server-side.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        reasoning_effort: Optional[str] = None,
        nested_reasoning: bool = False,
    ):
        """Initialize the chat client.

        Args:
            api_key: Provider API key
            model: Model name
            base_url: Full chat completions URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            reasoning_effort: Optional effort hint for reasoning models
            nested_reasoning: Send effort as ``{"reasoning": {"effort": ...}}``
                (OpenRouter) instead of ``reasoning_effort`` (OpenAI)
        """
        self.model = model
        self.base_url = base_url
        self.reasoning_effort = reasoning_effort
        self.nested_reasoning = nested_reasoning

        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries
        )

        LOGGER.info(f"Initialized chat completion client with model {self.model}")

    def _reasoning_params(self) -> Dict[str, Any]:
        if not self.reasoning_effort:
            return {}
        if self.nested_reasoning:
            return {"reasoning": {"effort": self.reasoning_effort}}
        return {"reasoning_effort": self.reasoning_effort}

    def build_payload(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
    ) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": contents})

        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if response_schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "strict": True,
                    "schema": response_schema,
                },
            }
        payload.update(self._reasoning_params())
        return payload

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
    ) -> str:
        """Run one chat completion and return the assistant message text.

        Returns an empty string when the model produced no content or refused.

        Raises:
            APIClientError: If the request fails or the response has no choices
        """
        payload = self.build_payload(contents, system_instruction, response_schema, schema_name)
        response = await self.client.call_api(method="POST", payload=payload)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected chat completion response format: {response}")
            raise APIClientError("Invalid response format from chat completion API")

        message = choices[0].get("message") or {}
        if message.get("refusal"):
            LOGGER.warning(f"Model refused the request: {message['refusal']}")
            return ""

        content = message.get("content") or ""
        if not content:
            LOGGER.warning("Empty response from chat completion API")
        return content
