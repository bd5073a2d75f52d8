"""Chat completion client for an OpenAI-compatible endpoint."""

import json
import logging
import re
from typing import Any

import httpx

from memberpages.config import get_settings
from memberpages.llm.schemas import LLMError, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _error(error_type: str, message: str, status_code: int | None = None) -> ValueError:
    return ValueError(
        LLMError(error_type=error_type, message=message, status_code=status_code).model_dump_json()
    )


class LLMService:
    """Sends chat completions to the configured LLM endpoint.

    Attributes:
        settings: Application settings.
        configured: Whether an API key is set.
    """

    def __init__(self):
        """Initialize the client from settings."""
        self.settings = get_settings()
        self.configured = bool(self.settings.llm_api_key)
        if not self.configured:
            logger.info("LLM_API_KEY not set, page generation uses templates only")

    async def chat(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Request one chat completion.

        Args:
            messages: Conversation so far.
            model: Model override (defaults to settings.llm_default_model).
            temperature: Temperature override.
            max_tokens: Token limit override.

        Returns:
            LLMResponse: The answer.

        Raises:
            ValueError: With an LLMError JSON message when unconfigured or on
                an HTTP or network failure.
        """
        if not self.configured:
            raise _error("not_configured", "LLM_API_KEY is not set")

        resolved_model = model or self.settings.llm_default_model
        payload = {
            "model": resolved_model,
            "messages": [msg.model_dump() for msg in messages],
            "temperature": temperature if temperature is not None else self.settings.llm_temperature,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.settings.llm_api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                response = await client.post(
                    f"{self.settings.llm_base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"LLM API error (HTTP {e.response.status_code}): {e.response.text}")
            raise _error(
                "api_error",
                f"LLM API returned HTTP {e.response.status_code}",
                e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"LLM network error: {e}")
            raise _error("network_error", f"Failed to connect to LLM API: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise _error("invalid_output", "LLM response has no message content") from e

        return LLMResponse(
            content=content,
            model=data.get("model", resolved_model),
            usage={k: int(v) for k, v in data.get("usage", {}).items() if isinstance(v, int)},
            raw_response=data,
        )

    async def ask(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send one prompt and return the text answer."""
        messages = []
        if system_prompt:
            messages.append(LLMMessage(role="system", content=system_prompt))
        messages.append(LLMMessage(role="user", content=prompt))
        response = await self.chat(messages)
        return response.content

    async def ask_json(self, prompt: str, system_prompt: str | None = None) -> dict[str, Any]:
        """Send one prompt and decode the answer as a JSON object.

        A surrounding Markdown code fence is tolerated.

        Raises:
            ValueError: If the request fails or the answer is not a JSON object.
        """
        text = CODE_FENCE_PATTERN.sub("", (await self.ask(prompt, system_prompt)).strip())
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise _error("invalid_output", f"LLM answer is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise _error("invalid_output", "LLM answer is not a JSON object")
        return data


# Singleton instance
_llm_service: LLMService | None = None


def get_llm_service() -> LLMService:
    """Get the LLM service singleton.

    Returns:
        LLMService: The LLM service instance.
    """
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
