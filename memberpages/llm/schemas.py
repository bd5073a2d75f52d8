"""Pydantic schemas for the LLM client."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """One chat message."""

    role: Literal["system", "user", "assistant"]
    content: str


class LLMResponse(BaseModel):
    """Chat completion result.

    Attributes:
        content: Generated text.
        model: Model that answered.
        usage: Token counts (prompt_tokens, completion_tokens, total_tokens).
        raw_response: Decoded response body.
    """

    content: str
    model: str
    usage: dict[str, int] = Field(default_factory=dict)
    raw_response: dict[str, Any] = Field(default_factory=dict)


class LLMError(BaseModel):
    """Structured error carried as the message of a ValueError.

    Attributes:
        error_type: "not_configured", "api_error", "network_error" or "invalid_output".
        message: Human-readable description.
        status_code: HTTP status of the upstream answer, if any.
    """

    error_type: str
    message: str
    status_code: int | None = None
