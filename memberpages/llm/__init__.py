"""LLM client used by the page generator."""

from memberpages.llm.service import LLMService, get_llm_service

__all__ = ["LLMService", "get_llm_service"]
