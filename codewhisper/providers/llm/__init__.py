"""LLM providers for the agentic responder."""

from .openai_llm_provider import OpenAILLMProvider, create_llm_provider

__all__ = ["OpenAILLMProvider", "create_llm_provider"]
