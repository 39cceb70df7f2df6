"""LLM adapter layer used by product detail enhancement."""

from freshpick.adapters.llm.base import AbstractLLMClient
from freshpick.adapters.llm.factory import create_llm_client
from freshpick.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]
