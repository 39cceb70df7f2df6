"""Factory for the configured LLM client."""

from freshpick.adapters.llm.base import AbstractLLMClient
from freshpick.adapters.llm.openai_client import OpenAIClient
from freshpick.core.config import settings
from freshpick.core.errors import ValidationAppError


def create_llm_client() -> AbstractLLMClient | None:
    """Instantiate the LLM client selected by ``LLM_PROVIDER``.

    Returns:
        The client, or None for provider ``none`` (local heuristics only).

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.llm.provider.lower()

    if provider == "none":
        return None

    if provider == "openai":
        if not settings.llm.api_key:
            raise ValidationAppError(
                code="llm_missing_api_key",
                message="OpenAI provider requires LLM_API_KEY environment variable",
            )
        return OpenAIClient(
            api_key=settings.llm.api_key,
            model=settings.llm.model,
            base_url=settings.llm.base_url,
            timeout_seconds=settings.llm.timeout_seconds,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=f"Unknown LLM provider: '{provider}'. Supported providers: none, openai",
    )
