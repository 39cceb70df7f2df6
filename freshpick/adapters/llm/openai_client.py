"""OpenAI LLM client adapter."""

import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from freshpick.adapters.llm.base import AbstractLLMClient
from freshpick.core.errors import LLMAppError

logger = logging.getLogger(__name__)

PASSTHROUGH_PARAMS = ("max_tokens", "top_p", "frequency_penalty", "presence_penalty", "seed")


class OpenAIClient(AbstractLLMClient):
    """Calls OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_json(
        self,
        prompt: str,
        *,
        schema: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generate structured JSON using OpenAI chat completions.

        Raises:
            LLMAppError: If the API call fails or the response is not a JSON object.
        """
        messages = [
            {
                "role": "system",
                "content": "You write product copy for an online grocery store. Output JSON only.",
            },
            {"role": "user", "content": prompt},
        ]
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", 0.3),
        }
        if schema is not None:
            request_params["response_format"] = {"type": "json_object"}
        for param in PASSTHROUGH_PARAMS:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as exc:
            logger.error("llm.request_failed", extra={"model": self.model, "error_type": type(exc).__name__})
            raise LLMAppError(
                code="llm_request_failed",
                message="The language model request failed",
                details={"reason": str(exc)},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMAppError(code="llm_empty_response", message="The language model returned an empty response")

        try:
            parsed = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise LLMAppError(
                code="llm_invalid_json",
                message="The language model returned invalid JSON",
                details={"reason": str(exc)},
            ) from exc
        if not isinstance(parsed, dict):
            raise LLMAppError(code="llm_invalid_json", message="The language model did not return a JSON object")
        return parsed
