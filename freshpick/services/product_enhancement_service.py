"""Product detail enhancement.

Turns the few facts an admin knows about a product into storefront copy:
a description, ingredients, nutrition facts, search keywords and tags. With
an LLM client configured the copy is generated by the model and validated
against ``EnhancedProductDetails``; without one a deterministic heuristic
fills the same shape. Results are cached by input hash.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from freshpick.adapters.llm.base import AbstractLLMClient
from freshpick.schemas.enhancement import EnhancedProductDetails, ProductDetailsRequest
from freshpick.utils.simple_cache import SimpleTTLCache, build_cache_key

logger = logging.getLogger(__name__)

# Bump to invalidate cached results when the prompt changes
PROMPT_VERSION = "v1"
MAX_TAGS = 10
_WORD = re.compile(r"[a-z0-9]+")
_STOPWORDS = frozenset({"a", "an", "and", "for", "from", "of", "the", "with", "in", "on", "to", "by"})


def build_prompt(details: ProductDetailsRequest) -> str:
    known = json.dumps(details.model_dump(exclude_none=True), ensure_ascii=False, indent=2)
    return f"""
Improve the product listing below for an online grocery store.

RULES:
- Return ONLY a JSON object with the keys shown
- Do not invent health claims or certifications
- Keep ingredients and nutrition facts empty when they cannot be inferred

REQUIRED JSON STRUCTURE:
{{
  "enhanced_description": "2-4 customer-facing sentences",
  "suggested_ingredients": "comma separated ingredients, or empty",
  "nutrition_facts": "one fact per line, or empty",
  "search_content": "lower-case keywords customers might search for",
  "tags": ["up to {MAX_TAGS} short lower-case tags"]
}}

PRODUCT:
{known}
""".strip()


def _keywords(*texts: str | None) -> list[str]:
    words: list[str] = []
    for text in texts:
        for word in _WORD.findall((text or "").lower()):
            if word not in _STOPWORDS and len(word) > 1 and word not in words:
                words.append(word)
    return words


def heuristic_details(details: ProductDetailsRequest) -> EnhancedProductDetails:
    """Build enhanced details without a language model."""
    description = (details.description or "").strip() or f"High-quality {details.name}"
    if details.brand and details.brand.lower() not in description.lower():
        description = f"{description} from {details.brand}"
    if not description.endswith("."):
        description += "."

    tags: list[str] = []
    for candidate in (details.category, details.brand):
        tag = (candidate or "").strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    for word in _keywords(details.name):
        if len(tags) >= MAX_TAGS:
            break
        if word not in tags:
            tags.append(word)

    search_content = " ".join(_keywords(details.name, details.brand, details.category, details.description))
    return EnhancedProductDetails(
        enhanced_description=description,
        suggested_ingredients=details.ingredients or "",
        nutrition_facts=details.nutrition_facts or "",
        search_content=search_content,
        tags=tags[:MAX_TAGS],
        cached=False,
    )


class ProductEnhancementService:
    """Generates storefront copy for products.

    Attributes:
        llm: LLM client, or None to use the local heuristic.
        cache: TTL cache keyed by the hash of the request.
    """

    def __init__(self, llm: AbstractLLMClient | None, cache: SimpleTTLCache) -> None:
        self.llm = llm
        self.cache = cache

    def _cache_key(self, details: ProductDetailsRequest) -> str:
        mode = "llm" if self.llm is not None else "heuristic"
        return build_cache_key(
            [details.model_dump_json(exclude_none=True)],
            salt=f"{PROMPT_VERSION}:{mode}",
        )

    async def _generate(self, details: ProductDetailsRequest) -> EnhancedProductDetails:
        if self.llm is None:
            return heuristic_details(details)
        schema: dict[str, Any] = EnhancedProductDetails.model_json_schema()
        raw = await self.llm.generate_json(build_prompt(details), schema=schema)
        tags = [str(t).strip().lower() for t in raw.get("tags") or [] if str(t).strip()]
        return EnhancedProductDetails.model_validate(
            {**raw, "tags": tags[:MAX_TAGS], "cached": False},
        )

    async def enhance(self, details: ProductDetailsRequest) -> EnhancedProductDetails:
        """Return enhanced details, from the cache when the same input was seen.

        Raises:
            LLMAppError: If the model call fails or returns invalid JSON.
            pydantic.ValidationError: If the model's JSON does not fit the schema.
        """
        cache_key = self._cache_key(details)
        cached = self.cache.get(cache_key)
        if cached:
            logger.info("enhancement.cache_hit", extra={"product_name": details.name})
            return EnhancedProductDetails.model_validate({**cached, "cached": True})

        enhanced = await self._generate(details)
        self.cache.set(cache_key, enhanced.model_dump())
        logger.info(
            "enhancement.generated",
            extra={"product_name": details.name, "mode": "llm" if self.llm else "heuristic"},
        )
        return enhanced
