"""Tests for product detail enhancement."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from freshpick.adapters.llm.base import AbstractLLMClient
from freshpick.schemas.enhancement import ProductDetailsRequest
from freshpick.services.product_enhancement_service import (
    ProductEnhancementService,
    build_prompt,
    heuristic_details,
)
from freshpick.utils.simple_cache import SimpleTTLCache

CARROTS = ProductDetailsRequest(name="Organic Baby Carrots", brand="Nuwara Farms", category="Vegetables")


def _llm(payload):
    llm = AsyncMock(spec=AbstractLLMClient)
    llm.generate_json.return_value = payload
    return llm


class TestHeuristic:
    def test_fills_description_and_tags(self):
        details = heuristic_details(CARROTS)

        assert details.enhanced_description == "High-quality Organic Baby Carrots from Nuwara Farms."
        assert details.tags[:2] == ["vegetables", "nuwara farms"]
        assert {"organic", "baby", "carrots"} <= set(details.tags)
        assert "carrots" in details.search_content
        assert details.cached is False

    def test_keeps_existing_description_and_facts(self):
        request = ProductDetailsRequest(
            name="Rolled Oats",
            description="Wholegrain oats",
            ingredients="Oats",
            nutrition_facts="Fibre 10g",
        )

        details = heuristic_details(request)

        assert details.enhanced_description == "Wholegrain oats."
        assert details.suggested_ingredients == "Oats"
        assert details.nutrition_facts == "Fibre 10g"

    def test_tags_are_capped(self):
        request = ProductDetailsRequest(name="one two three four five six seven eight nine ten eleven twelve")

        assert len(heuristic_details(request).tags) == 10


def test_prompt_contains_known_fields_only():
    prompt = build_prompt(CARROTS)

    assert '"name": "Organic Baby Carrots"' in prompt
    assert "description" not in prompt.split("PRODUCT:")[1]


class TestService:
    @pytest.mark.asyncio
    async def test_without_llm_uses_heuristic_and_caches(self):
        service = ProductEnhancementService(llm=None, cache=SimpleTTLCache())

        first = await service.enhance(CARROTS)
        second = await service.enhance(CARROTS)

        assert first.cached is False
        assert second.cached is True
        assert second.enhanced_description == first.enhanced_description

    @pytest.mark.asyncio
    async def test_llm_output_is_normalized(self):
        llm = _llm(
            {
                "enhanced_description": "Sweet, crunchy baby carrots.",
                "suggested_ingredients": "",
                "nutrition_facts": "Vitamin A",
                "search_content": "carrots baby organic",
                "tags": [" Carrots ", "ORGANIC", ""] + [f"t{i}" for i in range(12)],
            }
        )
        service = ProductEnhancementService(llm=llm, cache=SimpleTTLCache())

        result = await service.enhance(CARROTS)

        assert result.tags[:2] == ["carrots", "organic"]
        assert len(result.tags) == 10
        llm.generate_json.assert_awaited_once()
        assert "schema" in llm.generate_json.call_args.kwargs

    @pytest.mark.asyncio
    async def test_llm_is_called_once_per_distinct_input(self):
        llm = _llm({"enhanced_description": "x", "search_content": "x"})
        service = ProductEnhancementService(llm=llm, cache=SimpleTTLCache())

        await service.enhance(CARROTS)
        await service.enhance(CARROTS)
        await service.enhance(ProductDetailsRequest(name="Red Onions"))

        assert llm.generate_json.await_count == 2

    @pytest.mark.asyncio
    async def test_invalid_llm_output_is_not_cached(self):
        llm = _llm({"tags": []})
        cache = SimpleTTLCache()
        service = ProductEnhancementService(llm=llm, cache=cache)

        with pytest.raises(ValidationError):
            await service.enhance(CARROTS)

        assert cache.stats()["entries"] == 0


class TestEndpoint:
    def test_admin_gets_enhanced_details(self, client, admin_headers):
        response = client.post(
            "/api/products/enhance-details",
            json={"name": "Organic Baby Carrots", "category": "Vegetables"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["tags"][0] == "vegetables"

    def test_customers_cannot_enhance(self, client, customer_headers):
        response = client.post("/api/products/enhance-details", json={"name": "Carrots"}, headers=customer_headers)

        assert response.status_code == 403
