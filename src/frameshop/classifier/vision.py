"""OpenAI-compatible vision classifier.

Works with OpenAI, OpenRouter, and any OpenAI-compatible gateway by
setting a custom base_url. This is what backs the scan-products endpoint
served by ``frameshop.server``; it can also be used in-process.
"""

from __future__ import annotations

import logging

from frameshop.classifier.base import (
    ClassificationError,
    ClassificationRequest,
    ClassificationService,
    ServiceQuotaExhausted,
    ServiceRateLimited,
    ServiceUnavailable,
)
from frameshop.classifier.parsing import DEFAULT_PURCHASE_URL_TEMPLATE, parse_products
from frameshop.domain.models import ProductCandidate

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = """You are a product identification expert. Analyze images to identify shoppable products including:
- Fashion items (clothing, shoes, accessories, jewelry, bags, watches)
- Electronics (phones, laptops, headphones, cameras, tablets, gaming devices)
- Home decor (furniture, lighting, decorations, kitchenware)
- Beauty products (makeup, skincare, haircare)
- Sports equipment (shoes, apparel, gear, accessories)
- Vehicles (cars, motorcycles, bicycles)

For each product you identify, provide:
1. A specific product name (be descriptive, e.g., "Black leather crossbody bag" not just "bag")
2. A category (Fashion, Electronics, Home, Beauty, Sports, Accessories, Automotive)
3. A confidence score (0.0 to 1.0)

Return ONLY a valid JSON array of products. No markdown, no explanations. Example format:
[{"name": "Navy Blue Blazer", "category": "Fashion", "confidence": 0.92}]

If no products are visible, return an empty array: []
"""

USER_INSTRUCTION = (
    "Identify all shoppable products visible in this image. Return a JSON array "
    "of products with name, category, and confidence score."
)


class VisionClassifier(ClassificationService):
    """Classification service backed by a chat-completions vision model."""

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.5-flash",
        base_url: str | None = None,
        system_prompt: str | None = None,
        max_tokens: int = 1024,
        purchase_url_template: str = DEFAULT_PURCHASE_URL_TEMPLATE,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self._max_tokens = max_tokens
        self._purchase_url_template = purchase_url_template
        self._client = None

    @property
    def model(self) -> str:
        return self._model

    async def _ensure_client(self) -> None:
        """Lazily initialize the OpenAI async client."""
        if self._client is not None:
            return
        from openai import AsyncOpenAI
        kwargs = {"api_key": self._api_key}
        if self._base_url:
            kwargs["base_url"] = self._base_url
        self._client = AsyncOpenAI(**kwargs)
        logger.info("Initialized OpenAI client (model=%s, base_url=%s)", self._model, self._base_url)

    async def classify(self, request: ClassificationRequest) -> list[ProductCandidate]:
        """Ask the vision model which products are visible in the frame.

        Inline payloads are already data URLs, so both payload forms go
        to the model as an ``image_url`` part unchanged.
        """
        await self._ensure_client()
        logger.info(
            "Scanning products from frame for video %s (isUrl=%s)",
            request.video_id, request.is_url,
        )

        messages = [
            {"role": "system", "content": self._system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_INSTRUCTION},
                    {"type": "image_url", "image_url": {"url": request.image_data}},
                ],
            },
        ]

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=messages,
            )
        except Exception as e:
            raise _translate_error(e) from e

        content = "[]"
        if response.choices and response.choices[0].message.content:
            content = response.choices[0].message.content
        logger.debug("Vision model raw response: %s", content[:200])
        products = parse_products(content, self._purchase_url_template)
        logger.info("Identified products: %d", len(products))
        return products

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


def _translate_error(error: Exception) -> ClassificationError:
    """Map OpenAI SDK exceptions onto the classification error hierarchy."""
    import openai

    if isinstance(error, openai.RateLimitError):
        return ServiceRateLimited(f"Rate limit exceeded: {error}", status_code=429)
    if isinstance(error, openai.APIStatusError):
        if error.status_code == 402:
            return ServiceQuotaExhausted(f"AI usage limit reached: {error}", status_code=402)
        return ServiceUnavailable(f"Vision API error: {error}", status_code=error.status_code)
    return ServiceUnavailable(f"Vision API call failed: {error}")
