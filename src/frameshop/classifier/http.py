"""HTTP client for a remote classification service.

Posts the captured frame to the scan-products endpoint and maps its
status codes onto the classification error hierarchy.
"""

from __future__ import annotations

import logging

import httpx

from frameshop.classifier.base import (
    ClassificationRequest,
    ClassificationService,
    ServiceUnavailable,
    error_for_status,
)
from frameshop.classifier.parsing import DEFAULT_PURCHASE_URL_TEMPLATE, parse_products
from frameshop.domain.models import ProductCandidate

logger = logging.getLogger(__name__)


class HttpClassificationService(ClassificationService):
    """Calls a scan-products endpoint over HTTP."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 60.0,
        purchase_url_template: str = DEFAULT_PURCHASE_URL_TEMPLATE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._purchase_url_template = purchase_url_template
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
                headers["apikey"] = self._api_key
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=headers)
        return self._client

    async def classify(self, request: ClassificationRequest) -> list[ProductCandidate]:
        client = self._ensure_client()
        logger.info("Scanning products for video %s (isUrl=%s)", request.video_id, request.is_url)
        try:
            resp = await client.post(self._url, json=request.model_dump(by_alias=True))
        except httpx.HTTPError as e:
            raise ServiceUnavailable(f"Classification request failed: {e}") from e

        if not resp.is_success:
            message = _error_message(resp)
            logger.error("Classification service error: %s %s", resp.status_code, message)
            raise error_for_status(resp.status_code, message)

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Classification response is not JSON; treating as empty")
            return []

        if isinstance(body, dict) and body.get("error"):
            raise ServiceUnavailable(str(body["error"]), status_code=resp.status_code)

        raw = body.get("products", []) if isinstance(body, dict) else body
        products = parse_products(raw, self._purchase_url_template)
        logger.info("Identified products: %d", len(products))
        return products

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {resp.status_code}"
