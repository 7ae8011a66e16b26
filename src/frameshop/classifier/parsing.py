"""Defensive parsing of classification results.

Model output is untrusted: it may be wrapped in a fenced code block, may
not be an array, and individual entries may be missing fields. Entries
that do not expose both a name and a category are dropped; everything
else that cannot be parsed degrades to an empty result.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from frameshop.domain.models import ProductCandidate

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8
DEFAULT_PURCHASE_URL_TEMPLATE = "https://www.amazon.com/s?k={query}"

_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n?(.*?)\n?```$", re.DOTALL | re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """Remove an optional ```json ... ``` wrapper."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def purchase_url_for(name: str, template: str = DEFAULT_PURCHASE_URL_TEMPLATE) -> str:
    """Search-engine URL for a product name (URI-component encoded)."""
    return template.format(query=quote(name, safe="-_.!~*'()"))


def parse_products(
    raw: Any, purchase_url_template: str = DEFAULT_PURCHASE_URL_TEMPLATE
) -> list[ProductCandidate]:
    """Turn a raw classification result into validated candidates.

    ``raw`` may be the model's text answer or an already-decoded JSON
    value. Never raises: malformed input yields an empty list.
    """
    data = raw
    if isinstance(raw, (str, bytes)):
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        try:
            data = json.loads(strip_code_fence(text))
        except json.JSONDecodeError as e:
            logger.warning("Classification result is not valid JSON (%s); treating as empty", e)
            return []

    if not isinstance(data, list):
        logger.warning("Classification result was not an array, resetting to empty")
        return []

    products: list[ProductCandidate] = []
    for entry in data:
        candidate = _to_candidate(entry, purchase_url_template)
        if candidate is not None:
            products.append(candidate)
    if len(products) < len(data):
        logger.debug("Dropped %d non-conforming entries", len(data) - len(products))
    return products


def _to_candidate(entry: Any, template: str) -> ProductCandidate | None:
    if not isinstance(entry, dict):
        return None
    name = entry.get("name")
    category = entry.get("category")
    if not isinstance(name, str) or not name.strip() or not isinstance(category, str):
        return None

    confidence = entry.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = DEFAULT_CONFIDENCE
    confidence = max(0.0, min(1.0, float(confidence)))

    name = name.strip()
    try:
        return ProductCandidate(
            name=name,
            category=category.strip(),
            confidence=confidence,
            purchase_url=purchase_url_for(name, template),
        )
    except ValidationError:
        return None
