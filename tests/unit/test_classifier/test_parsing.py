"""Tests for defensive parsing of classification results."""

from __future__ import annotations

import json

import pytest

from frameshop.classifier.parsing import (
    DEFAULT_CONFIDENCE,
    parse_products,
    purchase_url_for,
    strip_code_fence,
)


SAMPLE = [
    {"name": "Navy Blue Blazer", "category": "Fashion", "confidence": 0.92},
    {"name": "Wireless Headphones", "category": "Electronics", "confidence": 0.81},
]


class TestParseProducts:
    def test_plain_json_array(self) -> None:
        products = parse_products(json.dumps(SAMPLE))
        assert [p.name for p in products] == ["Navy Blue Blazer", "Wireless Headphones"]
        assert products[0].confidence == 0.92
        assert products[1].category == "Electronics"

    def test_fenced_output_parses_identically(self) -> None:
        raw = json.dumps(SAMPLE)
        fenced = f"```json\n{raw}\n```"
        assert parse_products(fenced) == parse_products(raw)
        assert parse_products(f"```\n{raw}\n```") == parse_products(raw)

    def test_non_array_is_empty(self) -> None:
        assert parse_products('{"name": "Hat", "category": "Fashion"}') == []

    def test_malformed_json_is_empty(self) -> None:
        assert parse_products("I see a hat and a scarf.") == []

    def test_already_decoded_value(self) -> None:
        assert len(parse_products(SAMPLE)) == 2
        assert parse_products(None) == []

    def test_entries_without_name_or_category_dropped(self) -> None:
        raw = [
            {"name": "Sneakers", "category": "Sports"},
            {"name": "", "category": "Fashion"},
            {"category": "Home"},
            {"name": "Lamp"},
            {"name": 42, "category": "Home"},
            "just a string",
        ]
        products = parse_products(raw)
        assert [p.name for p in products] == ["Sneakers"]

    def test_confidence_defaults_and_clamping(self) -> None:
        raw = [
            {"name": "A", "category": "X"},
            {"name": "B", "category": "X", "confidence": "high"},
            {"name": "C", "category": "X", "confidence": 0},
            {"name": "D", "category": "X", "confidence": 1.7},
            {"name": "E", "category": "X", "confidence": -0.2},
        ]
        confidences = [p.confidence for p in parse_products(raw)]
        assert confidences == [DEFAULT_CONFIDENCE, DEFAULT_CONFIDENCE, 0.0, 1.0, 0.0]

    def test_purchase_url_derived_from_name(self) -> None:
        [product] = parse_products([{"name": "Black leather bag & belt", "category": "Fashion"}])
        assert product.purchase_url == "https://www.amazon.com/s?k=Black%20leather%20bag%20%26%20belt"

    def test_custom_purchase_url_template(self) -> None:
        [product] = parse_products(
            [{"name": "Desk Lamp", "category": "Home"}],
            purchase_url_template="https://shop.example/search?q={query}",
        )
        assert product.purchase_url == "https://shop.example/search?q=Desk%20Lamp"


class TestHelpers:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("[]", "[]"),
            ("```json\n[1]\n```", "[1]"),
            ("```JSON\n[1]```", "[1]"),
            ("  ```\n[2]\n```  ", "[2]"),
        ],
    )
    def test_strip_code_fence(self, text: str, expected: str) -> None:
        assert strip_code_fence(text) == expected

    def test_purchase_url_keeps_unreserved_marks(self) -> None:
        assert purchase_url_for("Levi's (501)") == "https://www.amazon.com/s?k=Levi's%20(501)"
