"""Overlay placement for scan results.

Products are bucketed into a three-column pseudo-grid with a little
per-axis jitter so overlays never line up perfectly. There is no
collision avoidance: past roughly nine results, rows start to crowd the
bottom edge and positions are clamped to the viewport.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

from frameshop.domain.models import OverlayPosition, Product, ProductCandidate

logger = logging.getLogger(__name__)

COLUMNS = 3
ORIGIN = 10.0
COLUMN_SPACING = 30.0
ROW_SPACING = 25.0
JITTER = 10.0


class OverlayLayout:
    """Assigns viewport-percentage positions to scan results.

    Pass a seeded ``random.Random`` for reproducible layouts.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def position_for(self, index: int) -> OverlayPosition:
        column = index % COLUMNS
        row = index // COLUMNS
        x = ORIGIN + column * COLUMN_SPACING + self._rng.random() * JITTER
        y = ORIGIN + row * ROW_SPACING + self._rng.random() * JITTER
        return OverlayPosition(x=_clamp(x), y=_clamp(y))

    def place(self, candidates: Sequence[ProductCandidate], session_id: str) -> tuple[Product, ...]:
        """Position every candidate once, in result order."""
        if len(candidates) > COLUMNS * 3:
            logger.debug("Placing %d overlays; later rows may overlap", len(candidates))
        return tuple(
            Product(
                **candidate.model_dump(),
                session_id=session_id,
                ordinal=index,
                position=self.position_for(index),
            )
            for index, candidate in enumerate(candidates)
        )


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))
