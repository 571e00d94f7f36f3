"""
Mock outcome generator for Rice Blast Detector.

PURPOSE: Synthesize a plausible DetectionOutcome when the backend is down.
AI CONTEXT: Exact values are random; the statistical shape is fixed.

DISTRIBUTION:
    r < 0.4        -> healthy, confidence floor(85 + r2 * 15)  in [85, 100)
    0.4 <= r < 0.7 -> mild,    confidence floor(70 + r2 * 20)  in [70, 90)
    r >= 0.7       -> severe,  confidence floor(80 + r2 * 20)  in [80, 100)

r and r2 are independent uniform draws in [0, 1). Symptoms come from the
static SYMPTOMS table for the chosen category.
"""

from __future__ import annotations

import math
import random

from .models import SYMPTOMS, DetectionCategory, DetectionOutcome

__all__ = ["MockOutcomeGenerator"]

# (upper bound of r, category, confidence base, confidence span)
_BANDS: tuple[tuple[float, DetectionCategory, int, int], ...] = (
    (0.4, DetectionCategory.HEALTHY, 85, 15),
    (0.7, DetectionCategory.MILD, 70, 20),
    (1.0, DetectionCategory.SEVERE, 80, 20),
)


class MockOutcomeGenerator:
    """
    Pseudo-random DetectionOutcome factory.

    Pass a seeded random.Random for reproducible sequences.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()  # nosec B311 - not security sensitive

    def generate(self) -> DetectionOutcome:
        """
        Draw one mock outcome.

        Returns:
            DetectionOutcome with category and confidence drawn per the
            module-level distribution and the category's static symptoms.

        Example:
            >>> outcome = MockOutcomeGenerator(random.Random(7)).generate()
            >>> 70 <= outcome.confidence_percent < 100
            True
        """
        r = self._rng.random()
        for upper, category, base, span in _BANDS:
            if r < upper:
                break
        confidence = math.floor(base + self._rng.random() * span)
        return DetectionOutcome(
            category=category,
            confidence_percent=confidence,
            symptoms=SYMPTOMS[category],
        )
