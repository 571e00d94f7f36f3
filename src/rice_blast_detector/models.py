"""
Data models for Rice Blast Detector.

PURPOSE: Type-safe dataclasses representing core domain entities.
AI CONTEXT: These models define detection results and the statistics schema.

MODEL HIERARCHY:
- DetectionOutcome: One classification (category, confidence, symptoms)
- AnalysisResult: A DetectionOutcome tagged with how it was resolved
- StatisticsAggregate: Persisted running totals and confidence histogram
- DisplayAggregate: Read-only view shown to the user (local or server)
- ServerDistributionEntry: One histogram row as reported by the backend
- ImagePayload: A validated upload ready to send to the backend

SERIALIZATION:
StatisticsAggregate has to_dict()/from_dict() using the storage keys
healthy/infected/totalConfidence/totalDetections/distribution.
DetectionOutcome.from_api() parses the backend's result object.

USAGE:
    outcome = DetectionOutcome(DetectionCategory.MILD, 82, SYMPTOMS[DetectionCategory.MILD])
    result = AnalysisResult.local(outcome)
    aggregate = StatisticsAggregate.empty()
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import Config

__all__ = [
    "BUCKET_COUNT",
    "DetectionCategory",
    "DiseaseInfo",
    "DISEASE_INFO",
    "SYMPTOMS",
    "DetectionOutcome",
    "ResolvedVia",
    "AnalysisResult",
    "StatisticsAggregate",
    "DisplayAggregate",
    "ServerDistributionEntry",
    "ImagePayload",
    "round_half_up",
]

BUCKET_COUNT = len(Config.BUCKET_LABELS)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves going up.

    Python's round() uses banker's rounding (round(82.5) == 82); averages
    shown to users round .5 upwards instead.

    Args:
        value: Number to round.

    Returns:
        Nearest integer, ties toward positive infinity.

    Example:
        >>> round_half_up(82.5)
        83
    """
    return math.floor(value + 0.5)


class DetectionCategory(str, Enum):
    """
    Classification category.

    Values match the backend's detectionType strings.
    """

    HEALTHY = "healthy"
    MILD = "mild"
    SEVERE = "severe"

    @property
    def is_infected(self) -> bool:
        """Mild and severe both count as infected in the binary split."""
        return self is not DetectionCategory.HEALTHY


@dataclass(frozen=True)
class DiseaseInfo:
    """Display metadata for a category."""

    name: str
    color: str
    sample_confidence: int


DISEASE_INFO: dict[DetectionCategory, DiseaseInfo] = {
    DetectionCategory.HEALTHY: DiseaseInfo("Healthy Rice Leaf", "var(--success-color)", 96),
    DetectionCategory.MILD: DiseaseInfo("Mild Rice Blast Infection", "var(--warning-color)", 84),
    DetectionCategory.SEVERE: DiseaseInfo(
        "Severe Rice Blast Infection", "var(--danger-color)", 92
    ),
}

SYMPTOMS: dict[DetectionCategory, tuple[str, ...]] = {
    DetectionCategory.HEALTHY: (
        "Green, uniform color",
        "No visible spots or lesions",
        "Smooth leaf surface",
        "Normal leaf shape",
    ),
    DetectionCategory.MILD: (
        "Small, round to elliptical spots",
        "Gray-green lesions with dark borders",
        "Lesions less than 1cm in diameter",
        "Slight yellowing around spots",
    ),
    DetectionCategory.SEVERE: (
        "Large, diamond-shaped lesions",
        "Gray centers with reddish-brown borders",
        "Lesions coalescing into larger dead areas",
        "Severe yellowing and wilting",
        "White fungal growth under humid conditions",
    ),
}


@dataclass(frozen=True)
class DetectionOutcome:
    """
    One classification result.

    Immutable once produced and never persisted individually; only its
    category and confidence are folded into the StatisticsAggregate.

    VALIDATION:
    - confidence_percent must be an int in [0, 100]
    - symptoms must be non-empty
    """

    category: DetectionCategory
    confidence_percent: int
    symptoms: tuple[str, ...]
    image_url: str | None = None

    def __post_init__(self) -> None:
        """
        Validate fields and normalize symptoms to a tuple.

        Raises:
            ValueError: If confidence is out of range or symptoms empty.
        """
        if isinstance(self.confidence_percent, bool) or not isinstance(
            self.confidence_percent, int
        ):
            raise ValueError(f"confidence_percent must be int, got {self.confidence_percent!r}")
        if not 0 <= self.confidence_percent <= 100:
            raise ValueError(f"confidence_percent out of range: {self.confidence_percent}")
        object.__setattr__(self, "symptoms", tuple(self.symptoms))
        if not self.symptoms:
            raise ValueError("symptoms must not be empty")

    @property
    def display_name(self) -> str:
        """Human-readable category name, e.g. 'Mild Rice Blast Infection'."""
        return DISEASE_INFO[self.category].name

    @property
    def display_color(self) -> str:
        """CSS color for the category name."""
        return DISEASE_INFO[self.category].color

    @property
    def confidence_display(self) -> str:
        """Confidence formatted as a percentage string."""
        return f"{self.confidence_percent}%"

    @classmethod
    def from_api(cls, data: dict[str, Any], origin: str | None = None) -> DetectionOutcome:
        """
        Parse the backend's result object.

        Args:
            data: Dict with detectionType, confidence, symptoms and
                optional imageUrl.
            origin: Backend origin used to absolutize image URLs that
                start with "/".

        Returns:
            Parsed DetectionOutcome.

        Raises:
            ValueError: If any field is missing or malformed.
            TypeError: If data is not a mapping.

        Example:
            >>> DetectionOutcome.from_api(
            ...     {"detectionType": "mild", "confidence": 81, "symptoms": ["spots"]}
            ... ).category
            <DetectionCategory.MILD: 'mild'>
        """
        if not isinstance(data, dict):
            raise TypeError(f"result must be an object, got {type(data).__name__}")

        category = DetectionCategory(data.get("detectionType"))

        confidence = data.get("confidence")
        if isinstance(confidence, float) and confidence.is_integer():
            confidence = int(confidence)

        symptoms = data.get("symptoms")
        if not isinstance(symptoms, list) or not all(isinstance(s, str) for s in symptoms):
            raise ValueError("symptoms must be a list of strings")

        image_url = data.get("imageUrl")
        if image_url is not None and not isinstance(image_url, str):
            raise ValueError("imageUrl must be a string")
        if image_url and origin and image_url.startswith("/"):
            image_url = f"{origin}{image_url}"

        return cls(
            category=category,
            confidence_percent=confidence,  # type: ignore[arg-type]
            symptoms=tuple(symptoms),
            image_url=image_url or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the backend's wire shape for JSON responses.

        Returns:
            Dict with detectionType, confidence, symptoms and, when
            present, imageUrl, plus display name and color.
        """
        data: dict[str, Any] = {
            "detectionType": self.category.value,
            "confidence": self.confidence_percent,
            "symptoms": list(self.symptoms),
            "name": self.display_name,
            "color": self.display_color,
        }
        if self.image_url:
            data["imageUrl"] = self.image_url
        return data


class ResolvedVia(str, Enum):
    """Which path produced an AnalysisResult."""

    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class AnalysisResult:
    """
    A DetectionOutcome tagged with how it was resolved.

    REMOTE results came from the backend; LOCAL results were synthesized
    by the mock generator after the backend was unavailable.
    """

    outcome: DetectionOutcome
    resolved_via: ResolvedVia

    @classmethod
    def remote(cls, outcome: DetectionOutcome) -> AnalysisResult:
        """Tag outcome as coming from the backend."""
        return cls(outcome, ResolvedVia.REMOTE)

    @classmethod
    def local(cls, outcome: DetectionOutcome) -> AnalysisResult:
        """Tag outcome as synthesized locally."""
        return cls(outcome, ResolvedVia.LOCAL)

    @property
    def is_remote(self) -> bool:
        """True if the backend produced this result."""
        return self.resolved_via is ResolvedVia.REMOTE

    @property
    def is_local(self) -> bool:
        """True if the mock generator produced this result."""
        return self.resolved_via is ResolvedVia.LOCAL


@dataclass(frozen=True)
class StatisticsAggregate:
    """
    Persisted running totals of past detections.

    INVARIANTS:
    - healthy_count + infected_count == total_detections
    - sum(distribution) == total_detections
    - len(distribution) == 5, all values non-negative

    Instances are immutable: recording a detection produces a new
    aggregate that replaces the old one in a single assignment.
    """

    healthy_count: int = 0
    infected_count: int = 0
    total_confidence_sum: int = 0
    total_detections: int = 0
    distribution: tuple[int, ...] = field(default=(0,) * BUCKET_COUNT)

    def __post_init__(self) -> None:
        """
        Validate counts and invariants.

        Raises:
            ValueError: If any count is negative, the distribution has
                the wrong length, or the invariants do not hold.
        """
        object.__setattr__(self, "distribution", tuple(self.distribution))
        scalars = (
            self.healthy_count,
            self.infected_count,
            self.total_confidence_sum,
            self.total_detections,
        )
        for value in (*scalars, *self.distribution):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"counts must be non-negative integers, got {value!r}")
        if len(self.distribution) != BUCKET_COUNT:
            raise ValueError(
                f"distribution must have {BUCKET_COUNT} buckets, got {len(self.distribution)}"
            )
        if self.healthy_count + self.infected_count != self.total_detections:
            raise ValueError("healthy_count + infected_count must equal total_detections")
        if sum(self.distribution) != self.total_detections:
            raise ValueError("sum(distribution) must equal total_detections")

    @classmethod
    def empty(cls) -> StatisticsAggregate:
        """Create the all-zero aggregate used on first run."""
        return cls()

    @property
    def average_confidence(self) -> int:
        """
        Mean confidence rounded half-up, 0 when there are no detections.

        Example:
            >>> StatisticsAggregate(1, 1, 165, 2, (0, 0, 1, 1, 0)).average_confidence
            83
        """
        if self.total_detections == 0:
            return 0
        return round_half_up(self.total_confidence_sum / self.total_detections)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize using the persisted storage keys.

        Returns:
            Dict with healthy, infected, totalConfidence,
            totalDetections and distribution (list).
        """
        return {
            "healthy": self.healthy_count,
            "infected": self.infected_count,
            "totalConfidence": self.total_confidence_sum,
            "totalDetections": self.total_detections,
            "distribution": list(self.distribution),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StatisticsAggregate:
        """
        Deserialize from the persisted storage shape.

        Args:
            data: Dict as produced by to_dict().

        Returns:
            StatisticsAggregate instance.

        Raises:
            KeyError: If a required key is missing.
            TypeError: If data or distribution has the wrong type.
            ValueError: If counts violate the invariants.
        """
        distribution = data["distribution"]
        if not isinstance(distribution, list):
            raise TypeError("distribution must be a list")
        return cls(
            healthy_count=data["healthy"],
            infected_count=data["infected"],
            total_confidence_sum=data["totalConfidence"],
            total_detections=data["totalDetections"],
            distribution=tuple(distribution),
        )


@dataclass(frozen=True)
class DisplayAggregate:
    """
    Statistics as shown to the user.

    Built either from the local aggregate or from a server report.
    Never persisted.
    """

    healthy_count: int
    infected_count: int
    average_confidence: int
    distribution: tuple[int, ...]
    source: str = "local"

    @property
    def average_display(self) -> str:
        """Average confidence as a percentage string."""
        return f"{self.average_confidence}%"

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize in the backend's /statistics shape.

        Returns:
            Dict with stats, distribution (labelled rows) and source.
        """
        return {
            "stats": {
                "healthy_count": self.healthy_count,
                "infected_count": self.infected_count,
                "avg_confidence": self.average_confidence,
            },
            "distribution": [
                {"confidence_range": label, "count": count}
                for label, count in zip(Config.BUCKET_LABELS, self.distribution, strict=True)
            ],
            "source": self.source,
        }


@dataclass(frozen=True)
class ServerDistributionEntry:
    """One histogram row from the backend's /statistics response."""

    confidence_range: str
    count: int

    @classmethod
    def from_dict(cls, data: Any) -> ServerDistributionEntry | None:
        """
        Parse a distribution row leniently.

        A count that cannot be read as an integer becomes 0. Rows that
        are not objects or lack a string label yield None.

        Example:
            >>> ServerDistributionEntry.from_dict({"confidence_range": "95%+", "count": "4"})
            ServerDistributionEntry(confidence_range='95%+', count=4)
        """
        if not isinstance(data, dict):
            return None
        label = data.get("confidence_range")
        if not isinstance(label, str):
            return None
        try:
            count = int(data.get("count") or 0)
        except (TypeError, ValueError):
            count = 0
        return cls(label, max(count, 0))


@dataclass(frozen=True)
class ImagePayload:
    """A validated image upload."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)
