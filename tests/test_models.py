"""Tests for models module."""

from __future__ import annotations

import pytest

from rice_blast_detector.models import (
    DISEASE_INFO,
    SYMPTOMS,
    AnalysisResult,
    DetectionCategory,
    DetectionOutcome,
    DisplayAggregate,
    ImagePayload,
    ResolvedVia,
    ServerDistributionEntry,
    StatisticsAggregate,
    round_half_up,
)


def _outcome(category: str = "mild", confidence: int = 80) -> DetectionOutcome:
    cat = DetectionCategory(category)
    return DetectionOutcome(cat, confidence, SYMPTOMS[cat])


class TestRoundHalfUp:
    """Tests for the rounding helper."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(82.5, 83), (82.4, 82), (83.5, 84), (0.0, 0), (99.99, 100)],
    )
    def test_rounds_halves_up(self, value: float, expected: int) -> None:
        """Verifies ties round upward unlike Python's round().

        Business context:
        Users read 82.5% as 83%, so displayed averages round .5 upward
        in both the dashboard and the terminal report.

        Assertion Strategy:
        Compares against hand-computed expectations.
        """
        assert round_half_up(value) == expected


class TestDetectionCategory:
    """Tests for DetectionCategory enum."""

    def test_values_match_backend(self) -> None:
        """Verifies enum values are the backend's detectionType strings."""
        assert [c.value for c in DetectionCategory] == ["healthy", "mild", "severe"]

    def test_is_infected(self) -> None:
        """Verifies mild and severe count as infected, healthy does not.

        Business context:
        The statistics cards split detections into healthy vs infected;
        both disease stages land in the infected column.
        """
        assert DetectionCategory.HEALTHY.is_infected is False
        assert DetectionCategory.MILD.is_infected is True
        assert DetectionCategory.SEVERE.is_infected is True

    def test_every_category_has_info_and_symptoms(self) -> None:
        """Verifies static tables cover every category."""
        for category in DetectionCategory:
            assert category in DISEASE_INFO
            assert len(SYMPTOMS[category]) >= 4


class TestDetectionOutcome:
    """Tests for DetectionOutcome validation and serialization."""

    def test_valid_outcome(self) -> None:
        """Verifies a well-formed outcome exposes display helpers."""
        outcome = _outcome("severe", 92)
        assert outcome.display_name == "Severe Rice Blast Infection"
        assert outcome.confidence_display == "92%"
        assert outcome.display_color == "var(--danger-color)"

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_rejects_out_of_range_confidence(self, confidence: int) -> None:
        """Verifies confidence must be within [0, 100]."""
        with pytest.raises(ValueError, match="out of range"):
            _outcome(confidence=confidence)

    def test_rejects_non_integer_confidence(self) -> None:
        """Verifies float and bool confidences are refused.

        Arrangement:
        Build outcomes with 80.5 and True.

        Assertion Strategy:
        Both raise ValueError.

        Testing Principle:
        bool is an int subclass and must be excluded explicitly.
        """
        with pytest.raises(ValueError):
            DetectionOutcome(DetectionCategory.MILD, 80.5, ("spot",))  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            DetectionOutcome(DetectionCategory.MILD, True, ("spot",))

    def test_rejects_empty_symptoms(self) -> None:
        """Verifies at least one symptom is required."""
        with pytest.raises(ValueError, match="symptoms"):
            DetectionOutcome(DetectionCategory.HEALTHY, 90, ())

    def test_symptoms_normalized_to_tuple(self) -> None:
        """Verifies list symptoms are stored as a tuple."""
        symptoms: list[str] = ["a", "b"]
        outcome = DetectionOutcome(DetectionCategory.HEALTHY, 90, symptoms)
        assert outcome.symptoms == ("a", "b")

    def test_to_dict_wire_shape(self) -> None:
        """Verifies JSON shape uses backend keys.

        Assertion Strategy:
        Checks keys and that imageUrl is omitted when absent.
        """
        data = _outcome("healthy", 96).to_dict()
        assert data["detectionType"] == "healthy"
        assert data["confidence"] == 96
        assert data["symptoms"] == list(SYMPTOMS[DetectionCategory.HEALTHY])
        assert data["name"] == "Healthy Rice Leaf"
        assert "imageUrl" not in data


class TestDetectionOutcomeFromApi:
    """Tests for parsing backend results."""

    def test_parses_valid_result(self) -> None:
        """Verifies a typical backend result parses.

        Arrangement:
        Dict as returned by POST /analyze.

        Action:
        Call from_api().

        Assertion Strategy:
        Validates every field.
        """
        outcome = DetectionOutcome.from_api(
            {"detectionType": "mild", "confidence": 81, "symptoms": ["Small spots"]}
        )
        assert outcome.category is DetectionCategory.MILD
        assert outcome.confidence_percent == 81
        assert outcome.symptoms == ("Small spots",)
        assert outcome.image_url is None

    def test_integral_float_confidence_accepted(self) -> None:
        """Verifies 88.0 (JSON number) becomes 88."""
        outcome = DetectionOutcome.from_api(
            {"detectionType": "healthy", "confidence": 88.0, "symptoms": ["Green"]}
        )
        assert outcome.confidence_percent == 88

    def test_relative_image_url_resolved_against_origin(self) -> None:
        """Verifies /uploads/... gets the backend origin prefixed.

        Business context:
        The backend returns image paths relative to its own host; the
        dashboard is served from a different port.
        """
        outcome = DetectionOutcome.from_api(
            {
                "detectionType": "severe",
                "confidence": 90,
                "symptoms": ["Lesions"],
                "imageUrl": "/uploads/leaf.jpg",
            },
            origin="http://localhost:3001",
        )
        assert outcome.image_url == "http://localhost:3001/uploads/leaf.jpg"

    def test_absolute_image_url_unchanged(self) -> None:
        """Verifies absolute image URLs pass through."""
        outcome = DetectionOutcome.from_api(
            {
                "detectionType": "severe",
                "confidence": 90,
                "symptoms": ["Lesions"],
                "imageUrl": "https://cdn.example/leaf.jpg",
            },
            origin="http://localhost:3001",
        )
        assert outcome.image_url == "https://cdn.example/leaf.jpg"

    @pytest.mark.parametrize(
        "data",
        [
            {"detectionType": "blight", "confidence": 80, "symptoms": ["x"]},
            {"detectionType": "mild", "confidence": 80.5, "symptoms": ["x"]},
            {"detectionType": "mild", "confidence": 150, "symptoms": ["x"]},
            {"detectionType": "mild", "confidence": 80, "symptoms": "x"},
            {"detectionType": "mild", "confidence": 80, "symptoms": []},
            {"detectionType": "mild", "confidence": 80, "symptoms": ["x"], "imageUrl": 5},
        ],
    )
    def test_malformed_results_raise_value_error(self, data: dict[str, object]) -> None:
        """Verifies malformed fields raise ValueError.

        Testing Principle:
        Every malformed shape must be detectable so the client can
        treat it as backend unavailability.
        """
        with pytest.raises(ValueError):
            DetectionOutcome.from_api(data)

    def test_non_dict_raises_type_error(self) -> None:
        """Verifies a non-object result raises TypeError."""
        with pytest.raises(TypeError):
            DetectionOutcome.from_api(None)  # type: ignore[arg-type]


class TestAnalysisResult:
    """Tests for result tagging."""

    def test_remote_and_local_constructors(self) -> None:
        """Verifies factory methods set resolved_via."""
        outcome = _outcome()
        remote = AnalysisResult.remote(outcome)
        local = AnalysisResult.local(outcome)
        assert remote.resolved_via is ResolvedVia.REMOTE
        assert remote.is_remote and not remote.is_local
        assert local.resolved_via is ResolvedVia.LOCAL
        assert local.is_local and not local.is_remote


class TestStatisticsAggregate:
    """Tests for StatisticsAggregate invariants and serialization."""

    def test_empty(self) -> None:
        """Verifies empty aggregate is all zeros with 0% average."""
        agg = StatisticsAggregate.empty()
        assert agg.total_detections == 0
        assert agg.distribution == (0, 0, 0, 0, 0)
        assert agg.average_confidence == 0

    def test_average_rounds_half_up(self) -> None:
        """Verifies 165 / 2 = 82.5 displays as 83.

        Arrangement:
        Aggregate of two detections totalling 165.

        Assertion Strategy:
        Validates half-up rounding.
        """
        agg = StatisticsAggregate(1, 1, 165, 2, (0, 0, 1, 1, 0))
        assert agg.average_confidence == 83

    def test_rejects_healthy_infected_mismatch(self) -> None:
        """Verifies healthy + infected must equal total."""
        with pytest.raises(ValueError, match="healthy_count"):
            StatisticsAggregate(1, 1, 160, 3, (0, 0, 1, 1, 1))

    def test_rejects_distribution_mismatch(self) -> None:
        """Verifies sum(distribution) must equal total."""
        with pytest.raises(ValueError, match="sum"):
            StatisticsAggregate(1, 1, 160, 2, (0, 0, 1, 0, 0))

    def test_rejects_wrong_bucket_count(self) -> None:
        """Verifies distribution must have five buckets."""
        with pytest.raises(ValueError, match="5 buckets"):
            StatisticsAggregate(1, 0, 90, 1, (0, 0, 0, 1))

    def test_rejects_negative_counts(self) -> None:
        """Verifies negative counts are refused."""
        with pytest.raises(ValueError, match="non-negative"):
            StatisticsAggregate(-1, 1, 0, 0, (0, 0, 0, 0, 0))

    def test_dict_round_trip(self) -> None:
        """Verifies to_dict/from_dict preserve every field.

        Business context:
        Statistics survive restarts only if the persisted shape reads
        back identically.
        """
        agg = StatisticsAggregate(2, 3, 420, 5, (1, 1, 1, 1, 1))
        data = agg.to_dict()
        assert data == {
            "healthy": 2,
            "infected": 3,
            "totalConfidence": 420,
            "totalDetections": 5,
            "distribution": [1, 1, 1, 1, 1],
        }
        assert StatisticsAggregate.from_dict(data) == agg

    def test_from_dict_missing_key(self) -> None:
        """Verifies a missing key raises KeyError."""
        with pytest.raises(KeyError):
            StatisticsAggregate.from_dict({"healthy": 0})

    def test_from_dict_distribution_not_list(self) -> None:
        """Verifies a non-list distribution raises TypeError."""
        with pytest.raises(TypeError):
            StatisticsAggregate.from_dict(
                {
                    "healthy": 0,
                    "infected": 0,
                    "totalConfidence": 0,
                    "totalDetections": 0,
                    "distribution": "00000",
                }
            )


class TestDisplayAggregate:
    """Tests for the display view."""

    def test_to_dict_uses_backend_statistics_shape(self) -> None:
        """Verifies serialization mirrors GET /statistics.

        Assertion Strategy:
        Checks stats keys and labelled distribution rows.
        """
        display = DisplayAggregate(3, 2, 87, (0, 1, 1, 2, 1), source="server")
        data = display.to_dict()
        assert data["stats"] == {"healthy_count": 3, "infected_count": 2, "avg_confidence": 87}
        assert data["distribution"][0] == {"confidence_range": "<65%", "count": 0}
        assert data["distribution"][4] == {"confidence_range": "95%+", "count": 1}
        assert data["source"] == "server"
        assert display.average_display == "87%"


class TestServerDistributionEntry:
    """Tests for lenient server row parsing."""

    def test_parses_string_count(self) -> None:
        """Verifies numeric strings are accepted."""
        entry = ServerDistributionEntry.from_dict({"confidence_range": "95%+", "count": "4"})
        assert entry == ServerDistributionEntry("95%+", 4)

    def test_bad_count_becomes_zero(self) -> None:
        """Verifies unreadable and negative counts become 0."""
        bad = ServerDistributionEntry.from_dict({"confidence_range": "<65%", "count": "lots"})
        negative = ServerDistributionEntry.from_dict({"confidence_range": "<65%", "count": -3})
        missing = ServerDistributionEntry.from_dict({"confidence_range": "<65%"})
        assert bad is not None and bad.count == 0
        assert negative is not None and negative.count == 0
        assert missing is not None and missing.count == 0

    def test_unusable_rows_return_none(self) -> None:
        """Verifies non-dicts and missing labels yield None."""
        assert ServerDistributionEntry.from_dict("row") is None
        assert ServerDistributionEntry.from_dict({"count": 3}) is None


class TestImagePayload:
    """Tests for ImagePayload."""

    def test_size_and_repr(self) -> None:
        """Verifies size reports bytes and repr omits raw data."""
        payload = ImagePayload("leaf.jpg", "image/jpeg", b"\x89PNG")
        assert payload.size == 4
        assert "PNG" not in repr(payload)
