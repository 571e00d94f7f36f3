"""
Statistics for Rice Blast Detector.

PURPOSE: Confidence bucketing, the running aggregate and server reconciliation.
AI CONTEXT: Pure functions do the math; StatisticsStore owns the state.

BUCKETS (lower inclusive, upper exclusive, last inclusive both ends):
    0: <65    1: [65,75)    2: [75,85)    3: [85,95)    4: [95,100]

BOOKKEEPING RULES:
- Only locally synthesized results are recorded into the aggregate
- A remote result defers to the server's own aggregate, which replaces
  the *displayed* values without touching the persisted local copy

USAGE:
    store = StatisticsStore(StorageManager())
    store.load()
    store.record_local_detection(outcome)
    display = store.merge_server_aggregate(stats, distribution)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .config import Config
from .models import (
    BUCKET_COUNT,
    DetectionOutcome,
    DisplayAggregate,
    ServerDistributionEntry,
    StatisticsAggregate,
    round_half_up,
)

if TYPE_CHECKING:
    from .storage import StorageManager

__all__ = [
    "classify_confidence",
    "apply_detection",
    "map_server_distribution",
    "StatisticsStore",
]

logger = logging.getLogger(__name__)


def classify_confidence(confidence: int) -> int:
    """
    Map a confidence percentage to its histogram bucket.

    Args:
        confidence: Integer percentage in [0, 100].

    Returns:
        Bucket index 0-4.

    Raises:
        ValueError: If confidence is outside [0, 100].

    Example:
        >>> [classify_confidence(c) for c in (64, 65, 84, 85, 95, 100)]
        [0, 1, 2, 3, 4, 4]
    """
    if not 0 <= confidence <= 100:
        raise ValueError(f"confidence out of range: {confidence}")
    for index, upper in enumerate(Config.BUCKET_LOWER_BOUNDS):
        if confidence < upper:
            return index
    return BUCKET_COUNT - 1


def apply_detection(
    aggregate: StatisticsAggregate, outcome: DetectionOutcome
) -> StatisticsAggregate:
    """
    Fold one detection into an aggregate.

    Pure: returns a new aggregate and leaves the input untouched, so a
    caller can swap it in with a single assignment.

    Args:
        aggregate: Current totals.
        outcome: Detection to add.

    Returns:
        New StatisticsAggregate with every counter advanced by one
        detection.

    Example:
        >>> agg = apply_detection(StatisticsAggregate.empty(), outcome)  # 90% healthy
        >>> agg.healthy_count, agg.distribution
        (1, (0, 0, 0, 1, 0))
    """
    bucket = classify_confidence(outcome.confidence_percent)
    distribution = list(aggregate.distribution)
    distribution[bucket] += 1

    infected = outcome.category.is_infected
    return StatisticsAggregate(
        healthy_count=aggregate.healthy_count + (0 if infected else 1),
        infected_count=aggregate.infected_count + (1 if infected else 0),
        total_confidence_sum=aggregate.total_confidence_sum + outcome.confidence_percent,
        total_detections=aggregate.total_detections + 1,
        distribution=tuple(distribution),
    )


def map_server_distribution(rows: Iterable[Any] | None) -> tuple[int, ...]:
    """
    Lay out server histogram rows in the fixed 5-slot order.

    Rows whose confidence_range does not match a bucket label (percent
    signs optional) are dropped; buckets without a row stay 0. When a
    label repeats, the last row wins.

    Args:
        rows: Raw distribution rows ({confidence_range, count}).

    Returns:
        Tuple of 5 counts.

    Example:
        >>> map_server_distribution([{"confidence_range": "95%+", "count": 5}])
        (0, 0, 0, 0, 5)
    """
    counts = [0] * BUCKET_COUNT
    for row in rows or ():
        entry = ServerDistributionEntry.from_dict(row)
        if entry is None:
            continue
        index = _LABEL_INDEX.get(_normalize_label(entry.confidence_range))
        if index is None:
            logger.debug(f"Ignoring unknown confidence range: {entry.confidence_range!r}")
            continue
        counts[index] = entry.count
    return tuple(counts)


def _normalize_label(label: str) -> str:
    """Strip percent signs and whitespace so "<65" and "<65%" match."""
    return label.replace("%", "").replace(" ", "")


_LABEL_INDEX: dict[str, int] = {
    _normalize_label(label): index for index, label in enumerate(Config.BUCKET_LABELS)
}


def _int_or_zero(value: Any) -> int:
    """Coerce a server stat to a non-negative int, 0 on failure."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number or number < 0:  # NaN or negative
        return 0
    return round_half_up(number)


class StatisticsStore:
    """
    Owner of the process-wide StatisticsAggregate.

    DESIGN:
    - Single writer: record_local_detection() is the only mutator besides
      reset(); the single-flight analysis rule keeps it uncontended
    - Whole-object replace: readers always see a complete aggregate
    - Best-effort persistence: storage failures are logged and the
      in-memory aggregate keeps working for the session

    LIFECYCLE:
    1. Created empty
    2. load() restores the persisted record (or stays empty)
    3. record_local_detection() after each locally resolved analysis
    """

    def __init__(self, storage: StorageManager) -> None:
        """
        Initialize with an empty aggregate.

        Args:
            storage: StorageManager used for load and persist.
        """
        self.storage = storage
        self._aggregate = StatisticsAggregate.empty()

    @property
    def aggregate(self) -> StatisticsAggregate:
        """The current aggregate."""
        return self._aggregate

    def load(self) -> StatisticsAggregate:
        """
        Restore the persisted aggregate.

        Absent, corrupt or invariant-violating records yield the empty
        aggregate. Never raises.

        Returns:
            The loaded (or empty) aggregate, which also becomes current.
        """
        data = self.storage.load_statistics()
        aggregate = StatisticsAggregate.empty()
        if data is not None:
            try:
                aggregate = StatisticsAggregate.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Discarding invalid statistics record: {e}")
        self._aggregate = aggregate
        return aggregate

    def record_local_detection(self, outcome: DetectionOutcome) -> StatisticsAggregate:
        """
        Fold a locally resolved detection into the aggregate and persist.

        Only call this for results resolved via the mock generator;
        remote results are counted by the server.

        Args:
            outcome: The local detection.

        Returns:
            The updated aggregate.
        """
        updated = apply_detection(self._aggregate, outcome)
        self._aggregate = updated
        if not self.storage.save_statistics(updated.to_dict()):
            logger.error("Statistics persistence degraded; continuing in memory")
        return updated

    def reset(self) -> StatisticsAggregate:
        """
        Clear all statistics and persist the empty aggregate.

        Returns:
            The empty aggregate.
        """
        self._aggregate = StatisticsAggregate.empty()
        if not self.storage.save_statistics(self._aggregate.to_dict()):
            logger.error("Statistics persistence degraded; continuing in memory")
        else:
            logger.info("Statistics cleared")
        return self._aggregate

    def local_display(self) -> DisplayAggregate:
        """
        Build the display view from the local aggregate.

        Returns:
            DisplayAggregate with source "local".
        """
        agg = self._aggregate
        return DisplayAggregate(
            healthy_count=agg.healthy_count,
            infected_count=agg.infected_count,
            average_confidence=agg.average_confidence,
            distribution=agg.distribution,
            source="local",
        )

    def merge_server_aggregate(
        self,
        server_stats: dict[str, Any] | None,
        server_distribution: Iterable[Any] | None,
    ) -> DisplayAggregate:
        """
        Combine server counts with a 5-slot distribution view.

        Missing or malformed stats default to 0. An empty server
        distribution falls back to the local histogram, matching how the
        dashboard redraws the local chart when the server has none.
        Does not mutate local state.

        Args:
            server_stats: {healthy_count, infected_count, avg_confidence}.
            server_distribution: Rows of {confidence_range, count}.

        Returns:
            DisplayAggregate with source "server".

        Example:
            >>> store.merge_server_aggregate(
            ...     {"healthy_count": 3},
            ...     [{"confidence_range": "<65%", "count": 1}],
            ... ).distribution
            (1, 0, 0, 0, 0)
        """
        stats = server_stats if isinstance(server_stats, dict) else {}
        rows = list(server_distribution) if server_distribution else []
        distribution = map_server_distribution(rows) if rows else self._aggregate.distribution
        return DisplayAggregate(
            healthy_count=_int_or_zero(stats.get("healthy_count")),
            infected_count=_int_or_zero(stats.get("infected_count")),
            average_confidence=_int_or_zero(stats.get("avg_confidence")),
            distribution=distribution,
            source="server",
        )
