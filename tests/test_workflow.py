"""Tests for workflow module."""

from __future__ import annotations

import json
import random
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import MockFileSystem, SleepRecorder

from rice_blast_detector.client import DetectionApiClient
from rice_blast_detector.errors import Busy, InputRejected, RemoteUnavailable
from rice_blast_detector.fallback import MockOutcomeGenerator
from rice_blast_detector.models import (
    SYMPTOMS,
    DetectionCategory,
    DetectionOutcome,
    ResolvedVia,
    StatisticsAggregate,
)
from rice_blast_detector.progress import ProgressSimulator
from rice_blast_detector.resolver import ResultResolver
from rice_blast_detector.statistics import StatisticsStore
from rice_blast_detector.storage import StorageManager
from rice_blast_detector.workflow import AnalysisWorkflow

STATS_FILE = "/test/storage/statistics.json"
REMOTE_OUTCOME = DetectionOutcome(
    DetectionCategory.HEALTHY, 97, SYMPTOMS[DetectionCategory.HEALTHY]
)


def _workflow(
    mock_fs: MockFileSystem,
    fast_sleep: SleepRecorder,
    client: MagicMock | None = None,
) -> AnalysisWorkflow:
    """Build a workflow over in-memory storage and instant progress."""
    store = StatisticsStore(StorageManager(storage_dir="/test/storage", filesystem=mock_fs))
    resolver = ResultResolver(
        client=client,
        progress=ProgressSimulator(sleep=fast_sleep),
        generator=MockOutcomeGenerator(random.Random(11)),
    )
    return AnalysisWorkflow(store=store, resolver=resolver)


def _online_client(
    analyze: object = REMOTE_OUTCOME,
    statistics: object = None,
) -> MagicMock:
    """Mock backend client; exceptions in place of values are raised."""
    client = MagicMock(spec=DetectionApiClient)
    if isinstance(analyze, Exception):
        client.analyze = AsyncMock(side_effect=analyze)
    else:
        client.analyze = AsyncMock(return_value=analyze)
    if isinstance(statistics, Exception):
        client.fetch_statistics = AsyncMock(side_effect=statistics)
    else:
        client.fetch_statistics = AsyncMock(return_value=statistics or ({}, []))
    client.aclose = AsyncMock()
    return client


class TestWorkflowStartup:
    """Tests for workflow construction."""

    def test_loads_persisted_statistics(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies saved statistics are shown on startup.

        Arrangement:
        Persist an aggregate with 2 detections.

        Action:
        Construct the workflow.

        Assertion Strategy:
        current_display() reflects the saved counts.
        """
        agg = StatisticsAggregate(1, 1, 180, 2, (0, 0, 0, 1, 1))
        mock_fs.set_file(STATS_FILE, json.dumps(agg.to_dict()))

        workflow = _workflow(mock_fs, fast_sleep)

        display = workflow.current_display()
        assert display.healthy_count == 1
        assert display.infected_count == 1
        assert display.average_confidence == 90
        assert workflow.current_chart().heights == [0.0, 0.0, 0.0, 180.0, 180.0]

    def test_create_offline_has_no_client(self, mock_fs: MockFileSystem) -> None:
        """Verifies offline create() skips the backend client."""
        workflow = AnalysisWorkflow.create(
            storage_dir="/test/storage", filesystem=mock_fs, offline=True
        )
        assert workflow.client is None

    def test_create_online_uses_given_client(self, mock_fs: MockFileSystem) -> None:
        """Verifies an explicit client is wired into the resolver."""
        client = _online_client()
        workflow = AnalysisWorkflow.create(
            storage_dir="/test/storage", filesystem=mock_fs, offline=False, client=client
        )
        assert workflow.client is client


class TestLocalAnalysis:
    """Tests for analyses resolved by the mock generator."""

    @pytest.mark.asyncio
    async def test_local_result_recorded(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies a LOCAL result updates and persists statistics.

        Business context:
        Offline users still see their statistics grow; nobody else is
        counting these detections.

        Arrangement:
        Offline workflow, empty storage.

        Action:
        Analyze one image.

        Assertion Strategy:
        Report is LOCAL, statistics show one detection in the right
        bucket, and the record was written.
        """
        workflow = _workflow(mock_fs, fast_sleep)

        report = await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")

        outcome = report.result.outcome
        assert report.result.resolved_via is ResolvedVia.LOCAL
        assert report.display.source == "local"
        assert report.display.healthy_count + report.display.infected_count == 1
        assert report.display.average_confidence == outcome.confidence_percent
        assert sum(report.chart.counts) == 1
        assert max(report.chart.heights) == 180.0
        saved = json.loads(mock_fs.get_file(STATS_FILE) or "{}")
        assert saved["totalDetections"] == 1
        assert workflow.last_result == report.result

    @pytest.mark.asyncio
    async def test_remote_failure_records_locally(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies a backend failure falls back and counts locally."""
        client = _online_client(analyze=RemoteUnavailable("down"))
        workflow = _workflow(mock_fs, fast_sleep, client=client)

        report = await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")

        assert report.result.is_local
        assert workflow.store.aggregate.total_detections == 1
        client.fetch_statistics.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeated_analyses_accumulate(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies N local analyses give N detections."""
        workflow = _workflow(mock_fs, fast_sleep)
        for _ in range(5):
            await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")
        agg = workflow.store.aggregate
        assert agg.total_detections == 5
        assert sum(agg.distribution) == 5


class TestRemoteAnalysis:
    """Tests for analyses resolved by the backend."""

    @pytest.mark.asyncio
    async def test_remote_result_shows_server_statistics(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies a REMOTE result displays the server aggregate.

        Arrangement:
        Backend returns a result and server statistics.

        Action:
        Analyze one image.

        Assertion Strategy:
        Display is sourced from the server; the local aggregate stays
        empty because the server already counted this detection.
        """
        stats = {"healthy_count": 8, "infected_count": 2, "avg_confidence": 91}
        rows = [{"confidence_range": "95%+", "count": 10}]
        client = _online_client(statistics=(stats, rows))
        workflow = _workflow(mock_fs, fast_sleep, client=client)

        report = await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")

        assert report.result.is_remote
        assert report.result.outcome == REMOTE_OUTCOME
        assert report.display.source == "server"
        assert report.display.healthy_count == 8
        assert report.chart.counts == [0, 0, 0, 0, 10]
        assert workflow.store.aggregate == StatisticsAggregate.empty()
        assert mock_fs.get_file(STATS_FILE) is None

    @pytest.mark.asyncio
    async def test_statistics_fetch_failure_shows_local(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies the local view is shown if server stats fail."""
        client = _online_client(statistics=RemoteUnavailable("stats down"))
        workflow = _workflow(mock_fs, fast_sleep, client=client)

        report = await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")

        assert report.result.is_remote
        assert report.display.source == "local"
        assert report.display.healthy_count == 0


class TestRejectedInput:
    """Tests for validation in front of analysis."""

    @pytest.mark.asyncio
    async def test_rejected_upload_changes_nothing(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies rejected input never reaches the resolver.

        Arrangement:
        Online workflow with a mock client.

        Action:
        Upload a text file.

        Assertion Strategy:
        InputRejected raised; client never called; no progress sleeps;
        statistics unchanged.
        """
        client = _online_client()
        workflow = _workflow(mock_fs, fast_sleep, client=client)

        with pytest.raises(InputRejected):
            await workflow.analyze_upload("notes.txt", "text/plain", b"hello")

        client.analyze.assert_not_awaited()
        assert fast_sleep.calls == []
        assert workflow.store.aggregate == StatisticsAggregate.empty()
        assert workflow.last_result is None


class TestSamplesAndClear:
    """Tests for sample previews and clearing."""

    def test_preview_sample(self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder) -> None:
        """Verifies samples use fixed confidences and are not counted."""
        workflow = _workflow(mock_fs, fast_sleep)
        healthy = workflow.preview_sample("healthy")
        mild = workflow.preview_sample(DetectionCategory.MILD)
        severe = workflow.preview_sample("severe")
        assert healthy.confidence_percent == 96
        assert mild.confidence_percent == 84
        assert severe.confidence_percent == 92
        assert severe.symptoms == SYMPTOMS[DetectionCategory.SEVERE]
        assert workflow.store.aggregate.total_detections == 0

    def test_unknown_sample(self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder) -> None:
        """Verifies an unknown sample category raises ValueError."""
        with pytest.raises(ValueError):
            _workflow(mock_fs, fast_sleep).preview_sample("blight")

    @pytest.mark.asyncio
    async def test_clear(self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder) -> None:
        """Verifies clear() forgets the result but keeps statistics."""
        workflow = _workflow(mock_fs, fast_sleep)
        await workflow.analyze_upload("leaf.jpg", "image/jpeg", b"data")
        workflow.clear()
        assert workflow.last_result is None
        assert workflow.store.aggregate.total_detections == 1

    @pytest.mark.asyncio
    async def test_clear_while_running_is_busy(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies clear() refuses while progress is running."""
        workflow = _workflow(mock_fs, fast_sleep)
        workflow.resolver.progress._running = True
        with pytest.raises(Busy):
            workflow.clear()

    @pytest.mark.asyncio
    async def test_aclose_closes_client(
        self, mock_fs: MockFileSystem, fast_sleep: SleepRecorder
    ) -> None:
        """Verifies aclose() releases the backend client."""
        client = _online_client()
        await _workflow(mock_fs, fast_sleep, client=client).aclose()
        client.aclose.assert_awaited_once()
