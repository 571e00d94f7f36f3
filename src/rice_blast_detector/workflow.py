"""
Analysis workflow for Rice Blast Detector.

PURPOSE: The user-facing entry point - one object per session.
AI CONTEXT: Wires validation, resolution, statistics and chart rendering.

CONTROL FLOW (analyze_upload):
1. Validate the upload (InputRejected before anything else happens)
2. ResultResolver runs progress + remote attempt, falls back locally
3. LOCAL result  -> record into the local aggregate, display it
   REMOTE result -> leave local aggregate alone, fetch server aggregate
                    and display that (local display if the fetch fails)
4. Render the chart from whichever distribution is displayed

USAGE:
    workflow = AnalysisWorkflow.create()
    report = await workflow.analyze_upload("leaf.jpg", "image/jpeg", data)
    print(report.result.outcome.display_name, report.chart.heights)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .client import DetectionApiClient
from .config import Config
from .errors import RemoteUnavailable
from .models import (
    DISEASE_INFO,
    SYMPTOMS,
    AnalysisResult,
    DetectionCategory,
    DetectionOutcome,
    DisplayAggregate,
)
from .presenters import ChartRenderer, ChartViewModel
from .resolver import ResultResolver
from .statistics import StatisticsStore
from .storage import StorageManager
from .validation import validate_upload

if TYPE_CHECKING:
    from .filesystem import FileSystem

__all__ = ["AnalysisReport", "AnalysisWorkflow"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Everything the UI needs after one analysis."""

    result: AnalysisResult
    display: DisplayAggregate
    chart: ChartViewModel

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize for JSON responses.

        Returns:
            Dict with result (backend wire shape), resolvedVia, the
            displayed statistics and the chart bars.
        """
        return {
            "result": self.result.outcome.to_dict(),
            "resolvedVia": self.result.resolved_via.value,
            "statistics": self.display.to_dict(),
            "chart": [
                {
                    "label": bar.label,
                    "count": bar.count,
                    "height": bar.height,
                    "color": bar.color,
                    "delayMs": bar.delay_ms,
                }
                for bar in self.chart.bars
            ],
        }


class AnalysisWorkflow:
    """
    Session-level orchestrator.

    DESIGN:
    - Owns the StatisticsStore (explicit state object, no globals)
    - Single-flight is enforced by the ResultResolver
    - Remote results never touch the local aggregate
    """

    def __init__(
        self,
        store: StatisticsStore,
        resolver: ResultResolver,
        renderer: ChartRenderer | None = None,
    ) -> None:
        """
        Initialize with collaborators and restore persisted statistics.

        Args:
            store: Statistics store. load() is called here.
            resolver: Result resolver; its client (if any) is also used
                for server statistics refresh.
            renderer: Chart renderer. Default: ChartRenderer()
        """
        self.store = store
        self.resolver = resolver
        self.renderer = renderer or ChartRenderer()
        self.last_result: AnalysisResult | None = None
        self.store.load()
        self._display = self.store.local_display()

    @classmethod
    def create(
        cls,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
        offline: bool | None = None,
        client: DetectionApiClient | None = None,
    ) -> AnalysisWorkflow:
        """
        Build a workflow with default collaborators.

        Args:
            storage_dir: Statistics directory. Default: Config.STORAGE_DIR
            filesystem: FileSystem for storage. Default: RealFileSystem
            offline: Skip the backend. Default: Config.is_offline()
            client: Backend client to use when online. Default: a new
                DetectionApiClient for Config.get_api_base_url()

        Returns:
            Ready-to-use AnalysisWorkflow.
        """
        is_offline = Config.is_offline() if offline is None else offline
        api_client = None if is_offline else (client or DetectionApiClient())
        store = StatisticsStore(StorageManager(storage_dir=storage_dir, filesystem=filesystem))
        return cls(store=store, resolver=ResultResolver(client=api_client))

    @property
    def client(self) -> DetectionApiClient | None:
        """Backend client shared with the resolver."""
        return self.resolver.client

    @property
    def is_busy(self) -> bool:
        """True while an analysis is in flight."""
        return self.resolver.is_busy

    def current_display(self) -> DisplayAggregate:
        """Statistics currently shown to the user."""
        return self._display

    def current_chart(self) -> ChartViewModel:
        """Chart for the currently displayed distribution."""
        return self.renderer.render(self._display.distribution)

    async def analyze_upload(
        self,
        filename: str | None,
        content_type: str | None,
        data: bytes,
    ) -> AnalysisReport:
        """
        Validate and analyze an uploaded image.

        Args:
            filename: Original filename.
            content_type: MIME type.
            data: Raw bytes.

        Returns:
            AnalysisReport with result, displayed statistics and chart.

        Raises:
            InputRejected: If the upload is not an image or is too large.
                Statistics are unchanged.
            Busy: If an analysis is already in flight.
            AnalysisFailed: On unexpected failure.
        """
        payload = validate_upload(filename, content_type, data)
        result = await self.resolver.analyze(payload)
        self.last_result = result

        if result.is_local:
            self.store.record_local_detection(result.outcome)
            display = self.store.local_display()
        else:
            display = await self.refresh_server_statistics()

        self._display = display
        logger.info(
            f"Analyzed {payload.filename} via {result.resolved_via.value}: "
            f"{result.outcome.category.value} ({result.outcome.confidence_percent}%)"
        )
        return AnalysisReport(
            result=result,
            display=display,
            chart=self.renderer.render(display.distribution),
        )

    async def refresh_server_statistics(self) -> DisplayAggregate:
        """
        Fetch the server aggregate for display.

        Returns:
            Merged server view, or the local view if there is no client
            or the fetch fails.
        """
        if self.client is None:
            return self.store.local_display()
        try:
            stats, distribution = await self.client.fetch_statistics()
        except RemoteUnavailable as e:
            logger.error(f"Error loading server statistics: {e}")
            return self.store.local_display()
        return self.store.merge_server_aggregate(stats, distribution)

    def preview_sample(self, category: DetectionCategory | str) -> DetectionOutcome:
        """
        Show the canned result for a bundled sample image.

        Samples are not analyzed and never counted in statistics.

        Args:
            category: Sample category (enum or its string value).

        Returns:
            DetectionOutcome with the category's sample confidence and
            static symptoms.

        Raises:
            ValueError: If category is unknown.
        """
        cat = DetectionCategory(category)
        return DetectionOutcome(
            category=cat,
            confidence_percent=DISEASE_INFO[cat].sample_confidence,
            symptoms=SYMPTOMS[cat],
        )

    def clear(self) -> None:
        """
        Forget the last result and reset the progress indicator.

        Raises:
            Busy: If an analysis is in flight.
        """
        self.resolver.progress.reset()
        self.last_result = None

    async def aclose(self) -> None:
        """Release the backend client."""
        if self.client is not None:
            await self.client.aclose()
