"""
Result resolution for Rice Blast Detector.

PURPOSE: Turn an image into a DetectionOutcome, remotely if possible.
AI CONTEXT: Remote unavailability is expected and silently absorbed.

ALGORITHM:
1. Reject if an analysis is already in flight (Busy)
2. Run the progress simulation and the remote call concurrently
3. Remote success -> AnalysisResult tagged REMOTE
4. Remote failure (any kind) -> mock outcome tagged LOCAL
5. Only a failure inside the mock synthesis escapes, as AnalysisFailed

Both concurrent tasks are joined before returning, so every analysis
takes at least the progress duration (2900ms by default).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .errors import AnalysisFailed, Busy, RemoteUnavailable
from .fallback import MockOutcomeGenerator
from .models import AnalysisResult, DetectionOutcome
from .progress import ProgressSimulator

if TYPE_CHECKING:
    from .client import DetectionApiClient
    from .models import ImagePayload

__all__ = ["ResultResolver"]

logger = logging.getLogger(__name__)


class ResultResolver:
    """
    Single-flight remote/local result resolver.

    DESIGN:
    - At most one analyze() in flight; extra calls get Busy, not a queue
    - A resolver without a client is permanently offline and always
      resolves locally (the progress sequence still plays)
    - No cancellation: an abandoned analysis simply finishes unobserved
    """

    def __init__(
        self,
        client: DetectionApiClient | None = None,
        progress: ProgressSimulator | None = None,
        generator: MockOutcomeGenerator | None = None,
    ) -> None:
        """
        Initialize with collaborators.

        Args:
            client: Backend client. None for offline mode.
            progress: Progress simulator. Default: a fresh ProgressSimulator.
            generator: Mock outcome generator. Default: unseeded generator.
        """
        self.client = client
        self.progress = progress or ProgressSimulator()
        self.generator = generator or MockOutcomeGenerator()
        self._in_flight = False

    @property
    def is_busy(self) -> bool:
        """True while an analysis is in flight."""
        return self._in_flight

    async def analyze(self, image: ImagePayload) -> AnalysisResult:
        """
        Classify an image, falling back to a mock result if needed.

        Args:
            image: Validated upload.

        Returns:
            AnalysisResult tagged REMOTE or LOCAL. The outcome is always
            well-formed.

        Raises:
            Busy: If another analysis is in flight.
            AnalysisFailed: If the local fallback itself fails.
        """
        if self._in_flight:
            raise Busy()
        self._in_flight = True
        try:
            _, remote = await asyncio.gather(
                self.progress.run(),
                self._attempt_remote(image),
            )
            if remote is not None:
                return AnalysisResult.remote(remote)
            return AnalysisResult.local(self._synthesize())
        finally:
            self._in_flight = False

    async def _attempt_remote(self, image: ImagePayload) -> DetectionOutcome | None:
        """
        Try the backend once.

        Returns:
            The remote outcome, or None if the backend is unavailable or
            no client is configured.
        """
        if self.client is None:
            return None
        try:
            return await self.client.analyze(image)
        except RemoteUnavailable as e:
            logger.warning(f"API not available, using mock result: {e}")
            return None
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Unexpected backend error, using mock result: {e}")
            return None

    def _synthesize(self) -> DetectionOutcome:
        """
        Produce the local fallback outcome.

        Raises:
            AnalysisFailed: If generation raises for any reason.
        """
        try:
            return self.generator.generate()
        except Exception as e:
            logger.error(f"Analysis error: {e}")
            raise AnalysisFailed() from e
