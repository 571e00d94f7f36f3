"""
Backend client for Rice Blast Detector.

PURPOSE: Talk to the classification backend over HTTP.
AI CONTEXT: Every failure surfaces as RemoteUnavailable - callers decide
what to do about it.

ENDPOINTS CONSUMED:
- POST {base}/analyze     multipart field "image"
    -> {"success"?: bool, "result": {detectionType, confidence, symptoms, imageUrl?}}
- GET  {base}/statistics
    -> {"stats": {healthy_count, infected_count, avg_confidence},
        "distribution": [{confidence_range, count}, ...]}

USAGE:
    async with DetectionApiClient() as client:
        outcome = await client.analyze(payload)
        stats, distribution = await client.fetch_statistics()
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

from .config import Config
from .errors import RemoteUnavailable
from .models import DetectionOutcome, ImagePayload

__all__ = ["DetectionApiClient"]

logger = logging.getLogger(__name__)


class DetectionApiClient:
    """
    Async httpx client for the classification backend.

    The underlying httpx.AsyncClient can be injected; tests pass one
    built on httpx.MockTransport.
    """

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Backend base URL. Default: Config.get_api_base_url()
            http_client: Pre-built httpx.AsyncClient. When omitted, one is
                created and owned (closed by aclose()).
            timeout: Request timeout in seconds.
                Default: Config.API_TIMEOUT_SECONDS
        """
        self.base_url = (base_url or Config.get_api_base_url()).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else Config.API_TIMEOUT_SECONDS
        )

    @property
    def origin(self) -> str:
        """scheme://host[:port] of the backend."""
        url = httpx.URL(self.base_url)
        port = f":{url.port}" if url.port else ""
        return f"{url.scheme}://{url.host}{port}"

    async def __aenter__(self) -> DetectionApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request and decode its JSON body.

        Raises:
            RemoteUnavailable: On transport errors, non-2xx status or an
                undecodable body.
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"{method} {url} failed: {e}") from e

        if not response.is_success:
            raise RemoteUnavailable(f"{method} {url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{method} {url} returned invalid JSON") from e

    async def analyze(self, image: ImagePayload) -> DetectionOutcome:
        """
        Submit an image for classification.

        Args:
            image: Validated upload.

        Returns:
            Parsed DetectionOutcome. Relative imageUrl values are made
            absolute against the backend origin.

        Raises:
            RemoteUnavailable: On any transport, status or payload problem,
                including an explicit "success": false.
        """
        files = {Config.UPLOAD_FIELD: (image.filename, image.data, image.content_type)}
        body = await self._request_json("POST", Config.ANALYZE_PATH, files=files)

        if not isinstance(body, dict):
            raise RemoteUnavailable("Analyze response is not an object")
        if body.get("success") is False:
            raise RemoteUnavailable(f"Backend reported failure: {body.get('error', 'unknown')}")

        try:
            outcome = DetectionOutcome.from_api(body.get("result"), origin=self.origin)
        except (TypeError, ValueError) as e:
            raise RemoteUnavailable(f"Malformed analyze result: {e}") from e

        logger.info(
            f"Backend classified {image.filename}: "
            f"{outcome.category.value} ({outcome.confidence_percent}%)"
        )
        return outcome

    async def fetch_statistics(self) -> tuple[dict[str, Any], list[Any]]:
        """
        Fetch the server-side aggregate.

        Returns:
            Tuple of (stats dict, distribution rows). Missing sections
            come back as {} and [].

        Raises:
            RemoteUnavailable: On any transport, status or payload problem.
        """
        body = await self._request_json("GET", Config.STATISTICS_PATH)
        if not isinstance(body, dict):
            raise RemoteUnavailable("Statistics response is not an object")

        stats = body.get("stats")
        distribution = body.get("distribution")
        return (
            stats if isinstance(stats, dict) else {},
            distribution if isinstance(distribution, list) else [],
        )
