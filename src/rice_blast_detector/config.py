"""
Configuration for Rice Blast Detector.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File paths for the persisted statistics aggregate
- Backend: Classification API location and request limits
- Uploads: Accepted image types and size ceiling
- Progress: Step timings for the simulated analysis sequence
- Chart: Confidence bucket labels, colors and bar geometry

ENVIRONMENT VARIABLES:
- RICE_BLAST_API_URL: Backend base URL (default: http://localhost:3001/api)
- RICE_BLAST_OFFLINE: "true" to skip the backend entirely (default: disabled)

USAGE:
    from rice_blast_detector.config import Config
    storage_dir = Config.STORAGE_DIR
    api_url = Config.get_api_base_url()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Rice Blast Detector.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    TIMING MODEL:
    - Each progress step stays active for PROGRESS_STEP_DELAY_MS
    - A final PROGRESS_FINAL_DELAY_MS elapses after the last step completes
    - Minimum perceived analysis latency = 3 * 800 + 500 = 2900ms

    STORAGE STRUCTURE:
        .rice_blast/
        └── statistics.json    # Running detection aggregate
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".rice_blast"
    STATISTICS_FILE: ClassVar[str] = "statistics.json"

    # =========================================================================
    # BACKEND CONFIGURATION
    # =========================================================================
    API_BASE_URL: ClassVar[str] = "http://localhost:3001/api"
    API_TIMEOUT_SECONDS: ClassVar[float] = 30.0
    ANALYZE_PATH: ClassVar[str] = "/analyze"
    STATISTICS_PATH: ClassVar[str] = "/statistics"
    UPLOAD_FIELD: ClassVar[str] = "image"

    # =========================================================================
    # UPLOAD CONSTRAINTS
    # =========================================================================
    MAX_UPLOAD_BYTES: ClassVar[int] = 5 * 1024 * 1024
    ALLOWED_MIME_PREFIX: ClassVar[str] = "image/"

    # =========================================================================
    # PROGRESS SIMULATION
    # =========================================================================
    PROGRESS_STEPS: ClassVar[tuple[str, ...]] = ("step1", "step2", "step3")
    PROGRESS_STEP_DELAY_MS: ClassVar[int] = 800
    PROGRESS_FINAL_DELAY_MS: ClassVar[int] = 500

    # =========================================================================
    # CHART CONFIGURATION
    # =========================================================================
    BUCKET_LABELS: ClassVar[tuple[str, ...]] = ("<65%", "65-74%", "75-84%", "85-94%", "95%+")
    """Labels shared with the backend's confidence_range values."""

    BUCKET_LOWER_BOUNDS: ClassVar[tuple[int, ...]] = (65, 75, 85, 95)
    """Exclusive upper bound of each bucket except the last."""

    BUCKET_COLORS: ClassVar[tuple[str, ...]] = (
        "#e74c3c",
        "#e67e22",
        "#f1c40f",
        "#2ecc71",
        "#27ae60",
    )
    CHART_FALLBACK_COLOR: ClassVar[str] = "#3498db"
    CHART_MAX_HEIGHT: ClassVar[float] = 180.0
    CHART_STAGGER_MS: ClassVar[int] = 100

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _api_url_override: ClassVar[str | None] = None
    _offline_override: ClassVar[bool | None] = None

    @classmethod
    def total_progress_ms(cls) -> int:
        """
        Calculate the minimum perceived latency of one analysis.

        Returns:
            Sum of every step delay plus the final delay. Default: 2900.

        Example:
            >>> Config.total_progress_ms()
            2900
        """
        return len(cls.PROGRESS_STEPS) * cls.PROGRESS_STEP_DELAY_MS + cls.PROGRESS_FINAL_DELAY_MS

    @classmethod
    def get_api_base_url(cls) -> str:
        """
        Get the classification backend base URL.

        Uses a priority system: test overrides first, then the
        RICE_BLAST_API_URL environment variable, then the built-in default.
        Trailing slashes are stripped so paths can be appended directly.

        Business context: The backend usually runs beside the dashboard
        during development but may live elsewhere in a deployment.

        Returns:
            Base URL string without trailing slash.

        Example:
            >>> Config.get_api_base_url()
            'http://localhost:3001/api'
        """
        if cls._api_url_override is not None:
            url = cls._api_url_override
        else:
            url = os.environ.get("RICE_BLAST_API_URL", cls.API_BASE_URL)
        return url.rstrip("/")

    @classmethod
    def is_offline(cls) -> bool:
        """
        Check whether the backend should be skipped entirely.

        Offline mode makes every analysis resolve through the local
        mock generator without attempting a network call.

        Returns:
            True if offline mode is enabled, False otherwise.

        Example:
            >>> # With env var: RICE_BLAST_OFFLINE=true
            >>> Config.is_offline()
            True
        """
        if cls._offline_override is not None:
            return cls._offline_override
        return os.environ.get("RICE_BLAST_OFFLINE", "").lower() == "true"

    @classmethod
    def set_test_overrides(
        cls,
        api_url: str | None = None,
        offline: bool | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in test teardown to avoid
        affecting other tests.

        Args:
            api_url: Override for the backend base URL. None to clear.
            offline: Override for the offline flag. None to clear.

        Example:
            >>> Config.set_test_overrides(offline=True)
            >>> Config.is_offline()
            True
            >>> Config.reset_test_overrides()
        """
        cls._api_url_override = api_url
        cls._offline_override = offline

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides to use environment variables."""
        cls._api_url_override = None
        cls._offline_override = None
