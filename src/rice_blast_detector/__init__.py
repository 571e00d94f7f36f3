"""
Rice Blast Detector.

PURPOSE: Classify rice leaf images for blast infection and keep running statistics.
AI CONTEXT: Orchestrates a remote classifier with a local mock fallback.

PACKAGE STRUCTURE:
- workflow.py: AnalysisWorkflow - the entry point tying everything together
- resolver.py: Single-flight remote/local result resolution
- progress.py: Three-step progress state machine
- fallback.py: Mock outcome generator used when the backend is down
- client.py: httpx client for the classification backend
- statistics.py: Confidence buckets and the persisted aggregate
- storage.py: JSON file persistence
- presenters.py: Chart and statistics view models
- web/: FastAPI dashboard
- config.py: Configuration constants

QUICK START:
    # Launch dashboard
    python -m rice_blast_detector dashboard

    # Analyze a single image from the shell
    python -m rice_blast_detector analyze leaf.jpg
"""

from rice_blast_detector.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
