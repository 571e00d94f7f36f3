"""
Web dashboard module for Rice Blast Detector.

PURPOSE: FastAPI-based web UI with htmx for dynamic updates.

FEATURES:
- Upload form with analysis results and symptom tags
- Statistics cards and confidence histogram
- Server-side chart rendering (matplotlib)
- JSON API mirroring the classification backend's contract

USAGE:
    # Via CLI
    rice-blast-detector dashboard

    # Programmatically
    from rice_blast_detector.web import create_app
    app = create_app()
"""

from .app import create_app, run_dashboard

__all__ = ["create_app", "run_dashboard"]
