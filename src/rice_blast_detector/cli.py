"""
CLI entry point for Rice Blast Detector.

PURPOSE: Command-line interface for the dashboard and terminal analysis.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Launch dashboard (default)
    python -m rice_blast_detector

    # Or via CLI command (after install)
    rice-blast-detector

    # Run with subcommands
    rice-blast-detector dashboard          # Launch web dashboard
    rice-blast-detector analyze leaf.jpg   # Analyze one image
    rice-blast-detector report             # Print statistics report
    rice-blast-detector reset              # Clear local statistics
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import RiceBlastError
from .presenters import render_text_report

if TYPE_CHECKING:
    from .statistics import StatisticsStore
    from .workflow import AnalysisWorkflow

# Constants
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def run_dashboard(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """
    Launch the web dashboard.

    Starts a FastAPI server hosting the upload form, result panel and
    statistics histogram.

    Args:
        host: Network interface to bind to. Default '127.0.0.1' for
            local-only access.
        port: TCP port for the HTTP server. Default 8000.

    Returns:
        None. Blocks until server shutdown (Ctrl+C).

    Raises:
        OSError: If port is already in use.

    Example:
        >>> # From command line:
        >>> # rice-blast-detector dashboard --port 3000
        >>> run_dashboard(port=3000)
        🚀 Starting dashboard at http://127.0.0.1:3000
    """
    from .web import run_dashboard as start_web

    _log(f"Starting dashboard at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port)


async def _analyze_file(workflow: AnalysisWorkflow, path: Path) -> str:
    """Analyze one file and format the result for the terminal."""
    content_type, _ = mimetypes.guess_type(path.name)
    try:
        report = await workflow.analyze_upload(path.name, content_type, path.read_bytes())
    finally:
        await workflow.aclose()

    outcome = report.result.outcome
    lines = [
        f"Result:     {outcome.display_name}",
        f"Confidence: {outcome.confidence_display}",
        f"Source:     {report.result.resolved_via.value}",
        "Symptoms:",
    ]
    lines.extend(f"  - {symptom}" for symptom in outcome.symptoms)
    lines.extend(["", render_text_report(report.display)])
    return "\n".join(lines)


def run_analyze(
    path: str,
    offline: bool | None = None,
    workflow: AnalysisWorkflow | None = None,
) -> int:
    """
    Analyze a leaf image from disk and print the result.

    Runs the same flow as the dashboard: progress steps, backend
    attempt, local fallback and statistics update.

    Args:
        path: Image file to analyze.
        offline: Skip the backend and always use a local result.
            Default: Config.is_offline() (RICE_BLAST_OFFLINE).
        workflow: Optional AnalysisWorkflow for testability.

    Returns:
        0 on success, 1 if the file is missing or rejected.
    """
    from .workflow import AnalysisWorkflow as Workflow

    image_path = Path(path)
    if not image_path.is_file():
        _log(f"File not found: {path}", emoji="❌")
        return 1

    workflow = workflow or Workflow.create(offline=offline)
    _log(f"Analyzing {image_path.name}...", emoji="🔬")
    try:
        output = asyncio.run(_analyze_file(workflow, image_path))
    except RiceBlastError as e:
        _log(str(e), emoji="❌")
        return 1

    # Note: Using print() intentionally for stdout piping support
    print(output)
    return 0


def run_report(store: StatisticsStore | None = None) -> None:
    """
    Print the local statistics report to stdout.

    Args:
        store: Optional StatisticsStore for testability. Defaults to a
            store over the default storage directory.

    Example:
        >>> # From command line:
        >>> # rice-blast-detector report > stats.txt
        >>> run_report()
        ==================================================
        RICE BLAST DETECTOR - STATISTICS
        ...
    """
    from .statistics import StatisticsStore as Store
    from .storage import StorageManager

    if store is None:
        store = Store(StorageManager())
        store.load()

    # Note: Using print() intentionally for stdout piping support
    print(render_text_report(store.local_display()))


def run_reset(store: StatisticsStore | None = None) -> None:
    """
    Clear the persisted local statistics.

    Args:
        store: Optional StatisticsStore for testability.
    """
    from .statistics import StatisticsStore as Store
    from .storage import StorageManager

    store = store or Store(StorageManager())
    store.reset()
    _log("Local statistics cleared", emoji="🧹")


def main() -> int:
    """
    Main CLI entry point for Rice Blast Detector.

    Parses command-line arguments and dispatches to the appropriate
    subcommand handler. If no subcommand is specified, defaults to
    launching the dashboard.

    Subcommands:
    - dashboard [--host HOST] [--port PORT]: Launch web dashboard
    - analyze PATH [--offline]: Analyze one image file
    - report: Print local statistics
    - reset: Clear local statistics

    Returns:
        Exit code; 0 for success, 1 if analysis could not run.

    Raises:
        SystemExit: On --help or argument parsing errors.
    """
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog="rice-blast-detector",
        description="Rice Blast Detector - Leaf image analysis and detection statistics",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Dashboard command
    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Launch web dashboard",
    )
    dashboard_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    dashboard_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a leaf image",
    )
    analyze_parser.add_argument("path", help="Image file (JPG, PNG, WEBP)")
    analyze_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the backend and use a local result",
    )

    # Report command
    subparsers.add_parser(
        "report",
        help="Print local statistics to stdout",
    )

    # Reset command
    subparsers.add_parser(
        "reset",
        help="Clear local statistics",
    )

    args = parser.parse_args()

    if args.command == "analyze":
        return run_analyze(args.path, offline=True if args.offline else None)
    if args.command == "report":
        run_report()
    elif args.command == "reset":
        run_reset()
    elif args.command == "dashboard":
        run_dashboard(host=args.host, port=args.port)
    else:
        run_dashboard()

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
