"""
FastAPI routes for Rice Blast Detector dashboard.

PURPOSE: Thin route handlers that delegate to the workflow and presenters.
AI CONTEXT: Routes should be simple - business logic lives in workflow.py.

ROUTE STRUCTURE:
- / : Main dashboard page (full HTML)
- /partials/* : htmx partial updates
- /charts/* : PNG chart images
- /api/* : JSON endpoints for programmatic access

ERROR MAPPING:
- InputRejected -> 400 with the rejection reason
- Busy -> 409
- AnalysisFailed -> 500 with a generic retry prompt
"""

from __future__ import annotations

import html
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response

from ..config import Config
from ..errors import AnalysisFailed, Busy, InputRejected
from ..models import DetectionOutcome
from ..presenters import ChartViewModel, StatisticsViewModel
from ..workflow import AnalysisReport, AnalysisWorkflow

__all__ = ["router", "get_workflow"]

router = APIRouter()

_DASHBOARD_CSS = """
:root {
    --primary-color: #2d5a27;
    --success-color: #27ae60;
    --warning-color: #e67e22;
    --danger-color: #e74c3c;
    --gray-color: #7f8c8d;
    --bg: #f4f7f3;
    --surface: #ffffff;
    --border: #dfe6dd;
    --text: #1f2d1c;
    --text-muted: #6b7a68;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.6;
    padding: 1rem;
}
.container { max-width: 1100px; margin: 0 auto; }
header {
    margin-bottom: 1.5rem;
    padding-bottom: 1rem;
    border-bottom: 1px solid var(--border);
}
h1 { font-size: 1.5rem; font-weight: 600; color: var(--primary-color); }
.grid {
    display: grid;
    grid-template-columns: repeat(auto-fit, minmax(320px, 1fr));
    gap: 1rem;
    margin-bottom: 1.5rem;
}
.panel {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.5rem;
    padding: 1rem;
}
.panel h2 {
    font-size: 1rem;
    font-weight: 500;
    color: var(--text-muted);
    margin-bottom: 0.75rem;
}
.stats { display: flex; gap: 1rem; }
.stat { flex: 1; text-align: center; }
.metric { font-size: 2rem; font-weight: 700; }
.metric-label { font-size: 0.875rem; color: var(--text-muted); }
.symptom-tag {
    display: inline-block;
    margin: 0.25rem;
    padding: 0.25rem 0.6rem;
    border-radius: 9999px;
    background: var(--bg);
    font-size: 0.8rem;
}
.error { color: var(--danger-color); }
.chart {
    display: flex;
    align-items: flex-end;
    height: 220px;
    padding-top: 1rem;
}
.chart-column {
    flex: 1;
    margin: 0 10px;
    display: flex;
    flex-direction: column;
    align-items: center;
    justify-content: flex-end;
}
.chart-bar {
    width: 100%;
    border-radius: 0.25rem 0.25rem 0 0;
    transition: height 0.5s ease-in-out;
}
.chart-bar-value { font-size: 0.8rem; text-align: center; }
.chart-bar-label { font-size: 0.75rem; color: var(--text-muted); margin-top: 0.25rem; }
footer {
    margin-top: 2rem;
    color: var(--text-muted);
    font-size: 0.875rem;
    text-align: center;
}
"""

_RETRY_MESSAGE = AnalysisFailed.USER_MESSAGE


def get_workflow(request: Request) -> AnalysisWorkflow:
    """
    Return the application's shared AnalysisWorkflow.

    Args:
        request: Incoming request; the workflow lives on app.state.

    Returns:
        The AnalysisWorkflow created by create_app().
    """
    workflow: AnalysisWorkflow = request.app.state.workflow
    return workflow


WorkflowDep = Annotated[AnalysisWorkflow, Depends(get_workflow)]


async def _run_analysis(workflow: AnalysisWorkflow, image: UploadFile) -> AnalysisReport:
    """
    Read an upload and analyze it, mapping errors to HTTP statuses.

    Raises:
        HTTPException: 400 for rejected input, 409 when busy, 500 on
            analysis failure.
    """
    # One byte past the limit is enough for validation to reject it.
    data = await image.read(Config.MAX_UPLOAD_BYTES + 1)
    try:
        return await workflow.analyze_upload(image.filename, image.content_type, data)
    except InputRejected as e:
        raise HTTPException(status_code=400, detail=e.reason) from e
    except Busy as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except AnalysisFailed as e:
        raise HTTPException(status_code=500, detail=_RETRY_MESSAGE) from e


# ============================================================================
# Full Page Routes
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(workflow: WorkflowDep) -> HTMLResponse:
    """
    Render the main dashboard page.

    Shows the upload form, an empty results panel, and the current
    statistics with their confidence histogram.

    Returns:
        HTMLResponse containing the complete dashboard page.
    """
    html_doc = _render_dashboard_html(workflow)
    return HTMLResponse(content=html_doc, media_type="text/html; charset=utf-8")


# ============================================================================
# Partial Routes (htmx)
# ============================================================================


@router.get("/partials/statistics", response_class=HTMLResponse)
async def statistics_partial(workflow: WorkflowDep) -> HTMLResponse:
    """Render the statistics panel HTML fragment."""
    html_doc = _render_statistics_panel(
        StatisticsViewModel.from_display(workflow.current_display()),
        workflow.current_chart(),
    )
    return HTMLResponse(content=html_doc, media_type="text/html; charset=utf-8")


@router.post("/partials/analyze", response_class=HTMLResponse)
async def analyze_partial(
    workflow: WorkflowDep,
    image: Annotated[UploadFile, File()],
) -> HTMLResponse:
    """
    Analyze an upload from the dashboard form.

    Returns the result panel plus an out-of-band statistics panel so
    htmx refreshes both in one swap. Errors are rendered inline rather
    than as HTTP errors so the form can show them.
    """
    try:
        report = await _run_analysis(workflow, image)
    except HTTPException as e:
        message = html.escape(str(e.detail))
        return HTMLResponse(
            content=f'<h2>Analysis Results</h2><p class="error">{message}</p>',
            media_type="text/html; charset=utf-8",
        )

    stats_html = _render_statistics_panel(
        StatisticsViewModel.from_display(report.display),
        report.chart,
    )
    content = (
        _render_result_panel(report.result.outcome, report.result.resolved_via.value)
        + f'<div class="panel" id="statistics-panel" hx-swap-oob="true">{stats_html}</div>'
    )
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.get("/partials/samples/{category}", response_class=HTMLResponse)
async def sample_partial(workflow: WorkflowDep, category: str) -> HTMLResponse:
    """Render the canned result for a sample image."""
    try:
        outcome = workflow.preview_sample(category)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=f"Unknown sample: {category}") from e
    return HTMLResponse(
        content=_render_result_panel(outcome, "sample"),
        media_type="text/html; charset=utf-8",
    )


# ============================================================================
# Chart Routes (PNG images)
# ============================================================================


@router.get("/charts/distribution.png")
async def distribution_chart(workflow: WorkflowDep) -> Response:
    """
    Serve the confidence distribution chart as a PNG image.

    Falls back to an SVG placeholder if matplotlib is not installed.
    """
    try:
        png_bytes = workflow.renderer.render_png(workflow.current_display().distribution)
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        return Response(
            content=_placeholder_chart_svg("Confidence Distribution"),
            media_type="image/svg+xml",
        )


# ============================================================================
# API Routes (JSON)
# ============================================================================


@router.post("/api/analyze")
async def api_analyze(
    workflow: WorkflowDep,
    image: Annotated[UploadFile, File()],
) -> dict[str, object]:
    """
    Analyze an uploaded leaf image.

    Returns:
        Dict with result, resolvedVia, statistics and chart.

    Raises:
        HTTPException: 400 for rejected input, 409 when busy, 500 on
            analysis failure.
    """
    report = await _run_analysis(workflow, image)
    return {"success": True, **report.to_dict()}


@router.get("/api/statistics")
async def api_statistics(workflow: WorkflowDep) -> dict[str, object]:
    """
    Get the statistics currently displayed.

    Returns:
        Dict in the backend's /statistics shape plus a source field.
    """
    return workflow.current_display().to_dict()


@router.get("/api/samples/{category}")
async def api_sample(workflow: WorkflowDep, category: str) -> dict[str, object]:
    """
    Get the canned result for a sample image.

    Raises:
        HTTPException: 404 for an unknown category.
    """
    try:
        outcome = workflow.preview_sample(category)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=f"Unknown sample: {category}") from e
    return {"result": outcome.to_dict()}


@router.post("/api/clear")
async def api_clear(workflow: WorkflowDep) -> dict[str, bool]:
    """
    Clear the last result and reset the progress indicator.

    Raises:
        HTTPException: 409 if an analysis is in flight.
    """
    try:
        workflow.clear()
    except Busy as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"cleared": True}


# ============================================================================
# Template Rendering Helpers
# ============================================================================


def _placeholder_chart_svg(title: str) -> bytes:
    """
    Generate a placeholder SVG when matplotlib is unavailable.

    Args:
        title: Chart title to display in the placeholder.

    Returns:
        UTF-8 encoded bytes of an SVG image.
    """
    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="200">
        <rect width="100%" height="100%" fill="#f4f7f3"/>
        <text x="50%" y="50%" text-anchor="middle" fill="#6b7a68" font-size="16">
            {title} Chart (install matplotlib)
        </text>
    </svg>"""
    return svg.encode("utf-8")


def _render_chart(chart: ChartViewModel) -> str:
    """
    Render histogram bars as HTML.

    Each bar gets its final height and a transition-delay equal to its
    stagger, so bars animate in one after another.
    """
    columns = ""
    for bar in chart.bars:
        columns += f"""<div class="chart-column">
            <div class="chart-bar-value">{bar.count}</div>
            <div class="chart-bar"
                 style="height: {bar.height_css}; background-color: {bar.color};
                        transition-delay: {bar.delay_ms}ms;"></div>
            <div class="chart-bar-label">{html.escape(bar.label)}</div>
        </div>"""
    return f'<div class="chart" id="chart">{columns}</div>'


def _render_statistics_panel(stats: StatisticsViewModel, chart: ChartViewModel) -> str:
    """Render the statistics cards and histogram."""
    return f"""<h2>Detection Statistics ({stats.source})</h2>
        <div class="stats">
            <div class="stat">
                <div class="metric" id="healthyCount">{stats.healthy_count}</div>
                <div class="metric-label">Healthy</div>
            </div>
            <div class="stat">
                <div class="metric" id="infectedCount">{stats.infected_count}</div>
                <div class="metric-label">Infected</div>
            </div>
            <div class="stat">
                <div class="metric" id="avgConfidence">{stats.average_display}</div>
                <div class="metric-label">Avg. Confidence</div>
            </div>
        </div>
        {_render_chart(chart)}"""


def _render_result_panel(outcome: DetectionOutcome, source: str) -> str:
    """Render one detection result with its symptom tags."""
    tags = "".join(
        f'<div class="symptom-tag">{html.escape(symptom)}</div>' for symptom in outcome.symptoms
    )
    image = ""
    if outcome.image_url:
        image = f'<img src="{html.escape(outcome.image_url)}" alt="Analyzed leaf">'
    return f"""<h2>Analysis Results</h2>
        <div class="metric" style="color: {outcome.display_color};">
            {html.escape(outcome.display_name)}
        </div>
        <div class="metric-label">Confidence: {outcome.confidence_display} ({source})</div>
        <div style="margin-top: 1rem;">{tags}</div>
        {image}"""


def _render_dashboard_html(workflow: AnalysisWorkflow) -> str:
    """
    Render the complete dashboard HTML page.

    Args:
        workflow: Workflow providing the current statistics.

    Returns:
        Complete HTML document string.
    """
    stats_html = _render_statistics_panel(
        StatisticsViewModel.from_display(workflow.current_display()),
        workflow.current_chart(),
    )
    samples = "".join(
        f"""<button hx-get="/partials/samples/{name}" hx-target="#results-panel">
            {name.title()} sample</button> """
        for name in ("healthy", "mild", "severe")
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Rice Blast Detector</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>Rice Blast Detector</h1>
        </header>

        <div class="grid">
            <div class="panel" id="upload-panel">
                <h2>Upload Leaf Image</h2>
                <form hx-post="/partials/analyze"
                      hx-encoding="multipart/form-data"
                      hx-target="#results-panel"
                      hx-indicator="#analysis-progress">
                    <input type="file" name="image" accept="image/*" required>
                    <button type="submit">Analyze</button>
                </form>
                <div id="analysis-progress" class="htmx-indicator metric-label">
                    Analyzing leaf...
                </div>
                <div style="margin-top: 1rem;">{samples}</div>
            </div>

            <div class="panel" id="results-panel">
                <h2>Analysis Results</h2>
                <p class="metric-label">No image analyzed yet</p>
            </div>
        </div>

        <div class="panel" id="statistics-panel">
            {stats_html}
        </div>

        <footer>
            Rice Blast Detector &bull; Powered by FastAPI + htmx
        </footer>
    </div>
</body>
</html>"""
