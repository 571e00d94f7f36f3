"""
Presenters for Rice Blast Detector dashboards.

PURPOSE: Testable view-model layer between statistics and UI.
AI CONTEXT: Pure data transformation, plus optional matplotlib rendering.

DESIGN PRINCIPLES:
1. Presenters receive data, return view models (dataclasses)
2. Local and server distributions go through the same render() path
3. Final bar heights follow count / max(counts, 1) * 180 exactly
4. matplotlib is lazy-imported so the core works without it

USAGE:
    renderer = ChartRenderer()
    chart = renderer.render(display.distribution)
    for bar in chart.bars:
        print(bar.label, bar.height, bar.delay_ms)
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass, field

from .config import Config
from .models import BUCKET_COUNT, DisplayAggregate

__all__ = [
    "BarViewModel",
    "ChartViewModel",
    "StatisticsViewModel",
    "ChartRenderer",
    "bar_color",
    "render_text_report",
]


def bar_color(index: int) -> str:
    """
    Get the color for a bucket bar.

    Args:
        index: Bucket index.

    Returns:
        Hex color; Config.CHART_FALLBACK_COLOR for unknown indices.
    """
    if 0 <= index < len(Config.BUCKET_COLORS):
        return Config.BUCKET_COLORS[index]
    return Config.CHART_FALLBACK_COLOR


@dataclass(frozen=True)
class BarViewModel:
    """One histogram bar."""

    label: str
    count: int
    height: float
    color: str
    delay_ms: int

    @property
    def height_css(self) -> str:
        """Height as a CSS pixel value."""
        return f"{self.height:g}px"


@dataclass(frozen=True)
class ChartViewModel:
    """Chart-ready histogram."""

    bars: tuple[BarViewModel, ...] = field(default_factory=tuple)
    max_count: int = 1

    @property
    def counts(self) -> list[int]:
        """Bar counts in bucket order."""
        return [bar.count for bar in self.bars]

    @property
    def heights(self) -> list[float]:
        """Final bar heights in bucket order."""
        return [bar.height for bar in self.bars]


@dataclass(frozen=True)
class StatisticsViewModel:
    """Summary cards shown above the chart."""

    healthy_count: int
    infected_count: int
    average_display: str
    source: str

    @classmethod
    def from_display(cls, display: DisplayAggregate) -> StatisticsViewModel:
        """Build from a DisplayAggregate."""
        return cls(
            healthy_count=display.healthy_count,
            infected_count=display.infected_count,
            average_display=display.average_display,
            source=display.source,
        )


class ChartRenderer:
    """
    Renders the 5-bucket confidence histogram.

    HEIGHT FORMULA:
        height[i] = counts[i] / max(max(counts), 1) * max_height

    The floor of 1 keeps an all-zero histogram at zero height instead of
    dividing by zero. Bars animate in with a stagger of
    stagger_ms * index; the stagger is cosmetic and never changes the
    final height.
    """

    def __init__(
        self,
        max_height: float | None = None,
        stagger_ms: int | None = None,
    ) -> None:
        """
        Initialize chart geometry.

        Args:
            max_height: Height of the tallest bar. Default: Config.CHART_MAX_HEIGHT
            stagger_ms: Per-bucket animation delay. Default: Config.CHART_STAGGER_MS
        """
        self.max_height = Config.CHART_MAX_HEIGHT if max_height is None else max_height
        self.stagger_ms = Config.CHART_STAGGER_MS if stagger_ms is None else stagger_ms

    @staticmethod
    def _validate(counts: Sequence[int]) -> list[int]:
        """
        Check counts are exactly 5 non-negative ints.

        Raises:
            ValueError: If the shape or values are wrong.
        """
        values = list(counts)
        if len(values) != BUCKET_COUNT:
            raise ValueError(f"expected {BUCKET_COUNT} counts, got {len(values)}")
        for value in values:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"counts must be non-negative integers, got {value!r}")
        return values

    def render(self, counts: Sequence[int]) -> ChartViewModel:
        """
        Build the chart view model for a distribution.

        Args:
            counts: Five bucket counts, local or server-merged.

        Returns:
            ChartViewModel with one bar per bucket.

        Raises:
            ValueError: If counts is not five non-negative ints.

        Example:
            >>> ChartRenderer().render([0, 1, 2, 0, 4]).heights
            [0.0, 45.0, 90.0, 0.0, 180.0]
        """
        values = self._validate(counts)
        max_count = max([*values, 1])
        bars = tuple(
            BarViewModel(
                label=Config.BUCKET_LABELS[i],
                count=count,
                height=count / max_count * self.max_height,
                color=bar_color(i),
                delay_ms=i * self.stagger_ms,
            )
            for i, count in enumerate(values)
        )
        return ChartViewModel(bars=bars, max_count=max_count)

    def render_png(self, counts: Sequence[int], title: str = "Confidence Distribution") -> bytes:
        """
        Render the histogram as a vertical bar chart PNG.

        Bars use the same normalized heights as render(), on a 0-180
        axis, with the raw count printed above each bar.

        Args:
            counts: Five bucket counts.
            title: Chart title.

        Returns:
            PNG image bytes (600x300 at 100 DPI).

        Raises:
            ImportError: If matplotlib is not installed. Callers should
                fall back to a placeholder.
            ValueError: If counts is not five non-negative ints.
        """
        chart = self.render(counts)

        # Lazy import matplotlib to keep it optional
        import matplotlib

        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(6, 3))
        labels = [bar.label for bar in chart.bars]
        bars = ax.bar(
            labels,
            chart.heights,
            color=[bar.color for bar in chart.bars],
        )
        for rect, bar in zip(bars, chart.bars, strict=True):
            ax.text(
                rect.get_x() + rect.get_width() / 2,
                rect.get_height(),
                str(bar.count),
                ha="center",
                va="bottom",
                fontsize=10,
            )

        ax.set_ylim(0, self.max_height * 1.15)
        ax.set_yticks([])
        ax.set_xlabel("Confidence")
        ax.set_title(title)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        ax.spines["left"].set_visible(False)

        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()


def render_text_report(display: DisplayAggregate, width: int = 30) -> str:
    """
    Format statistics and a text histogram for the terminal.

    Args:
        display: Statistics to print.
        width: Character width of the longest bar.

    Returns:
        Multi-line report string.

    Example:
        >>> print(render_text_report(store.local_display()))
        ==================================================
        RICE BLAST DETECTOR - STATISTICS
        ...
    """
    counts = list(display.distribution)
    max_count = max([*counts, 1])
    lines = [
        "=" * 50,
        "RICE BLAST DETECTOR - STATISTICS",
        "=" * 50,
        f"Source:             {display.source}",
        f"Healthy leaves:     {display.healthy_count}",
        f"Infected leaves:    {display.infected_count}",
        f"Average confidence: {display.average_display}",
        "",
        "Confidence distribution:",
    ]
    for label, count in zip(Config.BUCKET_LABELS, counts, strict=True):
        bar = "#" * round(count / max_count * width)
        lines.append(f"  {label:>7} | {bar} {count}")
    return "\n".join(lines)
