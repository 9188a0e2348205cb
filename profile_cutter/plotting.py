# profile_cutter/plotting.py
# Minimal matplotlib visualization: one horizontal bar per Cut in a single figure.
# Segments are coloured by piece length, margins are grey, the offcut is hatched.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .types import Cut, OptimizationResult


@dataclass(frozen=True)
class PlotStyle:
    show_labels: bool = True
    show_margins: bool = True
    font_size: int = 7
    bar_height: float = 0.6
    row_height_in: float = 0.45  # figure inches per bar
    width_in: float = 12.0


def _hash_color(key: str) -> Tuple[float, float, float]:
    """Deterministic pastel-ish color from a string."""
    h = 2166136261
    for ch in key.encode("utf-8"):
        h ^= ch
        h *= 16777619
        h &= 0xFFFFFFFF
    # map to [0.3..0.9] range for readability
    r = 0.3 + ((h >> 0) & 0xFF) / 255 * 0.6
    g = 0.3 + ((h >> 8) & 0xFF) / 255 * 0.6
    b = 0.3 + ((h >> 16) & 0xFF) / 255 * 0.6
    return (r, g, b)


def _bar_title(cut: Cut) -> str:
    return f"#{cut.index + 1} {cut.stock_length:g} mm"


def plot_result(
    result: OptimizationResult,
    style: Optional[PlotStyle] = None,
    figsize: Optional[Tuple[float, float]] = None,
) -> plt.Figure:
    """
    Draw all bars of a result. x axis is the position along the raw bar in mm.
    """
    style = style or PlotStyle()
    cuts: List[Cut] = list(result.cuts)
    n = len(cuts)
    if n == 0:
        raise ValueError("Result has no cuts to plot")

    if figsize is None:
        figsize = (style.width_in, max(2.0, style.row_height_in * n + 1.0))

    fig, ax = plt.subplots(figsize=figsize)
    longest = max(c.stock_length for c in cuts)
    h = style.bar_height

    for row, cut in enumerate(cuts):
        y = n - 1 - row
        ax.add_patch(Rectangle((0, y), cut.stock_length, h, fill=False, linewidth=1.0))

        if style.show_margins and cut.segments:
            start = cut.segments[0].position
            if start > 0:
                ax.add_patch(Rectangle((0, y), start, h, facecolor="0.8", edgecolor="none"))

        for s in cut.segments:
            color = _hash_color(f"{s.length:g}")
            ax.add_patch(Rectangle((s.position, y), s.length, h, facecolor=color, edgecolor="black", linewidth=0.6))
            if style.show_labels:
                ax.text(
                    s.position + s.length / 2,
                    y + h / 2,
                    f"{s.length:g}",
                    ha="center",
                    va="center",
                    fontsize=style.font_size,
                )

        if cut.remaining_length > 0:
            x0 = cut.stock_length - cut.remaining_length
            ax.add_patch(
                Rectangle((x0, y), cut.remaining_length, h, fill=False, hatch="///", edgecolor="0.5", linewidth=0.4)
            )

    ax.set_yticks([n - 1 - i + h / 2 for i in range(n)])
    ax.set_yticklabels([_bar_title(c) for c in cuts], fontsize=style.font_size)
    ax.set_xlim(0, longest * 1.01)
    ax.set_ylim(-0.5, n + 0.2)
    ax.set_xlabel("mm")
    ax.set_title(
        f"{result.algorithm}: {result.stock_count} bars, efficiency {result.efficiency:.1f}%, "
        f"waste {result.total_waste:,.0f} mm",
        fontsize=10,
    )
    fig.tight_layout()
    return fig


def show_result(result: OptimizationResult, style: Optional[PlotStyle] = None) -> None:
    """Convenience wrapper: plot and show."""
    plot_result(result, style=style)
    plt.show()


def save_result_png(
    result: OptimizationResult,
    path: str,
    style: Optional[PlotStyle] = None,
    dpi: int = 200,
) -> None:
    """Optional helper: save figure to PNG."""
    fig = plot_result(result, style=style)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
