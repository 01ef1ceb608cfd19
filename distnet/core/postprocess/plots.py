from __future__ import annotations

import os
from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt

from distnet.core.build.config import RenderSettings
from distnet.core.models.network import Network
from distnet.core.models.segment import Segment
from distnet.core.models.types import REMOVED

KIND_COLORS: Dict[str, str] = {
    "submain": "#00b8d4",
    "lateral": "orange",
    "tool": "magenta",
}

KIND_WIDTHS: Dict[str, float] = {
    "submain": 8.0,
    "lateral": 4.0,
    "tool": 1.5,
}

MIN_WIDTH = 5.0
MAX_WIDTH = 20.0
OVER_CAPACITY = (1.0, 0.0, 0.0, 0.7)


def load_color(load: float, capacity: Optional[float]) -> object:
    """
    Green -> yellow (0..50% of capacity) -> red (100%+), semi-transparent.
    """
    if not capacity:
        return KIND_COLORS["tool"]
    if load == 0:
        return "grey"
    ratio = load / capacity
    if ratio <= 0.5:
        return (min(1.0, ratio * 2), 1.0, 0.0, 0.5)
    return (1.0, max(0.0, 1.0 - (ratio - 0.5) * 2), 0.0, 0.5)


def segment_width(segment: Segment, max_load: float, use_load_width: bool) -> float:
    if use_load_width and max_load > 0:
        return MIN_WIDTH + (MAX_WIDTH - MIN_WIDTH) * (segment.load / max_load)
    return KIND_WIDTHS[segment.owner.kind]


def segment_color(segment: Segment, color_mode: str) -> object:
    cap = segment.owner.capacity
    if color_mode == "loadScale":
        return load_color(segment.load, cap)
    if cap and segment.load > cap:
        return OVER_CAPACITY
    return KIND_COLORS[segment.owner.kind]


class SegmentPlotRenderer:
    """
    Draws the segment graph to a PNG (one line per non-removed segment, load
    labels on connectors). Purely visual; reads the network as rendered.
    """
    def __init__(self, out_png: str, *, figsize: Tuple[float, float] = (20.0, 12.0), dpi: int = 100):
        self.out_png = out_png
        self.figsize = figsize
        self.dpi = dpi

    def render(self, network: Network, settings: RenderSettings) -> None:
        os.makedirs(os.path.dirname(self.out_png) or ".", exist_ok=True)

        visible = [s for s in network.segments if s.owner.status != REMOVED]
        max_load = max((s.load for s in visible), default=0.0)

        fig, ax = plt.subplots(figsize=self.figsize)
        for seg in visible:
            ax.plot(
                [seg.start.x, seg.end.x],
                [seg.start.y, seg.end.y],
                color=segment_color(seg, settings.color_mode),
                linewidth=segment_width(seg, max_load, settings.use_load_width),
                solid_capstyle="butt",
            )
            ax.plot([seg.start.x], [seg.start.y], "o", color="blue", markersize=3)
            if seg.downstream:
                mid_x = (seg.start.x + seg.end.x) / 2
                mid_y = (seg.start.y + seg.end.y) / 2
                vertical = seg.start.x == seg.end.x
                ax.text(
                    mid_x, mid_y, f"{seg.load:.2f}",
                    fontsize=7, family="monospace", color="grey",
                    ha="center", va="bottom", rotation=90 if vertical else 0,
                )

        for p in network.iter_pipes():
            if p.segments:
                end = p.segments[-1].end
                ax.text(end.x + 5, end.y, f"{p.id} {p.status}", fontsize=6, family="monospace",
                        color="#999" if p.status == REMOVED else "black")

        ax.set_title(f"Network at {settings.current_date:%Y-%m-%d}" if settings.current_date else "Network")
        ax.invert_yaxis()
        ax.set_aspect("equal", adjustable="datalim")
        ax.axis("off")
        fig.tight_layout()
        fig.savefig(self.out_png, dpi=self.dpi)
        plt.close(fig)
