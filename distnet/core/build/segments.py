from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from distnet.core.build.config import DEFAULT_KIND_CONFIG, KindConfig
from distnet.core.models.pipe import Pipe
from distnet.core.models.segment import Segment
from distnet.core.models.types import Point

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = Point(50.0, 100.0)


@dataclass(frozen=True)
class SegmentGraph:
    segments: List[Segment]        # flat list, in creation order
    entries: List[Segment]         # entry segment of each root, same order as roots


def _connection_offsets(span: float, n_children: int) -> np.ndarray:
    """
    Interior connection distances along a span split into n+1 equal parts.
    """
    return np.linspace(0.0, span, n_children + 2)[1:-1]


def _build_pipe(pipe: Pipe, start: Point, kinds: KindConfig, out: List[Segment]) -> Segment:
    span = kinds.span_length(pipe.kind)
    end = start.moved(pipe.axis, span)

    if not pipe.children:
        seg = Segment(owner=pipe, start=start, end=end, load=float(pipe.assigned_load or 0.0))
        pipe.segments.append(seg)
        out.append(seg)
        return seg

    first: Optional[Segment] = None
    previous: Optional[Segment] = None
    last_point = start

    for child, offset in zip(pipe.children, _connection_offsets(span, len(pipe.children))):
        point = start.moved(pipe.axis, float(offset))

        connector = Segment(owner=pipe, start=last_point, end=point)
        pipe.segments.append(connector)
        out.append(connector)

        if previous is not None:
            previous.add_downstream(connector)
        if first is None:
            first = connector

        child_entry = _build_pipe(child, point, kinds, out)
        connector.add_downstream(child_entry)

        last_point = point
        previous = connector

    final = Segment(owner=pipe, start=last_point, end=end, load=float(pipe.assigned_load or 0.0))
    pipe.segments.append(final)
    out.append(final)
    previous.add_downstream(final)  # type: ignore[union-attr]

    return first  # type: ignore[return-value]


def build_segment_graph(
    roots: Sequence[Pipe],
    kinds: KindConfig = DEFAULT_KIND_CONFIG,
    *,
    origin: Point = DEFAULT_ORIGIN,
    spacing: Optional[float] = None,
) -> SegmentGraph:
    """
    Rebuild the segment graph for a forest.

    - root i is anchored at origin shifted down by i * spacing
      (default spacing: lateral span + buffer)
    - a pipe with n children gets n+1 chained segments; segment i also feeds
      the entry segment of child i
    - previous segments of every pipe are discarded
    """
    if spacing is None:
        spacing = kinds.submain_spacing

    for root in roots:
        for pipe in root.walk():
            pipe.segments = []

    segments: List[Segment] = []
    entries: List[Segment] = []
    for i, root in enumerate(roots):
        anchor = Point(origin.x, origin.y + i * spacing)
        entries.append(_build_pipe(root, anchor, kinds, segments))

    logger.debug("Built %d segments for %d roots", len(segments), len(roots))
    return SegmentGraph(segments=segments, entries=entries)
