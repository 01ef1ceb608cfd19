from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List

from distnet.core.models.pipe import Pipe
from distnet.core.models.segment import Segment
from distnet.core.models.types import REMOVED

logger = logging.getLogger(__name__)


def _contribution(upstream: Segment, segment: Segment) -> float:
    # the next connector of the same pipe always passes its load on
    if segment.owner is not upstream.owner and segment.owner.status == REMOVED:
        return 0.0
    return float(segment.load or 0.0)


def aggregate_loads(segments: Iterable[Segment]) -> List[Segment]:
    """
    Status-aware load fold over the segment graph.

    - terminal segments carry their owner's assigned load (unset -> 0)
    - any other segment sums its downstream loads; a child entry segment whose
      owner is REMOVED contributes 0

    Single pass from terminal segments toward roots: a segment is finalised
    once all of its downstream segments are. Returns segments in the order
    they were finalised.
    """
    segs = list(segments)
    pending: Dict[int, int] = {id(s): len(s.downstream) for s in segs}

    queue = deque(s for s in segs if not s.downstream)
    done: List[Segment] = []

    while queue:
        seg = queue.popleft()

        if seg.downstream:
            seg.load = sum(_contribution(seg, ds) for ds in seg.downstream)
        else:
            seg.load = float(seg.owner.assigned_load or 0.0)
        done.append(seg)

        up = seg.upstream
        if up is None or id(up) not in pending:
            continue
        pending[id(up)] -= 1
        if pending[id(up)] == 0:
            queue.append(up)

    if len(done) != len(segs):
        # only reachable if the graph was edited by hand into a cycle
        raise ValueError(f"Segment graph is not a tree: {len(segs) - len(done)} segments never finalised.")

    logger.debug("Aggregated loads over %d segments", len(done))
    return done


def pipe_load(pipe: Pipe) -> float:
    """Pipe-level view of the aggregate (entry segment load)."""
    return pipe.load
