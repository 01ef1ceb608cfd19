from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from distnet.core.models.types import Point

if TYPE_CHECKING:
    from distnet.core.models.pipe import Pipe


@dataclass(eq=False, slots=True)
class Segment:
    """
    One edge of the load-flow graph, owned by exactly one Pipe.

    start/end decide which sibling connection the segment stands for;
    upstream is a lookup reference, downstream keeps the order of linking.
    """
    owner: "Pipe"
    start: Point
    end: Point
    load: float = 0.0
    upstream: Optional["Segment"] = field(default=None, repr=False)
    downstream: List["Segment"] = field(default_factory=list, repr=False)

    def add_downstream(self, segment: "Segment") -> None:
        if segment.upstream is not None and segment.upstream is not self:
            raise ValueError(f"Segment of {segment.owner.id!r} already has an upstream segment.")
        self.downstream.append(segment)
        segment.upstream = self

    @property
    def is_terminal(self) -> bool:
        return not self.downstream

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)
