from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

PipeKind = Literal["submain", "lateral", "tool"]
Axis = Literal["x", "y"]
PipeStatus = Literal["PLANNED", "INSTALLED", "REMOVED"]
InsertSide = Literal["before", "after"]

SUBMAIN: PipeKind = "submain"
LATERAL: PipeKind = "lateral"
TOOL: PipeKind = "tool"

PLANNED: PipeStatus = "PLANNED"
INSTALLED: PipeStatus = "INSTALLED"
REMOVED: PipeStatus = "REMOVED"

PIPE_KINDS: Tuple[PipeKind, ...] = (SUBMAIN, LATERAL, TOOL)

# id marker letter per kind, used by the sibling id allocator
KIND_MARKER = {
    SUBMAIN: "S",
    LATERAL: "L",
    TOOL: "T",
}

# kind of a child attached below a given parent kind
CHILD_KIND = {
    SUBMAIN: LATERAL,
    LATERAL: TOOL,
}


def opposite_axis(axis: Axis | None) -> Axis:
    return "y" if axis == "x" else "x"


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def moved(self, axis: Axis | None, distance: float) -> "Point":
        """Point shifted by distance along axis (y when axis is not 'x')."""
        if axis == "x":
            return Point(self.x + distance, self.y)
        return Point(self.x, self.y + distance)
