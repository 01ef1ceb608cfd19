from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterator, List, Optional

from distnet.core.build.config import DEFAULT_KIND_CONFIG
from distnet.core.build.errors import InvalidAttachmentError
from distnet.core.models.types import PLANNED, TOOL, Axis, PipeKind, PipeStatus, opposite_axis

if TYPE_CHECKING:
    from distnet.core.models.segment import Segment


@dataclass(eq=False, slots=True)
class Pipe:
    """
    Node of the distribution tree (submain -> lateral -> tool).

    Notes:
    - children are owned; parent and ancestry are lookup-only references
    - status is derived from [install_at, remove_at] and the query instant,
      see distnet.core.build.lifecycle
    - assigned_load is the external source value (tools); the aggregate read
      by consumers is `load`, taken from the entry segment
    """
    id: str
    kind: PipeKind
    axis: Optional[Axis] = None
    name: Optional[str] = None

    capacity: Optional[float] = None
    install_at: Optional[datetime] = None
    remove_at: Optional[datetime] = None
    status: PipeStatus = PLANNED
    assigned_load: Optional[float] = None

    children: List["Pipe"] = field(default_factory=list, repr=False)
    parent: Optional["Pipe"] = field(default=None, repr=False)
    ancestry: List["Pipe"] = field(default_factory=list, repr=False)
    segments: List["Segment"] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.capacity is None:
            self.capacity = DEFAULT_KIND_CONFIG.capacity(self.kind)
        if self.name is None:
            self.name = self.id

    # --- structure ---

    @property
    def is_tool(self) -> bool:
        return self.kind == TOOL

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def add_child(self, child: "Pipe") -> None:
        self.insert_child(len(self.children), child)

    def insert_child(self, index: int, child: "Pipe") -> None:
        if self.is_tool:
            raise InvalidAttachmentError(self.id, child.id)
        if child is self or child in self.ancestry:
            raise ValueError(f"Attaching {child.id!r} below {self.id!r} would create a cycle.")
        if child.parent is not None:
            child.detach()

        self.children.insert(index, child)
        child.parent = self
        if child.axis is None:
            child.axis = opposite_axis(self.axis)
        child._refresh_ancestry()

    def detach(self) -> None:
        """Remove this pipe (with its subtree) from its parent."""
        if self.parent is None:
            return
        self.parent.children.remove(self)
        self.parent = None
        self._refresh_ancestry()

    def _refresh_ancestry(self) -> None:
        base = [] if self.parent is None else [*self.parent.ancestry, self.parent]
        self.ancestry = base
        for child in self.children:
            child._refresh_ancestry()

    def walk(self) -> Iterator["Pipe"]:
        """Pre-order iteration over this subtree."""
        stack = [self]
        while stack:
            cur = stack.pop()
            yield cur
            stack.extend(reversed(cur.children))

    @property
    def path_ids(self) -> List[str]:
        return [p.id for p in self.ancestry] + [self.id]

    # --- load view ---

    @property
    def entry_segment(self) -> Optional["Segment"]:
        return self.segments[0] if self.segments else None

    @property
    def load(self) -> float:
        """Status-aware aggregate read from the entry segment."""
        seg = self.entry_segment
        if seg is not None:
            return seg.load
        return float(self.assigned_load or 0.0)
