from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, Union

from distnet.core.build.config import DEFAULT_KIND_CONFIG, KindConfig, RenderSettings, as_instant
from distnet.core.build.errors import DuplicatePipeIdError, InvalidAttachmentError, UnknownPipeError
from distnet.core.build.ids import allocate_sibling_id, next_child_id
from distnet.core.build.lifecycle import derive_intervals, propagate_lifecycle, refresh_statuses
from distnet.core.build.loads import aggregate_loads
from distnet.core.build.segments import build_segment_graph
from distnet.core.models.pipe import Pipe
from distnet.core.models.segment import Segment
from distnet.core.models.types import CHILD_KIND, InsertSide, PipeKind

logger = logging.getLogger(__name__)


class NetworkRenderer(Protocol):
    """Display collaborator: reads the network, never mutates it."""
    def render(self, network: "Network", settings: RenderSettings) -> None: ...


@dataclass(eq=False)
class Network:
    """
    Owner of the pipe forest and its derived segment graph.

    Mutating methods below rebuild/re-aggregate before returning. Direct edits
    on Pipe objects do not: call refresh() (topology), recompute_loads()
    (loads) or set_query_date() (time) afterwards.

    Instants are kept naive; offset-aware ones are converted to UTC on the way in.
    """
    roots: List[Pipe] = field(default_factory=list)
    query_date: datetime = field(default_factory=datetime.now)
    kinds: KindConfig = DEFAULT_KIND_CONFIG
    renderers: List[NetworkRenderer] = field(default_factory=list)

    segments: List[Segment] = field(default_factory=list, init=False, repr=False)
    entries: List[Segment] = field(default_factory=list, init=False, repr=False)
    _index: Dict[str, Pipe] = field(default_factory=dict, init=False, repr=False)

    # ------------------------------------------------------------
    # construction
    # ------------------------------------------------------------

    @classmethod
    def from_records(
        cls,
        records: Any,
        *,
        query_date: Optional[datetime] = None,
        kinds: KindConfig = DEFAULT_KIND_CONFIG,
        fallback_load: Optional[Callable[[], float]] = None,
    ) -> "Network":
        """Ingest flat records (see distnet.adapters.records) and initialise."""
        from distnet.adapters.records.read_records import build_network_from_records

        network, _ = build_network_from_records(
            records, query_date=query_date, kinds=kinds, fallback_load=fallback_load,
        )
        return network

    @classmethod
    def demo(cls, *, seed: int = 0, query_date: Optional[datetime] = None) -> "Network":
        from distnet.adapters.demo import build_demo_network

        return build_demo_network(seed=seed, query_date=query_date)

    def initialize(self) -> "Network":
        """Derive ancestor intervals, statuses, segments and loads from scratch."""
        self.query_date = as_instant(self.query_date)
        for p in self.iter_pipes():
            p.install_at = as_instant(p.install_at)
            p.remove_at = as_instant(p.remove_at)
        self._reindex()
        derive_intervals(self.roots, self.query_date)
        self._rebuild()
        logger.info(
            "Network initialised: %d roots, %d pipes, %d segments at %s",
            len(self.roots), len(self._index), len(self.segments), self.query_date,
        )
        return self

    def _reindex(self) -> None:
        index: Dict[str, Pipe] = {}
        for root in self.roots:
            for p in root.walk():
                if p.id in index:
                    raise DuplicatePipeIdError(p.id)
                index[p.id] = p
        self._index = index

    def _rebuild(self) -> None:
        graph = build_segment_graph(self.roots, self.kinds)
        self.segments = graph.segments
        self.entries = graph.entries
        self.recompute_loads()

    def refresh(self) -> None:
        """Rebuild the segment graph and loads after a topology change."""
        self._reindex()
        self._rebuild()

    def recompute_loads(self) -> None:
        aggregate_loads(self.segments)

    def set_query_date(self, t: datetime) -> None:
        """Move the query instant: statuses top-down, then aggregates."""
        t = as_instant(t)
        self.query_date = t
        refresh_statuses(self.roots, t)
        self.recompute_loads()
        logger.info("Query date moved to %s", t)

    # ------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------

    def get_pipe(self, pipe_id: str) -> Pipe:
        try:
            return self._index[pipe_id]
        except KeyError:
            raise UnknownPipeError(pipe_id) from None

    def __contains__(self, pipe_id: object) -> bool:
        return pipe_id in self._index

    def iter_pipes(self) -> Iterator[Pipe]:
        for root in self.roots:
            yield from root.walk()

    def find_by_path(self, path: Sequence[str]) -> Optional[Pipe]:
        """Follow ids from a root down (as the tree grid reports them)."""
        if not path:
            return None
        level: Iterable[Pipe] = self.roots
        found: Optional[Pipe] = None
        for pid in path:
            found = next((p for p in level if p.id == pid), None)
            if found is None:
                return None
            level = found.children
        return found

    # ------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------

    def _new_pipe(
        self,
        pipe_id: str,
        kind: PipeKind,
        *,
        name: Optional[str],
        load: Optional[float],
        install_at: Optional[datetime],
        remove_at: Optional[datetime],
    ) -> Pipe:
        if pipe_id in self._index:
            raise DuplicatePipeIdError(pipe_id)
        return Pipe(
            id=pipe_id,
            kind=kind,
            name=name,
            capacity=self.kinds.capacity(kind),
            assigned_load=load,
            install_at=as_instant(install_at),
            remove_at=as_instant(remove_at),
        )

    def add_child(
        self,
        parent_id: str,
        *,
        kind: Optional[PipeKind] = None,
        pipe_id: Optional[str] = None,
        name: Optional[str] = None,
        load: Optional[float] = None,
        install_at: Optional[datetime] = None,
        remove_at: Optional[datetime] = None,
    ) -> Pipe:
        """Append a child after the parent's last child."""
        parent = self.get_pipe(parent_id)
        if kind is None:
            if parent.kind not in CHILD_KIND:
                raise InvalidAttachmentError(parent.id, pipe_id or "<new>")
            kind = CHILD_KIND[parent.kind]

        child = self._new_pipe(
            pipe_id or next_child_id(parent, kind), kind,
            name=name, load=load, install_at=install_at, remove_at=remove_at,
        )
        parent.add_child(child)

        propagate_lifecycle(child, self.query_date)
        self.refresh()
        return child

    def insert_sibling(
        self,
        reference_id: str,
        side: InsertSide,
        *,
        name: Optional[str] = None,
        load: Optional[float] = None,
        install_at: Optional[datetime] = None,
        remove_at: Optional[datetime] = None,
    ) -> Pipe:
        """
        Insert a pipe of the reference's kind right before/after it, with an id
        ordered between the reference and its neighbour.

        The id is chosen among the reference's siblings only, but ids are unique
        across the whole network: with flat ids ('T1'.. reused under several
        laterals) the candidate may already exist elsewhere, and
        DuplicatePipeIdError is raised before the tree is touched. Hierarchical
        ids ('S01-L1-T2') never collide this way.
        """
        ref = self.get_pipe(reference_id)
        siblings = ref.parent.children if ref.parent is not None else self.roots

        new_id = allocate_sibling_id(ref.id, [s.id for s in siblings], side)
        pipe = self._new_pipe(
            new_id, ref.kind,
            name=name, load=load, install_at=install_at, remove_at=remove_at,
        )

        index = siblings.index(ref) + (0 if side == "before" else 1)
        if ref.parent is not None:
            ref.parent.insert_child(index, pipe)
        else:
            pipe.axis = ref.axis
            self.roots.insert(index, pipe)

        propagate_lifecycle(pipe, self.query_date)
        self.refresh()
        return pipe

    def set_tool_load(self, tool_id: str, load: Optional[float]) -> None:
        tool = self.get_pipe(tool_id)
        if not tool.is_tool:
            raise ValueError(f"{tool_id!r} is a {tool.kind}; its load is derived from its children.")
        tool.assigned_load = load
        self.recompute_loads()

    def set_lifecycle(
        self,
        pipe_id: str,
        install_at: Optional[datetime],
        remove_at: Optional[datetime],
    ) -> None:
        """Set a leaf's interval and propagate it to every ancestor."""
        pipe = self.get_pipe(pipe_id)
        if pipe.children:
            raise ValueError(f"Interval of {pipe_id!r} is derived from its children; set it on a leaf.")
        pipe.install_at = as_instant(install_at)
        pipe.remove_at = as_instant(remove_at)
        propagate_lifecycle(pipe, self.query_date)
        self.recompute_loads()

    def remove_pipe(self, pipe_id: str) -> Pipe:
        """Detach a pipe with its subtree; ancestors re-derive their interval."""
        pipe = self.get_pipe(pipe_id)
        parent = pipe.parent
        if parent is None:
            self.roots.remove(pipe)
        else:
            pipe.detach()
            propagate_lifecycle(parent, self.query_date)
        self.refresh()
        return pipe

    # ------------------------------------------------------------
    # display
    # ------------------------------------------------------------

    def render(self, settings: Union[RenderSettings, Mapping[str, Any], None] = None) -> RenderSettings:
        """
        Bring the model to settings.current_date (if given), then hand it to
        every registered renderer. Returns the settings actually used.
        """
        if settings is None:
            settings = RenderSettings()
        elif not isinstance(settings, RenderSettings):
            settings = RenderSettings.from_dict(dict(settings))

        current = as_instant(settings.current_date)
        if current is not None and current != self.query_date:
            self.set_query_date(current)
        else:
            self.recompute_loads()

        effective = replace(settings, current_date=self.query_date)
        for renderer in self.renderers:
            renderer.render(self, effective)
        return effective
