from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from distnet.core.models.network import Network
from distnet.core.models.types import REMOVED, PipeKind, PipeStatus


@dataclass(frozen=True)
class PipeLoadRow:
    pipe_id: str
    kind: PipeKind
    status: PipeStatus
    load: float
    capacity: Optional[float]
    utilization: Optional[float]     # load / capacity, None without capacity


@dataclass(frozen=True)
class CapacityExceedance:
    pipe_id: str
    segment_index: int               # position of the segment within its pipe
    load: float
    capacity: float

    @property
    def ratio(self) -> float:
        return self.load / self.capacity


def summarize_pipe_loads(network: Network) -> List[PipeLoadRow]:
    """
    Per-pipe view of the status-aware aggregate, in tree pre-order.
    """
    rows: List[PipeLoadRow] = []
    for p in network.iter_pipes():
        load = float(p.load)
        cap = p.capacity
        rows.append(PipeLoadRow(
            pipe_id=p.id,
            kind=p.kind,
            status=p.status,
            load=load,
            capacity=cap,
            utilization=(load / cap) if cap else None,
        ))
    return rows


def find_capacity_exceedances(network: Network, *, include_removed: bool = False) -> List[CapacityExceedance]:
    """
    Non-terminal segments carrying more than their owner's capacity.
    Segments of REMOVED pipes are skipped unless include_removed.
    """
    out: List[CapacityExceedance] = []
    for p in network.iter_pipes():
        if p.capacity is None:
            continue
        if p.status == REMOVED and not include_removed:
            continue
        for i, seg in enumerate(p.segments):
            if seg.downstream and seg.load > p.capacity:
                out.append(CapacityExceedance(
                    pipe_id=p.id,
                    segment_index=i,
                    load=float(seg.load),
                    capacity=float(p.capacity),
                ))
    return out
