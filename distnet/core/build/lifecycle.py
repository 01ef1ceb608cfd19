from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Tuple

from distnet.core.models.pipe import Pipe
from distnet.core.models.types import INSTALLED, PLANNED, REMOVED, PipeStatus


def compute_status(
    install_at: Optional[datetime],
    remove_at: Optional[datetime],
    t: datetime,
) -> PipeStatus:
    """
    Status at instant t for the closed interval [install_at, remove_at].

    An inverted interval (remove_at < install_at) is not corrected: it reads
    PLANNED before install_at and REMOVED from there on.
    """
    if install_at is None or remove_at is None:
        return PLANNED
    if t < install_at:
        return PLANNED
    if t <= remove_at:
        return INSTALLED
    return REMOVED


def update_status(pipe: Pipe, t: datetime) -> PipeStatus:
    pipe.status = compute_status(pipe.install_at, pipe.remove_at, t)
    return pipe.status


def refresh_statuses(roots: Iterable[Pipe], t: datetime) -> None:
    """Top-down status pass over every pipe of the forest."""
    for root in roots:
        for pipe in root.walk():
            update_status(pipe, t)


def derive_interval(pipe: Pipe) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Internal pipes span their children: earliest defined install, latest
    defined removal. Leaves keep their own dates.
    """
    if not pipe.children:
        return pipe.install_at, pipe.remove_at

    installs = [c.install_at for c in pipe.children if c.install_at is not None]
    removals = [c.remove_at for c in pipe.children if c.remove_at is not None]

    pipe.install_at = min(installs) if installs else None
    pipe.remove_at = max(removals) if removals else None
    return pipe.install_at, pipe.remove_at


def propagate_lifecycle(pipe: Pipe, t: datetime) -> None:
    """
    After a date change on `pipe`, recompute interval and status on it and on
    every ancestor, walking the parent chain up to the root.
    """
    cur: Optional[Pipe] = pipe
    while cur is not None:
        derive_interval(cur)
        update_status(cur, t)
        cur = cur.parent


def derive_intervals(roots: Iterable[Pipe], t: datetime) -> None:
    """Full bottom-up interval pass (children before parents), then status."""
    for root in roots:
        order = list(root.walk())
        for pipe in reversed(order):
            derive_interval(pipe)
            update_status(pipe, t)
