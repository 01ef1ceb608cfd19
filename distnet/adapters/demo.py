from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

import numpy as np

from distnet.adapters.records.read_records import RandomLoad
from distnet.core.models.network import Network
from distnet.core.models.pipe import Pipe
from distnet.core.models.types import LATERAL, SUBMAIN, TOOL

MONTH = timedelta(days=30)
MIN_LIFETIME = timedelta(weeks=1)
MAX_PAST_MONTHS = 12
MAX_FUTURE_MONTHS = 24


def random_interval(rng: np.random.Generator, today: datetime) -> Tuple[datetime, datetime]:
    """
    Install between 1 year ago and 2 years ahead of `today`; removal at least
    one week later, up to 2 more years.
    """
    months = float(rng.uniform(-MAX_PAST_MONTHS, MAX_FUTURE_MONTHS))
    install_at = today + months * MONTH
    remove_at = install_at + MIN_LIFETIME + float(rng.uniform(0.0, MAX_FUTURE_MONTHS)) * MONTH
    return install_at, remove_at


def build_demo_network(
    *,
    seed: int = 0,
    query_date: Optional[datetime] = None,
    n_submains: int = 2,
    laterals_per_submain: int = 6,
    tools_per_lateral: int = 5,
) -> Network:
    """
    Fixture network: submains S01.. (axis x), each with laterals '<S>-L<i>',
    each with tools '<L>-T<j>'. Tool loads and dates come from a seeded
    generator, so the same seed always gives the same network.
    """
    today = query_date or datetime.now()
    rng = np.random.default_rng(seed)
    load = RandomLoad(seed=seed)

    roots = []
    for s in range(1, n_submains + 1):
        submain = Pipe(f"S{s:02d}", SUBMAIN, axis="x")
        for i in range(1, laterals_per_submain + 1):
            lateral = Pipe(f"{submain.id}-L{i}", LATERAL)
            submain.add_child(lateral)
            for j in range(1, tools_per_lateral + 1):
                tool = Pipe(f"{lateral.id}-T{j}", TOOL, assigned_load=load())
                tool.install_at, tool.remove_at = random_interval(rng, today)
                lateral.add_child(tool)
        roots.append(submain)

    return Network(roots=roots, query_date=today).initialize()
