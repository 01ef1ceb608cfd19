"""
Shared pytest fixtures.

- query instants around a common installation window
- the two-lateral scenario network (tool loads 5/7 and 3/4)
- the same scenario as flat ingestion records
"""
from datetime import datetime

import matplotlib

matplotlib.use("Agg")

import pytest

from distnet.core.models.network import Network
from distnet.core.models.pipe import Pipe

INSTALL = datetime(2025, 1, 1)
REMOVE = datetime(2026, 1, 1)
QUERY = datetime(2025, 6, 1)

SCENARIO_LOADS = {"T1": 5.0, "T2": 7.0, "T3": 3.0, "T4": 4.0}


def make_scenario_roots() -> list[Pipe]:
    submain = Pipe("S1", "submain", axis="x")
    for lateral_id, tool_ids in (("L1", ("T1", "T2")), ("L2", ("T3", "T4"))):
        lateral = Pipe(lateral_id, "lateral")
        submain.add_child(lateral)
        for tid in tool_ids:
            lateral.add_child(Pipe(
                tid, "tool",
                assigned_load=SCENARIO_LOADS[tid],
                install_at=INSTALL,
                remove_at=REMOVE,
            ))
    return [submain]


@pytest.fixture
def query_date() -> datetime:
    return QUERY


@pytest.fixture
def scenario_network() -> Network:
    """Submain S1 -> L1 (T1=5, T2=7), L2 (T3=3, T4=4); everything installed."""
    return Network(roots=make_scenario_roots(), query_date=QUERY).initialize()


@pytest.fixture
def scenario_records() -> list[dict]:
    return [
        {"id": "S1", "name": "Submain 1", "parentId": None, "averageLoad": 0},
        {"id": "L1", "name": "Lateral 1", "parentId": "S1", "averageLoad": 0},
        {"id": "L2", "name": "Lateral 2", "parentId": "S1", "averageLoad": 0},
        {"id": "T1", "name": "Tool 1", "parentId": "L1", "averageLoad": 5.0,
         "installAt": "2025-01-01", "removeAt": "2026-01-01"},
        {"id": "T2", "name": "Tool 2", "parentId": "L1", "averageLoad": 7.0,
         "installAt": "2025-01-01", "removeAt": "2026-01-01"},
        {"id": "T3", "name": "Tool 3", "parentId": "L2", "averageLoad": 3.0,
         "installAt": "2025-01-01", "removeAt": "2026-01-01"},
        {"id": "T4", "name": "Tool 4", "parentId": "L2", "averageLoad": 4.0,
         "installAt": "2025-01-01", "removeAt": "2026-01-01"},
    ]


class RecordingRenderer:
    """Renderer stub: remembers what it was asked to draw."""
    def __init__(self):
        self.calls = []

    def render(self, network, settings):
        self.calls.append((settings, {p.id: p.load for p in network.iter_pipes()}))


@pytest.fixture
def recording_renderer() -> RecordingRenderer:
    return RecordingRenderer()
