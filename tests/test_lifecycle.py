from datetime import datetime, timedelta

import pytest

from distnet.core.build.lifecycle import (
    compute_status,
    derive_interval,
    derive_intervals,
    propagate_lifecycle,
    refresh_statuses,
)
from distnet.core.models.pipe import Pipe

from conftest import INSTALL, QUERY, REMOVE, make_scenario_roots

ONE_SECOND = timedelta(seconds=1)


# ============================================================
# Status rule
# ============================================================

class TestComputeStatus:

    def test_boundaries(self):
        assert compute_status(INSTALL, REMOVE, INSTALL - ONE_SECOND) == "PLANNED"
        assert compute_status(INSTALL, REMOVE, INSTALL) == "INSTALLED"
        assert compute_status(INSTALL, REMOVE, REMOVE) == "INSTALLED"
        assert compute_status(INSTALL, REMOVE, REMOVE + ONE_SECOND) == "REMOVED"

    @pytest.mark.parametrize("install_at, remove_at", [
        (None, REMOVE),
        (INSTALL, None),
        (None, None),
    ])
    def test_missing_bound_is_planned(self, install_at, remove_at):
        assert compute_status(install_at, remove_at, QUERY) == "PLANNED"
        assert compute_status(install_at, remove_at, datetime(2100, 1, 1)) == "PLANNED"

    def test_inverted_interval_is_not_fixed(self):
        install_at = datetime(2025, 6, 1)
        remove_at = datetime(2025, 1, 1)

        assert compute_status(install_at, remove_at, datetime(2024, 1, 1)) == "PLANNED"
        assert compute_status(install_at, remove_at, install_at) == "REMOVED"
        assert compute_status(install_at, remove_at, datetime(2030, 1, 1)) == "REMOVED"

    def test_status_moves_backward_with_time(self):
        pipe = Pipe("T1", "tool", install_at=INSTALL, remove_at=REMOVE)

        refresh_statuses([pipe], REMOVE + ONE_SECOND)
        assert pipe.status == "REMOVED"

        refresh_statuses([pipe], INSTALL - ONE_SECOND)
        assert pipe.status == "PLANNED"


# ============================================================
# Interval propagation
# ============================================================

class TestIntervals:

    def test_internal_interval_spans_children(self):
        lateral = Pipe("L1", "lateral")
        lateral.add_child(Pipe("T1", "tool", install_at=datetime(2025, 3, 1), remove_at=datetime(2025, 9, 1)))
        lateral.add_child(Pipe("T2", "tool", install_at=datetime(2025, 1, 1), remove_at=datetime(2025, 5, 1)))
        lateral.add_child(Pipe("T3", "tool"))

        assert derive_interval(lateral) == (datetime(2025, 1, 1), datetime(2025, 9, 1))

    def test_bounds_are_independent(self):
        lateral = Pipe("L1", "lateral")
        lateral.add_child(Pipe("T1", "tool", install_at=datetime(2025, 3, 1)))
        lateral.add_child(Pipe("T2", "tool", remove_at=datetime(2025, 5, 1)))

        assert derive_interval(lateral) == (datetime(2025, 3, 1), datetime(2025, 5, 1))

    def test_no_dated_descendants_stays_planned(self):
        submain = Pipe("S1", "submain", axis="x")
        lateral = Pipe("L1", "lateral")
        submain.add_child(lateral)
        lateral.add_child(Pipe("T1", "tool"))

        derive_intervals([submain], QUERY)

        assert (submain.install_at, submain.remove_at) == (None, None)
        assert submain.status == "PLANNED"
        assert lateral.status == "PLANNED"

    def test_leaf_keeps_own_dates(self):
        tool = Pipe("T1", "tool", install_at=INSTALL, remove_at=REMOVE)
        assert derive_interval(tool) == (INSTALL, REMOVE)

    def test_propagate_walks_to_root(self):
        roots = make_scenario_roots()
        derive_intervals(roots, QUERY)
        submain = roots[0]
        t2 = submain.children[0].children[1]

        t2.install_at = datetime(2024, 1, 1)
        t2.remove_at = datetime(2027, 1, 1)
        propagate_lifecycle(t2, QUERY)

        assert submain.children[0].install_at == datetime(2024, 1, 1)
        assert submain.children[0].remove_at == datetime(2027, 1, 1)
        assert submain.install_at == datetime(2024, 1, 1)
        assert submain.remove_at == datetime(2027, 1, 1)
        # the other lateral is not on the walked chain
        assert submain.children[1].install_at == INSTALL

    def test_propagate_updates_status_along_chain(self):
        roots = make_scenario_roots()
        derive_intervals(roots, QUERY)
        lateral = roots[0].children[1]
        for tool in lateral.children:
            tool.remove_at = QUERY - timedelta(days=1)
            propagate_lifecycle(tool, QUERY)

        assert [t.status for t in lateral.children] == ["REMOVED", "REMOVED"]
        assert lateral.status == "REMOVED"
        assert roots[0].status == "INSTALLED"
