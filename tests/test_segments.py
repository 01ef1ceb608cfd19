import pytest

from distnet.core.build.config import KindConfig
from distnet.core.build.segments import DEFAULT_ORIGIN, build_segment_graph
from distnet.core.models.pipe import Pipe
from distnet.core.models.segment import Segment
from distnet.core.models.types import Point

from conftest import make_scenario_roots


def test_segment_count_per_pipe(scenario_network):
    for p in scenario_network.iter_pipes():
        expected = len(p.children) + 1 if p.children else 1
        assert len(p.segments) == expected, p.id

    # S1: 3, L1: 3, L2: 3, four tools: 1 each
    assert len(scenario_network.segments) == 13


def test_connector_feeds_child_then_next_connector(scenario_network):
    s1 = scenario_network.get_pipe("S1")
    l1, l2 = s1.children
    c1, c2, final = s1.segments

    assert c1.downstream == [l1.entry_segment, c2]
    assert c2.downstream == [l2.entry_segment, final]
    assert final.downstream == []
    assert l1.entry_segment.upstream is c1
    assert c2.upstream is c1
    assert scenario_network.entries == [c1]


def test_geometry_follows_axes(scenario_network):
    s1 = scenario_network.get_pipe("S1")
    l1 = scenario_network.get_pipe("L1")
    t1 = scenario_network.get_pipe("T1")

    assert s1.segments[0].start == DEFAULT_ORIGIN
    assert [seg.end for seg in s1.segments] == [Point(550.0, 100.0), Point(1050.0, 100.0), Point(1550.0, 100.0)]

    # laterals run along y from their connection point
    assert l1.axis == "y"
    assert l1.segments[0].start == Point(550.0, 100.0)
    assert [seg.end.y for seg in l1.segments] == [200.0, 300.0, 400.0]

    # tools run along x again
    assert t1.axis == "x"
    assert t1.segments[0].start == Point(550.0, 200.0)
    assert t1.segments[0].end == Point(600.0, 200.0)
    assert t1.segments[0].length == pytest.approx(50.0)


def test_roots_are_stacked_by_spacing():
    roots = [Pipe("S1", "submain", axis="x"), Pipe("S2", "submain", axis="x")]
    graph = build_segment_graph(roots)

    assert [e.start for e in graph.entries] == [Point(50.0, 100.0), Point(50.0, 500.0)]


def test_custom_kind_config_changes_layout():
    kinds = KindConfig.from_dict({"submain_length": 900, "submain_spacing_buffer": 0})
    root = Pipe("S1", "submain", axis="x")
    root.add_child(Pipe("L1", "lateral"))
    root.add_child(Pipe("L2", "lateral"))

    graph = build_segment_graph([root, Pipe("S2", "submain", axis="x")], kinds, origin=Point(0.0, 0.0))

    assert [seg.end.x for seg in root.segments] == [300.0, 600.0, 900.0]
    assert graph.entries[1].start == Point(0.0, 300.0)


def test_rebuild_discards_previous_segments():
    roots = make_scenario_roots()
    build_segment_graph(roots)
    first = roots[0].segments[0]

    graph = build_segment_graph(roots)

    assert len(roots[0].segments) == 3
    assert roots[0].segments[0] is not first
    assert len(graph.segments) == 13


def test_leaf_submain_has_single_segment():
    root = Pipe("S1", "submain", axis="x")
    graph = build_segment_graph([root])

    assert len(root.segments) == 1
    assert graph.segments[0].is_terminal


def test_segment_accepts_only_one_upstream():
    owner = Pipe("L1", "lateral")
    a = Segment(owner, Point(0, 0), Point(0, 1))
    b = Segment(owner, Point(0, 1), Point(0, 2))
    c = Segment(owner, Point(0, 2), Point(0, 3))
    a.add_downstream(c)

    with pytest.raises(ValueError):
        b.add_downstream(c)
