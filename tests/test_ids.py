from decimal import Decimal

import pytest

from distnet.core.build.errors import IdSpaceExhaustedError, PatternMismatchError
from distnet.core.build.ids import (
    MAX_FRACTIONAL_DEPTH,
    allocate_sibling_id,
    format_number,
    next_child_id,
    parse_sibling_id,
)
from distnet.core.models.pipe import Pipe


@pytest.mark.parametrize("reference, siblings, side, expected", [
    ("L3", ["L3", "L4"], "before", "L1.5"),
    ("L3", ["L1", "L3"], "after", "L4"),
    ("L3", ["L2", "L3"], "before", "L2.5"),
    ("L3", ["L3", "L4"], "after", "L3.5"),
    ("L3", ["L1", "L2", "L3"], "before", "L2.5"),
    ("S01-L1-T2", ["S01-L1-T1", "S01-L1-T2"], "before", "S01-L1-T1.5"),
    ("L1.5", ["L1", "L1.5", "L2"], "after", "L1.8"),
    ("T1", ["T1"], "before", "T0.5"),
])
def test_allocate(reference, siblings, side, expected):
    assert allocate_sibling_id(reference, siblings, side) == expected


def test_siblings_with_other_prefix_are_ignored():
    assert allocate_sibling_id("L3", ["T2", "S01-L2", "pump", "L3"], "before") == "L1.5"


def test_new_id_sorts_between_neighbours():
    siblings = ["L1", "L2", "L3"]
    new_id = allocate_sibling_id("L2", siblings, "after")

    _, new = parse_sibling_id(new_id)
    assert Decimal(2) < new < Decimal(3)
    assert new_id not in siblings


@pytest.mark.parametrize("bad", ["pump-A", "L", "X3", "L3a", ""])
def test_malformed_reference(bad):
    with pytest.raises(PatternMismatchError) as exc:
        allocate_sibling_id(bad, [bad], "after")
    assert exc.value.pipe_id == bad


def test_invalid_side():
    with pytest.raises(ValueError):
        allocate_sibling_id("L1", ["L1"], "middle")


def test_repeated_insertion_exhausts_one_decimal():
    siblings = ["L1", "L2"]
    reference = "L1"
    for _ in range(MAX_FRACTIONAL_DEPTH):
        new_id = allocate_sibling_id(reference, siblings, "after")
        siblings.append(new_id)
        reference = new_id

    assert siblings[2:] == ["L1.5", "L1.8", "L1.9"]
    with pytest.raises(IdSpaceExhaustedError) as exc:
        allocate_sibling_id(reference, siblings, "after")
    assert exc.value.reference_id == "L1.9"
    assert exc.value.candidate == "L2"


def test_exhaustion_before_small_number():
    with pytest.raises(IdSpaceExhaustedError):
        allocate_sibling_id("L0.1", ["L0.1"], "before")


@pytest.mark.parametrize("value, text", [
    (Decimal("2"), "2"),
    (Decimal("2.0"), "2"),
    (Decimal("1.25"), "1.3"),
    (Decimal("0.05"), "0.1"),
    (Decimal("3.5"), "3.5"),
])
def test_format_number(value, text):
    assert format_number(value) == text


class TestNextChildId:

    def test_first_child_uses_parent_prefix(self):
        assert next_child_id(Pipe("S01", "submain", axis="x"), "lateral") == "S01-L1"

    def test_appends_after_highest(self):
        parent = Pipe("S01", "submain", axis="x")
        for cid in ("S01-L1", "S01-L2.5", "S01-L2"):
            parent.add_child(Pipe(cid, "lateral"))

        assert next_child_id(parent, "lateral") == "S01-L3.5"

    def test_ignores_children_without_pattern(self):
        parent = Pipe("L1", "lateral")
        parent.add_child(Pipe("valve", "tool"))

        assert next_child_id(parent, "tool") == "L1-T1"
