"""
Tests for capacity and overlap planning.
"""

import pytest
from src.score import Element, Measure
from src.entry.errors import StructureError
from src.entry.planner import (
    element_offsets,
    insertion_index,
    overwrite_plan,
    remaining_capacity,
    snapshot_index,
    start_quant_for,
)


def quarters(*names):
    return [Element.chord(f"{name}4", 'quarter', id=name) for name in names]


class TestStartQuant:
    """Test where an insertion starts."""

    def test_first_element(self):
        """Test the first element starts at zero."""
        measure = Measure(elements=quarters('C', 'D'))
        assert start_quant_for(measure, 'C') == 0

    def test_second_element(self):
        """Test the second element starts after the first."""
        measure = Measure(elements=quarters('C', 'D'))
        assert start_quant_for(measure, 'D') == 16

    def test_after_dotted_element(self):
        """Test start after a dotted element."""
        measure = Measure(elements=[
            Element.chord('C4', 'quarter', dotted=True, id='C'),
            Element.chord('D4', 'quarter', id='D'),
        ])
        assert start_quant_for(measure, 'D') == 24

    def test_append(self):
        """Test appending starts at the measure total."""
        measure = Measure(elements=quarters('C', 'D', 'E'))
        assert start_quant_for(measure, None) == 48

    def test_append_empty(self):
        """Test appending to an empty measure starts at zero."""
        assert start_quant_for(Measure(), None) == 0

    def test_unknown_element_is_a_structure_error(self):
        """Test an anchor that is not in the measure is rejected."""
        measure = Measure(elements=quarters('C'))
        with pytest.raises(StructureError, match="Element missing not found"):
            start_quant_for(measure, 'missing')


class TestRemainingCapacity:
    """Test room left before the barline."""

    def test_full(self):
        """Test an empty measure has full capacity."""
        assert remaining_capacity(64, 0) == 64

    def test_midpoint(self):
        """Test remaining capacity at the midpoint."""
        assert remaining_capacity(64, 32) == 32

    def test_at_capacity(self):
        """Test no room at capacity."""
        assert remaining_capacity(64, 64) == 0

    def test_past_capacity_clamps(self):
        """Test remaining capacity never goes negative."""
        assert remaining_capacity(64, 80) == 0

    def test_three_four(self):
        """Test remaining capacity in 3/4."""
        assert remaining_capacity(48, 0) == 48


class TestOverwritePlan:
    """Test overlap detection."""

    def test_single_overlap(self):
        """Test a single overlapping element."""
        plan = overwrite_plan(quarters('C', 'D', 'E'), 16, 16)
        assert plan.to_remove == ['D']

    def test_multiple_overlaps(self):
        """Test several overlapping elements."""
        plan = overwrite_plan(quarters('C', 'D', 'E', 'F'), 16, 32)
        assert plan.to_remove == ['D', 'E']
        assert len(plan) == 2

    def test_adjacent_not_removed(self):
        """Test adjacent elements are kept."""
        plan = overwrite_plan(quarters('C', 'D'), 0, 16)
        assert plan.to_remove == ['C']

    def test_partial_overlap_removes_whole_element(self):
        """Test a partial overlap removes the whole element."""
        elements = [
            Element.chord('C4', 'half', id='C'),     # 0-32
            Element.chord('D4', 'quarter', id='D'),  # 32-48
        ]
        assert overwrite_plan(elements, 16, 16).to_remove == ['C']

    def test_insert_starting_mid_element(self):
        """Test an insert starting mid-element removes it."""
        elements = [
            Element.chord('C4', 'quarter', id='C'),  # 0-16
            Element.chord('D4', 'half', id='D'),     # 16-48
        ]
        assert overwrite_plan(elements, 24, 16).to_remove == ['D']

    def test_short_insert_inside_long_element(self):
        """Test a short insert inside a long element removes it."""
        elements = [Element.chord('C4', 'whole', id='C')]
        assert overwrite_plan(elements, 16, 4).to_remove == ['C']

    def test_no_overlap(self):
        """Test no overlap yields an empty plan."""
        plan = overwrite_plan(quarters('C'), 32, 16)
        assert plan.to_remove == []
        assert not plan

    def test_empty_measure(self):
        """Test an empty measure yields an empty plan."""
        assert overwrite_plan([], 0, 16).to_remove == []


class TestOffsetsAndIndices:
    """Test offset and index scanning helpers."""

    def test_offsets(self):
        """Test element start offsets."""
        elements = [
            Element.rest('eighth'),
            Element.rest('quarter', dotted=True),
            Element.rest('quarter'),
        ]
        assert element_offsets(elements) == [0, 8, 32]

    def test_offsets_are_ints(self):
        """Test offsets are plain ints."""
        assert all(type(o) is int for o in element_offsets(quarters('C', 'D')))

    def test_offsets_empty(self):
        """Test offsets of an empty list."""
        assert element_offsets([]) == []

    @pytest.mark.parametrize("target,expected", [
        (0, (0, 0)),
        (16, (1, 16)),
        (32, (2, 32)),
        (48, (3, 48)),
        (80, (3, 48)),
    ])
    def test_insertion_index(self, target, expected):
        """Test insertion index lookup."""
        assert insertion_index(quarters('C', 'D', 'E'), target) == expected

    def test_insertion_index_overshoots_inside_element(self):
        """Test a target inside an element overshoots to its end."""
        elements = [Element.rest('half')]
        assert insertion_index(elements, 16) == (1, 32)

    @pytest.mark.parametrize("quant,expected", [(0, 0), (16, 1), (20, 2), (48, 3)])
    def test_snapshot_index(self, quant, expected):
        """Test snapshot index lookup."""
        assert snapshot_index(quarters('C', 'D', 'E'), quant) == expected
