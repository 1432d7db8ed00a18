"""
Tests for quant arithmetic.
"""

import pytest
from src.score.durations import (
    BREAKDOWN_TABLE,
    FractionalQuantError,
    NoteValue,
    TupletRatio,
    breakdown,
    length_of,
    measure_capacity,
)


class TestLengthOf:
    """Test note value to quant conversion."""

    @pytest.mark.parametrize("value,expected", [
        ('whole', 64),
        ('half', 32),
        ('quarter', 16),
        ('eighth', 8),
        ('sixteenth', 4),
        ('thirtysecond', 2),
        ('sixtyfourth', 1),
    ])
    def test_plain_values(self, value, expected):
        """Test each value doubles the next smaller one."""
        assert length_of(value) == expected

    def test_accepts_enum(self):
        """Test NoteValue members are accepted."""
        assert length_of(NoteValue.HALF) == 32

    def test_dotted(self):
        """Test dotted values are 1.5x."""
        assert length_of('quarter', dotted=True) == 24
        assert length_of('whole', dotted=True) == 96
        assert length_of('thirtysecond', dotted=True) == 3

    def test_dotted_sixtyfourth_is_fractional(self):
        """Test fractional lengths fail instead of rounding."""
        with pytest.raises(FractionalQuantError, match="not a whole number"):
            length_of('sixtyfourth', dotted=True)

    def test_tuplet_scales_by_ratio(self):
        """Test a 2:3 duplet stretches each note by 3/2."""
        assert length_of('quarter', tuplet=TupletRatio(2, 3)) == 24

    def test_triplet_of_quarter_is_fractional(self):
        """Test a triplet quarter (16 * 2/3) is rejected."""
        with pytest.raises(FractionalQuantError):
            length_of('quarter', tuplet=TupletRatio(3, 2))

    def test_fractional_error_is_value_error(self):
        """Test FractionalQuantError can be caught as ValueError."""
        with pytest.raises(ValueError):
            length_of('eighth', tuplet=TupletRatio(3, 2))

    def test_unknown_value(self):
        """Test unknown value names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown note value"):
            length_of('breve')

    def test_invalid_tuplet_ratio(self):
        """Test non-positive tuplet ratios are rejected."""
        with pytest.raises(ValueError, match="Invalid tuplet ratio"):
            TupletRatio(0, 2)


class TestBreakdown:
    """Test greedy quant decomposition."""

    def test_zero_is_empty(self):
        """Test zero quants yield no fragments."""
        assert breakdown(0) == []

    def test_negative_raises(self):
        """Test negative quants are rejected."""
        with pytest.raises(ValueError, match="Invalid quant count"):
            breakdown(-1)

    def test_single_value(self):
        """Test an exact value yields one fragment."""
        parts = breakdown(16)
        assert len(parts) == 1
        assert parts[0].value == NoteValue.QUARTER
        assert parts[0].dotted is False

    def test_prefers_dotted_value(self):
        """Test 48 quants becomes one dotted half, not half + quarter."""
        parts = breakdown(48)
        assert [(p.value, p.dotted) for p in parts] == [(NoteValue.HALF, True)]

    def test_largest_first(self):
        """Test fragments come out largest first."""
        parts = breakdown(80)
        assert [(p.value, p.dotted) for p in parts] == [
            (NoteValue.WHOLE, False),
            (NoteValue.QUARTER, False),
        ]

    def test_odd_count(self):
        """Test an odd count ends with a sixtyfourth."""
        parts = breakdown(7)
        assert [p.quants for p in parts] == [6, 1]

    def test_sum_matches_input(self):
        """Test every breakdown sums back to its input."""
        for quants in range(1, 257):
            parts = breakdown(quants)
            assert sum(p.quants for p in parts) == quants
            assert sum(length_of(p.value, p.dotted) for p in parts) == quants

    def test_non_increasing(self):
        """Test fragment lengths never grow."""
        for quants in range(1, 129):
            lengths = [p.quants for p in breakdown(quants)]
            assert lengths == sorted(lengths, reverse=True)

    def test_table_matches_length_of(self):
        """Test the lookup table agrees with length_of."""
        for fragment in BREAKDOWN_TABLE:
            assert length_of(fragment.value, fragment.dotted) == fragment.quants


class TestMeasureCapacity:
    """Test capacity from time signature."""

    @pytest.mark.parametrize("signature,expected", [
        ('4/4', 64),
        ('3/4', 48),
        ('2/4', 32),
        ('6/8', 48),
        ('5/4', 80),
        ((2, 2), 64),
    ])
    def test_capacity(self, signature, expected):
        """Test capacity per time signature."""
        assert measure_capacity(signature) == expected

    @pytest.mark.parametrize("signature", ['4', '0/4', '4/0', 'x/y', (3, 128)])
    def test_invalid(self, signature):
        """Test invalid time signatures are rejected."""
        with pytest.raises(ValueError, match="Invalid time_signature"):
            measure_capacity(signature)
