"""
Quant arithmetic for symbolic note values.

Converts note values (with dot and tuplet modifiers) to integer quant counts
and decomposes quant counts back into canonical note values.
"""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import List, Optional, Tuple, Union


QUANTS_PER_WHOLE = 64


class FractionalQuantError(ValueError):
    """Raised when a duration does not resolve to a whole number of quants."""


class NoteValue(Enum):
    """Symbolic note values, largest first."""
    WHOLE = "whole"
    HALF = "half"
    QUARTER = "quarter"
    EIGHTH = "eighth"
    SIXTEENTH = "sixteenth"
    THIRTYSECOND = "thirtysecond"
    SIXTYFOURTH = "sixtyfourth"

    @property
    def quants(self) -> int:
        """Undotted length in quants."""
        return _BASE_QUANTS[self]

    @classmethod
    def parse(cls, value: Union[str, 'NoteValue']) -> 'NoteValue':
        """Accept either a NoteValue or its string name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown note value: {value!r}") from None


_BASE_QUANTS = {
    NoteValue.WHOLE: 64,
    NoteValue.HALF: 32,
    NoteValue.QUARTER: 16,
    NoteValue.EIGHTH: 8,
    NoteValue.SIXTEENTH: 4,
    NoteValue.THIRTYSECOND: 2,
    NoteValue.SIXTYFOURTH: 1,
}


@dataclass(frozen=True)
class TupletRatio:
    """
    Tuplet ratio n:m, meaning n notes in the space of m.

    A triplet is TupletRatio(3, 2): each note lasts 2/3 of its written value.
    """
    actual: int
    normal: int

    def __post_init__(self):
        if self.actual <= 0 or self.normal <= 0:
            raise ValueError(f"Invalid tuplet ratio: {self.actual}:{self.normal}")


@dataclass(frozen=True)
class Fragment:
    """One piece of a breakdown: a note value, its dot flag and its length."""
    value: NoteValue
    dotted: bool
    quants: int


# Greedy order: every representable length, longest first. Dotted values sit
# between their plain value and the next smaller one.
BREAKDOWN_TABLE: Tuple[Fragment, ...] = (
    Fragment(NoteValue.WHOLE, False, 64),
    Fragment(NoteValue.HALF, True, 48),
    Fragment(NoteValue.HALF, False, 32),
    Fragment(NoteValue.QUARTER, True, 24),
    Fragment(NoteValue.QUARTER, False, 16),
    Fragment(NoteValue.EIGHTH, True, 12),
    Fragment(NoteValue.EIGHTH, False, 8),
    Fragment(NoteValue.SIXTEENTH, True, 6),
    Fragment(NoteValue.SIXTEENTH, False, 4),
    Fragment(NoteValue.THIRTYSECOND, True, 3),
    Fragment(NoteValue.THIRTYSECOND, False, 2),
    Fragment(NoteValue.SIXTYFOURTH, False, 1),
)


def length_of(
    value: Union[str, NoteValue],
    dotted: bool = False,
    tuplet: Optional[TupletRatio] = None
) -> int:
    """
    Calculate the length of a note value in quants.

    Args:
        value: Note value (enum member or name such as 'quarter')
        dotted: Whether the value is dotted (x1.5)
        tuplet: Optional tuplet ratio scaling the length by normal/actual

    Returns:
        Length in quants

    Raises:
        FractionalQuantError: If the result is not a whole number of quants
    """
    note_value = NoteValue.parse(value)
    length = Fraction(note_value.quants)
    if dotted:
        length *= Fraction(3, 2)
    if tuplet is not None:
        length = length * tuplet.normal / tuplet.actual

    if length.denominator != 1:
        suffix = f" ({tuplet.actual}:{tuplet.normal})" if tuplet else ""
        raise FractionalQuantError(
            f"{'dotted ' if dotted else ''}{note_value.value}{suffix} "
            f"is {length} quants, not a whole number"
        )
    return int(length)


def breakdown(quants: int) -> List[Fragment]:
    """
    Decompose a quant count into note values, largest first.

    Args:
        quants: Non-negative number of quants

    Returns:
        Fragments whose lengths sum to quants (empty for 0)
    """
    if quants < 0:
        raise ValueError(f"Invalid quant count: {quants}. Must be >= 0.")

    remaining = quants
    parts = []
    for option in BREAKDOWN_TABLE:
        while remaining >= option.quants:
            parts.append(option)
            remaining -= option.quants
        if remaining == 0:
            break
    return parts


def measure_capacity(time_signature: Union[str, Tuple[int, int]]) -> int:
    """
    Calculate the capacity of one measure in quants.

    Args:
        time_signature: '3/4' style string or (numerator, denominator) tuple

    Returns:
        Quants per measure
    """
    if isinstance(time_signature, str):
        try:
            numerator, denominator = (int(x) for x in time_signature.split('/'))
        except ValueError:
            raise ValueError(f"Invalid time_signature: {time_signature!r}") from None
    else:
        if len(time_signature) != 2:
            raise ValueError(f"Invalid time_signature: {time_signature}")
        numerator, denominator = time_signature

    if numerator <= 0 or denominator <= 0:
        raise ValueError(f"Invalid time_signature: {time_signature}")
    if (numerator * QUANTS_PER_WHOLE) % denominator:
        raise ValueError(
            f"Invalid time_signature: {time_signature}. "
            f"Measure length is not a whole number of quants."
        )
    return numerator * QUANTS_PER_WHOLE // denominator
