"""
Capacity and overlap planning for one measure.

Pure functions over a measure's element list: where an insertion starts, how
much room is left before the barline, and which elements a range overwrites.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from src.score.models import Element, Measure
from .errors import StructureError


@dataclass
class OverwritePlan:
    """
    Elements displaced by a proposed insertion range.

    Attributes:
        to_remove: Ids of overlapping elements, left to right
    """
    to_remove: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.to_remove)

    def __len__(self) -> int:
        return len(self.to_remove)


def element_lengths(elements: Sequence[Element]) -> np.ndarray:
    return np.array([element.quants for element in elements], dtype=np.int64)


def element_offsets(elements: Sequence[Element]) -> List[int]:
    """Local start quant of every element."""
    lengths = element_lengths(elements)
    if len(lengths) == 0:
        return []
    starts = np.concatenate(([0], np.cumsum(lengths)[:-1]))
    return [int(start) for start in starts]


def start_quant_for(measure: Measure, element_id: Optional[str]) -> int:
    """
    Find where an insertion anchored at an element starts.

    Args:
        measure: Measure to search
        element_id: Anchor element, or None to append

    Returns:
        Start quant of the anchor element, or the occupied length of the
        measure when appending

    Raises:
        StructureError: If the anchor element is not in this measure
    """
    if element_id is None:
        return measure.total_quants
    index = measure.index_of(element_id)
    if index is None:
        raise StructureError(
            f"Element {element_id} not found in measure",
            element_id=element_id
        )
    return element_offsets(measure.elements)[index]


def remaining_capacity(capacity: int, start_quant: int) -> int:
    """Quants left between start_quant and the barline, never negative."""
    return max(0, capacity - start_quant)


def overwrite_plan(elements: Sequence[Element], start_quant: int, length: int) -> OverwritePlan:
    """
    Identify elements that conflict with a proposed insertion range.

    Any element intersecting [start_quant, start_quant + length) is removed
    whole, however little of it overlaps.

    Args:
        elements: Elements of the measure (a snapshot)
        start_quant: Start of the new element
        length: Length of the new element in quants

    Returns:
        Plan listing the elements to remove
    """
    if not elements:
        return OverwritePlan()

    lengths = element_lengths(elements)
    ends = np.cumsum(lengths)
    starts = ends - lengths
    end_quant = start_quant + length

    overlapping = (starts < end_quant) & (ends > start_quant)
    return OverwritePlan(
        to_remove=[elements[i].id for i in np.flatnonzero(overlapping)]
    )


def insertion_index(elements: Sequence[Element], target_quant: int) -> Tuple[int, int]:
    """
    Scan elements until the target quant is reached.

    Returns:
        (index, scanned_quant): the list position for a new element and the
        quant position reached; scanned_quant < target_quant means a gap
    """
    index = 0
    scanned = 0
    while index < len(elements) and scanned < target_quant:
        scanned += elements[index].quants
        index += 1
    return index, scanned


def snapshot_index(elements: Sequence[Element], quant: int) -> int:
    """Index of the first element starting at or after quant."""
    for index, start in enumerate(element_offsets(elements)):
        if start >= quant:
            return index
    return len(elements)
