"""
Gap filling between the last element and an insertion point.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from src.score.durations import Fragment, breakdown
from src.score.models import Element, new_id
from .planner import insertion_index


@dataclass
class GapFill:
    """
    Where to insert and which rests bridge the gap before it.

    Attributes:
        index: Insertion index reached while scanning
        fragments: Rest values to insert before the new element (may be empty)
    """
    index: int
    fragments: List[Fragment] = field(default_factory=list)

    @property
    def quants(self) -> int:
        return sum(fragment.quants for fragment in self.fragments)


def gap_fillers(elements: Sequence[Element], target_quant: int) -> GapFill:
    """
    Compute the filler rests needed to reach target_quant.

    Insertion points are normally anchored to element starts, so the scan
    usually lands exactly on the target and no filler is needed.

    Args:
        elements: Current elements of the measure
        target_quant: Quant where the new element must start

    Returns:
        GapFill with the insertion index and filler rest values
    """
    index, scanned = insertion_index(elements, target_quant)
    if scanned < target_quant:
        return GapFill(index=index, fragments=breakdown(target_quant - scanned))
    return GapFill(index=index)


def make_filler_rests(
    fragments: Sequence[Fragment],
    id_factory: Callable[[str], str] = new_id
) -> List[Element]:
    """Materialize filler fragments as rest elements."""
    return [
        Element.rest(fragment.value, fragment.dotted, id=id_factory('evt'))
        for fragment in fragments
    ]
