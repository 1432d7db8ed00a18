"""
Cursor resolution after an insertion.

Cursors are always resolved against the measure as it was before the current
fragment was placed. The live element list has already lost overwritten
elements and gained the new one, so indices into it do not line up with the
planning step.
"""

from typing import AbstractSet, Optional, Sequence

from src.score.models import Element
from src.score.selection import Cursor


def next_surviving_element(
    snapshot: Sequence[Element],
    from_index: int,
    deleted_ids: AbstractSet[str]
) -> Optional[Element]:
    """
    Find the first snapshot element at or after from_index that was not deleted.

    Args:
        snapshot: Elements of the measure before mutation
        from_index: Snapshot index to start scanning from
        deleted_ids: Ids removed by overwriting

    Returns:
        The surviving element, or None when the cursor should append
    """
    for element in snapshot[max(0, from_index):]:
        if element.id not in deleted_ids:
            return element
    return None


def resolve_cursor(
    track_index: int,
    measure_index: int,
    snapshot: Sequence[Element],
    from_index: int,
    deleted_ids: AbstractSet[str]
) -> Cursor:
    """Build the cursor that follows an insertion in the given measure."""
    element = next_surviving_element(snapshot, from_index, deleted_ids)
    return Cursor(
        track_index=track_index,
        measure_index=measure_index,
        element_id=element.id if element is not None else None
    )
