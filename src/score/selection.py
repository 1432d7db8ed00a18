"""
Edit cursor for a score.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    """
    Position where the next element will be entered.

    Attributes:
        track_index: Track (staff) index
        measure_index: Measure index, or None when nothing is selected
        element_id: Selected element, or None to append after the last element
        note_id: Selected note within the element, if any
    """
    track_index: int = 0
    measure_index: Optional[int] = None
    element_id: Optional[str] = None
    note_id: Optional[str] = None

    @property
    def is_append(self) -> bool:
        return self.element_id is None


class SelectionStore:
    """
    Holds the current cursor and remembers every cursor it was given.

    The history makes intermediate cursors of a multi-fragment insertion
    observable.
    """

    def __init__(self, cursor: Optional[Cursor] = None):
        self._cursor = cursor or Cursor()
        self.history: List[Cursor] = []

    def current(self) -> Cursor:
        return self._cursor

    def set(self, cursor: Cursor) -> None:
        logger.debug(f"Cursor -> {cursor}")
        self._cursor = cursor
        self.history.append(cursor)

    def select(
        self,
        track_index: int,
        measure_index: Optional[int],
        element_id: Optional[str] = None,
        note_id: Optional[str] = None
    ) -> None:
        self.set(Cursor(track_index, measure_index, element_id, note_id))
