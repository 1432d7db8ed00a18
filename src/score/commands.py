"""
Undoable score mutations.

Each command applies one structural change to a Score and knows how to revert
it. Commands are grouped into transactions by CommandHistory.
"""

import copy
from abc import ABC, abstractmethod
from typing import List, Optional

from .durations import TupletRatio
from .models import Element, Measure, Note, Score


def _measure_at(score: Score, track_index: int, measure_index: int) -> Measure:
    measure = score.measure(track_index, measure_index)
    if measure is None:
        raise IndexError(f"No measure {measure_index} in track {track_index}")
    return measure


def _element_at(score: Score, track_index: int, measure_index: int, element_id: str) -> Element:
    element = _measure_at(score, track_index, measure_index).find(element_id)
    if element is None:
        raise KeyError(f"Element {element_id} not found in measure {measure_index}")
    return element


class Command(ABC):
    """Abstract base class for score mutations."""

    @abstractmethod
    def execute(self, score: Score) -> None:
        """Apply the mutation to the score."""
        pass

    @abstractmethod
    def undo(self, score: Score) -> None:
        """Revert a previously executed mutation."""
        pass


class InsertElementCommand(Command):
    """
    Insert a copy of an element into a measure.

    Args:
        track_index: Target track
        measure_index: Target measure
        element: Element to insert (deep-copied)
        index: Position in the measure; None or out of range appends
    """

    def __init__(
        self,
        track_index: int,
        measure_index: int,
        element: Element,
        index: Optional[int] = None
    ):
        self.track_index = track_index
        self.measure_index = measure_index
        self.element = copy.deepcopy(element)
        self.index = index

    def execute(self, score: Score) -> None:
        measure = _measure_at(score, self.track_index, self.measure_index)
        element = copy.deepcopy(self.element)
        if self.index is not None and 0 <= self.index <= len(measure.elements):
            measure.elements.insert(self.index, element)
        else:
            measure.elements.append(element)

    def undo(self, score: Score) -> None:
        # Remove by id, not by index
        measure = _measure_at(score, self.track_index, self.measure_index)
        measure.elements = [e for e in measure.elements if e.id != self.element.id]


class DeleteElementCommand(Command):
    """Delete an element by id, remembering where it was."""

    def __init__(self, track_index: int, measure_index: int, element_id: str):
        self.track_index = track_index
        self.measure_index = measure_index
        self.element_id = element_id
        self._removed: Optional[Element] = None
        self._index: Optional[int] = None

    def execute(self, score: Score) -> None:
        measure = _measure_at(score, self.track_index, self.measure_index)
        index = measure.index_of(self.element_id)
        if index is None:
            raise KeyError(f"Element {self.element_id} not found in measure {self.measure_index}")
        self._index = index
        self._removed = measure.elements.pop(index)

    def undo(self, score: Score) -> None:
        if self._removed is None:
            return
        measure = _measure_at(score, self.track_index, self.measure_index)
        measure.elements.insert(self._index, self._removed)
        self._removed = None


class AddMeasureCommand(Command):
    """Append an empty measure to every track, keeping tracks aligned."""

    def __init__(self):
        self._added_ids = []

    def execute(self, score: Score) -> None:
        self._added_ids = []
        for track in score.tracks:
            measure = Measure()
            track.measures.append(measure)
            self._added_ids.append(measure.id)

    def undo(self, score: Score) -> None:
        for track, measure_id in zip(score.tracks, self._added_ids):
            if track.measures and track.measures[-1].id == measure_id:
                track.measures.pop()
        self._added_ids = []


class AddNoteCommand(Command):
    """Add a copy of a note to an existing chord."""

    def __init__(self, track_index: int, measure_index: int, element_id: str, note: Note):
        self.track_index = track_index
        self.measure_index = measure_index
        self.element_id = element_id
        self.note = copy.deepcopy(note)

    def execute(self, score: Score) -> None:
        element = _element_at(score, self.track_index, self.measure_index, self.element_id)
        if element.is_rest:
            raise ValueError("Cannot add a note to a rest")
        element.notes.append(copy.deepcopy(self.note))

    def undo(self, score: Score) -> None:
        element = _element_at(score, self.track_index, self.measure_index, self.element_id)
        element.notes = [n for n in element.notes if n.id != self.note.id]


class SetTieCommand(Command):
    """Set the tie flag of one note, remembering the previous flag."""

    def __init__(self, track_index: int, measure_index: int, element_id: str, note_id: str, tied: bool):
        self.track_index = track_index
        self.measure_index = measure_index
        self.element_id = element_id
        self.note_id = note_id
        self.tied = tied
        self._previous: Optional[bool] = None

    def _note(self, score: Score) -> Note:
        element = _element_at(score, self.track_index, self.measure_index, self.element_id)
        note = element.find_note(self.note_id)
        if note is None:
            raise KeyError(f"Note {self.note_id} not found in element {self.element_id}")
        return note

    def execute(self, score: Score) -> None:
        note = self._note(score)
        self._previous = note.tied
        note.tied = self.tied

    def undo(self, score: Score) -> None:
        if self._previous is None:
            return
        self._note(score).tied = self._previous
        self._previous = None


class SetTupletCommand(Command):
    """
    Set or clear the tuplet of a group of elements.

    Args:
        track_index: Target track
        measure_index: Target measure
        element_ids: Elements to change
        tuplet: Ratio to apply, or None to clear
        group: Group id shared by the elements (None when clearing)
    """

    def __init__(
        self,
        track_index: int,
        measure_index: int,
        element_ids: List[str],
        tuplet: Optional[TupletRatio],
        group: Optional[str] = None
    ):
        self.track_index = track_index
        self.measure_index = measure_index
        self.element_ids = list(element_ids)
        self.tuplet = tuplet
        self.group = group
        self._previous = []

    def execute(self, score: Score) -> None:
        elements = [
            _element_at(score, self.track_index, self.measure_index, element_id)
            for element_id in self.element_ids
        ]
        self._previous = [(e.id, e.tuplet, e.tuplet_group) for e in elements]
        for element in elements:
            element.tuplet = self.tuplet
            element.tuplet_group = self.group

    def undo(self, score: Score) -> None:
        for element_id, tuplet, group in self._previous:
            element = _element_at(score, self.track_index, self.measure_index, element_id)
            element.tuplet = tuplet
            element.tuplet_group = group
        self._previous = []
