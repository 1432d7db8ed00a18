"""
Entry API: the caller-facing surface for entering notes and rests.

Wraps InsertionEngine so that every call produces an EntryResult instead of
raising, the way an editor front end reports status to its user.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Union

from src.score.commands import AddNoteCommand, SetTieCommand, SetTupletCommand
from src.score.durations import FractionalQuantError, TupletRatio, length_of
from src.score.history import CommandHistory
from src.score.models import Element, Measure, Note, Score, new_id
from src.score.selection import Cursor, SelectionStore
from .config import EntryConfig
from .engine import EntryMode, InsertionEngine, InsertionRequest
from .errors import EntryError, InvalidPitchError, StructureError
from .validation import validate_pitch


@dataclass
class EntryResult:
    """
    Outcome of one API call.

    Attributes:
        ok: True if the call succeeded
        status: 'info', 'warning' or 'error'
        method: API method name
        message: Human-readable summary
        code: Error code (errors only)
        details: Extra data (pitch, warnings, info, ...)
    """
    ok: bool
    status: str
    method: str
    message: str
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class EntryAPI:
    """
    Note entry session over one score.

    Args:
        score: Score to edit (an empty score from config when None)
        config: Entry configuration
    """

    def __init__(self, score: Optional[Score] = None, config: Optional[EntryConfig] = None):
        self.config = config or EntryConfig()
        if score is None:
            score = Score.empty(
                measures=self.config.initial_measures,
                tracks=self.config.track_count,
                time_signature=self.config.time_signature_tuple
            )
        self.history = CommandHistory(score)
        self.selection = SelectionStore()
        self.engine = InsertionEngine(self.history, self.selection, self.config)
        self.logger = logging.getLogger(__name__)
        self.result: Optional[EntryResult] = None
        self.has_error = False

    @property
    def score(self) -> Score:
        return self.history.score

    @property
    def cursor(self) -> Cursor:
        return self.selection.current()

    def add_note(
        self,
        pitch: Union[str, Sequence[str]],
        value: str = 'quarter',
        dotted: bool = False,
        mode: Optional[str] = None
    ) -> EntryResult:
        """Enter a note or chord at the cursor."""
        try:
            request = InsertionRequest.note(pitch, value, dotted, mode)
        except ValueError as e:
            return self._fail('add_note', str(e), 'ADD_NOTE_FAILED')
        return self._insert('add_note', request, f"Added note {self._pitch_label(pitch)}")

    def add_rest(self, value: str = 'quarter', dotted: bool = False, mode: Optional[str] = None) -> EntryResult:
        """Enter a rest at the cursor."""
        try:
            request = InsertionRequest.rest(value, dotted, mode)
        except ValueError as e:
            return self._fail('add_rest', str(e), 'ADD_REST_FAILED')
        return self._insert('add_rest', request, "Added rest")

    def select(
        self,
        track_index: int = 0,
        measure_index: Optional[int] = None,
        element_index: Optional[int] = None,
        note_index: Optional[int] = None
    ) -> EntryResult:
        """
        Move the cursor.

        Args:
            track_index: Track to select
            measure_index: Measure to select (None clears the selection)
            element_index: Element within the measure (None appends)
            note_index: Note within the selected chord
        """
        if measure_index is None:
            self.selection.set(Cursor(track_index, None, None))
            return self._ok('select', "Selection cleared")

        measure = self.score.measure(track_index, measure_index)
        if measure is None:
            return self._fail(
                'select',
                f"Measure {measure_index} not found in track {track_index}",
                'INVALID_SELECTION'
            )
        element_id = None
        if element_index is not None:
            if not 0 <= element_index < len(measure.elements):
                return self._fail(
                    'select',
                    f"Event {element_index} not found in measure {measure_index}",
                    'INVALID_SELECTION'
                )
            element_id = measure.elements[element_index].id
        note_id = None
        if note_index is not None:
            notes = measure.elements[element_index].notes if element_id is not None else []
            if not 0 <= note_index < len(notes):
                return self._fail(
                    'select',
                    f"Note {note_index} not found in event {element_index}",
                    'INVALID_SELECTION'
                )
            note_id = notes[note_index].id
        self.selection.set(Cursor(track_index, measure_index, element_id, note_id))
        return self._ok('select', f"Selected measure {measure_index + 1}")

    def add_tone(self, pitch: str) -> EntryResult:
        """Add a pitch to the selected chord and select the new note."""
        try:
            pitch = validate_pitch(pitch)
        except InvalidPitchError as e:
            return self._fail('add_tone', str(e), e.code, e.details)

        cursor = self.cursor
        if cursor.measure_index is None or cursor.element_id is None:
            return self._fail('add_tone', "No event selected to add tone to", 'NO_SELECTION')
        element = self._selected_element('add_tone')
        if isinstance(element, EntryResult):
            return element
        if element.is_rest:
            return self._fail('add_tone', "Cannot add a tone to a rest", 'ADD_TONE_FAILED')

        note = Note(pitch=pitch)
        self.history.dispatch(
            AddNoteCommand(cursor.track_index, cursor.measure_index, element.id, note)
        )
        self.selection.set(replace(cursor, note_id=note.id))
        return self._ok(
            'add_tone',
            f"Added tone {pitch} to chord",
            {'pitch': pitch, 'element_id': element.id}
        )

    def make_tuplet(self, num_notes: int = 3, in_space_of: int = 2) -> EntryResult:
        """
        Group elements into a tuplet, starting at the selected element.

        Args:
            num_notes: Number of elements in the group (n of n:m)
            in_space_of: Number of written values they take the time of (m)
        """
        cursor = self.cursor
        if cursor.measure_index is None or cursor.element_id is None:
            return self._fail('make_tuplet', "No selection to make tuplet from", 'NO_SELECTION')
        try:
            ratio = TupletRatio(num_notes, in_space_of)
        except ValueError as e:
            return self._fail('make_tuplet', str(e), 'INVALID_TUPLET')

        measure = self._selected_measure('make_tuplet')
        if isinstance(measure, EntryResult):
            return measure
        index = measure.index_of(cursor.element_id)
        if index is None:
            return self._fail('make_tuplet', "Event not found", 'EVENT_NOT_FOUND')

        targets = measure.elements[index:index + num_notes]
        if len(targets) < num_notes:
            return self._fail(
                'make_tuplet',
                f"Not enough events (need {num_notes}, have {len(targets)})",
                'INSUFFICIENT_EVENTS'
            )
        if any(element.tuplet is not None for element in targets):
            return self._fail(
                'make_tuplet',
                "Target events already contain a tuplet",
                'NESTED_TUPLET_NOT_SUPPORTED'
            )
        try:
            for element in targets:
                length_of(element.value, element.dotted, ratio)
        except FractionalQuantError as e:
            return self._fail('make_tuplet', str(e), 'INVALID_TUPLET')

        group = new_id('tup')
        self.history.dispatch(SetTupletCommand(
            cursor.track_index,
            cursor.measure_index,
            [element.id for element in targets],
            ratio,
            group
        ))
        return self._edited(
            'make_tuplet',
            f"Created {num_notes}:{in_space_of} tuplet",
            measure,
            {
                'num_notes': num_notes,
                'in_space_of': in_space_of,
                'measure_index': cursor.measure_index,
                'group': group,
            }
        )

    def unmake_tuplet(self) -> EntryResult:
        """Remove the tuplet the selected element belongs to."""
        cursor = self.cursor
        if cursor.measure_index is None or cursor.element_id is None:
            return self._fail('unmake_tuplet', "No selection", 'NO_SELECTION')
        measure = self._selected_measure('unmake_tuplet')
        if isinstance(measure, EntryResult):
            return measure

        element = measure.find(cursor.element_id)
        if element is None or element.tuplet is None:
            self.result = EntryResult(
                ok=True,
                status='warning',
                method='unmake_tuplet',
                message="Selected event is not part of a tuplet",
                code='NOT_A_TUPLET'
            )
            return self.result

        if element.tuplet_group is None:
            members = [element.id]
        else:
            members = [e.id for e in measure.elements if e.tuplet_group == element.tuplet_group]
        self.history.dispatch(
            SetTupletCommand(cursor.track_index, cursor.measure_index, members, None)
        )
        return self._edited(
            'unmake_tuplet',
            "Removed tuplet",
            measure,
            {'measure_index': cursor.measure_index}
        )

    def toggle_tie(self) -> EntryResult:
        """Flip the tie of the selected note."""
        note = self._selected_note('toggle_tie')
        if isinstance(note, EntryResult):
            return note
        tied = not note.tied
        self._dispatch_tie(tied)
        return self._ok(
            'toggle_tie',
            f"Tie {'added' if tied else 'removed'}",
            {'tied': tied, 'note_id': note.id}
        )

    def set_tie(self, tied: bool) -> EntryResult:
        """Set the tie of the selected note."""
        note = self._selected_note('set_tie')
        if isinstance(note, EntryResult):
            return note
        self._dispatch_tie(tied)
        return self._ok('set_tie', f"Tie set to {tied}", {'tied': tied, 'note_id': note.id})

    def set_input_mode(self, mode: Union[str, EntryMode]) -> EntryResult:
        """Change the default entry mode for later insertions."""
        try:
            mode = EntryMode.parse(mode)
        except ValueError as e:
            return self._fail('set_input_mode', str(e), 'INVALID_MODE')
        self.config = replace(self.config, default_mode=mode.value)
        self.engine.config = self.config
        return self._ok('set_input_mode', f"Input mode set to {mode.value}", {'mode': mode.value})

    def undo(self) -> EntryResult:
        if not self.history.undo():
            return self._ok('undo', "Nothing to undo")
        self._repair_cursor()
        return self._ok('undo', "Undone")

    def redo(self) -> EntryResult:
        if not self.history.redo():
            return self._ok('redo', "Nothing to redo")
        self._repair_cursor()
        return self._ok('redo', "Redone")

    def clear_status(self) -> EntryResult:
        self.has_error = False
        return self._ok('clear_status', "Status cleared")

    def _insert(self, method: str, request: InsertionRequest, message: str) -> EntryResult:
        code = 'ADD_REST_FAILED' if request.is_rest else 'ADD_NOTE_FAILED'
        try:
            feedback = self.engine.insert(request)
        except EntryError as e:
            error_code = code if isinstance(e, StructureError) else e.code
            return self._fail(method, str(e), error_code, e.details)
        except (FractionalQuantError, IndexError, KeyError) as e:
            return self._fail(method, str(e), code)

        details = {
            'value': request.value.value,
            'dotted': request.dotted,
            'warnings': feedback.warnings,
            'info': feedback.info,
            'placed': feedback.placed,
        }
        if not request.is_rest:
            details['pitches'] = list(request.pitches)
        result = EntryResult(
            ok=True,
            status='warning' if feedback.warnings else 'info',
            method=method,
            message=message,
            details=details
        )
        self.result = result
        return result

    def _ok(self, method: str, message: str, details: Optional[Dict[str, Any]] = None) -> EntryResult:
        self.result = EntryResult(
            ok=True,
            status='info',
            method=method,
            message=message,
            details=dict(details or {})
        )
        return self.result

    def _edited(self, method: str, message: str, measure: Measure, details: Dict[str, Any]) -> EntryResult:
        """Report an edit that changed element lengths, flagging an overfull measure."""
        warnings = []
        excess = measure.total_quants - self.score.capacity
        if excess > 0:
            warnings.append(
                f"Measure {self.cursor.measure_index + 1} exceeds capacity by {excess} quant(s)"
            )
            self.logger.warning(warnings[-1])
        self.result = EntryResult(
            ok=True,
            status='warning' if warnings else 'info',
            method=method,
            message=message,
            details=dict(details, warnings=warnings)
        )
        return self.result

    def _selected_measure(self, method: str) -> Union[Measure, EntryResult]:
        cursor = self.cursor
        measure = self.score.measure(cursor.track_index, cursor.measure_index)
        if measure is None:
            return self._fail(method, "Measure not found", 'MEASURE_NOT_FOUND')
        return measure

    def _selected_element(self, method: str) -> Union[Element, EntryResult]:
        measure = self._selected_measure(method)
        if isinstance(measure, EntryResult):
            return measure
        element = measure.find(self.cursor.element_id)
        if element is None:
            return self._fail(method, "Event not found", 'EVENT_NOT_FOUND')
        return element

    def _selected_note(self, method: str) -> Union[Note, EntryResult]:
        cursor = self.cursor
        if cursor.measure_index is None or cursor.element_id is None or cursor.note_id is None:
            return self._fail(method, "No note selected", 'NO_NOTE_SELECTED')
        measure = self.score.measure(cursor.track_index, cursor.measure_index)
        element = measure.find(cursor.element_id) if measure is not None else None
        note = element.find_note(cursor.note_id) if element is not None else None
        if note is None:
            return self._fail(method, "Note not found", 'NOTE_NOT_FOUND')
        return note

    def _dispatch_tie(self, tied: bool) -> None:
        cursor = self.cursor
        self.history.dispatch(SetTieCommand(
            cursor.track_index,
            cursor.measure_index,
            cursor.element_id,
            cursor.note_id,
            tied
        ))

    def _fail(self, method: str, message: str, code: str, details: Optional[Dict[str, Any]] = None) -> EntryResult:
        self.logger.warning(f"{method} failed ({code}): {message}")
        self.has_error = True
        self.result = EntryResult(
            ok=False,
            status='error',
            method=method,
            message=message,
            code=code,
            details=dict(details or {})
        )
        return self.result

    def _repair_cursor(self) -> None:
        """Point the cursor back at something that exists after undo/redo."""
        cursor = self.cursor
        if cursor.measure_index is None:
            return
        track = self.score.track(cursor.track_index)
        if track is None or not track.measures:
            self.selection.set(Cursor())
            return
        measure_index = min(cursor.measure_index, len(track.measures) - 1)
        measure = track.measures[measure_index]
        element_id, note_id = cursor.element_id, cursor.note_id
        element = measure.find(element_id) if element_id is not None else None
        if element is None:
            element_id = None
        if note_id is not None and (element is None or element.find_note(note_id) is None):
            note_id = None
        repaired = Cursor(cursor.track_index, measure_index, element_id, note_id)
        if repaired != cursor:
            self.selection.set(repaired)

    @staticmethod
    def _pitch_label(pitch) -> str:
        return pitch if isinstance(pitch, str) else ', '.join(pitch)
