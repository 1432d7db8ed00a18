"""
Score data structures.

A Score holds tracks, a track holds consecutive measures, and a measure holds
an ordered list of elements (chords or rests) with quantized lengths.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .durations import NoteValue, TupletRatio, length_of, measure_capacity


def new_id(prefix: str) -> str:
    """Generate a short unique id such as 'evt_1a2b3c4d'."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


@dataclass
class Note:
    """
    A single pitched note inside a chord.

    Attributes:
        pitch: Scientific pitch name (e.g. 'C4', 'F#5', 'Bb3')
        tied: True if the note continues into the next element without re-attack
        id: Unique note id
    """
    pitch: str
    tied: bool = False
    id: str = field(default_factory=lambda: new_id('note'))

    def __post_init__(self):
        if not self.pitch:
            raise ValueError("Note pitch must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'pitch': self.pitch}
        if self.tied:
            result['tied'] = True
        return result


@dataclass
class Element:
    """
    An atomic timed unit inside a measure.

    Attributes:
        value: Written note value
        dotted: Dotted flag
        notes: Chord notes (empty for a rest)
        is_rest: True for a rest
        tuplet: Optional tuplet ratio
        tuplet_group: Id shared by the elements of one tuplet
        id: Unique element id
    """
    value: NoteValue
    dotted: bool = False
    notes: List[Note] = field(default_factory=list)
    is_rest: bool = False
    tuplet: Optional[TupletRatio] = None
    tuplet_group: Optional[str] = None
    id: str = field(default_factory=lambda: new_id('evt'))

    def __post_init__(self):
        """Validate element parameters."""
        self.value = NoteValue.parse(self.value)
        if self.is_rest and self.notes:
            raise ValueError("A rest cannot contain notes")
        if not self.is_rest and not self.notes:
            raise ValueError("A chord needs at least one note")
        if self.tuplet_group is not None and self.tuplet is None:
            raise ValueError("A tuplet group needs a tuplet ratio")

    @classmethod
    def rest(cls, value, dotted: bool = False, id: Optional[str] = None) -> 'Element':
        """Create a rest element."""
        if id is None:
            return cls(value=value, dotted=dotted, is_rest=True)
        return cls(value=value, dotted=dotted, is_rest=True, id=id)

    @classmethod
    def chord(
        cls,
        pitches: Union[str, List[str]],
        value,
        dotted: bool = False,
        tied: bool = False,
        tuplet: Optional[TupletRatio] = None,
        id: Optional[str] = None
    ) -> 'Element':
        """Create a chord element from one or more pitch names."""
        if isinstance(pitches, str):
            pitches = [pitches]
        notes = [Note(pitch=p, tied=tied) for p in pitches]
        kwargs = {'id': id} if id is not None else {}
        return cls(value=value, dotted=dotted, notes=notes, tuplet=tuplet, **kwargs)

    @property
    def quants(self) -> int:
        """Length in quants."""
        return length_of(self.value, self.dotted, self.tuplet)

    @property
    def is_tied(self) -> bool:
        """True if any note of the chord is tied to the next element."""
        return any(note.tied for note in self.notes)

    @property
    def pitches(self) -> List[str]:
        return [note.pitch for note in self.notes]

    def find_note(self, note_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = {
            'id': self.id,
            'value': self.value.value,
            'quants': self.quants,
        }
        if self.dotted:
            result['dotted'] = True
        if self.tuplet is not None:
            result['tuplet'] = [self.tuplet.actual, self.tuplet.normal]
        if self.tuplet_group is not None:
            result['tuplet_group'] = self.tuplet_group
        if self.is_rest:
            result['rest'] = True
        else:
            result['notes'] = [note.to_dict() for note in self.notes]
        return result


@dataclass
class Measure:
    """
    A fixed-capacity container of elements.

    Trailing silence is implicit: the elements may add up to less than the
    capacity of the measure.
    """
    elements: List[Element] = field(default_factory=list)
    id: str = field(default_factory=lambda: new_id('msr'))

    @property
    def total_quants(self) -> int:
        """Sum of the element lengths."""
        return sum(element.quants for element in self.elements)

    def index_of(self, element_id: str) -> Optional[int]:
        """Position of an element in this measure, or None."""
        for index, element in enumerate(self.elements):
            if element.id == element_id:
                return index
        return None

    def find(self, element_id: str) -> Optional[Element]:
        index = self.index_of(element_id)
        return None if index is None else self.elements[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'total_quants': self.total_quants,
            'elements': [element.to_dict() for element in self.elements],
        }


@dataclass
class Track:
    """A staff: an ordered list of consecutive measures."""
    measures: List[Measure] = field(default_factory=list)
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'measures': [measure.to_dict() for measure in self.measures],
        }


@dataclass
class Score:
    """
    The document: tracks sharing one time signature.

    Attributes:
        tracks: List of tracks
        time_signature: Time signature as (numerator, denominator)
    """
    tracks: List[Track] = field(default_factory=list)
    time_signature: Tuple[int, int] = (4, 4)

    def __post_init__(self):
        """Validate the time signature early."""
        self.time_signature = tuple(self.time_signature)
        measure_capacity(self.time_signature)

    @classmethod
    def empty(
        cls,
        measures: int = 4,
        tracks: int = 1,
        time_signature: Tuple[int, int] = (4, 4)
    ) -> 'Score':
        """Create a score of empty measures."""
        return cls(
            tracks=[
                Track(measures=[Measure() for _ in range(measures)], name=f"Track {i + 1}")
                for i in range(tracks)
            ],
            time_signature=time_signature
        )

    @property
    def capacity(self) -> int:
        """Capacity of every measure in quants."""
        return measure_capacity(self.time_signature)

    def track(self, track_index: int) -> Optional[Track]:
        if 0 <= track_index < len(self.tracks):
            return self.tracks[track_index]
        return None

    def measure(self, track_index: int, measure_index: int) -> Optional[Measure]:
        track = self.track(track_index)
        if track is None or not 0 <= measure_index < len(track.measures):
            return None
        return track.measures[measure_index]

    def to_dict(self) -> Dict[str, Any]:
        """Convert score to dictionary representation."""
        return {
            'time_signature': list(self.time_signature),
            'capacity': self.capacity,
            'tracks': [track.to_dict() for track in self.tracks],
        }
