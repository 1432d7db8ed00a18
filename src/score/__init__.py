"""
Score module.

Score data model, quant arithmetic, edit cursor and undoable mutations.
"""

from .durations import (
    QUANTS_PER_WHOLE,
    Fragment,
    FractionalQuantError,
    NoteValue,
    TupletRatio,
    breakdown,
    length_of,
    measure_capacity,
)
from .models import Note, Element, Measure, Track, Score
from .selection import Cursor, SelectionStore
from .history import CommandHistory, MutationService

__all__ = [
    'QUANTS_PER_WHOLE',
    'Fragment',
    'FractionalQuantError',
    'NoteValue',
    'TupletRatio',
    'breakdown',
    'length_of',
    'measure_capacity',
    'Note',
    'Element',
    'Measure',
    'Track',
    'Score',
    'Cursor',
    'SelectionStore',
    'CommandHistory',
    'MutationService',
]
