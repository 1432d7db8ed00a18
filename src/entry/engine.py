"""
Insertion engine for notes and rests.

Places a value at the edit cursor, removing overlapped elements in overwrite
mode, splitting the value into tied fragments at the barline and continuing it
in the next measure (creating one when needed), and moving the cursor after
every fragment.

The placement loop is a fold over PlacementState: ``step`` takes one state
and returns the next, and ``insert`` runs steps inside one transaction until
the state is done.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from src.score.durations import Fragment, NoteValue, breakdown, length_of
from src.score.history import MutationService
from src.score.models import Element, Measure, Note, new_id
from src.score.selection import Cursor, SelectionStore
from .config import EntryConfig
from .cursor import resolve_cursor
from .errors import CapacityExceededError, StructureError
from .gaps import gap_fillers, make_filler_rests
from .planner import overwrite_plan, remaining_capacity, snapshot_index, start_quant_for
from .validation import validate_pitch


class EntryMode(Enum):
    """How an insertion treats elements already at the cursor."""
    OVERWRITE = "overwrite"  # Remove overlapped elements
    INSERT = "insert"        # Push existing elements later

    @classmethod
    def parse(cls, mode: Union[str, 'EntryMode']) -> 'EntryMode':
        if isinstance(mode, cls):
            return mode
        try:
            return cls(str(mode).lower())
        except ValueError:
            raise ValueError(f"Unknown entry mode: {mode!r}") from None


@dataclass(frozen=True)
class InsertionRequest:
    """
    A note or rest to enter at the cursor.

    Attributes:
        value: Note value to enter
        dotted: Dotted flag
        pitches: Chord pitches (empty for a rest)
        is_rest: True to enter a rest
        mode: Entry mode, or None for the configured default
    """
    value: NoteValue
    dotted: bool = False
    pitches: Tuple[str, ...] = ()
    is_rest: bool = False
    mode: Optional[EntryMode] = None

    def __post_init__(self):
        object.__setattr__(self, 'value', NoteValue.parse(self.value))
        object.__setattr__(self, 'pitches', tuple(self.pitches))
        if self.mode is not None:
            object.__setattr__(self, 'mode', EntryMode.parse(self.mode))
        if self.is_rest and self.pitches:
            raise ValueError("A rest request cannot carry pitches")
        if not self.is_rest and not self.pitches:
            raise ValueError("A note request needs at least one pitch")

    @classmethod
    def note(
        cls,
        pitch: Union[str, Sequence[str]],
        value='quarter',
        dotted: bool = False,
        mode=None
    ) -> 'InsertionRequest':
        pitches = (pitch,) if isinstance(pitch, str) else tuple(pitch)
        return cls(value=value, dotted=dotted, pitches=pitches, mode=mode)

    @classmethod
    def rest(cls, value='quarter', dotted: bool = False, mode=None) -> 'InsertionRequest':
        return cls(value=value, dotted=dotted, is_rest=True, mode=mode)

    @property
    def kind(self) -> str:
        return 'Rest' if self.is_rest else 'Note'


@dataclass
class Feedback:
    """
    Advisories produced by a successful insertion.

    Attributes:
        warnings: One entry per overwrite batch or capacity flag
        info: One entry per split or created measure
        placed: Ids of the elements created for the value, in order
    """
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)
    placed: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlacementState:
    """
    Accumulator threaded through the placement loop.

    Attributes:
        remaining_quants: Quants of the value still to place
        first_round: True until a step placed part of the value; the request
            value is placed unmodified only while it is set
        is_continuation: Start at quant 0 of the cursor measure instead of the
            cursor element
        warnings: Warnings collected so far
        info: Info messages collected so far
        placed: Ids of placed fragments
        measures_created: Number of measures created
        steps: Number of steps run
        done: True once the whole value is placed
    """
    remaining_quants: int
    first_round: bool = True
    is_continuation: bool = False
    warnings: Tuple[str, ...] = ()
    info: Tuple[str, ...] = ()
    placed: Tuple[str, ...] = ()
    measures_created: int = 0
    steps: int = 0
    done: bool = False

    def to_feedback(self) -> Feedback:
        return Feedback(
            warnings=list(self.warnings),
            info=list(self.info),
            placed=list(self.placed)
        )


class InsertionEngine:
    """
    Enters notes and rests into a score through a mutation service.

    Args:
        mutations: Mutation service wrapping the score
        selection: Store holding the edit cursor
        config: Entry configuration
        id_factory: Callable producing ids from a prefix
    """

    def __init__(
        self,
        mutations: MutationService,
        selection: SelectionStore,
        config: Optional[EntryConfig] = None,
        id_factory: Callable[[str], str] = new_id
    ):
        self.mutations = mutations
        self.selection = selection
        self.config = config or EntryConfig()
        self.id_factory = id_factory
        self.logger = logging.getLogger(__name__)

    def insert(self, request: InsertionRequest) -> Feedback:
        """
        Place a note or rest at the cursor.

        Args:
            request: What to insert

        Returns:
            Feedback with warnings and info messages

        Raises:
            InvalidPitchError: If a pitch is malformed (nothing is changed)
            StructureError: If the cursor track or measure does not exist
            CapacityExceededError: If insert mode overflows a measure under
                the 'reject' policy
        """
        if not request.is_rest:
            pitches = tuple(validate_pitch(p) for p in request.pitches)
            request = replace(request, pitches=pitches)
        if request.mode is None:
            request = replace(request, mode=EntryMode.parse(self.config.default_mode))

        state = PlacementState(remaining_quants=length_of(request.value, request.dotted))
        previous_cursor = self.selection.current()

        self.mutations.begin()
        try:
            while not state.done:
                if state.steps >= self.config.max_steps:
                    raise StructureError(
                        f"Placement did not finish within {self.config.max_steps} steps",
                        remaining_quants=state.remaining_quants
                    )
                state = self.step(request, state)
        except Exception as e:
            self.logger.error(f"{request.kind} entry failed, rolling back: {e}")
            self.mutations.rollback()
            self.selection.set(previous_cursor)
            raise
        self.mutations.commit()

        return state.to_feedback()

    def step(self, request: InsertionRequest, state: PlacementState) -> PlacementState:
        """
        Place as much of the remaining value as fits in the cursor measure.

        Args:
            request: The request being placed
            state: Current loop state

        Returns:
            The next loop state
        """
        cursor = self.selection.current()
        track_index, measure_index = cursor.track_index, cursor.measure_index
        if measure_index is None:
            track_index, measure_index = 0, 0
        measure = self._measure(track_index, measure_index)
        snapshot = list(measure.elements)
        capacity = self.mutations.score.capacity

        start = 0 if state.is_continuation else start_quant_for(measure, cursor.element_id)
        room = remaining_capacity(capacity, start)
        need = state.remaining_quants
        self.logger.debug(
            f"Step {state.steps + 1}: track {track_index}, measure {measure_index}, "
            f"start {start}, room {room}, need {need}"
        )

        warnings = list(state.warnings)
        info = list(state.info)

        if need > room:
            fragments = breakdown(room)
            overflow = need - room
            if fragments:
                info.append(f"{request.kind} split across measures")
                self.logger.info(
                    f"{request.kind} split at measure {measure_index + 1}: "
                    f"{room} placed, {overflow} carried over"
                )
        elif state.first_round:
            fragments = [Fragment(request.value, request.dotted, need)]
            overflow = 0
        else:
            fragments = breakdown(need)
            overflow = 0

        placed = list(state.placed)
        deleted: Set[str] = set()
        current = start
        for i, fragment in enumerate(fragments):
            is_last = overflow == 0 and i == len(fragments) - 1
            tied = not request.is_rest and not is_last

            if request.mode is EntryMode.OVERWRITE:
                plan = overwrite_plan(snapshot, current, fragment.quants)
                batch = [element_id for element_id in plan.to_remove if element_id not in deleted]
                for element_id in batch:
                    self.mutations.delete_element(track_index, measure_index, element_id)
                if batch:
                    deleted.update(batch)
                    warnings.append(f"Overwrote {len(batch)} event(s)")
                    self.logger.warning(
                        f"Overwrote {len(batch)} event(s) in measure {measure_index + 1}"
                    )
            elif request.mode is EntryMode.INSERT:
                pass
            else:
                raise ValueError(f"Unknown entry mode: {request.mode!r}")

            live = self._measure(track_index, measure_index).elements
            fill = gap_fillers(live, current)
            index = fill.index
            for rest in make_filler_rests(fill.fragments, self.id_factory):
                self.mutations.insert_element(track_index, measure_index, index, rest)
                index += 1

            element = self._build_element(request, fragment, tied)
            self.mutations.insert_element(track_index, measure_index, index, element)
            placed.append(element.id)

            self.selection.set(resolve_cursor(
                track_index,
                measure_index,
                snapshot,
                snapshot_index(snapshot, current),
                deleted
            ))
            current += fragment.quants

        if request.mode is EntryMode.INSERT:
            warnings.extend(self._check_insert_capacity(track_index, measure_index, capacity))

        state = replace(
            state,
            first_round=state.first_round and not fragments,
            is_continuation=False,
            warnings=tuple(warnings),
            info=tuple(info),
            placed=tuple(placed),
            steps=state.steps + 1
        )

        if overflow == 0:
            return replace(state, remaining_quants=0, done=True)

        next_index = measure_index + 1
        measures_created = state.measures_created
        if next_index >= len(self.mutations.score.tracks[track_index].measures):
            self.mutations.create_measure(track_index)
            measures_created += 1
            info.append(f"Created measure {next_index + 1}")
            self.logger.info(f"Created measure {next_index + 1}")

        self.selection.set(Cursor(track_index, next_index, None))
        return replace(
            state,
            remaining_quants=overflow,
            is_continuation=True,
            info=tuple(info),
            measures_created=measures_created
        )

    def _measure(self, track_index: int, measure_index: int) -> Measure:
        score = self.mutations.score
        if score.track(track_index) is None:
            raise StructureError(f"No track found at index {track_index}", track_index=track_index)
        measure = score.measure(track_index, measure_index)
        if measure is None:
            raise StructureError(
                f"Measure {measure_index} not found",
                track_index=track_index,
                measure_index=measure_index
            )
        return measure

    def _build_element(self, request: InsertionRequest, fragment: Fragment, tied: bool) -> Element:
        if request.is_rest:
            return Element.rest(fragment.value, fragment.dotted, id=self.id_factory('evt'))
        notes = [
            Note(pitch=pitch, tied=tied, id=self.id_factory('note'))
            for pitch in request.pitches
        ]
        return Element(
            value=fragment.value,
            dotted=fragment.dotted,
            notes=notes,
            id=self.id_factory('evt')
        )

    def _check_insert_capacity(self, track_index: int, measure_index: int, capacity: int) -> List[str]:
        """Flag or reject a measure that insert mode pushed past its capacity."""
        total = self._measure(track_index, measure_index).total_quants
        excess = total - capacity
        if excess <= 0:
            return []
        message = f"Measure {measure_index + 1} exceeds capacity by {excess} quant(s)"
        if self.config.insert_overflow == 'reject':
            raise CapacityExceededError(
                message,
                track_index=track_index,
                measure_index=measure_index,
                excess=excess
            )
        self.logger.warning(message)
        return [message]
