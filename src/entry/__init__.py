"""
Entry module.

Places notes and rests into a score: overwrite planning, barline overflow
with ties, gap filling and cursor resolution.
"""

from .errors import EntryError, InvalidPitchError, StructureError, CapacityExceededError
from .config import EntryConfig, load_yaml_config, merge_configs, dict_to_config
from .planner import (
    OverwritePlan,
    element_offsets,
    start_quant_for,
    remaining_capacity,
    overwrite_plan,
    insertion_index,
)
from .gaps import GapFill, gap_fillers, make_filler_rests
from .cursor import next_surviving_element, resolve_cursor
from .engine import EntryMode, InsertionRequest, Feedback, PlacementState, InsertionEngine
from .api import EntryAPI, EntryResult

__all__ = [
    'EntryError',
    'InvalidPitchError',
    'StructureError',
    'CapacityExceededError',
    'EntryConfig',
    'load_yaml_config',
    'merge_configs',
    'dict_to_config',
    'OverwritePlan',
    'element_offsets',
    'start_quant_for',
    'remaining_capacity',
    'overwrite_plan',
    'insertion_index',
    'GapFill',
    'gap_fillers',
    'make_filler_rests',
    'next_surviving_element',
    'resolve_cursor',
    'EntryMode',
    'InsertionRequest',
    'Feedback',
    'PlacementState',
    'InsertionEngine',
    'EntryAPI',
    'EntryResult',
]
