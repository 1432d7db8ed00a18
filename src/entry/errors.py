"""
Errors raised by note/rest entry.
"""


class EntryError(Exception):
    """Base class for entry failures. ``code`` identifies the failure kind."""

    code = 'ENTRY_ERROR'

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.details = details


class InvalidPitchError(EntryError, ValueError):
    """Malformed pitch; raised before the score is touched."""

    code = 'INVALID_PITCH'


class StructureError(EntryError):
    """Referenced track or measure does not exist."""

    code = 'STRUCTURE_ERROR'


class CapacityExceededError(EntryError):
    """Insert mode pushed a measure past its capacity under the reject policy."""

    code = 'CAPACITY_EXCEEDED'
