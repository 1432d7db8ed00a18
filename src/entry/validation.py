"""
Input validation for entry requests.
"""

import re

from .errors import InvalidPitchError


# Letter, up to two sharps or flats, octave -1..9
PITCH_PATTERN = re.compile(r'^[A-Ga-g](##|#|bb|b)?(-1|[0-9])$')


def is_valid_pitch(pitch) -> bool:
    """Check a scientific pitch name such as 'C4', 'F#5' or 'Bb3'."""
    return isinstance(pitch, str) and PITCH_PATTERN.match(pitch) is not None


def validate_pitch(pitch) -> str:
    """
    Validate a pitch name.

    Args:
        pitch: Pitch name to check

    Returns:
        The pitch with an upper-case letter

    Raises:
        InvalidPitchError: If the pitch is malformed
    """
    if not is_valid_pitch(pitch):
        raise InvalidPitchError(
            f"Invalid pitch format '{pitch}'. Expected format: 'C4', 'F#5', 'Bb3', etc.",
            pitch=pitch
        )
    return pitch[0].upper() + pitch[1:]
