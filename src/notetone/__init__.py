"""notetone - Parse note tokens and synthesize them as audio."""

from .errors import (
    NotationError,
    ParseError,
    EmptySequenceError,
    PitchRangeError,
)
from .parser import (
    Dynamic,
    Note,
    NoteValue,
    Rest,
    parse_token,
    parse_tokens,
    tokenize,
    NOTE_SEMITONES,
)
from .sequence import Placed, Sequence, build_sequence
from .synthesis import (
    PlaybackConfig,
    check_playable,
    note_to_frequency,
    render,
    sample_count,
    total_samples,
)

__version__ = "0.1.0"
__all__ = [
    "NotationError",
    "ParseError",
    "EmptySequenceError",
    "PitchRangeError",
    "Dynamic",
    "Note",
    "NoteValue",
    "Rest",
    "parse_token",
    "parse_tokens",
    "tokenize",
    "NOTE_SEMITONES",
    "Placed",
    "Sequence",
    "build_sequence",
    "PlaybackConfig",
    "check_playable",
    "note_to_frequency",
    "render",
    "sample_count",
    "total_samples",
]
