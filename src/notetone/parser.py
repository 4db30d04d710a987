"""Parse musical notation from command-line tokens.

Token grammar, left to right::

    [A-G] [#b]* [octave] [:denominator] [.]{0,4}

A token without a letter but with ``:denominator`` is a rest. A token with
neither a letter nor a colon must be one of the dynamic spellings
(``ppp`` .. ``fff``). Letters are case-insensitive; dynamic spellings are
matched first, so ``f`` is always forte.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering

from .errors import EmptySequenceError, ParseError

DEFAULT_OCTAVE = 4
DEFAULT_DENOMINATOR = 4
MAX_DOTS = 4
MAX_OCTAVE_DIGITS = 2
MAX_DENOMINATOR_DIGITS = 2

# Semitone offset of each natural from C within one octave
NOTE_SEMITONES = {
    "C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11
}

ACCIDENTALS = {"#": 1, "b": -1}
DIGITS = "0123456789"


@total_ordering
class Dynamic(Enum):
    """Loudness markings, softest first."""

    PPP = "ppp"
    PP = "pp"
    P = "p"
    MP = "mp"
    MF = "mf"
    F = "f"
    FF = "ff"
    FFF = "fff"

    @property
    def amplitude(self) -> float:
        """Amplitude scalar in (0, 1], evenly spaced from ppp to fff."""
        levels = list(Dynamic)
        return (levels.index(self) + 1) / len(levels)

    def __lt__(self, other: "Dynamic") -> bool:
        if not isinstance(other, Dynamic):
            return NotImplemented
        return self.amplitude < other.amplitude


DYNAMIC_NAMES = {d.value: d for d in Dynamic}


@dataclass(frozen=True)
class NoteValue:
    """Written duration: 1/denominator of a whole note, plus dots."""

    denominator: int = DEFAULT_DENOMINATOR
    dots: int = 0

    def __post_init__(self):
        if self.denominator <= 0:
            raise ValueError(f"denominator must be positive, got {self.denominator}")
        if not 0 <= self.dots <= MAX_DOTS:
            raise ValueError(f"dots must be between 0 and {MAX_DOTS}, got {self.dots}")

    @property
    def beats(self) -> float:
        """Duration in beats, a quarter note being one beat."""
        return (4 / self.denominator) * (2 - 2.0 ** -self.dots)


@dataclass(frozen=True)
class Note:
    letter: str
    accidental: int = 0
    octave: int = DEFAULT_OCTAVE
    value: NoteValue = NoteValue()
    token: str = field(default="", compare=False)

    @property
    def semitone(self) -> int:
        """Absolute semitone number, C0 = 0 and A4 = 57."""
        return 12 * self.octave + NOTE_SEMITONES[self.letter] + self.accidental


@dataclass(frozen=True)
class Rest:
    value: NoteValue = NoteValue()
    token: str = field(default="", compare=False)


Event = Note | Rest
ParsedToken = Note | Rest | Dynamic


def tokenize(args: list[str]) -> list[str]:
    """Split raw note arguments into individual tokens.

    Arguments are normally split by the shell already, but a quoted
    argument such as ``"C E G"`` is split on whitespace as well.

    Raises:
        EmptySequenceError: if no tokens remain.
    """
    tokens = [token for arg in args for token in arg.split()]
    if not tokens:
        raise EmptySequenceError("no note tokens given")
    return tokens


def _read_digits(token: str, pos: int) -> tuple[str, int]:
    end = pos
    while end < len(token) and token[end] in DIGITS:
        end += 1
    return token[pos:end], end


def parse_token(token: str) -> ParsedToken:
    """Parse one token into a Note, a Rest or a Dynamic.

    Examples: ``"Eb5:8."`` -> Note(E, -1, 5, 8 dotted), ``":2"`` -> half rest,
    ``"ff"`` -> Dynamic.FF.

    Raises:
        ParseError: naming the token, the offending position and the reason.
    """
    if not token:
        raise ParseError(token, 0, "empty token")

    if token in DYNAMIC_NAMES:
        return DYNAMIC_NAMES[token]

    pos = 0
    letter = None
    if token[0].upper() in NOTE_SEMITONES:
        letter = token[0].upper()
        pos = 1

    if letter is None and ":" not in token:
        first = token[0]
        if first.isalpha() and token.isalpha() and token.islower():
            raise ParseError(token, 0, "unknown dynamic")
        if first.isalpha():
            raise ParseError(token, 0, f"invalid letter '{first}'")
        if first.isdigit():
            raise ParseError(token, 0, "octave without a note letter")
        if first in ACCIDENTALS:
            raise ParseError(token, 0, "accidental without a note letter")
        raise ParseError(token, 0, f"unexpected character '{first}'")

    accidental = 0
    while pos < len(token) and token[pos] in ACCIDENTALS:
        if letter is None:
            raise ParseError(token, pos, "accidental on a rest")
        accidental += ACCIDENTALS[token[pos]]
        pos += 1

    digits, end = _read_digits(token, pos)
    octave = DEFAULT_OCTAVE
    if digits:
        if letter is None:
            raise ParseError(token, pos, "octave on a rest")
        if len(digits) > MAX_OCTAVE_DIGITS:
            raise ParseError(token, pos, "invalid octave (0-99)")
        octave = int(digits)
        pos = end

    denominator = DEFAULT_DENOMINATOR
    if pos < len(token) and token[pos] == ":":
        pos += 1
        digits, end = _read_digits(token, pos)
        if not digits or len(digits) > MAX_DENOMINATOR_DIGITS or int(digits) == 0:
            raise ParseError(token, pos, "invalid denominator (1-99)")
        denominator = int(digits)
        pos = end

    dots = 0
    while pos < len(token) and token[pos] == ".":
        dots += 1
        pos += 1
    if dots > MAX_DOTS:
        raise ParseError(token, pos - 1, f"too many dots (at most {MAX_DOTS})")

    if pos < len(token):
        if letter is None and token[pos].isalpha():
            raise ParseError(token, pos, f"invalid letter '{token[pos]}'")
        raise ParseError(token, pos, f"unexpected character '{token[pos]}'")

    value = NoteValue(denominator, dots)
    if letter is None:
        return Rest(value, token=token)
    return Note(letter, accidental, octave, value, token=token)


def parse_tokens(tokens: list[str]) -> list[ParsedToken]:
    """Parse every token, failing on the first malformed one."""
    return [parse_token(token) for token in tokens]
