"""Fold parsed tokens into an ordered, dynamics-bound sequence of events."""

from dataclasses import dataclass, replace
from typing import Iterable, Iterator

from .errors import EmptySequenceError
from .parser import Dynamic, Event, Note, ParsedToken

DEFAULT_DYNAMIC = Dynamic.MF
DEFAULT_FERMATA_FACTOR = 2.0


@dataclass(frozen=True)
class Placed:
    """An event at its position in the sequence.

    ``beats`` is the effective length, which differs from
    ``event.value.beats`` only for the last event under a fermata.
    """

    event: Event
    dynamic: Dynamic
    beats: float

    @property
    def is_rest(self) -> bool:
        return not isinstance(self.event, Note)


class Sequence:
    """Read-only, non-empty list of placed events in playback order."""

    def __init__(self, placed: Iterable[Placed]):
        self._placed = tuple(placed)
        if not self._placed:
            raise EmptySequenceError()

    def __iter__(self) -> Iterator[Placed]:
        return iter(self._placed)

    def __len__(self) -> int:
        return len(self._placed)

    def __getitem__(self, index):
        return self._placed[index]

    def __repr__(self) -> str:
        return f"Sequence({list(self._placed)!r})"

    @property
    def beats(self) -> float:
        """Total length in beats."""
        return sum(p.beats for p in self._placed)


def build_sequence(
    tokens: Iterable[ParsedToken],
    fermata: bool = False,
    fermata_factor: float = DEFAULT_FERMATA_FACTOR,
    initial_dynamic: Dynamic = DEFAULT_DYNAMIC,
) -> Sequence:
    """Bind each note and rest to the dynamic in effect at its position.

    Dynamic tokens change the level for everything after them and emit no
    event themselves. With ``fermata`` set, the last event's length is
    multiplied by ``fermata_factor``.

    Args:
        tokens: Parsed tokens in input order
        fermata: Sustain the final event
        fermata_factor: Multiplier applied to the final event
        initial_dynamic: Level before the first dynamic token

    Returns:
        The built Sequence

    Raises:
        EmptySequenceError: if the tokens contain no notes or rests
    """
    if fermata_factor <= 0:
        raise ValueError(f"fermata_factor must be positive, got {fermata_factor}")

    dynamic = initial_dynamic
    placed: list[Placed] = []
    for token in tokens:
        if isinstance(token, Dynamic):
            dynamic = token
            continue
        placed.append(Placed(token, dynamic, token.value.beats))

    if not placed:
        raise EmptySequenceError()

    if fermata:
        last = placed[-1]
        placed[-1] = replace(last, beats=last.beats * fermata_factor)

    return Sequence(placed)
