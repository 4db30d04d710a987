"""Resolve events to frequencies and sample counts, and synthesize them."""

import logging
import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .errors import PitchRangeError
from .parser import NOTE_SEMITONES, Note
from .sequence import DEFAULT_FERMATA_FACTOR, Sequence

log = logging.getLogger(__name__)

# A4 sits at semitone 12 * 4 + 9
REFERENCE_SEMITONE = 57

DEFAULT_TEMPO = 120.0
DEFAULT_TUNING = 440.0
DEFAULT_SAMPLE_RATE = 48000
DEFAULT_RAMP_MS = 5.0
DEFAULT_BLOCK_SIZE = 4096


@dataclass(frozen=True)
class PlaybackConfig:
    """Settings fixed for the duration of one playback."""

    tempo: float = DEFAULT_TEMPO
    tuning: float = DEFAULT_TUNING
    sample_rate: int = DEFAULT_SAMPLE_RATE
    fermata: bool = False
    fermata_factor: float = DEFAULT_FERMATA_FACTOR
    ramp_ms: float = DEFAULT_RAMP_MS

    def __post_init__(self):
        for name in ("tempo", "tuning", "sample_rate", "fermata_factor", "ramp_ms"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number, got {getattr(self, name)}")
        for name in ("tempo", "tuning", "sample_rate", "fermata_factor"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.ramp_ms < 0:
            raise ValueError(f"ramp_ms must not be negative, got {self.ramp_ms}")

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self.tempo

    @property
    def ramp_samples(self) -> int:
        return round(self.ramp_ms / 1000.0 * self.sample_rate)


def note_to_frequency(
    letter: str,
    accidental: int = 0,
    octave: int = 4,
    tuning: float = DEFAULT_TUNING,
) -> float:
    """Equal-tempered frequency of a note, with A4 at ``tuning`` Hz.

    Accidentals are literal semitone shifts, so ``Cbb`` and ``A#`` in the
    same octave are different pitches.

    Examples: A4=440, A5=880, C4=261.63, Eb4=311.13
    """
    semitone = 12 * octave + NOTE_SEMITONES[letter.upper()] + accidental
    return tuning * 2.0 ** ((semitone - REFERENCE_SEMITONE) / 12.0)


def frequency_of(note: Note, tuning: float = DEFAULT_TUNING) -> float:
    return note_to_frequency(note.letter, note.accidental, note.octave, tuning)


def sample_count(beats: float, tempo: float, sample_rate: int) -> int:
    """Number of samples for ``beats`` at ``tempo`` BPM.

    Each event is rounded on its own, so a sequence drifts from exact
    timing by at most half a sample per event.
    """
    return round(beats * 60.0 / tempo * sample_rate)


def event_sample_counts(sequence: Sequence, config: PlaybackConfig) -> list[int]:
    return [sample_count(p.beats, config.tempo, config.sample_rate) for p in sequence]


def total_samples(sequence: Sequence, config: PlaybackConfig) -> int:
    return sum(event_sample_counts(sequence, config))


def check_playable(sequence: Sequence, config: PlaybackConfig) -> None:
    """Reject notes above the Nyquist frequency before any audio is made.

    Raises:
        PitchRangeError: naming the first offending token
    """
    nyquist = config.sample_rate / 2
    for placed in sequence:
        if placed.is_rest:
            continue
        try:
            frequency = frequency_of(placed.event, config.tuning)
        except OverflowError:
            frequency = math.inf
        if frequency > nyquist:
            raise PitchRangeError(placed.event.token or placed.event.letter, frequency, config.sample_rate)


def ramp_length(n_samples: int, ramp_samples: int) -> int:
    """Ramp length for an event, shrunk so ramp-in and ramp-out never overlap."""
    return min(ramp_samples, n_samples // 2)


def _envelope(index: np.ndarray, n_samples: int, ramp: int) -> np.ndarray:
    """Linear fade in over the first ``ramp`` samples and out over the last."""
    if ramp <= 0:
        return np.ones(len(index))
    distance = np.minimum(index, n_samples - 1 - index)
    return np.minimum(1.0, distance / ramp)


def render(
    sequence: Sequence,
    config: PlaybackConfig,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> Iterator[np.ndarray]:
    """Lazily synthesize a sequence as mono float32 blocks.

    Rests are silent; notes are sine tones scaled by their dynamic, with a
    short ramp at both ends. The oscillator phase carries over from one
    note to the next. Each event yields exactly its own sample count, split
    into blocks of at most ``block_size`` frames. Call again to start over.

    Args:
        sequence: Events to render
        config: Playback settings
        block_size: Maximum frames per yielded block

    Yields:
        1-D float32 arrays with values in [-1, 1]
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")

    phase = 0.0
    for placed in sequence:
        n_samples = sample_count(placed.beats, config.tempo, config.sample_rate)

        if placed.is_rest:
            log.debug("rest: %.3f beats, %d samples", placed.beats, n_samples)
            for start in range(0, n_samples, block_size):
                yield np.zeros(min(block_size, n_samples - start), dtype=np.float32)
            continue

        frequency = frequency_of(placed.event, config.tuning)
        step = 2 * math.pi * frequency / config.sample_rate
        ramp = ramp_length(n_samples, config.ramp_samples)
        amplitude = placed.dynamic.amplitude
        log.debug(
            "note %s: %.2f Hz, %.3f beats, %d samples, %s",
            placed.event.token, frequency, placed.beats, n_samples, placed.dynamic.value,
        )

        for start in range(0, n_samples, block_size):
            index = np.arange(start, min(start + block_size, n_samples), dtype=np.float64)
            wave = np.sin(phase + step * index)
            yield (amplitude * _envelope(index, n_samples, ramp) * wave).astype(np.float32)

        phase = math.fmod(phase + step * n_samples, 2 * math.pi)
