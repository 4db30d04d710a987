#!/usr/bin/env python3
"""tootle - Play note sequences typed on the command line."""

import argparse
import logging
import math
import sys

from notetone import (
    NotationError,
    PlaybackConfig,
    Sequence,
    build_sequence,
    check_playable,
    parse_tokens,
    render,
    tokenize,
    total_samples,
)

from .config import DEFAULT_CONFIG, get_output_config, get_playback_config
from .player import AudioError, Player

log = logging.getLogger(__name__)

NOTE_HELP = """\
Notes use scientific pitch notation followed by ':' and the divisor of a
note value, i.e. <pitch>:<value>. The pitch is <letter><accidentals><octave>:
a letter from A-G, any number of '#' and 'b' symbols, and an octave number 0-99
(default 4). The value (1-99) divides a whole note, e.g. 8 for an eighth
note (default 4). Up to 4 dots after the value extend it. Omitting the pitch
gives a rest, e.g. ':2'. The dynamics ppp, pp, p, mp, mf, f, ff and fff
change the volume of every note after them (default mf).

Defaults for tempo, tuning, sample rate and device are read from the
config file when the options are not given."""


def positive_float(value: str) -> float:
    """argparse type for a strictly positive number."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")
    if not math.isfinite(number):
        raise argparse.ArgumentTypeError(f"'{value}' must be a finite number")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"'{value}' must be positive")
    return number


def positive_int(value: str) -> int:
    """argparse type for a strictly positive integer."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"'{value}' must be positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    defaults = DEFAULT_CONFIG["playback"]

    parser = argparse.ArgumentParser(
        prog="tootle",
        description="Play a sequence of notes on an audio device",
        epilog=NOTE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("notes", nargs="+", metavar="NOTE", help="Notes, rests and dynamics")
    parser.add_argument(
        "-t", "--tempo", type=positive_float,
        help=f"Tempo in quarter notes per minute (default: {defaults['tempo']:g})",
    )
    parser.add_argument(
        "-f", "--fermata", action="store_true",
        help="Hold the last note of the sequence longer",
    )
    parser.add_argument(
        "--tuning", type=positive_float,
        help=f"Frequency of A4 in Hz (default: {defaults['tuning']:g})",
    )
    parser.add_argument(
        "-d", "--device", help="Output device name or index (default: system default)"
    )
    parser.add_argument(
        "-s", "--sample-rate", type=positive_int,
        help=f"Sample rate of playback in Hz (default: {defaults['sample_rate']})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log resolved notes and stream settings"
    )
    return parser


def _pick(value, fallback):
    """Command-line value if given, else the configured one."""
    return fallback if value is None else value


def load_sequence(notes: list[str], config: PlaybackConfig) -> Sequence:
    """Parse and resolve everything up front, before any device is opened."""
    parsed = parse_tokens(tokenize(notes))
    sequence = build_sequence(
        parsed,
        fermata=config.fermata,
        fermata_factor=config.fermata_factor,
    )
    check_playable(sequence, config)
    return sequence


def cmd_play(args: argparse.Namespace) -> int:
    """Play the notes in ``args``. Returns the process exit code."""
    playback = get_playback_config()
    output = get_output_config()

    try:
        playback_config = PlaybackConfig(
            tempo=_pick(args.tempo, playback["tempo"]),
            tuning=_pick(args.tuning, playback["tuning"]),
            sample_rate=_pick(args.sample_rate, playback["sample_rate"]),
            fermata=args.fermata,
            fermata_factor=playback["fermata_factor"],
            ramp_ms=playback["ramp_ms"],
        )
    except (TypeError, ValueError, OverflowError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        sequence = load_sequence(args.notes, playback_config)
    except NotationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if log.isEnabledFor(logging.DEBUG):
        log.debug(
            "%d event(s), %.2f beats, %d samples at %d Hz",
            len(sequence), sequence.beats, total_samples(sequence, playback_config),
            playback_config.sample_rate,
        )

    player = Player(
        playback_config.sample_rate,
        device=_pick(args.device, output["device"]),
        channels=output["channels"],
        blocksize=output["blocksize"],
        buffer_seconds=output["buffer_seconds"],
    )
    try:
        player.play(render(sequence, playback_config))
    except AudioError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    return cmd_play(args)


if __name__ == "__main__":
    sys.exit(main())
