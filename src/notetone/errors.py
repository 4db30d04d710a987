"""Errors raised while turning note tokens into a playable sequence."""


class NotationError(ValueError):
    """Base class for everything detected before audio is produced."""


class ParseError(NotationError):
    """A token does not follow the note grammar."""

    def __init__(self, token: str, position: int, reason: str):
        self.token = token
        self.position = position
        self.reason = reason
        super().__init__(f"invalid token '{token}' at position {position}: {reason}")


class EmptySequenceError(NotationError):
    """No playable events were given."""

    def __init__(self, message: str = "no notes or rests to play"):
        super().__init__(message)


class PitchRangeError(NotationError):
    """A note resolves to a frequency the output cannot represent."""

    def __init__(self, token: str, frequency: float, sample_rate: int):
        self.token = token
        self.frequency = frequency
        self.sample_rate = sample_rate
        super().__init__(
            f"note '{token}' has frequency {frequency:.2f} Hz, above the Nyquist "
            f"frequency of {sample_rate / 2:g} Hz at a sample rate of {sample_rate} Hz"
        )
