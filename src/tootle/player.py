"""Real-time playback of rendered samples through sounddevice.

The main thread renders into a ring buffer; the audio callback only copies
out of it. Neither side takes a lock: each owns one cursor.
"""

import logging
import threading
import time
from typing import Iterable, Iterator

import numpy as np

log = logging.getLogger(__name__)

DEFAULT_BLOCKSIZE = 1024
DEFAULT_BUFFER_SECONDS = 0.5
MAX_CHANNELS = 2

_EMPTY = np.zeros(0, dtype=np.float32)


class AudioError(RuntimeError):
    """Base class for output device and streaming failures."""


class DeviceError(AudioError):
    """The requested device or stream settings are not available."""


class PlaybackError(AudioError):
    """The stream failed after playback had started."""


class RingBuffer:
    """Single-producer/single-consumer frame buffer.

    The producer calls ``write`` with mono blocks, which are duplicated across
    all channels on the way in. The consumer calls ``read_into`` from the audio
    thread; it copies into the caller's array and allocates nothing.
    """

    def __init__(self, capacity: int, channels: int = 1):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if channels <= 0:
            raise ValueError(f"channels must be positive, got {channels}")
        self.capacity = capacity
        self.channels = channels
        self._data = np.zeros((capacity, channels), dtype=np.float32)
        # Monotonic frame counters; producer owns _write_pos, consumer _read_pos
        self._write_pos = 0
        self._read_pos = 0
        self._closed = False

    @property
    def available(self) -> int:
        """Frames written but not yet read."""
        return self._write_pos - self._read_pos

    @property
    def space(self) -> int:
        return self.capacity - self.available

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def drained(self) -> bool:
        """True once the producer has finished and every frame was read."""
        return self._closed and self.available == 0

    def close(self) -> None:
        """Mark the end of the stream; nothing more will be written."""
        self._closed = True

    def write(self, block: np.ndarray) -> int:
        """Copy as much of a mono block as fits. Returns frames written."""
        if self._closed:
            raise ValueError("write to a closed ring buffer")
        n = min(len(block), self.space)
        start = self._write_pos % self.capacity
        first = min(n, self.capacity - start)
        self._data[start:start + first] = block[:first, np.newaxis]
        if n > first:
            self._data[:n - first] = block[first:n, np.newaxis]
        self._write_pos += n
        return n

    def read_into(self, out: np.ndarray) -> int:
        """Copy up to ``len(out)`` frames into ``out``. Returns frames copied."""
        n = min(len(out), self._write_pos - self._read_pos)
        start = self._read_pos % self.capacity
        first = min(n, self.capacity - start)
        out[:first] = self._data[start:start + first]
        if n > first:
            out[first:n] = self._data[:n - first]
        self._read_pos += n
        return n


class Player:
    """Streams rendered mono blocks to an output device.

    Args:
        sample_rate: Stream sample rate in Hz
        device: Device name, index, or None for the system default
        channels: Output channels; None picks up to two, as the device allows
        blocksize: Frames per audio callback
        buffer_seconds: Audio rendered ahead of the device
    """

    def __init__(
        self,
        sample_rate: int,
        device: str | int | None = None,
        channels: int | None = None,
        blocksize: int = DEFAULT_BLOCKSIZE,
        buffer_seconds: float = DEFAULT_BUFFER_SECONDS,
    ):
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        self.sample_rate = sample_rate
        self.device = device
        self.channels = channels
        self.blocksize = blocksize
        self.buffer_seconds = buffer_seconds
        self.underruns = 0
        self._ring: RingBuffer | None = None
        self._finished = threading.Event()
        self._callback_stop: type[BaseException] | None = None

    @property
    def _poll_interval(self) -> float:
        return self.blocksize / self.sample_rate / 2

    def resolve_channels(self, sd) -> int:
        """Check the device and settings, returning the channel count to open.

        Raises:
            DeviceError: if the device is unknown or rejects the settings
        """
        try:
            info = sd.query_devices(self.device, "output")
        except (ValueError, sd.PortAudioError) as e:
            raise DeviceError(f"output device {self.device!r} not available: {e}") from e

        max_channels = int(info["max_output_channels"])
        channels = self.channels or min(max_channels, MAX_CHANNELS)
        if not 1 <= channels <= max_channels:
            raise DeviceError(
                f"device '{info['name']}' has {max_channels} output channel(s), "
                f"cannot open {channels}"
            )

        try:
            sd.check_output_settings(
                device=self.device,
                channels=channels,
                dtype="float32",
                samplerate=self.sample_rate,
            )
        except (ValueError, sd.PortAudioError) as e:
            raise DeviceError(
                f"device '{info['name']}' does not support {self.sample_rate} Hz "
                f"with {channels} channel(s): {e}"
            ) from e

        log.debug("output device '%s', %d channel(s), %d Hz", info["name"], channels, self.sample_rate)
        return channels

    def _callback(self, outdata, frames, time_info, status) -> None:
        # Sample closed before reading: once set, no further writes can land
        closed = self._ring.closed
        n = self._ring.read_into(outdata)
        if n < frames:
            outdata[n:] = 0
            if closed:
                raise self._callback_stop
            self.underruns += 1

    def _fill(self, blocks: Iterator[np.ndarray], pending: np.ndarray) -> np.ndarray | None:
        """Write blocks until the ring is full.

        Returns the unwritten remainder, or None once ``blocks`` is exhausted
        and the ring has been closed.
        """
        while True:
            if len(pending) == 0:
                pending = next(blocks, None)
                if pending is None:
                    self._ring.close()
                    return None
                continue
            written = self._ring.write(pending)
            pending = pending[written:]
            if len(pending):
                return pending

    def play(self, blocks: Iterable[np.ndarray]) -> None:
        """Play blocks to completion, blocking the calling thread.

        Raises:
            DeviceError: if the output cannot be opened with these settings
            PlaybackError: if the stream fails or stops early
        """
        try:
            import sounddevice as sd
        except OSError as e:
            # Raised when the PortAudio shared library is missing
            raise DeviceError(f"audio output unavailable: {e}") from e

        channels = self.resolve_channels(sd)
        capacity = max(2 * self.blocksize, round(self.buffer_seconds * self.sample_rate))
        self._ring = RingBuffer(capacity, channels)
        self._callback_stop = sd.CallbackStop
        self._finished.clear()
        self.underruns = 0

        blocks = iter(blocks)
        pending = self._fill(blocks, _EMPTY)

        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                blocksize=self.blocksize,
                device=self.device,
                channels=channels,
                dtype="float32",
                callback=self._callback,
                finished_callback=self._finished.set,
            )
        except (ValueError, sd.PortAudioError) as e:
            raise DeviceError(f"cannot open output stream: {e}") from e

        try:
            stream.start()
            while pending is not None and not self._finished.is_set():
                pending = self._fill(blocks, pending)
                if pending is not None:
                    time.sleep(self._poll_interval)
            while not self._finished.wait(self._poll_interval):
                pass
        except sd.PortAudioError as e:
            raise PlaybackError(f"audio stream failed: {e}") from e
        except KeyboardInterrupt:
            log.debug("interrupted, aborting stream")
            stream.abort()
            raise
        finally:
            stream.close()

        if self.underruns:
            log.warning("%d buffer underrun(s) during playback", self.underruns)
        if not self._ring.drained:
            raise PlaybackError("audio stream stopped before playback completed")
