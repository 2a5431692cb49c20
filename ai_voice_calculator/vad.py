"""Energy-based speech gate and the listening window built on it."""
from __future__ import annotations

import numpy as np

from .config import SAMPLE_RATE, SILENCE_THRESHOLD, VOLUME_THRESHOLD
from .contracts import AudioChunk


def rms(block: np.ndarray) -> float:
    if block.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(block.astype(np.float32) ** 2)))


def is_speech_detected(block: np.ndarray, threshold: float = VOLUME_THRESHOLD) -> bool:
    """
    Very rough speech detection based on RMS volume of an int16 block.

    Returns True if the block is loud enough to be treated as speech.
    """
    return rms(block) > threshold


class ListeningWindow:
    """
    Collects int16 blocks for one capture_chunk() call and decides when to stop.

    Policies
    --------
    "fixed"
        Stop once `max_seconds` of audio has been collected.
    "vad"
        Stop once speech has been heard and then `silence_seconds` of quiet
        follow it, or at `max_seconds` regardless.

    >>> win = ListeningWindow(max_seconds=4.0, policy="fixed")
    >>> done = win.add(block)      # True when the window is complete
    >>> chunk = win.chunk()        # AudioChunk with everything collected
    """

    def __init__(
        self,
        *,
        max_seconds: float,
        policy: str = "vad",
        sample_rate_hz: int = SAMPLE_RATE,
        silence_seconds: float = SILENCE_THRESHOLD,
        volume_threshold: float = VOLUME_THRESHOLD,
    ) -> None:
        assert max_seconds > 0, "max_seconds must be > 0"
        assert policy in ("vad", "fixed"), f"unknown window policy {policy!r}"

        self.policy = policy
        self.sample_rate_hz = int(sample_rate_hz)
        self.volume_threshold = volume_threshold
        self.max_samples = int(round(self.sample_rate_hz * max_seconds))
        self.silence_samples = int(round(self.sample_rate_hz * silence_seconds))

        self._blocks: list[np.ndarray] = []
        self._samples = 0
        self._trailing_silence = 0
        self.has_speech = False

    @property
    def num_samples(self) -> int:
        return self._samples

    @property
    def duration_ms(self) -> int:
        return (1000 * self._samples) // self.sample_rate_hz

    def add(self, block: np.ndarray) -> bool:
        """Append one block; return True when the window is complete."""
        block = np.asarray(block, dtype=np.int16).reshape(-1)
        room = self.max_samples - self._samples
        if block.size > room:
            block = block[:room]
        self._blocks.append(block)
        self._samples += int(block.size)

        if is_speech_detected(block, self.volume_threshold):
            self.has_speech = True
            self._trailing_silence = 0
        else:
            self._trailing_silence += int(block.size)

        if self._samples >= self.max_samples:
            return True
        if self.policy == "vad" and self.has_speech:
            return self._trailing_silence >= self.silence_samples
        return False

    def chunk(self) -> AudioChunk:
        if self._blocks:
            data = np.concatenate(self._blocks).astype("<i2")
        else:
            data = np.zeros(0, dtype="<i2")
        return AudioChunk(data.tobytes(), self.sample_rate_hz)
