"""Data passed between the assistant loop and its collaborators."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Protocol

import numpy as np


# --------- Types ---------
@dataclass(frozen=True)
class AudioChunk:
    """One listening window of PCM16 LE mono audio.

    `pcm16` is immutable bytes; the loop hands the chunk to the transcriber
    and drops it afterwards.
    """

    pcm16: bytes
    sample_rate_hz: int

    @property
    def num_samples(self) -> int:
        return len(self.pcm16) // 2

    @property
    def duration_ms(self) -> int:
        return (1000 * self.num_samples) // self.sample_rate_hz

    def samples(self) -> np.ndarray:
        """Samples as an int16 array (read-only view over the bytes)."""
        return np.frombuffer(self.pcm16, dtype=np.int16)


@dataclass(frozen=True)
class Transcript:
    """Recognized text, or nothing (`text is None`) when no speech was found."""

    text: Optional[str] = None

    @classmethod
    def recognized(cls, text: str) -> "Transcript":
        text = text.strip()
        return cls(text or None)

    @classmethod
    def empty(cls) -> "Transcript":
        return cls(None)

    @property
    def is_empty(self) -> bool:
        return not self.text


class SpeechOutcome(Enum):
    COMPLETED = auto()
    CANCELLED = auto()


class TurnKind(Enum):
    SPOKEN = auto()
    SILENT_RETRY = auto()
    FATAL_ERROR = auto()


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one pass through the assistant loop."""

    kind: TurnKind
    text: str = ""      # what was said for SPOKEN, the reason for FATAL_ERROR
    cancelled: bool = False

    @classmethod
    def spoken(cls, text: str, *, cancelled: bool = False) -> "TurnResult":
        return cls(TurnKind.SPOKEN, text, cancelled)

    @classmethod
    def silent_retry(cls) -> "TurnResult":
        return cls(TurnKind.SILENT_RETRY)

    @classmethod
    def fatal(cls, reason: str) -> "TurnResult":
        return cls(TurnKind.FATAL_ERROR, reason)


# --------- Protocols ---------
class CaptureDevice(Protocol):
    def capture_chunk(self, max_duration: float) -> AudioChunk: ...
    """
    Block until one listening window is complete. Raises DeviceError when the
    microphone is unavailable. Must not return audio recorded while muted.
    """
    def mute(self) -> None: ...
    """Stop delivering audio. Idempotent."""
    def unmute(self) -> None: ...
    """Resume delivering audio. Idempotent."""
    def voice_detected(self) -> bool: ...
    """
    Level probe used for barge-in. Reports whether the latest block was speech,
    even while muted; it never hands that audio to anyone.
    """


class Transcriber(Protocol):
    def transcribe(self, chunk: AudioChunk) -> Transcript: ...
    """
    Return Transcript.empty() for silence or noise. Raises TranscriberError
    when the engine itself fails.
    """


class Speaker(Protocol):
    def speak(self, text: str) -> SpeechOutcome: ...
    """
    Block until the text has been spoken or the speech was cancelled. The
    audio device must be released on both paths. Raises SpeakerError.
    """
    def cancel(self) -> None: ...
    """Ask an in-flight speak() to stop. Safe to call from another thread."""
