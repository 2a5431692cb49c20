"""Runtime configuration: audio constants, recognizer grammar and loop policy."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from decimal import Decimal

# ============================================================
# ====================== AUDIO SETTINGS ======================
# ============================================================

SAMPLE_RATE = 16000          # Samples per second for the microphone input (16kHz is what Vosk models expect)
BLOCK_SIZE = 1600            # Samples per capture callback (0.1s at 16kHz, also the barge-in probe cadence)
DEVICE_TIMEOUT = 2.0         # Seconds without a single audio block before the microphone is considered gone

# Listening window behavior
WINDOW_POLICIES = ("vad", "fixed")
MAX_LISTEN_SECONDS = 30      # Hard cap on one listening window
FIXED_WINDOW_SECONDS = 4.0   # Window length when the "fixed" policy is used
SILENCE_THRESHOLD = 2.5      # Seconds of silence after speech that close a "vad" window
VOLUME_THRESHOLD = 500       # Minimum RMS level (int16 scale) to treat a block as speech

# ============================================================
# ===================== CALCULATOR LIMITS ====================
# ============================================================

MAX_RESULT_ABS = Decimal("1e15")   # Reject results with absolute value larger than this
RESULT_FRACTION_DIGITS = 12        # Results are rounded to this many decimal places
SPOKEN_FRACTION_DIGITS = 4         # ... and spoken with at most this many
HISTORY_SIZE = 20                  # In-process history only, never written to disk

# ============================================================
# =================== RECOGNIZER SETTINGS ====================
# ============================================================

# Wake words, used only when the assistant is started with a wake word requirement
WAKE_WORDS = ("calculator", "calculate")

# Calculator-specific grammar for Vosk.
# Limits the recognition vocabulary so the recognizer behaves more predictably;
# "[unk]" lets anything else come through as an unknown token instead of being
# forced onto the closest calculator word.
CALC_GRAMMAR = [
    "calculator", "calculate",

    # operators / keywords
    "plus", "add", "minus", "subtract",
    "times", "multiply", "multiplied by", "multiply by", "into",
    "divided by", "divide by", "over",
    "recall", "what is the total", "clear", "reset",

    # number words (for word2number)
    "zero", "one", "two", "three", "four", "five", "six", "seven",
    "eight", "nine", "ten", "eleven", "twelve", "thirteen",
    "fourteen", "fifteen", "sixteen", "seventeen", "eighteen",
    "nineteen", "twenty", "thirty", "forty", "fifty", "sixty",
    "seventy", "eighty", "ninety", "hundred", "thousand",
    "million", "billion", "and", "point", "negative",

    "[unk]",
]


def resource_path(relative_path: str) -> str:
    """
    Return the absolute path to a resource (e.g. the Vosk model folder).

    Compatible with PyInstaller: when bundled, files are extracted to
    sys._MEIPASS; otherwise paths resolve against the current directory.
    """
    if hasattr(sys, "_MEIPASS"):
        base_path = sys._MEIPASS  # type: ignore[attr-defined]
    else:
        base_path = os.path.abspath(".")

    return os.path.join(base_path, relative_path)


# Folder name for the Vosk speech model, used when no --model is given
VOSK_MODEL_DIR = "vosk-model-small-en-us"

DEFAULT_GREETING = "Voice calculator ready. Say your calculation."


@dataclass(frozen=True)
class AssistantConfig:
    """Policy knobs for the assistant loop.

    window_policy
        "vad" stops listening after speech followed by `silence_threshold`
        seconds of quiet (or at `max_listen_seconds`); "fixed" always records
        `fixed_window_seconds`.
    barge_in
        When True, speech detected while the assistant is talking cancels the
        speaker and goes straight back to listening.
    wake_words
        Empty disables the wake word gate.
    greeting
        Spoken once on start-up. None or "" to stay quiet.
    transient_retries
        Extra attempts for a failing transcriber or speaker within one turn.
    """

    window_policy: str = "vad"
    max_listen_seconds: float = MAX_LISTEN_SECONDS
    fixed_window_seconds: float = FIXED_WINDOW_SECONDS
    silence_threshold: float = SILENCE_THRESHOLD
    barge_in: bool = False
    barge_in_poll_seconds: float = 0.05
    barge_in_guard_seconds: float = 0.2
    barge_in_min_seconds: float = 0.12
    wake_words: tuple[str, ...] = field(default_factory=tuple)
    greeting: str | None = DEFAULT_GREETING
    transient_retries: int = 1
    spoken_fraction_digits: int = SPOKEN_FRACTION_DIGITS
    history_size: int = HISTORY_SIZE

    def __post_init__(self) -> None:
        if self.window_policy not in WINDOW_POLICIES:
            raise ValueError(
                f"window_policy must be one of {WINDOW_POLICIES}, got {self.window_policy!r}"
            )
        if self.transient_retries < 0:
            raise ValueError("transient_retries must be >= 0")

    @property
    def listen_seconds(self) -> float:
        """Upper bound for one capture_chunk() call under the current policy."""
        if self.window_policy == "fixed":
            return self.fixed_window_seconds
        return self.max_listen_seconds
