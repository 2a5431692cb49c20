"""Speech output through the pyttsx3 offline TTS engine."""
from __future__ import annotations

import logging
import threading
from typing import Optional

import pyttsx3  # Offline text-to-speech engine

from .contracts import SpeechOutcome
from .errors import SpeakerError

log = logging.getLogger(__name__)


class PyttsxSpeaker:
    """
    Blocking speaker with cooperative cancellation.

    speak() runs the engine's runAndWait() on the calling thread. cancel() may
    be called from any thread; it only takes effect while speak() is running,
    and the engine is stopped from its own "started-word" callback so the
    driver winds down the utterance and releases the audio device itself.
    """

    def __init__(self, engine=None, *, rate: Optional[int] = None, voice: Optional[str] = None):
        if engine is None:
            try:
                engine = pyttsx3.init()
            except (RuntimeError, OSError, ImportError) as e:
                raise SpeakerError(f"Could not start text-to-speech engine: {e}") from e
        self._engine = engine
        if rate is not None:
            self._engine.setProperty("rate", rate)
        if voice is not None:
            self._engine.setProperty("voice", voice)

        # Only one thread uses the engine at a time
        self._engine_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._speaking = False
        self._cancel = threading.Event()
        self._engine.connect("started-word", self._on_word)

    def _on_word(self, name, location, length) -> None:
        if self._cancel.is_set():
            self._engine.stop()

    def speak(self, text: str) -> SpeechOutcome:
        log.info("[ASSISTANT]: %s", text)
        with self._engine_lock:
            with self._state_lock:
                self._cancel.clear()
                self._speaking = True
            try:
                self._engine.say(text)
                self._engine.runAndWait()
            except RuntimeError as e:
                raise SpeakerError(f"Text-to-speech failed: {e}") from e
            finally:
                with self._state_lock:
                    self._speaking = False
                    cancelled = self._cancel.is_set()
                    self._cancel.clear()

        if cancelled:
            log.info("[ASSISTANT] speech cancelled")
            return SpeechOutcome.CANCELLED
        return SpeechOutcome.COMPLETED

    def cancel(self) -> None:
        with self._state_lock:
            if self._speaking:
                self._cancel.set()

    def close(self) -> None:
        with self._engine_lock:
            try:
                self._engine.stop()
            except RuntimeError as e:
                log.warning("Error while stopping text-to-speech engine: %s", e)
