"""Speech-to-text over an offline Vosk model."""
from __future__ import annotations

import json
import logging
from typing import Optional, Sequence

from vosk import KaldiRecognizer, Model, SetLogLevel  # Offline speech recognition engine (Vosk)

from .config import CALC_GRAMMAR
from .contracts import AudioChunk, Transcript
from .errors import TranscriberError

log = logging.getLogger(__name__)

UNKNOWN_TOKEN = "[unk]"


class VoskTranscriber:
    """Transcribes one listening window at a time.

    A fresh KaldiRecognizer is built per chunk so nothing from the previous
    utterance leaks into the next one. With a grammar, recognition is limited
    to calculator vocabulary; words outside it come back as "[unk]" and are
    dropped.
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        *,
        grammar: Optional[Sequence[str]] = CALC_GRAMMAR,
        model: Optional[Model] = None,
        quiet: bool = True,
    ) -> None:
        if quiet:
            SetLogLevel(-1)
        if model is None:
            if model_path is None:
                raise ValueError("Either model_path or model is required")
            log.info("Loading Vosk model from: %s", model_path)
            try:
                model = Model(model_path)
            except Exception as e:
                raise TranscriberError(f"Failed to load Vosk model from {model_path}: {e}") from e
            log.info("Model loaded.")
        self._model = model
        self._grammar = json.dumps(list(grammar)) if grammar else None

    def _recognizer(self, sample_rate_hz: int) -> KaldiRecognizer:
        if self._grammar is not None:
            return KaldiRecognizer(self._model, sample_rate_hz, self._grammar)
        return KaldiRecognizer(self._model, sample_rate_hz)

    def transcribe(self, chunk: AudioChunk) -> Transcript:
        if chunk.num_samples == 0:
            return Transcript.empty()

        try:
            recognizer = self._recognizer(chunk.sample_rate_hz)
            recognizer.AcceptWaveform(chunk.pcm16)
            result = json.loads(recognizer.FinalResult())
        except Exception as e:
            raise TranscriberError(f"Vosk failed on a {chunk.duration_ms} ms chunk: {e}") from e

        words = [w for w in result.get("text", "").split() if w != UNKNOWN_TOKEN]
        text = " ".join(words)
        if not text:
            log.debug("[FINAL STT]: (no speech)")
            return Transcript.empty()

        log.info("[FINAL STT]: %s", text)
        return Transcript.recognized(text)
