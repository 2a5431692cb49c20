"""
The assistant's turn-taking loop.

One turn: listen -> transcribe -> parse -> evaluate -> speak. Everything runs
on the caller's thread, one stage at a time. The microphone is muted for the
whole time the speaker is talking (see `speaking_token`), so the assistant
never transcribes its own voice.

Failures inside a turn become spoken diagnostics and the loop goes back to
listening. The only thing that stops it, apart from stop() or max_turns, is
a DeviceError from the microphone.
"""
from __future__ import annotations

import logging
import re
import threading
from contextlib import contextmanager
from enum import Enum, auto
from typing import Callable, Iterator, Optional, TypeVar

from .calculator import CalculatorEngine
from .config import AssistantConfig
from .contracts import (
    CaptureDevice,
    Speaker,
    SpeechOutcome,
    Transcriber,
    Transcript,
    TurnKind,
    TurnResult,
)
from .errors import CalculationError, DeviceError, SpeakerError, TranscriberError
from .parser import parse_command
from .speech import DIDNT_UNDERSTAND, WAKE_ACKNOWLEDGED, diagnostic_phrase, result_phrase

log = logging.getLogger(__name__)

T = TypeVar("T")


class AssistantState(Enum):
    IDLE = auto()
    LISTENING = auto()
    TRANSCRIBING = auto()
    PARSING = auto()
    EVALUATING = auto()
    SPEAKING = auto()


@contextmanager
def speaking_token(capture: CaptureDevice) -> Iterator[None]:
    """Hold the microphone muted for the lifetime of the block.

    Unmutes on every exit path: normal completion, cancellation, or an
    exception escaping the speaker.
    """
    capture.mute()
    try:
        yield
    finally:
        capture.unmute()


class BargeInMonitor:
    """
    Watches the capture level probe while the speaker talks and cancels the
    speaker once the user has been talking over it for `min_seconds`.

    The first `guard_seconds` are ignored so the start of the assistant's own
    output doesn't count as an interruption.
    """

    def __init__(
        self,
        capture: CaptureDevice,
        speaker: Speaker,
        *,
        poll_seconds: float,
        guard_seconds: float,
        min_seconds: float,
    ) -> None:
        self.capture = capture
        self.speaker = speaker
        self.poll_seconds = poll_seconds
        self.guard_seconds = guard_seconds
        self.min_seconds = min_seconds
        self.triggered = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "BargeInMonitor":
        self._thread = threading.Thread(target=self._run, name="barge-in", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        if self._stop.wait(self.guard_seconds):
            return
        heard = 0.0
        while not self._stop.wait(self.poll_seconds):
            if self.capture.voice_detected():
                heard += self.poll_seconds
            else:
                heard = 0.0
            if heard >= self.min_seconds:
                log.info("[BARGE-IN] speech over the assistant, cancelling playback")
                self.triggered = True
                self.speaker.cancel()
                return


class AssistantLoop:
    def __init__(
        self,
        capture: CaptureDevice,
        transcriber: Transcriber,
        speaker: Speaker,
        *,
        engine: Optional[CalculatorEngine] = None,
        config: Optional[AssistantConfig] = None,
    ) -> None:
        self.capture = capture
        self.transcriber = transcriber
        self.speaker = speaker
        self.config = config or AssistantConfig()
        self.engine = engine or CalculatorEngine(history_size=self.config.history_size)
        self.state = AssistantState.IDLE
        self._running = threading.Event()
        self._wake_res = [re.compile(rf"\b{re.escape(w.lower())}\b") for w in self.config.wake_words]
        # set after a bare wake word; the next phrase needs no wake word
        self._armed = False

    # ----------------- lifecycle -----------------
    def stop(self) -> None:
        """Ask the loop to finish after the current turn."""
        self._running.clear()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def run(self, max_turns: Optional[int] = None) -> Optional[TurnResult]:
        """Run turns until stop(), `max_turns`, or a fatal capture error.

        Returns the last TurnResult (None if no turn ran).
        """
        self._running.set()
        self._set_state(AssistantState.IDLE)
        if self.config.greeting:
            self._say(self.config.greeting)

        last: Optional[TurnResult] = None
        turns = 0
        try:
            while self._running.is_set():
                if max_turns is not None and turns >= max_turns:
                    break
                last = self.run_turn()
                turns += 1
                if last.kind is TurnKind.FATAL_ERROR:
                    break
        finally:
            self._running.clear()
            self._set_state(AssistantState.IDLE)
        return last

    def run_turn(self) -> TurnResult:
        # Listen: a dead microphone is the only thing that ends the loop
        self._set_state(AssistantState.LISTENING)
        try:
            chunk = self.capture.capture_chunk(self.config.listen_seconds)
        except DeviceError as e:
            log.error("[FATAL] microphone unavailable: %s", e)
            return TurnResult.fatal(str(e))

        self._set_state(AssistantState.TRANSCRIBING)
        try:
            transcript: Transcript = self._retry("transcriber", TranscriberError, self.transcriber.transcribe, chunk)
        except TranscriberError as e:
            log.error("[STT ERROR]: %s", e)
            return self._respond(DIDNT_UNDERSTAND)

        # Silence or noise: listen again without saying anything
        if transcript.is_empty:
            log.debug("[SILENCE] nothing recognized, listening again")
            return TurnResult.silent_retry()

        text = transcript.text
        log.info("[YOU]: %s", text)

        if self._wake_res:
            stripped = self._strip_wake_words(text)
            armed, self._armed = self._armed, False
            if stripped is None and not armed:
                log.info("[WAKE] no wake word detected, ignoring")
                return TurnResult.silent_retry()
            if stripped == "":
                # Wake word on its own: acknowledge and take the next phrase as the command
                log.info("[WAKE] wake word heard, waiting for a command")
                self._armed = True
                return self._respond(WAKE_ACKNOWLEDGED)
            if stripped is not None:
                text = stripped

        self._set_state(AssistantState.PARSING)
        command = parse_command(text)
        log.info("[PARSED]: %s", command)

        # Errors from evaluation are spoken; memory is left as it was
        self._set_state(AssistantState.EVALUATING)
        try:
            value = self.engine.evaluate(command)
        except CalculationError as e:
            log.warning("[EVAL ERROR]: %s", e)
            return self._respond(diagnostic_phrase(e))

        return self._respond(result_phrase(command, value, self.config.spoken_fraction_digits))

    # ----------------- helpers -----------------
    def _set_state(self, state: AssistantState) -> None:
        if state is not self.state:
            log.debug("[STATE] %s -> %s", self.state.name, state.name)
        self.state = state

    def _strip_wake_words(self, text: str) -> Optional[str]:
        lower = text.lower()
        if not any(r.search(lower) for r in self._wake_res):
            return None
        for r in self._wake_res:
            lower = r.sub(" ", lower)
        return " ".join(lower.split()).strip(" ,.!?")

    def _retry(self, name: str, error: type, fn: Callable[..., T], *args) -> T:
        attempts = 1 + self.config.transient_retries
        for attempt in range(1, attempts + 1):
            try:
                return fn(*args)
            except error as e:
                if attempt == attempts:
                    raise
                log.warning("[RETRY] %s failed (%s), attempt %d of %d", name, e, attempt + 1, attempts)
        raise AssertionError("unreachable")

    def _say(self, text: str) -> Optional[SpeechOutcome]:
        """Speak under the speaking token. Returns None if the speaker gave up."""
        self._set_state(AssistantState.SPEAKING)
        try:
            with speaking_token(self.capture):
                if self.config.barge_in:
                    with BargeInMonitor(
                        self.capture,
                        self.speaker,
                        poll_seconds=self.config.barge_in_poll_seconds,
                        guard_seconds=self.config.barge_in_guard_seconds,
                        min_seconds=self.config.barge_in_min_seconds,
                    ):
                        return self._retry("speaker", SpeakerError, self.speaker.speak, text)
                return self._retry("speaker", SpeakerError, self.speaker.speak, text)
        except SpeakerError as e:
            log.error("[SPEAK ERROR] could not say %r: %s", text, e)
            return None
        finally:
            self._set_state(AssistantState.IDLE)

    def _respond(self, text: str) -> TurnResult:
        outcome = self._say(text)
        if outcome is None:
            return TurnResult.silent_retry()
        return TurnResult.spoken(text, cancelled=outcome is SpeechOutcome.CANCELLED)
