"""Microphone capture over sounddevice, with a mute gate for half-duplex use."""
from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

import numpy as np
import sounddevice as sd  # For capturing audio from the microphone in real time

from .config import (
    BLOCK_SIZE,
    DEVICE_TIMEOUT,
    SAMPLE_RATE,
    SILENCE_THRESHOLD,
    VOLUME_THRESHOLD,
)
from .contracts import AudioChunk
from .errors import DeviceError
from .vad import ListeningWindow, is_speech_detected

log = logging.getLogger(__name__)


class MicrophoneCapture:
    """
    Always-open input stream that hands out one AudioChunk per listening window.

    The stream keeps running while muted so the barge-in probe can still see
    the input level, but every block that arrives while muted is dropped in
    the callback and never reaches a chunk. mute() also drains whatever was
    queued before it, under the same lock the callback uses.
    """

    def __init__(
        self,
        *,
        policy: str = "vad",
        sample_rate_hz: int = SAMPLE_RATE,
        block_size: int = BLOCK_SIZE,
        silence_seconds: float = SILENCE_THRESHOLD,
        volume_threshold: float = VOLUME_THRESHOLD,
        device_timeout: float = DEVICE_TIMEOUT,
        device: Optional[int | str] = None,
    ) -> None:
        self.policy = policy
        self.sample_rate_hz = sample_rate_hz
        self.block_size = block_size
        self.silence_seconds = silence_seconds
        self.volume_threshold = volume_threshold
        self.device_timeout = device_timeout
        self.device = device

        self._audio_q: "queue.Queue[np.ndarray]" = queue.Queue()
        self._lock = threading.Lock()
        self._muted = False
        self._unmuted_at = 0.0
        self._last_block_speech = False
        self._stream: Optional[sd.InputStream] = None

    # ----------------- stream lifetime -----------------
    def start(self) -> None:
        if self._stream is not None:
            return
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate_hz,
                blocksize=self.block_size,
                dtype="int16",
                channels=1,
                device=self.device,
                callback=self._audio_callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._stream = None
            raise DeviceError(f"Could not open microphone: {e}") from e
        log.info("[MIC] input stream open at %d Hz, %d samples per block",
                 self.sample_rate_hz, self.block_size)

    def close(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            log.warning("[MIC] error while closing input stream: %s", e)

    def __enter__(self) -> "MicrophoneCapture":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _audio_callback(self, indata, frames, t, status) -> None:
        """
        Called by sounddevice for each audio block.

        indata is a 2D int16 array (frames, channels); only the first channel is used.
        """
        if status:
            # Overflows etc. are logged but the block is still used
            log.warning("[AUDIO STATUS]: %s", status)

        # Copy: sounddevice reuses the indata buffer after we return
        block = indata[:, 0].copy().astype(np.int16)
        # Level probe for barge-in, updated even while muted
        speech = is_speech_detected(block, self.volume_threshold)
        # When this block hit the ADC (0.0 if the host API doesn't report it)
        adc_time = getattr(t, "inputBufferAdcTime", 0.0) or 0.0

        with self._lock:
            self._last_block_speech = speech
            if self._muted:
                return
            # Recorded before unmute() but delivered after it: the tail of
            # the assistant's own voice
            if adc_time and adc_time < self._unmuted_at:
                return
            self._audio_q.put(block)

    # ----------------- half-duplex gate -----------------
    def _drain(self) -> None:
        while True:
            try:
                self._audio_q.get_nowait()
            except queue.Empty:
                return

    def mute(self) -> None:
        with self._lock:
            self._muted = True
            self._drain()

    def _stream_time(self) -> float:
        stream = self._stream
        if stream is None:
            return 0.0
        try:
            return float(stream.time)
        except sd.PortAudioError as e:
            log.warning("[MIC] could not read stream time: %s", e)
            return 0.0

    def unmute(self) -> None:
        now = self._stream_time()
        with self._lock:
            if self._muted:
                self._drain()
                self._unmuted_at = now
            self._muted = False
            self._last_block_speech = False

    @property
    def muted(self) -> bool:
        with self._lock:
            return self._muted

    def voice_detected(self) -> bool:
        with self._lock:
            return self._last_block_speech

    # ----------------- capture -----------------
    def capture_chunk(self, max_duration: float) -> AudioChunk:
        """
        Listen until the window policy says stop or `max_duration` seconds pass.

        Raises DeviceError if no audio block shows up for `device_timeout`
        seconds, which is what an unplugged or dead microphone looks like.
        """
        if self.muted:
            raise RuntimeError("capture_chunk() called while the microphone is muted")
        self.start()

        window = ListeningWindow(
            max_seconds=max_duration,
            policy=self.policy,
            sample_rate_hz=self.sample_rate_hz,
            silence_seconds=self.silence_seconds,
            volume_threshold=self.volume_threshold,
        )
        log.info("[LISTENING] Max %ss, policy %s", max_duration, self.policy)

        while True:
            # Get the next audio block; a long wait means the device is gone
            try:
                block = self._audio_q.get(timeout=self.device_timeout)
            except queue.Empty:
                stream = self._stream
                state = "stopped" if stream is None or not stream.active else "silent"
                raise DeviceError(
                    f"No audio from microphone for {self.device_timeout}s (stream {state})"
                ) from None
            # Stop once the window policy says the phrase is over
            if window.add(block):
                break

        log.debug("[LISTENING] window closed after %d ms (speech=%s)",
                  window.duration_ms, window.has_speech)
        return window.chunk()
