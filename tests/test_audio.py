from types import SimpleNamespace

import numpy as np
import pytest

try:
    from ai_voice_calculator.audio import MicrophoneCapture
except OSError as e:  # sounddevice without a PortAudio library
    pytest.skip(f"sounddevice unavailable: {e}", allow_module_level=True)

from ai_voice_calculator.errors import DeviceError

SR = 16000
SR_MS = SR // 1000


def indata_ms(value: int, ms: int) -> np.ndarray:
    """A (frames, 1) int16 block shaped like sounddevice's callback input."""
    return np.full((SR_MS * ms, 1), value, dtype=np.int16)


class FakeStream:
    active = True
    time = 0.0

    def stop(self):
        self.active = False

    def close(self):
        pass


def make_capture(**kwargs) -> MicrophoneCapture:
    kwargs.setdefault("policy", "fixed")
    kwargs.setdefault("device_timeout", 0.05)
    cap = MicrophoneCapture(sample_rate_hz=SR, **kwargs)
    cap._stream = FakeStream()  # skip opening a real device
    return cap


def test_capture_collects_blocks_into_a_chunk():
    cap = make_capture()
    for _ in range(3):
        cap._audio_callback(indata_ms(7, 100), SR_MS * 100, None, None)
    chunk = cap.capture_chunk(0.3)
    assert chunk.num_samples == SR_MS * 300
    assert chunk.sample_rate_hz == SR
    assert set(chunk.samples().tolist()) == {7}


def test_blocks_arriving_while_muted_are_dropped():
    cap = make_capture()
    cap._audio_callback(indata_ms(1, 100), SR_MS * 100, None, None)   # queued before mute
    cap.mute()
    cap._audio_callback(indata_ms(2, 100), SR_MS * 100, None, None)   # assistant talking
    cap.unmute()
    cap._audio_callback(indata_ms(3, 100), SR_MS * 100, None, None)
    chunk = cap.capture_chunk(0.1)
    assert set(chunk.samples().tolist()) == {3}


def test_mute_and_unmute_are_idempotent():
    cap = make_capture()
    cap.mute()
    cap.mute()
    assert cap.muted
    cap.unmute()
    cap.unmute()
    assert not cap.muted


def test_voice_probe_works_while_muted():
    cap = make_capture(volume_threshold=500)
    cap.mute()
    assert not cap.voice_detected()
    cap._audio_callback(indata_ms(4000, 100), SR_MS * 100, None, None)
    assert cap.voice_detected()
    cap._audio_callback(indata_ms(0, 100), SR_MS * 100, None, None)
    assert not cap.voice_detected()


def test_capture_while_muted_is_a_bug():
    cap = make_capture()
    cap.mute()
    with pytest.raises(RuntimeError):
        cap.capture_chunk(0.1)


def test_silent_device_raises_device_error():
    cap = make_capture()
    with pytest.raises(DeviceError):
        cap.capture_chunk(0.1)


def test_close_stops_stream():
    cap = make_capture()
    stream = cap._stream
    cap.close()
    assert not stream.active
    cap.close()


def adc_at(seconds: float) -> SimpleNamespace:
    """Callback time info as sounddevice passes it."""
    return SimpleNamespace(inputBufferAdcTime=seconds)


def test_blocks_recorded_before_unmute_are_dropped():
    cap = make_capture()
    cap.mute()
    cap._stream.time = 10.0
    cap.unmute()
    # recorded while the assistant was still talking, delivered late
    cap._audio_callback(indata_ms(2, 100), SR_MS * 100, adc_at(9.9), None)
    cap._audio_callback(indata_ms(3, 100), SR_MS * 100, adc_at(10.05), None)
    chunk = cap.capture_chunk(0.1)
    assert set(chunk.samples().tolist()) == {3}


def test_missing_adc_time_keeps_blocks():
    cap = make_capture()
    cap.mute()
    cap._stream.time = 10.0
    cap.unmute()
    cap._audio_callback(indata_ms(5, 100), SR_MS * 100, adc_at(0.0), None)
    chunk = cap.capture_chunk(0.1)
    assert set(chunk.samples().tolist()) == {5}
