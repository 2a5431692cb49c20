import pytest

from ai_voice_calculator.contracts import SpeechOutcome
from ai_voice_calculator.errors import SpeakerError
from ai_voice_calculator.tts import PyttsxSpeaker


class FakeEngine:
    """Minimal pyttsx3 engine: fires "started-word" per word until stopped."""

    def __init__(self, on_word=None, fail=False):
        self.callbacks = {}
        self.queue = []
        self.spoken_words = []
        self.properties = {}
        self.stopped = False
        self.on_word = on_word
        self.fail = fail

    def connect(self, topic, cb):
        self.callbacks[topic] = cb

    def setProperty(self, name, value):
        self.properties[name] = value

    def say(self, text):
        self.queue.append(text)

    def runAndWait(self):
        if self.fail:
            raise RuntimeError("run loop already started")
        self.stopped = False
        for text in self.queue:
            for word in text.split():
                self.callbacks["started-word"]("utt", 0, len(word))
                if self.stopped:
                    break
                self.spoken_words.append(word)
                if self.on_word:
                    self.on_word(word)
            if self.stopped:
                break
        self.queue = []

    def stop(self):
        self.stopped = True


def test_speak_completes():
    engine = FakeEngine()
    speaker = PyttsxSpeaker(engine, rate=180)
    assert speaker.speak("twelve plus seven is nineteen") == SpeechOutcome.COMPLETED
    assert engine.spoken_words == ["twelve", "plus", "seven", "is", "nineteen"]
    assert engine.properties == {"rate": 180}


def test_cancel_mid_utterance():
    holder = {}

    def interrupt(word):
        if word == "plus":
            holder["speaker"].cancel()

    engine = FakeEngine(on_word=interrupt)
    speaker = holder["speaker"] = PyttsxSpeaker(engine)

    assert speaker.speak("twelve plus seven is nineteen") == SpeechOutcome.CANCELLED
    assert engine.spoken_words == ["twelve", "plus"]

    # next utterance is not affected by the earlier cancel
    engine.on_word = None
    assert speaker.speak("nineteen") == SpeechOutcome.COMPLETED


def test_cancel_when_idle_is_ignored():
    engine = FakeEngine()
    speaker = PyttsxSpeaker(engine)
    speaker.cancel()
    assert speaker.speak("zero") == SpeechOutcome.COMPLETED


def test_engine_failure_is_speaker_error():
    speaker = PyttsxSpeaker(FakeEngine(fail=True))
    with pytest.raises(SpeakerError):
        speaker.speak("hello")


def test_close_stops_engine():
    engine = FakeEngine()
    PyttsxSpeaker(engine).close()
    assert engine.stopped
