"""
Exception hierarchy for the voice calculator.

Recoverable errors (bad arithmetic, unparseable speech) end up as spoken
diagnostics. Infrastructure errors from the transcriber and speaker are
retried once per turn. A DeviceError means the microphone is gone and ends
the assistant loop.
"""


class VoiceCalculatorError(Exception):
    """Base class for every error raised by this package."""


class CalculationError(VoiceCalculatorError, ValueError):
    """A command could not be evaluated. Calculator state is unchanged."""


class DivisionByZero(CalculationError, ZeroDivisionError):
    pass


class OutOfRange(CalculationError):
    """Result (or operand) is outside the range the calculator will hold."""


class UnrecognizedCommand(CalculationError):
    def __init__(self, raw_text: str):
        super().__init__(f"Could not understand: {raw_text!r}")
        self.raw_text = raw_text


class DeviceError(VoiceCalculatorError, RuntimeError):
    """The capture device failed. This is the only fatal error."""


class TranscriberError(VoiceCalculatorError, RuntimeError):
    pass


class SpeakerError(VoiceCalculatorError, RuntimeError):
    pass
