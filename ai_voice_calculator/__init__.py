"""Offline voice calculator: listen, transcribe, calculate, speak."""
from .calculator import CalculatorEngine, CalculatorState
from .commands import ApplyToMemory, Clear, Command, Compute, Operator, Recall, Unrecognized
from .config import AssistantConfig
from .contracts import AudioChunk, SpeechOutcome, Transcript, TurnKind, TurnResult
from .loop import AssistantLoop, AssistantState
from .parser import parse_command

__version__ = "0.1.0"
