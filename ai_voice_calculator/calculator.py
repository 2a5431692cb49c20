"""Running calculator state and command evaluation."""
from __future__ import annotations

import decimal
import logging
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .commands import (
    ApplyToMemory,
    Clear,
    Command,
    Compute,
    Operator,
    Recall,
    Unrecognized,
)
from .config import HISTORY_SIZE, MAX_RESULT_ABS, RESULT_FRACTION_DIGITS
from .errors import DivisionByZero, OutOfRange, UnrecognizedCommand

log = logging.getLogger(__name__)

# Enough significant digits for |x| <= 1e15 with RESULT_FRACTION_DIGITS after the point.
_CONTEXT = decimal.Context(
    prec=40,
    rounding=decimal.ROUND_HALF_EVEN,
    traps=[decimal.DivisionByZero, decimal.InvalidOperation, decimal.Overflow],
)
_QUANTUM = Decimal(1).scaleb(-RESULT_FRACTION_DIGITS)


@dataclass(frozen=True)
class HistoryEntry:
    command: Command
    result: Decimal


@dataclass
class CalculatorState:
    """Process-lifetime calculator state. Only CalculatorEngine mutates it."""

    memory: Decimal = Decimal(0)
    last_command_echo: Optional[Command] = None
    history: deque = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))


def _check_range(value: Decimal) -> Decimal:
    if not value.is_finite() or abs(value) > MAX_RESULT_ABS:
        raise OutOfRange(f"Result too large: {value}")
    return value


def apply_operator(op: Operator, lhs: Decimal, rhs: Decimal) -> Decimal:
    """Apply `op` exactly, then round to RESULT_FRACTION_DIGITS places.

    Raises DivisionByZero or OutOfRange; never returns a value outside
    MAX_RESULT_ABS, and never returns zero for a non-zero result that simply
    got too small to hold.
    """
    _check_range(lhs)
    _check_range(rhs)

    if op is Operator.DIVIDE and rhs.is_zero():
        raise DivisionByZero("Division by zero")

    try:
        if op is Operator.ADD:
            exact = _CONTEXT.add(lhs, rhs)
        elif op is Operator.SUBTRACT:
            exact = _CONTEXT.subtract(lhs, rhs)
        elif op is Operator.MULTIPLY:
            exact = _CONTEXT.multiply(lhs, rhs)
        else:
            exact = _CONTEXT.divide(lhs, rhs)
    except decimal.DivisionByZero as e:
        raise DivisionByZero("Division by zero") from e
    except (decimal.Overflow, decimal.InvalidOperation) as e:
        raise OutOfRange(f"Could not evaluate {lhs} {op} {rhs}: {e!r}") from e

    _check_range(exact)
    result = exact.quantize(_QUANTUM, context=_CONTEXT)
    if result.is_zero():
        if not exact.is_zero():
            raise OutOfRange(f"Result too small: {exact}")
        return Decimal(0)
    # drop trailing zeros, but keep integers as integers (19, not 1.9E+1)
    if result == result.to_integral_value():
        return result.quantize(Decimal(1), context=_CONTEXT)
    return result.normalize(_CONTEXT)


class CalculatorEngine:
    """Evaluates commands against a CalculatorState.

    State only changes after a command evaluated successfully; any raised
    error leaves memory exactly as it was.
    """

    def __init__(self, state: Optional[CalculatorState] = None, *, history_size: int = HISTORY_SIZE):
        self.state = state if state is not None else CalculatorState(
            history=deque(maxlen=history_size)
        )

    @property
    def memory(self) -> Decimal:
        return self.state.memory

    def evaluate(self, command: Command) -> Decimal:
        """Evaluate `command` and return the value to report.

        Raises
        ------
        DivisionByZero, OutOfRange
            Arithmetic was rejected. Memory is unchanged.
        UnrecognizedCommand
            `command` is Unrecognized and there is nothing to evaluate.
        """
        if isinstance(command, Compute):
            result = apply_operator(command.op, command.lhs, command.rhs)
            self._store(command, result)
        elif isinstance(command, ApplyToMemory):
            result = apply_operator(command.op, self.state.memory, command.rhs)
            self._store(command, result)
        elif isinstance(command, Clear):
            result = Decimal(0)
            self._store(command, result)
        elif isinstance(command, Recall):
            result = self.state.memory
        elif isinstance(command, Unrecognized):
            raise UnrecognizedCommand(command.raw_text)
        else:
            raise TypeError(f"Not a calculator command: {command!r}")

        log.info("[EVAL]: %s = %s", command, result)
        return result

    def _store(self, command: Command, result: Decimal) -> None:
        self.state.memory = result
        self.state.last_command_echo = command
        self.state.history.append(HistoryEntry(command, result))
