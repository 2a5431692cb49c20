"""Parsed calculator commands."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Union


class Operator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Compute:
    lhs: Decimal
    op: Operator
    rhs: Decimal

    def __str__(self) -> str:
        return f"{self.lhs} {self.op} {self.rhs}"


@dataclass(frozen=True)
class ApplyToMemory:
    """`op rhs` applied to the current memory value."""

    op: Operator
    rhs: Decimal

    def __str__(self) -> str:
        return f"memory {self.op} {self.rhs}"


@dataclass(frozen=True)
class Recall:
    def __str__(self) -> str:
        return "recall"


@dataclass(frozen=True)
class Clear:
    def __str__(self) -> str:
        return "clear"


@dataclass(frozen=True)
class Unrecognized:
    raw_text: str

    def __str__(self) -> str:
        return f"unrecognized({self.raw_text!r})"


Command = Union[Compute, ApplyToMemory, Recall, Clear, Unrecognized]
