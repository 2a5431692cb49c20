"""Render results and diagnostics as text the speaker reads out."""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

from .commands import Clear, Command, Recall
from .config import SPOKEN_FRACTION_DIGITS
from .errors import DivisionByZero, OutOfRange, VoiceCalculatorError

DIDNT_UNDERSTAND = "I didn't understand that"
CANNOT_DIVIDE_BY_ZERO = "cannot divide by zero"
OUT_OF_RANGE = "that number is out of range"
MEMORY_CLEARED = "memory cleared"
WAKE_ACKNOWLEDGED = "ready"

_ONES = [
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
]
_TENS = [
    "", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety",
]
_SCALES = [
    (10 ** 15, "quadrillion"),
    (10 ** 12, "trillion"),
    (10 ** 9, "billion"),
    (10 ** 6, "million"),
    (10 ** 3, "thousand"),
]


def _below_thousand(n: int) -> list[str]:
    words = []
    hundreds, rest = divmod(n, 100)
    if hundreds:
        words += [_ONES[hundreds], "hundred"]
    if rest >= 20:
        tens, ones = divmod(rest, 10)
        words.append(_TENS[tens] if not ones else f"{_TENS[tens]}-{_ONES[ones]}")
    elif rest or not words:
        words.append(_ONES[rest])
    return words


def integer_to_words(n: int) -> str:
    """0 -> "zero", 1234 -> "one thousand two hundred thirty-four"."""
    if n < 0:
        return "negative " + integer_to_words(-n)
    if n == 0:
        return "zero"
    words: list[str] = []
    for size, name in _SCALES:
        count, n = divmod(n, size)
        if count:
            words += _below_thousand(count) + [name]
    if n:
        words += _below_thousand(n)
    return " ".join(words)


def number_to_words(value: Decimal, fraction_digits: int = SPOKEN_FRACTION_DIGITS) -> str:
    """Spell out a decimal the way a person would say it.

    The fraction is rounded to `fraction_digits` places and read digit by
    digit: Decimal("-4.5") -> "negative four point five". A tiny non-zero
    value is read in full rather than rounded away to "zero".
    """
    rounded = value.quantize(Decimal(1).scaleb(-fraction_digits), rounding=ROUND_HALF_EVEN)
    if rounded.is_zero() and not value.is_zero():
        rounded = value
    if rounded.is_zero():
        return "zero"

    sign, digits, exponent = rounded.normalize().as_tuple()
    text = "".join(map(str, digits))
    if exponent >= 0:
        integer_text, fraction_text = text + "0" * exponent, ""
    else:
        cut = len(text) + exponent
        integer_text = text[:cut] if cut > 0 else "0"
        fraction_text = ("0" * -cut if cut < 0 else "") + text[max(cut, 0):]

    spoken = integer_to_words(int(integer_text))
    if fraction_text:
        spoken += " point " + " ".join(_ONES[int(d)] for d in fraction_text)
    return ("negative " + spoken) if sign else spoken


def result_phrase(command: Command, value: Decimal, fraction_digits: int = SPOKEN_FRACTION_DIGITS) -> str:
    if isinstance(command, Clear):
        return MEMORY_CLEARED
    words = number_to_words(value, fraction_digits)
    if isinstance(command, Recall):
        return f"the total is {words}"
    return words


def diagnostic_phrase(error: VoiceCalculatorError) -> str:
    if isinstance(error, DivisionByZero):
        return CANNOT_DIVIDE_BY_ZERO
    if isinstance(error, OutOfRange):
        return OUT_OF_RANGE
    return DIDNT_UNDERSTAND
