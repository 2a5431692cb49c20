from decimal import Decimal

import pytest

from ai_voice_calculator.commands import Clear, Compute, Operator, Recall
from ai_voice_calculator.errors import DivisionByZero, OutOfRange, UnrecognizedCommand
from ai_voice_calculator.speech import (
    CANNOT_DIVIDE_BY_ZERO,
    DIDNT_UNDERSTAND,
    MEMORY_CLEARED,
    OUT_OF_RANGE,
    diagnostic_phrase,
    integer_to_words,
    number_to_words,
    result_phrase,
)

D = Decimal


@pytest.mark.parametrize(
    "value, words",
    [
        (D(0), "zero"),
        (D("-0"), "zero"),
        (D(19), "nineteen"),
        (D(20), "twenty"),
        (D(38), "thirty-eight"),
        (D(100), "one hundred"),
        (D(1234), "one thousand two hundred thirty-four"),
        (D(1000000), "one million"),
        (D(10) ** 15, "one quadrillion"),
        (D("0.3"), "zero point three"),
        (D("0.05"), "zero point zero five"),
        (D("-4.5"), "negative four point five"),
        (D("3.333333333333"), "three point three three three three"),
        (D("2.71828"), "two point seven one eight three"),
        (D("0.000001"), "zero point zero zero zero zero zero one"),
    ],
)
def test_number_to_words(value, words):
    assert number_to_words(value) == words


def test_fraction_digits_are_configurable():
    assert number_to_words(D("1.23456"), fraction_digits=2) == "one point two three"


def test_integer_to_words_negative():
    assert integer_to_words(-7) == "negative seven"


def test_result_phrase():
    assert result_phrase(Compute(D(12), Operator.ADD, D(7)), D(19)) == "nineteen"
    assert result_phrase(Recall(), D(19)) == "the total is nineteen"
    assert result_phrase(Clear(), D(0)) == MEMORY_CLEARED


def test_diagnostic_phrase():
    assert diagnostic_phrase(DivisionByZero("x")) == CANNOT_DIVIDE_BY_ZERO == "cannot divide by zero"
    assert diagnostic_phrase(OutOfRange("x")) == OUT_OF_RANGE
    assert diagnostic_phrase(UnrecognizedCommand("x")) == DIDNT_UNDERSTAND == "I didn't understand that"
