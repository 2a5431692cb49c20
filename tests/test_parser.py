from decimal import Decimal

import pytest

from ai_voice_calculator.commands import (
    ApplyToMemory,
    Clear,
    Compute,
    Operator,
    Recall,
    Unrecognized,
)
from ai_voice_calculator.parser import (
    parse_command,
    split_number_runs,
    tokenize,
    words_to_number,
)

D = Decimal


@pytest.mark.parametrize(
    "text, expected",
    [
        ("twelve plus seven", Compute(D(12), Operator.ADD, D(7))),
        ("Twelve plus seven.", Compute(D(12), Operator.ADD, D(7))),
        ("twenty-three minus 4", Compute(D(23), Operator.SUBTRACT, D(4))),
        ("12 / 4", Compute(D(12), Operator.DIVIDE, D(4))),
        ("5 x 3", Compute(D(5), Operator.MULTIPLY, D(3))),
        ("six multiplied by nine", Compute(D(6), Operator.MULTIPLY, D(9))),
        ("eight divided by two", Compute(D(8), Operator.DIVIDE, D(2))),
        ("ten over four", Compute(D(10), Operator.DIVIDE, D(4))),
        (
            "what is one hundred and five multiplied by two please",
            Compute(D(105), Operator.MULTIPLY, D(2)),
        ),
        ("zero point one plus zero point two", Compute(D("0.1"), Operator.ADD, D("0.2"))),
        ("negative four point five plus one", Compute(D("-4.5"), Operator.ADD, D(1))),
        ("two thousand five hundred minus 1,000", Compute(D(2500), Operator.SUBTRACT, D(1000))),
    ],
)
def test_compute(text, expected):
    assert parse_command(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("times two", ApplyToMemory(Operator.MULTIPLY, D(2))),
        ("divided by zero", ApplyToMemory(Operator.DIVIDE, D(0))),
        ("plus point five", ApplyToMemory(Operator.ADD, D("0.5"))),
        ("add ten", ApplyToMemory(Operator.ADD, D(10))),
        ("minus four", ApplyToMemory(Operator.SUBTRACT, D(4))),
    ],
)
def test_apply_to_memory(text, expected):
    assert parse_command(text) == expected


def test_sign_words():
    assert parse_command("minus four plus two") == Compute(D(-4), Operator.ADD, D(2))
    assert parse_command("five times minus two") == Compute(D(5), Operator.MULTIPLY, D(-2))
    assert parse_command("-3 plus 5") == Compute(D(-3), Operator.ADD, D(5))
    assert parse_command("times negative three") == ApplyToMemory(Operator.MULTIPLY, D(-3))


@pytest.mark.parametrize("text", ["recall", "what is the total", "What's the total?"])
def test_recall(text):
    assert parse_command(text) == Recall()


@pytest.mark.parametrize("text", ["clear", "reset", "please reset the memory"])
def test_clear(text):
    assert parse_command(text) == Clear()


def test_leftmost_operator_wins():
    assert parse_command("two plus three times four") == Compute(D(2), Operator.ADD, D(3))


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "hello there",
        "five",
        "seven plus",
        "plus times five",
        "five six plus two",
        "twenty zero plus one",
        "one point two point three plus one",
        "three point plus one",
    ],
)
def test_unrecognized_keeps_raw_text(text):
    assert parse_command(text) == Unrecognized(text)


@pytest.mark.parametrize(
    "text",
    [
        "point",
        "negative",
        "thousand plus one",
        "and and and",
        "plus plus plus",
        "💥 ÷ × - + /",
        "hundred hundred thousand thousand plus five",
        "one two three four five six seven eight nine ten",
        "what is the total plus clear",
        "9" * 200 + " times " + "9" * 200,
    ],
)
def test_parsing_is_total(text):
    cmd = parse_command(text)
    assert isinstance(cmd, (Compute, ApplyToMemory, Recall, Clear, Unrecognized))


def test_words_to_number():
    assert words_to_number(["twenty", "three"]) == D(23)
    assert words_to_number(["one", "hundred", "five"]) == D(105)
    assert words_to_number(["point", "zero", "five"]) == D("0.05")
    assert words_to_number(["four", "point", "five"]) == D("4.5")
    with pytest.raises(ValueError):
        words_to_number(["four", "point"])
    with pytest.raises(ValueError):
        words_to_number(["four", "point", "twenty"])


def test_split_number_runs():
    assert list(split_number_runs(["twenty", "three"])) == [["twenty", "three"]]
    assert list(split_number_runs(["five", "six"])) == [["five"], ["six"]]
    assert list(split_number_runs(["twenty", "thirty"])) == [["twenty"], ["thirty"]]
    assert list(split_number_runs(["twenty", "zero"])) == [["twenty"], ["zero"]]
    assert list(split_number_runs(["five", "hundred", "six"])) == [["five", "hundred", "six"]]


def test_tokenize_joins_phrases():
    assert tokenize("Eight divided-by two") == ["eight", "over", "two"]
    assert tokenize("twenty-three") == ["twenty", "three"]


def test_zero_after_tens_is_not_swallowed():
    assert parse_command("twenty point zero plus one") == Compute(D(20), Operator.ADD, D(1))
