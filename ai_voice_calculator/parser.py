"""
Turn recognized speech into a calculator Command.

    "twelve plus seven"        -> Compute(12, +, 7)
    "times two"                -> ApplyToMemory(*, 2)
    "negative four point five" -> a single operand, -4.5
    "what is the total"        -> Recall()
    "uh, banana"               -> Unrecognized("uh, banana")

parse_command() never raises: anything it can't make sense of comes back as
Unrecognized with the original text.
"""
from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Iterator, Union

from word2number import w2n

from .commands import (
    ApplyToMemory,
    Clear,
    Command,
    Compute,
    Operator,
    Recall,
    Unrecognized,
)

log = logging.getLogger(__name__)

DIGIT_WORDS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
}
TEEN_WORDS = {
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen",
    "sixteen", "seventeen", "eighteen", "nineteen",
}
TENS_WORDS = {
    "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety",
}
SCALE_WORDS = {"hundred", "thousand", "million", "billion"}

NUMBER_WORDS = set(DIGIT_WORDS) | TEEN_WORDS | TENS_WORDS | SCALE_WORDS

# Multi-word phrases collapsed to a single keyword before tokenizing, so
# "divided by" doesn't leave a stray "by" behind.
PHRASES = {
    "multiplied by": "times",
    "multiply by": "times",
    "divided by": "over",
    "divide by": "over",
    "what is the total": "recall",
    "what's the total": "recall",
}

OPERATOR_WORDS = {
    "plus": Operator.ADD,
    "add": Operator.ADD,
    "+": Operator.ADD,
    "minus": Operator.SUBTRACT,
    "subtract": Operator.SUBTRACT,
    "-": Operator.SUBTRACT,
    "times": Operator.MULTIPLY,
    "multiply": Operator.MULTIPLY,
    "into": Operator.MULTIPLY,
    "x": Operator.MULTIPLY,
    "*": Operator.MULTIPLY,
    "×": Operator.MULTIPLY,
    "over": Operator.DIVIDE,
    "divide": Operator.DIVIDE,
    "/": Operator.DIVIDE,
    "÷": Operator.DIVIDE,
}

KEYWORDS = {
    "recall": Recall,
    "clear": Clear,
    "reset": Clear,
}

NEGATIVE_WORD = "negative"

_TOKEN_RE = re.compile(r"\d+(?:\.\d+)?|[a-z']+|[+\-*/×÷]")

# (kind, value) where kind is "num", "op" or "kw"
Item = tuple[str, Union[Decimal, Operator, type]]


# ---------------------------------------------------------------------------
# Number words
# ---------------------------------------------------------------------------

def _word_class(word: str) -> str:
    if word in DIGIT_WORDS or word in TEEN_WORDS:
        return "small"
    if word in TENS_WORDS:
        return "tens"
    return "scale"


def split_number_runs(words: list[str]) -> Iterator[list[str]]:
    """Split a run of number words where one spoken number ends and the next begins.

    "twenty three" stays together, "five six" is two numbers, and so are
    "twenty thirty" and "twenty zero". Scale words ("hundred", "thousand",
    ...) always continue the current number.
    """
    current: list[str] = []
    prev = None
    for word in words:
        cls = _word_class(word)
        starts_new = (
            (prev == "small" and cls in ("small", "tens"))
            or (prev == "tens" and cls == "tens")
            or (prev == "tens" and word == "zero")
        )
        if current and starts_new:
            yield current
            current = []
        current.append(word)
        prev = cls
    if current:
        yield current


def words_to_number(words: list[str]) -> Decimal:
    """Convert number words, optionally with a "point" fraction, to a Decimal.

    The integer part goes through word2number; the fraction is read digit by
    digit ("point zero five" -> .05) so no binary float is ever involved.

    Raises ValueError if the words don't form a number.
    """
    if words.count("point") > 1:
        raise ValueError("More than one decimal point")

    if "point" in words:
        cut = words.index("point")
        integer_words, fraction_words = words[:cut], words[cut + 1:]
        if not fraction_words:
            raise ValueError("Nothing after 'point'")
        if any(w not in DIGIT_WORDS for w in fraction_words):
            raise ValueError(f"Not a digit after 'point': {' '.join(fraction_words)}")
        fraction = "".join(str(DIGIT_WORDS[w]) for w in fraction_words)
    else:
        integer_words, fraction = words, ""

    integer = 0
    if integer_words:
        # IndexError escapes word2number on some odd scale-word orderings
        try:
            integer = w2n.word_to_num(" ".join(integer_words))
        except IndexError as e:
            raise ValueError(f"Could not convert number phrase: {' '.join(integer_words)}") from e

    return Decimal(f"{integer}.{fraction}") if fraction else Decimal(integer)


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------

def normalize(text: str) -> str:
    """Lowercase, join hyphenated number words and collapse multi-word phrases."""
    text = text.lower()
    text = re.sub(r"(?<=[a-z])-(?=[a-z])", " ", text)   # twenty-three
    text = re.sub(r"(?<=\d),(?=\d{3})", "", text)        # 1,000
    text = re.sub(r"\s+", " ", text).strip()
    for phrase, keyword in PHRASES.items():
        text = re.sub(rf"\b{re.escape(phrase)}\b", keyword, text)
    return text


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(normalize(text))


def _read_items(tokens: list[str]) -> list[Item]:
    """Group tokens into numbers, operators and keywords. Filler is dropped."""
    items: list[Item] = []
    negate = False      # "negative" seen, applies to the next number
    i = 0
    while i < len(tokens):
        tok = tokens[i]

        # Digits the recognizer already wrote as numbers ("12", "4.5")
        if tok[0].isdigit():
            value = Decimal(tok)
            items.append(("num", -value if negate else value))
            negate = False
            i += 1
            continue

        # Collect the whole run of number words, then split it into numbers
        if tok in NUMBER_WORDS or tok == "point":
            run: list[str] = []
            while i < len(tokens):
                t = tokens[i]
                if t in NUMBER_WORDS or t == "point":
                    run.append(t)
                elif t == "and" and run and i + 1 < len(tokens) and tokens[i + 1] in NUMBER_WORDS:
                    pass    # "one hundred and five"
                else:
                    break
                i += 1

            if "point" in run:
                # only the last spoken number before "point" owns the fraction
                cut = run.index("point")
                groups = list(split_number_runs(run[:cut])) or [[]]
                groups[-1] = groups[-1] + run[cut:]
            else:
                groups = list(split_number_runs(run))
            for group in groups:
                value = words_to_number(group)
                items.append(("num", -value if negate else value))
                negate = False
            continue

        # Everything else is a sign, an operator, a keyword or filler
        if tok == NEGATIVE_WORD:
            negate = True
        elif tok in OPERATOR_WORDS:
            items.append(("op", OPERATOR_WORDS[tok]))
            negate = False
        elif tok in KEYWORDS:
            items.append(("kw", KEYWORDS[tok]))
            negate = False
        i += 1

    return items


def _resolve_signs(items: list[Item]) -> list[Item]:
    """Fold sign-position "minus"/"plus" into the number that follows.

    A +/- directly after another operator is a sign ("five times minus two").
    A leading +/- is a sign only when another operator follows the number
    ("minus four plus two"); on its own ("minus four") it continues from memory.
    """
    out: list[Item] = []
    i = 0
    while i < len(items):
        kind, value = items[i]
        is_sign_op = kind == "op" and value in (Operator.ADD, Operator.SUBTRACT)
        followed_by_num = i + 1 < len(items) and items[i + 1][0] == "num"
        if is_sign_op and followed_by_num:
            after_op = bool(out) and out[-1][0] == "op"
            leading = not any(k == "num" for k, _ in out) and any(
                k == "op" for k, _ in items[i + 2:]
            )
            if after_op or leading:
                number = items[i + 1][1]
                out.append(("num", -number if value is Operator.SUBTRACT else number))
                i += 2
                continue
        out.append(items[i])
        i += 1
    return out


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _build_command(raw_text: str, items: list[Item]) -> Command:
    op_positions = [i for i, (kind, _) in enumerate(items) if kind == "op"]

    # No operator: only a bare keyword ("recall", "clear") means anything
    if not op_positions:
        has_number = any(kind == "num" for kind, _ in items)
        keywords = [value for kind, value in items if kind == "kw"]
        if keywords and not has_number:
            return keywords[0]()
        return Unrecognized(raw_text)

    # Leftmost operator wins; at most one number may come before it
    first = op_positions[0]
    op = items[first][1]
    before = [value for kind, value in items[:first] if kind == "num"]
    if len(before) > 1:
        return Unrecognized(raw_text)

    if first + 1 >= len(items) or items[first + 1][0] != "num":
        # no right operand, or two operators back to back
        return Unrecognized(raw_text)
    rhs = items[first + 1][1]

    if first + 2 < len(items):
        log.debug("[PARSED] ignoring trailing words after %s %s", op, rhs)

    # "twelve plus seven" vs "plus seven" (continue from memory)
    if before:
        return Compute(before[0], op, rhs)
    return ApplyToMemory(op, rhs)


def parse_command(text: str) -> Command:
    """Map one transcript to exactly one Command. Never raises."""
    if not isinstance(text, str) or not text.strip():
        return Unrecognized(text if isinstance(text, str) else "")

    try:
        items = _resolve_signs(_read_items(tokenize(text)))
    except (ValueError, InvalidOperation) as e:
        log.warning("[PARSE ERROR]: %s", e)
        return Unrecognized(text)

    command = _build_command(text, items)
    log.debug("[PARSED]: %r -> %s", text, command)
    return command
