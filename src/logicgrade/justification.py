"""Justification text parsing.

A justification is a comma/space separated list of tokens::

    3, 5 →E        line numbers and a rule
    2–4 ∨E         an inclusive line range (any dash, spaced or not)
    ? ∧I           placeholder for a deleted citation

Tokens that are neither numbers, placeholders nor ranges are cited rule
names.  Placeholders are represented by ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

PLACEHOLDER = "?"

_DIGITS = re.compile(r"([0-9]+)")
_DASHES = re.compile(r" *[-–—−]+ *")
# the second character in the class is a thin space
_SEPARATORS = re.compile(r"[,  ]+")
_NUMBER = re.compile(r"^[0-9]+$")
_RANGE = re.compile(r"^[0-9?]+–[0-9?]+$")

Citation = int | None


@dataclass(frozen=True)
class Justification:
    """Parsed justification.

    Attributes:
        numbers: Cited line numbers, ``None`` for a ``?`` placeholder.
        ranges: Cited ``(start, end)`` ranges with ``start <= end``.
        rules: Cited rule names, in order.
    """

    numbers: tuple[Citation, ...] = ()
    ranges: tuple[tuple[Citation, Citation], ...] = ()
    rules: tuple[str, ...] = field(default=())

    @property
    def rule(self) -> str | None:
        """The first cited rule, if any."""
        return self.rules[0] if self.rules else None

    @property
    def has_placeholder(self) -> bool:
        return None in self.numbers or any(None in r for r in self.ranges)


def _endpoint(s: str) -> Citation:
    return None if PLACEHOLDER in s else int(s)


def parse_justification(text: str) -> Justification:
    """Split justification *text* into numbers, ranges and rule names."""
    text = _DIGITS.sub(r" \1 ", text)
    text = _DASHES.sub("–", text)
    numbers: list[Citation] = []
    ranges: list[tuple[Citation, Citation]] = []
    rules: list[str] = []
    for piece in _SEPARATORS.split(text):
        if not piece:
            continue
        if piece == PLACEHOLDER:
            numbers.append(None)
        elif _NUMBER.match(piece):
            numbers.append(int(piece))
        elif _RANGE.match(piece):
            start_text, end_text = piece.split("–", 1)
            start, end = _endpoint(start_text), _endpoint(end_text)
            if start is not None and end is not None and end < start:
                start, end = end, start
            ranges.append((start, end))
        else:
            rules.append(piece)
    return Justification(tuple(numbers), tuple(ranges), tuple(rules))
