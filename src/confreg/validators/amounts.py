"""Locate monetary amounts in receipt text."""

import re
from decimal import Decimal

# Digit runs joined by ".", "," or "'"; a token never starts inside another number
_NUMBER_TOKEN = re.compile(r"(?<![0-9.,'])[0-9]+(?:[.,'][0-9]+)*")
_SEPARATOR = re.compile(r"[.,']")
DECIMAL_MARKS = {".", ","}


def parse_amount_token(token: str) -> set[Decimal]:
    """
    Read a numeric token under every plausible separator convention.

    "500" -> {500}; "500,00" -> {500.00}; "1.500,00" -> {1500.00};
    "1,500" -> {1500}; "19.10.2026" -> set().
    """
    parts = _SEPARATOR.split(token)
    seps = _SEPARATOR.findall(token)

    if not seps:
        return {Decimal(token)}

    values: set[Decimal] = set()

    # Last separator is the decimal mark, the rest group thousands
    decimal_mark = seps[-1]
    if (
        decimal_mark in DECIMAL_MARKS
        and 1 <= len(parts[-1]) <= 2
        and decimal_mark not in seps[:-1]
        and _is_grouped(parts[:-1], seps[:-1])
    ):
        values.add(Decimal("".join(parts[:-1]) + "." + parts[-1]))

    # Every separator groups thousands
    if _is_grouped(parts, seps):
        values.add(Decimal("".join(parts)))

    return values


def _is_grouped(parts: list[str], seps: list[str]) -> bool:
    if not seps:
        return True
    if len(set(seps)) != 1:
        return False
    return 1 <= len(parts[0]) <= 3 and all(len(p) == 3 for p in parts[1:])


def find_amounts(text: str) -> list[Decimal]:
    """
    Return every amount readable in the text, in order of appearance.

    Expects text from normalize_text, which has already joined
    space-grouped thousands such as ``1 500,00``.
    """
    amounts: list[Decimal] = []
    for match in _NUMBER_TOKEN.finditer(text):
        for value in sorted(parse_amount_token(match.group())):
            if value not in amounts:
                amounts.append(value)
    return amounts


def contains_amount(text: str, expected: Decimal) -> bool:
    """Check for an exact (zero tolerance) match of the expected amount."""
    return any(
        expected in parse_amount_token(match.group())
        for match in _NUMBER_TOKEN.finditer(text)
    )
