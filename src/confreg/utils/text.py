"""Text normalization shared by extraction and fact matching."""

import re

# 1-3 digits then groups of exactly three, split by spaces within one line,
# e.g. 1 500,00 or 10<NBSP>500
_GROUPED_NUMBER = re.compile("(?<![0-9.,':])[0-9]{1,3}(?:[ \u00a0\u202f\u2009][0-9]{3})+(?![0-9])")
_GROUP_SEPARATOR = re.compile("[ \u00a0\u202f\u2009]")
_WHITESPACE = re.compile(r"\s+")
_QUOTES = str.maketrans({
    "«": '"',
    "»": '"',
    "“": '"',
    "”": '"',
    "„": '"',
})


def normalize_text(text: str) -> str:
    """
    Normalize text for case and whitespace insensitive matching.

    Joins space-grouped digits into one number, unifies typographic
    quotes, collapses whitespace runs and lowercases the result.
    Grouping is only recognised within a line, so numbers on separate
    lines never merge.
    """
    text = _GROUPED_NUMBER.sub(lambda m: _GROUP_SEPARATOR.sub("", m.group()), text)
    text = text.translate(_QUOTES)
    return _WHITESPACE.sub(" ", text).lower().strip()
