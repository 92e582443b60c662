"""
General purpose parsers, built only from the public combinators.

Also meant to be read as examples of writing grammars with `cursorparse`.
"""

from __future__ import annotations
from typing import TypeVar

from collections.abc import Mapping, Sequence

from cursorparse import *

_T = TypeVar("_T")

# numbers

_digit_char = satisfy("expected digit", lambda c: c in const.DECIMAL)

digit: Parser[int] = fmap(_digit_char, int)
"""A single decimal digit."""

natural_number: Parser[int] = fmap(one_or_more(_digit_char), lambda chars: int("".join(chars)))
"""One or more decimal digits."""

def _signed(sign: str | None):
    return (lambda n: -n) if sign else (lambda n: n)

integer_number: Parser[int] = rewind_on_failure(
    apply(fmap(optional(literal("-")), _signed), natural_number)
)
"""A natural number with an optional `-` in front. Doesn't consume the `-` on failure."""

# whitespace and words

space: Parser[str] = satisfy("expected whitespace", lambda c: c in const.WHITESPACES)

ws0: Parser[str] = fmap(zero_or_more(space), "".join)
"""Zero or more whitespaces."""

ws1: Parser[str] = fmap(one_or_more(space), "".join)
"""One or more whitespaces."""

word: Parser[str] = fmap(
    one_or_more(satisfy("unexpected whitespace", lambda c: c not in const.WHITESPACES)),
    "".join,
)
"""Anything up to the next whitespace or the end of the input."""

def word_equals(text: str) -> Parser[str]:
    """A `word` that is exactly `text`. Doesn't consume anything on failure."""
    return satisfy_over(f'expected "{text}"', word, lambda w: w == text)

def lookup(expected: str, table: Mapping[_T, Sequence[str]]) -> Parser[_T]:
    """
    Matches any of the spellings in `table` as a whole word, and produces the tag it belongs to.

    Spellings are tried in the table's order.

    ```
    unit = lookup("not a measurement", {
        "cup": ["cup", "cups"],
        "gram": ["g", "gram", "grams"],
    })
    ```
    """
    return choice(expected, [
        fmap(word_equals(spelling), lambda _, tag=tag: tag)
        for tag, spellings in table.items()
        for spelling in spellings
    ])

# quoted string

GENERAL_ESCAPES = {
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

def quoted_string(
    quote: str = '"',
    escape: str = '\\',
    custom_escapes: Mapping[str, str] = GENERAL_ESCAPES,
) -> Parser[str]:
    """
    A string between two `quote` characters, with single character escapes.

    Escaped characters missing from `custom_escapes` stand for themselves.
    """
    assert len(quote) == 1 and len(escape) == 1, "The quote and the escape must be single characters."
    escaped = fmap(
        sequence2(literal(escape), any_unit),
        lambda pair: custom_escapes.get(pair[1], pair[1]),
    )
    plain = satisfy("expected a character", lambda c: c != quote and c != escape)
    closing = with_expected(literal(quote), f"expected closing quote `{quote}`")
    return fmap(
        sequence3(literal(quote), zero_or_more(ordered_alternative(escaped, plain)), closing),
        lambda parts: "".join(parts[1]),
    )
