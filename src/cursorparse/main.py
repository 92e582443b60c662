"""
The implementations of the main classes and combinators.
"""

from __future__ import annotations
from typing import Any, Self, Literal, TypeVar, Generic, Final, Callable, Protocol

from collections.abc import Iterable
import functools
import logging

import cursorparse.const as const


log = logging.getLogger("cursorparse")

debug = False
"""When true, combinator decisions (fallbacks, rewinds, loop stops) are logged at DEBUG level."""


_T = TypeVar("_T")
_A = TypeVar("_A")
_B = TypeVar("_B")
_C = TypeVar("_C")
_D = TypeVar("_D")
_E = TypeVar("_E")
_CovT = TypeVar("_CovT", covariant=True)



class ParseError(Exception):
    """
    The exception that's raised when a failed parse reaches the caller.

    Grammar mismatches are never raised inside the engine; they are returned as `NotMatched` values.
    Use `run()` or `NotMatched.error()` to get one of these.
    """

    def __init__(self, src: str, pos: int, msg: str | None = None) -> None:
        """
        `src`: The string that was being parsed.
        `pos`: The position of the failure.
        `msg`: The expectation that wasn't met.
        """
        if msg is None:
            super().__init__()
        else:
            super().__init__(msg)
        self.src: str = src
        self.pos: int = pos
        self.append_pos_note(pos)

    def append_pos_note(self, pos: int, msg: str | None = None) -> Self:
        note: list[str] = [] if msg is None else [msg]

        pos = min(pos, len(self.src))
        line, column = Cursor(self.src, pos).line_col()
        note.append(f"At position {pos} (line {line}, column {column})")

        lines = self.src.splitlines()
        if len(lines) > line-1:
            line_str = lines[line-1]
            if len(line_str) >= column:
                if column <= 20:
                    note.append(f"{line_str[:40]}\n{' '*(column-1)}^")
                else:
                    note.append(f"{line_str[(column-20):(column+20)]}\n{' '*20}^")
        self.add_note("\n".join(note))
        return self


class Cursor:
    """
    An immutable read position: the complete input and the offset of the next unit to read.

    Advancing never mutates a cursor, it creates a new one.
    """
    __slots__ = ("src", "pos")

    def __init__(self, src: str, pos: int = 0) -> None:
        if not 0 <= pos <= len(src):
            raise ValueError(f"Position {pos} is outside of the input (length {len(src)}).")
        self.src: Final[str] = src
        """The string that's being parsed."""
        self.pos: Final[int] = pos
        """The offset of the next unit to read."""

    def advance(self, amount: int) -> Cursor:
        """Returns a new cursor moved forward by the specified amount of units."""
        return Cursor(self.src, self.pos + amount)

    def same_pos(self, other: Cursor) -> bool:
        """Whether both cursors point at the same offset."""
        return self.pos == other.pos

    def is_eof(self) -> bool:
        """Whether the end of the input has been reached."""
        return self.pos >= len(self.src)

    def current(self) -> str | None:
        """The unit at the offset, or `None` at the end of the input."""
        if self.is_eof():
            return None
        return self.src[self.pos]

    def rest(self) -> str:
        """The part of the input that hasn't been read yet."""
        return self.src[self.pos:]

    def line_col(self) -> tuple[int, int]:
        """1-based line and column of the offset. Works with CRLF line endings."""
        line = self.src.count("\n", 0, self.pos) + 1
        column = self.pos - self.src.rfind("\n", 0, self.pos) # magically works even when it returns -1
        return (line, column)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return self.pos == other.pos and self.src == other.src

    def __hash__(self) -> int:
        return hash((self.src, self.pos))

    def __repr__(self) -> str:
        return f"Cursor({self.src!r}, {self.pos})"


class Matched(Generic[_CovT]):
    """
    Returned from a parser that succeeded.

    ```
    outcome = parser(Cursor("blablabla"))
    if outcome:
        outcome.value   # the produced value
        outcome.cursor  # where to continue from
    else:
        ... # `outcome` is a `NotMatched` object
    ```
    """
    __slots__ = ("value", "cursor")

    def __init__(self, value: _CovT, cursor: Cursor) -> None:
        self.value: Final[_CovT] = value
        self.cursor: Final[Cursor] = cursor
        """The position immediately after the consumed input."""

    def __bool__(self) -> Literal[True]:
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matched):
            return NotImplemented
        return self.value == other.value and self.cursor == other.cursor

    def __hash__(self) -> int:
        return hash((self.value, self.cursor))

    def __repr__(self) -> str:
        return f"Matched({self.value!r}, {self.cursor!r})"


class NotMatched:
    """
    Returned from a parser that failed. Can be converted into a `ParseError`.

    Which position `cursor` holds depends on the combinator that produced it.
    """
    __slots__ = ("expected", "cursor")

    def __init__(self, expected: str, cursor: Cursor) -> None:
        self.expected: Final[str] = expected
        """What the parser expected to find."""
        self.cursor: Final[Cursor] = cursor
        """The position the failure is reported at."""

    def error(self) -> ParseError:
        """Converts this to a ParseError."""
        return ParseError(self.cursor.src, self.cursor.pos, self.expected)

    def __bool__(self) -> Literal[False]:
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NotMatched):
            return NotImplemented
        return self.expected == other.expected and self.cursor == other.cursor

    def __hash__(self) -> int:
        return hash((self.expected, self.cursor))

    def __repr__(self) -> str:
        return f"NotMatched({self.expected!r}, {self.cursor!r})"


Outcome = Matched[_T] | NotMatched


class Parser(Protocol[_CovT]):
    """
    A protocol for parsers.

    A parser is a pure function from a `Cursor` to an `Outcome`. Any plain function or lambda with that shape is a parser.
    """
    def __call__(self, cursor: Cursor, /) -> Outcome[_CovT]: ...


def mismatch(expected: str, actual: Any, index: int) -> str:
    """Formats the message of a unit-level mismatch."""
    return const.MISMATCH_FORMAT.format(expected=expected, actual=actual, index=index)



def end_of_input(cursor: Cursor) -> Outcome[None]:
    """A pre-defined parser (not a factory). Matches the end of the input without consuming."""
    if cursor.is_eof():
        return Matched(None, cursor)
    return NotMatched(const.EOF_EXPECTED, cursor)

def any_unit(cursor: Cursor) -> Outcome[str]:
    """A pre-defined parser (not a factory). Consumes a single unit, whatever it is."""
    if cursor.is_eof():
        return NotMatched(const.END_OF_INPUT, cursor)
    return Matched(cursor.src[cursor.pos], cursor.advance(1))

def satisfy(expected: str, predicate: Callable[[str], bool]) -> Parser[str]:
    """
    Parser factory.

    Consumes a single unit if `predicate` accepts it. On failure, nothing is consumed.
    """
    return satisfy_over(expected, any_unit, predicate)

def satisfy_over(expected: str, parser: Parser[_A], predicate: Callable[[_A], bool]) -> Parser[_A]:
    """
    Parser factory.

    Like `satisfy()`, but tests the value produced by `parser` instead of a single unit.
    On failure, rewinds to the starting position.
    """
    def inner(cursor: Cursor) -> Outcome[_A]:
        outcome = parser(cursor)
        if not outcome:
            return outcome
        if predicate(outcome.value):
            return outcome
        return NotMatched(mismatch(expected, outcome.value, cursor.pos), outcome.cursor)
    return rewind_on_failure(inner)

def literal(text: str) -> Parser[str]:
    """Parser factory. Matches the given string exactly. Case sensitive."""
    if not text:
        raise ValueError("A non-empty literal is required.")
    expected = f'expected "{text}"'
    def inner(cursor: Cursor) -> Outcome[str]:
        if cursor.src.startswith(text, cursor.pos):
            return Matched(text, cursor.advance(len(text)))
        actual = cursor.src[cursor.pos : cursor.pos+len(text)]
        return NotMatched(mismatch(expected, actual, cursor.pos), cursor)
    return inner

def fail(expected: str) -> Parser[Any]:
    """Parser factory. Always fails with `expected` at the starting position."""
    return lambda cursor: NotMatched(expected, cursor)



def fmap(parser: Parser[_A], f: Callable[[_A], _B]) -> Parser[_B]:
    """Rewrites the produced value through `f`. Failures pass through unchanged."""
    def inner(cursor: Cursor) -> Outcome[_B]:
        outcome = parser(cursor)
        if not outcome:
            return outcome
        return Matched(f(outcome.value), outcome.cursor)
    return inner

def map_failure(parser: Parser[_A], f: Callable[[NotMatched], NotMatched]) -> Parser[_A]:
    """Rewrites failures through `f`. Successes pass through unchanged."""
    def inner(cursor: Cursor) -> Outcome[_A]:
        outcome = parser(cursor)
        if outcome:
            return outcome
        return f(outcome)
    return inner

def with_expected(parser: Parser[_A], expected: str) -> Parser[_A]:
    """Replaces the message of any failure with `expected`, keeping its position."""
    return map_failure(parser, lambda failure: NotMatched(expected, failure.cursor))

def pure(value: _T) -> Parser[_T]:
    """Always succeeds with `value` without consuming anything."""
    return lambda cursor: Matched(value, cursor)

def bind(parser: Parser[_A], f: Callable[[_A], Parser[_B]]) -> Parser[_B]:
    """
    Runs `parser`, then the parser that `f` chooses from its value.

    ```
    # a length-prefixed field: "3abc"
    field = bind(general.digit, lambda n: fmap(up_to(any_unit, n), "".join))
    ```
    """
    def inner(cursor: Cursor) -> Outcome[_B]:
        outcome = parser(cursor)
        if not outcome:
            return outcome
        return f(outcome.value)(outcome.cursor)
    return inner

def apply(function_parser: Parser[Callable[[_A], _B]], argument_parser: Parser[_A]) -> Parser[_B]:
    """Runs both parsers in order and applies the first one's value to the second one's."""
    return bind(function_parser, lambda f: fmap(argument_parser, f))



def _extend(parser: Parser[tuple], last: Parser[Any]) -> Parser[tuple]:
    return bind(parser, lambda values: fmap(last, lambda value: values + (value,)))

def sequence2(p1: Parser[_A], p2: Parser[_B]) -> Parser[tuple[_A, _B]]:
    """All the given parsers must match in sequence for the parser to succeed."""
    return bind(p1, lambda a: fmap(p2, lambda b: (a, b)))

def sequence3(p1: Parser[_A], p2: Parser[_B], p3: Parser[_C]) -> Parser[tuple[_A, _B, _C]]:
    return _extend(sequence2(p1, p2), p3)

def sequence4(p1: Parser[_A], p2: Parser[_B], p3: Parser[_C], p4: Parser[_D]) -> Parser[tuple[_A, _B, _C, _D]]:
    return _extend(sequence3(p1, p2, p3), p4)

def sequence5(p1: Parser[_A], p2: Parser[_B], p3: Parser[_C], p4: Parser[_D], p5: Parser[_E]) -> Parser[tuple[_A, _B, _C, _D, _E]]:
    return _extend(sequence4(p1, p2, p3, p4), p5)

def sequence_all(parsers: Iterable[Parser[_T]]) -> Parser[list[_T]]:
    """
    All the given parsers must match in sequence for the parser to succeed.

    Produces a list with one value per parser. The first failure is returned as-is.
    """
    parsers = tuple(parsers)
    def inner(cursor: Cursor) -> Outcome[list[_T]]:
        values: list[_T] = []
        for parser in parsers:
            outcome = parser(cursor)
            if not outcome:
                return outcome
            values.append(outcome.value)
            cursor = outcome.cursor
        return Matched(values, cursor)
    return inner



def ordered_alternative(first: Parser[_A], second: Parser[_B]) -> Parser[_A | _B]:
    """
    Tries `first`. Falls back to `second` only if `first` failed without consuming anything.

    If `first` failed after consuming input, its failure is returned and `second` is never tried.
    Wrap `first` in `rewind_on_failure()` to make it fall back regardless.
    """
    def inner(cursor: Cursor) -> Outcome[_A | _B]:
        outcome = first(cursor)
        if outcome:
            return outcome
        if outcome.cursor.same_pos(cursor):
            if debug:
                log.debug("no progress at %d (%s), trying the next alternative", cursor.pos, outcome.expected)
            return second(cursor)
        if debug:
            log.debug("committed from %d to %d, not backtracking (%s)", cursor.pos, outcome.cursor.pos, outcome.expected)
        return outcome
    return inner

def choice(expected: str, parsers: Iterable[Parser[_T]]) -> Parser[_T]:
    """
    Attempts to match any of the parsers, in the given order, until one matches.

    If none match without consuming input, fails with `expected`.
    If one fails after consuming input, that failure is returned and the rest aren't tried.
    """
    return functools.reduce(
        lambda rest, parser: ordered_alternative(parser, rest),
        reversed(tuple(parsers)),
        fail(expected),
    )

def rewind_on_failure(parser: Parser[_T]) -> Parser[_T]:
    """
    If `parser` fails, reports the failure at the starting position, as if nothing was consumed.

    The failure's message is kept.
    """
    def inner(cursor: Cursor) -> Outcome[_T]:
        outcome = parser(cursor)
        if outcome or outcome.cursor.same_pos(cursor):
            return outcome
        if debug:
            log.debug("rewinding from %d to %d (%s)", outcome.cursor.pos, cursor.pos, outcome.expected)
        return NotMatched(outcome.expected, cursor)
    return inner

def optional(parser: Parser[_A], default: _B = None) -> Parser[_A | _B]:
    """
    Produces `default` if `parser` fails without consuming input.

    A failure after consuming input is still returned.
    """
    return ordered_alternative(parser, pure(default))



def zero_or_more(parser: Parser[_T]) -> Parser[list[_T]]:
    """
    Repeatedly matches the given parser until it fails. Never fails itself.

    Raises `ValueError` while parsing if `parser` matches without consuming input.
    """
    def inner(cursor: Cursor) -> Outcome[list[_T]]:
        values: list[_T] = []
        while True:
            outcome = parser(cursor)
            if not outcome:
                if debug:
                    log.debug("repetition stopped at %d after %d matches (%s)", cursor.pos, len(values), outcome.expected)
                return Matched(values, cursor)
            if outcome.cursor.same_pos(cursor):
                raise ValueError(f"Repeated parser matched without consuming input at position {cursor.pos}.")
            values.append(outcome.value)
            cursor = outcome.cursor
    return inner

def one_or_more(parser: Parser[_T]) -> Parser[list[_T]]:
    """Repeatedly matches the given parser until it fails. Succeeds if at least one iteration matches."""
    rest = zero_or_more(parser)
    return bind(parser, lambda first: fmap(rest, lambda others: [first, *others]))

def up_to(parser: Parser[_T], count: int) -> Parser[list[_T]]:
    """Matches the given parser at most `count` times. Never fails."""
    if count < 0:
        raise ValueError(f"The repetition count can't be negative, got {count}.")
    def inner(cursor: Cursor) -> Outcome[list[_T]]:
        values: list[_T] = []
        for _ in range(count):
            outcome = parser(cursor)
            if not outcome:
                break
            values.append(outcome.value)
            cursor = outcome.cursor
        return Matched(values, cursor)
    return inner



def run(parser: Parser[_T], src: str) -> _T:
    """
    Runs `parser` from the start of `src` and returns the produced value.

    Raises a `ParseError` if it fails. Trailing input is allowed; sequence `end_of_input` to forbid it.
    """
    outcome = parser(Cursor(src))
    if not outcome:
        raise outcome.error()
    return outcome.value
