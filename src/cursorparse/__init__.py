"""
Parser combinators over an immutable cursor.

See the objects for more explanations.

See the `cursorparse.general` module for general purpose parsers you can use as examples.

Defining parsers:
```
digit = satisfy("expected digit", str.isdigit)
number = fmap(one_or_more(digit), lambda ds: int("".join(ds)))
unit = choice("not a measurement", [literal("cups"), literal("grams")])
measurement = rewind_on_failure(sequence3(number, general.ws1, unit))
```

Using parsers:
```
outcome = measurement(Cursor("10 cups of tea"))
if outcome:
    ... # `outcome` is a `Matched` object
else:
    ... # `outcome` is a `NotMatched` object

amount, _, unit = run(measurement, "10 cups")   # raises a `ParseError` on failure
```
"""

import cursorparse.const as const
import cursorparse.main
from cursorparse.main import (
    ParseError,
    Cursor,
    Matched,
    NotMatched,
    Outcome,
    Parser,
    mismatch,
    end_of_input,
    any_unit,
    satisfy,
    satisfy_over,
    literal,
    fail,
    fmap,
    map_failure,
    with_expected,
    pure,
    bind,
    apply,
    sequence2,
    sequence3,
    sequence4,
    sequence5,
    sequence_all,
    ordered_alternative,
    choice,
    rewind_on_failure,
    optional,
    zero_or_more,
    one_or_more,
    up_to,
    run,
)
import cursorparse.general as general
