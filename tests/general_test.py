import unittest

from cursorparse import (
    Cursor,
    Matched,
    NotMatched,
    choice,
    end_of_input,
    fmap,
    rewind_on_failure,
    run,
    sequence2,
    sequence3,
)
from cursorparse import general


def at(src, pos):
    return Cursor(src, pos)


class Tests(unittest.TestCase):
    def check(self, parser, src, expected):
        self.assertEqual(expected, parser(Cursor(src)))

    def test_digit(self):
        self.check(general.digit, '7bc', Matched(7, at('7bc', 1)))
        self.check(
            general.digit, 'bc',
            NotMatched('expected digit; actual: "b"; index=0', at('bc', 0)),
        )

    def test_natural_number(self):
        self.check(general.natural_number, '123def', Matched(123, at('123def', 3)))
        self.check(general.natural_number, '007', Matched(7, at('007', 3)))

    def test_integer_number(self):
        self.check(general.integer_number, '-42x', Matched(-42, at('-42x', 3)))
        self.check(general.integer_number, '42', Matched(42, at('42', 2)))
        self.check(
            general.integer_number, '-x',
            NotMatched('expected digit; actual: "x"; index=1', at('-x', 0)),
        )

    def test_whitespace(self):
        self.check(general.ws0, 'abc', Matched('', at('abc', 0)))
        self.check(general.ws0, ' \t abc', Matched(' \t ', at(' \t abc', 3)))
        self.check(general.ws1, '\nabc', Matched('\n', at('\nabc', 1)))
        self.check(
            general.ws1, 'abc',
            NotMatched('expected whitespace; actual: "a"; index=0', at('abc', 0)),
        )

    def test_word(self):
        self.check(general.word, 'grams of tea', Matched('grams', at('grams of tea', 5)))
        self.check(general.word, 'tea', Matched('tea', at('tea', 3)))
        self.check(
            general.word, ' tea',
            NotMatched('unexpected whitespace; actual: " "; index=0', at(' tea', 0)),
        )

    def test_word_equals(self):
        cups = general.word_equals('cups')
        self.check(cups, 'cups abc', Matched('cups', at('cups abc', 4)))
        self.check(
            cups, '123def',
            NotMatched('expected "cups"; actual: "123def"; index=0', at('123def', 0)),
        )
        # a prefix isn't a word
        self.check(
            cups, 'cupsize',
            NotMatched('expected "cups"; actual: "cupsize"; index=0', at('cupsize', 0)),
        )

    def test_choice_of_words(self):
        p = choice('not a measurement', [
            general.word_equals('cups'),
            general.word_equals('grams'),
        ])
        self.check(p, 'grams of tea', Matched('grams', at('grams of tea', 5)))
        self.check(p, 'cups', Matched('cups', at('cups', 4)))
        self.check(p, 'kilos', NotMatched('not a measurement', at('kilos', 0)))

    def test_lookup(self):
        unit = general.lookup('expected: unit', {
            'cup': ['cup', 'cups'],
            'kg': ['kg', 'kgs', 'kilo', 'kilos', 'kilogram', 'kilograms'],
            'gram': ['gram', 'grams'],
        })
        self.check(unit, 'cups', Matched('cup', at('cups', 4)))
        self.check(unit, 'kilos of rice', Matched('kg', at('kilos of rice', 5)))
        self.check(unit, 'gram', Matched('gram', at('gram', 4)))
        self.check(unit, 'pinch', NotMatched('expected: unit', at('pinch', 0)))

    def test_quoted_string(self):
        p = general.quoted_string()
        self.check(p, '"abc" d', Matched('abc', at('"abc" d', 5)))
        self.check(p, r'"a\tb\"c\q"', Matched('a\tb"cq', at(r'"a\tb\"c\q"', 11)))
        self.check(p, '""', Matched('', at('""', 2)))
        self.check(
            p, 'abc',
            NotMatched('expected """; actual: "a"; index=0', at('abc', 0)),
        )
        self.check(
            p, '"abc',
            NotMatched('expected closing quote `"`', at('"abc', 4)),
        )

    def test_quoted_string_custom_quote(self):
        p = general.quoted_string(quote="'", custom_escapes={'n': '\n'})
        self.check(p, r"'a\nb\t'", Matched('a\nbt', at(r"'a\nb\t'", 8)))


# "<number> <unit> <ingredient>"
unit = choice('not a measurement', [
    general.word_equals('cups'),
    general.word_equals('grams'),
])
measurement = rewind_on_failure(
    fmap(
        sequence3(general.natural_number, general.ws1, unit),
        lambda parts: {'amount': parts[0], 'unit': parts[2]},
    )
)
ingredient = rewind_on_failure(
    fmap(
        sequence3(measurement, general.ws1, general.word),
        lambda parts: {'measurement': parts[0], 'ingredient': parts[2]},
    )
)


class MeasurementTests(unittest.TestCase):
    def check(self, parser, src, expected):
        self.assertEqual(expected, parser(Cursor(src)))

    def test_measurement(self):
        self.check(
            measurement, '10 cups abc',
            Matched({'amount': 10, 'unit': 'cups'}, at('10 cups abc', 7)),
        )
        self.check(
            measurement, '10 cups',
            Matched({'amount': 10, 'unit': 'cups'}, at('10 cups', 7)),
        )

    def test_partial_measurement_is_rewound(self):
        self.check(measurement, '10 ', NotMatched('not a measurement', at('10 ', 0)))

    def test_number_then_unit_is_rewound(self):
        p = rewind_on_failure(sequence2(general.natural_number, sequence2(general.ws1, unit)))
        self.check(p, '10 ', NotMatched('not a measurement', at('10 ', 0)))

    def test_ingredient(self):
        expected = {'measurement': {'amount': 10, 'unit': 'cups'}, 'ingredient': 'water'}
        self.check(
            ingredient, '10 cups water abc',
            Matched(expected, at('10 cups water abc', 13)),
        )
        self.assertEqual(
            (expected, None),
            run(sequence2(ingredient, end_of_input), '10 cups water'),
        )


if __name__ == '__main__':
    unittest.main()
