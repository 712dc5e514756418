"""
Test file for NUMERIC (N) field formatting.
Values are right-aligned, space padded and rounded half-even, as dBase
readers expect them inside a record.
"""

import logging
import unittest
from decimal import Decimal
from fractions import Fraction
from dbf_field_module import (
    DBFCharsetError, double_formatting, format_numeric
)


class TestDBFNumericField(unittest.TestCase):
    """Test cases for double_formatting."""

    def assertField(self, value, field_length, decimal_places, expected):
        result = double_formatting(value, "US-ASCII", field_length, decimal_places)
        self.assertEqual(result, expected.encode("ascii"))
        self.assertEqual(len(result), field_length)

    def test_pi_two_decimals(self):
        """3.14159 in N(8,2) is '    3.14'."""
        self.assertField(3.14159, 8, 2, "    3.14")

    def test_negative_value(self):
        """-1234.5 in N(8,1) keeps its sign."""
        self.assertField(-1234.5, 8, 1, " -1234.5")

    def test_integer_field(self):
        """No decimal point is written when there are no decimal places."""
        self.assertField(42, 5, 0, "   42")
        self.assertField(-7, 3, 0, " -7")

    def test_integer_value_with_decimals(self):
        """Integers get zero decimals appended."""
        self.assertField(42, 6, 2, " 42.00")

    def test_half_even_rounding(self):
        """Ties round to the even digit."""
        self.assertField(0.125, 5, 2, "  .12")
        self.assertField(2.5, 3, 0, "  2")
        self.assertField(3.5, 3, 0, "  4")
        self.assertField(-2.5, 3, 0, " -2")
        self.assertField(Decimal("0.375"), 5, 2, "  .38")
        self.assertField(Decimal("0.125"), 5, 2, "  .12")

    def test_rounding_uses_exact_binary_value(self):
        """Floats round on their exact binary value, not their repr."""
        # 0.135 is stored as 0.13500000000000000888...
        self.assertField(0.135, 5, 2, "  .14")
        # 1.005 is stored as 1.00499999999999989...
        self.assertField(1.005, 5, 2, " 1.00")

    def test_leading_zero_suppressed(self):
        """A zero integer part is dropped when decimals follow."""
        self.assertField(0.5, 5, 2, "  .50")
        self.assertField(-0.5, 5, 2, " -.50")
        self.assertField(0, 5, 2, "  .00")

    def test_zero_without_decimals(self):
        """A plain zero is written as '0'."""
        self.assertField(0, 3, 0, "  0")
        self.assertField(0.4, 3, 0, "  0")

    def test_negative_rounding_to_zero_keeps_sign(self):
        """Negative values keep the '-' when they round to zero."""
        self.assertEqual(format_numeric(-0.001, 2), "-.00")
        self.assertEqual(format_numeric(-0.4, 0), "-0")

    def test_minimal_field(self):
        """A field only wide enough for the point and decimals."""
        self.assertField(0.5, 3, 2, ".50")
        self.assertField(7, 1, 0, "7")

    def test_large_values(self):
        """Placeholder count does not cap the integer digits."""
        self.assertField(1e20, 25, 2, " 100000000000000000000.00")
        self.assertField(Decimal("12345678901234567890123456789.5"), 32, 1,
                         " 12345678901234567890123456789.5")

    def test_other_real_numbers(self):
        """Any real number is accepted."""
        self.assertField(Fraction(1, 3), 6, 3, "  .333")
        self.assertField(True, 2, 0, " 1")

    def test_overflow_truncates_and_warns(self):
        """Values wider than the field are cut down and logged."""
        with self.assertLogs("dbf_field_module", level=logging.WARNING) as logs:
            result = double_formatting(123456.78, "ascii", 6, 2)
        self.assertEqual(result, b'123456')
        self.assertIn("123456.78", logs.output[0])

    def test_negative_overflow_keeps_leading_sign(self):
        """Truncation drops trailing digits, the sign stays in front."""
        with self.assertLogs("dbf_field_module", level=logging.WARNING):
            result = double_formatting(-12345, "ascii", 5, 0)
        self.assertEqual(result, b'-1234')

    def test_charset(self):
        """Digits are encoded with the requested charset."""
        self.assertEqual(double_formatting(1.5, "cp1252", 5, 1), b'  1.5')
        self.assertEqual(double_formatting(1.5, "utf-16-le", 3, 1),
                         "1.5".encode("utf-16-le"))

    def test_unknown_charset(self):
        """An unknown character set raises a LookupError."""
        with self.assertRaises(DBFCharsetError):
            double_formatting(1.5, "no-such-charset", 5, 1)

    def test_precondition_violations(self):
        """Negative decimals and fields too small for the decimals are rejected."""
        with self.assertRaises(ValueError):
            double_formatting(1.5, "ascii", 5, -1)
        with self.assertRaises(ValueError):
            double_formatting(1.5, "ascii", 2, 2)
        with self.assertRaises(ValueError):
            double_formatting(1, "ascii", 0, 0)
        with self.assertRaises(ValueError):
            format_numeric(1.5, -2)

    def test_non_finite_values(self):
        """NaN and infinities cannot be stored."""
        for value in (float("nan"), float("inf"), float("-inf"), Decimal("NaN")):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    double_formatting(value, "ascii", 10, 2)


if __name__ == "__main__":
    unittest.main()
