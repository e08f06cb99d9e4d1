"""
Test suite for money module

Tests Decimal conversion, rounding and display formatting.
All monetary calculations must use Decimal precision.
"""

import pytest
from decimal import Decimal, getcontext

from lending_core.exceptions import InvalidArgumentError
from lending_core.money import (
    financial_context, to_decimal, round_money, round_ratio, ratio,
    decimal_from_string, format_money
)


class TestToDecimal:
    """Test conversion of inputs to Decimal"""

    def test_accepts_decimal_int_and_string(self):
        """Decimal, int and numeric strings convert exactly"""
        assert to_decimal(Decimal('100.50')) == Decimal('100.50')
        assert to_decimal(250) == Decimal('250')
        assert to_decimal('943.22') == Decimal('943.22')

    def test_rejects_float(self):
        """Floats are never accepted as money"""
        with pytest.raises(InvalidArgumentError, match="must be Decimal"):
            to_decimal(0.1)

    def test_rejects_none_and_bool(self):
        """Missing or boolean values are rejected"""
        with pytest.raises(InvalidArgumentError, match="is required"):
            to_decimal(None, "principal")
        with pytest.raises(InvalidArgumentError):
            to_decimal(True)

    def test_rejects_non_finite(self):
        """NaN and infinity are not amounts"""
        with pytest.raises(InvalidArgumentError, match="finite"):
            to_decimal(Decimal('NaN'))
        with pytest.raises(InvalidArgumentError, match="finite"):
            to_decimal(Decimal('Infinity'))

    def test_invalid_error_is_value_error(self):
        """Callers catching ValueError still see engine argument errors"""
        with pytest.raises(ValueError):
            to_decimal(1.5)


class TestRounding:
    """Test half-up rounding to cents and ratios"""

    def test_round_money_half_up(self):
        """Ties round away from zero"""
        assert round_money(Decimal('2.345')) == Decimal('2.35')
        assert round_money(Decimal('2.344')) == Decimal('2.34')
        assert round_money(Decimal('231.87825')) == Decimal('231.88')

    def test_round_money_pads_to_cents(self):
        """Integral values gain two decimal places"""
        assert str(round_money(Decimal('1000'))) == '1000.00'

    def test_round_ratio(self):
        """Ratios keep four decimal places"""
        assert round_ratio(Decimal('0.083333')) == Decimal('0.0833')
        assert round_ratio(Decimal('0.30005')) == Decimal('0.3001')

    def test_ratio(self):
        """part / whole at percent precision"""
        assert ratio(Decimal('3000.00'), Decimal('10000.00')) == Decimal('0.3000')
        assert ratio(Decimal('1'), Decimal('3')) == Decimal('0.3333')

    def test_ratio_of_zero_whole(self):
        """A zero denominator yields zero instead of an error"""
        assert ratio(Decimal('5'), Decimal('0')) == Decimal('0.0000')

    def test_financial_context_precision(self):
        """Intermediate math runs with 28 significant digits"""
        with financial_context() as ctx:
            assert ctx.prec == 28
            result = Decimal(1) / Decimal(3)
        assert len(result.as_tuple().digits) == 28

    def test_financial_context_is_local(self):
        """The global decimal context is left untouched"""
        before = getcontext().prec
        with financial_context():
            pass
        assert getcontext().prec == before


class TestStringParsing:
    """Test parsing of user-entered amounts"""

    def test_plain_number(self):
        assert decimal_from_string('1234.56') == Decimal('1234.56')

    def test_currency_symbol_and_thousands(self):
        """Currency symbols and thousands separators are stripped"""
        assert decimal_from_string('S/ 1,234.50') == Decimal('1234.50')

    def test_comma_decimal_separator(self):
        """A single comma followed by cents is a decimal separator"""
        assert decimal_from_string('99,90') == Decimal('99.90')

    def test_comma_thousands_separator(self):
        """A single comma followed by three digits is a thousands separator"""
        assert decimal_from_string('10,000') == Decimal('10000')

    def test_currency_code_and_sign(self):
        assert decimal_from_string('PEN 250.00') == Decimal('250.00')
        assert decimal_from_string('-S/ 10.50') == Decimal('-10.50')

    def test_multiple_thousands_separators(self):
        assert decimal_from_string('1,234,567') == Decimal('1234567')

    def test_invalid_strings(self):
        with pytest.raises(InvalidArgumentError):
            decimal_from_string('')
        with pytest.raises(InvalidArgumentError, match="Cannot convert"):
            decimal_from_string('abc')
        with pytest.raises(InvalidArgumentError, match="Cannot convert"):
            decimal_from_string('1.2.3')

    @pytest.mark.parametrize("value", ['1e5', '12abc34', '$100', '100 USD', 'NaN', '10%'])
    def test_stray_characters_rejected(self, value):
        """Letters and foreign symbols are an error, never silently dropped"""
        with pytest.raises(InvalidArgumentError, match="Cannot convert"):
            decimal_from_string(value)
        with pytest.raises(InvalidArgumentError):
            to_decimal(value)


class TestFormatting:
    """Test display formatting"""

    def test_format_money(self):
        """Amounts show the configured symbol, grouping and cents"""
        assert format_money(Decimal('1234.5')) == 'S/ 1,234.50'
        assert format_money(Decimal('0')) == 'S/ 0.00'


if __name__ == "__main__":
    pytest.main([__file__])
