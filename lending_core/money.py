"""
Money Arithmetic Module

Decimal precision and rounding rules for every monetary value in the engine.
NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, Context, InvalidOperation, localcontext
from contextlib import contextmanager
from typing import Union
import re

from .config import get_config
from .exceptions import InvalidArgumentError

ZERO = Decimal('0')
CENT = Decimal('0.01')

MoneyLike = Union[Decimal, int, str]

# Optional sign, then digits with dot or comma separators
NUMERIC_PATTERN = re.compile(r'^[+-]?(?=[.,]*\d)[\d.,]+$')


@contextmanager
def financial_context():
    """Local Decimal context with the configured precision and half-up rounding"""
    ctx = Context(prec=get_config().decimal_precision, rounding=ROUND_HALF_UP)
    with localcontext(ctx) as local:
        yield local


def to_decimal(value: MoneyLike, field_name: str = "amount") -> Decimal:
    """
    Convert an int, string or Decimal to Decimal.

    Floats are refused: a binary float has already lost the cents it claims
    to carry.

    Raises:
        InvalidArgumentError: If the value is None, a float, or not numeric
    """
    if value is None:
        raise InvalidArgumentError(f"{field_name} is required")
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidArgumentError(
            f"{field_name} must be Decimal, int or str, got {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        result = decimal_from_string(value)
    else:
        raise InvalidArgumentError(
            f"{field_name} must be Decimal, int or str, got {type(value).__name__}"
        )
    if not result.is_finite():
        raise InvalidArgumentError(f"{field_name} must be a finite number")
    return result


def round_money(value: Decimal, places: int = None) -> Decimal:
    """Round to currency precision (2 places by default), half-up"""
    if places is None:
        places = get_config().money_decimal_places
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_ratio(value: Decimal) -> Decimal:
    """Round a ratio to the configured percent precision, half-up"""
    places = get_config().percent_decimal_places
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def ratio(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole at percent precision; zero when whole is zero"""
    if whole == ZERO:
        return round_ratio(ZERO)
    with financial_context():
        return round_ratio(part / whole)


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert string to Decimal, handling common formats

    Only the configured currency symbol or code, whitespace and separators
    are accepted around the digits; anything else is an error rather than
    being dropped.

    Args:
        value: String representation of number, optionally with a currency symbol

    Returns:
        Decimal value

    Raises:
        InvalidArgumentError: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise InvalidArgumentError("Value must be a non-empty string")

    cfg = get_config()
    clean_value = value.replace(cfg.currency_symbol, '').replace(cfg.currency_code, '')
    clean_value = re.sub(r'\s+', '', clean_value)

    if not NUMERIC_PATTERN.match(clean_value):
        raise InvalidArgumentError(f"Cannot convert '{value}' to Decimal")

    if ',' in clean_value and '.' in clean_value:
        # Both comma and dot - comma is the thousands separator
        clean_value = clean_value.replace(',', '')
    elif clean_value.count(',') > 1:
        clean_value = clean_value.replace(',', '')
    elif ',' in clean_value:
        parts = clean_value.split(',')
        if len(parts[1]) <= 2:  # Decimal separator
            clean_value = clean_value.replace(',', '.')
        else:  # Thousands separator
            clean_value = clean_value.replace(',', '')

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise InvalidArgumentError(f"Cannot convert '{value}' to Decimal")


def format_money(amount: Decimal) -> str:
    """Format for display, e.g. 'S/ 1,234.50'"""
    cfg = get_config()
    return f"{cfg.currency_symbol} {round_money(amount):,.{cfg.money_decimal_places}f}"
