"""
Amortization Module

Fixed installment and total repayable amount for French-method (constant
installment) loans. All arithmetic in Decimal with 28 significant digits,
rounded once to cents at the end.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging

from .exceptions import InvalidArgumentError
from .money import MoneyLike, ZERO, financial_context, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AmortizationResult:
    """Fixed periodic installment and total repayable amount"""
    installment_amount: Decimal
    total_amount: Decimal


def validate_terms(principal: MoneyLike, monthly_rate: MoneyLike, term_months: int):
    """
    Validate and normalize loan terms.

    Returns:
        (principal, monthly_rate, term_months) as (Decimal, Decimal, int)

    Raises:
        InvalidArgumentError: principal <= 0, rate < 0, or term < 1
    """
    principal = to_decimal(principal, "principal")
    monthly_rate = to_decimal(monthly_rate, "monthly_rate")

    if principal <= ZERO:
        raise InvalidArgumentError(f"principal must be positive, got {principal}")
    if principal != round_money(principal):
        raise InvalidArgumentError(f"principal cannot carry fractions of a cent, got {principal}")
    if monthly_rate < ZERO:
        raise InvalidArgumentError(f"monthly_rate cannot be negative, got {monthly_rate}")
    if term_months is None or isinstance(term_months, bool) or not isinstance(term_months, int):
        raise InvalidArgumentError(f"term_months must be an integer, got {term_months!r}")
    if term_months < 1:
        raise InvalidArgumentError(f"term_months must be at least 1, got {term_months}")

    return principal, monthly_rate, term_months


def calculate_installment(principal: MoneyLike, monthly_rate: MoneyLike,
                          term_months: int) -> AmortizationResult:
    """
    Calculate the fixed installment for a French-method loan

    Standard annuity formula: A = P * r(1+r)^n / ((1+r)^n - 1), T = A * n.
    With r = 0 the installment is P / n and the total is exactly P.

    Args:
        principal: Amount lent (> 0)
        monthly_rate: Periodic rate as a fraction, e.g. Decimal('0.025') for 2.5%
        term_months: Number of monthly installments (>= 1)

    Returns:
        AmortizationResult with both amounts rounded to cents, half-up
    """
    principal, monthly_rate, term_months = validate_terms(principal, monthly_rate, term_months)
    periods = Decimal(term_months)

    with financial_context():
        if monthly_rate == ZERO:
            installment = round_money(principal / periods)
            total = round_money(principal)
        else:
            factor = (Decimal('1') + monthly_rate) ** term_months
            installment = round_money(principal * monthly_rate * factor / (factor - Decimal('1')))
            total = round_money(installment * periods)

    if installment <= ZERO:
        raise InvalidArgumentError(
            f"principal {principal} is too small to split into {term_months} installments"
        )
    if monthly_rate == ZERO and installment * (periods - 1) >= principal:
        raise InvalidArgumentError(
            f"principal {principal} is too small to split into {term_months} installments"
        )

    logger.debug(
        f"Amortization for principal={principal} rate={monthly_rate} term={term_months}: "
        f"installment={installment} total={total}"
    )
    return AmortizationResult(installment_amount=installment, total_amount=total)


class AmortizationCalculator:
    """Stateless French-method calculator"""

    @staticmethod
    def calculate(principal: MoneyLike, monthly_rate: MoneyLike,
                  term_months: int) -> AmortizationResult:
        return calculate_installment(principal, monthly_rate, term_months)
