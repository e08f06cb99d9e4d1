"""
Schedule Module

Builds the French-method amortization table for a loan: one installment per
month with business-day adjusted due dates and the interest/capital split.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from .amortization import calculate_installment, validate_terms
from .dates import add_months_business
from .exceptions import InvalidArgumentError
from .installments import Installment
from .money import MoneyLike, ZERO, financial_context, round_money

logger = logging.getLogger(__name__)


def generate_schedule(
    loan_id: str,
    principal: MoneyLike,
    monthly_rate: MoneyLike,
    term_months: int,
    disbursement_date: date,
    excluded_weekday: Optional[int] = None
) -> List[Installment]:
    """
    Generate the amortization schedule for a loan

    Interest for each period is the running balance times the rate, rounded
    to cents. Capital is the fixed installment minus that interest, except for
    the last installment, which takes the whole remaining balance so the loan
    amortizes to exactly zero.

    Due dates are the disbursement date plus i months, moved one day forward
    when they land on the excluded weekday.

    Args:
        loan_id: Owning loan identifier
        principal: Amount lent
        monthly_rate: Periodic rate as a fraction
        term_months: Number of installments
        disbursement_date: Date the funds were delivered
        excluded_weekday: Override for the configured excluded weekday

    Returns:
        Installments numbered 1..term_months in due-date order
    """
    if not loan_id:
        raise InvalidArgumentError("loan_id is required")
    if disbursement_date is None:
        raise InvalidArgumentError("disbursement_date is required")

    principal, monthly_rate, term_months = validate_terms(principal, monthly_rate, term_months)
    installment_amount = calculate_installment(principal, monthly_rate, term_months).installment_amount

    schedule = []
    balance = principal

    with financial_context():
        for number in range(1, term_months + 1):
            interest = round_money(balance * monthly_rate)

            if number == term_months:
                capital = balance  # Absorbs the rounding residue
            else:
                capital = installment_amount - interest
                if capital <= ZERO or capital >= balance:
                    raise InvalidArgumentError(
                        f"Terms principal={principal} rate={monthly_rate} term={term_months} "
                        f"do not amortize: installment {number} capital is {capital}"
                    )

            balance = balance - capital

            schedule.append(Installment(
                loan_id=loan_id,
                number=number,
                due_date=add_months_business(disbursement_date, number, excluded_weekday),
                total_amount=capital + interest,
                capital_portion=capital,
                interest_portion=interest,
                balance_after=balance,
            ))

    logger.debug(
        f"Generated {len(schedule)} installments for loan {loan_id}: "
        f"first due {schedule[0].due_date.isoformat()}, last due {schedule[-1].due_date.isoformat()}"
    )
    return schedule


def total_capital(schedule: List[Installment]) -> Decimal:
    """Sum of capital portions; equals the principal for a generated schedule"""
    return sum((entry.capital_portion for entry in schedule), ZERO)


def total_interest(schedule: List[Installment]) -> Decimal:
    return sum((entry.interest_portion for entry in schedule), ZERO)


class ScheduleGenerator:
    """Amortization table builder bound to an excluded weekday"""

    def __init__(self, excluded_weekday: Optional[int] = None):
        self.excluded_weekday = excluded_weekday

    def generate(self, loan_id: str, principal: MoneyLike, monthly_rate: MoneyLike,
                 term_months: int, disbursement_date: date) -> List[Installment]:
        return generate_schedule(
            loan_id, principal, monthly_rate, term_months, disbursement_date,
            excluded_weekday=self.excluded_weekday
        )
