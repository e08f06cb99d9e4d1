"""
Installment Module

Scheduled repayment units of a loan and their derived status. Status is never
stored: it is recomputed from the paid flag, the due date and "today" on every
read so it cannot go stale.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from .config import get_config
from .dates import business_today, days_late, format_date
from .money import ZERO, ratio
from .records import Record


class InstallmentStatus(Enum):
    """Derived installment states"""
    PAID = "paid"                    # Fully paid, terminal
    ON_TIME = "on_time"              # Not yet due, or due today
    LATE = "late"                    # 1 to 7 days past due
    SEVERELY_LATE = "severely_late"  # More than 7 days past due

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_current(self) -> bool:
        """Paid or not yet overdue"""
        return self in (InstallmentStatus.PAID, InstallmentStatus.ON_TIME)

    @property
    def is_delinquent(self) -> bool:
        return self in (InstallmentStatus.LATE, InstallmentStatus.SEVERELY_LATE)

    @property
    def needs_urgent_attention(self) -> bool:
        return self == InstallmentStatus.SEVERELY_LATE

    @property
    def priority(self) -> int:
        """Collection priority, 1 is most urgent"""
        return _STATUS_PRIORITY[self]


_STATUS_LABELS = {
    InstallmentStatus.PAID: "Paid",
    InstallmentStatus.ON_TIME: "On time",
    InstallmentStatus.LATE: "Late",
    InstallmentStatus.SEVERELY_LATE: "Severely late",
}

_STATUS_PRIORITY = {
    InstallmentStatus.SEVERELY_LATE: 1,
    InstallmentStatus.LATE: 2,
    InstallmentStatus.ON_TIME: 3,
    InstallmentStatus.PAID: 4,
}


def derive_status(paid: bool, days_late: int) -> InstallmentStatus:
    """
    Installment state machine.

    Args:
        paid: Whether the installment is fully paid
        days_late: Whole days past the due date, floored at zero

    Returns:
        PAID if paid regardless of days_late; otherwise ON_TIME, LATE
        (1..threshold days) or SEVERELY_LATE (beyond the threshold)
    """
    if paid:
        return InstallmentStatus.PAID
    if days_late <= 0:
        return InstallmentStatus.ON_TIME
    if days_late <= get_config().severe_delay_days:
        return InstallmentStatus.LATE
    return InstallmentStatus.SEVERELY_LATE


@dataclass
class Installment(Record):
    """One row of a loan's payment schedule"""
    loan_id: str
    number: int
    due_date: date
    total_amount: Decimal
    capital_portion: Decimal
    interest_portion: Decimal
    balance_after: Decimal
    paid: bool = False
    amount_paid: Decimal = ZERO
    payment_date: Optional[date] = None   # Date of the payment that completed it
    days_late_at_payment: int = 0
    notes: Optional[str] = None

    def days_late(self, today: Optional[date] = None) -> int:
        """Days past due as of today; zero once paid"""
        if self.paid:
            return 0
        return days_late(self.due_date, today or business_today())

    def status(self, today: Optional[date] = None) -> InstallmentStatus:
        """Derived status as of today"""
        if self.paid:
            return InstallmentStatus.PAID
        return derive_status(False, self.days_late(today))

    def is_overdue(self, today: Optional[date] = None) -> bool:
        return self.status(today).is_delinquent

    @property
    def outstanding_amount(self) -> Decimal:
        """Amount still owed on this installment, never negative"""
        if self.paid:
            return ZERO
        return max(ZERO, self.total_amount - self.amount_paid)

    @property
    def has_partial_payment(self) -> bool:
        return not self.paid and self.amount_paid > ZERO

    @property
    def paid_ratio(self) -> Decimal:
        """Fraction of the installment paid, 4 decimal places"""
        return ratio(self.amount_paid, self.total_amount)

    def status_description(self, today: Optional[date] = None) -> str:
        """Human readable status line for statements and screens"""
        today = today or business_today()
        status = self.status(today)
        if status == InstallmentStatus.PAID:
            return f"Paid on {format_date(self.payment_date)}"
        if status == InstallmentStatus.ON_TIME:
            return f"Due on {format_date(self.due_date)}"
        late = self.days_late(today)
        if status == InstallmentStatus.LATE:
            return f"Overdue by {late} day(s)"
        return f"SEVERELY LATE - {late} day(s)"
