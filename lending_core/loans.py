"""
Loan Module

Funded loans, their owned installment schedule and payments, and the
aggregate view derived from them: current debt, progress, delinquency counts
and the loan's lifecycle status.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from .amortization import calculate_installment, validate_terms
from .dates import business_today
from .exceptions import InvalidArgumentError, InvalidTransitionError
from .installments import Installment
from .logging_config import log_action
from .money import MoneyLike, ZERO, ratio
from .payments import Payment
from .records import Record
from .schedule import generate_schedule

logger = logging.getLogger(__name__)


class LoanStatus(Enum):
    """Loan lifecycle states"""
    ACTIVE = "active"        # Installments pending, none overdue
    OVERDUE = "overdue"      # At least one unpaid installment past due
    PAID = "paid"            # Every installment fully paid
    CANCELLED = "cancelled"  # Cancelled by mutual agreement

    @property
    def accepts_payments(self) -> bool:
        return self in (LoanStatus.ACTIVE, LoanStatus.OVERDUE)

    @property
    def is_final(self) -> bool:
        """No further movements are expected"""
        return self in (LoanStatus.PAID, LoanStatus.CANCELLED)

    @property
    def is_delinquent(self) -> bool:
        return self == LoanStatus.OVERDUE


@dataclass
class Loan(Record):
    """Funded loan with its amortization schedule and payment history"""
    loan_number: str
    application_id: Optional[str]
    client_id: str
    agent_id: str
    principal: Decimal
    monthly_rate: Decimal
    term_months: int
    status: LoanStatus = LoanStatus.ACTIVE
    disbursement_date: Optional[date] = None
    first_due_date: Optional[date] = None
    last_due_date: Optional[date] = None
    notes: Optional[str] = None
    installments: List[Installment] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)

    # Derived from (principal, monthly_rate, term_months), never set directly
    installment_amount: Decimal = field(init=False)
    total_amount: Decimal = field(init=False)

    def __post_init__(self):
        if not self.loan_number:
            raise InvalidArgumentError("loan_number is required")
        if not self.client_id:
            raise InvalidArgumentError("client_id is required")
        if not self.agent_id:
            raise InvalidArgumentError("agent_id is required")
        self.principal, self.monthly_rate, self.term_months = validate_terms(
            self.principal, self.monthly_rate, self.term_months
        )
        self._recalculate_amounts()

    def _recalculate_amounts(self) -> None:
        result = calculate_installment(self.principal, self.monthly_rate, self.term_months)
        self.installment_amount = result.installment_amount
        self.total_amount = result.total_amount

    # Schedule management

    def generate_schedule(self, disbursement_date: Optional[date] = None,
                          excluded_weekday: Optional[int] = None) -> List[Installment]:
        """
        Build (or rebuild) the installment schedule from the current terms

        Args:
            disbursement_date: Date funds were delivered; defaults to the stored one
            excluded_weekday: Override for the configured excluded weekday

        Raises:
            InvalidTransitionError: If payments were already recorded or the loan is final
        """
        self._ensure_terms_mutable("generate schedule for")
        disbursement_date = disbursement_date or self.disbursement_date
        if disbursement_date is None:
            raise InvalidArgumentError("disbursement_date is required to generate a schedule")

        schedule = generate_schedule(
            self.id, self.principal, self.monthly_rate, self.term_months,
            disbursement_date, excluded_weekday
        )

        self.installments = schedule
        self.disbursement_date = disbursement_date
        self.first_due_date = schedule[0].due_date
        self.last_due_date = schedule[-1].due_date
        self.touch()
        return schedule

    def update_terms(self, principal: Optional[MoneyLike] = None,
                     monthly_rate: Optional[MoneyLike] = None,
                     term_months: Optional[int] = None) -> None:
        """
        Change principal, rate or term; derived amounts and the schedule follow

        Raises:
            InvalidTransitionError: If payments were already recorded or the loan is final
        """
        self._ensure_terms_mutable("update terms of")
        principal, monthly_rate, term_months = validate_terms(
            self.principal if principal is None else principal,
            self.monthly_rate if monthly_rate is None else monthly_rate,
            self.term_months if term_months is None else term_months,
        )

        self.principal = principal
        self.monthly_rate = monthly_rate
        self.term_months = term_months
        self._recalculate_amounts()

        if self.disbursement_date is not None:
            self.generate_schedule(self.disbursement_date)
        else:
            self.touch()

        logger.info(
            f"Loan {self.id} terms updated: principal={principal} rate={monthly_rate} "
            f"term={term_months} installment={self.installment_amount}"
        )

    def _ensure_terms_mutable(self, operation: str) -> None:
        if self.payments:
            raise InvalidTransitionError(
                "loan", operation, self.status.name,
                f"Cannot {operation} loan {self.id}: payments already recorded"
            )
        if self.status.is_final:
            raise InvalidTransitionError("loan", operation, self.status.name)

    # Aggregate view, recomputed on every call

    def installment(self, number: int) -> Optional[Installment]:
        """Installment by sequence number"""
        for entry in self.installments:
            if entry.number == number:
                return entry
        return None

    def total_paid(self) -> Decimal:
        return sum((payment.amount for payment in self.payments), ZERO)

    def current_debt(self) -> Decimal:
        """Total repayable minus everything paid so far"""
        return self.total_amount - self.total_paid()

    def percent_advanced(self) -> Decimal:
        """Share of the total repayable already paid, 0.0000 to 1.0000"""
        return ratio(self.total_amount - self.current_debt(), self.total_amount)

    def pending_count(self) -> int:
        return sum(1 for entry in self.installments if not entry.paid)

    def overdue_count(self, today: Optional[date] = None) -> int:
        today = today or business_today()
        return sum(1 for entry in self.installments if not entry.paid and entry.is_overdue(today))

    def next_due_installment(self) -> Optional[Installment]:
        """Unpaid installment with the earliest due date"""
        pending = [entry for entry in self.installments if not entry.paid]
        if not pending:
            return None
        return min(pending, key=lambda entry: (entry.due_date, entry.number))

    def is_current(self, today: Optional[date] = None) -> bool:
        """No overdue installments"""
        return self.overdue_count(today) == 0

    def is_fully_paid(self) -> bool:
        return self.pending_count() == 0

    def refresh_status(self, today: Optional[date] = None) -> LoanStatus:
        """
        Re-derive the loan status from its installments

        PAID when nothing is pending, OVERDUE when something pending is past
        due, ACTIVE otherwise. A cancelled loan, or one without a schedule yet,
        keeps its status.
        """
        if self.status == LoanStatus.CANCELLED or not self.installments:
            return self.status

        if self.is_fully_paid():
            new_status = LoanStatus.PAID
        elif self.overdue_count(today) > 0:
            new_status = LoanStatus.OVERDUE
        else:
            new_status = LoanStatus.ACTIVE

        if new_status != self.status:
            logger.info(f"Loan {self.id} status {self.status.value} -> {new_status.value}")
            self.status = new_status
            self.touch()
        return self.status

    def cancel(self, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        """
        Cancel the loan by mutual agreement

        Raises:
            InvalidTransitionError: If the loan is already paid or cancelled
        """
        if self.status.is_final:
            logger.warning(f"Rejected cancel of loan {self.id} in state {self.status.value}")
            raise InvalidTransitionError("loan", "cancel", self.status.name)

        self.status = LoanStatus.CANCELLED
        if notes:
            self.notes = notes
        self.touch(now)
        log_action(logger, "info", f"Loan {self.loan_number} cancelled",
                   action="cancel", loan_id=self.id)

    def summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Snapshot of the derived figures for reporting"""
        today = today or business_today()
        next_due = self.next_due_installment()
        return {
            "loan_id": self.id,
            "loan_number": self.loan_number,
            "status": self.status.value,
            "principal": str(self.principal),
            "installment_amount": str(self.installment_amount),
            "total_amount": str(self.total_amount),
            "total_paid": str(self.total_paid()),
            "current_debt": str(self.current_debt()),
            "percent_advanced": str(self.percent_advanced()),
            "pending_count": self.pending_count(),
            "overdue_count": self.overdue_count(today),
            "next_due_number": next_due.number if next_due else None,
            "next_due_date": next_due.due_date.isoformat() if next_due else None,
        }
