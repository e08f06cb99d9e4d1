"""
Loan Application Module

Pre-funding lifecycle of a loan request: submission by an agent, review, and
a terminal decision. Approval is the only gate through which a loan may be
funded from the application's terms.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
import logging

from .amortization import calculate_installment, validate_terms
from .exceptions import InvalidArgumentError, InvalidTransitionError
from .logging_config import log_action
from .money import MoneyLike, ZERO, to_decimal
from .records import Record, utc_now

logger = logging.getLogger(__name__)


class ApplicationStatus(Enum):
    """Loan application lifecycle states"""
    PENDING = "pending"        # Submitted, waiting for review
    IN_REVIEW = "in_review"    # Being evaluated
    APPROVED = "approved"      # Approved, may be funded
    REJECTED = "rejected"      # Did not meet the criteria
    CANCELLED = "cancelled"    # Withdrawn by the client or the system

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @property
    def is_editable(self) -> bool:
        return self in (ApplicationStatus.PENDING, ApplicationStatus.IN_REVIEW)

    @property
    def can_decide(self) -> bool:
        """Approve, reject and cancel share the same source states"""
        return self.is_editable

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED,
                        ApplicationStatus.CANCELLED)


@dataclass(frozen=True)
class ApplicantSnapshot:
    """Applicant identity as captured at submission time"""
    first_names: str
    last_names: str
    document_number: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    def __post_init__(self):
        if not self.document_number:
            raise InvalidArgumentError("Applicant document_number is required")

    @property
    def full_name(self) -> str:
        return f"{self.first_names or ''} {self.last_names or ''}".strip()


@dataclass
class LoanApplication(Record):
    """Loan request submitted by an agent on behalf of an applicant"""
    application_number: str
    agent_id: str
    applicant: ApplicantSnapshot
    requested_amount: Decimal
    term_months: int
    monthly_rate: Decimal
    purpose: Optional[str] = None
    monthly_income: Optional[Decimal] = None
    client_id: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.PENDING
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    reviewer_id: Optional[str] = None
    funded_loan_id: Optional[str] = None

    def __post_init__(self):
        if not self.application_number:
            raise InvalidArgumentError("application_number is required")
        if not self.agent_id:
            raise InvalidArgumentError("agent_id is required")
        if self.applicant is None:
            raise InvalidArgumentError("applicant is required")
        self.requested_amount, self.monthly_rate, self.term_months = validate_terms(
            self.requested_amount, self.monthly_rate, self.term_months
        )
        if self.monthly_income is not None:
            self.monthly_income = self._validate_income(self.monthly_income)
        if self.submitted_at is None:
            self.submitted_at = self.created_at

    @staticmethod
    def _validate_income(value: MoneyLike) -> Decimal:
        income = to_decimal(value, "monthly_income")
        if income < ZERO:
            raise InvalidArgumentError(f"monthly_income cannot be negative, got {income}")
        return income

    # Editing while the request is open

    def update_terms(self, requested_amount: Optional[MoneyLike] = None,
                     term_months: Optional[int] = None,
                     monthly_rate: Optional[MoneyLike] = None,
                     now: Optional[datetime] = None) -> None:
        """
        Change the requested terms

        Raises:
            InvalidTransitionError: If the application is no longer editable
        """
        self._ensure_editable("update terms of")
        amount, rate, term = validate_terms(
            self.requested_amount if requested_amount is None else requested_amount,
            self.monthly_rate if monthly_rate is None else monthly_rate,
            self.term_months if term_months is None else term_months,
        )
        self.requested_amount = amount
        self.monthly_rate = rate
        self.term_months = term
        self.touch(now)

    def update_details(self, purpose: Optional[str] = None,
                       monthly_income: Optional[MoneyLike] = None,
                       client_id: Optional[str] = None,
                       notes: Optional[str] = None,
                       now: Optional[datetime] = None) -> None:
        """
        Change descriptive fields of an open application

        Raises:
            InvalidTransitionError: If the application is no longer editable
        """
        self._ensure_editable("update")
        income = self._validate_income(monthly_income) if monthly_income is not None else None

        if purpose is not None:
            self.purpose = purpose
        if income is not None:
            self.monthly_income = income
        if client_id is not None:
            self.client_id = client_id
        if notes is not None:
            self.notes = notes
        self.touch(now)

    def _ensure_editable(self, operation: str) -> None:
        if not self.status.is_editable:
            self._reject(operation)

    # State machine

    def mark_in_review(self, now: Optional[datetime] = None) -> None:
        """
        Move to IN_REVIEW; re-entering from IN_REVIEW is allowed and keeps the
        original review timestamp

        Raises:
            InvalidTransitionError: From a terminal state
        """
        if not self.status.is_editable:
            self._reject("mark in review")

        now = now or utc_now()
        self.status = ApplicationStatus.IN_REVIEW
        if self.reviewed_at is None:
            self.reviewed_at = now
        self.touch(now)
        log_action(logger, "info", f"Application {self.application_number} in review",
                   action="mark_in_review", application_id=self.id)

    def approve(self, reviewer_id: str, notes: Optional[str] = None,
                now: Optional[datetime] = None) -> None:
        """
        Approve the application

        Raises:
            InvalidArgumentError: Missing reviewer reference
            InvalidTransitionError: From a terminal state
        """
        self._decide(ApplicationStatus.APPROVED, "approve", reviewer_id, notes, now)

    def reject(self, reviewer_id: str, notes: Optional[str] = None,
               now: Optional[datetime] = None) -> None:
        """
        Reject the application

        Raises:
            InvalidArgumentError: Missing reviewer reference
            InvalidTransitionError: From a terminal state
        """
        self._decide(ApplicationStatus.REJECTED, "reject", reviewer_id, notes, now)

    def cancel(self, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        """
        Cancel the application

        Raises:
            InvalidTransitionError: From a terminal state
        """
        if not self.status.can_decide:
            self._reject("cancel")

        now = now or utc_now()
        self.status = ApplicationStatus.CANCELLED
        self.decided_at = now
        if notes is not None:
            self.notes = notes
        self.touch(now)
        log_action(logger, "info", f"Application {self.application_number} cancelled",
                   action="cancel", application_id=self.id)

    def _decide(self, outcome: ApplicationStatus, operation: str, reviewer_id: str,
                notes: Optional[str], now: Optional[datetime]) -> None:
        if not self.status.can_decide:
            self._reject(operation)
        if not reviewer_id:
            raise InvalidArgumentError(f"reviewer_id is required to {operation} an application")

        now = now or utc_now()
        self.status = outcome
        self.reviewer_id = reviewer_id
        self.decided_at = now
        if self.reviewed_at is None:
            self.reviewed_at = now
        if notes is not None:
            self.notes = notes
        self.touch(now)
        log_action(logger, "info", f"Application {self.application_number} {outcome.value}",
                   user_id=reviewer_id, action=operation, application_id=self.id)

    def _reject(self, operation: str) -> None:
        logger.warning(
            f"Rejected {operation} on application {self.application_number} "
            f"in state {self.status.value}"
        )
        raise InvalidTransitionError("application", operation, self.status.name)

    # Funding link

    def link_loan(self, loan_id: str, now: Optional[datetime] = None) -> None:
        """
        Record the loan funded from this application; allowed once, only when approved

        Raises:
            InvalidTransitionError: Not approved, or already funded
        """
        if self.status != ApplicationStatus.APPROVED:
            self._reject("fund")
        if self.funded_loan_id is not None:
            raise InvalidTransitionError(
                "application", "fund", self.status.name,
                f"Application {self.application_number} already funded loan {self.funded_loan_id}"
            )
        if not loan_id:
            raise InvalidArgumentError("loan_id is required")
        self.funded_loan_id = loan_id
        self.touch(now)

    @property
    def is_funded(self) -> bool:
        return self.funded_loan_id is not None

    # Estimates shown to the applicant before a decision

    def estimated_installment(self) -> Decimal:
        return calculate_installment(
            self.requested_amount, self.monthly_rate, self.term_months
        ).installment_amount

    def estimated_total(self) -> Decimal:
        return calculate_installment(
            self.requested_amount, self.monthly_rate, self.term_months
        ).total_amount
