"""
Origination Module

Turns approved applications into funded loans and records payments against
them. The persistence layer owns identifiers and transactions; this module
only builds and mutates the in-memory aggregates it is handed.
"""

from datetime import date, datetime
from typing import Optional
import logging

from .applications import ApplicationStatus, LoanApplication
from .config import LendingConfig, get_config
from .exceptions import InvalidArgumentError, InvalidTransitionError
from .installments import Installment
from .loans import Loan
from .logging_config import log_action
from .money import MoneyLike
from .payments import Payment, PaymentMethod, PaymentProcessor
from .records import new_id

logger = logging.getLogger(__name__)


class LoanOriginator:
    """
    Manages the application → loan → payment pipeline
    """

    def __init__(self, config: Optional[LendingConfig] = None,
                 payment_processor: Optional[PaymentProcessor] = None):
        self.config = config or get_config()
        self.payment_processor = payment_processor or PaymentProcessor()

    def fund(
        self,
        application: LoanApplication,
        loan_number: str,
        disbursement_date: date,
        loan_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Loan:
        """
        Fund an approved application

        Args:
            application: Application in APPROVED status, not yet funded
            loan_number: Business number assigned by the persistence layer
            disbursement_date: Date the funds are delivered
            loan_id: Identifier for the new loan (generated if omitted)
            notes: Free-text notes for the loan

        Returns:
            Loan with its full installment schedule

        Raises:
            InvalidTransitionError: Application not approved or already funded
            InvalidArgumentError: Missing client reference or other bad input
        """
        if application.status != ApplicationStatus.APPROVED:
            logger.warning(
                f"Rejected funding of application {application.application_number} "
                f"in state {application.status.value}"
            )
            raise InvalidTransitionError("application", "fund", application.status.name)
        return self._build_loan(application, loan_number, disbursement_date,
                                loan_id, notes, now)

    def approve_and_fund(
        self,
        application: LoanApplication,
        reviewer_id: str,
        loan_number: str,
        disbursement_date: date,
        loan_id: Optional[str] = None,
        decision_notes: Optional[str] = None,
        loan_notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Loan:
        """
        Approve an open application and fund it in one step

        The loan is fully built before the application changes, so a funding
        error leaves the application in its previous state.

        Raises:
            InvalidTransitionError: Application already decided
            InvalidArgumentError: Missing reviewer or client reference
        """
        if not application.status.can_decide:
            logger.warning(
                f"Rejected approve of application {application.application_number} "
                f"in state {application.status.value}"
            )
            raise InvalidTransitionError("application", "approve", application.status.name)
        if not reviewer_id:
            raise InvalidArgumentError("reviewer_id is required to approve an application")
        if application.is_funded:
            raise InvalidTransitionError(
                "application", "fund", application.status.name,
                f"Application {application.application_number} already funded"
            )

        loan = self._create_loan(application, loan_number, disbursement_date, loan_id, loan_notes)
        application.approve(reviewer_id, decision_notes, now)
        application.link_loan(loan.id, now)
        self._log_funded(application, loan)
        return loan

    def _build_loan(self, application: LoanApplication, loan_number: str,
                    disbursement_date: date, loan_id: Optional[str],
                    notes: Optional[str], now: Optional[datetime]) -> Loan:
        if application.is_funded:
            logger.warning(
                f"Rejected second funding of application {application.application_number}"
            )
            raise InvalidTransitionError(
                "application", "fund", application.status.name,
                f"Application {application.application_number} already funded loan "
                f"{application.funded_loan_id}"
            )
        loan = self._create_loan(application, loan_number, disbursement_date, loan_id, notes)
        application.link_loan(loan.id, now)
        self._log_funded(application, loan)
        return loan

    def _create_loan(self, application: LoanApplication, loan_number: str,
                     disbursement_date: date, loan_id: Optional[str],
                     notes: Optional[str]) -> Loan:
        if not application.client_id:
            raise InvalidArgumentError(
                f"Application {application.application_number} has no client reference"
            )
        if disbursement_date is None:
            raise InvalidArgumentError("disbursement_date is required")

        loan = Loan(
            id=loan_id or new_id(),
            loan_number=loan_number,
            application_id=application.id,
            client_id=application.client_id,
            agent_id=application.agent_id,
            principal=application.requested_amount,
            monthly_rate=application.monthly_rate,
            term_months=application.term_months,
            notes=notes,
        )
        loan.generate_schedule(disbursement_date, self.config.excluded_weekday)
        return loan

    def _log_funded(self, application: LoanApplication, loan: Loan) -> None:
        log_action(
            logger, "info",
            f"Loan {loan.loan_number} funded from application {application.application_number}",
            user_id=application.reviewer_id,
            action="fund",
            loan_id=loan.id,
            application_id=application.id,
            extra={
                "principal": str(loan.principal),
                "monthly_rate": str(loan.monthly_rate),
                "term_months": loan.term_months,
                "installment_amount": str(loan.installment_amount),
                "total_amount": str(loan.total_amount),
                "first_due_date": loan.first_due_date.isoformat(),
                "last_due_date": loan.last_due_date.isoformat(),
            }
        )

    def record_payment(
        self,
        loan: Loan,
        receipt_number: str,
        installment_number: int,
        amount: MoneyLike,
        payment_date: date,
        recorded_by: str,
        method: PaymentMethod = PaymentMethod.CASH,
        operation_reference: Optional[str] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None
    ) -> Installment:
        """
        Create a payment record and apply it to the loan

        Returns:
            The updated installment

        Raises:
            InvalidArgumentError: Bad amount, missing references, duplicate receipt
            InconsistentAggregateError: Installment not part of the loan
            InvalidTransitionError: Loan does not accept payments
        """
        payment = Payment(
            receipt_number=receipt_number,
            loan_id=loan.id,
            installment_number=installment_number,
            amount=amount,
            payment_date=payment_date,
            recorded_by=recorded_by,
            method=method,
            operation_reference=operation_reference,
            notes=notes,
        )
        return self.payment_processor.apply_payment(loan, payment, today)
