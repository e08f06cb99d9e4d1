"""
Payment Module

Immutable payment records and the processor that applies them to a loan's
installments. A payment is not complete until the owning loan has re-derived
its status.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional
import logging

from .dates import business_date, business_today, days_late
from .exceptions import InconsistentAggregateError, InvalidArgumentError, InvalidTransitionError
from .installments import Installment
from .logging_config import log_action
from .money import MoneyLike, ZERO, round_money, to_decimal
from .records import new_id, serialize_value, utc_now

if TYPE_CHECKING:
    from .loans import Loan

logger = logging.getLogger(__name__)


class PaymentMethod(Enum):
    """How the money was received"""
    CASH = "cash"
    TRANSFER = "transfer"
    CHECK = "check"
    DEPOSIT = "deposit"

    @property
    def requires_operation_reference(self) -> bool:
        """Every method except cash leaves an external operation number"""
        return self != PaymentMethod.CASH


@dataclass(frozen=True)
class Payment:
    """
    Record of money received against one installment.

    Immutable once created; a correction is a new compensating record.
    """
    receipt_number: str
    loan_id: str
    installment_number: int
    amount: Decimal
    payment_date: date
    recorded_by: str
    method: PaymentMethod = PaymentMethod.CASH
    operation_reference: Optional[str] = None
    notes: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        amount = to_decimal(self.amount, "amount")
        if amount <= ZERO:
            raise InvalidArgumentError(f"Payment amount must be positive, got {amount}")
        if amount != round_money(amount):
            raise InvalidArgumentError(f"Payment amount cannot carry fractions of a cent, got {amount}")
        object.__setattr__(self, 'amount', amount)

        for name in ('receipt_number', 'loan_id', 'recorded_by'):
            reference = getattr(self, name)
            if reference is not None and not isinstance(reference, str):
                raise InvalidArgumentError(
                    f"{name} must be a string, got {type(reference).__name__}"
                )
            if not reference or not reference.strip():
                raise InvalidArgumentError(f"{name} is required")
        if self.payment_date is None:
            raise InvalidArgumentError("payment_date is required")
        if not isinstance(self.installment_number, int) or self.installment_number < 1:
            raise InvalidArgumentError(
                f"installment_number must be a positive integer, got {self.installment_number!r}"
            )
        if not isinstance(self.method, PaymentMethod):
            raise InvalidArgumentError(f"Unknown payment method {self.method!r}")
        if self.operation_reference is not None and not isinstance(self.operation_reference, str):
            raise InvalidArgumentError(
                f"operation_reference must be a string, got {type(self.operation_reference).__name__}"
            )
        if self.method.requires_operation_reference:
            if not self.operation_reference or not self.operation_reference.strip():
                raise InvalidArgumentError(
                    f"{self.method.value} payments require an operation reference"
                )

    @property
    def is_cash(self) -> bool:
        return self.method == PaymentMethod.CASH

    @property
    def recorded_same_day(self) -> bool:
        """Whether the payment was entered on the business day it was made"""
        return self.payment_date == business_date(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {f.name: serialize_value(getattr(self, f.name)) for f in fields(self)}


class PaymentProcessor:
    """
    Applies payments to installments and keeps the loan status in step
    """

    def apply_payment(self, loan: 'Loan', payment: Payment,
                      today: Optional[date] = None) -> Installment:
        """
        Apply a payment to its target installment

        Every check runs before any field changes, so a rejected payment
        leaves the loan exactly as it was.

        Args:
            loan: Fully hydrated loan the payment belongs to
            payment: Payment to apply
            today: Business date used to re-derive the loan status

        Returns:
            The updated installment

        Raises:
            InconsistentAggregateError: Payment or installment belongs to another loan
            InvalidArgumentError: Receipt number already recorded on this loan
            InvalidTransitionError: Loan does not accept payments in its current state
        """
        installment = self._validate(loan, payment)

        was_paid = installment.paid
        installment.amount_paid = installment.amount_paid + payment.amount
        installment.days_late_at_payment = days_late(installment.due_date, payment.payment_date)
        if not was_paid and installment.amount_paid >= installment.total_amount:
            installment.paid = True
            installment.payment_date = payment.payment_date
        installment.touch()

        loan.payments.append(payment)
        status = loan.refresh_status(today or business_today())

        if installment.amount_paid > installment.total_amount:
            logger.info(
                f"Installment {installment.number} of loan {loan.id} overpaid by "
                f"{installment.amount_paid - installment.total_amount}"
            )

        log_action(
            logger, "info",
            f"Payment {payment.receipt_number} of {payment.amount} applied to installment "
            f"{installment.number}",
            user_id=payment.recorded_by,
            action="apply_payment",
            loan_id=loan.id,
            extra={
                "installment_paid": installment.paid,
                "days_late_at_payment": installment.days_late_at_payment,
                "loan_status": status.value,
            }
        )
        return installment

    def _validate(self, loan: 'Loan', payment: Payment) -> Installment:
        if loan is None:
            raise InvalidArgumentError("loan is required")
        if payment is None:
            raise InvalidArgumentError("payment is required")

        if payment.loan_id != loan.id:
            self._reject(loan, payment, "payment references another loan")
            raise InconsistentAggregateError(
                f"Payment {payment.receipt_number} references loan {payment.loan_id}, not {loan.id}"
            )

        installment = loan.installment(payment.installment_number)
        if installment is None or installment.loan_id != loan.id:
            self._reject(loan, payment, "installment not in loan")
            raise InconsistentAggregateError(
                f"Installment {payment.installment_number} does not belong to loan {loan.id}"
            )

        if any(existing.receipt_number == payment.receipt_number for existing in loan.payments):
            self._reject(loan, payment, "duplicate receipt number")
            raise InvalidArgumentError(
                f"Receipt {payment.receipt_number} is already recorded on loan {loan.id}"
            )

        if not loan.status.accepts_payments:
            self._reject(loan, payment, f"loan is {loan.status.value}")
            raise InvalidTransitionError("loan", "apply payment to", loan.status.name)

        return installment

    def _reject(self, loan: 'Loan', payment: Payment, reason: str) -> None:
        log_action(
            logger, "warning",
            f"Payment {payment.receipt_number} rejected: {reason}",
            user_id=payment.recorded_by,
            action="apply_payment",
            loan_id=loan.id,
        )
