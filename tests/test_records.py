"""
Test suite for the record base and the error hierarchy
"""

import pytest
from dataclasses import dataclass
from decimal import Decimal
from datetime import date, datetime, timezone
from typing import Optional

from lending_core.exceptions import (
    InconsistentAggregateError, InvalidArgumentError, InvalidTransitionError, LendingError
)
from lending_core.loans import LoanStatus
from lending_core.records import Record, new_id, serialize_value


@dataclass
class SampleRecord(Record):
    amount: Decimal
    due_date: date
    status: LoanStatus = LoanStatus.ACTIVE
    notes: Optional[str] = None


class TestRecord:
    """Test the common entity base"""

    def test_defaults(self):
        record = SampleRecord(amount=Decimal('10.00'), due_date=date(2024, 2, 15))
        assert record.id
        assert record.created_at.tzinfo is not None
        assert record.updated_at.tzinfo is not None

    def test_ids_are_unique(self):
        assert new_id() != new_id()

    def test_touch(self):
        record = SampleRecord(amount=Decimal('10.00'), due_date=date(2024, 2, 15))
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        record.touch(stamp)
        assert record.updated_at == stamp

    def test_to_dict(self):
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        record = SampleRecord(
            amount=Decimal('1234.50'), due_date=date(2024, 2, 15),
            id="REC-1", created_at=stamp, updated_at=stamp
        )
        assert record.to_dict() == {
            "id": "REC-1",
            "created_at": "2024-05-01T12:00:00+00:00",
            "updated_at": "2024-05-01T12:00:00+00:00",
            "amount": "1234.50",
            "due_date": "2024-02-15",
            "status": "active",
            "notes": None,
        }

    def test_serialize_nested(self):
        assert serialize_value([Decimal('1.10'), date(2024, 1, 1)]) == ['1.10', '2024-01-01']
        assert serialize_value(7) == 7


class TestExceptions:
    """Test the error hierarchy"""

    def test_hierarchy(self):
        assert issubclass(InvalidArgumentError, LendingError)
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(InvalidTransitionError, LendingError)
        assert issubclass(InconsistentAggregateError, LendingError)

    def test_transition_error_names_state(self):
        error = InvalidTransitionError("application", "approve", "REJECTED")
        assert str(error) == "Cannot approve application in state REJECTED"
        assert error.entity == "application"
        assert error.current_state == "REJECTED"

    def test_transition_error_custom_message(self):
        error = InvalidTransitionError("loan", "cancel", "PAID", "Loan L-1 is already paid")
        assert str(error) == "Loan L-1 is already paid"
        assert error.operation == "cancel"

    def test_caught_as_base(self):
        with pytest.raises(LendingError):
            raise InconsistentAggregateError("mismatch")


if __name__ == "__main__":
    pytest.main([__file__])
