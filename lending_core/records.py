"""
Record Base Module

Common base for entities handed to and from the persistence layer. All
monetary values are rendered as Decimal strings.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import uuid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def serialize_value(value: Any) -> Any:
    """Convert a field value into a storage-friendly primitive"""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if hasattr(value, '__dataclass_fields__'):
        return {f.name: serialize_value(getattr(value, f.name)) for f in fields(value)}
    return value


@dataclass
class Record:
    """Base class for all engine entities"""
    id: str = field(default_factory=new_id, kw_only=True)
    created_at: datetime = field(default_factory=utc_now, kw_only=True)
    updated_at: datetime = field(default_factory=utc_now, kw_only=True)

    def touch(self, now: Optional[datetime] = None) -> None:
        """Stamp the record as modified"""
        self.updated_at = now or utc_now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {f.name: serialize_value(getattr(self, f.name)) for f in fields(self)}
