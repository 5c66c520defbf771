"""Pydantic schemas for incoming sale/return/payment/customer records

Records arrive as already-loaded plain dicts (camelCase keys) or attribute
objects. Every field is coerced before validation so a malformed value degrades
to a zero/None fallback instead of failing the whole record.
"""

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ledger_insight.domain.exceptions import InvalidRecordError
from ledger_insight.utils.date_utils import to_local_naive

RecordT = TypeVar("RecordT", bound="SourceRecord")


def to_number(value: Any) -> Optional[float]:
    """Finite float or None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal, str)):
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None
    return None


def to_money(value: Any) -> float:
    number = to_number(value)
    return 0.0 if number is None else number


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a record date into a local naive datetime.

    Accepts datetime/date objects, ISO-8601 strings (date-only strings are local
    midnight) and epoch milliseconds. Anything unparsable becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else None


class SourceRecord(BaseModel):
    """Base for all incoming records: tolerant of extra keys and attribute objects"""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True, extra="ignore", frozen=True)

    id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return to_text(value) or ""


class PaymentMethodRecord(BaseModel):
    """Payment method reference, only the display name is read"""

    model_config = ConfigDict(from_attributes=True, extra="ignore", frozen=True)

    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Optional[str]:
        return to_text(value)


def _coerce_payment_method(value: Any) -> Optional[dict]:
    if value is None:
        return None
    if isinstance(value, PaymentMethodRecord):
        return value.model_dump()
    if isinstance(value, str):
        return {"name": value}
    if isinstance(value, dict):
        return {"name": value.get("name")}
    if hasattr(value, "name"):
        return {"name": getattr(value, "name")}
    return None


class SaleRecord(SourceRecord):
    """Sale invoice as stored by the sales module"""

    total: float = 0.0
    paid_amount: Optional[float] = Field(default=None, alias="paidAmount")
    remaining_amount: Optional[float] = Field(default=None, alias="remainingAmount")
    sale_type: Optional[str] = Field(default=None, alias="saleType")
    invoice_date: Optional[datetime] = Field(default=None, alias="invoiceDate")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethodRecord] = Field(default=None, alias="paymentMethod")

    @field_validator("total", mode="before")
    @classmethod
    def _coerce_total(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("paid_amount", "remaining_amount", mode="before")
    @classmethod
    def _coerce_optional_money(cls, value: Any) -> Optional[float]:
        return to_number(value)

    @field_validator("invoice_date", "created_at", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("sale_type", "notes", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return to_text(value)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _coerce_method(cls, value: Any) -> Optional[dict]:
        return _coerce_payment_method(value)

    @property
    def business_date(self) -> Optional[datetime]:
        return self.invoice_date or self.created_at


class ReturnRecord(SourceRecord):
    """Sales return; its creation time is its business date"""

    total: float = 0.0
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    notes: Optional[str] = None

    @field_validator("total", mode="before")
    @classmethod
    def _coerce_total(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> Optional[str]:
        return to_text(value)


class PaymentRecord(SourceRecord):
    """Standalone customer payment"""

    amount: float = 0.0
    payment_date: Optional[datetime] = Field(default=None, alias="paymentDate")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethodRecord] = Field(default=None, alias="paymentMethod")

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("payment_date", "created_at", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> Optional[str]:
        return to_text(value)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _coerce_method(cls, value: Any) -> Optional[dict]:
        return _coerce_payment_method(value)

    @property
    def business_date(self) -> Optional[datetime]:
        return self.payment_date or self.created_at


class CustomerRecord(SourceRecord):
    """Customer account; balance is the current (final) receivable balance"""

    balance: float = 0.0
    first_activity_date: Optional[datetime] = Field(default=None, alias="firstActivityDate")

    @field_validator("balance", mode="before")
    @classmethod
    def _coerce_balance(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("first_activity_date", mode="before")
    @classmethod
    def _coerce_first_activity(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)


def parse_record(model: Type[RecordT], raw: Any, kind: str) -> RecordT:
    """
    Validate one raw record into its schema.

    Raises:
        InvalidRecordError: when `raw` is neither a mapping nor an attribute object
    """
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise InvalidRecordError(kind, str(e)) from e
