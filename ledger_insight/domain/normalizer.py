"""Normalize raw sale/return/payment records into uniform ledger transactions"""

import logging
from datetime import datetime
from typing import Any, Optional, Type

from ledger_insight.config import settings
from ledger_insight.domain.exceptions import InvalidRecordError
from ledger_insight.domain.models import LedgerTransaction, TransactionKind
from ledger_insight.infrastructure.observability.metrics import malformed_record_counter
from ledger_insight.schemas import (
    CustomerRecord,
    PaymentRecord,
    RecordT,
    ReturnRecord,
    SaleRecord,
    parse_record,
)
from ledger_insight.utils.date_utils import is_midnight, merge_date_and_time

# Sale types that default the whole total to outstanding when no amounts are recorded.
# The Arabic label is what the point-of-sale stores for deferred sales.
DEFERRED_SALE_TYPES = frozenset({"deferred", "آجل"})


def read_record(model: Type[RecordT], raw: Any, kind: str) -> RecordT:
    """Parse a record, degrading an unreadable one to an empty record of its kind"""
    try:
        return parse_record(model, raw, kind)
    except InvalidRecordError as e:
        malformed_record_counter.labels(kind=kind).inc()
        logging.warning(f"Malformed record zeroed: {e}", extra={"kind": kind, "step": "normalize"})
        return model()


def read_customer(raw: Any) -> CustomerRecord:
    return read_record(CustomerRecord, raw, "customer")


def resolve_sort_date(business_date: Optional[datetime], fallback: Optional[datetime]) -> Optional[datetime]:
    """
    Disambiguate ordering for same-day transactions.

    A business date that already carries a time of day is used as-is. A pure
    calendar date (midnight) borrows the time of day from the fallback
    (creation) timestamp when one exists.
    """
    if business_date is None:
        return fallback
    if not is_midnight(business_date) or fallback is None:
        return business_date
    return merge_date_and_time(business_date, fallback)


def _method_name(record) -> str:
    method = getattr(record, "payment_method", None)
    if method is not None and method.name:
        return method.name
    return settings.missing_label


def normalize_sale(raw: Any) -> LedgerTransaction:
    sale = read_record(SaleRecord, raw, "sale")
    total = max(0.0, sale.total)

    if sale.remaining_amount is not None:
        remaining = sale.remaining_amount
    elif sale.paid_amount is not None:
        remaining = total - sale.paid_amount
    elif (sale.sale_type or "").strip().lower() in DEFERRED_SALE_TYPES:
        remaining = total
    else:
        remaining = 0.0
    remaining = max(0.0, remaining)

    if sale.paid_amount is not None:
        paid = max(0.0, sale.paid_amount)
    else:
        paid = max(0.0, total - remaining)

    return LedgerTransaction(
        id=f"{TransactionKind.SALE.value}-{sale.id}",
        date=sale.business_date,
        sort_date=resolve_sort_date(sale.business_date, sale.created_at),
        kind=TransactionKind.SALE,
        debit=remaining,
        credit=0.0,
        total=total,
        paid=paid,
        remaining=remaining,
        payment_method_name=_method_name(sale),
        notes=sale.notes or settings.no_notes_placeholder,
        description=f"Sale invoice #{sale.id}",
        source_record=raw,
    )


def normalize_return(raw: Any) -> LedgerTransaction:
    item = read_record(ReturnRecord, raw, "return")
    total = max(0.0, item.total)

    return LedgerTransaction(
        id=f"{TransactionKind.RETURN.value}-{item.id}",
        date=item.created_at,
        sort_date=item.created_at,
        kind=TransactionKind.RETURN,
        debit=0.0,
        credit=total,
        total=total,
        paid=total,
        remaining=0.0,
        payment_method_name=settings.missing_label,
        notes=item.notes or settings.no_notes_placeholder,
        description=f"Return #{item.id}",
        source_record=raw,
    )


def normalize_payment(raw: Any) -> LedgerTransaction:
    payment = read_record(PaymentRecord, raw, "payment")
    amount = max(0.0, payment.amount)

    return LedgerTransaction(
        id=f"{TransactionKind.PAYMENT.value}-{payment.id}",
        date=payment.business_date,
        sort_date=resolve_sort_date(payment.business_date, payment.created_at),
        kind=TransactionKind.PAYMENT,
        debit=0.0,
        credit=amount,
        total=amount,
        paid=amount,
        remaining=0.0,
        payment_method_name=_method_name(payment),
        notes=payment.notes or settings.no_notes_placeholder,
        description="Cash payment",
        source_record=raw,
    )
