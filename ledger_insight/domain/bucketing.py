"""Monthly bucketing of sales, payments and returns for payment-behavior scoring"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ledger_insight.domain.models import BucketingResult, BucketTotals, MonthKey, MonthlyBucket
from ledger_insight.domain.normalizer import normalize_payment, normalize_return, normalize_sale, read_customer
from ledger_insight.schemas import to_number
from ledger_insight.utils.date_utils import add_months, generate_month_range, month_end, month_start, resolve_now

# Upper bound on the scoring window, in months
MAX_WINDOW_MONTHS = 1200


@dataclass
class _BucketAccumulator:
    """Mutable running totals for one month while records are being assigned"""

    month_start: datetime
    due_amount: float = 0.0
    paid_amount: float = 0.0
    relief_amount: float = 0.0
    payment_events: int = 0

    def freeze(self) -> MonthlyBucket:
        return MonthlyBucket(
            key=MonthKey.of(self.month_start),
            label=self.month_start.strftime("%B %Y"),
            month_start=self.month_start,
            month_end=month_end(self.month_start),
            due_amount=self.due_amount,
            paid_amount=self.paid_amount,
            relief_amount=self.relief_amount,
            payment_events=self.payment_events,
        )


def resolve_window_start(current_month: datetime, months_count: int, first_activity: Optional[datetime]) -> datetime:
    """
    First month of the scoring window.

    The window never starts before the customer's first activity month, so no
    empty months are manufactured for a customer who did not exist yet.
    """
    window_start = add_months(current_month, -(months_count - 1))
    if first_activity is not None:
        return max(window_start, month_start(first_activity))
    return window_start


def bucket_monthly_activity(
    customer: Any,
    sales: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    months_count: int,
    now: Optional[datetime] = None,
) -> BucketingResult:
    """
    Partition the last `months_count` calendar months into due/paid/relief buckets.

    Requirements:
    - Sale totals are due in the sale's month; any amount paid at sale time is a payment event
    - Standalone payments (> 0) are payment events
    - Returns relieve the obligation without counting as payments
    - Records outside the window are ignored
    """
    now = resolve_now(now)
    months_count = min(MAX_WINDOW_MONTHS, max(1, int(to_number(months_count) or 1)))
    first_activity = read_customer(customer).first_activity_date

    current_month = month_start(now)
    start = resolve_window_start(current_month, months_count, first_activity)

    accumulators: Dict[MonthKey, _BucketAccumulator] = {
        MonthKey.of(month): _BucketAccumulator(month_start=month)
        for month in generate_month_range(start, current_month)
    }

    def bucket_for(when: Optional[datetime]) -> Optional[_BucketAccumulator]:
        if when is None:
            return None
        return accumulators.get(MonthKey.of(when))

    payment_event_dates: List[datetime] = []

    for txn in map(normalize_sale, sales or []):
        bucket = bucket_for(txn.date)
        if bucket is None:
            continue
        bucket.due_amount += txn.total
        if txn.paid > 0:
            bucket.paid_amount += txn.paid
            bucket.payment_events += 1
            payment_event_dates.append(txn.date)

    for txn in map(normalize_payment, payments or []):
        bucket = bucket_for(txn.date)
        if bucket is None or txn.total <= 0:
            continue
        bucket.paid_amount += txn.total
        bucket.payment_events += 1
        payment_event_dates.append(txn.date)

    for txn in map(normalize_return, returns or []):
        bucket = bucket_for(txn.date)
        if bucket is None:
            continue
        bucket.relief_amount += txn.total

    buckets = [acc.freeze() for acc in accumulators.values()]

    return BucketingResult(
        buckets=buckets,
        payment_event_dates=sorted(payment_event_dates),
        totals=BucketTotals(
            total_due=sum(b.due_amount for b in buckets),
            total_paid=sum(b.paid_amount for b in buckets),
            total_relief=sum(b.relief_amount for b in buckets),
        ),
    )
