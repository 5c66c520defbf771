"""Customer ledger and payment-insight entry points for the presentation layer"""

import time
from datetime import datetime
from typing import Any, Iterable, Optional

from ledger_insight.config import settings
from ledger_insight.domain.ledger import build_customer_ledger
from ledger_insight.domain.models import CustomerLedger, InsightResult
from ledger_insight.domain.normalizer import read_customer
from ledger_insight.domain.scoring import build_payment_insight
from ledger_insight.infrastructure.observability.logging import log_insight, log_ledger_built
from ledger_insight.infrastructure.observability.metrics import (
    ledger_build_counter,
    pipeline_duration_histogram,
    record_insight,
)


def get_customer_ledger(
    customer: Any,
    sales: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
    date_from: Any = None,
    date_to: Any = None,
) -> CustomerLedger:
    """
    Build a customer's reconciled ledger for display or printing.

    Flow:
    1. Normalize sales, returns and payments into ledger transactions
    2. Reconstruct running balances anchored to the customer's current balance
    3. Apply the optional date range
    4. Summarize the visible transactions
    """
    start_time = time.time()
    customer = read_customer(customer)
    sales, returns, payments = list(sales or []), list(returns or []), list(payments or [])

    ledger = build_customer_ledger(customer, sales, returns, payments, date_from, date_to)

    duration = time.time() - start_time
    ledger_build_counter.inc()
    pipeline_duration_histogram.labels(pipeline="ledger").observe(duration)
    log_ledger_built(
        customer.id,
        len(sales) + len(returns) + len(payments),
        ledger.summary.transaction_count,
        ledger.summary.final_balance,
        duration * 1000,
    )
    return ledger


def get_payment_insight(
    customer: Any,
    sales: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    months_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> InsightResult:
    """
    Score a customer's recent payment behavior.

    The window defaults to the configured number of months ending with the
    current month.
    """
    start_time = time.time()
    customer = read_customer(customer)
    months = months_count if months_count is not None else settings.insight_window_months

    insight = build_payment_insight(customer, sales, payments, returns, months, now)

    duration = time.time() - start_time
    pipeline_duration_histogram.labels(pipeline="insight").observe(duration)
    record_insight(insight.classification, insight.score)
    log_insight(
        customer.id,
        insight.score,
        insight.classification,
        len(insight.timeline),
        duration * 1000,
    )
    return insight
