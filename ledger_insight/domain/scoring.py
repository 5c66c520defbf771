"""Payment-behavior scoring engine - core business logic for customer credit-risk insight"""

import math
from bisect import bisect_right
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ledger_insight.domain.bucketing import bucket_monthly_activity
from ledger_insight.domain.models import (
    MONEY_EPSILON,
    BucketTotals,
    InsightMetrics,
    InsightResult,
    MonthlyBucket,
)
from ledger_insight.domain.normalizer import read_customer
from ledger_insight.schemas import to_money
from ledger_insight.utils.date_utils import resolve_now

SEVERE_DELAY_DAYS = 30
SECONDS_PER_DAY = 86_400


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _delay_reference(payment_event_dates: Sequence[datetime], month_end: datetime, now: datetime) -> datetime:
    """Earliest payment event strictly after month end, or now when none happened yet"""
    index = bisect_right(payment_event_dates, month_end)
    if index < len(payment_event_dates):
        return payment_event_dates[index]
    return now


def _delay_days(reference: datetime, month_end: datetime) -> int:
    elapsed = (reference - month_end).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(elapsed))


def _status_label(had_obligation: bool, payment_events: int, delay_days: int) -> str:
    if not had_obligation:
        return "no obligation"
    if payment_events > 0:
        return "paid"
    if delay_days <= SEVERE_DELAY_DAYS:
        return "late"
    return "severely late"


def analyze_payment_behavior(
    buckets: List[MonthlyBucket],
    totals: BucketTotals,
    customer_balance: float,
    now: datetime,
    payment_event_dates: Sequence[datetime] = (),
) -> Tuple[InsightMetrics, List[MonthlyBucket]]:
    """
    Walk the window month by month and extract payment-behavior metrics.

    Requirements:
    - Historical balances are unknown, so the opening outstanding amount is
      back-computed from the current balance and the window's net activity
    - A month carries an obligation when something is outstanding or falls due in it
    - An obligated month without a payment event is missed; its delay runs from
      month end to the next payment event (or now)
    """
    total_due = max(0.0, to_money(totals.total_due))
    total_paid = max(0.0, to_money(totals.total_paid))
    total_relief = max(0.0, to_money(totals.total_relief))

    window_net = total_due - total_paid - total_relief
    current_balance = max(0.0, to_money(customer_balance))
    inferred_start_outstanding = max(0.0, current_balance - window_net)
    event_dates = sorted(payment_event_dates)

    running_outstanding = inferred_start_outstanding
    expected_months = 0
    months_with_payment = 0
    missed_months = 0
    active_streak = 0
    longest_miss_streak = 0
    delay_days_total = 0
    delay_months_count = 0
    timeline = []

    for bucket in buckets:
        had_obligation = running_outstanding > MONEY_EPSILON or bucket.due_amount > MONEY_EPSILON
        delay_days = 0

        if had_obligation:
            expected_months += 1
            if bucket.payment_events > 0:
                months_with_payment += 1
                active_streak = 0
            else:
                missed_months += 1
                active_streak += 1
                longest_miss_streak = max(longest_miss_streak, active_streak)
                reference = _delay_reference(event_dates, bucket.month_end, now)
                delay_days = _delay_days(reference, bucket.month_end)
                delay_days_total += delay_days
                delay_months_count += 1
        else:
            active_streak = 0

        running_outstanding = max(
            0.0,
            running_outstanding + bucket.due_amount - bucket.paid_amount - bucket.relief_amount,
        )

        timeline.append(
            replace(
                bucket,
                had_obligation=had_obligation,
                delay_days=delay_days,
                status_label=_status_label(had_obligation, bucket.payment_events, delay_days),
                outstanding_end=running_outstanding,
            )
        )

    average_delay_days = delay_days_total / delay_months_count if delay_months_count > 0 else 0.0
    regularity_rate = months_with_payment / expected_months if expected_months > 0 else 1.0
    coverage_ratio = min(max(total_paid / total_due, 0.0), 2.0) if total_due > 0 else 1.0

    metrics = InsightMetrics(
        expected_months=expected_months,
        months_with_payment=months_with_payment,
        missed_months=missed_months,
        longest_miss_streak=longest_miss_streak,
        average_delay_days=average_delay_days,
        regularity_rate=regularity_rate,
        coverage_ratio=coverage_ratio,
        total_due=total_due,
        total_paid=total_paid,
        total_relief=total_relief,
        window_net=window_net,
        current_balance=current_balance,
        inferred_start_outstanding=inferred_start_outstanding,
    )
    return metrics, timeline


def calculate_insight_score(metrics: InsightMetrics) -> int:
    """
    Calculate payment-behavior score from 0 (highest risk) to 100 (lowest risk).

    Every term is a penalty off a perfect 100:
    - up to 55: share of obligated months without any payment
    - 8 per month of the longest missed streak, capped at 4 months
    - up to 20: average delay, saturating at 90 days
    - up to 25: shortfall of paid against due (only when coverage < 1)
    """
    score = 100.0
    score -= (1 - metrics.regularity_rate) * 55
    score -= min(4, metrics.longest_miss_streak) * 8
    score -= (min(metrics.average_delay_days, 90) / 90) * 20
    if metrics.coverage_ratio < 1:
        score -= (1 - metrics.coverage_ratio) * 25

    return round_half_up(min(100.0, max(0.0, score)))


def classify_score(score: int) -> Tuple[str, str]:
    """
    Map score to a risk classification and display tone.

    Returns: (classification, tone)
    """
    if score < 30:
        return "high risk", "danger"
    elif score < 50:
        return "late", "bad"
    elif score < 70:
        return "erratic", "warn"
    elif score < 85:
        return "good", "good"
    else:
        return "committed", "good"


def describe_pattern(metrics: InsightMetrics) -> str:
    if metrics.expected_months == 0:
        return "no obligation in period"
    if metrics.months_with_payment == 0:
        return "no payment in window"
    if metrics.missed_months == 0:
        return "pays at least once every month"
    if metrics.longest_miss_streak >= 2:
        return f"pays then lapses for {metrics.longest_miss_streak} months"
    return "irregular payment"


def build_reasons(metrics: InsightMetrics) -> List[str]:
    reasons = [
        f"monthly commitment: {metrics.months_with_payment}/{metrics.expected_months}",
        f"coverage ratio: {round_half_up(metrics.coverage_ratio * 100)} %",
    ]
    if metrics.missed_months > 0:
        reasons.append(f"months without payment: {metrics.missed_months}")
    if metrics.average_delay_days > 0:
        reasons.append(f"average delay: {metrics.average_delay_days:.1f} days")
    return reasons


def score_payment_behavior(
    buckets: List[MonthlyBucket],
    totals: BucketTotals,
    customer_balance: Any,
    now: datetime,
    payment_event_dates: Sequence[datetime] = (),
) -> InsightResult:
    """Score bucketed monthly activity into a complete InsightResult"""
    now = resolve_now(now)
    metrics, timeline = analyze_payment_behavior(buckets, totals, customer_balance, now, payment_event_dates)
    score = calculate_insight_score(metrics)
    classification, tone = classify_score(score)

    return InsightResult(
        score=score,
        classification=classification,
        tone=tone,
        pattern=describe_pattern(metrics),
        reasons=build_reasons(metrics),
        metrics=metrics,
        timeline=timeline,
    )


def build_payment_insight(
    customer: Any,
    sales: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    months_count: int,
    now: Optional[datetime] = None,
) -> InsightResult:
    """
    Main entry point: bucket a customer's activity and score payment behavior.

    Returns complete InsightResult with score, classification, narrative and timeline.
    """
    now = resolve_now(now)
    bucketing = bucket_monthly_activity(customer, sales, payments, returns, months_count, now)

    return score_payment_behavior(
        bucketing.buckets,
        bucketing.totals,
        read_customer(customer).balance,
        now,
        bucketing.payment_event_dates,
    )
