"""Unit tests for payment-behavior scoring logic"""

import pytest
from dataclasses import replace
from datetime import date, datetime

from ledger_insight.domain.bucketing import bucket_monthly_activity
from ledger_insight.domain.models import BucketTotals, InsightMetrics, MonthKey, MonthlyBucket
from ledger_insight.domain.scoring import (
    analyze_payment_behavior,
    build_payment_insight,
    build_reasons,
    calculate_insight_score,
    classify_score,
    describe_pattern,
    score_payment_behavior,
)

PERFECT = InsightMetrics(
    expected_months=3,
    months_with_payment=3,
    missed_months=0,
    longest_miss_streak=0,
    average_delay_days=0.0,
    regularity_rate=1.0,
    coverage_ratio=1.0,
    total_due=0.0,
    total_paid=0.0,
    total_relief=0.0,
    window_net=0.0,
    current_balance=0.0,
    inferred_start_outstanding=0.0,
)


def test_missed_months_carried_obligation(now):
    """Test two missed months on a prior balance, then a payment in the third"""
    payments = [{"id": 1, "amount": 200, "paymentDate": "2024-06-10"}]

    insight = build_payment_insight({"balance": 800}, [], payments, [], 3, now)

    metrics = insight.metrics
    assert metrics.inferred_start_outstanding == 1000
    assert metrics.expected_months == 3
    assert metrics.missed_months == 2
    assert metrics.longest_miss_streak == 2
    assert metrics.months_with_payment == 1

    april, may, june = insight.timeline
    # April ends 2024-04-30 23:59:59.999999; next payment 2024-06-10 00:00
    assert april.delay_days == 41
    assert may.delay_days == 10
    assert june.delay_days == 0
    assert [m.status_label for m in insight.timeline] == ["severely late", "late", "paid"]
    assert [m.outstanding_end for m in insight.timeline] == [1000, 1000, 800]
    assert metrics.average_delay_days == pytest.approx(25.5)

    assert insight.score == 42
    assert (insight.classification, insight.tone) == ("late", "bad")
    assert insight.pattern == "pays then lapses for 2 months"
    assert insight.reasons == [
        "monthly commitment: 1/3",
        "coverage ratio: 100 %",
        "months without payment: 2",
        "average delay: 25.5 days",
    ]


def test_delay_runs_to_now_without_later_payment(now):
    """Test unpaid months measure delay against the clock; the open month has none yet"""
    insight = build_payment_insight({"balance": 500}, [], [], [], 2, now)

    may, june = insight.timeline
    assert may.delay_days == 15
    assert june.delay_days == 0
    assert insight.pattern == "no payment in window"
    assert insight.score == 27
    assert (insight.classification, insight.tone) == ("high risk", "danger")


def test_no_activity_is_perfect(now):
    """Test a customer with nothing owed has no obligation and a perfect score"""
    insight = build_payment_insight({"balance": 0}, [], [], [], 6, now)

    assert insight.metrics.expected_months == 0
    assert insight.pattern == "no obligation in period"
    assert insight.score == 100
    assert insight.tone == "good"
    assert insight.classification == "committed"
    assert all(m.status_label == "no obligation" for m in insight.timeline)
    assert insight.reasons == ["monthly commitment: 0/0", "coverage ratio: 100 %"]


def test_out_of_range_balance_treated_as_zero(now):
    """Test a balance too large for a float degrades instead of failing the insight"""
    insight = build_payment_insight({"balance": 10**400}, [], [], [], 3, now)

    assert insight.metrics.current_balance == 0
    assert insight.score == 100


def test_calendar_date_clock_is_start_of_day():
    """Test a plain date works as the injected clock"""
    insight = build_payment_insight({"balance": 500}, [], [], [], 2, date(2024, 6, 15))

    assert [str(m.key) for m in insight.timeline] == ["2024-05", "2024-06"]
    assert insight.timeline[0].delay_days == 15


def test_overpayment_coverage_clamped_without_penalty(now):
    """Test coverage above 1 is kept (up to 2) and never penalized"""
    bucket = MonthlyBucket(
        key=MonthKey(2024, 6),
        label="June 2024",
        month_start=datetime(2024, 6, 1),
        month_end=datetime(2024, 6, 30, 23, 59, 59, 999999),
        due_amount=1000,
        paid_amount=1200,
        payment_events=1,
    )

    metrics, _ = analyze_payment_behavior([bucket], BucketTotals(1000, 1200, 0), 0, now)
    assert metrics.coverage_ratio == pytest.approx(1.2)
    assert calculate_insight_score(metrics) == 100

    metrics, _ = analyze_payment_behavior([bucket], BucketTotals(100, 500, 0), 0, now)
    assert metrics.coverage_ratio == 2.0


def test_negative_balance_treated_as_nothing_owed(now):
    """Test a customer in credit has no carried obligation"""
    metrics, timeline = analyze_payment_behavior(
        bucket_monthly_activity({}, [], [], [], 2, now).buckets,
        BucketTotals(0, 0, 0),
        -300,
        now,
    )

    assert metrics.current_balance == 0
    assert metrics.expected_months == 0
    assert all(not m.had_obligation for m in timeline)


def test_regular_payer(customer, sample_sales, sample_returns, sample_payments, now):
    """Test a customer paying in every obligated month"""
    insight = build_payment_insight(customer, sample_sales, sample_payments, sample_returns, 6, now)

    assert insight.metrics.expected_months == 3
    assert insight.metrics.missed_months == 0
    assert insight.pattern == "pays at least once every month"
    assert insight.metrics.coverage_ratio == pytest.approx(1000 / 1800)
    assert insight.score == 89
    assert insight.classification == "committed"
    assert insight.reasons == ["monthly commitment: 3/3", "coverage ratio: 56 %"]


def test_single_miss_is_irregular(now):
    """Test one isolated missed month reads as irregular"""
    sales = [
        {"id": 1, "total": 600, "saleType": "deferred", "createdAt": "2024-04-05T10:00:00"},
    ]
    payments = [
        {"id": 1, "amount": 200, "createdAt": "2024-04-20T10:00:00"},
        {"id": 2, "amount": 200, "createdAt": "2024-06-02T10:00:00"},
    ]

    insight = build_payment_insight({"balance": 200}, sales, payments, [], 3, now)

    assert insight.metrics.missed_months == 1
    assert insight.metrics.longest_miss_streak == 1
    assert insight.pattern == "irregular payment"
    assert insight.timeline[1].delay_days == 2


def test_score_payment_behavior_does_not_mutate_buckets(now):
    """Test scoring returns new bucket values"""
    result = bucket_monthly_activity({}, [], [], [], 2, now)

    score_payment_behavior(result.buckets, result.totals, 1000, now, result.payment_event_dates)

    assert all(b.status_label == "" for b in result.buckets)


def test_calculate_insight_score_bounds():
    """Test score stays within 0..100 at the extremes"""
    worst = replace(
        PERFECT,
        regularity_rate=0.0,
        longest_miss_streak=12,
        average_delay_days=400.0,
        coverage_ratio=0.0,
    )

    assert calculate_insight_score(PERFECT) == 100
    assert calculate_insight_score(worst) == 0


def test_calculate_insight_score_caps_streak_and_delay():
    """Test streak penalty stops at 4 months and delay penalty at 90 days"""
    capped = replace(PERFECT, longest_miss_streak=9, average_delay_days=200.0)

    assert calculate_insight_score(capped) == 100 - 32 - 20


def test_calculate_insight_score_rounds_half_up():
    """Test .5 scores round up"""
    assert calculate_insight_score(replace(PERFECT, regularity_rate=0.5)) == 73


@pytest.mark.parametrize(
    "score, classification, tone",
    [
        (0, "high risk", "danger"),
        (29, "high risk", "danger"),
        (30, "late", "bad"),
        (49, "late", "bad"),
        (50, "erratic", "warn"),
        (69, "erratic", "warn"),
        (70, "good", "good"),
        (84, "good", "good"),
        (85, "committed", "good"),
        (100, "committed", "good"),
    ],
)
def test_classify_score_boundaries(score, classification, tone):
    """Test classification bands at their edges"""
    assert classify_score(score) == (classification, tone)


def test_describe_pattern_precedence():
    """Test the first matching pattern wins"""
    assert describe_pattern(replace(PERFECT, expected_months=0, months_with_payment=0)) == "no obligation in period"
    assert describe_pattern(replace(PERFECT, months_with_payment=0, missed_months=3)) == "no payment in window"
    assert describe_pattern(PERFECT) == "pays at least once every month"
    lapsing = replace(PERFECT, months_with_payment=1, missed_months=2, longest_miss_streak=2)
    assert describe_pattern(lapsing) == "pays then lapses for 2 months"


def test_build_reasons_optional_lines():
    """Test missed-month and delay reasons only appear when non-zero"""
    assert build_reasons(PERFECT) == ["monthly commitment: 3/3", "coverage ratio: 100 %"]

    late = replace(PERFECT, months_with_payment=2, missed_months=1, average_delay_days=12.0, coverage_ratio=0.8)
    assert build_reasons(late) == [
        "monthly commitment: 2/3",
        "coverage ratio: 80 %",
        "months without payment: 1",
        "average delay: 12.0 days",
    ]
