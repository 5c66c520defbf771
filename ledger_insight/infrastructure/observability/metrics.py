"""Prometheus metrics for ledger builds, record quality and insight classifications"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_build_counter = Counter(
    "ledger_build_total",
    "Total customer ledgers built",
)

malformed_record_counter = Counter(
    "ledger_malformed_records_total",
    "Source records that could not be read and were zeroed",
    ["kind"],  # sale | return | payment | customer
)

# Insight metrics
insight_classification_counter = Counter(
    "insight_classification_total",
    "Payment-behavior insights by classification",
    ["classification"],
)

insight_score_histogram = Histogram(
    "insight_score",
    "Distribution of payment-behavior scores",
    buckets=[30, 50, 70, 85, 100],
)

# Pipeline latency
pipeline_duration_histogram = Histogram(
    "pipeline_duration_seconds",
    "Engine pipeline latency",
    ["pipeline"],  # ledger | insight
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)


def record_insight(classification: str, score: int) -> None:
    """Record insight metrics for monitoring the risk distribution"""
    insight_classification_counter.labels(classification=classification).inc()
    insight_score_histogram.observe(score)
