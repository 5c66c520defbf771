"""Domain models - pure Python dataclasses representing ledger and insight entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, NamedTuple, Optional

# Money comparisons below this are treated as zero
MONEY_EPSILON = 0.009


class TransactionKind(str, Enum):
    """Source stream a ledger transaction came from"""

    SALE = "sale"
    RETURN = "return"
    PAYMENT = "payment"


@dataclass(frozen=True)
class LedgerTransaction:
    """One normalized accounting event derived from a sale, return, or payment"""

    id: str
    date: Optional[datetime]
    sort_date: Optional[datetime]
    kind: TransactionKind
    debit: float
    credit: float
    total: float
    paid: float
    remaining: float
    payment_method_name: str
    notes: str
    description: str
    source_record: Any = field(default=None, compare=False, repr=False)
    running_balance: Optional[float] = None  # set by reconciliation only

    @property
    def effect(self) -> float:
        """Signed change to the customer's receivable balance"""
        return self.debit - self.credit


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregates shown under the ledger table"""

    total_sales: float
    total_paid: float
    total_remaining: float
    total_returns: float
    total_payments: float
    total_debit: float
    total_credit: float
    final_balance: float
    transaction_count: int


@dataclass(frozen=True)
class CustomerLedger:
    """Output of the ledger pipeline"""

    transactions: List[LedgerTransaction]
    summary: LedgerSummary


class MonthKey(NamedTuple):
    """Calendar month identity; formatted as YYYY-MM only for display"""

    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def of(cls, value: datetime) -> "MonthKey":
        return cls(value.year, value.month)


@dataclass(frozen=True)
class MonthlyBucket:
    """Due/paid/relief totals and delinquency state for one calendar month"""

    key: MonthKey
    label: str
    month_start: datetime
    month_end: datetime
    due_amount: float = 0.0
    paid_amount: float = 0.0
    relief_amount: float = 0.0
    payment_events: int = 0
    had_obligation: bool = False
    delay_days: int = 0
    status_label: str = ""
    outstanding_end: float = 0.0


@dataclass(frozen=True)
class BucketTotals:
    """In-window sums across all monthly buckets"""

    total_due: float
    total_paid: float
    total_relief: float


@dataclass(frozen=True)
class BucketingResult:
    """Output of the monthly bucketer"""

    buckets: List[MonthlyBucket]
    payment_event_dates: List[datetime]
    totals: BucketTotals


@dataclass(frozen=True)
class InsightMetrics:
    """Calculated payment-behavior metrics used for scoring"""

    expected_months: int
    months_with_payment: int
    missed_months: int
    longest_miss_streak: int
    average_delay_days: float
    regularity_rate: float
    coverage_ratio: float
    total_due: float
    total_paid: float
    total_relief: float
    window_net: float
    current_balance: float
    inferred_start_outstanding: float


@dataclass(frozen=True)
class InsightResult:
    """Output of payment-behavior assessment"""

    score: int
    classification: str
    tone: str  # good | warn | bad | danger
    pattern: str
    reasons: List[str]
    metrics: InsightMetrics
    timeline: List[MonthlyBucket]
