"""Customer ledger - merge sales, returns and payments into one reconciled account history"""

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from ledger_insight.domain.models import CustomerLedger, LedgerSummary, LedgerTransaction, TransactionKind
from ledger_insight.domain.normalizer import normalize_payment, normalize_return, normalize_sale, read_customer
from ledger_insight.schemas import to_datetime
from ledger_insight.utils.date_utils import end_of_day, start_of_day


def _sort_key(txn: LedgerTransaction) -> tuple:
    # Undated transactions sort as the oldest; id keeps equal instants deterministic
    return (
        txn.sort_date or datetime.min,
        txn.date or datetime.min,
        txn.id,
    )


def sort_transactions(transactions: Iterable[LedgerTransaction], descending: bool = True) -> List[LedgerTransaction]:
    """Display order is newest first; reconstruction order is oldest first"""
    return sorted(transactions, key=_sort_key, reverse=descending)


def build_ledger_transactions(
    sales: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
) -> List[LedgerTransaction]:
    """Build unified ledger transactions, newest first"""
    transactions = [normalize_sale(sale) for sale in sales or []]
    transactions.extend(normalize_return(item) for item in returns or [])
    transactions.extend(normalize_payment(payment) for payment in payments or [])
    return sort_transactions(transactions)


def reconcile_running_balances(
    transactions: List[LedgerTransaction],
    final_balance: float,
) -> List[LedgerTransaction]:
    """
    Reconstruct each transaction's balance-after from the known current balance.

    Only the present balance is stored, so the opening balance is back-computed
    as final_balance minus the net effect of every transaction, then replayed
    oldest first. Results come back in the order they were given.
    """
    if not transactions:
        return []

    # Positions rather than ids, so records sharing an id still get their own balance
    chronological = sorted(range(len(transactions)), key=lambda i: _sort_key(transactions[i]))
    total_effect = sum(txn.effect for txn in transactions)

    running = final_balance - total_effect
    balance_at: Dict[int, float] = {}
    for index in chronological:
        running += transactions[index].effect
        balance_at[index] = running

    return [replace(txn, running_balance=balance_at[i]) for i, txn in enumerate(transactions)]


def filter_by_date_range(
    transactions: List[LedgerTransaction],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[LedgerTransaction]:
    """Keep transactions whose business date falls within whole days [from, to]"""
    if date_from is None and date_to is None:
        return transactions

    lower = start_of_day(date_from) if date_from is not None else None
    upper = end_of_day(date_to) if date_to is not None else None

    def in_range(txn: LedgerTransaction) -> bool:
        if txn.date is None:
            return False
        if lower is not None and txn.date < lower:
            return False
        if upper is not None and txn.date > upper:
            return False
        return True

    return [txn for txn in transactions if in_range(txn)]


def calculate_summary(transactions: List[LedgerTransaction], customer_balance: float) -> LedgerSummary:
    """Aggregate ledger totals; final balance is the customer's stored balance"""
    sales = [t for t in transactions if t.kind == TransactionKind.SALE]
    returns = [t for t in transactions if t.kind == TransactionKind.RETURN]
    payments = [t for t in transactions if t.kind == TransactionKind.PAYMENT]

    return LedgerSummary(
        total_sales=sum(t.total for t in sales),
        total_paid=sum(t.paid for t in transactions if t.kind != TransactionKind.RETURN),
        total_remaining=sum(t.remaining for t in sales),
        total_returns=sum(t.credit for t in returns),
        total_payments=sum(t.credit for t in payments),
        total_debit=sum(t.debit for t in transactions),
        total_credit=sum(t.credit for t in transactions),
        final_balance=customer_balance,
        transaction_count=len(transactions),
    )


def build_customer_ledger(
    customer: Any,
    sales: Optional[Iterable[Any]],
    returns: Optional[Iterable[Any]],
    payments: Optional[Iterable[Any]],
    date_from: Any = None,
    date_to: Any = None,
) -> CustomerLedger:
    """
    Main entry point: build, reconcile and filter a customer's ledger.

    Balances are reconciled over the full history before filtering so a
    filtered view still shows true historical balances. Unparsable bounds are
    treated as absent.
    """
    final_balance = read_customer(customer).balance
    transactions = reconcile_running_balances(
        build_ledger_transactions(sales, returns, payments),
        final_balance,
    )
    visible = filter_by_date_range(transactions, to_datetime(date_from), to_datetime(date_to))

    return CustomerLedger(
        transactions=visible,
        summary=calculate_summary(visible, final_balance),
    )
