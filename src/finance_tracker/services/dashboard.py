from decimal import Decimal

from finance_tracker.logger import get_logger
from finance_tracker.models import DashboardSummary, Transaction, TransactionKind
from finance_tracker.storage.base import LedgerStore

logger = get_logger(__name__)

RECENT_TRANSACTIONS_LIMIT = 3


def _recency_key(transaction: Transaction) -> tuple:
    return (transaction.occurred_on, transaction.created_at, transaction.id)


def summarize_transactions(
    transactions: list[Transaction],
    *,
    recent_limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> DashboardSummary:
    total_income = Decimal("0")
    total_expenses = Decimal("0")
    for transaction in transactions:
        if transaction.kind == TransactionKind.INCOME:
            total_income += transaction.amount
        else:
            total_expenses += transaction.amount

    # Same date: newest created first, then highest id
    recent = sorted(transactions, key=_recency_key, reverse=True)[:recent_limit]

    return DashboardSummary(
        total_balance=total_income - total_expenses,
        total_income=total_income,
        total_expenses=total_expenses,
        recent_transactions=recent,
    )


class DashboardAggregator:
    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def summarize(self, user_id: int) -> DashboardSummary:
        transactions = self.store.find_transactions_by_user(user_id)
        summary = summarize_transactions(transactions)
        logger.debug(
            "[DASHBOARD] User %s: %d transaction(s), balance %s.",
            user_id,
            len(transactions),
            summary.total_balance,
        )
        return summary
