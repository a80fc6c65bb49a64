from collections.abc import Generator, Iterable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from finance_tracker.errors import StorageError
from finance_tracker.models import (
    Category,
    NewTransaction,
    Transaction,
    TransactionDraft,
    TransactionKind,
)
from finance_tracker.storage.database import build_engine, build_session_factory, create_schema
from finance_tracker.storage.sql import SqlLedgerStore

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeLedgerStore:
    """In-memory ledger store; ``fail_on`` lists create_transaction call numbers (0-based) that fail."""

    def __init__(
        self,
        categories: Iterable[Category] = (),
        fail_on: Iterable[int] = (),
    ) -> None:
        self.categories = list(categories)
        self.transactions: list[Transaction] = []
        self.fail_on = set(fail_on)
        self.create_calls = 0
        self.category_lookups = 0
        self.fail_category_lookup = False

    def find_categories_by_user(self, user_id: int) -> list[Category]:
        self.category_lookups += 1
        if self.fail_category_lookup:
            raise StorageError("find categories failed: OperationalError")
        return [c for c in self.categories if c.user_id == user_id]

    def create_transaction(self, transaction: NewTransaction) -> Transaction:
        call = self.create_calls
        self.create_calls += 1
        if call in self.fail_on:
            raise StorageError("create transaction failed: IntegrityError")
        created = Transaction(
            id=len(self.transactions) + 1,
            created_at=BASE_TIME + timedelta(seconds=len(self.transactions)),
            **transaction.model_dump(),
        )
        self.transactions.append(created)
        return created

    def find_transactions_by_user(self, user_id: int) -> list[Transaction]:
        return [t for t in self.transactions if t.user_id == user_id]


def make_draft(
    description: str = "Coffee",
    amount: str = "4.50",
    kind: TransactionKind = TransactionKind.EXPENSE,
    occurred_on: date = date(2025, 3, 15),
    notes: str | None = None,
    category_label: str | None = None,
) -> TransactionDraft:
    return TransactionDraft(
        description=description,
        amount=Decimal(amount),
        kind=kind,
        occurred_on=occurred_on,
        notes=notes,
        category_label=category_label,
    )


def make_category(
    category_id: int,
    name: str,
    kind: TransactionKind = TransactionKind.EXPENSE,
    user_id: int = 1,
) -> Category:
    return Category(
        id=category_id,
        name=name,
        kind=kind,
        icon="label",
        user_id=user_id,
        created_at=BASE_TIME,
    )


@pytest.fixture
def fake_store() -> FakeLedgerStore:
    return FakeLedgerStore()


@pytest.fixture
def sql_store() -> Generator[SqlLedgerStore, None, None]:
    engine = build_engine("sqlite://")
    create_schema(engine)
    yield SqlLedgerStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
