from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import Category, NewTransaction, Transaction, TransactionKind, User
from finance_tracker.storage.tables import CategoryRow, TransactionRow, UserRow

logger = get_logger(__name__)

_CATEGORY_FIELDS = frozenset({"name", "kind", "icon"})
_TRANSACTION_FIELDS = frozenset(
    {"description", "amount", "kind", "occurred_on", "notes", "category_id"}
)


def _user(row: UserRow) -> User:
    return User(id=row.id, username=row.username, created_at=row.created_at)


def _category(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        kind=TransactionKind(row.kind),
        icon=row.icon,
        user_id=row.user_id,
        created_at=row.created_at,
    )


def _transaction(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        description=row.description,
        amount=row.amount,
        kind=TransactionKind(row.kind),
        occurred_on=row.occurred_on,
        notes=row.notes,
        category_id=row.category_id,
        user_id=row.user_id,
        created_at=row.created_at,
    )


def _column_value(value: Any) -> Any:
    if isinstance(value, TransactionKind):
        return value.value
    return value


class SqlLedgerStore:
    """SQLAlchemy implementation of the ledger store.

    Every call runs in its own session and commits on its own, so one failed
    write never undoes another.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("[DB] %s failed: %s", action, exc)
            raise StorageError(f"{action} failed: {exc.__class__.__name__}") from exc
        finally:
            session.close()

    # Users

    def create_user(self, username: str) -> User:
        with self._session("create user") as session:
            row = UserRow(username=username)
            session.add(row)
            session.flush()
            return _user(row)

    def get_user(self, user_id: int) -> User | None:
        with self._session("get user") as session:
            row = session.get(UserRow, user_id)
            return _user(row) if row else None

    def delete_user(self, user_id: int) -> bool:
        with self._session("delete user") as session:
            row = session.get(UserRow, user_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # Categories

    def find_categories_by_user(self, user_id: int) -> list[Category]:
        with self._session("find categories") as session:
            rows = session.scalars(
                select(CategoryRow).where(CategoryRow.user_id == user_id).order_by(CategoryRow.id)
            )
            return [_category(row) for row in rows]

    def get_category(self, category_id: int) -> Category | None:
        with self._session("get category") as session:
            row = session.get(CategoryRow, category_id)
            return _category(row) if row else None

    def create_category(
        self, user_id: int, name: str, kind: TransactionKind, icon: str
    ) -> Category:
        with self._session("create category") as session:
            row = CategoryRow(user_id=user_id, name=name, kind=kind.value, icon=icon)
            session.add(row)
            session.flush()
            return _category(row)

    def update_category(self, category_id: int, changes: Mapping[str, Any]) -> Category | None:
        with self._session("update category") as session:
            row = session.get(CategoryRow, category_id)
            if row is None:
                return None
            for key, value in changes.items():
                if key in _CATEGORY_FIELDS:
                    setattr(row, key, _column_value(value))
            session.flush()
            return _category(row)

    def delete_category(self, category_id: int) -> bool:
        with self._session("delete category") as session:
            row = session.get(CategoryRow, category_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # Transactions

    def create_transaction(self, transaction: NewTransaction) -> Transaction:
        with self._session("create transaction") as session:
            row = TransactionRow(
                description=transaction.description,
                amount=transaction.amount,
                kind=transaction.kind.value,
                occurred_on=transaction.occurred_on,
                notes=transaction.notes,
                category_id=transaction.category_id,
                user_id=transaction.user_id,
            )
            session.add(row)
            session.flush()
            return _transaction(row)

    def find_transactions_by_user(self, user_id: int) -> list[Transaction]:
        with self._session("find transactions") as session:
            rows = session.scalars(
                select(TransactionRow)
                .where(TransactionRow.user_id == user_id)
                .order_by(TransactionRow.occurred_on.desc(), TransactionRow.id.desc())
            )
            return [_transaction(row) for row in rows]

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        with self._session("get transaction") as session:
            row = session.get(TransactionRow, transaction_id)
            return _transaction(row) if row else None

    def update_transaction(
        self, transaction_id: int, changes: Mapping[str, Any]
    ) -> Transaction | None:
        with self._session("update transaction") as session:
            row = session.get(TransactionRow, transaction_id)
            if row is None:
                return None
            for key, value in changes.items():
                if key in _TRANSACTION_FIELDS:
                    setattr(row, key, _column_value(value))
            session.flush()
            return _transaction(row)

    def delete_transaction(self, transaction_id: int) -> bool:
        with self._session("delete transaction") as session:
            row = session.get(TransactionRow, transaction_id)
            if row is None:
                return False
            session.delete(row)
            return True
