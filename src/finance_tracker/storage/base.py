from collections.abc import Mapping
from typing import Any, Protocol

from finance_tracker.models import Category, NewTransaction, Transaction, TransactionKind, User


class LedgerStore(Protocol):
    """Persistence calls used by the importer, the dashboard and the API."""

    def find_categories_by_user(self, user_id: int) -> list[Category]: ...

    def create_transaction(self, transaction: NewTransaction) -> Transaction: ...

    def find_transactions_by_user(self, user_id: int) -> list[Transaction]: ...


class CrudStore(LedgerStore, Protocol):
    def create_user(self, username: str) -> User: ...

    def get_user(self, user_id: int) -> User | None: ...

    def delete_user(self, user_id: int) -> bool: ...

    def get_category(self, category_id: int) -> Category | None: ...

    def create_category(
        self, user_id: int, name: str, kind: TransactionKind, icon: str
    ) -> Category: ...

    def update_category(self, category_id: int, changes: Mapping[str, Any]) -> Category | None: ...

    def delete_category(self, category_id: int) -> bool: ...

    def get_transaction(self, transaction_id: int) -> Transaction | None: ...

    def update_transaction(
        self, transaction_id: int, changes: Mapping[str, Any]
    ) -> Transaction | None: ...

    def delete_transaction(self, transaction_id: int) -> bool: ...
