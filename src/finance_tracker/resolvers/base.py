from abc import ABC, abstractmethod
from collections.abc import Sequence

from finance_tracker.models import Category, TransactionDraft


class CategoryResolver(ABC):
    @abstractmethod
    def resolve(self, draft: TransactionDraft, categories: Sequence[Category]) -> Category | None:
        """Pick the user's category for the draft's label, or None."""
        pass


def same_kind(draft: TransactionDraft, categories: Sequence[Category]) -> list[Category]:
    return [category for category in categories if category.kind == draft.kind]
