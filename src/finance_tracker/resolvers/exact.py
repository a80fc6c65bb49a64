from collections.abc import Sequence

from finance_tracker.models import Category, TransactionDraft

from .base import CategoryResolver, same_kind


class ExactNameResolver(CategoryResolver):
    """First same-kind category whose name equals the label, case-sensitive."""

    def resolve(self, draft: TransactionDraft, categories: Sequence[Category]) -> Category | None:
        if not draft.category_label:
            return None
        for category in same_kind(draft, categories):
            if category.name == draft.category_label:
                return category
        return None
