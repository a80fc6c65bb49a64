from collections.abc import Sequence

from rapidfuzz import fuzz, process

from finance_tracker.logger import get_logger
from finance_tracker.models import Category, TransactionDraft

from .base import same_kind
from .exact import ExactNameResolver

logger = get_logger(__name__)


class FuzzyNameResolver(ExactNameResolver):
    def __init__(self, threshold: float = 90.0):
        self.threshold = threshold

    def resolve(self, draft: TransactionDraft, categories: Sequence[Category]) -> Category | None:
        exact = super().resolve(draft, categories)
        if exact is not None or not draft.category_label:
            return exact

        candidates = same_kind(draft, categories)
        if not candidates:
            return None

        # Choices are positional so duplicate names keep the lowest-index category
        result = process.extractOne(
            draft.category_label,
            [category.name for category in candidates],
            scorer=fuzz.token_sort_ratio,
            processor=str.lower,
            score_cutoff=self.threshold,
        )
        if result is None:
            return None

        _, score, index = result
        category = candidates[index]
        logger.debug(
            "[RESOLVE] Label '%s' matched category '%s' (score %.1f).",
            draft.category_label,
            category.name,
            score,
        )
        return category
