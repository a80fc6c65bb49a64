import threading
from collections.abc import Sequence
from time import perf_counter

from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import (
    Category,
    ImportFailure,
    ImportOutcome,
    ImportStatus,
    NewTransaction,
    RowRejection,
    TransactionDraft,
)
from finance_tracker.resolvers.base import CategoryResolver
from finance_tracker.storage.base import LedgerStore

logger = get_logger(__name__)


class ImportOrchestrator:
    def __init__(self, store: LedgerStore, resolver: CategoryResolver) -> None:
        self.store = store
        self.resolver = resolver

    def _load_categories(self, user_id: int) -> list[Category]:
        try:
            return self.store.find_categories_by_user(user_id)
        except StorageError as exc:
            logger.warning(
                "[IMPORT] Could not load categories for user %s, importing without categories: %s",
                user_id,
                exc,
            )
            return []

    def _to_new_transaction(
        self,
        user_id: int,
        draft: TransactionDraft,
        categories: Sequence[Category],
    ) -> NewTransaction:
        category = self.resolver.resolve(draft, categories) if categories else None
        if draft.category_label and category is None:
            logger.debug(
                "[IMPORT] No %s category named '%s' for user %s.",
                draft.kind.value,
                draft.category_label,
                user_id,
            )
        return NewTransaction(
            description=draft.description,
            amount=draft.amount,
            kind=draft.kind,
            occurred_on=draft.occurred_on,
            notes=draft.notes,
            category_id=category.id if category else None,
            user_id=user_id,
        )

    def import_batch(
        self,
        user_id: int,
        drafts: Sequence[TransactionDraft],
        *,
        cancel_event: threading.Event | None = None,
        storage_location: str | None = None,
        rejected_rows: Sequence[RowRejection] = (),
    ) -> ImportOutcome:
        """Persist drafts one at a time for ``user_id``.

        A storage failure on one row is recorded and the batch moves on. Rows
        not attempted because of cancellation are not counted.
        """
        outcome = ImportOutcome(
            storage_location=storage_location,
            rejected_rows=list(rejected_rows),
        )
        if not drafts:
            logger.info("[IMPORT] No valid rows to import for user %s.", user_id)
            outcome.status = ImportStatus.NO_VALID_ROWS
            return outcome

        start = perf_counter()
        categories = self._load_categories(user_id)

        for index, draft in enumerate(drafts):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    "[IMPORT] Cancelled after %d of %d row(s) for user %s.",
                    index,
                    len(drafts),
                    user_id,
                )
                outcome.status = ImportStatus.CANCELLED
                break

            outcome.total_rows_parsed += 1
            try:
                created = self.store.create_transaction(
                    self._to_new_transaction(user_id, draft, categories)
                )
            except StorageError as exc:
                logger.warning(
                    "[IMPORT] Row %d ('%s') failed: %s",
                    index,
                    draft.description[:50],
                    exc,
                )
                outcome.failures.append(ImportFailure(index=index, draft=draft, reason=str(exc)))
                continue

            outcome.success_count += 1
            outcome.created.append(created)

        logger.info(
            "[IMPORT] User %s: %d imported, %d failed, %d rejected at parse (%.1f ms).",
            user_id,
            outcome.success_count,
            len(outcome.failures),
            len(outcome.rejected_rows),
            (perf_counter() - start) * 1000,
        )
        return outcome
