import asyncio
import threading

from finance_tracker.core.configuration import AppConfig
from finance_tracker.errors import ArchiveError, MalformedInputError, UploadTooLargeError
from finance_tracker.integration.archive import UploadArchive
from finance_tracker.logger import get_logger
from finance_tracker.models import ImportOutcome
from finance_tracker.services.csv_ingest import read_bytes_report
from finance_tracker.services.importer import ImportOrchestrator

logger = get_logger(__name__)


class UploadPipeline:
    def __init__(
        self,
        config: AppConfig,
        orchestrator: ImportOrchestrator,
        archive: UploadArchive,
    ) -> None:
        self.config = config
        self.orchestrator = orchestrator
        self.archive = archive

    def check_size(self, payload: bytes) -> None:
        if not payload:
            raise MalformedInputError("The uploaded file is empty.")
        if len(payload) > self.config.max_upload_bytes:
            raise UploadTooLargeError(len(payload), self.config.max_upload_bytes)

    async def _archive(self, filename: str, payload: bytes) -> str | None:
        try:
            return await self.archive.store(filename, payload)
        except ArchiveError as exc:
            logger.error("[ARCHIVE] Could not archive '%s', continuing without it: %s", filename, exc)
            return None

    async def import_upload(
        self,
        user_id: int,
        filename: str,
        payload: bytes,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ImportOutcome:
        self.check_size(payload)
        logger.info(
            "[IMPORT] User %s uploaded '%s' (%d bytes).",
            user_id,
            filename,
            len(payload),
        )

        storage_location = await self._archive(filename, payload)
        report = await asyncio.to_thread(read_bytes_report, payload)
        return await asyncio.to_thread(
            self.orchestrator.import_batch,
            user_id,
            report.drafts,
            cancel_event=cancel_event,
            storage_location=storage_location,
            rejected_rows=report.rejections,
        )
