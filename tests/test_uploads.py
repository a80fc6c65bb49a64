import threading
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from finance_tracker.core.configuration import AppConfig
from finance_tracker.errors import ArchiveError, MalformedInputError, UploadTooLargeError
from finance_tracker.integration.archive import LocalArchive, NullArchive
from finance_tracker.models import ImportStatus, RejectionReason
from finance_tracker.resolvers.exact import ExactNameResolver
from finance_tracker.services.importer import ImportOrchestrator
from finance_tracker.services.uploads import UploadPipeline

from conftest import FakeLedgerStore

FIXTURE = Path(__file__).parent / "fixtures" / "transactions.csv"


def _pipeline(store: FakeLedgerStore, archive=None, **config) -> UploadPipeline:
    return UploadPipeline(
        config=AppConfig(**config),
        orchestrator=ImportOrchestrator(store=store, resolver=ExactNameResolver()),
        archive=archive or NullArchive(),
    )


@pytest.mark.anyio
async def test_upload_imports_valid_rows_and_reports_rejections(tmp_path: Path) -> None:
    store = FakeLedgerStore()
    pipeline = _pipeline(store, archive=LocalArchive(str(tmp_path)))

    outcome = await pipeline.import_upload(1, "march.csv", FIXTURE.read_bytes())

    assert outcome.status == ImportStatus.COMPLETED
    assert outcome.total_rows_parsed == 2
    assert outcome.success_count == 2
    assert [r.reason for r in outcome.rejected_rows] == [
        RejectionReason.INVALID_AMOUNT,
        RejectionReason.INVALID_TYPE,
    ]
    assert outcome.storage_location is not None
    assert Path(outcome.storage_location).read_bytes() == FIXTURE.read_bytes()


@pytest.mark.anyio
async def test_oversize_upload_is_refused_before_parsing() -> None:
    store = FakeLedgerStore()
    pipeline = _pipeline(store, max_upload_bytes=10)

    with pytest.raises(UploadTooLargeError):
        await pipeline.import_upload(1, "big.csv", FIXTURE.read_bytes())
    assert store.create_calls == 0


@pytest.mark.anyio
async def test_empty_upload_is_malformed() -> None:
    with pytest.raises(MalformedInputError):
        await _pipeline(FakeLedgerStore()).import_upload(1, "empty.csv", b"")


@pytest.mark.anyio
async def test_archive_failure_does_not_block_import() -> None:
    archive = AsyncMock()
    archive.store.side_effect = ArchiveError("container unreachable")
    store = FakeLedgerStore()

    outcome = await _pipeline(store, archive=archive).import_upload(1, "march.csv", FIXTURE.read_bytes())

    assert outcome.success_count == 2
    assert outcome.storage_location is None


@pytest.mark.anyio
async def test_only_invalid_rows_reports_no_valid_rows() -> None:
    payload = b"description,amount,type,date,notes,category\nBad,notanumber,expense,2025-03-15,,\n"
    store = FakeLedgerStore()

    outcome = await _pipeline(store).import_upload(1, "bad.csv", payload)

    assert outcome.no_valid_rows
    assert store.create_calls == 0
    assert len(outcome.rejected_rows) == 1


@pytest.mark.anyio
async def test_pre_set_cancel_event_attempts_nothing() -> None:
    cancel = threading.Event()
    cancel.set()
    store = FakeLedgerStore()

    outcome = await _pipeline(store).import_upload(
        1, "march.csv", FIXTURE.read_bytes(), cancel_event=cancel
    )

    assert outcome.status == ImportStatus.CANCELLED
    assert outcome.total_rows_parsed == 0
    assert store.create_calls == 0


def test_check_size_accepts_payload_at_limit() -> None:
    pipeline = _pipeline(FakeLedgerStore(), max_upload_bytes=4)

    pipeline.check_size(b"abcd")
    with pytest.raises(UploadTooLargeError) as exc_info:
        pipeline.check_size(b"abcde")
    assert exc_info.value.limit == 4
