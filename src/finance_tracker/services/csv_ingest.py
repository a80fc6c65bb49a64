import csv
import io
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from finance_tracker.domain.validation import REQUIRED_FIELDS, AcceptedRow, validate_row
from finance_tracker.errors import MalformedInputError
from finance_tracker.logger import get_logger
from finance_tracker.models import RowRejection, TransactionDraft

logger = get_logger(__name__)

CSV_COLUMNS = ("description", "amount", "type", "date", "notes", "category")

CsvSource = str | os.PathLike[str] | bytes | bytearray | memoryview


@dataclass
class IngestReport:
    drafts: list[TransactionDraft] = field(default_factory=list)
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def rows_read(self) -> int:
        return len(self.drafts) + len(self.rejections)


def _normalize_header(header: list[str]) -> list[str]:
    return [name.strip().lower() for name in header]


def _iter_records(lines: Iterable[str]) -> Iterator[tuple[int, dict[str, str]]]:
    reader = csv.reader(lines, strict=True)
    header: list[str] | None = None
    for raw in reader:
        if not any(cell.strip() for cell in raw):
            continue
        if header is None:
            header = _normalize_header(raw)
            missing = [name for name in REQUIRED_FIELDS if name not in header]
            if missing:
                raise MalformedInputError(
                    f"CSV header is missing required column(s): {', '.join(missing)}."
                )
            continue
        # Short rows leave trailing columns absent; extra cells are ignored.
        yield reader.line_num, dict(zip(header, raw))
    if header is None:
        raise MalformedInputError("CSV payload has no header row.")


def _collect(lines: Iterable[str]) -> IngestReport:
    report = IngestReport()
    try:
        for line_no, record in _iter_records(lines):
            result = validate_row(record)
            if isinstance(result, AcceptedRow):
                report.drafts.append(result.draft)
                continue
            logger.warning(
                "[CSV] Skipping line %d (%s): %s",
                line_no,
                result.reason.value,
                result.detail,
            )
            report.rejections.append(
                RowRejection(line=line_no, reason=result.reason, detail=result.detail)
            )
    except csv.Error as exc:
        raise MalformedInputError(f"CSV framing error: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise MalformedInputError("CSV payload is not valid UTF-8 text.") from exc

    logger.info(
        "[CSV] Read %d row(s): %d valid, %d rejected.",
        report.rows_read,
        len(report.drafts),
        len(report.rejections),
    )
    return report


def read_file_report(path: str | os.PathLike[str]) -> IngestReport:
    with open(path, encoding="utf-8-sig", newline="") as handle:
        return _collect(handle)


def read_bytes_report(payload: bytes | bytearray | memoryview) -> IngestReport:
    try:
        text = bytes(payload).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInputError("CSV payload is not valid UTF-8 text.") from exc
    return _collect(io.StringIO(text, newline=""))


def ingest_report(source: CsvSource) -> IngestReport:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return read_bytes_report(source)
    return read_file_report(source)


def ingest_file(path: str | os.PathLike[str]) -> list[TransactionDraft]:
    return read_file_report(path).drafts


def ingest_bytes(payload: bytes | bytearray | memoryview) -> list[TransactionDraft]:
    return read_bytes_report(payload).drafts


def ingest(source: CsvSource) -> list[TransactionDraft]:
    """Return the valid drafts of a CSV file path or in-memory payload, in row order.

    Invalid rows are logged and left out. Raises :class:`MalformedInputError`
    when the payload cannot be read as CSV with the expected header.
    """
    return ingest_report(source).drafts
