from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from finance_tracker.models import ImportOutcome, ImportStatus, RowRejection, TransactionKind


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=150)


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    kind: TransactionKind
    icon: str = Field(min_length=1, max_length=64)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    kind: TransactionKind | None = None
    icon: str | None = Field(default=None, min_length=1, max_length=64)


class TransactionCreate(BaseModel):
    # Stricter than CSV import: form entries must be positive
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    kind: TransactionKind
    occurred_on: date
    notes: str | None = None
    category_id: int | None = None


class TransactionUpdate(BaseModel):
    description: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    kind: TransactionKind | None = None
    occurred_on: date | None = None
    notes: str | None = None
    category_id: int | None = None


class ImportErrorDetail(BaseModel):
    index: int
    description: str
    reason: str


class ImportResponse(BaseModel):
    message: str
    status: ImportStatus
    total_rows: int
    success_count: int
    error_count: int
    errors: list[ImportErrorDetail]
    rejected_rows: list[RowRejection]
    file_location: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ImportOutcome) -> "ImportResponse":
        if outcome.status == ImportStatus.CANCELLED:
            message = (
                f"Import cancelled after {outcome.total_rows_parsed} row(s): "
                f"{outcome.success_count} imported."
            )
        else:
            message = (
                f"Imported {outcome.success_count} of {outcome.total_rows_parsed} transaction(s)."
            )
        return cls(
            message=message,
            status=outcome.status,
            total_rows=outcome.total_rows_parsed,
            success_count=outcome.success_count,
            error_count=len(outcome.failures),
            errors=[
                ImportErrorDetail(
                    index=failure.index,
                    description=failure.draft.description,
                    reason=failure.reason,
                )
                for failure in outcome.failures
            ],
            rejected_rows=outcome.rejected_rows,
            file_location=outcome.storage_location,
        )
