from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class RejectionReason(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_TYPE = "invalid_type"
    INVALID_DATE = "invalid_date"


class ImportStatus(str, Enum):
    COMPLETED = "completed"
    NO_VALID_ROWS = "no_valid_rows"
    CANCELLED = "cancelled"


class TransactionDraft(BaseModel):
    """A validated CSV row that has not been attached to a user yet."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(min_length=1)
    amount: Decimal
    kind: TransactionKind
    occurred_on: date
    notes: str | None = None
    category_label: str | None = None


class NewTransaction(BaseModel):
    description: str
    amount: Decimal
    kind: TransactionKind
    occurred_on: date
    notes: str | None = None
    category_id: int | None = None
    user_id: int


class Transaction(NewTransaction):
    id: int
    created_at: datetime


class User(BaseModel):
    id: int
    username: str
    created_at: datetime


class Category(BaseModel):
    id: int
    name: str
    kind: TransactionKind
    icon: str
    user_id: int
    created_at: datetime


class RowRejection(BaseModel):
    line: int
    reason: RejectionReason
    detail: str


class ImportFailure(BaseModel):
    index: int
    draft: TransactionDraft
    reason: str


class ImportOutcome(BaseModel):
    status: ImportStatus = ImportStatus.COMPLETED
    total_rows_parsed: int = 0
    success_count: int = 0
    failures: list[ImportFailure] = Field(default_factory=list)
    storage_location: str | None = None
    rejected_rows: list[RowRejection] = Field(default_factory=list)
    created: list[Transaction] = Field(default_factory=list)

    @property
    def no_valid_rows(self) -> bool:
        return self.status == ImportStatus.NO_VALID_ROWS


class DashboardSummary(BaseModel):
    total_balance: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    recent_transactions: list[Transaction] = Field(default_factory=list)
