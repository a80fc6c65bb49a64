from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from finance_tracker.models import RejectionReason, TransactionDraft, TransactionKind

REQUIRED_FIELDS = ("description", "amount", "type", "date")
OPTIONAL_FIELDS = ("notes", "category")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %b %Y",
    "%b %d, %Y",
    "%b %d %Y",
)


@dataclass(frozen=True)
class AcceptedRow:
    draft: TransactionDraft


@dataclass(frozen=True)
class RejectedRow:
    reason: RejectionReason
    detail: str


RowResult = AcceptedRow | RejectedRow

# Amounts are stored as NUMERIC(14, 2)
AMOUNT_LIMIT = Decimal("1e12")
_CENT = Decimal("0.01")


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_amount(value: str) -> Decimal | None:
    """Parse a plain decimal amount with at most two places, below ``AMOUNT_LIMIT``."""
    # Decimal() would read "1_000" as 1000
    if "_" in value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    if not amount.is_finite() or abs(amount) >= AMOUNT_LIMIT:
        return None
    cents = amount.quantize(_CENT)
    if cents != amount:
        return None
    return cents


def parse_kind(value: str) -> TransactionKind | None:
    try:
        return TransactionKind(value.lower())
    except ValueError:
        return None


def parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def validate_row(row: Mapping[str, object]) -> RowResult:
    """Check one CSV record and turn it into a draft.

    Rules run in a fixed order (presence, amount, type, date) and the first
    failure wins. Nothing is raised for bad data.
    """
    fields = {name: _clean(row.get(name)) for name in REQUIRED_FIELDS + OPTIONAL_FIELDS}

    for name in REQUIRED_FIELDS:
        if fields[name] is None:
            return RejectedRow(RejectionReason.MISSING_FIELD, f"Missing required field '{name}'.")

    raw_amount = fields["amount"] or ""
    amount = parse_amount(raw_amount)
    if amount is None:
        return RejectedRow(RejectionReason.INVALID_AMOUNT, f"Amount '{raw_amount}' is not a valid amount.")

    raw_type = fields["type"] or ""
    kind = parse_kind(raw_type)
    if kind is None:
        return RejectedRow(
            RejectionReason.INVALID_TYPE,
            f"Type '{raw_type}' must be 'income' or 'expense'.",
        )

    raw_date = fields["date"] or ""
    occurred_on = parse_date(raw_date)
    if occurred_on is None:
        return RejectedRow(RejectionReason.INVALID_DATE, f"Date '{raw_date}' is not a valid date.")

    return AcceptedRow(
        TransactionDraft(
            description=fields["description"] or "",
            amount=amount,
            kind=kind,
            occurred_on=occurred_on,
            notes=fields["notes"],
            category_label=fields["category"],
        )
    )
