from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.domain.validation import AcceptedRow, RejectedRow, validate_row
from finance_tracker.models import RejectionReason, TransactionKind


def _row(**overrides: str | None) -> dict[str, str | None]:
    row: dict[str, str | None] = {
        "description": "Grocery",
        "amount": "120.50",
        "type": "expense",
        "date": "2025-03-15",
        "notes": "Monthly groceries",
        "category": "Food",
    }
    row.update(overrides)
    return row


def test_valid_row_builds_normalized_draft() -> None:
    result = validate_row(_row(type="EXPENSE"))

    assert isinstance(result, AcceptedRow)
    draft = result.draft
    assert draft.description == "Grocery"
    assert draft.amount == Decimal("120.50")
    assert draft.kind == TransactionKind.EXPENSE
    assert draft.occurred_on == date(2025, 3, 15)
    assert draft.notes == "Monthly groceries"
    assert draft.category_label == "Food"


@pytest.mark.parametrize("field", ["description", "amount", "type", "date"])
@pytest.mark.parametrize("value", [None, "", "   "])
def test_missing_required_field_is_rejected(field: str, value: str | None) -> None:
    result = validate_row(_row(**{field: value}))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.MISSING_FIELD
    assert field in result.detail


def test_absent_column_counts_as_missing() -> None:
    row = _row()
    del row["date"]

    result = validate_row(row)

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.MISSING_FIELD


@pytest.mark.parametrize(
    "amount", ["notanumber", "12abc", "NaN", "Infinity", "1,200.00", "1_000", "$12"]
)
def test_non_numeric_amount_is_rejected(amount: str) -> None:
    result = validate_row(_row(amount=amount))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_AMOUNT


@pytest.mark.parametrize("amount", ["0", "-15.25"])
def test_zero_and_negative_amounts_pass_csv_validation(amount: str) -> None:
    result = validate_row(_row(amount=amount))

    assert isinstance(result, AcceptedRow)
    assert result.draft.amount == Decimal(amount)


@pytest.mark.parametrize("amount", ["1e400", "1e20", "1000000000000", "-1000000000000.00"])
def test_amount_beyond_ledger_range_is_rejected(amount: str) -> None:
    result = validate_row(_row(amount=amount))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_AMOUNT


@pytest.mark.parametrize("amount", ["0.005", "12.345", "1e-3"])
def test_amount_with_fractional_cents_is_rejected(amount: str) -> None:
    result = validate_row(_row(amount=amount))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_AMOUNT


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        ("999999999999.99", "999999999999.99"),
        ("1.500", "1.50"),
        ("1e2", "100.00"),
    ],
)
def test_amount_is_kept_in_cents(amount: str, expected: str) -> None:
    result = validate_row(_row(amount=amount))

    assert isinstance(result, AcceptedRow)
    assert result.draft.amount == Decimal(expected)
    assert result.draft.amount.as_tuple().exponent == -2


@pytest.mark.parametrize("kind", ["unknown", "incomes", "transfer"])
def test_unknown_type_is_rejected(kind: str) -> None:
    result = validate_row(_row(type=kind))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_TYPE


@pytest.mark.parametrize("raw_date", ["2025-13-01", "yesterday", "15.03.2025x"])
def test_unparseable_date_is_rejected(raw_date: str) -> None:
    result = validate_row(_row(date=raw_date))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_DATE


@pytest.mark.parametrize(
    "raw_date",
    [
        "2025-03-15",
        "2025-3-15",
        "2025-03-15T10:30:00Z",
        "2025-03-15T10:30:00+02:00",
        "2025/03/15",
        "03/15/2025",
        "15 Mar 2025",
        "Mar 15, 2025",
    ],
)
def test_supported_date_formats(raw_date: str) -> None:
    result = validate_row(_row(date=raw_date))

    assert isinstance(result, AcceptedRow)
    assert result.draft.occurred_on == date(2025, 3, 15)


def test_rules_apply_in_order() -> None:
    result = validate_row(_row(amount="abc", type="bogus", date="never"))

    assert isinstance(result, RejectedRow)
    assert result.reason == RejectionReason.INVALID_AMOUNT


def test_empty_optional_fields_become_none() -> None:
    result = validate_row(_row(notes="", category="  "))

    assert isinstance(result, AcceptedRow)
    assert result.draft.notes is None
    assert result.draft.category_label is None


def test_validation_is_repeatable() -> None:
    row = _row()
    assert validate_row(row) == validate_row(row)

    bad = _row(type="nope")
    assert validate_row(bad) == validate_row(bad)
