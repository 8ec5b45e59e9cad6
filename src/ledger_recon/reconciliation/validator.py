"""Turn raw tabular rows into typed transactions.

Rows come from ``csv.DictReader`` or decoded JSON. Each row is either
converted into a ``MerchantTransaction``/``BankTransaction`` or reported as a
``ValidationIssue``. A bad row never stops the batch.
"""

import logging
import re
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .models import BankTransaction, MerchantTransaction, ValidationIssue

logger = logging.getLogger(__name__)

T = TypeVar("T", MerchantTransaction, BankTransaction)

# Normalized header -> model field
COLUMN_ALIASES: Dict[str, str] = {
    "transactionid": "transaction_id",
    "txnid": "transaction_id",
    "id": "transaction_id",
    "reference": "transaction_id",
    "date": "date",
    "transactiondate": "date",
    "bookingdate": "date",
    "amount": "amount",
    "currency": "currency",
    "method": "method",
    "paymentmethod": "method",
    "fee": "fee",
    "description": "description",
    "narrative": "description",
}

AMOUNT_FIELDS = frozenset(["amount", "fee"])


class ValidationResult(BaseModel, Generic[T]):
    """Valid records in input order, plus one issue per rejected row."""
    valid: List[T] = Field(default_factory=list)
    invalid: List[ValidationIssue] = Field(default_factory=list)


def normalize_header(header: str) -> str:
    """Lowercase and drop spaces, underscores and dashes."""
    return re.sub(r"[\s_\-]", "", header).lower()


def _clean_amount(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    cleaned = value.strip().replace(",", "")
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    return cleaned


def _clean_row(row: Mapping[Any, Any]) -> Dict[str, Any]:
    """Map known headers onto model fields and tidy their values.

    Unknown columns are dropped. Blank cells become None so optional fields
    stay unset and required ones fail with a "missing" error.
    """
    cleaned: Dict[str, Any] = {}
    for header, value in row.items():
        if not isinstance(header, str):
            continue
        field_name = COLUMN_ALIASES.get(normalize_header(header))
        if field_name is None or field_name in cleaned:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                continue
        if field_name in AMOUNT_FIELDS:
            value = _clean_amount(value)
        cleaned[field_name] = value
    return cleaned


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error["loc"]) or "row"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _raw_payload(row: Mapping[Any, Any]) -> Dict[str, Any]:
    # DictReader files surplus cells under a None key
    return {str(key) if key is not None else "_extra": value for key, value in row.items()}


def validate_rows(
    rows: Iterable[Mapping[Any, Any]],
    model: Type[T],
    source: Optional[str] = None,
) -> ValidationResult[T]:
    """Validate raw rows against a transaction model.

    Args:
        rows: Raw rows, one mapping per data row.
        model: ``MerchantTransaction`` or ``BankTransaction``.
        source: Label used in log messages.

    Returns:
        ValidationResult with typed records and rejected rows. Row numbers
        are 1-based positions among the data rows.
    """
    valid: List[T] = []
    invalid: List[ValidationIssue] = []
    label = source or model.__name__

    for index, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            invalid.append(ValidationIssue(
                row=index,
                reason=f"row must be a mapping, got {type(row).__name__}",
                raw={"value": row},
            ))
            continue
        try:
            valid.append(model.model_validate(_clean_row(row)))
        except ValidationError as e:
            invalid.append(ValidationIssue(
                row=index,
                reason=_describe(e),
                raw=_raw_payload(row),
            ))

    if invalid:
        logger.warning(f"{label}: rejected {len(invalid)} of {len(valid) + len(invalid)} rows")
    else:
        logger.info(f"{label}: accepted {len(valid)} rows")

    return ValidationResult[model](valid=valid, invalid=invalid)


def validate_merchant_rows(rows: Iterable[Mapping[Any, Any]]) -> ValidationResult[MerchantTransaction]:
    return validate_rows(rows, MerchantTransaction, source="merchant")


def validate_bank_rows(rows: Iterable[Mapping[Any, Any]]) -> ValidationResult[BankTransaction]:
    return validate_rows(rows, BankTransaction, source="bank")
