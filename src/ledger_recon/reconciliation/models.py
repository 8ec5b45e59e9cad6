"""Models for ledger reconciliation."""

import datetime as dt
import enum
import uuid
from decimal import Decimal
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MatchStatus(str, enum.Enum):
    """Outcome of reconciling a single transaction."""
    MATCHED = "matched"
    MISSING_IN_BANK = "missing_in_bank"
    MISSING_IN_MERCHANT = "missing_in_merchant"
    AMOUNT_MISMATCH = "amount_mismatch"


class MatchReason(str, enum.Enum):
    """Why the reconciler assigned a status."""
    EXACT_ID = "EXACT_ID"
    AMOUNT_TOLERANCE = "AMOUNT_TOLERANCE"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    MISSING_IN_BANK = "MISSING_IN_BANK"
    MISSING_IN_MERCHANT = "MISSING_IN_MERCHANT"


class OverrideStatus(str, enum.Enum):
    """Status a reviewer can attach to a match after the fact."""
    MATCHED = "matched"
    APPROVED_MISMATCH = "approved_mismatch"


# Amounts at or above this magnitude cannot be summed and rounded to cents
# within the default 28-digit decimal context.
MAX_AMOUNT = Decimal("1e15")


def _require_identifier(value: str) -> str:
    if not value.strip():
        raise ValueError("transaction_id must not be blank")
    return value


def _require_bounded_amount(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is not None and abs(value) >= MAX_AMOUNT:
        raise ValueError(f"amount must be smaller than {MAX_AMOUNT:,.0f} in magnitude")
    return value


class MerchantTransaction(BaseModel):
    """A transaction as reported by the merchant's own system."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(..., description="Merchant transaction ID")
    date: dt.date = Field(..., description="Transaction date")
    amount: Decimal = Field(..., description="Signed amount: positive for sale, negative for refund")
    currency: str = Field(..., min_length=1, description="Currency code")
    method: Optional[str] = Field(None, description="Payment method")
    fee: Optional[Decimal] = Field(None, description="Processing fee")

    @field_validator("transaction_id")
    @classmethod
    def check_transaction_id(cls, value: str) -> str:
        return _require_identifier(value)

    @field_validator("amount", "fee")
    @classmethod
    def check_amounts(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return _require_bounded_amount(value)


class BankTransaction(BaseModel):
    """The same transaction as it appears on the bank or processor statement."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(..., description="Bank-side transaction ID")
    date: dt.date = Field(..., description="Booking date")
    amount: Decimal = Field(..., description="Signed amount")
    currency: Optional[str] = Field(None, description="Currency code")
    description: Optional[str] = Field(None, description="Statement narrative")

    @field_validator("transaction_id")
    @classmethod
    def check_transaction_id(cls, value: str) -> str:
        return _require_identifier(value)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, value: Decimal) -> Decimal:
        return _require_bounded_amount(value)


class MatchRecord(BaseModel):
    """One line of a reconciliation: a merchant record, a bank record, or both."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(..., description="Transaction ID as shown to users")
    merchant: Optional[MerchantTransaction] = None
    bank: Optional[BankTransaction] = None
    status: MatchStatus
    diff: Decimal = Field(default=Decimal("0"), description="bank.amount - merchant.amount")
    match_reason: MatchReason

    # Set only by the review workflow
    override_status: Optional[OverrideStatus] = None
    override_reason: Optional[str] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "MatchRecord":
        if self.merchant is None and self.bank is None:
            raise ValueError("a match needs a merchant record, a bank record, or both")
        if (self.status == MatchStatus.MISSING_IN_BANK) != (self.bank is None):
            raise ValueError("status missing_in_bank requires bank to be empty, and only then")
        if (self.status == MatchStatus.MISSING_IN_MERCHANT) != (self.merchant is None):
            raise ValueError("status missing_in_merchant requires merchant to be empty, and only then")
        if self.diff != 0 and self.status != MatchStatus.AMOUNT_MISMATCH:
            raise ValueError("diff must be zero unless status is amount_mismatch")
        return self

    @property
    def effective_status(self) -> str:
        """Reviewer's status if one was attached, otherwise the computed one."""
        if self.override_status is not None:
            return self.override_status.value
        return self.status.value

    @property
    def is_reviewed(self) -> bool:
        return self.override_status is not None


class ReconciliationTotals(BaseModel):
    """Aggregate counts and sums over a reconciliation."""
    model_config = ConfigDict(frozen=True)

    merchant_count: int = 0
    bank_count: int = 0
    matched: int = 0
    missing_in_bank: int = 0
    missing_in_merchant: int = 0
    amount_mismatch: int = 0
    sum_merchant: Decimal = Decimal("0.00")
    sum_bank: Decimal = Decimal("0.00")
    sum_diff: Decimal = Decimal("0.00")

    @property
    def match_rate(self) -> Optional[float]:
        """Share of merchant records that matched, or None without merchant records."""
        if self.merchant_count == 0:
            return None
        return self.matched / self.merchant_count


class ReconciliationResult(BaseModel):
    """Every match record, merchant-originated first, plus totals."""
    model_config = ConfigDict(frozen=True)

    matches: List[MatchRecord] = Field(default_factory=list)
    totals: ReconciliationTotals = Field(default_factory=ReconciliationTotals)

    def by_status(self, status: MatchStatus) -> List[MatchRecord]:
        return [m for m in self.matches if m.status == status]


class ReconciliationConfig(BaseModel):
    """Options recognized by the reconciler."""
    model_config = ConfigDict(frozen=True)

    amount_tolerance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Largest absolute rounded difference still treated as a match",
    )


class ValidationIssue(BaseModel):
    """A raw row the validator rejected."""
    row: int = Field(..., description="1-based position among the data rows")
    reason: str
    raw: Dict[str, Any] = Field(default_factory=dict)


class ReconciliationReport(BaseModel):
    """A reconciliation run: the result plus the rows that never reached it."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Report ID")
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    amount_tolerance: Decimal = Decimal("0")
    result: ReconciliationResult = Field(default_factory=ReconciliationResult)
    merchant_issues: List[ValidationIssue] = Field(default_factory=list)
    bank_issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        """True when anything needs a human: unmatched rows or rejected input."""
        totals = self.result.totals
        return bool(
            totals.missing_in_bank
            or totals.missing_in_merchant
            or totals.amount_mismatch
            or self.merchant_issues
            or self.bank_issues
        )

    def to_summary_dict(self) -> Dict[str, Any]:
        """Return a summary of the report without detailed records."""
        totals = self.result.totals
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "amount_tolerance": str(self.amount_tolerance),
            "totals": totals.model_dump(mode="json"),
            "match_rate": (
                f"{totals.match_rate * 100:.2f}%"
                if totals.match_rate is not None else "N/A"
            ),
            "rejected_rows": {
                "merchant": len(self.merchant_issues),
                "bank": len(self.bank_issues),
            },
        }

    def to_full_dict(self) -> Dict[str, Any]:
        """Return the complete report including all records."""
        result = self.to_summary_dict()
        result["matches"] = [m.model_dump(mode="json") for m in self.result.matches]
        result["merchant_issues"] = [i.model_dump(mode="json") for i in self.merchant_issues]
        result["bank_issues"] = [i.model_dump(mode="json") for i in self.bank_issues]
        return result
