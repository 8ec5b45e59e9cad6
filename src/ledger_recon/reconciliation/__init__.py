"""Reconciliation of a merchant ledger against a bank statement.

This module provides tools for matching merchant-side transactions with
their bank-side counterparts.

Features:
- Validate raw CSV/JSON rows into typed transactions
- Match transactions by normalized ID with an optional amount tolerance
- Aggregate counts and monetary totals
- Attach manual review decisions to individual matches
- Render reports as JSON, CSV or text
"""

from .models import (
    MatchStatus,
    MatchReason,
    OverrideStatus,
    MerchantTransaction,
    BankTransaction,
    MatchRecord,
    ReconciliationTotals,
    ReconciliationResult,
    ReconciliationConfig,
    ValidationIssue,
    ReconciliationReport,
)
from .reconciler import Reconciler, reconcile, normalize_id, compute_totals
from .validator import (
    ValidationResult,
    validate_rows,
    validate_merchant_rows,
    validate_bank_rows,
)
from .review import (
    ReviewError,
    apply_override,
    apply_overrides,
    clear_override,
    summarize_reviews,
)
from .service import ReconciliationService
from .report import ReportGenerator

__all__ = [
    # Models
    "MatchStatus",
    "MatchReason",
    "OverrideStatus",
    "MerchantTransaction",
    "BankTransaction",
    "MatchRecord",
    "ReconciliationTotals",
    "ReconciliationResult",
    "ReconciliationConfig",
    "ValidationIssue",
    "ReconciliationReport",
    # Core Components
    "Reconciler",
    "reconcile",
    "normalize_id",
    "compute_totals",
    # Validation
    "ValidationResult",
    "validate_rows",
    "validate_merchant_rows",
    "validate_bank_rows",
    # Review
    "ReviewError",
    "apply_override",
    "apply_overrides",
    "clear_override",
    "summarize_reviews",
    # Service and output
    "ReconciliationService",
    "ReportGenerator",
]
