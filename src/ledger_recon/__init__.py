# ledger_recon package
__version__ = "0.1.0"

from .reconciliation import (
    MerchantTransaction,
    BankTransaction,
    MatchRecord,
    MatchStatus,
    MatchReason,
    ReconciliationConfig,
    ReconciliationResult,
    ReconciliationReport,
    ReconciliationService,
    Reconciler,
    ReportGenerator,
    reconcile,
    normalize_id,
)
