"""Reconciliation logic for comparing merchant and bank records.

``reconcile`` does not validate record shape. It expects every record to carry
a non-blank ``transaction_id`` and a numeric ``amount``; run raw rows through
:mod:`ledger_recon.reconciliation.validator` first. Behaviour on anything else
is unspecified.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Union

from .models import (
    BankTransaction,
    MatchReason,
    MatchRecord,
    MatchStatus,
    MerchantTransaction,
    ReconciliationConfig,
    ReconciliationResult,
    ReconciliationTotals,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def normalize_id(transaction_id: Optional[str]) -> Optional[str]:
    """Normalize a transaction ID into a matching key.

    Trims surrounding whitespace and lowercases. ``None`` passes through as
    ``None``; a blank string becomes ``""``. Keys are for matching only and are
    never shown to users.
    """
    if transaction_id is None:
        return None
    return transaction_id.strip().lower()


def round2(value: Decimal) -> Decimal:
    """Round a monetary value to cents, half away from zero."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Reconciler:
    """Reconciliation engine for comparing merchant and bank transactions."""

    def __init__(self, amount_tolerance: Union[Decimal, int, float, str] = 0):
        """Initialize the reconciler.

        Args:
            amount_tolerance: Largest absolute difference (after rounding to
                cents) still treated as a match. Set to 0 for exact matching.

        Raises:
            ValueError: If the tolerance is negative.
        """
        tolerance = Decimal(str(amount_tolerance))
        if tolerance < 0:
            raise ValueError(f"amount_tolerance must be non-negative, got {amount_tolerance}")
        self.amount_tolerance = tolerance

    def _build_bank_lookup(
        self,
        bank_transactions: Sequence[BankTransaction],
    ) -> Dict[str, BankTransaction]:
        """Key bank records by normalized ID. Later duplicates replace earlier ones."""
        bank_by_id: Dict[str, BankTransaction] = {}
        for bank in bank_transactions:
            key = normalize_id(bank.transaction_id)
            if key in bank_by_id:
                logger.warning(
                    f"Duplicate bank transaction ID {bank.transaction_id!r}; "
                    f"keeping the later record and discarding "
                    f"{bank_by_id[key].transaction_id!r}"
                )
            bank_by_id[key] = bank
        return bank_by_id

    def _compare(self, merchant: MerchantTransaction, bank: BankTransaction) -> MatchRecord:
        """Classify a merchant/bank pair that share a key."""
        diff = round2(bank.amount - merchant.amount)

        if diff == 0:
            status, reason, diff = MatchStatus.MATCHED, MatchReason.EXACT_ID, ZERO
        elif abs(diff) <= self.amount_tolerance:
            # Within tolerance reports a zero diff, not the raw difference
            status, reason, diff = MatchStatus.MATCHED, MatchReason.AMOUNT_TOLERANCE, ZERO
        else:
            status, reason = MatchStatus.AMOUNT_MISMATCH, MatchReason.AMOUNT_MISMATCH

        return MatchRecord(
            transaction_id=merchant.transaction_id,
            merchant=merchant,
            bank=bank,
            status=status,
            diff=diff,
            match_reason=reason,
        )

    def reconcile(
        self,
        merchant_transactions: Sequence[MerchantTransaction],
        bank_transactions: Sequence[BankTransaction],
    ) -> ReconciliationResult:
        """Reconcile merchant transactions against bank transactions.

        The reconciliation process:
        1. Key bank records by normalized transaction ID
        2. Walk merchant records in order, consuming the bank record they match
        3. Report every bank record left over as missing in merchant
        4. Aggregate totals over the produced matches

        Args:
            merchant_transactions: Merchant-side records, in input order.
            bank_transactions: Bank-side records, in input order.

        Returns:
            ReconciliationResult with one MatchRecord per surviving input record.
        """
        matches: List[MatchRecord] = []

        logger.info(
            f"Starting reconciliation: {len(merchant_transactions)} merchant, "
            f"{len(bank_transactions)} bank transactions"
        )

        bank_by_id = self._build_bank_lookup(bank_transactions)

        for merchant in merchant_transactions:
            key = normalize_id(merchant.transaction_id)
            bank = bank_by_id.pop(key, None)

            if bank is None:
                matches.append(MatchRecord(
                    transaction_id=merchant.transaction_id,
                    merchant=merchant,
                    bank=None,
                    status=MatchStatus.MISSING_IN_BANK,
                    diff=ZERO,
                    match_reason=MatchReason.MISSING_IN_BANK,
                ))
                continue

            matches.append(self._compare(merchant, bank))

        # Whatever is left was never claimed by a merchant record
        for bank in bank_by_id.values():
            matches.append(MatchRecord(
                transaction_id=bank.transaction_id,
                merchant=None,
                bank=bank,
                status=MatchStatus.MISSING_IN_MERCHANT,
                diff=ZERO,
                match_reason=MatchReason.MISSING_IN_MERCHANT,
            ))

        totals = compute_totals(matches)

        logger.info(
            f"Reconciliation complete: {totals.matched} matched, "
            f"{totals.amount_mismatch} amount mismatches, "
            f"{totals.missing_in_bank} missing in bank, "
            f"{totals.missing_in_merchant} missing in merchant"
        )

        return ReconciliationResult(matches=matches, totals=totals)


def compute_totals(matches: Sequence[MatchRecord]) -> ReconciliationTotals:
    """Aggregate counts and sums in a single pass.

    Side counts and sums come from the records present on each match, not
    from input lengths, so discarded duplicate bank records are not counted.
    """
    counts = {status: 0 for status in MatchStatus}
    merchant_count = bank_count = 0
    sum_merchant = sum_bank = Decimal("0")

    for match in matches:
        if match.merchant is not None:
            merchant_count += 1
            sum_merchant += match.merchant.amount
        if match.bank is not None:
            bank_count += 1
            sum_bank += match.bank.amount
        counts[match.status] += 1

    return ReconciliationTotals(
        merchant_count=merchant_count,
        bank_count=bank_count,
        matched=counts[MatchStatus.MATCHED],
        missing_in_bank=counts[MatchStatus.MISSING_IN_BANK],
        missing_in_merchant=counts[MatchStatus.MISSING_IN_MERCHANT],
        amount_mismatch=counts[MatchStatus.AMOUNT_MISMATCH],
        sum_merchant=round2(sum_merchant),
        sum_bank=round2(sum_bank),
        sum_diff=round2(sum_bank - sum_merchant),
    )


def reconcile(
    merchant_records: Sequence[MerchantTransaction],
    bank_records: Sequence[BankTransaction],
    config: Optional[ReconciliationConfig] = None,
) -> ReconciliationResult:
    """Reconcile two ledgers. Pure function of its inputs.

    Records must already be validated; see the module docstring.
    """
    config = config or ReconciliationConfig()
    return Reconciler(amount_tolerance=config.amount_tolerance).reconcile(
        merchant_records, bank_records
    )
