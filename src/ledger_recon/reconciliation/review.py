"""Manual review of reconciliation matches.

Overrides are annotations attached after the fact. They never change the
computed status, the diff, or the totals of a result.
"""

import logging
from collections import Counter
from typing import Dict, Mapping, Optional, Tuple, Union

from .models import MatchRecord, MatchStatus, OverrideStatus, ReconciliationResult
from .reconciler import normalize_id

logger = logging.getLogger(__name__)


class ReviewError(ValueError):
    """An override that cannot be applied to the given match."""


def apply_override(
    match: MatchRecord,
    status: Union[OverrideStatus, str],
    reason: str,
) -> MatchRecord:
    """Return a copy of ``match`` carrying a reviewer's status and reason.

    Args:
        match: The match to annotate.
        status: ``matched`` or ``approved_mismatch``.
        reason: Free-text justification; required.

    Raises:
        ReviewError: If the status is unknown, the reason is blank, or a
            one-sided match is marked as an approved mismatch.
    """
    try:
        override = OverrideStatus(status)
    except ValueError:
        raise ReviewError(f"Unknown override status: {status!r}") from None

    if not reason or not reason.strip():
        raise ReviewError("An override needs a reason")

    if override == OverrideStatus.APPROVED_MISMATCH and match.status in (
        MatchStatus.MISSING_IN_BANK,
        MatchStatus.MISSING_IN_MERCHANT,
    ):
        raise ReviewError(
            f"Transaction {match.transaction_id} is {match.status.value}; "
            f"there is no amount difference to approve"
        )

    logger.info(
        f"Override on {match.transaction_id}: {match.status.value} -> {override.value}"
    )
    return match.model_copy(update={
        "override_status": override,
        "override_reason": reason.strip(),
    })


def clear_override(match: MatchRecord) -> MatchRecord:
    """Return a copy of ``match`` without review annotations."""
    return match.model_copy(update={"override_status": None, "override_reason": None})


def apply_overrides(
    result: ReconciliationResult,
    overrides: Mapping[str, Tuple[Union[OverrideStatus, str], str]],
) -> ReconciliationResult:
    """Patch several matches of a result at once.

    ``overrides`` maps a transaction ID (matched the same way the reconciler
    matches IDs) to a ``(status, reason)`` pair. Totals are carried over
    unchanged.

    Raises:
        ReviewError: If an ID does not appear in the result, or an override
            is rejected by :func:`apply_override`.
    """
    pending: Dict[Optional[str], Tuple[Union[OverrideStatus, str], str]] = {
        normalize_id(key): value for key, value in overrides.items()
    }

    matches = []
    applied = set()
    for match in result.matches:
        key = normalize_id(match.transaction_id)
        if key in pending:
            status, reason = pending[key]
            match = apply_override(match, status, reason)
            applied.add(key)
        matches.append(match)

    missing = set(pending) - applied
    if missing:
        unknown = ", ".join(sorted(str(k) for k in missing))
        raise ReviewError(f"No match found for transaction(s): {unknown}")

    return ReconciliationResult(matches=matches, totals=result.totals)


def summarize_reviews(result: ReconciliationResult) -> Dict[str, int]:
    """Count matches by effective status, overrides taking precedence."""
    return dict(Counter(match.effective_status for match in result.matches))
