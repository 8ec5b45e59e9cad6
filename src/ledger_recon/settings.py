"""Environment-driven settings.

Values are read from the environment on every call so tests can patch
``os.environ`` without reloading modules.
"""

import os
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = "60/minute"


def get_api_key() -> Optional[str]:
    """API key expected in the ``Authorization: Bearer`` header."""
    return os.getenv("API_KEY")


def parse_tolerance(raw: str) -> Decimal:
    """Parse a non-negative, finite monetary tolerance.

    Shared by the CLI ``--tolerance`` option and ``RECON_AMOUNT_TOLERANCE``.

    Raises:
        ValueError: If ``raw`` is not a number, or is negative, NaN or infinite.
    """
    try:
        tolerance = Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"tolerance must be a number, got {raw!r}") from None
    if not tolerance.is_finite() or tolerance < 0:
        raise ValueError(f"tolerance must be a non-negative number, got {raw!r}")
    return tolerance


def get_default_tolerance() -> Decimal:
    """Default amount tolerance from ``RECON_AMOUNT_TOLERANCE``.

    Raises:
        ValueError: If the variable is set to something other than a
            non-negative number.
    """
    raw = os.getenv("RECON_AMOUNT_TOLERANCE")
    if raw is None or raw.strip() == "":
        return Decimal("0")
    try:
        return parse_tolerance(raw)
    except ValueError as e:
        raise ValueError(f"RECON_AMOUNT_TOLERANCE: {e}") from None


def get_rate_limit() -> str:
    """Rate limit applied to reconciliation endpoints, in slowapi notation."""
    return os.getenv("RECON_RATE_LIMIT", DEFAULT_RATE_LIMIT)
