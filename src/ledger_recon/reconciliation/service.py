"""Service layer for reconciliation runs."""

import csv
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..settings import get_default_tolerance
from .models import ReconciliationReport
from .reconciler import Reconciler
from .report import ReportGenerator
from .validator import validate_bank_rows, validate_merchant_rows

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("json", "csv", "text", "detailed_text")


class ReconciliationService:
    """Service for validating ledgers, reconciling them and rendering reports."""

    def __init__(self, amount_tolerance: Optional[Union[Decimal, int, float, str]] = None):
        """Initialize the reconciliation service.

        Args:
            amount_tolerance: Tolerance passed to the reconciler. Falls back to
                RECON_AMOUNT_TOLERANCE, then 0.
        """
        if amount_tolerance is None:
            amount_tolerance = get_default_tolerance()
        self.reconciler = Reconciler(amount_tolerance=amount_tolerance)

    @property
    def amount_tolerance(self) -> Decimal:
        return self.reconciler.amount_tolerance

    @staticmethod
    def load_rows(path: Union[str, Path]) -> List[Dict[str, Any]]:
        """Read a CSV file with a header row into a list of dict rows.

        Raises:
            OSError: If the file cannot be opened.
        """
        # utf-8-sig drops the BOM spreadsheet exports like to add
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = list(csv.DictReader(f))
        logger.info(f"Loaded {len(rows)} rows from {path}")
        return rows

    def run(
        self,
        merchant_rows: Iterable[Mapping[str, Any]],
        bank_rows: Iterable[Mapping[str, Any]],
    ) -> ReconciliationReport:
        """Validate both ledgers and reconcile the valid records.

        Args:
            merchant_rows: Raw merchant rows.
            bank_rows: Raw bank rows.

        Returns:
            ReconciliationReport with the result and any rejected rows.
        """
        merchant = validate_merchant_rows(merchant_rows)
        bank = validate_bank_rows(bank_rows)

        result = self.reconciler.reconcile(merchant.valid, bank.valid)

        report = ReconciliationReport(
            amount_tolerance=self.amount_tolerance,
            result=result,
            merchant_issues=merchant.invalid,
            bank_issues=bank.invalid,
        )

        logger.info(
            f"Reconciliation {report.id} finished: "
            f"{result.totals.matched} matched, "
            f"{len(merchant.invalid) + len(bank.invalid)} rows rejected"
        )
        return report

    def run_files(
        self,
        merchant_path: Union[str, Path],
        bank_path: Union[str, Path],
    ) -> ReconciliationReport:
        """Load two CSV files and reconcile them."""
        return self.run(self.load_rows(merchant_path), self.load_rows(bank_path))

    def generate_report(
        self,
        report: ReconciliationReport,
        format: str = "json",
        include_details: bool = True,
    ) -> str:
        """Generate a formatted report from reconciliation results.

        Args:
            report: The report to render.
            format: Output format ('json', 'csv', 'text', 'detailed_text').
            include_details: Include detailed records (JSON only).

        Returns:
            Formatted report string.

        Raises:
            ValueError: If the format is not supported.
        """
        generator = ReportGenerator(report)

        if format == "json":
            return generator.to_json(include_details=include_details)
        elif format == "csv":
            return generator.to_csv()
        elif format == "text":
            return generator.to_summary_text()
        elif format == "detailed_text":
            return generator.to_detailed_text()
        else:
            raise ValueError(f"Unsupported report format: {format}")
