#!/usr/bin/env python3
"""Command-line interface for ledger reconciliation.

Usage:
    ledger-recon reconcile --merchant merchant.csv --bank bank.csv
    ledger-recon reconcile -m merchant.csv -b bank.csv --tolerance 0.50 --format detailed_text --output report.txt
"""

import argparse
import logging
import sys
from decimal import Decimal
from typing import Optional

from ..settings import parse_tolerance as parse_tolerance_value
from .service import REPORT_FORMATS, ReconciliationService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_INPUT_ERROR = 2


def parse_tolerance(value: str) -> Decimal:
    """argparse type for a non-negative monetary tolerance."""
    try:
        return parse_tolerance_value(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def run_reconciliation(
    merchant_file: str,
    bank_file: str,
    amount_tolerance: Optional[Decimal] = None,
    output_file: Optional[str] = None,
    output_format: str = "json",
    include_details: bool = True,
) -> int:
    """Run a reconciliation between two CSV files.

    Args:
        merchant_file: Path to the merchant CSV.
        bank_file: Path to the bank CSV.
        amount_tolerance: Tolerance; falls back to RECON_AMOUNT_TOLERANCE.
        output_file: Optional output file path.
        output_format: Output format ('json', 'csv', 'text', 'detailed_text').
        include_details: Include detailed records in output.

    Returns:
        Exit code (0 when everything matched, 1 when issues were found,
        2 when the input could not be read or the report could not be written).
    """
    try:
        service = ReconciliationService(amount_tolerance=amount_tolerance)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_INPUT_ERROR

    try:
        report = service.run_files(merchant_file, bank_file)
    except OSError as e:
        logger.error(f"Could not read input: {e}")
        return EXIT_INPUT_ERROR

    output = service.generate_report(
        report=report,
        format=output_format,
        include_details=include_details,
    )

    if output_file:
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(output)
        except OSError as e:
            logger.error(f"Could not write report: {e}")
            return EXIT_INPUT_ERROR
        logger.info(f"Report written to {output_file}")
    else:
        print(output)

    if report.has_issues:
        totals = report.result.totals
        logger.warning(
            f"Reconciliation completed with issues: "
            f"{totals.amount_mismatch} amount mismatches, "
            f"{totals.missing_in_bank} missing in bank, "
            f"{totals.missing_in_merchant} missing in merchant, "
            f"{len(report.merchant_issues) + len(report.bank_issues)} rejected rows"
        )
        return EXIT_ISSUES
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="ledger-recon",
        description="Reconcile a merchant ledger against a bank statement.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    reconcile_parser = subparsers.add_parser(
        "reconcile",
        help="Reconcile two CSV ledgers",
    )
    reconcile_parser.add_argument(
        "--merchant", "-m",
        required=True,
        help="Merchant ledger CSV",
    )
    reconcile_parser.add_argument(
        "--bank", "-b",
        required=True,
        help="Bank statement CSV",
    )
    reconcile_parser.add_argument(
        "--tolerance", "-t",
        type=parse_tolerance,
        default=None,
        help="Largest amount difference still treated as a match "
             "(default: RECON_AMOUNT_TOLERANCE or 0)",
    )
    reconcile_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    reconcile_parser.add_argument(
        "--format", "-f",
        choices=list(REPORT_FORMATS),
        default="json",
        help="Output format (default: json)",
    )
    reconcile_parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Only include summary statistics, not detailed records",
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_ISSUES

    if parsed_args.command == "reconcile":
        return run_reconciliation(
            merchant_file=parsed_args.merchant,
            bank_file=parsed_args.bank,
            amount_tolerance=parsed_args.tolerance,
            output_file=parsed_args.output,
            output_format=parsed_args.format,
            include_details=not parsed_args.summary_only,
        )

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
