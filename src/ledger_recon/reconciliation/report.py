"""Report generation for reconciliation results."""

import json
import csv
import io
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from .models import MatchReason, MatchRecord, MatchStatus, ReconciliationReport, ValidationIssue

CSV_COLUMNS = [
    "transaction_id",
    "status",
    "match_reason",
    "merchant_amount",
    "bank_amount",
    "diff",
    "currency",
    "merchant_date",
    "bank_date",
    "override_status",
    "override_reason",
]

STATUS_TITLES = [
    (MatchStatus.AMOUNT_MISMATCH, "Amount Mismatches"),
    (MatchStatus.MISSING_IN_BANK, "Missing in Bank"),
    (MatchStatus.MISSING_IN_MERCHANT, "Missing in Merchant"),
]


def _amount(value: Optional[Decimal]) -> str:
    return "" if value is None else f"{value:.2f}"


class ReportGenerator:
    """Generator for reconciliation reports in various formats."""

    def __init__(self, report: ReconciliationReport):
        """Initialize the report generator.

        Args:
            report: The reconciliation report to generate output from.
        """
        self.report = report

    def to_json(self, include_details: bool = True, indent: int = 2) -> str:
        """Generate JSON representation of the report.

        Args:
            include_details: If True, include all records. If False, only summary.
            indent: JSON indentation level.

        Returns:
            JSON string representation of the report.
        """
        if include_details:
            data = self.report.to_full_dict()
        else:
            data = self.report.to_summary_dict()

        def json_serializer(obj):
            if isinstance(obj, datetime):
                return obj.isoformat()
            if isinstance(obj, Decimal):
                return str(obj)
            if isinstance(obj, Enum):
                return obj.value
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

        return json.dumps(data, indent=indent, default=json_serializer)

    def to_csv(self) -> str:
        """Generate CSV with one line per match record.

        Returns:
            CSV string with a header row.
        """
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_COLUMNS)

        for match in self.report.result.matches:
            merchant, bank = match.merchant, match.bank
            currency = merchant.currency if merchant else (bank.currency or "")
            writer.writerow([
                match.transaction_id,
                match.status.value,
                match.match_reason.value,
                _amount(merchant.amount if merchant else None),
                _amount(bank.amount if bank else None),
                _amount(match.diff),
                currency,
                merchant.date.isoformat() if merchant else "",
                bank.date.isoformat() if bank else "",
                match.override_status.value if match.override_status else "",
                match.override_reason or "",
            ])

        return output.getvalue()

    def to_summary_text(self) -> str:
        """Generate a human-readable text summary of the report.

        Returns:
            Formatted text summary of the reconciliation report.
        """
        summary = self.report.to_summary_dict()
        totals = self.report.result.totals
        rejected = summary["rejected_rows"]

        lines = [
            "=" * 60,
            "RECONCILIATION REPORT SUMMARY",
            "=" * 60,
            f"Report ID: {summary['id']}",
            f"Created At: {summary['created_at']}",
            f"Amount Tolerance: {summary['amount_tolerance']}",
            "",
            "Records:",
            f"  Merchant Records: {totals.merchant_count}",
            f"  Bank Records: {totals.bank_count}",
            f"  Matched: {totals.matched}",
            f"  Amount Mismatches: {totals.amount_mismatch}",
            f"  Missing in Bank: {totals.missing_in_bank}",
            f"  Missing in Merchant: {totals.missing_in_merchant}",
            f"  Match Rate: {summary['match_rate']}",
            "",
            "Amounts:",
            f"  Merchant Total: {_amount(totals.sum_merchant)}",
            f"  Bank Total: {_amount(totals.sum_bank)}",
            f"  Difference (bank - merchant): {_amount(totals.sum_diff)}",
        ]

        if rejected["merchant"] or rejected["bank"]:
            lines.extend([
                "",
                "Rejected Rows:",
                f"  Merchant: {rejected['merchant']}",
                f"  Bank: {rejected['bank']}",
            ])

        lines.append("=" * 60)

        return "\n".join(lines)

    def _match_line(self, match: MatchRecord) -> str:
        parts = [f"  {match.transaction_id}"]
        if match.merchant:
            parts.append(f"Merchant: {_amount(match.merchant.amount)} {match.merchant.currency}")
        if match.bank:
            parts.append(f"Bank: {_amount(match.bank.amount)} {match.bank.currency or ''}".rstrip())
        if match.status == MatchStatus.AMOUNT_MISMATCH:
            parts.append(f"Diff: {_amount(match.diff)}")
        if match.override_status:
            parts.append(f"Override: {match.override_status.value} ({match.override_reason})")
        return ", ".join(parts)

    def _issue_lines(self, title: str, issues: List[ValidationIssue]) -> List[str]:
        lines = [f"\n{title} ({len(issues)}):"]
        for issue in issues:
            lines.append(f"  Row {issue.row}: {issue.reason}")
        return lines

    def to_detailed_text(self) -> str:
        """Generate a detailed human-readable text report.

        Returns:
            Formatted text with summary and every record that needs attention.
        """
        lines = [self.to_summary_text(), ""]
        result = self.report.result

        exceptions = [(title, result.by_status(status)) for status, title in STATUS_TITLES]
        if any(records for _, records in exceptions):
            lines.extend([
                "EXCEPTIONS",
                "-" * 40,
            ])
            for title, records in exceptions:
                if records:
                    lines.append(f"\n{title} ({len(records)}):")
                    lines.extend(self._match_line(r) for r in records)
            lines.append("")

        if self.report.merchant_issues or self.report.bank_issues:
            lines.extend([
                "REJECTED ROWS",
                "-" * 40,
            ])
            if self.report.merchant_issues:
                lines.extend(self._issue_lines("Merchant File", self.report.merchant_issues))
            if self.report.bank_issues:
                lines.extend(self._issue_lines("Bank File", self.report.bank_issues))
            lines.append("")

        matched = result.by_status(MatchStatus.MATCHED)
        if matched:
            within_tolerance = [m for m in matched if m.match_reason == MatchReason.AMOUNT_TOLERANCE]
            lines.extend([
                "MATCHED RECORDS",
                "-" * 40,
                f"Total: {len(matched)} matched transactions "
                f"({len(within_tolerance)} within tolerance)",
                "",
            ])

        return "\n".join(lines)
