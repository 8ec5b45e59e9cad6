"""Tests for report generation."""

import csv
import io
import json
import pytest
from decimal import Decimal

from ledger_recon.reconciliation import (
    ReconciliationReport,
    ReportGenerator,
    ValidationIssue,
    apply_override,
    reconcile,
)


@pytest.fixture
def report(sample_merchant_transactions, sample_bank_transactions):
    result = reconcile(sample_merchant_transactions, sample_bank_transactions)
    matches = list(result.matches)
    matches[1] = apply_override(matches[1], "approved_mismatch", "Acquirer fee")
    return ReconciliationReport(
        amount_tolerance=Decimal("0"),
        result=result.model_copy(update={"matches": matches}),
        merchant_issues=[ValidationIssue(row=4, reason="amount: invalid", raw={"amount": "x"})],
    )


class TestReportGenerator:
    """Tests for the ReportGenerator class."""

    def test_to_json_full(self, report):
        data = json.loads(ReportGenerator(report).to_json())

        assert data["id"] == report.id
        assert len(data["matches"]) == 4
        assert data["matches"][1]["diff"] == "0.50"
        assert data["matches"][1]["override_status"] == "approved_mismatch"
        assert data["merchant_issues"][0]["row"] == 4

    def test_to_json_summary_only(self, report):
        data = json.loads(ReportGenerator(report).to_json(include_details=False))

        assert "matches" not in data
        assert data["totals"]["missing_in_merchant"] == 1

    def test_to_csv(self, report):
        rows = list(csv.DictReader(io.StringIO(ReportGenerator(report).to_csv())))

        assert len(rows) == 4
        assert rows[0]["status"] == "matched"
        assert rows[0]["merchant_amount"] == "100.00"
        assert rows[1]["diff"] == "0.50"
        assert rows[1]["override_reason"] == "Acquirer fee"
        assert rows[2]["bank_amount"] == ""
        assert rows[3]["merchant_date"] == ""
        assert rows[3]["currency"] == "USD"

    def test_to_csv_empty_result(self):
        output = ReportGenerator(ReconciliationReport()).to_csv()

        assert output.strip() == ",".join([
            "transaction_id", "status", "match_reason", "merchant_amount",
            "bank_amount", "diff", "currency", "merchant_date", "bank_date",
            "override_status", "override_reason",
        ])

    def test_summary_text(self, report):
        text = ReportGenerator(report).to_summary_text()

        assert "RECONCILIATION REPORT SUMMARY" in text
        assert "Merchant Records: 3" in text
        assert "Difference (bank - merchant): 35.50" in text
        assert "Match Rate: 33.33%" in text
        assert "Rejected Rows:" in text

    def test_detailed_text(self, report):
        text = ReportGenerator(report).to_detailed_text()

        assert "Amount Mismatches (1):" in text
        assert "Diff: 0.50" in text
        assert "Override: approved_mismatch (Acquirer fee)" in text
        assert "Missing in Bank (1):" in text
        assert "Missing in Merchant (1):" in text
        assert "Row 4: amount: invalid" in text
        assert "Total: 1 matched transactions (0 within tolerance)" in text

    def test_detailed_text_clean_run(self, make_merchant, make_bank):
        report = ReconciliationReport(result=reconcile([make_merchant("A", 1)], [make_bank("A", 1)]))

        text = ReportGenerator(report).to_detailed_text()

        assert "EXCEPTIONS" not in text
        assert "REJECTED ROWS" not in text
