"""Tests for API endpoints."""

import os
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

# Set environment variables before importing app
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("RECON_RATE_LIMIT", "1000/minute")

from ledger_recon.api import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def job_body(merchant_rows, bank_rows):
    return {"merchant": merchant_rows, "bank": bank_rows, "amount_tolerance": "0.10"}


class TestAuthentication:
    """Tests for API key checks."""

    def test_missing_auth(self, client, job_body):
        response = client.post("/reconciliation/jobs", json=job_body)

        assert response.status_code in (401, 403)

    def test_invalid_auth(self, client, job_body):
        response = client.post(
            "/reconciliation/jobs",
            json=job_body,
            headers={"Authorization": "Bearer wrong_key"},
        )

        assert response.status_code == 401

    def test_api_key_not_configured(self, client, job_body, auth_headers):
        with patch.dict(os.environ, {"API_KEY": ""}):
            response = client.post("/reconciliation/jobs", json=job_body, headers=auth_headers)

        assert response.status_code == 500


class TestReconciliationJobs:
    """Tests for POST /reconciliation/jobs."""

    def test_create_job(self, client, job_body, auth_headers):
        response = client.post("/reconciliation/jobs", json=job_body, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["matched"] == 1
        assert data["totals"]["amount_mismatch"] == 1
        assert data["matches"][1]["diff"] == "-0.40"
        assert data["rejected_rows"] == {"merchant": 2, "bank": 1}
        assert data["amount_tolerance"] == "0.10"

    def test_empty_job(self, client, auth_headers):
        response = client.post(
            "/reconciliation/jobs",
            json={"amount_tolerance": 0},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["matches"] == []

    def test_negative_tolerance(self, client, auth_headers):
        response = client.post(
            "/reconciliation/jobs",
            json={"merchant": [], "bank": [], "amount_tolerance": -1},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_default_tolerance_from_environment(self, client, auth_headers):
        body = {
            "merchant": [{"id": "A1", "date": "2024-01-01", "amount": "10.00", "currency": "USD"}],
            "bank": [{"id": "A1", "date": "2024-01-01", "amount": "10.30"}],
        }
        with patch.dict(os.environ, {"RECON_AMOUNT_TOLERANCE": "0.50"}):
            response = client.post("/reconciliation/jobs", json=body, headers=auth_headers)

        assert response.json()["matches"][0]["match_reason"] == "AMOUNT_TOLERANCE"

    def test_bad_environment_tolerance(self, client, auth_headers):
        with patch.dict(os.environ, {"RECON_AMOUNT_TOLERANCE": "lots"}):
            response = client.post("/reconciliation/jobs", json={}, headers=auth_headers)

        assert response.status_code == 500


class TestReconciliationReport:
    """Tests for POST /reconciliation/jobs/report."""

    def test_csv_report(self, client, job_body, auth_headers):
        response = client.post(
            "/reconciliation/jobs/report?format=csv",
            json=job_body,
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.startswith("transaction_id,status")

    def test_text_report(self, client, job_body, auth_headers):
        response = client.post(
            "/reconciliation/jobs/report?format=detailed_text",
            json=job_body,
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert "REJECTED ROWS" in response.text

    def test_json_summary(self, client, job_body, auth_headers):
        response = client.post(
            "/reconciliation/jobs/report?format=json&include_details=false",
            json=job_body,
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert "matches" not in response.json()

    def test_invalid_format(self, client, job_body, auth_headers):
        response = client.post(
            "/reconciliation/jobs/report?format=xml",
            json=job_body,
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestOverrideEndpoint:
    """Tests for POST /reconciliation/matches/override."""

    def _first_match(self, client, job_body, auth_headers, index):
        response = client.post("/reconciliation/jobs", json=job_body, headers=auth_headers)
        return response.json()["matches"][index]

    def test_override_mismatch(self, client, job_body, auth_headers):
        match = self._first_match(client, job_body, auth_headers, 1)

        response = client.post(
            "/reconciliation/matches/override",
            json={
                "match": match,
                "override_status": "approved_mismatch",
                "override_reason": "Bank charge",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "amount_mismatch"
        assert data["override_status"] == "approved_mismatch"
        assert data["override_reason"] == "Bank charge"

    def test_override_rejected(self, client, auth_headers):
        match = {
            "transaction_id": "B1",
            "merchant": None,
            "bank": {"transaction_id": "B1", "date": "2024-01-01", "amount": "5.00"},
            "status": "missing_in_merchant",
            "diff": "0",
            "match_reason": "MISSING_IN_MERCHANT",
        }

        response = client.post(
            "/reconciliation/matches/override",
            json={"match": match, "override_status": "approved_mismatch", "override_reason": "ok"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_inconsistent_match_rejected(self, client, auth_headers):
        match = {
            "transaction_id": "B1",
            "merchant": None,
            "bank": None,
            "status": "matched",
            "diff": "0",
            "match_reason": "EXACT_ID",
        }

        response = client.post(
            "/reconciliation/matches/override",
            json={"match": match, "override_status": "matched", "override_reason": "ok"},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestHealth:
    """Tests for health endpoints."""

    def test_reconciliation_health(self, client):
        response = client.get("/reconciliation/health")

        assert response.json() == {"status": "healthy", "service": "reconciliation"}

    def test_app_health(self, client):
        assert client.get("/health").json() == {"ok": True}

    def test_rate_limiter_is_configured(self):
        assert hasattr(app.state, "limiter")
