"""Shared test fixtures and configuration."""

import os
import pytest
from datetime import date
from decimal import Decimal
from typing import Dict, Any, List

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("RECON_RATE_LIMIT", "1000/minute")

from ledger_recon.reconciliation import BankTransaction, MerchantTransaction


def merchant_txn(transaction_id: str, amount, **kwargs) -> MerchantTransaction:
    """Build a merchant transaction with sensible defaults."""
    kwargs.setdefault("date", date(2024, 1, 15))
    kwargs.setdefault("currency", "USD")
    return MerchantTransaction(transaction_id=transaction_id, amount=Decimal(str(amount)), **kwargs)


def bank_txn(transaction_id: str, amount, **kwargs) -> BankTransaction:
    """Build a bank transaction with sensible defaults."""
    kwargs.setdefault("date", date(2024, 1, 16))
    return BankTransaction(transaction_id=transaction_id, amount=Decimal(str(amount)), **kwargs)


@pytest.fixture
def sample_merchant_transactions() -> List[MerchantTransaction]:
    """Merchant ledger with a sale, a refund and a sale the bank never saw."""
    return [
        merchant_txn("TXN-001", "100.00", method="card"),
        merchant_txn("TXN-002", "-25.50", method="card"),
        merchant_txn("TXN-003", "40.00", method="wallet", fee="1.20"),
    ]


@pytest.fixture
def sample_bank_transactions() -> List[BankTransaction]:
    """Bank statement matching TXN-001 exactly, TXN-002 with a gap, plus an extra deposit."""
    return [
        bank_txn("txn-001", "100.00", currency="USD", description="CARD SETTLEMENT"),
        bank_txn(" TXN-002 ", "-25.00", currency="USD"),
        bank_txn("TXN-900", "75.00", currency="USD", description="UNKNOWN DEPOSIT"),
    ]


@pytest.fixture
def merchant_rows() -> List[Dict[str, Any]]:
    """Raw merchant rows as csv.DictReader would yield them."""
    return [
        {"transactionId": "A1", "date": "2024-02-01", "amount": "100.00", "currency": "USD", "method": "card", "fee": ""},
        {"transactionId": "A2", "date": "2024-02-01", "amount": "1,250.40", "currency": "USD", "method": "", "fee": "2.10"},
        {"transactionId": "A3", "date": "2024-02-02", "amount": "abc", "currency": "USD", "method": "card", "fee": ""},
        {"transactionId": "", "date": "2024-02-02", "amount": "10.00", "currency": "USD", "method": "", "fee": ""},
    ]


@pytest.fixture
def bank_rows() -> List[Dict[str, Any]]:
    """Raw bank rows as csv.DictReader would yield them."""
    return [
        {"Transaction ID": "a1", "Date": "2024-02-02", "Amount": "100.00", "Currency": "USD", "Description": "SALE"},
        {"Transaction ID": "A2", "Date": "2024-02-03", "Amount": "1250.00", "Currency": "USD", "Description": ""},
        {"Transaction ID": "B9", "Date": "not-a-date", "Amount": "5.00", "Currency": "", "Description": ""},
    ]


@pytest.fixture
def auth_headers():
    """Return headers with authentication."""
    return {"Authorization": f"Bearer {os.environ['API_KEY']}"}


@pytest.fixture
def make_merchant():
    """Factory fixture for merchant transactions."""
    return merchant_txn


@pytest.fixture
def make_bank():
    """Factory fixture for bank transactions."""
    return bank_txn
