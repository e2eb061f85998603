"""
Shared fixtures for the invoice editor test suite.
"""
import pytest
from datetime import date
from decimal import Decimal

from invoice_editor.core.models import (
    ClientInfo,
    CompanyInfo,
    InvoiceContent,
    PaymentInfo,
    ReverseChargeInfo,
    ServiceItem,
)
from invoice_editor.core.numbering import InvoiceNumberService
from invoice_editor.editing.session import InvoiceSession
from invoice_editor.storage.backends import MemoryStore, StorageError, StorageKeys
from invoice_editor.storage.repositories import CounterRepository
from invoice_editor.utils.diagnostics import DiagnosticsLog


ISSUE_DAY = date(2025, 11, 13)


class FlakyStore(MemoryStore):
    """Memory store whose writes can be switched to fail"""

    def __init__(self, failing_keys=(StorageKeys.CURRENT_INVOICE,)):
        super().__init__()
        self.failing_keys = set(failing_keys)
        self.fail = False

    def set_json(self, key, value):
        if self.fail and key in self.failing_keys:
            raise StorageError(f"Disk full while writing '{key}'")
        super().set_json(key, value)


@pytest.fixture
def issue_day():
    return ISSUE_DAY


@pytest.fixture
def store():
    """Empty in-memory store"""
    return MemoryStore()


@pytest.fixture
def counter(store):
    return CounterRepository(store)


@pytest.fixture
def diagnostics():
    return DiagnosticsLog(max_entries=100)


@pytest.fixture
def numbering(counter, diagnostics):
    """Numbering service pinned to a fixed calendar day"""
    return InvoiceNumberService(counter, prefix='CORE', clock=lambda: ISSUE_DAY,
                                diagnostics=diagnostics)


@pytest.fixture
def session(store, numbering, diagnostics):
    return InvoiceSession(store, numbering, diagnostics=diagnostics)


@pytest.fixture
def sample_content():
    """Two consulting days at 100 with 20% VAT, no reverse charge"""
    return InvoiceContent(
        company=CompanyInfo(name='Acme Consulting', city='Vilnius', vat_number='LT123'),
        client=ClientInfo(name='Client Ltd', city='Sofia', vat_number='BG999'),
        services=[
            ServiceItem(description='Consulting day', quantity=Decimal('2'),
                        unit_price=Decimal('100')),
        ],
        payment=PaymentInfo(bank_name='Test Bank', iban='LT00 0000', swift='TESTLT22'),
        reverse_charge=ReverseChargeInfo(applicable=False, customer_vat='BG999'),
        vat_rate=Decimal('20'),
    )


@pytest.fixture
def flaky_store():
    return FlakyStore()
