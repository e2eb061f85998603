"""
Editing session for the invoice in progress.

Every edit produces a new invoice, runs a full recalculation, becomes the
in-memory invoice and is then persisted. When persisting fails the error
propagates, and the in-memory invoice remains authoritative until the next
successful save.
"""
import logging
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from invoice_editor.core.calculations import recalculate_invoice
from invoice_editor.core.defaults import (
    DEFAULT_FOOTER_NOTE,
    DEFAULT_PERIOD_LENGTH_DAYS,
    default_invoice_content,
)
from invoice_editor.core.models import Invoice, InvoiceTemplate, ServiceItem, to_money
from invoice_editor.core.numbering import InvoiceNumberService
from invoice_editor.core.templates import (
    create_invoice_from_content,
    create_invoice_from_template,
    template_from_invoice,
)
from invoice_editor.storage.backends import KeyValueStore, StorageError
from invoice_editor.storage.repositories import CurrentInvoiceRepository, TemplateRepository
from invoice_editor.utils.decorators import audit_log
from invoice_editor.utils.diagnostics import Category, DiagnosticsLog


logger = logging.getLogger(__name__)


def _merge(record: BaseModel, fields: dict) -> BaseModel:
    """Validated copy of a record with some fields replaced"""
    model = type(record)
    unknown = set(fields) - set(model.model_fields)
    if unknown:
        raise ValueError(
            f"Unknown {model.__name__} field(s): {', '.join(sorted(unknown))}"
        )
    return model.model_validate({**record.model_dump(), **fields})


class InvoiceSession:
    """
    Owns the invoice being edited.

    Args:
        store: Persistence backend
        numbering: Shared numbering service
        diagnostics: Optional event sink
        period_length_days: Service period length for new invoices
    """

    def __init__(self, store: KeyValueStore, numbering: InvoiceNumberService,
                 diagnostics: Optional[DiagnosticsLog] = None,
                 period_length_days: int = DEFAULT_PERIOD_LENGTH_DAYS):
        self.numbering = numbering
        self.diagnostics = diagnostics
        self.period_length_days = period_length_days
        self.invoices = CurrentInvoiceRepository(store)
        self.templates = TemplateRepository(store)
        self._invoice: Optional[Invoice] = None

    @property
    def invoice(self) -> Invoice:
        if self._invoice is None:
            return self.load_or_create()
        return self._invoice

    def _event(self, level: str, message: str, data: Optional[dict] = None):
        if self.diagnostics is not None:
            self.diagnostics.record(level, Category.INVOICE, message, data)

    def _commit(self, invoice: Invoice) -> Invoice:
        invoice = recalculate_invoice(invoice)
        self._invoice = invoice

        self._event('DEBUG', 'Invoice recalculated', {
            'invoiceNumber': invoice.details.invoice_number,
            'total': str(invoice.total),
        })

        try:
            self.invoices.save(invoice)
        except StorageError as e:
            logger.error(f"Failed to persist invoice {invoice.details.invoice_number}: {e}")
            if self.diagnostics is not None:
                self.diagnostics.error(Category.STORAGE, 'Failed to save current invoice', e)
            raise

        return invoice

    def load_or_create(self) -> Invoice:
        """Resume the stored invoice, or start a new one from the default seed"""
        saved = self.invoices.load()
        if saved is None:
            return self.new_invoice()

        self._invoice = recalculate_invoice(saved)
        logger.debug(f"Resumed invoice {self._invoice.details.invoice_number}")
        return self._invoice

    @audit_log
    def new_invoice(self) -> Invoice:
        invoice = create_invoice_from_content(
            default_invoice_content(),
            self.numbering,
            period_length_days=self.period_length_days,
            footer_note=DEFAULT_FOOTER_NOTE,
        )
        self._event('INFO', 'New invoice created',
                    {'invoiceNumber': invoice.details.invoice_number})
        return self._commit(invoice)

    @audit_log
    def apply_template(self, template: InvoiceTemplate) -> Invoice:
        """Replace the current invoice with a fresh instance of a template"""
        invoice = create_invoice_from_template(
            template, self.numbering, period_length_days=self.period_length_days
        )
        # The footer is not part of template content
        if self._invoice is not None:
            invoice.footer_note = self._invoice.footer_note
        else:
            invoice.footer_note = DEFAULT_FOOTER_NOTE
        self._event('INFO', 'Template applied', {
            'templateId': template.id,
            'templateName': template.name,
            'invoiceNumber': invoice.details.invoice_number,
        })
        return self._commit(invoice)

    @audit_log
    def renumber(self) -> Invoice:
        """Give the current invoice a freshly issued number"""
        if self._invoice is None and self.invoices.load() is None:
            # A brand-new invoice already carries a fresh number
            return self.new_invoice()

        current = self.invoice
        details = current.details.model_copy(
            update={'invoice_number': self.numbering.next_invoice_number()}
        )
        return self._commit(current.model_copy(update={'details': details}))

    def _update_section(self, section: str, fields: dict) -> Invoice:
        current = self.invoice
        updated = _merge(getattr(current, section), fields)
        return self._commit(current.model_copy(update={section: updated}))

    def update_company(self, **fields) -> Invoice:
        return self._update_section('company', fields)

    def update_client(self, **fields) -> Invoice:
        return self._update_section('client', fields)

    def update_details(self, **fields) -> Invoice:
        return self._update_section('details', fields)

    def update_payment(self, **fields) -> Invoice:
        return self._update_section('payment', fields)

    def update_reverse_charge(self, **fields) -> Invoice:
        return self._update_section('reverse_charge', fields)

    def set_vat_rate(self, rate) -> Invoice:
        return self._commit(self.invoice.model_copy(update={'vat_rate': to_money(rate)}))

    def set_footer_note(self, note: Optional[str]) -> Invoice:
        return self._commit(self.invoice.model_copy(update={'footer_note': note}))

    def _check_index(self, index: int):
        count = len(self.invoice.services)
        if not 0 <= index < count:
            raise IndexError(f"Service index {index} out of range (0..{count - 1})")

    def add_service(self, description: str = 'New Service', quantity=Decimal('1'),
                    unit_price=Decimal('0'),
                    additional_info: Optional[str] = None) -> Invoice:
        item = ServiceItem(
            description=description,
            additional_info=additional_info,
            quantity=quantity,
            unit_price=unit_price,
        )
        current = self.invoice
        return self._commit(
            current.model_copy(update={'services': [*current.services, item]})
        )

    def update_service(self, index: int, **fields) -> Invoice:
        self._check_index(index)
        current = self.invoice
        services = list(current.services)
        services[index] = _merge(services[index], fields)
        return self._commit(current.model_copy(update={'services': services}))

    def remove_service(self, index: int) -> Invoice:
        self._check_index(index)
        current = self.invoice
        services = [s for i, s in enumerate(current.services) if i != index]
        return self._commit(current.model_copy(update={'services': services}))

    @audit_log
    def save_as_template(self, name: str, description: Optional[str] = None) -> InvoiceTemplate:
        """Store the content of the current invoice as a new template"""
        template = template_from_invoice(self.invoice, name, description)
        self.templates.save(template)
        if self.diagnostics is not None:
            self.diagnostics.info(Category.TEMPLATE, 'Template saved',
                                  {'templateId': template.id, 'templateName': template.name})
        return template
